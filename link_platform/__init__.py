"""
link_platform package initializer.
"""

__version__ = "1.0.0"

from . import manager
from . import storage

__all__ = ["manager", "storage", "__version__"]
