"""
RedirectResolver module for Link Platform.

Translates a short code into its redirect target and records the visit.

The visit is recorded through `LinkRegistry.record_visit`, backed by the
storage's atomic `record_click`, which adds exactly one click per call no
matter how calls interleave. A failed accounting write is logged and does
not fail the redirect.
"""

import logging
from datetime import datetime, timezone
from typing import Callable, Optional

from ..errors import InternalError
from .link_registry import LinkRegistry

log = logging.getLogger(__name__)


class RedirectResolver:
    def __init__(self, registry: LinkRegistry, clock: Optional[Callable[[], datetime]] = None):
        self.registry = registry
        self.clock = clock or (lambda: datetime.now(timezone.utc))

    def resolve(self, code: str) -> str:
        """
        Look up `code` and record a visit.

        Returns:
            str: The original URL to redirect to.

        Raises:
            NotFoundError: Same error whether the code never existed or was deleted.
            InternalError: If the lookup itself fails.
        """
        link = self.registry.get(code)

        try:
            clicks = self.registry.record_visit(code, self.clock())
        except InternalError:
            log.exception("Visit accounting failed for %s; redirect still served", code)
        else:
            if clicks is None:
                log.warning("Link %s disappeared before its visit was recorded", code)

        return link.original_url
