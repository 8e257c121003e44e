"""
Base storage interface for Link Platform.

Purpose:
    Define a small, stable contract that multiple storage backends
    (in-memory, SQL) can implement without requiring changes to the
    registry or resolver.

Contract guarantees every backend must provide:
    - `insert_link` is insert-if-absent on `short_code`: under concurrent calls
      for the same code at most one succeeds, the others get None.
    - `record_click` increments `clicks` atomically for one code. A
      read-then-write increment is not acceptable.
    - Backend failures are raised as `StorageError`, never as driver exceptions.

Testing & Coverage:
    These are abstract methods and are not executed directly in tests.
    We annotate them with `# pragma: no cover` so coverage tools don't
    penalize the project for un-runnable abstract declarations.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import List, Optional

from link_platform.models import Link


class StorageError(Exception):
    """Raised by a backend when the underlying store fails."""


class BaseStorage(ABC):
    """Abstract base class for storage backends."""

    @abstractmethod  # pragma: no cover
    def insert_link(self, short_code: str, original_url: str, created_at: datetime) -> Optional[Link]:
        """
        Insert a new link with clicks=0 and no last click.

        Returns:
            Optional[Link]: The persisted link (with its assigned id), or None
            if `short_code` is already taken.
        """
        raise NotImplementedError

    @abstractmethod  # pragma: no cover
    def get_link(self, short_code: str) -> Optional[Link]:
        """Return a snapshot of the link, or None if absent."""
        raise NotImplementedError

    @abstractmethod  # pragma: no cover
    def delete_link(self, short_code: str) -> bool:
        """
        Remove a link permanently.

        Returns:
            bool: True if a link was removed, False if none existed.
        """
        raise NotImplementedError

    @abstractmethod  # pragma: no cover
    def list_links(self) -> List[Link]:
        """Return all live links, newest first (created_at desc, then id desc)."""
        raise NotImplementedError

    @abstractmethod  # pragma: no cover
    def record_click(self, short_code: str, clicked_at: datetime) -> Optional[int]:
        """
        Atomically increment clicks by one and set last_clicked_at.

        Returns:
            Optional[int]: The click count after the increment, or None if the
            code does not exist.
        """
        raise NotImplementedError

    def ensure_schema(self) -> None:
        """Create backing tables if the backend needs them. No-op by default."""

    def close(self) -> None:
        """Release backend resources. No-op by default."""
