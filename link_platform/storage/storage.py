"""
Storage module for Link Platform (in-memory implementation).

Responsibilities:
    - Keep links keyed by short code
    - Enforce short-code uniqueness on insert
    - Apply click accounting atomically per code
    - Return immutable Link snapshots

Design:
    - Records are plain dicts with the same column names the SQL backend uses.
    - Mutations take a lock shard chosen by the code's hash, never a global
      lock, so work on different codes proceeds in parallel.
    - Id assignment has its own lock; it is the only cross-code critical
      section and covers a single counter step.
"""

import itertools
import threading
from datetime import datetime
from typing import Any, Dict, List, Optional

from link_platform.models import Link
from .base import BaseStorage

DEFAULT_LOCK_SHARDS = 64


class Storage(BaseStorage):
    def __init__(self, lock_shards: int = DEFAULT_LOCK_SHARDS):
        """
        Initialize empty storage.

        Internal schema:
            self.links = {
                short_code: {
                    "id": int,
                    "short_code": str,
                    "original_url": str,
                    "clicks": int,
                    "last_clicked_at": Optional[datetime],
                    "created_at": datetime,
                }
            }
        """
        if lock_shards < 1:
            raise ValueError("lock_shards must be >= 1")
        self.links: Dict[str, Dict[str, Any]] = {}
        self._shards = [threading.Lock() for _ in range(lock_shards)]
        self._ids = itertools.count(1)
        self._id_lock = threading.Lock()

    def _lock_for(self, short_code: str) -> threading.Lock:
        return self._shards[hash(short_code) % len(self._shards)]

    def _next_id(self) -> int:
        with self._id_lock:
            return next(self._ids)

    def insert_link(self, short_code: str, original_url: str, created_at: datetime) -> Optional[Link]:
        """
        Insert-if-absent under the code's shard lock.

        Returns:
            Optional[Link]: New link, or None when the code is already taken.
        """
        with self._lock_for(short_code):
            if short_code in self.links:
                return None
            row = {
                "id": self._next_id(),
                "short_code": short_code,
                "original_url": original_url,
                "clicks": 0,
                "last_clicked_at": None,
                "created_at": created_at,
            }
            self.links[short_code] = row
            return Link.from_row(row)

    def get_link(self, short_code: str) -> Optional[Link]:
        with self._lock_for(short_code):
            row = self.links.get(short_code)
            return Link.from_row(row) if row else None

    def delete_link(self, short_code: str) -> bool:
        with self._lock_for(short_code):
            return self.links.pop(short_code, None) is not None

    def list_links(self) -> List[Link]:
        """
        Snapshot every live link, newest first.

        dict.copy() is a single atomic step, so the set of links is consistent;
        each row is then read under its own shard lock.
        """
        snapshot = []
        for code, row in self.links.copy().items():
            with self._lock_for(code):
                snapshot.append(Link.from_row(row))
        snapshot.sort(key=lambda link: (link.created_at, link.id), reverse=True)
        return snapshot

    def record_click(self, short_code: str, clicked_at: datetime) -> Optional[int]:
        """
        Increment clicks and stamp last_clicked_at while holding the shard lock.

        Returns:
            Optional[int]: Click count after the increment, None if the code is absent.
        """
        with self._lock_for(short_code):
            row = self.links.get(short_code)
            if row is None:
                return None
            row["clicks"] += 1
            row["last_clicked_at"] = clicked_at
            return row["clicks"]

    def close(self) -> None:
        self.links.clear()
