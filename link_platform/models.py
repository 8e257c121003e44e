"""
Link entity.

A `Link` is an immutable snapshot of one stored record. Storage backends keep
their own mutable representation and hand out fresh snapshots, so a Link held
by a caller never changes underneath it.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Mapping, Optional


@dataclass(frozen=True)
class Link:
    id: int
    short_code: str
    original_url: str
    clicks: int
    created_at: datetime
    last_clicked_at: Optional[datetime] = None

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "Link":
        """
        Build a Link from a storage row.

        Both backends use the same column names (id, short_code, original_url,
        clicks, last_clicked_at, created_at), so a psycopg dict_row and an
        in-memory record dict are accepted alike.
        """
        return cls(
            id=int(row["id"]),
            short_code=row["short_code"],
            original_url=row["original_url"],
            clicks=int(row.get("clicks") or 0),
            created_at=row["created_at"],
            last_clicked_at=row.get("last_clicked_at"),
        )
