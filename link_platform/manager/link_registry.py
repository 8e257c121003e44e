"""
LinkRegistry module for Link Platform.

Responsibilities:
    - Create links from a URL and an optional custom short code
    - Validate URLs and code grammar
    - Guarantee short-code uniqueness among live links
    - Look up, delete and list links
    - Translate storage failures into InternalError

Design notes:
    - Storage is an injected dependency; the registry never builds its own.
    - Uniqueness is enforced by the backend's insert-if-absent. The registry
      also checks before inserting so the common collision is cheap, but only
      the insert result is authoritative.
    - Random allocation is a bounded retry (MAX_CODE_ATTEMPTS) so code-space
      pressure surfaces as ResourceExhaustedError instead of an endless loop.
"""

import logging
from datetime import datetime, timezone
from typing import Callable, List, Optional
from urllib.parse import urlparse

from ..errors import (
    ConflictError,
    InternalError,
    InvalidInputError,
    NotFoundError,
    ResourceExhaustedError,
)
from ..models import Link
from ..storage.base import BaseStorage, StorageError
from .codes import MAX_CODE_LENGTH, MIN_CODE_LENGTH, generate_candidate, validate_grammar

log = logging.getLogger(__name__)

MAX_CODE_ATTEMPTS = 10

CodeGenerator = Callable[[], str]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class LinkRegistry:
    """
    Authoritative collection of links.

    Args:
        storage (BaseStorage): Backend storage instance.
        code_generator (Optional[CodeGenerator]): Candidate producer (defaults to generate_candidate).
        max_attempts (int): Random-code attempts before ResourceExhaustedError.
        clock (Optional[Callable[[], datetime]]): Source of creation timestamps.
    """

    def __init__(
        self,
        storage: BaseStorage,
        code_generator: Optional[CodeGenerator] = None,
        max_attempts: int = MAX_CODE_ATTEMPTS,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        if max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")
        self.storage = storage
        self.code_generator = code_generator or generate_candidate
        self.max_attempts = max_attempts
        self.clock = clock or _utcnow

    # ---------------------------------------------------------------------
    # Validation Helpers
    # ---------------------------------------------------------------------
    def _validate_url(self, url: str) -> None:
        """
        Validate that a URL is absolute: http/https scheme, a host and a valid port if one is given.

        Raises:
            InvalidInputError: If the URL is malformed.
        """
        if not isinstance(url, str) or not url or any(ch.isspace() for ch in url):
            raise InvalidInputError("Invalid URL format")
        try:
            parsed = urlparse(url)
            host = parsed.hostname
            # Raises on a non-numeric or out-of-range port.
            parsed.port
        except ValueError as exc:
            raise InvalidInputError("Invalid URL format") from exc
        if parsed.scheme not in {"http", "https"} or not host:
            raise InvalidInputError("Invalid URL format")

    def _validate_code(self, code: str) -> None:
        if not validate_grammar(code):
            raise InvalidInputError(
                f"Short code must be {MIN_CODE_LENGTH}-{MAX_CODE_LENGTH} alphanumeric characters"
            )

    # ---------------------------------------------------------------------
    # Storage access
    # ---------------------------------------------------------------------
    def _lookup(self, code: str) -> Optional[Link]:
        try:
            return self.storage.get_link(code)
        except StorageError as exc:
            raise InternalError("Internal server error") from exc

    def _insert(self, code: str, url: str) -> Optional[Link]:
        try:
            return self.storage.insert_link(code, url, self.clock())
        except StorageError as exc:
            raise InternalError("Internal server error") from exc

    # ---------------------------------------------------------------------
    # Public API
    # ---------------------------------------------------------------------
    def create(self, original_url: str, custom_code: Optional[str] = None) -> Link:
        """
        Create a link for a URL, optionally under a caller-chosen code.

        Rules:
            - URL must be absolute with an http or https scheme and a host.
              Other absolute schemes such as ftp: or javascript: are rejected.
            - Custom code: must satisfy the grammar and be free; a duplicate,
              whether seen on lookup or at insert, is a ConflictError and is
              never retried.
            - No custom code: up to `max_attempts` random candidates; a
              collision on lookup or at insert costs one attempt.

        Returns:
            Link: The persisted link with its assigned id.

        Raises:
            InvalidInputError, ConflictError, ResourceExhaustedError, InternalError
        """
        self._validate_url(original_url)

        if custom_code:
            self._validate_code(custom_code)
            if self._lookup(custom_code) is not None:
                raise ConflictError("Short code already exists")
            link = self._insert(custom_code, original_url)
            if link is None:
                # Lost a race with a concurrent create for the same code.
                raise ConflictError("Short code already exists")
            log.info("Created link %s -> %s", link.short_code, original_url)
            return link

        for attempt in range(1, self.max_attempts + 1):
            candidate = self.code_generator()
            if self._lookup(candidate) is None:
                link = self._insert(candidate, original_url)
                if link is not None:
                    log.info("Created link %s -> %s", link.short_code, original_url)
                    return link
            log.debug("Short code collision on %s (attempt %d/%d)", candidate, attempt, self.max_attempts)

        log.warning("Short code allocation exhausted after %d attempts", self.max_attempts)
        raise ResourceExhaustedError(
            f"Could not allocate a unique short code after {self.max_attempts} attempts"
        )

    def get(self, code: str) -> Link:
        """Return the live link for `code` or raise NotFoundError."""
        link = self._lookup(code)
        if link is None:
            raise NotFoundError("Link not found")
        return link

    def delete(self, code: str) -> None:
        """Permanently remove a link; deleting an absent code raises NotFoundError."""
        try:
            removed = self.storage.delete_link(code)
        except StorageError as exc:
            raise InternalError("Internal server error") from exc
        if not removed:
            raise NotFoundError("Link not found")
        log.info("Deleted link %s", code)

    def list(self) -> List[Link]:
        """Fresh snapshot of all live links, newest first."""
        try:
            return self.storage.list_links()
        except StorageError as exc:
            raise InternalError("Internal server error") from exc

    def record_visit(self, code: str, when: datetime) -> Optional[int]:
        """
        Atomically add one click to `code` and stamp its last-click time.

        Returns:
            Optional[int]: The new click count, or None if the link is gone.

        Raises:
            InternalError: If the storage write fails.
        """
        try:
            return self.storage.record_click(code, when)
        except StorageError as exc:
            raise InternalError("Internal server error") from exc
