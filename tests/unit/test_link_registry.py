"""
Unit tests for LinkRegistry.

Covers:
    - URL validation (valid/invalid)
    - Custom code grammar and conflicts
    - Random allocation, collision retry and exhaustion
    - Uniqueness enforced at insert time (lost races)
    - get / delete / list semantics
    - Visit accounting via record_visit
    - Storage failures surfacing as InternalError
"""

import itertools
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timedelta, timezone
from unittest.mock import patch

import pytest

from link_platform.errors import (
    ConflictError,
    InternalError,
    InvalidInputError,
    NotFoundError,
    ResourceExhaustedError,
)
from link_platform.manager.codes import validate_grammar
from link_platform.manager.link_registry import MAX_CODE_ATTEMPTS, LinkRegistry
from link_platform.storage.base import StorageError
from link_platform.storage.storage import Storage


def _fixed_codes(*codes):
    """Code generator replaying `codes` in order."""
    it = iter(codes)
    return lambda: next(it)


# -------------------------
# URL validation
# -------------------------

@pytest.mark.parametrize(
    "url,is_valid",
    [
        ("https://example.com", True),
        ("http://example.com/path?q=1", True),
        ("https://example.com:8443/a#frag", True),
        ("not-a-url", False),
        ("ftp://bad.example.com", False),
        ("https:///missing-host", False),
        ("https://", False),
        ("https://exa mple.com", False),
        ("", False),
        ("https://[::1", False),
        ("https://example.com:abc", False),
        ("https://example.com:99999", False),
        ("http://example.com:-1/x", False),
    ],
)
def test_validate_url_format(registry, url, is_valid):
    if is_valid:
        link = registry.create(url)
        assert link.original_url == url
    else:
        with pytest.raises(InvalidInputError, match="Invalid URL format"):
            registry.create(url)


def test_invalid_url_is_also_value_error(registry):
    with pytest.raises(ValueError):
        registry.create("not-a-url")


# -------------------------
# Random allocation
# -------------------------

def test_create_without_custom_code(registry):
    link = registry.create("https://example.com")
    assert validate_grammar(link.short_code)
    assert len(link.short_code) == 6
    assert link.clicks == 0
    assert link.last_clicked_at is None
    assert link.created_at.tzinfo is not None
    assert registry.get(link.short_code) == link


def test_random_codes_are_unique(registry):
    codes = {registry.create(f"https://example.com/{i}").short_code for i in range(300)}
    assert len(codes) == 300


def test_collision_retries_until_free_code(storage):
    registry = LinkRegistry(storage, code_generator=_fixed_codes("taken1", "taken1", "free22"))
    registry.create("https://one.example", "taken1")
    link = registry.create("https://two.example")
    assert link.short_code == "free22"


def test_allocation_exhausted_after_bound(storage):
    calls = []

    def always_taken():
        calls.append(1)
        return "taken1"

    storage.insert_link("taken1", "https://one.example", datetime.now(timezone.utc))
    registry = LinkRegistry(storage, code_generator=always_taken)
    with pytest.raises(ResourceExhaustedError):
        registry.create("https://two.example")
    assert len(calls) == MAX_CODE_ATTEMPTS == 10


def test_allocation_bound_is_configurable(storage):
    storage.insert_link("taken1", "https://one.example", datetime.now(timezone.utc))
    counter = itertools.count()

    def gen():
        next(counter)
        return "taken1"

    registry = LinkRegistry(storage, code_generator=gen, max_attempts=3)
    with pytest.raises(ResourceExhaustedError):
        registry.create("https://two.example")
    assert next(counter) == 3


def test_max_attempts_must_be_positive(storage):
    with pytest.raises(ValueError):
        LinkRegistry(storage, max_attempts=0)


def test_insert_race_on_random_code_consumes_an_attempt(storage):
    """Lookup says free but insert loses the race: retry with the next candidate."""
    registry = LinkRegistry(storage, code_generator=_fixed_codes("raced1", "won222"))
    real_insert = storage.insert_link

    def racing_insert(code, url, created_at):
        if code == "raced1":
            return None
        return real_insert(code, url, created_at)

    with patch.object(storage, "insert_link", side_effect=racing_insert):
        link = registry.create("https://example.com")
    assert link.short_code == "won222"


# -------------------------
# Custom codes
# -------------------------

def test_create_with_custom_code(registry):
    link = registry.create("https://example.com", "ABC123")
    assert link.short_code == "ABC123"
    assert registry.get("ABC123").original_url == "https://example.com"


def test_duplicate_custom_code_conflicts(registry):
    registry.create("https://example.com", "ABC123")
    with pytest.raises(ConflictError, match="already exists"):
        registry.create("https://example.com", "ABC123")


def test_custom_code_that_matches_random_code_conflicts(registry):
    link = registry.create("https://example.com")
    with pytest.raises(ConflictError):
        registry.create("https://other.example", link.short_code)


@pytest.mark.parametrize("code", ["ab", "abcdefghi", "bad-co", "has sp", "äbc123"])
def test_custom_code_grammar(registry, code):
    with pytest.raises(InvalidInputError, match="6-8 alphanumeric"):
        registry.create("https://example.com", code)


def test_empty_custom_code_means_generate(registry):
    link = registry.create("https://example.com", "")
    assert len(link.short_code) == 6


def test_url_checked_before_code(registry):
    with pytest.raises(InvalidInputError, match="Invalid URL format"):
        registry.create("not-a-url", "ab")


def test_custom_code_insert_race_is_conflict_not_retry(storage):
    registry = LinkRegistry(storage)
    with patch.object(storage, "insert_link", return_value=None) as insert:
        with pytest.raises(ConflictError):
            registry.create("https://example.com", "ABC123")
    assert insert.call_count == 1


def test_concurrent_creates_same_custom_code_one_winner():
    registry = LinkRegistry(Storage())

    def attempt(i):
        try:
            registry.create(f"https://example.com/{i}", "SAME01")
            return "ok"
        except ConflictError:
            return "conflict"

    with ThreadPoolExecutor(max_workers=16) as ex:
        outcomes = list(ex.map(attempt, range(64)))

    assert outcomes.count("ok") == 1
    assert outcomes.count("conflict") == 63
    assert len(registry.list()) == 1


# -------------------------
# get / delete / list
# -------------------------

def test_get_unknown_is_not_found(registry):
    with pytest.raises(NotFoundError):
        registry.get("nope12")


def test_delete_then_get_not_found(registry):
    registry.create("https://example.com", "ABC123")
    registry.delete("ABC123")
    with pytest.raises(NotFoundError):
        registry.get("ABC123")


def test_delete_unknown_and_repeat_delete(registry):
    with pytest.raises(NotFoundError):
        registry.delete("nope12")
    registry.create("https://example.com", "ABC123")
    registry.delete("ABC123")
    with pytest.raises(NotFoundError):
        registry.delete("ABC123")


def test_list_newest_first(storage):
    ticks = itertools.count()
    base = datetime(2025, 1, 1, tzinfo=timezone.utc)
    registry = LinkRegistry(storage, clock=lambda: base + timedelta(seconds=next(ticks)))
    registry.create("https://a.example", "AAAAAA")
    registry.create("https://b.example", "BBBBBB")
    listed = registry.list()
    assert listed[0].short_code == "BBBBBB"
    assert [l.short_code for l in listed] == ["BBBBBB", "AAAAAA"]


def test_list_is_a_fresh_snapshot(registry):
    first = registry.list()
    registry.create("https://example.com", "ABC123")
    assert first == []
    assert len(registry.list()) == 1


# -------------------------
# Storage failures
# -------------------------

@pytest.mark.parametrize("method", ["get_link", "insert_link"])
def test_create_storage_failure_is_internal(registry, method):
    with patch.object(registry.storage, method, side_effect=StorageError("db down")):
        with pytest.raises(InternalError) as ei:
            registry.create("https://example.com", "ABC123")
    assert "db down" not in str(ei.value)
    assert isinstance(ei.value.__cause__, StorageError)


def test_get_delete_list_storage_failure_is_internal(registry):
    with patch.object(registry.storage, "get_link", side_effect=StorageError("x")):
        with pytest.raises(InternalError):
            registry.get("ABC123")
    with patch.object(registry.storage, "delete_link", side_effect=StorageError("x")):
        with pytest.raises(InternalError):
            registry.delete("ABC123")
    with patch.object(registry.storage, "list_links", side_effect=StorageError("x")):
        with pytest.raises(InternalError):
            registry.list()


def test_bad_port_is_never_stored(registry):
    for url in ("https://example.com:abc", "https://example.com:99999", "http://example.com:-1/x"):
        with pytest.raises(InvalidInputError):
            registry.create(url)
    assert registry.list() == []


# -------------------------
# Visit accounting
# -------------------------

def test_record_visit_increments_and_stamps(registry):
    registry.create("https://example.com", "ABC123")
    when = datetime(2024, 5, 1, tzinfo=timezone.utc)
    assert registry.record_visit("ABC123", when) == 1
    assert registry.record_visit("ABC123", when + timedelta(seconds=1)) == 2
    link = registry.get("ABC123")
    assert link.clicks == 2
    assert link.last_clicked_at == when + timedelta(seconds=1)


def test_record_visit_missing_code(registry):
    assert registry.record_visit("NOPE12", datetime.now(timezone.utc)) is None


def test_record_visit_storage_failure_is_internal(registry):
    with patch.object(registry.storage, "record_click", side_effect=StorageError("write failed")):
        with pytest.raises(InternalError) as ei:
            registry.record_visit("ABC123", datetime.now(timezone.utc))
    assert isinstance(ei.value.__cause__, StorageError)
