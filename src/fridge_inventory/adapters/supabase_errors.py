"""Translation of PostgREST failures into store errors."""

from collections.abc import Iterator
from contextlib import contextmanager

from postgrest.exceptions import APIError

from fridge_inventory.errors import PersistenceError, TransientStoreError

UNIQUE_VIOLATION = "23505"
DEADLOCK_DETECTED = "40P01"
TRANSIENT_CODES = frozenset({UNIQUE_VIOLATION, DEADLOCK_DETECTED})


@contextmanager
def translate_api_errors(action: str) -> Iterator[None]:
    """Re-raise PostgREST errors from the block as typed store errors."""
    try:
        yield
    except APIError as exc:
        message = f"{action} failed: {exc.message or exc}"
        if exc.code in TRANSIENT_CODES:
            raise TransientStoreError(message) from exc
        raise PersistenceError(message) from exc
