"""
In-memory store for resumable preimage computations.

A preimage request with a time budget may stop before the requested
number of generations.  Its ``PreimageCursor`` is parked here under a
random ``cursor_id`` so that the client can continue it with a second
request.  The store is an ``OrderedDict`` used as an LRU: once it holds
more than ``MAX_CURSOR_ENTRIES`` cursors the least recently used one is
dropped, and continuing it yields a 404.

Usage::

    from .preimage_cache import put_cursor, get_cursor
    cursor_id = put_cursor(cursor)
    ...
    cursor = get_cursor(cursor_id)
    if cursor is None:
        raise HTTPException(status_code=404, ...)
"""

from __future__ import annotations

import uuid
from collections import OrderedDict
from threading import RLock
from typing import Optional

from .preimages import PreimageCursor

# Cursor storage keyed by cursor id.  A reentrant lock protects the
# dictionary since FastAPI runs sync routes in a thread pool.
_cache: "OrderedDict[str, PreimageCursor]" = OrderedDict()
_lock = RLock()
MAX_CURSOR_ENTRIES: int = 32


def put_cursor(cursor: PreimageCursor, cursor_id: Optional[str] = None) -> str:
    """Store ``cursor`` and return its id.

    Args:
        cursor: The cursor to park.
        cursor_id: Existing id to overwrite; a fresh one is generated
            when omitted.

    Returns:
        The id under which the cursor was stored.
    """
    with _lock:
        key = cursor_id or uuid.uuid4().hex
        _cache[key] = cursor
        _cache.move_to_end(key)
        if len(_cache) > MAX_CURSOR_ENTRIES:
            _cache.popitem(last=False)
        return key


def get_cursor(cursor_id: str) -> Optional[PreimageCursor]:
    """Return the cursor stored under ``cursor_id`` or ``None``."""
    with _lock:
        cursor = _cache.get(cursor_id)
        if cursor is not None:
            _cache.move_to_end(cursor_id)
        return cursor


def drop_cursor(cursor_id: str) -> None:
    with _lock:
        _cache.pop(cursor_id, None)


def clear_cursors() -> None:
    with _lock:
        _cache.clear()
