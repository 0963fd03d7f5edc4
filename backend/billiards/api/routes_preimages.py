"""
Routes for preimage propagation.

A preimage request may carry ``timeBudgetMs``.  When the budget runs
out before all generations are computed, the response is marked
incomplete and carries a ``cursorId``; posting to
``/preimages/{cursorId}/continue`` resumes the computation where it
stopped.  Cursors live in an in-memory LRU, so a cursor that has been
evicted (or never existed) answers 404.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Optional

from fastapi import APIRouter, HTTPException

from ..services.preimage_cache import drop_cursor, get_cursor, put_cursor
from ..services.preimages import advance_preimages, start_preimages
from ..services.settings import load_preimage_settings
from .convert import segment_out, table_from_params
from .models import PreimageContinueRequest, PreimageRequest, PreimageResponse

logger = logging.getLogger(__name__)

router = APIRouter()


def _budget_seconds(ms: Optional[float]) -> Optional[float]:
    return None if ms is None else ms / 1000.0


@router.post("/preimages", response_model=PreimageResponse)
def compute_preimages(body: PreimageRequest) -> PreimageResponse:
    """Propagate the singular set of the outer billiard map backwards."""
    table = table_from_params(body.table)
    try:
        settings = load_preimage_settings()
        overrides = {}
        if body.preimagePieces is not None:
            overrides["preimage_pieces"] = body.preimagePieces
        if body.preimageLength is not None:
            overrides["preimage_length"] = body.preimageLength
        if overrides:
            settings = replace(settings, **overrides)
        cursor = start_preimages(table, body.generator, body.iterations, body.skipInterval, settings)
        segments = advance_preimages(cursor, time_budget=_budget_seconds(body.timeBudgetMs))
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    except Exception as exc:
        logger.exception("preimages endpoint error: %s", exc)
        raise HTTPException(status_code=500, detail=f"Failed to compute preimages: {exc}")
    cursor_id = None if cursor.complete else put_cursor(cursor)
    return PreimageResponse(
        segments=[segment_out(s, body.model, body.samples) for s in segments],
        generation=cursor.generation,
        complete=cursor.complete,
        cursorId=cursor_id,
    )


@router.post("/preimages/{cursor_id}/continue", response_model=PreimageResponse)
def continue_preimages(cursor_id: str, body: PreimageContinueRequest) -> PreimageResponse:
    """Resume an incomplete preimage computation."""
    cursor = get_cursor(cursor_id)
    if cursor is None:
        raise HTTPException(status_code=404, detail=f"Unknown preimage cursor '{cursor_id}'")
    # Concurrent continues of one cursor take turns.
    with cursor.lock:
        try:
            segments = advance_preimages(cursor, body.generations, _budget_seconds(body.timeBudgetMs))
        except Exception as exc:
            logger.exception("preimage continuation error for cursor_id=%s: %s", cursor_id, exc)
            raise HTTPException(status_code=500, detail=f"Failed to continue preimages: {exc}")
        generation, complete = cursor.generation, cursor.complete
        if complete:
            drop_cursor(cursor_id)
    return PreimageResponse(
        segments=[segment_out(s, body.model, body.samples) for s in segments],
        generation=generation,
        complete=complete,
        cursorId=None if complete else cursor_id,
    )
