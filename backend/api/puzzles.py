from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field, field_validator

from backend.core.auth import require_admin
from backend.core.errors import NotFoundError, ValidationError
from backend.core.logging import log_event
from backend.features.modle import calendar
from backend.features.modle.languages import resolve_language
from backend.features.puzzles.catalog import get_puzzle_catalog
from backend.models.puzzle import Puzzle

router = APIRouter(prefix="/api/puzzles")


class PuzzleCreate(BaseModel):
    language: str
    answer: str = Field(..., max_length=255)
    hints: List[str] = Field(..., min_length=1)
    meta: Dict[str, Any] = Field(default_factory=dict)
    # Next free position for the language when omitted
    position: Optional[int] = Field(None, ge=0)

    @field_validator("answer")
    @classmethod
    def _answer_not_blank(cls, value):
        if value is not None and not value.strip():
            raise ValueError("answer must not be blank")
        return value


class PuzzleUpdate(BaseModel):
    answer: Optional[str] = Field(None, max_length=255)
    hints: Optional[List[str]] = None
    meta: Optional[Dict[str, Any]] = None

    @field_validator("answer")
    @classmethod
    def _answer_not_blank(cls, value):
        if value is not None and not value.strip():
            raise ValueError("answer must not be blank")
        return value


def _admin_view(puzzle: Puzzle) -> Dict[str, Any]:
    return {
        "id": puzzle.id,
        "language": puzzle.language,
        "answer": puzzle.answer,
        "hints": list(puzzle.hints),
        "position": puzzle.position,
        "meta": dict(puzzle.meta),
        "createdAt": puzzle.created_at,
    }


@router.get("/daily")
def get_daily_puzzle(
    language: Optional[str] = Query(None),
    date: Optional[str] = Query(None, description="YYYY-MM-DD (UTC); defaults to today"),
    catalog=Depends(get_puzzle_catalog),
):
    """Return the day's puzzle hints for a language. The answer is never included."""
    key = resolve_language(language)
    day = date or calendar.today()
    if not calendar.is_day_key(day):
        raise ValidationError("Invalid date format. Use YYYY-MM-DD")

    puzzle = catalog.for_date(day, key)
    if puzzle is None:
        raise NotFoundError(f"No puzzles found for language: {key}")

    return {
        "id": puzzle.id,
        "language": puzzle.language,
        "date": day,
        "hints": list(puzzle.hints),
        "meta": dict(puzzle.meta),
    }


@router.get("/stats")
def get_puzzle_stats(catalog=Depends(get_puzzle_catalog)):
    """Puzzle counts per language; public, reveals no answers."""
    return catalog.stats()


# Admin ---------------------------------------------------------------------
@router.get("")
def list_puzzles(
    language: Optional[str] = Query(None),
    admin_id: str = Depends(require_admin),
    catalog=Depends(get_puzzle_catalog),
):
    key = resolve_language(language)
    found = catalog.list(key)
    return {"language": key, "count": len(found), "puzzles": [_admin_view(p) for p in found]}


@router.post("", status_code=201)
def create_puzzle(
    body: PuzzleCreate,
    admin_id: str = Depends(require_admin),
    catalog=Depends(get_puzzle_catalog),
):
    key = resolve_language(body.language)
    position = body.position if body.position is not None else catalog.next_position(key)
    stored = catalog.add(
        Puzzle(language=key, position=position, answer=body.answer, hints=body.hints, meta=body.meta)
    )
    log_event("info", "puzzle.created", user_id=admin_id, language=key, event_type="puzzle.created", extra={"puzzle_id": stored.id})
    return _admin_view(stored)


@router.put("/{puzzle_id}")
def update_puzzle(
    puzzle_id: int,
    body: PuzzleUpdate,
    admin_id: str = Depends(require_admin),
    catalog=Depends(get_puzzle_catalog),
):
    updated = catalog.update(puzzle_id, answer=body.answer, hints=body.hints, meta=body.meta)
    log_event("info", "puzzle.updated", user_id=admin_id, language=updated.language, event_type="puzzle.updated", extra={"puzzle_id": puzzle_id})
    return _admin_view(updated)


@router.delete("/{puzzle_id}")
def delete_puzzle(
    puzzle_id: int,
    admin_id: str = Depends(require_admin),
    catalog=Depends(get_puzzle_catalog),
):
    catalog.delete(puzzle_id)
    log_event("info", "puzzle.deleted", user_id=admin_id, event_type="puzzle.deleted", extra={"puzzle_id": puzzle_id})
    return {"msg": "Puzzle deleted successfully"}
