from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, ConfigDict, Field

from backend.core.auth import get_current_user_id
from backend.features.modle.service import ModleService, modle_service

router = APIRouter(prefix="/api/users/modle")


class ResultSubmission(BaseModel):
    # Any client-supplied date is ignored; "today" is always server UTC
    model_config = ConfigDict(extra="ignore")

    language: Optional[str] = None
    correct: bool = False
    guesses: List[str] = Field(default_factory=list)
    guess: Optional[str] = Field(None, max_length=200)


def get_modle_service() -> ModleService:
    return modle_service


@router.get("/status")
def get_modle_status(
    language: Optional[str] = Query(None, description="Language name, or 'global' for the cross-language streak"),
    user_id: str = Depends(get_current_user_id),
    service: ModleService = Depends(get_modle_service),
):
    """Streak state for one language (or global) plus canPlay, playedToday and completedToday."""
    return service.describe_status(user_id, language).to_dict()


@router.post("/result")
def post_modle_result(
    body: ResultSubmission,
    user_id: str = Depends(get_current_user_id),
    service: ModleService = Depends(get_modle_service),
):
    result = service.submit_result(
        user_id,
        language=body.language,
        correct=body.correct,
        guesses=body.guesses,
        guess=body.guess,
    )
    return result.to_dict()
