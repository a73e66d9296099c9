from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class Puzzle(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: Optional[int] = None
    language: str
    position: int = Field(..., ge=0)
    answer: str
    hints: List[str] = Field(default_factory=list)
    meta: Dict[str, Any] = Field(default_factory=dict)
    created_at: Optional[datetime] = None

    @field_validator("answer")
    @classmethod
    def _upper_answer(cls, value: str) -> str:
        cleaned = value.strip().upper()
        if not cleaned:
            raise ValueError("answer must not be empty")
        return cleaned

    @field_validator("hints")
    @classmethod
    def _strip_hints(cls, value: List[str]) -> List[str]:
        return [hint.strip() for hint in value if hint and hint.strip()]

    def revised(
        self,
        answer: Optional[str] = None,
        hints: Optional[List[str]] = None,
        meta: Optional[Dict[str, Any]] = None,
    ) -> "Puzzle":
        """Validated copy with new fields; `meta` is merged into the existing one."""
        data = self.model_dump()
        if answer:
            data["answer"] = answer
        if hints is not None:
            data["hints"] = hints
        if meta:
            data["meta"] = {**self.meta, **meta}
        return Puzzle(**data)
