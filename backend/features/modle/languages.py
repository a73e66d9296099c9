from typing import List, Optional

from backend.core.config import settings
from backend.core.errors import ValidationError
from backend.models.modle import GLOBAL_KEY

GLOBAL_ALIAS = "global"


def supported_languages() -> List[str]:
    return settings.modle_languages()


def resolve_language(raw: Optional[str], *, allow_global: bool = False) -> str:
    """Map a client-supplied language to its stored key.

    Matching is case-insensitive and returns the configured spelling.
    "global" selects the `_global` aggregate, which is read-only.
    """
    value = (raw or "").strip()
    if not value:
        return settings.MODLE_DEFAULT_LANGUAGE

    lowered = value.lower()
    if lowered == GLOBAL_ALIAS:
        if not allow_global:
            raise ValidationError("The global streak is derived and cannot be played directly")
        return GLOBAL_KEY
    if lowered == GLOBAL_KEY:
        raise ValidationError(f"'{GLOBAL_KEY}' is a reserved key")

    for language in supported_languages():
        if language.lower() == lowered:
            return language
    raise ValidationError(f"Unsupported language: {value}")
