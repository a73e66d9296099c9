import pytest

from backend.core.config import settings
from backend.core.errors import ValidationError
from backend.features.modle.languages import resolve_language
from backend.models.modle import GLOBAL_KEY


@pytest.mark.parametrize("raw", [None, "", "   "])
def test_missing_language_defaults_to_english(raw):
    assert resolve_language(raw) == "English"


@pytest.mark.parametrize("raw,expected", [("english", "English"), ("TAMIL", "Tamil"), (" Malayalam ", "Malayalam")])
def test_language_matching_is_case_insensitive(raw, expected):
    assert resolve_language(raw) == expected


def test_global_alias_only_for_reads():
    assert resolve_language("Global", allow_global=True) == GLOBAL_KEY
    with pytest.raises(ValidationError):
        resolve_language("global")


@pytest.mark.parametrize("raw", ["_global", "Klingon"])
def test_reserved_and_unknown_keys_rejected(raw):
    with pytest.raises(ValidationError):
        resolve_language(raw, allow_global=True)


def test_languages_follow_settings(monkeypatch):
    monkeypatch.setattr(settings, "MODLE_LANGUAGES", "English,Bengali")
    assert resolve_language("bengali") == "Bengali"
    with pytest.raises(ValidationError):
        resolve_language("Tamil")
