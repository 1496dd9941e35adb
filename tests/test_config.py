"""Settings parsing tests."""

import pytest
from pydantic import ValidationError

from shortlink.config import Settings


def test_defaults_from_environment() -> None:
    settings = Settings()
    assert settings.DATABASE_URL == "sqlite+aiosqlite:///:memory:"
    assert settings.SHORT_ID_LENGTH == 6
    assert settings.MAX_ALLOCATION_ATTEMPTS == 10
    assert settings.DEDUP_ENABLED is True


def test_cors_origin_list_splits_commas(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("CORS_ORIGINS", "http://a.test, http://b.test,,")
    assert Settings().cors_origin_list == ["http://a.test", "http://b.test"]


def test_short_url_prefix_strips_trailing_slash(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("BASE_URL", "https://sho.rt/")
    assert Settings().short_url_prefix == "https://sho.rt"


def test_dedup_can_be_disabled(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("DEDUP_ENABLED", "false")
    assert Settings().DEDUP_ENABLED is False


@pytest.mark.parametrize("length", ["5", "9"])
def test_short_id_length_bounds(monkeypatch: pytest.MonkeyPatch, length: str) -> None:
    monkeypatch.setenv("SHORT_ID_LENGTH", length)
    with pytest.raises(ValidationError):
        Settings()


def test_allocation_attempts_must_be_positive(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("MAX_ALLOCATION_ATTEMPTS", "0")
    with pytest.raises(ValidationError):
        Settings()
