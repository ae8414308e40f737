from __future__ import annotations

import pytest

from courseight.core.config import AppEnv, Settings, load_settings


@pytest.fixture
def clean_env(monkeypatch: pytest.MonkeyPatch) -> pytest.MonkeyPatch:
    for name in (
        "APP_ENV",
        "LOG_LEVEL",
        "LOG_JSON",
        "PORT",
        "DATABASE_URL",
        "DB_POOL_SIZE",
        "ACCESS_TOKEN_TTL_MIN",
        "CORS_ORIGINS",
    ):
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


def test_defaults(clean_env: pytest.MonkeyPatch) -> None:
    settings = load_settings()
    assert (settings.app_env, settings.log_level) == ("dev", "info")
    assert settings.log_json is False
    assert settings.port == 8000
    assert settings.database_url is None
    assert settings.access_token_ttl_min == 60
    assert settings.cors_origins == ("http://localhost:5173",)


def test_env_values_are_trimmed_and_lowercased(clean_env: pytest.MonkeyPatch) -> None:
    clean_env.setenv("APP_ENV", "  PROD ")
    clean_env.setenv("LOG_LEVEL", "Warning")
    clean_env.setenv("LOG_JSON", "yes")
    clean_env.setenv("PORT", "9100")
    clean_env.setenv("DATABASE_URL", " postgresql+asyncpg://u:p@db/courseight ")
    settings = load_settings()
    assert settings.app_env == "prod"
    assert settings.log_level == "warning"
    assert settings.log_json is True
    assert settings.port == 9100
    assert settings.database_url == "postgresql+asyncpg://u:p@db/courseight"


def test_blank_database_url_means_in_memory(clean_env: pytest.MonkeyPatch) -> None:
    clean_env.setenv("DATABASE_URL", "   ")
    assert load_settings().database_url is None


@pytest.mark.parametrize(
    "name,value,match",
    [
        ("APP_ENV", "staging", "APP_ENV must be"),
        ("APP_ENV", "", "APP_ENV must be"),
        ("LOG_LEVEL", "verbose", "LOG_LEVEL must be"),
        ("PORT", "eighty", "PORT must be an integer"),
        ("DB_POOL_SIZE", "0", "DB_POOL_SIZE must be positive"),
        ("ACCESS_TOKEN_TTL_MIN", "-5", "ACCESS_TOKEN_TTL_MIN must be positive"),
    ],
)
def test_rejects_invalid_values(
    clean_env: pytest.MonkeyPatch, name: str, value: str, match: str
) -> None:
    clean_env.setenv(name, value)
    with pytest.raises(ValueError, match=match):
        load_settings()


def _settings(app_env: AppEnv) -> Settings:
    return Settings(  # type: ignore[arg-type]
        app_env=app_env, log_level="info", log_json=False, port=8000, database_url=None
    )


@pytest.mark.parametrize("app_env", ["dev", "test", "prod"])
def test_env_predicates(app_env: AppEnv) -> None:
    s = _settings(app_env)
    assert (s.is_dev, s.is_test, s.is_prod) == (
        app_env == "dev",
        app_env == "test",
        app_env == "prod",
    )


def test_settings_are_frozen() -> None:
    with pytest.raises(AttributeError):
        _settings("dev").port = 1  # type: ignore[misc]


def test_cors_origins_split_on_commas(clean_env: pytest.MonkeyPatch) -> None:
    clean_env.setenv("CORS_ORIGINS", "https://app.example.com, http://localhost:3000,")
    assert load_settings().cors_origins == (
        "https://app.example.com",
        "http://localhost:3000",
    )
