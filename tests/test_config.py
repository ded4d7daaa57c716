"""Tests for environment-driven settings and the issuer policy built from them."""

from datetime import timedelta

import pytest
from pydantic import ValidationError

from social.graze.grantstore.app.config import Settings
from social.graze.grantstore.issuer import IssuerPolicy


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    for name in (
        "AUTHORIZATION_CODE_LIFETIME",
        "ACCESS_TOKEN_LIFETIME",
        "REFRESH_TOKEN_LIFETIME",
        "ROTATE_ON_REFRESH",
        "REFRESH_TOKEN_LEEWAY",
        "METRICS_BACKEND",
        "PG_DSN",
        "DATABASE_URL",
    ):
        monkeypatch.delenv(name, raising=False)


def test_defaults():
    settings = Settings()

    assert settings.authorization_code_lifetime == 600
    assert settings.access_token_lifetime == 3600
    assert settings.refresh_token_lifetime is None
    assert settings.rotate_on_refresh is False
    assert settings.metrics_backend == "none"
    assert IssuerPolicy.from_settings(settings) == IssuerPolicy()


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv("ACCESS_TOKEN_LIFETIME", "900")
    monkeypatch.setenv("REFRESH_TOKEN_LIFETIME", "86400")
    monkeypatch.setenv("ROTATE_ON_REFRESH", "true")
    monkeypatch.setenv("REFRESH_TOKEN_LEEWAY", "15")

    policy = IssuerPolicy.from_settings(Settings())

    assert policy.access_token_lifetime == timedelta(minutes=15)
    assert policy.refresh_token_lifetime == timedelta(days=1)
    assert policy.rotate_on_refresh is True
    assert policy.refresh_token_leeway == timedelta(seconds=15)


def test_database_url_alias(monkeypatch):
    monkeypatch.setenv("DATABASE_URL", "postgresql+asyncpg://user:pw@localhost/oauth")

    assert str(Settings().pg_dsn) == "postgresql+asyncpg://user:pw@localhost/oauth"


@pytest.mark.parametrize(
    "name,value",
    [
        ("AUTHORIZATION_CODE_LIFETIME", "0"),
        ("ACCESS_TOKEN_LIFETIME", "-5"),
        ("REFRESH_TOKEN_LIFETIME", "0"),
        ("REFRESH_TOKEN_LEEWAY", "-1"),
        ("METRICS_BACKEND", "otel"),
    ],
)
def test_invalid_values(monkeypatch, name, value):
    monkeypatch.setenv(name, value)

    with pytest.raises(ValidationError):
        Settings()
