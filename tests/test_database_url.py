"""Tests for database URL resolution."""

import pytest

from dependencies import db


@pytest.mark.parametrize(
    "url, expected",
    [
        ("postgres://u:p@h/d", "postgresql+asyncpg://u:p@h/d"),
        ("postgresql://u:p@h/d", "postgresql+asyncpg://u:p@h/d"),
        ("postgresql+psycopg2://u:p@h/d", "postgresql+asyncpg://u:p@h/d"),
        (
            "postgresql://u:p@h/d?sslmode=require",
            "postgresql+asyncpg://u:p@h/d?ssl=require",
        ),
        (
            "postgresql+asyncpg://u:p@h/d?a=1&sslmode=verify-full",
            "postgresql+asyncpg://u:p@h/d?a=1&ssl=verify-full",
        ),
        ("sqlite+aiosqlite:///app.db", "sqlite+aiosqlite:///app.db"),
    ],
)
def test_to_asyncpg_url(url: str, expected: str):
    assert db.to_asyncpg_url(url) == expected


@pytest.fixture
def no_env_file(monkeypatch):
    monkeypatch.setattr(db, "_load_env_file", lambda: None)
    for name in (
        "DATABASE_URL",
        "POSTGRES_USER",
        "POSTGRES_PASSWORD",
        "POSTGRES_DB",
        "POSTGRES_HOST",
        "POSTGRES_PORT",
    ):
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


def test_database_url_takes_precedence(no_env_file):
    no_env_file.setenv("DATABASE_URL", "postgres://u:p@db:5432/app")
    no_env_file.setenv("POSTGRES_USER", "ignored")
    assert db.resolve_database_url() == "postgresql+asyncpg://u:p@db:5432/app"


def test_database_url_from_postgres_parts(no_env_file):
    no_env_file.setenv("POSTGRES_USER", "forge")
    no_env_file.setenv("POSTGRES_PASSWORD", "pw")
    no_env_file.setenv("POSTGRES_DB", "appforge")
    no_env_file.setenv("POSTGRES_HOST", "db")
    assert (
        db.resolve_database_url() == "postgresql+asyncpg://forge:pw@db:5432/appforge"
    )


def test_database_url_falls_back_to_dev_default(no_env_file):
    assert db.resolve_database_url() == db.DEFAULT_DATABASE_URL
