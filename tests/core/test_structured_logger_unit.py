import logging
from unittest.mock import patch

from core.error_handler import StructuredLogger, set_correlation_id


def test_structured_logger_redacts_sensitive_keys(monkeypatch):
    logger = StructuredLogger("tests")

    # Provide a deterministic correlation id
    monkeypatch.setenv("ENVIRONMENT", "development")

    # allowlist: this is a test fixture value and not a real secret
    data = {
        "api_key": "placeholder_key",  # pragma: allowlist secret
        "database_url": "postgresql+asyncpg://u:p@db/app",
        "prompt": "Build a todo app",
        "max_tokens": 32000,
        "project_id": "p-1",
        "nested": {"token": "placeholder_token", "file_count": 2},
    }
    sanitized = logger._sanitize_data(data)

    assert sanitized["api_key"] == "[REDACTED]"
    assert sanitized["database_url"] == "[REDACTED]"
    assert sanitized["prompt"] == "[16 chars]"
    assert sanitized["max_tokens"] == 32000
    assert sanitized["project_id"] == "p-1"
    assert sanitized["nested"] == {"token": "[REDACTED]", "file_count": 2}


def test_structured_logger_header_like_redaction(monkeypatch):
    logger = StructuredLogger("tests")
    monkeypatch.setenv("ENVIRONMENT", "development")

    # header value uses a benign placeholder token
    header = {"name": "Authorization", "value": "Bearer placeholder_token"}
    redacted = logger._redact_header_like(header)
    # header-like should be redacted
    assert redacted["value"] == "[REDACTED]"


def test_development_messages_carry_correlation_id_and_details(caplog):
    logger = StructuredLogger("tests.dev")
    set_correlation_id("cid-42")

    with patch("core.error_handler.get_settings") as mocked:
        mocked.return_value.ENVIRONMENT = "development"
        with caplog.at_level(logging.INFO, logger="tests.dev"):
            logger.info("Generated files committed", project_id="p-1", file_count=3)

    record = caplog.records[-1]
    assert record.getMessage() == (
        "[cid-42] Generated files committed (project_id=p-1 file_count=3)"
    )
    assert record.structured_data["correlation_id"] == "cid-42"
    assert record.structured_data["file_count"] == 3


def test_production_messages_keep_plain_text(caplog):
    logger = StructuredLogger("tests.prod")
    set_correlation_id("cid-7")

    with patch("core.error_handler.get_settings") as mocked:
        mocked.return_value.ENVIRONMENT = "production"
        with caplog.at_level(logging.WARNING, logger="tests.prod"):
            logger.warning("Generation failed", error_code="syntax-error")

    record = caplog.records[-1]
    assert record.getMessage() == "Generation failed"
    assert record.structured_data["error_code"] == "syntax-error"
