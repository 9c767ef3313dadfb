"""What the generation API may write to logs and error responses."""

# Substrings of keys whose values are replaced by "[REDACTED]". The only
# credentials this service handles are LLM provider keys and the database DSN.
SENSITIVE_KEYS: frozenset[str] = frozenset(
    {
        "api_key",
        "api-key",
        "authorization",
        "password",
        "secret",
        "token",
        "database_url",
        "dsn",
        "cookie",
    }
)

# Keys holding user documents, prompts or generated source. Their values are
# logged as a character count only.
PAYLOAD_KEYS: frozenset[str] = frozenset(
    {"prompt", "content", "document", "delta", "chunk"}
)

PRODUCTION_ERROR_FIELDS: frozenset[str] = frozenset({"correlation_id", "type"})

DEVELOPMENT_ERROR_FIELDS: frozenset[str] = PRODUCTION_ERROR_FIELDS | {
    "details",
    "traceback",
    "exception_type",
    "validation_errors",
}


def get_allowed_error_fields(environment: str) -> frozenset[str]:
    """Error body fields that may be exposed in `environment`."""
    if environment == "production":
        return PRODUCTION_ERROR_FIELDS
    return DEVELOPMENT_ERROR_FIELDS


def is_sensitive_key(key: str) -> bool:
    key_lower = key.lower()
    # "max_tokens" is a generation setting, not a credential
    if key_lower.endswith("_tokens"):
        return False
    return any(sensitive in key_lower for sensitive in SENSITIVE_KEYS)


def is_payload_key(key: str) -> bool:
    key_lower = key.lower()
    return any(payload in key_lower for payload in PAYLOAD_KEYS)
