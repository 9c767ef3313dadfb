class DomainError(Exception):
    """Base class for domain-specific errors."""

    pass


class ProjectNotFoundError(DomainError):
    """Exception raised when a project is not found in the database."""

    pass


class GenerationUnavailableError(DomainError):
    """No LLM provider is configured, so no generation can be started."""

    pass
