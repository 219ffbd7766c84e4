"""Domain-specific exceptions — framework-independent."""


class EntityNotFoundError(Exception):
    """Raised when a requested entity does not exist (or is not visible to the caller)."""

    def __init__(self, entity_type: str, entity_id: int | str):
        self.entity_type = entity_type
        self.entity_id = entity_id
        super().__init__(f"{entity_type} with id '{entity_id}' not found")


class ValidationError(Exception):
    """Raised when chunking, search or ingestion input is malformed.

    Always raised before any network call is made.
    """


class ProviderError(Exception):
    """Raised when an embedding or synthesis provider returns an error.

    Provider-agnostic — works for OpenRouter, OpenAI, etc.
    ``code`` carries the provider-specific error code when one is returned
    (e.g. ``rate_limit_exceeded``).
    """

    def __init__(
        self,
        provider: str,
        status_code: int,
        message: str,
        code: str | None = None,
    ):
        self.provider = provider
        self.status_code = status_code
        self.message = message
        self.code = code
        super().__init__(f"[{provider}] {status_code}: {message}")


class TransientProviderError(ProviderError):
    """Rate-limited or otherwise retryable provider failure."""


class TerminalProviderError(ProviderError):
    """Non-retryable provider failure — propagated straight to the caller."""


class IndexQueryError(Exception):
    """Raised when the similarity index cannot be queried."""
