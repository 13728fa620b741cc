__all__ = [
    "ProviderError",
    "ProviderTransportError",
    "ProviderNotFoundError",
    "ProviderPayloadError",
]


class ProviderError(Exception):
    """Base class for all failures of a single metadata provider."""

    def __init__(
        self,
        provider: str,
        message: str = "The metadata provider could not answer the request.",
    ):
        super().__init__(f"[{provider}] {message}")
        self.provider = provider
        self.message = message


class ProviderTransportError(ProviderError):
    """Raised on connection errors, timeouts and non-success status codes."""

    def __init__(self, provider: str, message: str = "Request to provider failed."):
        super().__init__(provider, message)


class ProviderNotFoundError(ProviderError):
    """Raised when the provider reports that it has no matching movie."""

    def __init__(self, provider: str, query: str | None = None):
        if query:
            message = f"No movie found for '{query}'."
        else:
            message = "No movie found."
        super().__init__(provider, message)
        self.query = query


class ProviderPayloadError(ProviderError):
    """Raised when a provider response cannot be parsed into a movie."""

    def __init__(self, provider: str, message: str = "Malformed provider payload."):
        super().__init__(provider, message)
