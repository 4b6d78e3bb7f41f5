"""Exceptions raised inside source adapters."""


class SourceError(Exception):
    """Base class for failures talking to an external data source."""

    def __init__(self, source: str, message: str) -> None:
        super().__init__(f"{source}: {message}")
        self.source = source


class MissingCredentialsError(SourceError):
    """Raised when an API key required by a source is not configured."""

    def __init__(self, source: str, env_var: str) -> None:
        super().__init__(source, f"{env_var} is not set")
        self.env_var = env_var


class UpstreamAPIError(SourceError):
    """Raised when a source answers with a non-2xx status or cannot be reached."""

    def __init__(self, source: str, message: str, status_code: int | None = None) -> None:
        super().__init__(source, message)
        self.status_code = status_code


class MalformedResponseError(SourceError):
    """Raised when a response body cannot be decoded."""
