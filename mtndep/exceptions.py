"""Exceptions raised by the DEP client."""


class DEPClientError(Exception):
    """Base class for errors raised by the DEP client itself.

    Transport failures are not wrapped: they surface as the ``httpx``
    exceptions raised while sending.
    """


class InvalidMethodError(DEPClientError, ValueError):
    """Raised when a request uses an HTTP method the DEP API does not accept."""

    def __init__(self, method: str, allowed: tuple[str, ...]):
        self.method = method
        self.allowed = allowed
        super().__init__(
            f"Invalid http method {method!r}, expected one of: {', '.join(allowed)}"
        )


class NoRequestBuiltError(DEPClientError):
    """Raised when a request is read or sent before one has been created."""

    def __init__(self, message: str | None = None):
        super().__init__(
            message
            or "No authorized request found to send. You must create your request first."
        )


class ConfigurationError(DEPClientError, ValueError):
    """Raised when a client configuration is missing required values."""
