"""Exceptions raised while loading keys and obtaining bearer tokens."""


class VAXError(Exception):
    """Base class for every error raised by vax_credentials."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class ConfigurationError(VAXError):
    """The service account could not be located, read or parsed."""


class SigningError(VAXError):
    """The private key is unusable or the assertion could not be signed."""


class ExchangeError(VAXError):
    """The token endpoint could not be reached or returned something unusable."""

    def __init__(self, message: str, status_code: int | None = None, body: str | None = None):
        self.status_code = status_code
        self.body = body
        super().__init__(message)


class CredentialsError(VAXError):
    """A bearer token could not be produced for the current request."""
