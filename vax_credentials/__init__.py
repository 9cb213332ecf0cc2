from vax_credentials.errors import (
    ConfigurationError,
    CredentialsError,
    ExchangeError,
    SigningError,
    VAXError,
)
from vax_credentials.httpx_auth import VAXAuth
from vax_credentials.models import ServiceAccountKey
from vax_credentials.provider import CredentialProvider
from vax_credentials.token_client import TokenExchanger

__all__ = [
    "ConfigurationError",
    "CredentialProvider",
    "CredentialsError",
    "ExchangeError",
    "ServiceAccountKey",
    "SigningError",
    "TokenExchanger",
    "VAXAuth",
    "VAXError",
]
