import os
import sys

CREDENTIALS_ENV_VAR = "VENDASTA_APPLICATION_CREDENTIALS"

JWT_AUDIENCE = "vendasta.com"
JWT_ALGORITHM = "ES256"
ASSERTION_TTL_SECONDS = 60               # required by the token endpoint

_MAX_EXCHANGE_TIMEOUT = 30.0

TOKEN_EXCHANGE_TIMEOUT = float(os.environ.get("VAX_TOKEN_EXCHANGE_TIMEOUT", "30"))
if TOKEN_EXCHANGE_TIMEOUT > _MAX_EXCHANGE_TIMEOUT:
    print(
        f"WARNING: VAX_TOKEN_EXCHANGE_TIMEOUT={TOKEN_EXCHANGE_TIMEOUT} is above "
        f"{_MAX_EXCHANGE_TIMEOUT:.0f}s; clamping.",
        file=sys.stderr,
    )
    TOKEN_EXCHANGE_TIMEOUT = _MAX_EXCHANGE_TIMEOUT

CONNECT_TIMEOUT = float(os.environ.get("VAX_CONNECT_TIMEOUT", "10"))

# Worker threads for CredentialProvider.decorate when no executor is supplied
DECORATE_MAX_WORKERS = int(os.environ.get("VAX_DECORATE_WORKERS", "4"))
