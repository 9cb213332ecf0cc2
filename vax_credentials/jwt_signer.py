import jwt
from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ec

from vax_credentials.config import ASSERTION_TTL_SECONDS, JWT_ALGORITHM, JWT_AUDIENCE
from vax_credentials.errors import ExchangeError, SigningError
from vax_credentials.models import ServiceAccountKey


def load_private_key(pem: str) -> ec.EllipticCurvePrivateKey:
    """Parse a PEM private key, accepting only P-256 EC keys."""
    try:
        key = serialization.load_pem_private_key(pem.encode("utf-8"), password=None)
    except (ValueError, TypeError, UnsupportedAlgorithm) as e:
        raise SigningError(f"could not parse private key: {e}") from e

    if not isinstance(key, ec.EllipticCurvePrivateKey):
        raise SigningError(f"private key is not an EC key ({type(key).__name__})")
    if not isinstance(key.curve, ec.SECP256R1):
        raise SigningError(f"unsupported curve {key.curve.name}, expected secp256r1")
    return key


def sign_assertion(
    key: ServiceAccountKey,
    now: float,
    private_key: ec.EllipticCurvePrivateKey | None = None,
) -> str:
    """Build the short-lived self assertion posted to the token endpoint."""
    if private_key is None:
        private_key = load_private_key(key.private_key)

    payload = {
        "aud": JWT_AUDIENCE,
        "sub": key.subject_email,
        "exp": int(now) + ASSERTION_TTL_SECONDS,
        "kid": key.key_id,
    }
    try:
        return jwt.encode(payload, private_key, algorithm=JWT_ALGORITHM)
    except (jwt.PyJWTError, ValueError, TypeError) as e:
        raise SigningError(f"could not sign JWT: {e}") from e


def decode_expiry(token: str) -> float:
    # The bearer was just issued by the trusted endpoint; read it, don't verify it.
    try:
        claims = jwt.decode(token, options={"verify_signature": False})
    except jwt.PyJWTError as e:
        raise ExchangeError(f"could not decode issued token: {e}") from e

    exp = claims.get("exp")
    if isinstance(exp, bool) or not isinstance(exp, (int, float)):
        raise ExchangeError("issued token carries no usable exp claim")
    return float(exp)
