"""Credential sources: zero-argument callables returning service account JSON bytes.

Usage:
    from vax_credentials.sources import environment_source
    provider = CredentialProvider.from_source(environment_source())
"""

import os
from pathlib import Path
from typing import BinaryIO, Callable, Mapping

from vax_credentials.config import CREDENTIALS_ENV_VAR
from vax_credentials.errors import ConfigurationError

CredentialSource = Callable[[], bytes]


def file_source(path: str | Path) -> CredentialSource:
    def read() -> bytes:
        try:
            return Path(path).read_bytes()
        except FileNotFoundError as e:
            raise ConfigurationError(f"service account file not found: {path}") from e
        except OSError as e:
            raise ConfigurationError(f"cannot read service account file {path}: {e}") from e

    return read


def environment_source(
    environ: Mapping[str, str] | None = None,
    var: str = CREDENTIALS_ENV_VAR,
) -> CredentialSource:
    """Read the file named by an environment variable.

    The variable is looked up when the source is called, not when it is built.
    """

    def read() -> bytes:
        env = os.environ if environ is None else environ
        path = env.get(var)
        if not path:
            raise ConfigurationError(f"{var} env variable is not set")
        try:
            return file_source(path)()
        except ConfigurationError as e:
            raise ConfigurationError(f"{var} env variable file not found: {path}") from e

    return read


def bytes_source(data: bytes | str | BinaryIO) -> CredentialSource:
    """Wrap in-memory JSON or a binary stream. A stream is read once, lazily."""
    cached: list[bytes] = []

    def read() -> bytes:
        if not cached:
            if isinstance(data, str):
                cached.append(data.encode("utf-8"))
            elif isinstance(data, (bytes, bytearray)):
                cached.append(bytes(data))
            else:
                cached.append(data.read())
        return cached[0]

    return read
