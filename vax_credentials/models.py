from pathlib import Path
from typing import Any, Mapping

from pydantic import AnyHttpUrl, BaseModel, ConfigDict, Field, ValidationError

from vax_credentials.errors import ConfigurationError


class ServiceAccountKey(BaseModel):
    """A parsed service account, as issued in the JSON credentials file.

    Accepts either the JSON field names (``private_key_id``, ``client_email``...)
    or the attribute names.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    key_id: str = Field(alias="private_key_id", min_length=1)
    private_key: str = Field(alias="private_key", min_length=1, repr=False)
    subject_email: str = Field(alias="client_email", min_length=1)
    token_endpoint: AnyHttpUrl = Field(alias="token_uri")

    @classmethod
    def from_info(cls, info: Mapping[str, Any]) -> "ServiceAccountKey":
        try:
            return cls.model_validate(dict(info))
        except ValidationError as e:
            raise ConfigurationError(f"invalid service account: {_describe(e)}") from e

    @classmethod
    def from_json(cls, data: bytes | str) -> "ServiceAccountKey":
        try:
            return cls.model_validate_json(data)
        except ValidationError as e:
            raise ConfigurationError(f"invalid service account: {_describe(e)}") from e

    @classmethod
    def from_file(cls, path: str | Path) -> "ServiceAccountKey":
        try:
            data = Path(path).read_bytes()
        except OSError as e:
            raise ConfigurationError(f"cannot read service account file {path}: {e}") from e
        return cls.from_json(data)


class TokenResponse(BaseModel):
    token: str


def _describe(error: ValidationError) -> str:
    # Field locations only; input values may contain the private key.
    parts = []
    for err in error.errors():
        loc = ".".join(str(p) for p in err["loc"]) or "document"
        parts.append(f"{loc}: {err['msg']}")
    return "; ".join(parts)
