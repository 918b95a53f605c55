"""Validation of how a platform's inbound messages are authenticated."""

from enum import StrEnum

from pydantic import BaseModel, ConfigDict


class AuthMethod(StrEnum):
    """Ways a platform publishes the key its messages are signed with."""

    RSA_KEY = "RSA_KEY"
    JWK_KEY = "JWK_KEY"
    JWK_SET = "JWK_SET"


class InvalidAuthMethodError(ValueError):
    """The method tag is not one of the supported AuthMethod values."""


class MissingAuthKeyError(ValueError):
    """A method tag was supplied without its key or keyset URL."""


class AuthConfig(BaseModel):
    """A method tag paired with its key material (PEM, JWK or keyset URL)."""

    model_config = ConfigDict(frozen=True)

    method: AuthMethod
    key: str


def validate_auth_config(method: str | None, key: str | None) -> AuthConfig:
    """Check the method is supported and carries a key, then pair them."""
    valid = [m.value for m in AuthMethod]
    if method not in valid:
        raise InvalidAuthMethodError(
            f"Invalid message validation method {method!r}. "
            f"Valid methods are {', '.join(valid)}"
        )
    if not key:
        raise MissingAuthKeyError("Missing second argument: key or keyset_url")
    return AuthConfig(method=AuthMethod(method), key=key)
