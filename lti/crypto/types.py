"""Type definitions for tool keypairs, JWKS and client assertions."""

from pydantic import BaseModel


class SigningKeyData(BaseModel):
    """An RSA keypair the tool signs platform messages with."""

    kid: str
    private_key_pem: str
    public_key_pem: str


class JWKEntry(BaseModel):
    """Single JWK entry in a JWKS response."""

    kty: str = "RSA"
    use: str = "sig"
    alg: str = "RS256"
    kid: str
    n: str
    e: str


class JWKSResponse(BaseModel):
    """JSON Web Key Set document."""

    keys: list[JWKEntry]


class AssertionClaims(BaseModel):
    """Claims bundle for a client-credentials JWT assertion."""

    client_id: str
    audience: str
    kid: str
    ttl_seconds: int = 60
