"""RS256 client assertions for the client-credentials grant."""

import secrets
from datetime import UTC, datetime, timedelta

import jwt

from lti.crypto.types import AssertionClaims

CLIENT_ASSERTION_TYPE = "urn:ietf:params:oauth:client-assertion-type:jwt-bearer"


def build_client_assertion(claims: AssertionClaims, private_key_pem: str) -> str:
    """Sign a JWT asserting the tool's identity to a platform token endpoint.

    The tool is both issuer and subject (its client id), the audience is the
    platform's access token endpoint, and ``jti`` is random per assertion so
    the platform can reject replays.
    """
    now = datetime.now(UTC)
    payload = {
        "iss": claims.client_id,
        "sub": claims.client_id,
        "aud": claims.audience,
        "iat": now,
        "exp": now + timedelta(seconds=claims.ttl_seconds),
        "jti": secrets.token_urlsafe(24),
    }
    return jwt.encode(
        payload,
        private_key_pem,
        algorithm="RS256",
        headers={"kid": claims.kid},
    )
