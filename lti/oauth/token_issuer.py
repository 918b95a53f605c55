"""OAuth2 client-credentials exchange against a platform token endpoint."""

import logging
from typing import TYPE_CHECKING

import httpx
import jwt

from lti.core.settings import ToolSettings
from lti.crypto.assertion import CLIENT_ASSERTION_TYPE, build_client_assertion
from lti.crypto.types import AssertionClaims
from lti.platform.types import IssuedToken

if TYPE_CHECKING:
    from lti.platform.identity import Platform

logger = logging.getLogger(__name__)


class ClientCredentialsIssuer:
    """Exchanges a signed client assertion for a platform access token.

    Implements the TokenIssuer protocol. Every failure (missing key, transport
    error, error status, malformed body) is logged and reported as None; the
    caller decides what to do without a token.
    """

    def __init__(
        self,
        settings: ToolSettings,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._settings = settings
        self._client = client

    def build_form(self, platform: "Platform", private_key_pem: str) -> dict[str, str]:
        """Form body for the token request."""
        claims = AssertionClaims(
            client_id=platform.client_id,
            audience=platform.accesstoken_endpoint,
            kid=platform.kid,
            ttl_seconds=self._settings.assertion_ttl,
        )
        return {
            "grant_type": "client_credentials",
            "client_assertion_type": CLIENT_ASSERTION_TYPE,
            "client_assertion": build_client_assertion(claims, private_key_pem),
            "scope": " ".join(self._settings.get_scope_list()),
        }

    async def issue(self, platform: "Platform") -> IssuedToken | None:
        private_key = await platform.private_key()
        if not private_key:
            logger.warning("No private key available for %s", platform.url)
            return None

        try:
            form = self.build_form(platform, private_key)
        except (ValueError, jwt.PyJWTError) as exc:
            logger.warning("Could not sign assertion for %s: %s", platform.url, exc)
            return None

        try:
            response = await self._post(platform.accesstoken_endpoint, form)
        except httpx.HTTPError as exc:
            logger.warning("Token request to %s failed: %s", platform.url, exc)
            return None

        if response.is_error:
            logger.warning(
                "Token endpoint for %s returned %s: %s",
                platform.url,
                response.status_code,
                response.text[:300],
            )
            return None

        try:
            return IssuedToken.model_validate(response.json())
        except ValueError as exc:
            logger.warning("Malformed token response from %s: %s", platform.url, exc)
            return None

    async def _post(self, url: str, data: dict[str, str]) -> httpx.Response:
        if self._client is not None:
            return await self._client.post(url, data=data)
        async with httpx.AsyncClient(timeout=self._settings.http_timeout) as client:
            return await client.post(url, data=data)
