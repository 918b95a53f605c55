"""Tests for the client-credentials token issuer."""

from urllib.parse import parse_qs

import httpx
import jwt
import pytest

from lti.core.settings import ToolSettings
from lti.crypto.keys import generate_platform_keypair
from lti.crypto.types import SigningKeyData
from lti.db.store import Collection
from lti.oauth.token_issuer import ClientCredentialsIssuer
from lti.platform.identity import Platform
from lti.platform.token_cache import AccessTokenLifecycle
from tests.fakes import MemoryStore, StubIssuer

URL = "https://lms.example.com"
TOKEN_URL = f"{URL}/token"


@pytest.fixture
def keypair() -> SigningKeyData:
    return generate_platform_keypair()


@pytest.fixture
def platform(
    memory_store: MemoryStore, stub_issuer: StubIssuer, keypair: SigningKeyData
) -> Platform:
    memory_store.records[Collection.PRIVATE_KEY].append(
        {"kid": keypair.kid, "key": keypair.private_key_pem}
    )
    return Platform(
        name="Example LMS",
        url=URL,
        client_id="client-1",
        auth_endpoint=f"{URL}/auth",
        accesstoken_endpoint=TOKEN_URL,
        kid=keypair.kid,
        store=memory_store,
        tokens=AccessTokenLifecycle(memory_store, stub_issuer),
    )


def _issuer(handler) -> ClientCredentialsIssuer:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return ClientCredentialsIssuer(ToolSettings(), client=client)


class TestIssue:
    """Tests for ClientCredentialsIssuer.issue."""

    async def test_posts_signed_assertion(
        self, platform: Platform, keypair: SigningKeyData
    ) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(
                200,
                json={"access_token": "at-1", "token_type": "Bearer", "expires_in": 900},
            )

        issued = await _issuer(handler).issue(platform)

        assert issued is not None
        assert issued.access_token == "at-1"
        assert issued.expires_in == 900
        assert str(seen[0].url) == TOKEN_URL
        form = {k: v[0] for k, v in parse_qs(seen[0].content.decode()).items()}
        assert form["grant_type"] == "client_credentials"
        assert form["client_assertion_type"].endswith("jwt-bearer")
        assert "lti-ags/scope/score" in form["scope"]
        claims = jwt.decode(
            form["client_assertion"],
            keypair.public_key_pem,
            algorithms=["RS256"],
            audience=TOKEN_URL,
        )
        assert claims["iss"] == "client-1"

    async def test_defaults_missing_expires_in(self, platform: Platform) -> None:
        issued = await _issuer(
            lambda _r: httpx.Response(200, json={"access_token": "at-2"})
        ).issue(platform)
        assert issued is not None
        assert issued.expires_in == 3600

    async def test_error_status_is_none(self, platform: Platform) -> None:
        issued = await _issuer(
            lambda _r: httpx.Response(401, json={"error": "invalid_client"})
        ).issue(platform)
        assert issued is None

    async def test_malformed_body_is_none(self, platform: Platform) -> None:
        issued = await _issuer(lambda _r: httpx.Response(200, text="not json")).issue(
            platform
        )
        assert issued is None

    async def test_missing_access_token_is_none(self, platform: Platform) -> None:
        issued = await _issuer(
            lambda _r: httpx.Response(200, json={"expires_in": 60})
        ).issue(platform)
        assert issued is None

    async def test_transport_error_is_none(self, platform: Platform) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        assert await _issuer(handler).issue(platform) is None

    async def test_missing_private_key_skips_request(
        self, platform: Platform, memory_store: MemoryStore
    ) -> None:
        memory_store.records[Collection.PRIVATE_KEY].clear()
        calls: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            return httpx.Response(200, json={"access_token": "x"})

        assert await _issuer(handler).issue(platform) is None
        assert calls == []

    async def test_unusable_private_key_is_none(
        self, platform: Platform, memory_store: MemoryStore, keypair: SigningKeyData
    ) -> None:
        memory_store.records[Collection.PRIVATE_KEY][0]["key"] = "not a pem"
        issued = await _issuer(
            lambda _r: httpx.Response(200, json={"access_token": "x"})
        ).issue(platform)
        assert issued is None
