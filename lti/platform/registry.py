"""Registration, lookup and deletion of platforms."""

import logging

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from lti.core.settings import ToolSettings
from lti.crypto.keys import generate_platform_keypair, public_jwk
from lti.crypto.types import JWKSResponse
from lti.db.engine import get_session_factory
from lti.db.store import Collection, Record, SqlStore, Store, StoreError
from lti.oauth.token_issuer import ClientCredentialsIssuer
from lti.platform.auth_config import validate_auth_config
from lti.platform.identity import Platform
from lti.platform.observer import LoggingObserver, PlatformObserver
from lti.platform.token_cache import AccessTokenLifecycle
from lti.platform.types import PlatformRegistration

logger = logging.getLogger(__name__)


class PlatformRegistry:
    """Entry point for working with registered platforms."""

    def __init__(
        self,
        store: Store,
        tokens: AccessTokenLifecycle,
        observer: PlatformObserver | None = None,
    ) -> None:
        self._store = store
        self._tokens = tokens
        self._observer = observer or LoggingObserver()

    def _build(self, record: Record) -> Platform:
        return Platform.from_record(
            record, store=self._store, tokens=self._tokens, observer=self._observer
        )

    async def register(self, registration: PlatformRegistration) -> Platform | None:
        """Register a platform, or return it if the URL is already known.

        A new RSA keypair is generated for the platform. Raises the auth
        config validation errors; returns None if any store call fails.
        The platform record is written last so that a half-finished
        registration never becomes visible.
        """
        url = registration.url
        try:
            rows = await self._store.get(Collection.PLATFORM, {"platform_url": url})
        except StoreError as exc:
            # an unknown state must not be overwritten by the upsert below
            self._observer.failure("platform register", url, exc)
            return None
        if rows:
            return self._build(rows[0])

        auth_config = validate_auth_config(
            registration.auth_method, registration.auth_key
        )
        try:
            # a token left under this URL belongs to someone else
            await self._store.delete(Collection.ACCESS_TOKEN, {"platform_url": url})
        except StoreError as exc:
            self._observer.failure("platform register", url, exc)
            return None

        keypair = generate_platform_keypair()
        record = {
            "platform_url": url,
            "platform_name": registration.name,
            "client_id": registration.client_id,
            "auth_endpoint": registration.auth_endpoint,
            "accesstoken_endpoint": registration.accesstoken_endpoint,
            "kid": keypair.kid,
            "auth_config": auth_config.model_dump(mode="json"),
        }
        owned = {"kid": keypair.kid, "platform_url": url}
        try:
            await self._store.insert(
                Collection.PUBLIC_KEY, {**owned, "key": keypair.public_key_pem}
            )
            await self._store.insert(
                Collection.PRIVATE_KEY, {**owned, "key": keypair.private_key_pem}
            )
            await self._store.insert(Collection.PLATFORM, record)
        except StoreError as exc:
            self._observer.failure("platform register", url, exc)
            await self._discard_keypair(url, keypair.kid)
            return None
        logger.info("Registered platform %s (kid %s)", url, keypair.kid)
        return self._build(record)

    async def _discard_keypair(self, url: str, kid: str) -> None:
        for collection in (Collection.PUBLIC_KEY, Collection.PRIVATE_KEY):
            try:
                await self._store.delete(collection, {"kid": kid})
            except StoreError as exc:
                self._observer.failure(f"{collection} delete", url, exc)

    async def get(self, url: str) -> Platform | None:
        """Look up a platform by URL."""
        if not url:
            return None
        try:
            rows = await self._store.get(Collection.PLATFORM, {"platform_url": url})
        except StoreError as exc:
            self._observer.failure("platform lookup", url, exc)
            return None
        if not rows:
            return None
        return self._build(rows[0])

    async def get_all(self) -> list[Platform]:
        """Return every registered platform (empty on store failure)."""
        try:
            rows = await self._store.get(Collection.PLATFORM, {})
        except StoreError as exc:
            self._observer.failure("platform listing", "*", exc)
            return []
        return [self._build(row) for row in rows]

    async def delete(self, url: str) -> bool:
        """Remove a platform, its keypair and its cached access token."""
        platform = await self.get(url)
        if platform is None:
            return False
        removed = await platform.remove()
        try:
            await self._store.delete(Collection.ACCESS_TOKEN, {"platform_url": url})
        except StoreError as exc:
            self._observer.failure("access token delete", url, exc)
        return removed

    async def keyset(self) -> JWKSResponse:
        """Public keys of every platform keypair, as a JWKS document."""
        try:
            rows = await self._store.get(Collection.PUBLIC_KEY, {})
        except StoreError as exc:
            self._observer.failure("keyset", "*", exc)
            return JWKSResponse(keys=[])
        return JWKSResponse(keys=[public_jwk(r["key"], r["kid"]) for r in rows])


def build_registry(
    settings: ToolSettings | None = None,
    session_factory: async_sessionmaker[AsyncSession] | None = None,
) -> PlatformRegistry:
    """Wire a registry over the SQL store and the client-credentials issuer."""
    settings = settings or ToolSettings()
    store = SqlStore(session_factory or get_session_factory(), settings.encryption_key)
    issuer = ClientCredentialsIssuer(settings)
    return PlatformRegistry(store, AccessTokenLifecycle(store, issuer))
