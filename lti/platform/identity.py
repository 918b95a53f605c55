"""A registered platform and its write-through field updates."""

from typing import Any

from lti.db.store import Collection, Record, Store, StoreError
from lti.platform.auth_config import AuthConfig, validate_auth_config
from lti.platform.key_resolver import KeyKind, resolve_key
from lti.platform.observer import LoggingObserver, PlatformObserver
from lti.platform.token_cache import AccessTokenLifecycle
from lti.platform.types import PlatformRegistration, UpdateResult


class Platform:
    """A registered platform.

    Every setter writes to the store first, filtered by the current platform
    URL, and only updates the in-memory value once the write succeeded. A
    failed write leaves the object untouched and returns a falsy
    ``UpdateResult``. The key id is fixed at construction.
    """

    def __init__(
        self,
        *,
        name: str,
        url: str,
        client_id: str,
        auth_endpoint: str,
        accesstoken_endpoint: str,
        kid: str,
        store: Store,
        tokens: AccessTokenLifecycle,
        auth_config: AuthConfig | None = None,
        observer: PlatformObserver | None = None,
    ) -> None:
        if not url:
            raise ValueError("Platform url must not be empty")
        self._name = name
        self._url = url
        self._client_id = client_id
        self._auth_endpoint = auth_endpoint
        self._accesstoken_endpoint = accesstoken_endpoint
        self._kid = kid
        self._auth_config = auth_config
        self._store = store
        self._tokens = tokens
        self._observer = observer or LoggingObserver()

    @classmethod
    def from_record(
        cls,
        record: Record,
        *,
        store: Store,
        tokens: AccessTokenLifecycle,
        observer: PlatformObserver | None = None,
    ) -> "Platform":
        """Build a platform from a stored ``platform`` record."""
        raw_config = record.get("auth_config")
        return cls(
            name=record["platform_name"],
            url=record["platform_url"],
            client_id=record["client_id"],
            auth_endpoint=record["auth_endpoint"],
            accesstoken_endpoint=record["accesstoken_endpoint"],
            kid=record["kid"],
            auth_config=AuthConfig.model_validate(raw_config) if raw_config else None,
            store=store,
            tokens=tokens,
            observer=observer,
        )

    def __repr__(self) -> str:
        return f"Platform(url={self._url!r}, client_id={self._client_id!r})"

    @property
    def name(self) -> str:
        return self._name

    @property
    def url(self) -> str:
        return self._url

    @property
    def client_id(self) -> str:
        return self._client_id

    @property
    def auth_endpoint(self) -> str:
        return self._auth_endpoint

    @property
    def accesstoken_endpoint(self) -> str:
        return self._accesstoken_endpoint

    @property
    def kid(self) -> str:
        return self._kid

    @property
    def auth_config(self) -> AuthConfig | None:
        return self._auth_config

    def to_registration(self) -> PlatformRegistration | None:
        """Plain field view; None when no auth config has been set."""
        if self._auth_config is None:
            return None
        return PlatformRegistration(
            name=self._name,
            url=self._url,
            client_id=self._client_id,
            auth_endpoint=self._auth_endpoint,
            accesstoken_endpoint=self._accesstoken_endpoint,
            auth_method=self._auth_config.method.value,
            auth_key=self._auth_config.key,
        )

    async def _persist(self, patch: dict[str, Any]) -> UpdateResult:
        """Write ``patch`` to this platform's record."""
        try:
            await self._store.modify(
                Collection.PLATFORM, {"platform_url": self._url}, patch
            )
        except StoreError as exc:
            self._observer.failure("platform update", self._url, exc)
            return UpdateResult(ok=False, reason=str(exc))
        return UpdateResult(ok=True, platform=self)

    @staticmethod
    def _rejected(field: str) -> UpdateResult:
        return UpdateResult(ok=False, reason=f"{field} must not be empty")

    async def set_name(self, name: str) -> UpdateResult:
        if not name:
            return self._rejected("name")
        result = await self._persist({"platform_name": name})
        if result:
            self._name = name
        return result

    async def set_url(self, url: str) -> UpdateResult:
        """Change the platform URL; later writes are filtered by the new one.

        The keypair rows follow the platform to the new URL. The token cached
        under the old URL is dropped, so nothing registered there later can be
        served it. Failures of these follow-up writes are reported through the
        observer and do not undo the move.
        """
        if not url:
            return self._rejected("url")
        old_url = self._url
        result = await self._persist({"platform_url": url})
        if not result:
            return result
        self._url = url
        for collection in (Collection.PUBLIC_KEY, Collection.PRIVATE_KEY):
            try:
                await self._store.modify(
                    collection, {"kid": self._kid}, {"platform_url": url}
                )
            except StoreError as exc:
                self._observer.failure(f"{collection} update", url, exc)
        try:
            await self._store.delete(
                Collection.ACCESS_TOKEN, {"platform_url": old_url}
            )
        except StoreError as exc:
            self._observer.failure("access token delete", old_url, exc)
        return result

    async def set_client_id(self, client_id: str) -> UpdateResult:
        if not client_id:
            return self._rejected("client_id")
        result = await self._persist({"client_id": client_id})
        if result:
            self._client_id = client_id
        return result

    async def set_auth_endpoint(self, auth_endpoint: str) -> UpdateResult:
        if not auth_endpoint:
            return self._rejected("auth_endpoint")
        result = await self._persist({"auth_endpoint": auth_endpoint})
        if result:
            self._auth_endpoint = auth_endpoint
        return result

    async def set_accesstoken_endpoint(self, endpoint: str) -> UpdateResult:
        if not endpoint:
            return self._rejected("accesstoken_endpoint")
        result = await self._persist({"accesstoken_endpoint": endpoint})
        if result:
            self._accesstoken_endpoint = endpoint
        return result

    async def set_auth_config(self, method: str | None, key: str | None) -> UpdateResult:
        """Validate and store how this platform's messages are verified.

        Raises InvalidAuthMethodError or MissingAuthKeyError before anything
        is written.
        """
        config = validate_auth_config(method, key)
        result = await self._persist({"auth_config": config.model_dump(mode="json")})
        if result:
            self._auth_config = config
        return result

    async def public_key(self) -> str | None:
        return await resolve_key(self._store, KeyKind.PUBLIC, self._kid)

    async def private_key(self) -> str | None:
        return await resolve_key(self._store, KeyKind.PRIVATE, self._kid)

    async def current_access_token(self) -> str | None:
        """Cached access token for this platform, minting one when needed."""
        return await self._tokens.current_access_token(self)

    async def remove(self) -> bool:
        """Delete the platform record and both halves of its keypair.

        All three deletions are attempted even if one fails; nothing is
        rolled back.
        """
        deletions = (
            (Collection.PLATFORM, {"platform_url": self._url}),
            (Collection.PUBLIC_KEY, {"kid": self._kid}),
            (Collection.PRIVATE_KEY, {"kid": self._kid}),
        )
        removed = True
        for collection, filters in deletions:
            try:
                await self._store.delete(collection, filters)
            except StoreError as exc:
                self._observer.failure(f"{collection} delete", self._url, exc)
                removed = False
        return removed
