"""Cached platform access tokens with lazy, pull-based renewal."""

import asyncio
import time
from collections.abc import Callable
from enum import StrEnum
from typing import TYPE_CHECKING, Protocol

from lti.db.store import Collection, Store, StoreError
from lti.platform.observer import LoggingObserver, PlatformObserver
from lti.platform.types import CachedAccessToken, IssuedToken

if TYPE_CHECKING:
    from lti.platform.identity import Platform


class TokenIssuer(Protocol):
    """Performs the client-credentials exchange with a platform."""

    async def issue(self, platform: "Platform") -> IssuedToken | None:
        """Return a fresh token, or None if the exchange failed."""
        ...


class TokenState(StrEnum):
    """Whether a cached token can be trusted."""

    ABSENT = "absent"
    VALID = "valid"
    EXPIRED = "expired"


def now_ms() -> int:
    """Current time in epoch milliseconds."""
    return time.time_ns() // 1_000_000


def classify(cached: CachedAccessToken | None, now: int) -> TokenState:
    """Valid while the elapsed seconds do not exceed ``expires_in``."""
    if cached is None:
        return TokenState.ABSENT
    elapsed = (now - cached.created_at) / 1000
    if elapsed <= cached.expires_in:
        return TokenState.VALID
    return TokenState.EXPIRED


class AccessTokenLifecycle:
    """Serves cached access tokens and renews them through a TokenIssuer.

    Renewals are coalesced per platform URL: while one renewal is in flight,
    every other caller for the same platform awaits that renewal and gets its
    result instead of starting a second exchange.
    """

    def __init__(
        self,
        store: Store,
        issuer: TokenIssuer,
        observer: PlatformObserver | None = None,
        clock: Callable[[], int] = now_ms,
    ) -> None:
        self._store = store
        self._issuer = issuer
        self._observer = observer or LoggingObserver()
        self._clock = clock
        self._inflight: dict[str, asyncio.Task[str | None]] = {}

    async def lookup(self, platform_url: str) -> CachedAccessToken | None:
        """Read the cached token; a store failure reads as no token."""
        try:
            rows = await self._store.get(
                Collection.ACCESS_TOKEN, {"platform_url": platform_url}
            )
        except StoreError as exc:
            self._observer.failure("access token lookup", platform_url, exc)
            return None
        if not rows:
            return None
        return CachedAccessToken.model_validate(rows[0])

    async def current_access_token(self, platform: "Platform") -> str | None:
        """Return a valid access token for ``platform``, renewing if needed."""
        url = platform.url
        cached = await self.lookup(url)
        state = classify(cached, self._clock())
        if state is TokenState.VALID and cached is not None:
            self._observer.cache_hit(url)
            return cached.token

        task = self._inflight.get(url)
        if task is None:
            # a renewal may have finished and saved since the first read
            cached = await self.lookup(url)
            state = classify(cached, self._clock())
            if state is TokenState.VALID and cached is not None:
                self._observer.cache_hit(url)
                return cached.token
            task = self._inflight.get(url)

        if state is TokenState.ABSENT:
            self._observer.cache_miss(url)
        else:
            self._observer.cache_expired(url)

        if task is None:
            task = asyncio.ensure_future(self._renew(platform))
            self._inflight[url] = task
            task.add_done_callback(lambda done: self._forget(url, done))
        return await asyncio.shield(task)

    def _forget(self, url: str, task: "asyncio.Task[str | None]") -> None:
        if self._inflight.get(url) is task:
            del self._inflight[url]

    async def _renew(self, platform: "Platform") -> str | None:
        url = platform.url
        self._observer.renewal_attempted(url)
        issued = await self._issuer.issue(platform)
        if issued is None:
            self._observer.failure("access token renewal", url, "no token issued")
            return None
        # skip the save if the platform moved while the exchange ran
        if platform.url == url:
            await self._save(url, issued)
        return issued.access_token

    async def _save(self, platform_url: str, issued: IssuedToken) -> None:
        """Replace the cached token; the minted token is still served on failure."""
        record = {
            "platform_url": platform_url,
            "token": issued.access_token,
            "expires_in": issued.expires_in,
            "created_at": self._clock(),
        }
        try:
            await self._store.insert(Collection.ACCESS_TOKEN, record)
        except StoreError as exc:
            self._observer.failure("access token save", platform_url, exc)
