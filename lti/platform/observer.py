"""Hook invoked at the decision points of platform and token handling."""

import logging
from typing import Protocol


class PlatformObserver(Protocol):
    """Receives cache and failure events; implementations must not raise."""

    def cache_hit(self, platform_url: str) -> None: ...

    def cache_miss(self, platform_url: str) -> None: ...

    def cache_expired(self, platform_url: str) -> None: ...

    def renewal_attempted(self, platform_url: str) -> None: ...

    def failure(
        self, operation: str, platform_url: str, error: BaseException | str
    ) -> None: ...


class LoggingObserver:
    """Default observer writing every event to a stdlib logger."""

    def __init__(self, logger: logging.Logger | None = None) -> None:
        self._logger = logger or logging.getLogger("lti.platform")

    def cache_hit(self, platform_url: str) -> None:
        self._logger.debug("Access token found for %s", platform_url)

    def cache_miss(self, platform_url: str) -> None:
        self._logger.debug("Access token for %s not found", platform_url)

    def cache_expired(self, platform_url: str) -> None:
        self._logger.debug("Access token for %s expired", platform_url)

    def renewal_attempted(self, platform_url: str) -> None:
        self._logger.info("Requesting new access token for %s", platform_url)

    def failure(
        self, operation: str, platform_url: str, error: BaseException | str
    ) -> None:
        self._logger.warning("%s failed for %s: %s", operation, platform_url, error)
