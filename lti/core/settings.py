"""Tool settings loaded from environment variables."""

from pydantic_settings import BaseSettings, SettingsConfigDict

ASSERTION_TTL_DEFAULT = 60
HTTP_TIMEOUT_DEFAULT = 10.0
DB_POOL_SIZE_DEFAULT = 5
DB_MAX_OVERFLOW_DEFAULT = 10
DB_PORT_DEFAULT = 5432

LTI_SERVICE_SCOPES = (
    "https://purl.imsglobal.org/spec/lti-ags/scope/lineitem,"
    "https://purl.imsglobal.org/spec/lti-ags/scope/lineitem.readonly,"
    "https://purl.imsglobal.org/spec/lti-ags/scope/result.readonly,"
    "https://purl.imsglobal.org/spec/lti-ags/scope/score,"
    "https://purl.imsglobal.org/spec/lti-nrps/scope/contextmembership.readonly"
)


class DatabaseSettings(BaseSettings):
    """PostgreSQL connection settings."""

    model_config = SettingsConfigDict(env_prefix="LTI_DB_")

    host: str = "localhost"
    port: int = DB_PORT_DEFAULT
    user: str = "lti"
    password: str = "lti"
    database: str = "lti"
    pool_size: int = DB_POOL_SIZE_DEFAULT
    max_overflow: int = DB_MAX_OVERFLOW_DEFAULT

    @property
    def async_url(self) -> str:
        """Build async PostgreSQL connection URL."""
        return (
            f"postgresql+asyncpg://{self.user}:{self.password}"
            f"@{self.host}:{self.port}/{self.database}"
        )


class ToolSettings(BaseSettings):
    """Settings for the tool side of platform registrations."""

    model_config = SettingsConfigDict(env_prefix="LTI_")

    encryption_key: str = ""
    assertion_ttl: int = ASSERTION_TTL_DEFAULT
    http_timeout: float = HTTP_TIMEOUT_DEFAULT
    token_scopes: str = LTI_SERVICE_SCOPES

    def get_scope_list(self) -> list[str]:
        """Parse comma-separated service scopes."""
        if not self.token_scopes:
            return []
        return [s.strip() for s in self.token_scopes.split(",") if s.strip()]
