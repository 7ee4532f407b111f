from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from .schema import LocaleSet


class ContentSettings(BaseSettings):
    """
    User-configurable settings for contentbridge, loaded from environment
    variables prefixed with ``CONTENTBRIDGE_`` or from a .env file.

    Covers which space and locales to read, and how the HTTP transport behaves
    (timeouts, retries, caching of GET responses).
    """

    model_config = SettingsConfigDict(
        env_file=(".env", "secrets.env"),
        env_file_encoding="utf-8",
        env_prefix="CONTENTBRIDGE_",
        extra="ignore",
        case_sensitive=False,
    )

    # --- API Settings ---
    base_url: str = Field(
        default="https://api.contentful.com",
        description="Base URL of the content management API",
    )
    space_id: str | None = Field(
        default=None, description="Space whose entries are read and written"
    )
    access_token: str | None = Field(
        default=None, description="Management API token, sent as a Bearer token"
    )

    # --- Locale Settings ---
    favoured_locale: str | None = Field(
        default=None,
        description="Locale code to read fields in; unset reads whichever locale is present",
    )
    fallback_locale: str | None = Field(
        default=None,
        description="Locale code used when a field has no value in the favoured locale",
    )
    default_page_size: int = Field(
        default=100, gt=0, description="Entries per page for list requests"
    )

    # --- Logging Settings ---
    log_level: str = Field(
        default="INFO",
        description="Level used by configure_logging() when none is passed",
    )

    # --- Client Behavior Settings ---
    request_timeout: float = Field(
        default=30.0, description="Default request timeout in seconds"
    )
    max_retries: int = Field(
        default=3, description="Maximum number of retries for failed requests"
    )
    backoff_factor: float = Field(
        default=0.5, description="Backoff factor for retries (seconds)"
    )
    user_agent: str = Field(
        default="contentbridge/0.1.0",
        description="User-Agent header for requests",
    )

    # --- Caching Settings ---
    enable_caching: bool = Field(
        default=False, description="Cache GET response bodies in memory"
    )
    cache_ttl_seconds: int = Field(
        default=300, description="TTL for cache entries in seconds"
    )
    cache_max_size: int = Field(
        default=128, description="Maximum number of cached responses"
    )

    def locale_set(self) -> LocaleSet | None:
        """The configured locale preference, or None when no favoured locale is set.

        Without an explicit fallback the favoured locale is its own fallback.
        """
        if not self.favoured_locale:
            return None
        return LocaleSet(
            favoured=self.favoured_locale,
            fallback=self.fallback_locale or self.favoured_locale,
        )


@lru_cache
def get_settings() -> ContentSettings:
    """
    Provides access to the contentbridge settings.

    Settings are loaded from environment variables or .env/secrets.env files.
    The instance is cached; call ``get_settings.cache_clear()`` after changing
    the environment.

    Returns:
        ContentSettings: The settings instance.
    """
    return ContentSettings()
