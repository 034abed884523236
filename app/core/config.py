"""
Configuration module - centralized settings for the entire application.
Uses pydantic-settings to load values from environment variables and .env file.
"""

from pydantic_settings import BaseSettings, SettingsConfigDict

from app.environments.base import ConfigError


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Pydantic-settings automatically:
    1. Reads from environment variables (highest priority)
    2. Falls back to .env file values
    3. Uses default values if neither exists

    To override in production, set environment variables:
        export NOTION_API_KEY=secret_xxx
        export NOTION_DB_TASKS=0123456789abcdef0123456789abcdef
    """

    # ---------------------------------------------------------------------------
    # PYDANTIC SETTINGS CONFIGURATION
    # ---------------------------------------------------------------------------
    model_config = SettingsConfigDict(
        env_file=".env",        # Load from .env file in project root
        env_file_encoding="utf-8",  # File encoding
        extra="ignore",         # Ignore extra env vars not defined here
    )

    # ---------------------------------------------------------------------------
    # APPLICATION SETTINGS
    # ---------------------------------------------------------------------------
    # APP_NAME: Display name shown in API docs and logging
    APP_NAME: str = "Notebridge"

    # DEBUG: Enable debug mode (more verbose logging)
    DEBUG: bool = False

    # LOG_LEVEL: Root level for the notebridge.* loggers
    LOG_LEVEL: str = "INFO"

    # ---------------------------------------------------------------------------
    # LINE MESSAGING API
    # ---------------------------------------------------------------------------
    # LINE_CHANNEL_TOKEN: Long-lived channel access token (Messaging API tab)
    LINE_CHANNEL_TOKEN: str = ""

    # LINE_CHANNEL_SECRET: Used to verify X-Line-Signature on webhooks
    # - Leave empty to skip verification (local testing only)
    LINE_CHANNEL_SECRET: str = ""

    # ---------------------------------------------------------------------------
    # NOTION API
    # ---------------------------------------------------------------------------
    # NOTION_API_KEY: Internal integration secret
    # - Every database the bot writes to must be shared with the integration
    NOTION_API_KEY: str = ""

    # NOTION_VERSION: Sent as the Notion-Version header on every request
    NOTION_VERSION: str = "2022-06-28"

    # Default destinations for "todo:" and "memo:" messages
    # - Dashes are optional, they are stripped before use
    NOTION_DB_TASKS: str = ""
    NOTION_DB_KNOWLEDGE: str = ""

    # ---------------------------------------------------------------------------
    # KEY-VALUE STORE
    # ---------------------------------------------------------------------------
    # REDIS_URL: redis://host:6379/0
    # - Empty means an in-process store (single worker / development only)
    REDIS_URL: str = ""

    # Lifetimes of the three key namespaces
    PREVIEW_TTL_SECONDS: int = 600                      # preview:<token>
    LOCATION_TTL_SECONDS: int = 60 * 60 * 2             # loc:<sender>
    NAME_CACHE_TTL_SECONDS: int = 60 * 60 * 24 * 30     # dbid:<name>

    # Timeout for outbound HTTP calls (Notion, LINE)
    HTTP_TIMEOUT_SECONDS: float = 30.0

    def destination_id_for(self, kind: str) -> str:
        """
        Look up the configured database ID for a symbolic destination.

        Args:
            kind: Destination kind label ("Tasks", "Knowledge")

        Returns:
            The configured database ID

        Raises:
            ConfigError: If no NOTION_DB_<KIND> value is configured
        """
        database_id = getattr(self, f"NOTION_DB_{kind.upper()}", "")
        if not database_id:
            raise ConfigError(f"No database configured for destination '{kind}'")
        return database_id


# ---------------------------------------------------------------------------
# GLOBAL SETTINGS INSTANCE
# ---------------------------------------------------------------------------
# Usage: from app.core.config import settings
settings = Settings()
