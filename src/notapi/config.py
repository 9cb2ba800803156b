"""
Configuration management for NotAPI.

Every concern has its own settings class reading its own prefixed
environment variables. The resulting objects are handed to each component
at construction; nothing reads the environment after startup.

Defaults are suitable for local development: no Discord token, no
keep-alive URL, no GeoIP database.
"""

from pathlib import Path
from typing import FrozenSet, Literal, Optional

from dotenv import load_dotenv
from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class ServerConfig(BaseSettings):
    """HTTP server configuration settings."""

    model_config = SettingsConfigDict(env_prefix="SERVER_")

    host: str = Field(
        default="0.0.0.0",
        description="Interface to bind in production mode"
    )
    port: int = Field(
        default=3000,
        gt=0,
        lt=65536,
        validation_alias=AliasChoices("SERVER_PORT", "PORT"),
        description="Listening port"
    )
    trust_proxy: bool = Field(
        default=True,
        description="Take the client IP from X-Forwarded-For"
    )


class AccessConfig(BaseSettings):
    """Static blacklists, loaded once at process start."""

    ip_blacklist: str = Field(
        default="",
        description="Space-separated IP literals to hide the API from"
    )
    ua_blacklist: str = Field(
        default="",
        description="Space-separated user-agent substrings to forbid"
    )

    @property
    def ips(self) -> FrozenSet[str]:
        return frozenset(self.ip_blacklist.split())

    @property
    def user_agents(self) -> FrozenSet[str]:
        return frozenset(ua.lower() for ua in self.ua_blacklist.split())


class DiscordConfig(BaseSettings):
    """Discord bot and operator channel configuration settings."""

    model_config = SettingsConfigDict(env_prefix="DISCORD_")

    token: Optional[str] = Field(
        default=None,
        description="Discord bot token from Developer Portal"
    )
    log_channel_id: Optional[int] = Field(
        default=None,
        description="Channel that receives the audit log of API calls"
    )
    command_prefix: str = Field(
        default="!",
        description="Command prefix for text commands"
    )


class SpamWatchConfig(BaseSettings):
    """SpamWatch ban-list API settings."""

    model_config = SettingsConfigDict(env_prefix="SPAMWATCH_")

    token: Optional[str] = Field(
        default=None,
        description="SpamWatch API token"
    )
    api_url: str = Field(
        default="https://api.spamwat.ch",
        description="SpamWatch API base URL"
    )


class GeniusConfig(BaseSettings):
    """Genius lyrics API settings."""

    model_config = SettingsConfigDict(env_prefix="GENIUS_")

    token: Optional[str] = Field(
        default=None,
        description="Genius API client access token"
    )
    api_url: str = Field(
        default="https://api.genius.com",
        description="Genius API base URL"
    )


class ProvidersConfig(BaseSettings):
    """Provider invocation settings."""

    model_config = SettingsConfigDict(env_prefix="PROVIDER_")

    delay_min: float = Field(
        default=0.15,
        ge=0.0,
        description="Lower bound of the artificial pre-processing delay (seconds)"
    )
    delay_max: float = Field(
        default=0.5,
        ge=0.0,
        description="Upper bound of the artificial pre-processing delay (seconds)"
    )


class KeepAliveConfig(BaseSettings):
    """Keep-alive ping settings."""

    model_config = SettingsConfigDict(env_prefix="KEEPALIVE_")

    url: Optional[str] = Field(
        default=None,
        description="Health-check URL pinged every 6 hours"
    )
    timeout: float = Field(
        default=3.0,
        gt=0,
        description="Probe timeout in seconds"
    )


class GeoIPConfig(BaseSettings):
    """Coarse geolocation settings."""

    model_config = SettingsConfigDict(env_prefix="GEOIP_")

    database: Optional[str] = Field(
        default=None,
        description="Path to a MaxMind GeoLite2/GeoIP2 City .mmdb file"
    )


class LoggingConfig(BaseSettings):
    """Log level and output format."""

    model_config = SettingsConfigDict(env_prefix="LOG_")

    level: str = Field(
        default="INFO",
        description="Root level: DEBUG, INFO, WARNING, ERROR or CRITICAL"
    )
    format: Literal["json", "text"] = Field(
        default="text",
        description="'text' for a rich console, 'json' for one object per line"
    )

    @field_validator("level")
    @classmethod
    def normalize_level(cls, v: str) -> str:
        level = v.strip().upper()
        if level not in LOG_LEVELS:
            raise ValueError(f"LOG_LEVEL must be one of {', '.join(LOG_LEVELS)}")
        return level


class AppConfig(BaseSettings):
    """Root configuration; each concern reads its own prefixed variables."""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    environment: str = Field(
        default="development",
        description="'production' enables the keep-alive ping and command sync"
    )

    server: ServerConfig = Field(default_factory=ServerConfig)
    access: AccessConfig = Field(default_factory=AccessConfig)
    discord: DiscordConfig = Field(default_factory=DiscordConfig)
    spamwatch: SpamWatchConfig = Field(default_factory=SpamWatchConfig)
    genius: GeniusConfig = Field(default_factory=GeniusConfig)
    providers: ProvidersConfig = Field(default_factory=ProvidersConfig)
    keepalive: KeepAliveConfig = Field(default_factory=KeepAliveConfig)
    geoip: GeoIPConfig = Field(default_factory=GeoIPConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @property
    def is_production(self) -> bool:
        return self.environment.lower() == "production"


def load_config(env_path: str = ".env") -> AppConfig:
    """
    Build the application configuration.

    Variables from ``env_path`` are exported into the process environment
    first, without overriding ones already set, so that every settings
    class sees them under its own prefix.

    Raises:
        ValidationError: If a value fails validation

    Example:
        ```python
        config = load_config()
        print(f"Audit log goes to channel {config.discord.log_channel_id}")
        ```
    """
    env_file = Path(env_path)
    if env_file.is_file():
        load_dotenv(env_file, override=False)
    return AppConfig()
