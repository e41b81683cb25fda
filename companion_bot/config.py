"""
Configuration management for the companion bot
"""

from typing import Optional

from pydantic import AliasChoices, Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class BotConfig(BaseSettings):
    """Configuration supplied at process start (environment or .env file)"""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="COMPANION_",
        case_sensitive=False,
        extra="ignore",  # Ignore extra environment variables
        populate_by_name=True,
    )

    # Minecraft server configuration
    server_host: str = Field(default="localhost", description="Minecraft server host")
    server_port: int = Field(default=25565, description="Minecraft server port")
    bot_username: str = Field(default="Aisha", description="Bot username in Minecraft")
    minecraft_version: Optional[str] = Field(
        default=None, description="Minecraft version, None lets mineflayer auto-detect"
    )
    auth_password: Optional[SecretStr] = Field(
        default=None, description="Password for servers that ask for /register and /login"
    )

    # Privileged identity
    owner_username: Optional[str] = Field(default=None, description="Player allowed to run admin commands")

    # Text generation
    gemini_api_key: Optional[SecretStr] = Field(
        default=None,
        validation_alias=AliasChoices("COMPANION_GEMINI_API_KEY", "GEMINI_API_KEY"),
        description="Gemini API key used by the !chat command",
    )
    gemini_model: str = Field(default="gemini-2.5-flash", description="Gemini model for !chat replies")
    agent_temperature: float = Field(default=0.9, ge=0.0, le=2.0, description="Sampling temperature for !chat replies")
    max_output_tokens: int = Field(default=256, gt=0, description="Upper bound on reply length")

    # Liveness endpoint
    http_port: int = Field(
        default=3000,
        validation_alias=AliasChoices("COMPANION_HTTP_PORT", "PORT"),
        description="Port of the HTTP status endpoint",
    )

    # Presence and reconnection
    max_retries: int = Field(default=3, ge=1, description="Empty readings / reconnects before giving up")
    ping_interval: float = Field(default=30.0, description="Seconds between server status pings")
    membership_interval: float = Field(default=10.0, description="Seconds between in-session player checks")
    retry_cooldown: float = Field(default=120.0, description="Seconds before an exhausted retry counter resets")
    reconnect_backoff: float = Field(default=5.0, description="Flat delay before reconnecting after a drop")

    # Maintenance
    gear_interval: float = Field(default=300.0, description="Seconds between best-gear equips")
    jump_interval: float = Field(default=60.0, description="Seconds between auto-jumps")
    hunger_threshold: int = Field(default=14, description="Food level below which the bot asks for food")
    hunger_cooldown: float = Field(default=30.0, description="Minimum seconds between hunger announcements")
    idle_warning_after: float = Field(default=300.0, description="Seconds of player inactivity before a notice")

    # Logging configuration
    log_level: str = Field(default="INFO", description="Logging level (DEBUG, INFO, WARNING, ERROR)")
    log_file: Optional[str] = Field(default=None, description="Log file name (None for timestamped name)")
    log_json_format: bool = Field(default=False, description="Use JSON format for console logs")

    @property
    def admin_users(self) -> list[str]:
        return [self.owner_username] if self.owner_username else []


def get_config() -> BotConfig:
    """Get the configuration instance"""
    return BotConfig()
