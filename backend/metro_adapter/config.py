"""
Metro Adapter Configuration

This file contains all server-side configurable settings.
Values are read from the process environment once at startup
(see load_settings) and then passed around explicitly.
"""

from dataclasses import dataclass
from typing import Mapping, Optional
import os

from dotenv import find_dotenv, load_dotenv


def _env_flag(value: Optional[str], default: bool) -> bool:
    if value is None or value.strip() == "":
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


@dataclass
class ServerConfig:
    """Server networking configuration."""
    HOST: str = "0.0.0.0"
    PORT: int = 6821


@dataclass
class DatabaseConfig:
    """Database configuration."""
    DATABASE_URL: str = "postgresql+psycopg2:///infinity"
    ECHO_SQL: bool = False  # Log SQL queries


@dataclass
class ListConfig:
    """
    Review list configuration handed to the review framework.

    SECRET_KEY authenticates inbound review calls and must never be
    echoed back to clients or written to logs.
    """
    SECRET_KEY: str = ""
    LIST_ID: str = ""
    STARTUP_LOGS: bool = True
    DOMAIN_NAME: str = "https://metro-v4.infinitybots.xyz"

    def public_dict(self) -> dict:
        """List configuration without the secret key."""
        return {
            "list_id": self.LIST_ID,
            "domain_name": self.DOMAIN_NAME,
            "startup_logs": self.STARTUP_LOGS,
        }


@dataclass
class BotRecordConfig:
    """Record synthesis settings."""
    DEFAULT_PREFIX: str = "/"
    INVITE_TEMPLATE: str = (
        "https://discord.com/oauth2/authorize?client_id={bot_id}"
        "&permissions=0&scope=bot%20applications.commands"
    )
    VANITY_LENGTH: int = 32
    TOKEN_LENGTH: int = 101
    EXTERNAL_SOURCE: str = "metro"


@dataclass
class Settings:
    """Main settings container."""
    server: ServerConfig = None
    database: DatabaseConfig = None
    listing: ListConfig = None
    record: BotRecordConfig = None

    # Application info
    APP_NAME: str = "Metro IBL Adapter"
    VERSION: str = "0.1.0"
    DEBUG: bool = False

    def __post_init__(self):
        self.server = self.server or ServerConfig()
        self.database = self.database or DatabaseConfig()
        self.listing = self.listing or ListConfig()
        self.record = self.record or BotRecordConfig()

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Settings":
        """
        Build settings from environment variables.

        Args:
            environ: Mapping to read from (defaults to os.environ)

        Returns:
            Settings populated from the environment, defaults elsewhere
        """
        env = os.environ if environ is None else environ

        server = ServerConfig(
            HOST=env.get("HOST", ServerConfig.HOST),
            PORT=int(env.get("PORT", ServerConfig.PORT)),
        )
        database = DatabaseConfig(
            DATABASE_URL=env.get("DATABASE_URL", DatabaseConfig.DATABASE_URL),
            ECHO_SQL=_env_flag(env.get("ECHO_SQL"), DatabaseConfig.ECHO_SQL),
        )
        list_config = ListConfig(
            SECRET_KEY=env.get("SECRET_KEY", ""),
            LIST_ID=env.get("LIST_ID", ""),
            STARTUP_LOGS=_env_flag(env.get("STARTUP_LOGS"), ListConfig.STARTUP_LOGS),
            DOMAIN_NAME=env.get("DOMAIN_NAME", ListConfig.DOMAIN_NAME),
        )

        return cls(
            server=server,
            database=database,
            listing=list_config,
            DEBUG=_env_flag(env.get("DEBUG"), False),
        )


# Global settings instance
settings = Settings()


def get_settings() -> Settings:
    """Get the global settings instance."""
    return settings


def configure(new_settings: Settings) -> Settings:
    """Replace the global settings instance (startup and tests only)."""
    global settings
    settings = new_settings
    return settings


def load_settings() -> Settings:
    """
    Load settings from the process environment at startup.

    A .env file in the working directory is read first; variables already
    set in the environment take precedence over it.

    Returns:
        The newly installed global settings
    """
    load_dotenv(find_dotenv(usecwd=True))
    return configure(Settings.from_env())
