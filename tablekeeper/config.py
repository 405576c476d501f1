"""Configuration management for Tablekeeper using Pydantic."""

import logging
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)


class Config(BaseSettings):
    """Application configuration loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Database Configuration
    database_url: str = Field(
        default="sqlite:///./tablekeeper.db", description="SQLAlchemy database URL"
    )

    # Restaurant Configuration
    restaurant_name: str = Field(default="Madot Restaurant", description="Restaurant name")
    restaurant_email: str = Field(
        default="info@madotrestaurant.com", description="Public contact email"
    )
    restaurant_phone: str = Field(default="(555) 123-4567", description="Public phone")
    restaurant_address: str = Field(
        default="123 Gourmet Street, Food City", description="Street address"
    )

    # Email Configuration
    email_transport: Literal["smtp", "brevo"] = Field(
        default="smtp", description="Outbound email transport"
    )
    smtp_host: str = Field(default="smtp.gmail.com", description="SMTP relay host")
    smtp_port: int = Field(default=465, description="SMTP relay port (SSL)")
    email_user: str | None = Field(None, description="SMTP account / sender address")
    email_pass: str | None = Field(None, description="SMTP account password")
    brevo_api_key: str | None = Field(None, description="Brevo transactional API key")
    brevo_api_url: str = Field(
        default="https://api.brevo.com/v3/smtp/email",
        description="Brevo transactional email endpoint",
    )
    email_sender: str | None = Field(
        None, description="Sender address (defaults to EMAIL_USER)"
    )
    email_timeout: float = Field(default=15.0, description="Email request timeout (s)")

    # Auth Configuration
    secret_key: str = Field(
        default="change-me-in-production", description="Signing key for tokens"
    )
    magic_link_ttl_minutes: int = Field(default=15, description="Magic link lifetime")
    session_ttl_hours: int = Field(default=12, description="Staff session lifetime")
    public_app_url: str = Field(
        default="http://localhost:3000",
        description="Public URL of the staff app, used to build login links",
    )
    admin_email: str | None = Field(None, description="Bootstrap admin email")
    admin_name: str = Field(default="Administrator", description="Bootstrap admin name")

    # Server Configuration
    server_host: str = Field(default="0.0.0.0", description="Server host")
    server_port: int = Field(default=8080, description="Server port")
    server_url: str = Field(
        default="http://localhost:8080",
        description="Server URL for CLI to connect to API",
    )
    cli_token: str | None = Field(None, description="Staff session token for the CLI")

    # Logging Configuration
    log_level: str = Field(default="INFO", description="Logging level")

    @property
    def sender_address(self) -> str | None:
        """Address used in the From header."""
        return self.email_sender or self.email_user

    def has_email_config(self) -> bool:
        """Check if the selected email transport is properly configured."""
        if self.email_transport == "brevo":
            return bool(self.brevo_api_key and self.sender_address)
        return bool(self.email_user and self.email_pass)

    def model_post_init(self, __context) -> None:
        """Validate configuration after initialization."""
        if not self.has_email_config():
            logger.warning(
                f"Email transport '{self.email_transport}' not configured - "
                "notifications will fail softly"
            )

        if self.secret_key == "change-me-in-production":
            logger.warning("SECRET_KEY not set - using insecure development key")

        if not self.admin_email:
            logger.warning("ADMIN_EMAIL not set - no admin account will be bootstrapped")


# Global config instance
config: Config | None = None


def get_config() -> Config:
    """Get or create the global configuration instance."""
    global config
    if config is None:
        config = Config()
    return config


def setup_logging(cfg: Config | None = None) -> None:
    """Configure logging for the application."""
    if cfg is None:
        cfg = get_config()

    log_level = getattr(logging, cfg.log_level.upper(), logging.INFO)

    logging.basicConfig(
        level=log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    # Reduce noise from external libraries
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
