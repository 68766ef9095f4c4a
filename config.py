"""
Configuration management for GoldKeeper.
Uses pydantic-settings for type-safe, centralized configuration.
"""

from decimal import Decimal
from typing import Literal, Optional
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.
    Uses pydantic-settings for validation and type safety.
    """

    model_config = SettingsConfigDict(
        env_file='.env',
        env_file_encoding='utf-8',
        extra='ignore'
    )

    # Database
    database_url: str = "sqlite:///goldkeeper.db"
    db_echo: bool = False

    # Gold price feed
    gold_price_source: Literal["yfinance", "static"] = "yfinance"
    gold_price_ticker: str = "GC=F"  # COMEX gold futures, USD per troy ounce
    static_gold_price: Decimal = Decimal("65.50")  # USD per gram
    price_cache_ttl_seconds: int = 3600

    # Email / SMTP Configuration
    smtp_server: str = "smtp.gmail.com"
    smtp_port: int = 587
    smtp_username: Optional[str] = None
    smtp_password: Optional[str] = None
    from_email: Optional[str] = None

    # Zakat reminder job
    reminder_check_hour: int = 8

    @property
    def email_from(self) -> Optional[str]:
        """Get the from email address, defaulting to smtp_username."""
        return self.from_email or self.smtp_username

    @property
    def is_email_configured(self) -> bool:
        """Check if email service is properly configured."""
        return all([
            self.smtp_username,
            self.smtp_password,
            self.email_from
        ])


# Global settings instance
_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Get or create the global settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def reload_settings() -> Settings:
    """Reload settings from environment (useful for testing)."""
    global _settings
    _settings = Settings()
    return _settings
