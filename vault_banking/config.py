"""
Configuration Management Module

Provides centralized configuration using pydantic-settings for environment-based configuration.
"""

from decimal import Decimal
from pydantic_settings import BaseSettings
from typing import Optional


class VaultConfig(BaseSettings):
    """Vault banking backend configuration"""

    # Storage configuration
    database_url: str = "sqlite:///vault.db"  # memory:// for in-process storage

    # API configuration
    api_host: str = "0.0.0.0"
    api_port: int = 5000
    cors_origins: str = "*"  # Comma separated

    # Security configuration
    jwt_secret: str = "change-me-in-production"
    jwt_algorithm: str = "HS256"
    jwt_expiry_hours: int = 24 * 7
    password_min_length: int = 1

    # Password reset configuration
    reset_token_ttl_minutes: int = 15
    reset_token_bytes: int = 32  # 256 bits of entropy
    frontend_url: str = "http://localhost:5173"

    # Identity configuration
    account_number_max_attempts: int = 5
    email_case_sensitive: bool = False

    # Ledger configuration
    activity_log_limit: int = 10
    empty_transactions_is_error: bool = True
    max_transaction_amount: Decimal = Decimal("1000000000.00")

    # Mail configuration
    mail_backend: str = "log"  # log, smtp or webhook
    mail_from: str = "Vault Bank <no-reply@vault.local>"
    mail_async: bool = True
    mail_timeout: float = 10.0
    smtp_host: str = "localhost"
    smtp_port: int = 587
    smtp_user: Optional[str] = None
    smtp_password: Optional[str] = None
    smtp_starttls: bool = True
    mail_webhook_url: str = ""

    # Logging configuration
    log_level: str = "INFO"
    log_format: str = "json"  # json or text

    class Config:
        env_prefix = "VAULT_"
        env_file = ".env"
        case_sensitive = False

    @property
    def cors_origin_list(self):
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]


# Global configuration instance
config = VaultConfig()


def get_config() -> VaultConfig:
    """Get global configuration instance"""
    return config


def reload_config() -> VaultConfig:
    """Reload configuration from environment"""
    global config
    config = VaultConfig()
    return config
