"""
Helpdesk Workflow Configuration Settings
"""
import os
from typing import List
from dataclasses import dataclass, field

from dotenv import load_dotenv


def get_env(key: str, default: str = "") -> str:
    """Get environment variable with default value"""
    return os.getenv(key, default)


def get_env_int(key: str, default: int = 0) -> int:
    """Get environment variable as integer"""
    try:
        return int(os.getenv(key, str(default)))
    except ValueError:
        return default


def get_env_bool(key: str, default: bool = False) -> bool:
    """Get environment variable as boolean"""
    value = os.getenv(key, str(default)).lower()
    return value in ('true', '1', 'yes', 'on')


def get_env_list(key: str, default: str = "") -> List[str]:
    """Get comma separated environment variable as a list"""
    return [item.strip() for item in os.getenv(key, default).split(",") if item.strip()]


@dataclass
class DatabaseSettings:
    """Database configuration settings"""

    database_url: str = field(default_factory=lambda: get_env("DATABASE_URL", "sqlite:///./helpdesk.db"))

    # Connection pool settings (ignored for SQLite)
    database_pool_size: int = field(default_factory=lambda: get_env_int("DATABASE_POOL_SIZE", 10))
    database_max_overflow: int = field(default_factory=lambda: get_env_int("DATABASE_MAX_OVERFLOW", 20))
    database_pool_timeout: int = field(default_factory=lambda: get_env_int("DATABASE_POOL_TIMEOUT", 30))


@dataclass
class SecuritySettings:
    """Security configuration settings"""

    jwt_secret_key: str = field(default_factory=lambda: get_env("JWT_SECRET_KEY", "dev-jwt-secret-change-in-production"))
    jwt_algorithm: str = field(default_factory=lambda: get_env("JWT_ALGORITHM", "HS256"))
    jwt_expire_minutes: int = field(default_factory=lambda: get_env_int("JWT_EXPIRE_MINUTES", 60 * 24))


@dataclass
class WorkflowSettings:
    """Ticket workflow and notification settings"""

    # Read notifications older than this are removed by the cleanup sweep
    notification_retention_days: int = field(default_factory=lambda: get_env_int("NOTIFICATION_RETENTION_DAYS", 30))
    notification_page_size: int = field(default_factory=lambda: get_env_int("NOTIFICATION_PAGE_SIZE", 50))

    # Attempts to allocate a ticket number before giving up on unique conflicts
    ticket_number_max_retries: int = field(default_factory=lambda: get_env_int("TICKET_NUMBER_MAX_RETRIES", 3))


@dataclass
class AppSettings:
    """Application configuration settings"""

    app_name: str = field(default_factory=lambda: get_env("APP_NAME", "IT Helpdesk Workflow"))
    app_version: str = field(default_factory=lambda: get_env("APP_VERSION", "1.0.0"))
    debug: bool = field(default_factory=lambda: get_env_bool("DEBUG", False))
    log_level: str = field(default_factory=lambda: get_env("LOG_LEVEL", "INFO"))
    log_dir: str = field(default_factory=lambda: get_env("LOG_DIR", "logs"))

    host: str = field(default_factory=lambda: get_env("HOST", "0.0.0.0"))
    port: int = field(default_factory=lambda: get_env_int("PORT", 4000))
    cors_origins: List[str] = field(
        default_factory=lambda: get_env_list("CORS_ORIGINS", "http://localhost:4200,http://localhost:4000")
    )


@dataclass
class Settings:
    """Main settings class that combines all configuration sections"""

    database: DatabaseSettings = field(default_factory=DatabaseSettings)
    security: SecuritySettings = field(default_factory=SecuritySettings)
    workflow: WorkflowSettings = field(default_factory=WorkflowSettings)
    app: AppSettings = field(default_factory=AppSettings)


# Load .env file if it exists
load_dotenv()

# Global settings instance
settings = Settings()
