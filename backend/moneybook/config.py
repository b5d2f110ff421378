"""
Application configuration using Pydantic settings.
"""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings."""

    # App
    app_name: str = "Moneybook"
    environment: str = "development"  # development, production
    log_level: str = "INFO"

    # Database
    database_url: str = "sqlite:///./moneybook.db"
    db_pool_size: int = 10
    db_max_overflow: int = 0
    db_pool_timeout: int = 5  # seconds to wait for a pooled connection
    auto_create_tables: bool = True

    # Tokens
    jwt_secret: str = "change-me-in-production"
    jwt_algorithm: str = "HS256"
    jwt_issuer: str = "moneybook-api"
    jwt_audience: str = "moneybook-clients"
    jwt_expires_minutes: int = 60 * 24 * 7

    # Passwords
    bcrypt_rounds: int = 12

    # Rate limits
    auth_rate_limit: int = 20
    auth_rate_window_seconds: int = 15 * 60
    api_rate_limit: int = 300
    api_rate_window_seconds: int = 15 * 60
    transaction_create_limit: int = 5
    transaction_create_window_seconds: int = 60

    # Request bodies and uploads
    max_json_body_bytes: int = 5000
    upload_dir: str = "./uploads"
    max_photo_bytes: int = 5 * 1024 * 1024

    # Server
    api_host: str = "0.0.0.0"
    api_port: int = 8000
    frontend_url: str = "http://localhost:5173"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @property
    def is_development(self) -> bool:
        return self.environment.lower() == "development"

    @property
    def photo_dir(self) -> str:
        return f"{self.upload_dir.rstrip('/')}/profile-photos"


# Global settings instance
settings = Settings()
