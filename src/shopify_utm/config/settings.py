"""Configuration management using Pydantic Settings.

Loads configuration from environment variables with .env file support.
"""

from typing import Optional

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application configuration."""

    # Shopify API Configuration
    shopify_store: Optional[str] = None  # e.g. your-store.myshopify.com
    shopify_access_token: Optional[str] = None
    shopify_api_version: str = "2025-07"
    request_timeout: float = 30.0

    # Server Configuration
    host: str = "0.0.0.0"
    port: int = 3000
    log_level: str = "INFO"
    environment: str = "development"

    # Dashboard Configuration
    api_key: Optional[str] = None
    max_results: int = 2000
    export_max_results: int = 5000
    display_timezone: str = "UTC"

    # GlitchTip Error Monitoring
    glitchtip_dsn: Optional[str] = None

    class Config:
        """Pydantic config."""

        env_file = ".env"
        case_sensitive = False
        extra = "ignore"


# Create a global settings instance
settings = Settings()
