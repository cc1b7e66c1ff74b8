"""Configuration management using Pydantic Settings"""

from typing import List
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration loaded from environment variables"""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # Local cache database
    database_url: str = "sqlite:///./wallet_cache.db"

    # Wallet provider environments
    provider_development_url: str = "https://sandbox.tropipay.com/api/v3"
    provider_production_url: str = "https://www.tropipay.com/api/v3"
    default_environment: str = "development"
    demo_environments: List[str] = ["development"]
    demo_sms_code: str = "123456"
    device_id: str = "wallet-sync-gateway"  # Required by the provider on authenticated calls

    # Service
    service_name: str = "wallet-sync-gateway"
    log_level: str = "INFO"

    # HTTP Client
    http_timeout_seconds: float = 10.0

    # Sync
    beneficiary_page_limit: int = 50

    def provider_urls(self) -> dict[str, str]:
        """Map of environment name to provider API base URL"""
        return {
            "development": self.provider_development_url,
            "production": self.provider_production_url,
        }


settings = Settings()
