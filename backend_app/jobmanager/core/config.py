"""
Consolidated configuration for the JobManager Pro API.
Single pydantic-settings model read from the environment and `.env`.
"""
from typing import Dict, List, Optional, Any
from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field


# Backend names understood by the data gateway, in default fallback order
KNOWN_BACKENDS = ("cosmos", "api", "local")


class AppConfig(BaseSettings):
    """
    Single source of truth for all application configuration.
    """

    model_config = SettingsConfigDict(
        extra="ignore",
        env_file=".env",
        case_sensitive=False,
    )

    # Environment
    environment: str = Field("development")
    debug: bool = Field(False)
    app_name: str = Field("BlindsCloud")
    app_description: str = Field("Professional Blinds Business Management Platform")
    app_version: str = Field("1.3.0")

    # Domains
    production_domain: str = Field("blindscloud.co.uk")
    staging_domain: str = Field("staging.blindscloud.co.uk")
    development_domain: str = Field("localhost:5173")
    frontend_url: Optional[str] = Field(None)

    # Data backends, tried left to right
    data_backends: str = Field("cosmos,api,local")

    # Cosmos DB (primary database, optional)
    cosmos_enabled: bool = Field(True)
    cosmos_endpoint: Optional[str] = Field(None)
    cosmos_key: Optional[str] = Field(None)
    cosmos_database: str = Field("JobManagerDB")
    cosmos_prefix: str = Field("jm_")
    cosmos_create_containers: bool = Field(False)

    # Remote REST API (secondary backend, optional)
    api_enabled: bool = Field(True)
    api_base_url: Optional[str] = Field(None)
    api_token: Optional[str] = Field(None)
    api_timeout_seconds: float = Field(10.0)
    api_retry_attempts: int = Field(3, ge=1)
    api_retry_wait_seconds: float = Field(0.5, ge=0)

    # Local JSON store (last resort, always available)
    local_store_path: str = Field("data/local_store.json")

    # Authentication
    jwt_secret_key: str = Field(...)
    jwt_algorithm: str = Field("HS256")
    jwt_access_token_expire_minutes: int = Field(60 * 12)

    # CORS - set CORS_ORIGINS to the frontend domain(s) in production
    cors_origins: str = Field("http://localhost:5173,http://localhost:3000")

    # Email
    email_from_name: str = Field("BlindsCloud")
    email_from_address: str = Field("admin@blindscloud.co.uk")
    support_email: str = Field("support@blindscloud.co.uk")
    smtp_host: Optional[str] = Field(None)
    smtp_port: int = Field(587)
    smtp_username: Optional[str] = Field(None)
    smtp_password: Optional[str] = Field(None)
    smtp_use_tls: bool = Field(True)

    # Startup
    seed_demo_data: bool = Field(True)

    # Model converter
    conversion_step_delay_seconds: float = Field(1.0)

    @property
    def data_backends_list(self) -> List[str]:
        """Parse the backend order, dropping unknown or duplicate names"""
        order: List[str] = []
        for name in self.data_backends.split(","):
            name = name.strip().lower()
            if name in KNOWN_BACKENDS and name not in order:
                order.append(name)
        if "local" not in order:
            order.append("local")
        return order

    @property
    def cosmos_containers(self) -> Dict[str, str]:
        """Map collection names to prefixed Cosmos container names"""
        from ..services.storage.collections import COLLECTIONS

        return {name: f"{self.cosmos_prefix}{name}" for name in COLLECTIONS}

    @property
    def cors_origins_list(self) -> List[str]:
        """Parse CORS origins from comma-separated string"""
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    @property
    def is_production(self) -> bool:
        return self.environment.lower() in ("production", "prod")

    @property
    def email_settings(self) -> Dict[str, Any]:
        return {
            "from_name": self.email_from_name,
            "from_email": self.email_from_address,
            "support_email": self.support_email,
            "smtp_host": self.smtp_host,
        }

    def get_environment(self, hostname: str) -> str:
        """Classify a request hostname as production, staging or development"""
        host = (hostname or "").split(":")[0].lower()
        if host == self.production_domain.split(":")[0].lower():
            return "production"
        if host == self.staging_domain.split(":")[0].lower():
            return "staging"
        return "development"

    def get_api_url(self, hostname: str = "") -> str:
        """Explicit API_BASE_URL wins, otherwise derive from the environment"""
        if self.api_base_url:
            return self.api_base_url.rstrip("/")
        env = self.get_environment(hostname) if hostname else self.environment.lower()
        if env == "production":
            return f"https://api.{self.production_domain}/api"
        if env == "staging":
            return f"https://api-{self.staging_domain}/api"
        return "http://localhost:3001/api"

    def get_frontend_url(self, hostname: str = "", scheme: str = "https") -> str:
        if self.frontend_url:
            return self.frontend_url.rstrip("/")
        env = self.get_environment(hostname) if hostname else self.environment.lower()
        if env == "production":
            return f"{scheme}://{self.production_domain}"
        if env == "staging":
            return f"{scheme}://{self.staging_domain}"
        return f"http://{self.development_domain}"


@lru_cache()
def get_config() -> AppConfig:
    """
    Get application configuration.

    Uses @lru_cache to ensure single instance; tests call get_config.cache_clear()
    after changing the environment.
    """
    return AppConfig()
