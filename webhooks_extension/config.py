"""Application configuration loaded from the environment"""

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables"""

    # Application
    app_name: str = "Tekton Webhooks Extension API"
    port: int = Field(
        default=8080,
        description="Port the API listens on"
    )
    log_level: str = Field(
        default="INFO",
        description="Root logging level"
    )

    # Cluster
    installed_namespace: str = Field(
        default="",
        description="Namespace the extension is installed in"
    )
    platform: str = Field(
        default="",
        description="Target platform, 'openshift' selects routes over ingresses"
    )

    # Webhooks
    webhook_callback_url: str = Field(
        default="",
        description="Public URL the Git provider delivers events to"
    )
    ssl_verification_enabled: bool = Field(
        default=True,
        description="Verify TLS certificates on Git provider API calls"
    )

    # Static bundle
    web_resources_dir: str = Field(
        default="",
        description="Directory served under /web/"
    )

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"

    @property
    def is_openshift(self) -> bool:
        return "openshift" in self.platform.lower()


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()


settings = get_settings()
