"""Application configuration via Pydantic BaseSettings."""

from functools import lru_cache
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Typed settings for environment-driven configuration."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Freshsales CRM
    freshsales_api_token: Optional[str] = None
    freshsales_base_url: str = "https://ipostal1-org.myfreshworks.com/crm/sales/api"
    freshsales_timeout: float = 5.0

    # Cloud credentials for the knowledge-search function
    aws_access_key_id: Optional[str] = None
    aws_secret_access_key: Optional[str] = None
    aws_region: str = "us-east-2"

    # Knowledge search
    kb_function_name: str = "kb-search"
    kb_search_timeout: float = 8.0
    kb_result_count: int = 5
    kb_top_results: int = 3
    kb_max_passages: int = 2
    kb_min_passage_length: int = 40
    kb_max_passage_length: int = 400
    critical_answers_path: Optional[str] = None

    # Voice platform
    vapi_assistant_id: Optional[str] = None
    company_name: str = "iPostal1"

    debug_mode: bool = False
    log_level: str = "INFO"
    server_host: str = "0.0.0.0"
    server_port: int = 8000

    @property
    def crm_configured(self) -> bool:
        return bool(self.freshsales_api_token)

    @property
    def search_configured(self) -> bool:
        return bool(self.aws_access_key_id and self.aws_secret_access_key)


@lru_cache
def get_settings() -> Settings:
    """Return the process-wide settings instance."""
    return Settings()
