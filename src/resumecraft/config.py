from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from dotenv import load_dotenv
from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

load_dotenv()


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    app_name: str = "Resumecraft"
    app_env: str = "development"
    app_host: str = "127.0.0.1"
    app_port: int = 8787
    log_level: str = "INFO"

    secret_key: str = "change-me"
    jwt_algorithm: str = "HS256"
    session_ttl_min: int = 60 * 24 * 7
    auth_cookie_name: str = "auth-token"

    database_url: str = "sqlite:///./data/resumecraft.db"
    data_dir: Path = Path("./data")

    openai_api_key: str = ""
    openai_base_url: str = "https://api.openai.com/v1"
    openai_model_optimizer: str = "gpt-5"
    openai_model_writer: str = "gpt-5-mini"
    openai_model_extractor: str = "gpt-5-mini"
    openai_timeout_sec: int = 120

    local_llm_enabled: bool = False
    local_llm_base_url: str = "http://localhost:11434/v1"
    local_llm_api_key: str = "local"
    local_llm_model: str = "qwen2.5:14b-instruct"
    local_llm_timeout_sec: int = 180

    llm_router_default: str = "openai"
    llm_router_optimize_provider: str = "openai"
    llm_router_cover_letter_provider: str = "openai"
    llm_router_skills_provider: str = "openai"
    llm_router_create_provider: str = "openai"

    cover_letter_ordering: str = "sequential"
    max_job_description_chars: int = 20000
    max_resume_bytes: int = 5 * 1024 * 1024

    bootstrap_admin_email: str = ""
    bootstrap_admin_password: str = ""
    bootstrap_admin_name: str = "Administrator"

    cors_origins: str = "http://127.0.0.1:8787"

    @field_validator("app_env")
    @classmethod
    def validate_env(cls, value: str) -> str:
        allowed = {"development", "staging", "production", "test"}
        if value not in allowed:
            raise ValueError(f"app_env must be one of {sorted(allowed)}")
        return value

    @field_validator("cover_letter_ordering")
    @classmethod
    def validate_ordering(cls, value: str) -> str:
        allowed = {"sequential", "parallel"}
        if value not in allowed:
            raise ValueError(f"cover_letter_ordering must be one of {sorted(allowed)}")
        return value

    @property
    def cors_origin_list(self) -> list[str]:
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
