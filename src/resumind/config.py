from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from dotenv import load_dotenv
from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

load_dotenv()


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    app_name: str = "Resumind"
    app_env: str = "development"
    app_host: str = "127.0.0.1"
    app_port: int = 8787
    log_level: str = "INFO"

    database_url: str = "sqlite:///./data/resumind.db"
    data_dir: Path = Path("./data")
    upload_dir: Path = Path("./data/uploads")

    ai_api_key: str = ""
    ai_base_url: str = "https://api.cerebras.ai/v1"
    ai_model: str = "gpt-oss-120b"
    ai_chat_model: str = "zai-glm-4.6"
    ai_temperature: float = 0.6
    ai_top_p: float = 1.0
    ai_max_completion_tokens: int = 65536
    ai_chat_max_completion_tokens: int = 50000
    ai_timeout_sec: float = 25.0
    ai_long_timeout_sec: float = 30.0

    pdf_service_url: str = "http://localhost:8000"
    pdf_health_timeout_sec: float = 2.0
    pdf_convert_timeout_sec: float = 120.0
    preview_scale: float = 2.0

    job_reader_url: str = "https://r.jina.ai/"
    job_fetch_timeout_sec: float = 20.0

    latex_compile_url: str = "https://latexonline.cc/compile"
    latex_compile_timeout_sec: float = 15.0

    session_cookie_name: str = "session_token"
    session_ttl_min: int = 60 * 24 * 30
    disable_rate_limiting: bool = False
    cors_origins: str = "http://127.0.0.1:8787"

    @field_validator("app_env")
    @classmethod
    def validate_env(cls, value: str) -> str:
        allowed = {"development", "staging", "production", "test"}
        if value not in allowed:
            raise ValueError(f"app_env must be one of {sorted(allowed)}")
        return value

    @property
    def cors_origin_list(self) -> list[str]:
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
