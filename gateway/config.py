from pydantic import BaseModel, Field
from typing import List
import os


class ConfigError(RuntimeError):
    pass


def _split_origins(raw: str) -> List[str]:
    # trailing slashes are dropped so "https://a.app/" matches "https://a.app"
    return [o.strip().rstrip("/") for o in raw.split(",") if o.strip()]


class Settings(BaseModel):
    port: int = int(os.getenv("PORT", 8080))
    service_name: str = os.getenv("SERVICE_NAME", "vanta-protocol-backend")
    cors_origins: List[str] = Field(
        default_factory=lambda: _split_origins(os.getenv("CORS_ORIGINS", "https://vantaprotocol.app"))
    )
    llm_provider: str = os.getenv("LLM_PROVIDER", "openai")
    openai_api_key: str | None = os.getenv("OPENAI_API_KEY")
    openai_model: str = os.getenv("OPENAI_MODEL", "gpt-4o-mini")
    ollama_base_url: str = os.getenv("OLLAMA_BASE_URL", "http://localhost:11434")
    rate_limit_per_minute: int = int(os.getenv("RATE_LIMIT_PER_MINUTE", 60))
    rate_limit_window_seconds: int = 60
    max_upload_bytes: int = int(os.getenv("MAX_UPLOAD_BYTES", 4 * 1024 * 1024))
    max_json_bytes: int = int(os.getenv("MAX_JSON_BYTES", 2 * 1024 * 1024))
    log_level: str = os.getenv("LOG_LEVEL", "INFO")

    def check(self) -> "Settings":
        if self.llm_provider.lower() == "openai" and not self.openai_api_key:
            raise ConfigError("Missing OPENAI_API_KEY in environment")
        return self


settings = Settings()
