from functools import lru_cache
from typing import Literal, Optional

from pydantic_settings import BaseSettings

DEFAULT_PROXY_SECRET = "changeme123"


class Settings(BaseSettings):
    # Upstream selection
    upstream: Literal["openrouter", "gemini"] = "openrouter"

    # OpenRouter
    openrouter_api_key: Optional[str] = None
    openrouter_url: str = "https://openrouter.ai/api/v1/chat/completions"
    openrouter_vision_model: str = "openai/gpt-4o-mini"

    # Gemini
    gemini_api_key: Optional[str] = None
    gemini_base_url: str = "https://generativelanguage.googleapis.com/v1beta"
    gemini_model: str = "gemini-2.0-flash"

    # Server
    proxy_secret: str = DEFAULT_PROXY_SECRET
    host: str = "0.0.0.0"
    port: int = 3000
    body_size_limit: int = 10 * 1024 * 1024  # base64 images are large
    upstream_timeout_seconds: float = 60.0

    # Static generation parameters (not client-controlled)
    temperature: float = 0.8
    top_p: float = 0.95
    max_output_tokens: int = 1024

    # Shape of the /cassidy reply: raw upstream text, OpenAI choices, or {"reply": ...}
    chat_envelope: Literal["raw", "openai", "flat"] = "openai"

    # Memory bank
    memory_enabled: bool = True
    memory_path: str = "data/memory.json"
    persona_name: str = "Cassidy"

    log_level: str = "INFO"

    model_config = {"env_file": ".env", "extra": "ignore", "frozen": True}

    @property
    def api_key(self) -> Optional[str]:
        """API key for whichever upstream is configured."""
        if self.upstream == "gemini":
            return self.gemini_api_key
        return self.openrouter_api_key

    @property
    def uses_default_secret(self) -> bool:
        return self.proxy_secret == DEFAULT_PROXY_SECRET


@lru_cache
def get_settings() -> Settings:
    return Settings()
