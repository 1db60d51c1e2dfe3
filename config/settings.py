from __future__ import annotations

import os
from functools import lru_cache
from typing import Optional

from dotenv import load_dotenv


load_dotenv()


class Settings:
    """Application settings loaded from environment variables.

    Keep all credentials and config centralized here. An unset
    OPENAI_API_KEY is valid: the agent then answers from canned replies only.
    """

    def __init__(self) -> None:
        self.app_env: str = os.getenv("APP_ENV", "development")
        self.log_level: str = os.getenv("LOG_LEVEL", "INFO").upper()
        self.openai_api_key: Optional[str] = os.getenv("OPENAI_API_KEY") or None
        self.openai_base_url: str = os.getenv(
            "OPENAI_BASE_URL", "https://api.openai.com/v1"
        )
        self.openai_model: str = os.getenv("OPENAI_MODEL", "gpt-3.5-turbo")
        self.temperature: float = float(os.getenv("MODEL_TEMPERATURE", "0.7"))
        self.max_tokens: int = int(os.getenv("MAX_REPLY_TOKENS", "150"))
        self.completion_timeout: float = float(os.getenv("COMPLETION_TIMEOUT", "10.0"))


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
