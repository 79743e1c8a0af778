import os
from typing import List, Optional

from dotenv import load_dotenv

# Load env vars (if not already loaded)
load_dotenv()

PLACEHOLDER_API_KEY = "sk-your-api-key-here"


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None or value.strip() == "":
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


class Settings:
    """Runtime configuration read from the environment / .env file."""

    def __init__(self):
        self.database_url = os.getenv("DATABASE_URL", "sqlite:///./course_advisor.db")

        self.llm_api_key: Optional[str] = os.getenv("LLM_API_KEY") or os.getenv("OPENAI_API_KEY")
        self.llm_base_url: Optional[str] = os.getenv("LLM_BASE_URL") or None
        self.llm_model = os.getenv("LLM_MODEL", "gpt-4o-mini")
        self.llm_enabled = _env_bool("LLM_ENABLED", True)
        self.llm_timeout_seconds = float(os.getenv("LLM_TIMEOUT_SECONDS", "30"))

        self.catalog_cache_ttl_seconds = float(os.getenv("CATALOG_CACHE_TTL_SECONDS", "300"))

        origins = os.getenv("ALLOWED_ORIGINS", "http://localhost:3000,http://localhost:8080")
        self.allowed_origins: List[str] = [o.strip() for o in origins.split(",") if o.strip()]

    @property
    def llm_available(self) -> bool:
        """LLM strategies are usable only when enabled and a real key is set."""
        return bool(
            self.llm_enabled
            and self.llm_api_key
            and self.llm_api_key != PLACEHOLDER_API_KEY
        )


settings = Settings()
