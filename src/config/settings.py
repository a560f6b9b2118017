"""Application settings loaded from environment variables via pydantic-settings.

# ─── HOW SETTINGS WORK ────────────────────────────────────────────────
#
# pydantic-settings reads configuration from two sources (priority order):
#
#   1. Environment variables  — e.g. QLOO_API_KEY=abc123 (always wins)
#   2. .env file              — key=value lines in the project root
#
# Field ``qloo_api_key`` maps to env var ``QLOO_API_KEY`` automatically.
#
# One Settings instance is built at startup (src/main.py) and passed into
# every provider constructor.  Nothing else reads os.environ for API keys,
# so tests build their own Settings(...) with whatever values they need.
#
# Empty API keys are legal: the Qloo gateway degrades to mock cultural data
# and the deep / live orchestrators degrade to fallback synthesis.
# ──────────────────────────────────────────────────────────────────────
"""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """CulturePrism application settings.

    Environment variables override defaults. Loaded from .env file when present.
    """

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # === Cultural-Graph API (Qloo) ===
    qloo_api_key: str = ""
    qloo_base_url: str = "https://hackathon.api.qloo.com"

    # === LLM API (OpenAI) ===
    openai_api_key: str = ""
    openai_base_url: str = ""  # OpenAI-compatible endpoint override
    openai_insights_model: str = "gpt-4"
    openai_live_model: str = "gpt-4o"
    openai_market_fit_model: str = "gpt-4o"
    openai_chat_model: str = "gpt-4"
    openai_timeout_seconds: float = 60.0

    # === Auth collaborator (Supabase GoTrue) ===
    supabase_url: str = ""
    supabase_anon_key: str = ""

    # === Persistence ===
    database_path: str = "data/cultureprism.db"
    cache_backend: str = "sqlite"  # "sqlite" or "memory"
    cache_ttl_minutes: int = 30

    # === Retry policy ===
    retry_max_attempts: int = 3
    retry_base_delay_seconds: float = 1.0

    # === HTTP ===
    upstream_timeout_seconds: float = 30.0
    cors_origins: str = "*"  # comma-separated

    # === App Config ===
    app_host: str = "0.0.0.0"
    app_port: int = 8000
    app_env: str = "development"
    log_level: str = "INFO"

    def get_cors_origins(self) -> list[str]:
        """Return the configured CORS origins as a list."""
        origins = [o.strip() for o in self.cors_origins.split(",") if o.strip()]
        return origins or ["*"]

    def get_available_providers(self) -> dict[str, bool]:
        """Report which upstream providers have credentials configured."""
        return {
            "qloo": bool(self.qloo_api_key),
            "openai": bool(self.openai_api_key),
            "auth": bool(self.supabase_url and self.supabase_anon_key),
        }
