"""Application settings from environment."""
import os
from functools import lru_cache


@lru_cache
def get_settings() -> "Settings":
    return Settings()


class Settings:
    """Central config. Load .env in run_api/cli before using. Settings are @property so they read env at access time."""

    # Upstream AI provider (required)
    @property
    def upstream_url(self) -> str:
        return os.getenv("AI_API_URL", "").strip()

    @property
    def upstream_api_key(self) -> str:
        return os.getenv("AI_API_KEY", "").strip()

    def missing_upstream(self) -> list[str]:
        """Names of required upstream variables that are not set."""
        missing = []
        if not self.upstream_url:
            missing.append("AI_API_URL")
        if not self.upstream_api_key:
            missing.append("AI_API_KEY")
        return missing

    # Server
    @property
    def host(self) -> str:
        return os.getenv("HOST", "127.0.0.1").strip()

    @property
    def port(self) -> int:
        return int(os.getenv("PORT", "3000"))

    @property
    def log_level(self) -> str:
        return os.getenv("LOG_LEVEL", "INFO").strip().upper()

    # API
    @property
    def api_title(self) -> str:
        return os.getenv("API_TITLE", "Chat Relay API").strip()

    @property
    def api_version(self) -> str:
        return os.getenv("API_VERSION", "0.1.0").strip()

    # CORS: comma-separated origins (e.g. http://localhost:3000) or * for all
    @property
    def cors_origins(self) -> list[str]:
        raw = os.getenv("CORS_ORIGINS", "*").strip()
        if not raw or raw == "*":
            return ["*"]
        return [o.strip() for o in raw.split(",") if o.strip()]

    # Terminal client: where the relay server lives
    @property
    def chat_server_url(self) -> str:
        return (os.getenv("CHAT_SERVER_URL", "") or f"http://127.0.0.1:{self.port}").strip().rstrip("/")
