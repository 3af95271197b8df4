"""Settings Manager - Handles API endpoints, credentials and runtime configuration."""

import os
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

DEFAULT_API_URL = "http://localhost:3002"
DEFAULT_TIMEOUT = 30.0
GENERATION_BACKENDS = ("http", "gemini")


class SettingsManager:
    """
    Manages settings read from the environment.

    Values come from a .env file in the project root (loaded without
    overriding variables already set in the process environment).
    """

    def __init__(self, project_root: Optional[Path] = None):
        """
        Initialize settings manager.

        Args:
            project_root: Path to project root where .env is located.
                         If None, resolves upward from this file.
        """
        if project_root is None:
            current = Path(__file__).resolve()
            project_root = current.parent.parent.parent.parent

        env_path = project_root / ".env"
        load_dotenv(dotenv_path=env_path)

        self._project_root = project_root

    def get_gemini_api_key(self) -> Optional[str]:
        """Get the Gemini API key from environment."""
        key = os.getenv("GEMINI_API_KEY")
        return key.strip() if key and key.strip() else None

    def get_api_url(self) -> str:
        url = os.getenv("VOCAB_FORGE_API_URL", "").strip()
        return (url or DEFAULT_API_URL).rstrip("/")

    def get_db_path(self) -> Path:
        """Location of the local SQLite cache."""
        raw = os.getenv("VOCAB_FORGE_DB_PATH", "").strip()
        if raw:
            return Path(raw).expanduser()
        return Path.home() / ".vocab_forge" / "cache.db"

    def get_request_timeout(self) -> float:
        raw = os.getenv("VOCAB_FORGE_TIMEOUT", "").strip()
        if not raw:
            return DEFAULT_TIMEOUT
        try:
            timeout = float(raw)
        except ValueError:
            return DEFAULT_TIMEOUT
        return timeout if timeout > 0 else DEFAULT_TIMEOUT

    def get_generation_backend(self) -> str:
        """Either "http" (server proxies the model) or "gemini" (direct calls)."""
        backend = os.getenv("VOCAB_FORGE_GENERATION_BACKEND", "").strip().lower()
        return backend if backend in GENERATION_BACKENDS else "http"

    def get_log_level(self) -> str:
        return os.getenv("VOCAB_FORGE_LOG_LEVEL", "INFO").strip().upper() or "INFO"

    def reload_env(self) -> None:
        """Reload environment variables from .env file."""
        env_path = self._project_root / ".env"
        load_dotenv(dotenv_path=env_path, override=True)
