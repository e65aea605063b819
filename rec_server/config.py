"""
Server Configuration

Loads configuration from environment variables and provides defaults.
Supports loading from .env file using python-dotenv.
"""

import json
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

from recommender.models.config import RecommendationConfig

BASE_DIR = Path(__file__).resolve().parent.parent

# Single .env at the project root
_root_env = BASE_DIR / ".env"
if _root_env.exists():
    load_dotenv(_root_env)

DATA_SOURCES = ("memory", "json", "firebase")

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(level: str = "INFO") -> None:
    """Install a basic root handler; repeated calls only adjust the level."""
    logging.basicConfig(level=level.upper(), format=LOG_FORMAT)
    logging.getLogger().setLevel(level.upper())


@dataclass
class ServerConfig:
    """Server configuration."""

    # Server settings
    host: str = "0.0.0.0"
    port: int = 8000
    log_level: str = "INFO"

    # Data source: "memory" | "json" | "firebase"
    data_source: str = "memory"
    # When data_source=json: paths to content, signals, and users JSON files
    content_json_path: Optional[Path] = None
    signals_json_path: Optional[Path] = None
    users_json_path: Optional[Path] = None
    # When data_source=firebase: path to service account JSON and optional project id
    firebase_credentials_path: Optional[Path] = None
    firebase_project_id: Optional[str] = None

    # Session behavior and trending snapshots go to Redis when set, else in-memory
    redis_url: Optional[str] = None

    # Optional JSON document merged over RecommendationConfig defaults
    recommendation_config_path: Optional[Path] = None

    # Background trending recomputation interval (6 h)
    trending_refresh_seconds: int = 6 * 3600
    # In-memory session cache sweep interval
    session_sweep_seconds: int = 300

    @classmethod
    def from_env(cls) -> "ServerConfig":
        """Load configuration from environment variables."""
        data_source = os.getenv("DATA_SOURCE", "").strip().lower() or "memory"
        if data_source not in DATA_SOURCES:
            data_source = "memory"

        def _path_env(key: str, default: Optional[Path] = None) -> Optional[Path]:
            v = os.getenv(key)
            if not v:
                return default
            p = Path(v)
            return p if p.is_absolute() else (BASE_DIR / p).resolve()

        return cls(
            host=os.getenv("HOST", "0.0.0.0"),
            port=int(os.getenv("PORT", "8000")),
            log_level=os.getenv("LOG_LEVEL", "INFO"),
            data_source=data_source,
            content_json_path=_path_env("CONTENT_JSON_PATH"),
            signals_json_path=_path_env("SIGNALS_JSON_PATH"),
            users_json_path=_path_env("USERS_JSON_PATH", BASE_DIR / "data" / "users.json"),
            firebase_credentials_path=_path_env("FIREBASE_CREDENTIALS_PATH") or _path_env("GOOGLE_APPLICATION_CREDENTIALS"),
            firebase_project_id=os.getenv("FIREBASE_PROJECT_ID") or None,
            redis_url=os.getenv("REDIS_URL") or None,
            recommendation_config_path=_path_env("RECOMMENDATION_CONFIG_PATH"),
            trending_refresh_seconds=int(os.getenv("TRENDING_REFRESH_SECONDS", str(6 * 3600))),
            session_sweep_seconds=int(os.getenv("SESSION_SWEEP_SECONDS", "300")),
        )

    def validate(self) -> tuple[bool, list[str]]:
        """
        Validate the configuration.

        Returns:
            (is_valid, list_of_errors)
        """
        errors = []
        if self.data_source == "json":
            if not self.content_json_path or not self.content_json_path.exists():
                errors.append(f"CONTENT_JSON_PATH not found: {self.content_json_path}")
            if self.signals_json_path and not self.signals_json_path.exists():
                errors.append(f"SIGNALS_JSON_PATH not found: {self.signals_json_path}")
        if self.recommendation_config_path and not self.recommendation_config_path.exists():
            errors.append(f"RECOMMENDATION_CONFIG_PATH not found: {self.recommendation_config_path}")
        if self.trending_refresh_seconds <= 0:
            errors.append("TRENDING_REFRESH_SECONDS must be positive")
        return len(errors) == 0, errors

    def load_recommendation_config(self) -> RecommendationConfig:
        """RecommendationConfig from recommendation_config_path, or defaults."""
        if not self.recommendation_config_path:
            return RecommendationConfig()
        with open(self.recommendation_config_path) as f:
            return RecommendationConfig.from_dict(json.load(f))


# Global config instance
_config: Optional[ServerConfig] = None


def get_config() -> ServerConfig:
    """Get the global configuration instance."""
    global _config
    if _config is None:
        _config = ServerConfig.from_env()
    return _config


def reload_config() -> ServerConfig:
    """Reload configuration from environment."""
    global _config
    _config = None
    return get_config()
