"""Application configuration (Pydantic v2). Load from alttext_config.yml with optional env override."""

import os
from pathlib import Path
from typing import Any, Mapping

import yaml
from pydantic import BaseModel, field_validator


DEFAULT_DATABASE_URL = "postgresql+psycopg2://localhost/alttext"
DEFAULT_CONFIG_ENV_VAR = "ALTTEXT_CONFIG"
DEFAULT_CONFIG_FILENAME = "alttext_config.yml"
DEFAULT_GEMINI_ENDPOINT = "https://generativelanguage.googleapis.com/v1beta"
DEFAULT_GEMINI_MODEL = "gemini-1.5-flash"

# Environment variable -> Settings field. Applied when loading the default config only.
ENV_OVERRIDES = {
    "DATABASE_URL": "database_url",
    "GEMINI_API_KEY": "gemini_api_key",
}


class Settings(BaseModel):
    """
    Service config loaded from YAML.

    When loading the default config, DATABASE_URL and GEMINI_API_KEY from the environment
    override the YAML values (but not when an explicit config_path is provided).
    """

    model_config = {"extra": "ignore"}

    database_url: str = DEFAULT_DATABASE_URL
    log_level: str = "INFO"
    provider: str = "gemini"
    gemini_api_key: str | None = None
    gemini_model: str = DEFAULT_GEMINI_MODEL
    gemini_endpoint: str = DEFAULT_GEMINI_ENDPOINT
    fetch_timeout_seconds: float = 30.0
    api_timeout_seconds: float = 60.0
    max_background_workers: int = 4

    @field_validator("gemini_api_key", mode="before")
    @classmethod
    def blank_key_is_none(cls, v: Any) -> str | None:
        if v is None:
            return None
        v = str(v).strip()
        return v or None

    @field_validator("max_background_workers")
    @classmethod
    def at_least_one_worker(cls, v: int) -> int:
        return max(1, v)


_config: Settings | None = None


class ConfigLoader:
    """
    Helper responsible for loading Settings from YAML and environment.

    - load_from_yaml(path, apply_env_override): read a YAML file and optionally apply env overrides.
    - load_default(): resolve the default config path from ALTTEXT_CONFIG / alttext_config.yml and
      apply environment overrides when present.
    """

    def __init__(self, env: Mapping[str, str] | None = None) -> None:
        self._env: Mapping[str, str] = env if env is not None else os.environ

    def _apply_env(self, data: dict[str, Any]) -> dict[str, Any]:
        for env_name, field in ENV_OVERRIDES.items():
            if self._env.get(env_name):
                data[field] = self._env[env_name]
        return data

    def load_from_yaml(self, path: Path, apply_env_override: bool) -> Settings:
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {path}")
        with open(path) as f:
            data = yaml.safe_load(f)
        if not data:
            data = {}
        if apply_env_override:
            data = self._apply_env(data)
        return Settings.model_validate(data)

    def load_default(self) -> Settings:
        """
        Load the default Settings, using ALTTEXT_CONFIG or alttext_config.yml.

        Environment overrides keep connection strings and the provider secret out of
        the YAML file in deployments.
        """
        path_str = self._env.get(DEFAULT_CONFIG_ENV_VAR) or DEFAULT_CONFIG_FILENAME
        path = Path(path_str)
        if path.exists():
            return self.load_from_yaml(path, apply_env_override=True)
        return Settings.model_validate(self._apply_env({}))


_loader = ConfigLoader()


def get_config(config_path: str | Path | None = None) -> Settings:
    """
    Return singleton config.

    - If config_path is given, load from it (without env overrides) and update the cache.
    - Otherwise, return the cached config if available, or load via ConfigLoader.load_default().
    """
    global _config
    if config_path is not None:
        _config = _loader.load_from_yaml(Path(config_path), apply_env_override=False)
        return _config
    if _config is not None:
        return _config
    _config = _loader.load_default()
    return _config


def reset_config() -> None:
    """Clear cached config (for tests)."""
    global _config
    _config = None
