"""Application configuration (Pydantic v2). Load from alttext_config.yml with optional env override."""

import os
from pathlib import Path
from typing import Any, Mapping

import yaml
from pydantic import BaseModel, field_validator


DEFAULT_CONFIG_ENV_VAR = "ALTTEXT_CONFIG"
DEFAULT_CONFIG_FILENAME = "alttext_config.yml"

# Environment variables that override provider credentials when loading the default config.
CREDENTIAL_ENV_VARS = {
    "openai_api_key": "OPENAI_API_KEY",
    "huggingface_api_key": "HUGGINGFACE_API_KEY",
}


class Settings(BaseModel):
    """
    Pipeline config loaded from YAML.

    Provider credentials may be overridden by OPENAI_API_KEY / HUGGINGFACE_API_KEY when loading
    the default config (but not when an explicit config_path is provided).
    """

    model_config = {"extra": "ignore"}

    openai_api_key: str | None = None
    huggingface_api_key: str | None = None
    openai_endpoint: str = "https://api.openai.com/v1/chat/completions"
    openai_model: str = "gpt-4o-mini"
    openai_complex_model: str = "gpt-4o"
    huggingface_endpoint: str = (
        "https://api-inference.huggingface.co/models/Salesforce/blip-image-captioning-large"
    )
    provider_timeout_seconds: float = 60.0
    requests_per_minute: int = 60
    caption_batch_size: int = 4
    caption_batch_delay_seconds: float = 1.0
    bulk_item_delay_seconds: float = 0.1
    min_natural_size: int = 50
    min_data_uri_length: int = 1000
    offscreen_margin: int = 1000
    ocr_language: str = "eng"
    tesseract_cmd: str | None = None
    log_level: str = "INFO"
    forensics_dir: str = "logs/forensics"

    @field_validator("openai_api_key", "huggingface_api_key", mode="before")
    @classmethod
    def blank_key_is_none(cls, v: Any) -> str | None:
        if v is None:
            return None
        s = str(v).strip()
        return s or None

    @field_validator("caption_batch_size", "requests_per_minute")
    @classmethod
    def at_least_one(cls, v: int) -> int:
        if v < 1:
            raise ValueError("must be >= 1")
        return v


_config: Settings | None = None


class ConfigLoader:
    """
    Helper responsible for loading Settings from YAML and environment.

    - load_from_yaml(path, apply_env_override): read a YAML file and optionally apply env overrides.
    - load_default(): resolve the default config path from ALTTEXT_CONFIG / alttext_config.yml and
      apply credential overrides when present.
    """

    def __init__(self, env: Mapping[str, str] | None = None) -> None:
        self._env: Mapping[str, str] = env if env is not None else os.environ

    def _env_overrides(self) -> dict[str, str]:
        return {
            field: self._env[var]
            for field, var in CREDENTIAL_ENV_VARS.items()
            if self._env.get(var)
        }

    def load_from_yaml(self, path: Path, apply_env_override: bool) -> Settings:
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {path}")
        with open(path) as f:
            data = yaml.safe_load(f)
        if not data:
            data = {}
        if apply_env_override:
            data.update(self._env_overrides())
        return Settings.model_validate(data)

    def load_default(self) -> Settings:
        """
        Load the default Settings, using ALTTEXT_CONFIG or alttext_config.yml.

        When no explicit config_path is provided, credential env vars (if set) override the YAML
        values, so deployments can keep keys out of config files.
        """
        path_str = self._env.get(DEFAULT_CONFIG_ENV_VAR) or DEFAULT_CONFIG_FILENAME
        path = Path(path_str)
        if path.exists():
            return self.load_from_yaml(path, apply_env_override=True)
        return Settings.model_validate(self._env_overrides())


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
