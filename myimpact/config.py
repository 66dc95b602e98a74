"""Configuration loading from YAML and environment.

The OpenAI key may come from settings.json (saved by the user), from the
environment, or from a file path in the environment (Docker secrets). Never
put real keys in config files committed to a repo.
"""

from pathlib import Path
from typing import Any

import yaml
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from myimpact.services.gh.locator import DEFAULT_SEARCH_PATHS


def _read_secret(env_key: str, file_env_key: str) -> str | None:
    """Read secret from env var or from file path in env (e.g. Docker
    secrets)."""
    value = _current_env.get(env_key)
    if value:
        return value.strip()
    file_path = _current_env.get(file_env_key)
    if file_path:
        return Path(file_path).read_text().strip()
    return None


# Injected by load_config so validators can read env/file
_current_env: dict[str, str] = {}


class StorageConfig(BaseSettings):
    """Where settings.json and reports.json live."""

    model_config = SettingsConfigDict(env_prefix="MYIMPACT_", extra="ignore")

    data_dir: Path = Field(
        default_factory=lambda: Path.home() / ".myimpact",
        description="Directory holding settings.json and reports.json (created on first write)",
    )

    @field_validator("data_dir", mode="after")
    @classmethod
    def expand_user(cls, value: Path) -> Path:
        return value.expanduser()


class GhConfig(BaseSettings):
    """GitHub CLI lookup and invocation."""

    model_config = SettingsConfigDict(env_prefix="MYIMPACT_GH_", extra="ignore")

    command: str = Field(default="gh", description="Program name resolved via PATH when not in search_paths")
    search_paths: list[str] = Field(
        default_factory=lambda: list(DEFAULT_SEARCH_PATHS),
        description="Well-known install locations checked in order before PATH",
    )
    timeout: float | None = Field(default=None, ge=1, description="Seconds; None waits for the CLI to finish")


class OpenAIConfig(BaseSettings):
    """Chat-completions endpoint used for summaries."""

    model_config = SettingsConfigDict(env_prefix="OPENAI_", extra="ignore")

    api_url: str = Field(
        default="https://api.openai.com/v1/chat/completions",
        description="Chat-completions endpoint URL",
    )
    model: str = Field(default="gpt-4o-mini", description="Model identifier sent with each request")
    max_tokens: int = Field(default=2000, ge=1, description="Maximum output tokens")
    temperature: float = Field(default=0.7, ge=0, le=2, description="Sampling temperature")
    timeout: float | None = Field(default=None, ge=1, description="Seconds; None leaves the request unbounded")
    api_key: str | None = Field(default=None, description="API key; prefer settings.json, env or secret file")


class LoggingConfig(BaseSettings):
    """Logging settings."""

    model_config = SettingsConfigDict(env_prefix="LOGGING_", extra="ignore")

    level: str = Field(default="INFO", description="Log level")
    format: str = Field(
        default="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        description="Log format",
    )


class AppConfig(BaseSettings):
    """Root application config from YAML + env."""

    model_config = SettingsConfigDict(extra="ignore")

    storage: StorageConfig = Field(default_factory=StorageConfig)
    gh: GhConfig = Field(default_factory=GhConfig)
    openai: OpenAIConfig = Field(default_factory=OpenAIConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @property
    def openai_api_key_resolved(self) -> str | None:
        """Resolve OpenAI key from config, env or Docker secret file."""
        k = self.openai.api_key
        if k and k.strip() and not k.startswith("${"):
            return k.strip()
        return _read_secret("OPENAI_API_KEY", "OPENAI_API_KEY_FILE")


def _substitute_env(value: Any) -> Any:
    """Replace ${VAR} and $VAR in strings with os.environ."""
    if isinstance(value, str):
        if value.startswith("${") and value.endswith("}"):
            key = value[2:-1].strip()
            return _current_env.get(key, value)
        if value.startswith("$") and not value.startswith("${"):
            key = value[1:].strip()
            return _current_env.get(key, value)
        return value
    if isinstance(value, dict):
        return {k: _substitute_env(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_substitute_env(v) for v in value]
    return value


def load_config(config_path: Path | None = None) -> AppConfig:
    """Load config from YAML file and environment.

    A missing file yields defaults (plus env). Secrets: OPENAI_API_KEY or
    OPENAI_API_KEY_FILE.
    """
    global _current_env
    import os

    _current_env = dict(os.environ)

    path = config_path or Path("config.yaml")
    if not path.is_file():
        return AppConfig()

    raw = yaml.safe_load(path.read_text()) or {}
    raw = _substitute_env(raw)

    # Env override for the data dir wins over the file
    storage_raw = raw.get("storage") or {}
    if _current_env.get("MYIMPACT_DATA_DIR"):
        storage_raw = {**storage_raw, "data_dir": _current_env["MYIMPACT_DATA_DIR"]}

    return AppConfig(
        storage=StorageConfig(**storage_raw),
        gh=GhConfig(**(raw.get("gh") or {})),
        openai=OpenAIConfig(**(raw.get("openai") or {})),
        logging=LoggingConfig(**(raw.get("logging") or {})),
    )
