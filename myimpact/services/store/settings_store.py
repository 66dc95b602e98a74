"""User settings in {data_dir}/settings.json (single object, overwritten on save)."""

import logging
from pathlib import Path

from pydantic import ValidationError
from pydantic_core import PydanticSerializationError

from myimpact.errors import MyImpactError, ParseError, SerializationFailed
from myimpact.models import AppSettings
from myimpact.results import LoadSettingsResult, SaveResult
from myimpact.services.store._io import read_bytes, write_atomic

SETTINGS_FILE = "settings.json"

LOG = logging.getLogger("myimpact.services.store.settings_store")


def _settings_path(data_dir: Path) -> Path:
    return Path(data_dir) / SETTINGS_FILE


def save_settings(data_dir: Path, settings: AppSettings) -> SaveResult:
    """Write settings.json wholesale. Creates the data dir if needed."""
    path = _settings_path(data_dir)
    try:
        try:
            raw = settings.model_dump_json(indent=2)
        except PydanticSerializationError as e:
            raise SerializationFailed(f"Failed to serialize settings: {e}") from e
        write_atomic(path, raw.encode("utf-8"), "settings")
    except MyImpactError as e:
        LOG.warning("%s", e)
        return SaveResult.fail(e)
    LOG.debug("Saved settings to %s", path)
    return SaveResult.ok()


def load_settings(data_dir: Path) -> LoadSettingsResult:
    """Settings from settings.json; defaults when absent, failure when corrupt."""
    path = _settings_path(data_dir)
    try:
        raw = read_bytes(path)
    except OSError as e:
        return LoadSettingsResult.fail(ParseError(f"Failed to read settings: {e}"))
    if raw is None:
        return LoadSettingsResult.ok(AppSettings())
    try:
        settings = AppSettings.model_validate_json(raw)
    except ValidationError as e:
        LOG.warning("Corrupt settings file %s: %s", path, e)
        return LoadSettingsResult.fail(ParseError(f"Failed to parse settings: {e}"))
    return LoadSettingsResult.ok(settings)
