"""Saved reports in {data_dir}/reports.json as one JSON array.

Every write loads the whole collection, changes it in memory and replaces the
file. There is no locking: two concurrent writers race and the later write
wins in full.
"""

import logging
from pathlib import Path
from typing import List

from pydantic import TypeAdapter, ValidationError
from pydantic_core import PydanticSerializationError

from myimpact.errors import MyImpactError, ParseError, ReportNotFound, SerializationFailed
from myimpact.models import SavedReport
from myimpact.results import LoadReportsResult, SaveResult
from myimpact.services.store._io import read_bytes, write_atomic

REPORTS_FILE = "reports.json"

LOG = logging.getLogger("myimpact.services.store.report_store")

_REPORTS = TypeAdapter(List[SavedReport])


def _reports_path(data_dir: Path) -> Path:
    return Path(data_dir) / REPORTS_FILE


def _load_reports(data_dir: Path) -> List[SavedReport]:
    """Strict load: missing file is empty, unreadable or corrupt file raises ParseError."""
    path = _reports_path(data_dir)
    try:
        raw = read_bytes(path)
    except OSError as e:
        raise ParseError(f"Failed to read reports: {e}") from e
    if raw is None:
        return []
    try:
        return _REPORTS.validate_json(raw)
    except ValidationError as e:
        raise ParseError(f"Failed to parse reports: {e}") from e


def _load_reports_for_write(data_dir: Path) -> List[SavedReport]:
    """Lenient load for write paths: a bad file must not block future saves."""
    try:
        return _load_reports(data_dir)
    except ParseError as e:
        LOG.warning("Discarding unreadable %s before write: %s", _reports_path(data_dir), e)
        return []


def _serialize_reports(reports: List[SavedReport]) -> bytes:
    try:
        return _REPORTS.dump_json(reports, indent=2, by_alias=True)
    except PydanticSerializationError as e:
        raise SerializationFailed(f"Failed to serialize reports: {e}") from e


def _write_reports(data_dir: Path, reports: List[SavedReport]) -> None:
    write_atomic(_reports_path(data_dir), _serialize_reports(reports), "reports")


def list_reports(data_dir: Path) -> LoadReportsResult:
    """All stored reports in file order; empty when reports.json is absent."""
    try:
        reports = _load_reports(data_dir)
    except ParseError as e:
        LOG.warning("%s", e)
        return LoadReportsResult.fail(e)
    return LoadReportsResult.ok(reports)


def get_report(data_dir: Path, report_id: str) -> SavedReport | None:
    """Stored report with report_id, or None.

    Raises:
        ParseError: reports.json exists but cannot be read or parsed.
    """
    for report in _load_reports(data_dir):
        if report.id == report_id:
            return report
    return None


def save_report(data_dir: Path, report: SavedReport) -> SaveResult:
    """Upsert by id: replace the first entry with the same id, else append."""
    try:
        reports = _load_reports_for_write(data_dir)
        for i, existing in enumerate(reports):
            if existing.id == report.id:
                reports[i] = report
                break
        else:
            reports.append(report)
        _write_reports(data_dir, reports)
    except MyImpactError as e:
        LOG.warning("Saving report %s failed: %s", report.id, e)
        return SaveResult.fail(e)
    LOG.info("Saved report %s (%d stored)", report.id, len(reports))
    return SaveResult.ok()


def update_report_summary(data_dir: Path, report_id: str, summary: str) -> SaveResult:
    """Replace the summary of a stored report, keeping every other field."""
    try:
        existing = get_report(data_dir, report_id)
    except ParseError as e:
        LOG.warning("%s", e)
        return SaveResult.fail(e)
    if existing is None:
        return SaveResult.fail(ReportNotFound(report_id))
    return save_report(data_dir, existing.model_copy(update={"summary": summary}))


def delete_report(data_dir: Path, report_id: str) -> SaveResult:
    """Remove every entry with report_id. Unknown id or missing file is a no-op success."""
    if not _reports_path(data_dir).exists():
        return SaveResult.ok()
    try:
        reports = _load_reports_for_write(data_dir)
        kept = [r for r in reports if r.id != report_id]
        _write_reports(data_dir, kept)
    except MyImpactError as e:
        LOG.warning("Deleting report %s failed: %s", report_id, e)
        return SaveResult.fail(e)
    LOG.info("Deleted report %s (%d removed)", report_id, len(reports) - len(kept))
    return SaveResult.ok()
