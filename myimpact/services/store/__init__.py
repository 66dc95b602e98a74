"""Local JSON storage for reports and settings ({data_dir}/reports.json, settings.json)."""

from myimpact.services.store.report_store import (
    delete_report,
    get_report,
    list_reports,
    save_report,
    update_report_summary,
)
from myimpact.services.store.settings_store import load_settings, save_settings

__all__ = [
    "delete_report",
    "get_report",
    "list_reports",
    "load_settings",
    "save_report",
    "save_settings",
    "update_report_summary",
]
