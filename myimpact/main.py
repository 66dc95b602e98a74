"""MyImpact command-line entry point.

Every command prints its result envelope as JSON on stdout and exits 0 on
success, 1 on failure. Logs go to stderr.

Usage: myimpact [--config PATH] <orgs|activity|reviewed|stats|compare|summarize|reports|settings> ...
"""

import argparse
import asyncio
import getpass
import json
import logging
import sys
from datetime import UTC, datetime
from pathlib import Path

from pydantic import BaseModel

from myimpact.config import AppConfig, load_config
from myimpact.errors import MyImpactError
from myimpact.logging import MyImpactLogging
from myimpact.models import AppSettings, SavedReport
from myimpact.results import Envelope, SaveResult
from myimpact.services.activity import ActivityService
from myimpact.services.gh import CommandLocator, GhGateway
from myimpact.services.stats import (
    activity_overview,
    compare_range,
    comparison_metrics,
    date_range_label,
    default_date_range,
    generate_report_id,
    org_display_name,
)
from myimpact.services.store import (
    delete_report,
    get_report,
    list_reports,
    load_settings,
    save_report,
    save_settings,
    update_report_summary,
)
from myimpact.services.summary import SummaryGenerator

LOG = logging.getLogger("myimpact.main")


def _add_range(parser: argparse.ArgumentParser, org: bool = False) -> None:
    start, end = default_date_range()
    parser.add_argument("start", nargs="?", default=start, help=f"Merged on or after (YYYY-MM-DD, default {start})")
    parser.add_argument("end", nargs="?", default=end, help=f"Merged on or before (YYYY-MM-DD, default {end})")
    if org:
        parser.add_argument("--org", "-o", default=None, help="Limit to one organization (owner)")


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse CLI: global options plus one command."""
    argv = argv if argv is not None else sys.argv[1:]
    parser = argparse.ArgumentParser(
        prog="myimpact",
        description="MyImpact - merged PR activity, AI self-review summaries and saved reports",
    )
    parser.add_argument(
        "--config",
        "-c",
        type=Path,
        default=Path("config.yaml"),
        help="Path to YAML config file",
    )
    parser.add_argument(
        "--check",
        action="store_true",
        help="Only load and validate config, then exit",
    )
    sub = parser.add_subparsers(dest="command")

    _add_range(sub.add_parser("orgs", help="Organizations you merged PRs into"))
    _add_range(sub.add_parser("activity", help="Your merged PRs"), org=True)
    _add_range(sub.add_parser("reviewed", help="Merged PRs you reviewed"))
    _add_range(sub.add_parser("stats", help="Breakdowns over your merged and reviewed PRs"), org=True)
    _add_range(sub.add_parser("compare", help="Compare with the preceding window of the same length"), org=True)

    summarize = sub.add_parser("summarize", help="Fetch merged PRs and write a self-review summary")
    _add_range(summarize, org=True)
    summarize.add_argument("--save", metavar="NAME", default=None, help="Save the result as a named report")

    reports = sub.add_parser("reports", help="Saved reports")
    reports_sub = reports.add_subparsers(dest="reports_command", required=True)
    reports_sub.add_parser("list", help="List saved reports")
    show = reports_sub.add_parser("show", help="Show one report")
    show.add_argument("report_id")
    delete = reports_sub.add_parser("delete", help="Delete a report")
    delete.add_argument("report_id")
    set_summary = reports_sub.add_parser("set-summary", help="Replace a report summary with the content of a file")
    set_summary.add_argument("report_id")
    set_summary.add_argument("file", type=Path, help="File with the new summary ('-' for stdin)")

    settings = sub.add_parser("settings", help="Stored settings")
    settings_sub = settings.add_subparsers(dest="settings_command", required=True)
    settings_sub.add_parser("show", help="Show settings (API key masked)")
    set_key = settings_sub.add_parser("set-key", help="Store the OpenAI API key")
    set_key.add_argument("key", nargs="?", default=None, help="Key; prompted for when omitted")
    settings_sub.add_parser("clear-key", help="Remove the stored API key")

    return parser.parse_args(argv)


def _emit(result: BaseModel) -> int:
    print(result.model_dump_json(indent=2, by_alias=True))
    if isinstance(result, Envelope):
        return 0 if result.success else 1
    return 0


def _emit_data(data: dict) -> int:
    print(json.dumps(data, indent=2))
    return 0 if data.get("success", True) else 1


def mask_key(key: str | None) -> str | None:
    if not key:
        return None
    if len(key) <= 8:
        return "*" * len(key)
    return f"{key[:3]}...{key[-4:]}"


def build_activity_service(config: AppConfig) -> ActivityService:
    locator = CommandLocator(program=config.gh.command, search_paths=config.gh.search_paths)
    return ActivityService(GhGateway(locator, timeout=config.gh.timeout))


def build_summary_generator(config: AppConfig) -> SummaryGenerator:
    return SummaryGenerator(
        api_url=config.openai.api_url,
        model=config.openai.model,
        max_tokens=config.openai.max_tokens,
        temperature=config.openai.temperature,
        timeout=config.openai.timeout,
    )


def resolve_api_key(config: AppConfig, data_dir: Path) -> str | None:
    """Stored key from settings.json first, then config/env."""
    loaded = load_settings(data_dir)
    if loaded.success and loaded.settings and loaded.settings.api_key:
        return loaded.settings.api_key
    if not loaded.success:
        LOG.warning("%s", loaded.error)
    return config.openai_api_key_resolved


def run_summarize(config: AppConfig, args: argparse.Namespace) -> int:
    """Fetch authored PRs, summarize them and optionally save a report."""
    data_dir = config.storage.data_dir
    fetched = build_activity_service(config).fetch_activity(args.start, args.end, args.org)
    if not fetched.success:
        return _emit(fetched)
    prs = fetched.data or []
    label = date_range_label(args.start, args.end)
    org_name = org_display_name(args.org)
    generator = build_summary_generator(config)
    result = asyncio.run(generator.summarize(resolve_api_key(config, data_dir), prs, label, org_name))
    if not result.success or not args.save:
        return _emit(result)

    report = SavedReport(
        id=generate_report_id(),
        name=args.save,
        created_at=datetime.now(UTC).isoformat(),
        org_name=org_name,
        date_range=label,
        pr_count=len(prs),
        summary=result.summary or "",
        pull_requests=prs,
    )
    saved = save_report(data_dir, report)
    if not saved.success:
        return _emit(saved)
    return _emit(report)


def run_stats(config: AppConfig, args: argparse.Namespace) -> int:
    service = build_activity_service(config)
    fetched = service.fetch_activity(args.start, args.end, args.org)
    if not fetched.success:
        return _emit(fetched)
    reviewed = service.fetch_reviewed(args.start, args.end)
    if not reviewed.success:
        # Reviewed PRs only feed the collaborator count; authored stats still stand
        LOG.warning("Reviewed PRs unavailable: %s", reviewed.error)
    overview = activity_overview(fetched.data or [], reviewed.data or [])
    return _emit_data({"success": True, "date_range": date_range_label(args.start, args.end), **overview})


def run_compare(config: AppConfig, args: argparse.Namespace) -> int:
    """Merged, reviewed and repository counts against the preceding window."""
    service = build_activity_service(config)
    prev_start, prev_end = compare_range(args.start, args.end)
    current = service.fetch_activity(args.start, args.end, args.org)
    if not current.success:
        return _emit(current)
    previous = service.fetch_activity(prev_start, prev_end, args.org)
    if not previous.success:
        return _emit(previous)
    current_reviewed = service.fetch_reviewed(args.start, args.end)
    previous_reviewed = service.fetch_reviewed(prev_start, prev_end)
    for reviewed in (current_reviewed, previous_reviewed):
        if not reviewed.success:
            LOG.warning("Reviewed PRs unavailable: %s", reviewed.error)
    metrics = comparison_metrics(
        current.data or [],
        current_reviewed.data or [],
        previous.data or [],
        previous_reviewed.data or [],
    )
    return _emit_data(
        {
            "success": True,
            "current": date_range_label(args.start, args.end),
            "previous": date_range_label(prev_start, prev_end),
            "metrics": metrics,
        }
    )


def run_reports(config: AppConfig, args: argparse.Namespace) -> int:
    data_dir = config.storage.data_dir
    if args.reports_command == "list":
        return _emit(list_reports(data_dir))
    if args.reports_command == "show":
        try:
            report = get_report(data_dir, args.report_id)
        except MyImpactError as e:
            return _emit(SaveResult.fail(e))
        if report is None:
            return _emit(SaveResult.fail(f"Report not found: {args.report_id}"))
        return _emit(report)
    if args.reports_command == "delete":
        return _emit(delete_report(data_dir, args.report_id))
    summary = sys.stdin.read() if str(args.file) == "-" else args.file.read_text(encoding="utf-8")
    return _emit(update_report_summary(data_dir, args.report_id, summary))


def run_settings(config: AppConfig, args: argparse.Namespace) -> int:
    data_dir = config.storage.data_dir
    if args.settings_command == "show":
        loaded = load_settings(data_dir)
        if loaded.success and loaded.settings:
            loaded = loaded.model_copy(
                update={"settings": AppSettings(api_key=mask_key(loaded.settings.api_key))}
            )
        return _emit(loaded)
    if args.settings_command == "set-key":
        key = args.key or getpass.getpass("OpenAI API key: ")
        return _emit(save_settings(data_dir, AppSettings(api_key=key.strip() or None)))
    return _emit(save_settings(data_dir, AppSettings(api_key=None)))


def main(argv: list[str] | None = None) -> int:
    """Entry point: load config, set up logging, dispatch the command."""
    args = parse_args(argv)
    config = load_config(args.config)
    MyImpactLogging(config.logging).setup()

    if args.check:
        print("Config OK:", config.storage.data_dir, config.gh.command, config.openai.model)
        return 0

    if args.command is None:
        LOG.error("No command given, see: myimpact --help")
        return 2

    try:
        return dispatch(config, args)
    except KeyboardInterrupt:
        return 0
    except Exception as e:
        LOG.exception("Fatal error: %s", e)
        return 1


def dispatch(config: AppConfig, args: argparse.Namespace) -> int:
    if args.command == "orgs":
        return _emit(build_activity_service(config).list_organizations(args.start, args.end))
    if args.command == "activity":
        return _emit(build_activity_service(config).fetch_activity(args.start, args.end, args.org))
    if args.command == "reviewed":
        return _emit(build_activity_service(config).fetch_reviewed(args.start, args.end))
    if args.command == "stats":
        return run_stats(config, args)
    if args.command == "compare":
        return run_compare(config, args)
    if args.command == "summarize":
        return run_summarize(config, args)
    if args.command == "reports":
        return run_reports(config, args)
    return run_settings(config, args)


if __name__ == "__main__":
    sys.exit(main())
