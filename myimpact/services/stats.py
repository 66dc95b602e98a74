"""Breakdowns over fetched activity: per org, per repo, per month, merge time, streaks.

Also small helpers for callers: default window, comparison window, report ids
and display labels. All functions are pure; timestamps are read in UTC.
"""

import calendar
import secrets
import string
import time
from collections import Counter
from datetime import UTC, date, datetime, timedelta
from typing import Iterable, Sequence

from myimpact.models import PullRequest, ReviewedPullRequest
from myimpact.services.activity import ALL_ORGS

ALL_ORGS_LABEL = "All Organizations"
DEFAULT_WINDOW_MONTHS = 6
TOP_REPOS = 10

_ID_ALPHABET = string.digits + string.ascii_lowercase


def _parse_iso(s: str) -> datetime:
    dt = datetime.fromisoformat(s.replace("Z", "+00:00"))
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=UTC)
    return dt.astimezone(UTC)


def _ranked(counts: Counter) -> list[tuple[str, int]]:
    # sorted() is stable, so ties keep first-seen order
    return sorted(counts.items(), key=lambda item: item[1], reverse=True)


def org_breakdown(prs: Iterable[PullRequest]) -> list[tuple[str, int]]:
    """(org, count) by count, highest first."""
    return _ranked(Counter(pr.repository.owner for pr in prs))


def repo_breakdown(prs: Iterable[PullRequest], limit: int = TOP_REPOS) -> list[tuple[str, int]]:
    """(repo name, count) by count, highest first, at most limit entries."""
    return _ranked(Counter(pr.repository.name for pr in prs))[:limit]


def month_label(timestamp: str) -> str:
    """Short month label, e.g. "Mar 24"."""
    return _parse_iso(timestamp).strftime("%b %y")


def monthly_counts(prs: Iterable[PullRequest]) -> list[tuple[str, int]]:
    """(month label, count) in first-seen order."""
    return list(Counter(month_label(pr.closed_at) for pr in prs).items())


def average_time_to_merge(prs: Iterable[PullRequest]) -> float:
    """Mean hours from creation to merge over PRs that have both timestamps; 0.0 if none."""
    hours = [
        (_parse_iso(pr.closed_at) - _parse_iso(pr.created_at)).total_seconds() / 3600
        for pr in prs
        if pr.created_at and pr.closed_at
    ]
    if not hours:
        return 0.0
    return sum(hours) / len(hours)


def format_time_to_merge(hours: float) -> str:
    if hours < 1:
        return "<1h"
    if hours < 24:
        return f"{int(hours + 0.5)}h"
    days = hours / 24
    if days < 7:
        return f"{days:.1f}d"
    return f"{int(days + 0.5)}d"


def _week_start(d: date) -> date:
    """Sunday starting the week that contains d."""
    return d - timedelta(days=(d.weekday() + 1) % 7)


def week_streaks(prs: Iterable[PullRequest]) -> tuple[int, int]:
    """(current, longest) runs of consecutive weeks with at least one merged PR.

    current is the run ending at the latest active week.
    """
    weeks = sorted({_week_start(_parse_iso(pr.closed_at).date()) for pr in prs})
    if not weeks:
        return 0, 0
    current = longest = 1
    for prev, curr in zip(weeks, weeks[1:]):
        if (curr - prev).days <= 7:
            current += 1
            longest = max(longest, current)
        else:
            current = 1
    return current, longest


def weekly_counts(prs: Iterable[PullRequest]) -> list[tuple[str, int]]:
    """(Sunday week start as ISO date, count), oldest week first."""
    counts = Counter(_week_start(_parse_iso(pr.closed_at).date()).isoformat() for pr in prs)
    return sorted(counts.items())


def unique_collaborators(reviewed: Iterable[ReviewedPullRequest]) -> int:
    """Number of distinct authors among PRs the user reviewed."""
    return len({pr.author.login for pr in reviewed if pr.author.login})


def compare_range(start: str, end: str) -> tuple[str, str]:
    """Window of the same length ending the day before start."""
    start_d = date.fromisoformat(start)
    end_d = date.fromisoformat(end)
    compare_end = start_d - timedelta(days=1)
    compare_start = compare_end - (end_d - start_d)
    return compare_start.isoformat(), compare_end.isoformat()


def change_label(current: int, previous: int) -> str:
    """Relative change from previous to current: "New", "-", "0%", "+25%", "-40%"."""
    if previous == 0:
        return "New" if current > 0 else "-"
    change = (current - previous) / previous * 100
    if abs(change) < 1:
        return "0%"
    return f"{change:+.0f}%"


def comparison_metrics(
    current: Sequence[PullRequest],
    current_reviewed: Sequence[ReviewedPullRequest],
    previous: Sequence[PullRequest],
    previous_reviewed: Sequence[ReviewedPullRequest],
) -> list[dict]:
    """PRs merged, PRs reviewed and repositories for two windows, with the change label."""
    pairs = [
        ("prs_merged", len(current), len(previous)),
        ("prs_reviewed", len(current_reviewed), len(previous_reviewed)),
        (
            "repositories",
            len({pr.repository.name_with_owner for pr in current}),
            len({pr.repository.name_with_owner for pr in previous}),
        ),
    ]
    return [
        {"metric": name, "current": cur, "previous": prev, "change": change_label(cur, prev)}
        for name, cur, prev in pairs
    ]


def _months_before(d: date, months: int) -> date:
    total = d.year * 12 + (d.month - 1) - months
    year, month = divmod(total, 12)
    month += 1
    day = min(d.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)


def default_date_range(today: date | None = None) -> tuple[str, str]:
    """(start, end) ISO dates covering the last six months up to today."""
    end = today or datetime.now(UTC).date()
    return _months_before(end, DEFAULT_WINDOW_MONTHS).isoformat(), end.isoformat()


def format_date(iso_date: str) -> str:
    """Display date like "Jan 5, 2024"."""
    d = date.fromisoformat(iso_date[:10])
    return f"{d.strftime('%b')} {d.day}, {d.year}"


def date_range_label(start: str, end: str) -> str:
    """Label stored in reports and sent to the summary prompt."""
    return f"{format_date(start)} - {format_date(end)}"


def org_display_name(org: str | None) -> str:
    if not org or org == ALL_ORGS:
        return ALL_ORGS_LABEL
    return org


def generate_report_id() -> str:
    """Millisecond timestamp plus nine random base36 chars."""
    suffix = "".join(secrets.choice(_ID_ALPHABET) for _ in range(9))
    return f"{int(time.time() * 1000)}-{suffix}"


def activity_overview(prs: Sequence[PullRequest], reviewed: Sequence[ReviewedPullRequest]) -> dict:
    """Everything the dashboard shows for one fetch, as plain JSON-ready data."""
    months = monthly_counts(prs)
    avg_hours = average_time_to_merge(prs)
    current, longest = week_streaks(prs)
    orgs = org_breakdown(prs)
    return {
        "total_prs": len(prs),
        "reviewed_prs": len(reviewed),
        "org_count": len(orgs),
        "repo_count": len({pr.repository.name_with_owner for pr in prs}),
        "avg_prs_per_month": round(len(prs) / len(months), 1) if months else 0.0,
        "avg_time_to_merge_hours": round(avg_hours, 2),
        "avg_time_to_merge": format_time_to_merge(avg_hours),
        "current_week_streak": current,
        "longest_week_streak": longest,
        "unique_collaborators": unique_collaborators(reviewed),
        "organizations": [{"name": n, "count": c} for n, c in orgs],
        "repositories": [{"name": n, "count": c} for n, c in repo_breakdown(prs)],
        "monthly": [{"month": m, "count": c} for m, c in months],
        "weekly": [{"week": w, "count": c} for w, c in weekly_counts(prs)],
    }
