"""Pull request activity queries over `gh search prs`.

Three queries share one merged-date filter (START..END, ISO dates):
organizations of authored PRs, authored PRs, and PRs reviewed by the user.
Each returns a result envelope; gateway failures pass through with their
message and malformed JSON becomes a ParseError message.
"""

import logging
from typing import Iterable, List

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError

from myimpact.errors import MyImpactError, ParseError
from myimpact.models import PullRequest, ReviewedPullRequest
from myimpact.results import FetchResult, OrganizationsResult, ReviewedResult
from myimpact.services.gh import GhGateway

# Organization selector value meaning "no owner filter"
ALL_ORGS = "__all__"

ORGANIZATIONS_LIMIT = 100
ACTIVITY_LIMIT = 200

PULL_REQUEST_FIELDS = "title,url,body,closedAt,createdAt,number,repository"
REVIEWED_FIELDS = "title,url,closedAt,createdAt,author,repository"

# Index right after ["search", "prs", "--author", "@me"]
OWNER_FILTER_INDEX = 4

LOG = logging.getLogger("myimpact.services.activity")


class _RepositoryRef(BaseModel):
    model_config = ConfigDict(extra="ignore")

    name_with_owner: str = Field(..., alias="nameWithOwner")


class _RepositoryHit(BaseModel):
    model_config = ConfigDict(extra="ignore")

    repository: _RepositoryRef


_REPOSITORY_HITS = TypeAdapter(List[_RepositoryHit])
_PULL_REQUESTS = TypeAdapter(List[PullRequest])
_REVIEWED = TypeAdapter(List[ReviewedPullRequest])


def merged_range(start: str, end: str) -> str:
    """gh search date range: START..END."""
    return f"{start}..{end}"


def organizations_args(start: str, end: str) -> list[str]:
    return [
        "search",
        "prs",
        "--author",
        "@me",
        "--merged-at",
        merged_range(start, end),
        "--json",
        "repository",
        "--limit",
        str(ORGANIZATIONS_LIMIT),
    ]


def activity_args(start: str, end: str, org: str | None = None) -> list[str]:
    """Authored PR query; --owner ORG goes right after the author filter when org is set."""
    args = [
        "search",
        "prs",
        "--author",
        "@me",
        "--merged-at",
        merged_range(start, end),
        "--json",
        PULL_REQUEST_FIELDS,
        "--limit",
        str(ACTIVITY_LIMIT),
    ]
    if org and org != ALL_ORGS:
        args[OWNER_FILTER_INDEX:OWNER_FILTER_INDEX] = ["--owner", org]
    return args


def reviewed_args(start: str, end: str) -> list[str]:
    return [
        "search",
        "prs",
        "--reviewed-by",
        "@me",
        "--merged-at",
        merged_range(start, end),
        "--json",
        REVIEWED_FIELDS,
        "--limit",
        str(ACTIVITY_LIMIT),
    ]


def organizations_from_names(names_with_owner: Iterable[str]) -> list[str]:
    """Owner prefixes of owner/name identities, sorted with adjacent duplicates removed."""
    owners = sorted(name.split("/", 1)[0] for name in names_with_owner)
    out: list[str] = []
    for owner in owners:
        if not out or out[-1] != owner:
            out.append(owner)
    return out


def _parse(adapter: TypeAdapter, raw: str):
    try:
        return adapter.validate_json(raw)
    except ValidationError as e:
        raise ParseError(f"Failed to parse GitHub response: {e}") from e


class ActivityService:
    """Organizations, authored and reviewed PRs for a merged-date window."""

    def __init__(self, gateway: GhGateway | None = None) -> None:
        self._gateway = gateway or GhGateway()

    def list_organizations(self, start: str, end: str) -> OrganizationsResult:
        """Distinct owners of repos the user merged PRs into, sorted."""
        try:
            hits = _parse(_REPOSITORY_HITS, self._gateway.invoke(organizations_args(start, end)))
        except MyImpactError as e:
            return OrganizationsResult.fail(e)
        orgs = organizations_from_names(hit.repository.name_with_owner for hit in hits)
        LOG.info("Found %d organizations for %s", len(orgs), merged_range(start, end))
        return OrganizationsResult.ok(orgs)

    def fetch_activity(self, start: str, end: str, org: str | None = None) -> FetchResult:
        """Authored merged PRs in upstream order, optionally limited to one owner."""
        try:
            prs = _parse(_PULL_REQUESTS, self._gateway.invoke(activity_args(start, end, org)))
        except MyImpactError as e:
            return FetchResult.fail(e)
        LOG.info("Fetched %d authored PRs for %s (org=%s)", len(prs), merged_range(start, end), org or "all")
        return FetchResult.ok(prs)

    def fetch_reviewed(self, start: str, end: str) -> ReviewedResult:
        """Merged PRs the user reviewed, in upstream order."""
        try:
            prs = _parse(_REVIEWED, self._gateway.invoke(reviewed_args(start, end)))
        except MyImpactError as e:
            return ReviewedResult.fail(e)
        LOG.info("Fetched %d reviewed PRs for %s", len(prs), merged_range(start, end))
        return ReviewedResult.ok(prs)
