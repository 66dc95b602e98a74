"""Records returned by `gh search prs` and stored in the local JSON files.

Upstream JSON is camelCase (closedAt, nameWithOwner); models accept both the
alias and the field name and are dumped with by_alias=True so reports.json
keeps the upstream shape for embedded pull requests.
"""

from typing import List

from pydantic import BaseModel, ConfigDict, Field


class Repository(BaseModel):
    """Repository a pull request belongs to."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    name: str = Field(..., description="Short repository name")
    name_with_owner: str = Field(..., alias="nameWithOwner", description="owner/name")

    @property
    def owner(self) -> str:
        """Organization or user part of owner/name."""
        return self.name_with_owner.split("/", 1)[0]


class Author(BaseModel):
    """Pull request author as reported by the search API."""

    model_config = ConfigDict(extra="ignore")

    login: str


class PullRequest(BaseModel):
    """Merged pull request authored by the current user."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    title: str
    url: str
    body: str | None = None
    closed_at: str = Field(..., alias="closedAt", description="ISO timestamp of merge/close")
    created_at: str | None = Field(default=None, alias="createdAt")
    number: int | None = None
    repository: Repository


class ReviewedPullRequest(BaseModel):
    """Merged pull request reviewed by the current user.

    Separate from PullRequest: the reviewed query projects a different field
    set (author, no body or number, createdAt always present).
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    title: str
    url: str
    closed_at: str | None = Field(default=None, alias="closedAt")
    created_at: str = Field(..., alias="createdAt")
    author: Author
    repository: Repository


class SavedReport(BaseModel):
    """Named snapshot of a fetch plus its summary, keyed by id in reports.json."""

    id: str = Field(..., description="Caller-supplied unique id; the merge key")
    name: str
    created_at: str = Field(..., description="ISO timestamp when the report was created")
    org_name: str
    date_range: str = Field(..., description="Free-form label, not parsed")
    pr_count: int = Field(..., ge=0, description="Cached length of pull_requests as given by the caller")
    summary: str = ""
    pull_requests: List[PullRequest] = Field(default_factory=list)


class AppSettings(BaseModel):
    """User settings stored in settings.json."""

    api_key: str | None = Field(default=None, description="Summarization API key")
