"""Result envelopes returned by every public operation.

Each envelope is a tagged outcome: success with its payload, or failure with
a human-readable error. Never both, never neither.
"""

from typing import ClassVar, List

from pydantic import BaseModel, model_validator

from myimpact.models import AppSettings, PullRequest, ReviewedPullRequest, SavedReport


class Envelope(BaseModel):
    """Common success/error fields and the outcome invariant."""

    payload_field: ClassVar[str | None] = None

    success: bool
    error: str | None = None

    @model_validator(mode="after")
    def check_outcome(self) -> "Envelope":
        payload = getattr(self, self.payload_field) if self.payload_field else None
        if self.success:
            if self.error is not None:
                raise ValueError("successful result must not carry an error")
            if self.payload_field and payload is None:
                raise ValueError(f"successful result requires {self.payload_field}")
        else:
            if not self.error:
                raise ValueError("failed result requires an error message")
            if payload is not None:
                raise ValueError(f"failed result must not carry {self.payload_field}")
        return self

    @classmethod
    def fail(cls, error: str | Exception):
        """Failure envelope with the given message."""
        return cls(success=False, error=str(error))


class SaveResult(Envelope):
    """Outcome of a write (save/delete report, save settings)."""

    @classmethod
    def ok(cls) -> "SaveResult":
        return cls(success=True)


class FetchResult(Envelope):
    """Outcome of the authored-activity query."""

    payload_field: ClassVar[str | None] = "data"

    data: List[PullRequest] | None = None

    @classmethod
    def ok(cls, data: List[PullRequest]) -> "FetchResult":
        return cls(success=True, data=data)


class ReviewedResult(Envelope):
    """Outcome of the reviewed-activity query."""

    payload_field: ClassVar[str | None] = "data"

    data: List[ReviewedPullRequest] | None = None

    @classmethod
    def ok(cls, data: List[ReviewedPullRequest]) -> "ReviewedResult":
        return cls(success=True, data=data)


class OrganizationsResult(Envelope):
    """Outcome of the organizations query (sorted, duplicate-free)."""

    payload_field: ClassVar[str | None] = "organizations"

    organizations: List[str] | None = None

    @classmethod
    def ok(cls, organizations: List[str]) -> "OrganizationsResult":
        return cls(success=True, organizations=organizations)


class AiResult(Envelope):
    """Outcome of a summary request."""

    payload_field: ClassVar[str | None] = "summary"

    summary: str | None = None

    @classmethod
    def ok(cls, summary: str) -> "AiResult":
        return cls(success=True, summary=summary)


class LoadReportsResult(Envelope):
    """Outcome of listing stored reports."""

    payload_field: ClassVar[str | None] = "reports"

    reports: List[SavedReport] | None = None

    @classmethod
    def ok(cls, reports: List[SavedReport]) -> "LoadReportsResult":
        return cls(success=True, reports=reports)


class LoadSettingsResult(Envelope):
    """Outcome of loading settings (defaults when the file is absent)."""

    payload_field: ClassVar[str | None] = "settings"

    settings: AppSettings | None = None

    @classmethod
    def ok(cls, settings: AppSettings) -> "LoadSettingsResult":
        return cls(success=True, settings=settings)
