"""Classified failures raised inside components.

Every public operation catches MyImpactError at its boundary and turns it
into the failure side of a result envelope (see myimpact.results).
"""

GH_INSTALL_HINT = "Please install it from https://cli.github.com"


class MyImpactError(Exception):
    """Base class for all classified failures."""

    pass


class GatewayError(MyImpactError):
    """Raised when the external CLI cannot be run or reports failure."""

    pass


class ToolNotFound(GatewayError):
    """Raised when the CLI is not in any known location nor on PATH."""

    def __init__(self, program: str = "gh", tool: str = "GitHub CLI", hint: str = GH_INSTALL_HINT) -> None:
        self.program = program
        super().__init__(f"{tool} not found ({program}). {hint}")


class SpawnFailed(GatewayError):
    """Raised when the CLI process could not be started."""

    def __init__(self, detail: str, tool: str = "GitHub CLI") -> None:
        self.detail = detail
        super().__init__(f"Failed to execute {tool}: {detail}")


class ToolFailed(GatewayError):
    """Raised when the CLI exits with a non-zero status."""

    def __init__(self, stderr: str, returncode: int | None = None, tool: str = "GitHub CLI") -> None:
        self.stderr = stderr
        self.returncode = returncode
        super().__init__(f"{tool} error: {stderr}")


class ParseError(MyImpactError):
    """Raised when a JSON document (CLI output, API response, store file) is malformed."""

    pass


class MissingCredential(MyImpactError):
    """Raised when the summarization API key is empty."""

    def __init__(self) -> None:
        super().__init__("OpenAI API key is required")


class NoInput(MyImpactError):
    """Raised when there are no pull requests to summarize."""

    def __init__(self) -> None:
        super().__init__("No pull requests to summarize")


class ServiceError(MyImpactError):
    """Raised on a non-success HTTP status or a failed request.

    status is None when no response was received at all.
    """

    def __init__(self, status: int | None, body: str) -> None:
        self.status = status
        self.body = body
        if status is None:
            super().__init__(f"Failed to call OpenAI API: {body}")
        else:
            super().__init__(f"OpenAI API error ({status}): {body}")


class EmptyResponse(MyImpactError):
    """Raised when the API answers with an empty choice list."""

    def __init__(self) -> None:
        super().__init__("No response from AI")


class StoreError(MyImpactError):
    """Raised when a local JSON store cannot be written."""

    pass


class FileWriteFailed(StoreError):
    """Raised when writing a store file (or creating its directory) fails."""

    pass


class SerializationFailed(StoreError):
    """Raised when records cannot be encoded as JSON."""

    pass


class ReportNotFound(StoreError):
    """Raised when an update targets a report id that is not stored."""

    def __init__(self, report_id: str) -> None:
        self.report_id = report_id
        super().__init__(f"Report not found: {report_id}")
