"""Tests for the CLI entry point (gateway and HTTP mocked, real data dir)."""

import json
from pathlib import Path
from unittest.mock import MagicMock

import httpx
import pytest

from myimpact.main import main, mask_key, parse_args
from myimpact.services.activity import ActivityService
from myimpact.services.summary import SummaryGenerator


class FakeGateway:
    def __init__(self, responses: dict[str, str]) -> None:
        self.responses = responses
        self.calls: list[list[str]] = []

    def invoke(self, args: list[str]) -> str:
        self.calls.append(list(args))
        flag = args[2]
        return self.responses.get(flag, "[]")


PRS = [
    {
        "title": "Add login",
        "url": "https://github.com/acme/web/pull/1",
        "body": "Adds a login form.",
        "closedAt": "2024-03-05T12:00:00Z",
        "createdAt": "2024-03-05T10:00:00Z",
        "number": 1,
        "repository": {"name": "web", "nameWithOwner": "acme/web"},
    }
]


@pytest.fixture
def data_dir(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    path = tmp_path / "data"
    monkeypatch.setenv("MYIMPACT_DATA_DIR", str(path))
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    monkeypatch.delenv("OPENAI_API_KEY_FILE", raising=False)
    monkeypatch.chdir(tmp_path)
    return path


@pytest.fixture
def gateway(mocker: MagicMock) -> FakeGateway:
    fake = FakeGateway({"--author": json.dumps(PRS)})
    mocker.patch("myimpact.main.build_activity_service", return_value=ActivityService(fake))
    return fake


def _run(argv: list[str], capsys: pytest.CaptureFixture[str]) -> tuple[int, dict]:
    code = main(argv)
    return code, json.loads(capsys.readouterr().out)


class TestParseArgs:
    def test_range_defaults_to_last_six_months(self) -> None:
        args = parse_args(["activity"])
        assert args.command == "activity"
        assert args.start < args.end
        assert args.org is None

    def test_explicit_range_and_org(self) -> None:
        args = parse_args(["summarize", "2024-01-01", "2024-06-30", "--org", "acme", "--save", "H1"])
        assert (args.start, args.end, args.org, args.save) == ("2024-01-01", "2024-06-30", "acme", "H1")

    def test_config_option(self) -> None:
        assert parse_args(["-c", "other.yaml", "orgs"]).config == Path("other.yaml")


def test_mask_key() -> None:
    assert mask_key(None) is None
    assert mask_key("short") == "*****"
    assert mask_key("sk-abcdefghijkl") == "sk-...ijkl"


def test_no_command_returns_2(data_dir: Path) -> None:
    assert main([]) == 2


def test_check_prints_config(data_dir: Path, capsys: pytest.CaptureFixture[str]) -> None:
    assert main(["--check"]) == 0
    assert "Config OK" in capsys.readouterr().out


class TestActivityCommands:
    def test_activity(self, data_dir: Path, gateway: FakeGateway, capsys: pytest.CaptureFixture[str]) -> None:
        code, out = _run(["activity", "2024-01-01", "2024-06-30", "--org", "acme"], capsys)
        assert code == 0
        assert out["success"] is True
        assert out["data"][0]["closedAt"] == "2024-03-05T12:00:00Z"
        assert gateway.calls[0][4:6] == ["--owner", "acme"]

    def test_orgs(self, data_dir: Path, gateway: FakeGateway, capsys: pytest.CaptureFixture[str]) -> None:
        code, out = _run(["orgs", "2024-01-01", "2024-06-30"], capsys)
        assert code == 0
        assert out == {"success": True, "error": None, "organizations": ["acme"]}

    def test_failure_exits_1(self, data_dir: Path, mocker: MagicMock, capsys: pytest.CaptureFixture[str]) -> None:
        broken = MagicMock()
        broken.invoke.return_value = "not json"
        mocker.patch("myimpact.main.build_activity_service", return_value=ActivityService(broken))
        code, out = _run(["reviewed"], capsys)
        assert code == 1
        assert out["success"] is False
        assert out["data"] is None

    def test_stats(self, data_dir: Path, gateway: FakeGateway, capsys: pytest.CaptureFixture[str]) -> None:
        code, out = _run(["stats", "2024-01-01", "2024-06-30"], capsys)
        assert code == 0
        assert out["total_prs"] == 1
        assert out["avg_time_to_merge"] == "2h"
        assert out["date_range"] == "Jan 1, 2024 - Jun 30, 2024"


class TestSettingsCommands:
    def test_set_key_then_show_masks(self, data_dir: Path, capsys: pytest.CaptureFixture[str]) -> None:
        assert main(["settings", "set-key", "sk-abcdefghijkl"]) == 0
        capsys.readouterr()
        code, out = _run(["settings", "show"], capsys)
        assert code == 0
        assert out["settings"] == {"api_key": "sk-...ijkl"}
        stored = json.loads((data_dir / "settings.json").read_text(encoding="utf-8"))
        assert stored["api_key"] == "sk-abcdefghijkl"

    def test_clear_key(self, data_dir: Path, capsys: pytest.CaptureFixture[str]) -> None:
        main(["settings", "set-key", "sk-abcdefghijkl"])
        main(["settings", "clear-key"])
        capsys.readouterr()
        _, out = _run(["settings", "show"], capsys)
        assert out["settings"] == {"api_key": None}


class TestSummarizeAndReports:
    @pytest.fixture
    def ai(self, mocker: MagicMock) -> list[httpx.Request]:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={"choices": [{"message": {"content": "I built login."}}]})

        client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        mocker.patch("myimpact.main.build_summary_generator", return_value=SummaryGenerator(client=client))
        return seen

    def test_summarize_without_key_fails(
        self, data_dir: Path, gateway: FakeGateway, ai: list, capsys: pytest.CaptureFixture[str]
    ) -> None:
        code, out = _run(["summarize", "2024-01-01", "2024-06-30"], capsys)
        assert code == 1
        assert out["error"] == "OpenAI API key is required"
        assert ai == []

    def test_summarize_save_list_show_delete(
        self, data_dir: Path, gateway: FakeGateway, ai: list, capsys: pytest.CaptureFixture[str]
    ) -> None:
        main(["settings", "set-key", "sk-abcdefghijkl"])
        capsys.readouterr()

        code, report = _run(["summarize", "2024-01-01", "2024-06-30", "--save", "H1"], capsys)
        assert code == 0
        assert report["name"] == "H1"
        assert report["summary"] == "I built login."
        assert report["org_name"] == "All Organizations"
        assert report["date_range"] == "Jan 1, 2024 - Jun 30, 2024"
        assert report["pr_count"] == 1
        assert ai[0].headers["Authorization"] == "Bearer sk-abcdefghijkl"

        _, listed = _run(["reports", "list"], capsys)
        assert [r["id"] for r in listed["reports"]] == [report["id"]]

        _, shown = _run(["reports", "show", report["id"]], capsys)
        assert shown == report

        code, _ = _run(["reports", "delete", report["id"]], capsys)
        assert code == 0
        _, listed = _run(["reports", "list"], capsys)
        assert listed["reports"] == []

    def test_set_summary_from_file(
        self, data_dir: Path, gateway: FakeGateway, ai: list, tmp_path: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        main(["settings", "set-key", "sk-abcdefghijkl"])
        capsys.readouterr()
        _, report = _run(["summarize", "2024-01-01", "2024-06-30", "--save", "H1"], capsys)
        edited = tmp_path / "summary.md"
        edited.write_text("Edited summary", encoding="utf-8")

        code, out = _run(["reports", "set-summary", report["id"], str(edited)], capsys)
        assert code == 0 and out["success"] is True
        _, shown = _run(["reports", "show", report["id"]], capsys)
        assert shown["summary"] == "Edited summary"

    def test_show_unknown_report(self, data_dir: Path, capsys: pytest.CaptureFixture[str]) -> None:
        code, out = _run(["reports", "show", "nope"], capsys)
        assert code == 1
        assert out["error"] == "Report not found: nope"


class WindowGateway:
    """Answers authored and reviewed searches per merged-at window."""

    def __init__(self, current_window: str) -> None:
        self.current_window = current_window
        self.calls: list[list[str]] = []

    def invoke(self, args: list[str]) -> str:
        self.calls.append(list(args))
        window = args[args.index("--merged-at") + 1]
        if window != self.current_window:
            return "[]"
        if args[2] == "--reviewed-by":
            return json.dumps(
                [
                    {
                        "title": "Fix cache",
                        "url": "https://github.com/acme/api/pull/9",
                        "createdAt": "2024-02-01T00:00:00Z",
                        "author": {"login": "alice"},
                        "repository": {"name": "api", "nameWithOwner": "acme/api"},
                    }
                ]
            )
        return json.dumps(PRS)


class TestCompare:
    def test_compare_against_preceding_window(
        self, data_dir: Path, mocker: MagicMock, capsys: pytest.CaptureFixture[str]
    ) -> None:
        gateway = WindowGateway("2024-01-01..2024-06-30")
        mocker.patch("myimpact.main.build_activity_service", return_value=ActivityService(gateway))
        code, out = _run(["compare", "2024-01-01", "2024-06-30", "--org", "acme"], capsys)
        assert code == 0
        assert out["current"] == "Jan 1, 2024 - Jun 30, 2024"
        assert out["previous"] == "Jul 3, 2023 - Dec 31, 2023"
        assert out["metrics"] == [
            {"metric": "prs_merged", "current": 1, "previous": 0, "change": "New"},
            {"metric": "prs_reviewed", "current": 1, "previous": 0, "change": "New"},
            {"metric": "repositories", "current": 1, "previous": 0, "change": "New"},
        ]
        windows = [call[call.index("--merged-at") + 1] for call in gateway.calls]
        assert "2023-07-03..2023-12-31" in windows
        authored = [call for call in gateway.calls if call[2] == "--author"]
        assert all(call[4:6] == ["--owner", "acme"] for call in authored)

    def test_compare_fetch_failure_exits_1(
        self, data_dir: Path, mocker: MagicMock, capsys: pytest.CaptureFixture[str]
    ) -> None:
        broken = MagicMock()
        broken.invoke.return_value = "not json"
        mocker.patch("myimpact.main.build_activity_service", return_value=ActivityService(broken))
        code, out = _run(["compare", "2024-01-01", "2024-06-30"], capsys)
        assert code == 1
        assert out["success"] is False


class TestUnexpectedErrors:
    def test_missing_summary_file_is_logged_not_raised(
        self, data_dir: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        code = main(["reports", "set-summary", "r1", str(data_dir / "missing.txt")])
        assert code == 1
        captured = capsys.readouterr()
        assert captured.out == ""
        assert "Fatal error" in captured.err

    def test_show_on_corrupt_store_reports_parse_error(
        self, data_dir: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        data_dir.mkdir()
        (data_dir / "reports.json").write_text("{not json", encoding="utf-8")
        code, out = _run(["reports", "show", "r1"], capsys)
        assert code == 1
        assert out["error"].startswith("Failed to parse reports")
