"""Tests for the gh command locator and gateway (subprocess mocked)."""

import subprocess
from pathlib import Path
from unittest.mock import MagicMock

import pytest

from myimpact.errors import SpawnFailed, ToolFailed, ToolNotFound
from myimpact.services.gh import DEFAULT_SEARCH_PATHS, CommandLocator, GhGateway


class TestCommandLocator:
    """Fixed search paths first, then the PATH resolver."""

    def test_default_search_paths_order(self) -> None:
        """Homebrew, /usr/local, /usr, MacPorts in that order."""
        assert DEFAULT_SEARCH_PATHS == (
            "/opt/homebrew/bin/gh",
            "/usr/local/bin/gh",
            "/usr/bin/gh",
            "/opt/local/bin/gh",
        )

    def test_first_existing_search_path_wins(self, tmp_path: Path) -> None:
        """The first path that exists is returned without asking PATH."""
        second = tmp_path / "b" / "gh"
        second.parent.mkdir()
        second.write_text("")
        third = tmp_path / "c" / "gh"
        third.parent.mkdir()
        third.write_text("")
        which = MagicMock(return_value="/elsewhere/gh")
        locator = CommandLocator(search_paths=[tmp_path / "a" / "gh", second, third], which=which)
        assert locator.locate() == second
        which.assert_not_called()

    def test_falls_back_to_which(self, tmp_path: Path) -> None:
        """When no search path exists, the resolver result is used."""
        which = MagicMock(return_value="/home/me/bin/gh\n")
        locator = CommandLocator(search_paths=[tmp_path / "missing"], which=which)
        assert locator.locate() == Path("/home/me/bin/gh")
        which.assert_called_once_with("gh")

    def test_not_found_raises_with_install_hint(self, tmp_path: Path) -> None:
        """Both strategies exhausted -> ToolNotFound with install instructions."""
        locator = CommandLocator(search_paths=[tmp_path / "missing"], which=lambda _: None)
        with pytest.raises(ToolNotFound) as exc_info:
            locator.locate()
        assert "https://cli.github.com" in str(exc_info.value)

    def test_blank_which_output_is_not_a_match(self, tmp_path: Path) -> None:
        """An empty resolver answer counts as not found."""
        locator = CommandLocator(search_paths=[], which=lambda _: "  ")
        with pytest.raises(ToolNotFound):
            locator.locate()


@pytest.fixture
def locator() -> MagicMock:
    loc = MagicMock(spec=CommandLocator)
    loc.locate.return_value = Path("/usr/bin/gh")
    return loc


class TestGhGateway:
    """invoke returns stdout or raises a classified GatewayError."""

    def test_invoke_returns_stdout(self, locator: MagicMock, mocker: MagicMock) -> None:
        """Successful run returns stdout verbatim; command is resolved path + args."""
        mock_run = mocker.patch("myimpact.services.gh.gateway.subprocess.run")
        mock_run.return_value = MagicMock(returncode=0, stdout='[{"a": 1}]', stderr="")
        out = GhGateway(locator).invoke(["search", "prs", "--limit", "1"])
        assert out == '[{"a": 1}]'
        cmd = mock_run.call_args[0][0]
        assert cmd == ["/usr/bin/gh", "search", "prs", "--limit", "1"]
        assert mock_run.call_args[1]["capture_output"] is True
        assert mock_run.call_args[1]["timeout"] is None

    def test_nonzero_exit_raises_tool_failed(self, locator: MagicMock, mocker: MagicMock) -> None:
        """Non-zero exit -> ToolFailed carrying stderr."""
        mocker.patch(
            "myimpact.services.gh.gateway.subprocess.run",
            return_value=MagicMock(returncode=1, stdout="", stderr="HTTP 401: Bad credentials\n"),
        )
        with pytest.raises(ToolFailed) as exc_info:
            GhGateway(locator).invoke(["search", "prs"])
        assert exc_info.value.stderr == "HTTP 401: Bad credentials"
        assert exc_info.value.returncode == 1
        assert "Bad credentials" in str(exc_info.value)

    def test_spawn_error_raises_spawn_failed(self, locator: MagicMock, mocker: MagicMock) -> None:
        """OSError from subprocess (permission, binary gone) -> SpawnFailed."""
        mocker.patch(
            "myimpact.services.gh.gateway.subprocess.run",
            side_effect=PermissionError("Permission denied"),
        )
        with pytest.raises(SpawnFailed, match="Permission denied"):
            GhGateway(locator).invoke(["search", "prs"])

    def test_timeout_raises_tool_failed(self, locator: MagicMock, mocker: MagicMock) -> None:
        """A configured timeout that expires -> ToolFailed."""
        mocker.patch(
            "myimpact.services.gh.gateway.subprocess.run",
            side_effect=subprocess.TimeoutExpired("gh", 5),
        )
        with pytest.raises(ToolFailed, match="timed out"):
            GhGateway(locator, timeout=5).invoke(["search", "prs"])

    def test_locator_failure_propagates(self, mocker: MagicMock) -> None:
        """ToolNotFound from the locator is raised before any spawn."""
        mock_run = mocker.patch("myimpact.services.gh.gateway.subprocess.run")
        loc = MagicMock(spec=CommandLocator)
        loc.locate.side_effect = ToolNotFound("gh")
        with pytest.raises(ToolNotFound):
            GhGateway(loc).invoke(["search", "prs"])
        mock_run.assert_not_called()
