"""Run the GitHub CLI and hand back its stdout untouched."""

import logging
import subprocess
from typing import Sequence

from myimpact.errors import SpawnFailed, ToolFailed
from myimpact.services.gh.locator import CommandLocator


class GhGateway:
    """Synchronous gh invoker. Never interprets the payload."""

    def __init__(
        self,
        locator: CommandLocator | None = None,
        timeout: float | None = None,
        log: logging.Logger | None = None,
    ) -> None:
        self._locator = locator or CommandLocator()
        self.timeout = timeout
        self._log = log or logging.getLogger("myimpact.services.gh.gateway")

    def invoke(self, args: Sequence[str]) -> str:
        """Run gh with args; return stdout.

        Raises:
            ToolNotFound: gh is not installed.
            SpawnFailed: The process could not be started.
            ToolFailed: gh exited non-zero (message carries stderr).
        """
        program = self._locator.locate()
        cmd = [str(program), *args]
        self._log.debug("Running %s", " ".join(cmd))
        try:
            result = subprocess.run(
                cmd,
                check=False,
                capture_output=True,
                text=True,
                encoding="utf-8",
                errors="replace",
                timeout=self.timeout,
            )
        except subprocess.TimeoutExpired as e:
            self._log.warning("gh %s timed out after %ss", " ".join(args[:2]), self.timeout)
            raise ToolFailed(f"timed out after {self.timeout}s") from e
        except OSError as e:
            raise SpawnFailed(str(e)) from e
        if result.returncode != 0:
            err = (result.stderr or "").strip()
            self._log.warning("gh %s failed (exit %s): %s", " ".join(args[:2]), result.returncode, err)
            raise ToolFailed(err, returncode=result.returncode)
        return result.stdout or ""
