"""Find the GitHub CLI binary.

Desktop launchers often start without the user's shell PATH, so a few
well-known install locations are checked before asking PATH.
"""

import logging
import shutil
from pathlib import Path
from typing import Callable, Sequence

from myimpact.errors import ToolNotFound

DEFAULT_SEARCH_PATHS = (
    "/opt/homebrew/bin/gh",
    "/usr/local/bin/gh",
    "/usr/bin/gh",
    "/opt/local/bin/gh",
)

LOG = logging.getLogger("myimpact.services.gh.locator")


class CommandLocator:
    """Resolve a program to a runnable path: fixed locations first, then PATH."""

    def __init__(
        self,
        program: str = "gh",
        search_paths: Sequence[str | Path] = DEFAULT_SEARCH_PATHS,
        which: Callable[[str], str | None] = shutil.which,
    ) -> None:
        self.program = program
        self.search_paths = [Path(p) for p in search_paths]
        self._which = which

    def locate(self) -> Path:
        """Return the first existing search path, else the PATH lookup result.

        Raises:
            ToolNotFound: Neither strategy found the program.
        """
        for path in self.search_paths:
            if path.exists():
                LOG.debug("Found %s at %s", self.program, path)
                return path
        found = self._which(self.program)
        if found and found.strip():
            LOG.debug("Resolved %s via PATH: %s", self.program, found)
            return Path(found.strip())
        raise ToolNotFound(self.program)
