"""Internal helpers: whole-file JSON reads and atomic replacement writes."""

import os
import tempfile
from pathlib import Path

from myimpact.errors import FileWriteFailed


def read_bytes(path: Path) -> bytes | None:
    """Return file content, or None when the file does not exist. OSError propagates."""
    if not path.exists():
        return None
    return path.read_bytes()


def write_atomic(path: Path, data: bytes, what: str) -> None:
    """Replace path with data via a temp file in the same directory.

    Creates the directory if needed. Readers see either the old or the new
    content, never a partial write.
    """
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "wb") as fh:
                fh.write(data)
                fh.flush()
                os.fsync(fh.fileno())
            os.replace(tmp, path)
        except OSError:
            Path(tmp).unlink(missing_ok=True)
            raise
    except OSError as e:
        raise FileWriteFailed(f"Failed to save {what}: {e}") from e
