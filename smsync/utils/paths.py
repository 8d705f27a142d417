# SMSYNC Path Utilities
# Path expansion and atomic file writes

import os
import tempfile
from pathlib import Path


def expand_path(path: str | Path) -> Path:
    """
    Expand ~ and environment variables in path.

    Args:
        path: Path string or Path object.

    Returns:
        Expanded Path object.
    """
    path_str = os.path.expanduser(str(path))
    path_str = os.path.expandvars(path_str)
    return Path(path_str)


def ensure_dir(path: Path) -> Path:
    """Ensure directory exists, creating if necessary."""
    path.mkdir(parents=True, exist_ok=True)
    return path


def atomic_write(path: Path, content: str | bytes, *, encoding: str = "utf-8") -> None:
    """
    Atomically write content to file.

    The content goes to a temporary file in the target directory which is
    then renamed over the target, so readers never observe a partial file.

    Args:
        path: Target file path.
        content: Content to write (str or bytes).
        encoding: Encoding for string content (default utf-8).
    """
    ensure_dir(path.parent)

    fd, temp_path = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        if isinstance(content, str):
            with os.fdopen(fd, "w", encoding=encoding) as f:
                f.write(content)
                f.flush()
                os.fsync(f.fileno())
        else:
            with os.fdopen(fd, "wb") as f:
                f.write(content)
                f.flush()
                os.fsync(f.fileno())
        os.replace(temp_path, path)
    except Exception:
        try:
            os.unlink(temp_path)
        except OSError:
            pass
        raise
