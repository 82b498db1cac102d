"""Path utilities for resolving locations and writing files safely."""

import os
import stat
import tempfile
from pathlib import Path
from typing import Optional, Union


def expand_path(path: Union[str, Path], base: Optional[Path] = None) -> Path:
    """Expand and normalize a path, resolving ~ and relative paths.

    Args:
        path: Path that may contain ~ or be relative
        base: Directory relative paths are resolved against (default: cwd)

    Returns:
        Absolute Path object
    """
    expanded = Path(path).expanduser()
    if not expanded.is_absolute() and base is not None:
        expanded = base / expanded
    return expanded.resolve()


def ensure_dir(path: Path) -> Path:
    """Ensure a directory exists, creating it if necessary."""
    path.mkdir(parents=True, exist_ok=True)
    return path


def write_text_atomic(path: Path, content: str) -> None:
    """Replace a file's content in one step.

    The content is written to a temporary file in the same directory and
    moved over the target with ``os.replace``, so readers observe either the
    old document or the new one. The target keeps its permission bits; a new
    file is created with mode 0644.

    Raises:
        OSError: If the temporary file cannot be written or moved
    """
    ensure_dir(path.parent)
    try:
        mode = stat.S_IMODE(path.stat().st_mode)
    except FileNotFoundError:
        mode = 0o644

    fd, tmp_name = tempfile.mkstemp(
        prefix=f".{path.name}.", suffix=".tmp", dir=str(path.parent)
    )
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(content)
        os.chmod(tmp_name, mode)
        os.replace(tmp_name, path)
    except BaseException:
        if os.path.exists(tmp_name):
            os.unlink(tmp_name)
        raise
