"""Small file read/write helpers used by the replay pipeline."""

from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import List


class FileOperationError(RuntimeError):
    """Raised when reading or writing a file fails."""


class WriteOption(Enum):
    """How ``write_file`` treats an existing target."""

    CREATE = "create"
    OVERWRITE = "overwrite"
    APPEND = "append"


def read_lines(path: Path) -> List[str]:
    """Return the lines of a UTF-8 text file without line terminators."""
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise FileOperationError(f'Reading file "{path}" failed') from exc
    return text.splitlines()


def write_file(path: Path, content: str, option: WriteOption = WriteOption.CREATE) -> Path:
    """Write ``content`` to ``path``, creating parent directories as needed.

    ``CREATE`` refuses to touch an existing file.
    """
    if path.exists():
        if not path.is_file():
            raise FileOperationError(f'"{path}" exists and is not a file')
        if option is WriteOption.CREATE:
            raise FileOperationError(f'File "{path}" already exists')

    mode = "a" if option is WriteOption.APPEND else "w"
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with path.open(mode, encoding="utf-8", newline="") as handle:
            handle.write(content)
    except OSError as exc:
        raise FileOperationError(f'Writing file "{path}" failed') from exc
    return path


__all__ = ["FileOperationError", "WriteOption", "read_lines", "write_file"]
