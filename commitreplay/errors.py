"""Error taxonomy shared by the replay pipeline."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:  # pragma: no cover - typing only
    from .git.repository import GitStep


class ReplayError(RuntimeError):
    """Base class for all setup and execution failures."""


class SetupError(ReplayError):
    """Raised when inputs are invalid before any repository mutation happens."""


class ExecutionError(ReplayError):
    """Raised when hook installation or commit replay fails."""


class ManifestError(SetupError):
    """Raised when a commit sequence directory cannot be indexed."""


class ManifestReadError(ManifestError):
    """Raised when the commit sequence file is missing, ambiguous or unreadable."""


class CommitCountMismatchError(ManifestError):
    """Raised when the sequence length differs from the number of commit files."""

    def __init__(
        self,
        *,
        sequence_length: int,
        file_count: int,
        manifest_path: Path,
        directory: Path,
    ) -> None:
        self.sequence_length = sequence_length
        self.file_count = file_count
        self.manifest_path = manifest_path
        self.directory = directory
        super().__init__(
            f'The number of commits in the commit sequence file "{manifest_path}" ({sequence_length}) '
            f'does not match the number of commit files in "{directory}" ({file_count})'
        )


class MissingCommitFileError(ManifestError):
    """Raised when a listed commit has no artifact file of the same name."""

    def __init__(self, commit: str) -> None:
        self.commit = commit
        super().__init__(f'The commit file for commit "{commit}" is not available')


class CommitStepError(ExecutionError):
    """Raised when one of the apply/stage/commit steps exits with a non-zero status."""

    def __init__(
        self,
        message: str,
        *,
        step: "GitStep",
        commit_file: Path,
        exit_code: Optional[int] = None,
        stderr: str = "",
    ) -> None:
        self.step = step
        self.commit_file = commit_file
        self.exit_code = exit_code
        self.stderr = stderr
        super().__init__(message)


__all__ = [
    "CommitCountMismatchError",
    "CommitStepError",
    "ExecutionError",
    "ManifestError",
    "ManifestReadError",
    "MissingCommitFileError",
    "ReplayError",
    "SetupError",
]
