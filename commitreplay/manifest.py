"""Commit sequence directory indexing."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Dict, Iterable, Iterator, List, Mapping, Optional, Tuple

from .errors import (
    CommitCountMismatchError,
    ManifestReadError,
    MissingCommitFileError,
    SetupError,
)
from .files import FileOperationError, read_lines
from .logging import get_logger

COMMIT_SEQUENCE_FILE_PREFIX = "CommitSequence"

LineReader = Callable[[Path], List[str]]

_logger = get_logger("manifest")


@dataclass(frozen=True)
class CommitManifest:
    """Ordered commit identifiers and their commit files.

    ``sequence`` lists the newest commit first, so replay walks it backwards.
    """

    directory: Path
    manifest_file: Path
    sequence: Tuple[str, ...]
    commit_files: Mapping[str, Path] = field(default_factory=dict)

    def __len__(self) -> int:
        return len(self.sequence)

    def commit_file(self, commit: str) -> Path:
        return self.commit_files[commit]

    def replay_order(self) -> Iterator[Tuple[str, Path]]:
        """Yield ``(commit, file)`` pairs from the oldest to the newest commit."""
        for index in range(len(self.sequence) - 1, -1, -1):
            commit = self.sequence[index]
            yield commit, self.commit_file(commit)

    @classmethod
    def from_directory(
        cls,
        directory: Optional[Path],
        *,
        reader: LineReader | None = None,
    ) -> "CommitManifest":
        """Validate ``directory`` and index its commit sequence file and commit files."""
        directory = validate_commit_directory(directory)
        entries = {entry.name: entry for entry in sorted(directory.iterdir())}

        manifest_file = _find_manifest_file(directory, entries.values())
        try:
            lines = (reader or read_lines)(manifest_file)
        except FileOperationError as exc:
            raise ManifestReadError(f'Reading commit sequence file "{manifest_file}" failed') from exc
        sequence = tuple(line.strip() for line in lines if line.strip())

        file_count = len(entries) - 1
        if len(sequence) != file_count:
            raise CommitCountMismatchError(
                sequence_length=len(sequence),
                file_count=file_count,
                manifest_path=manifest_file,
                directory=directory,
            )

        commit_files: Dict[str, Path] = {}
        for commit in sequence:
            commit_file = entries.get(commit)
            if commit_file is None:
                raise MissingCommitFileError(commit)
            commit_files[commit] = commit_file

        _logger.debug("Indexed %d commits from %s", len(sequence), manifest_file)
        return cls(
            directory=directory,
            manifest_file=manifest_file,
            sequence=sequence,
            commit_files=commit_files,
        )


def validate_commit_directory(directory: Optional[Path]) -> Path:
    """Return ``directory`` as an absolute path if it is an existing, non-empty directory."""
    if directory is None:
        raise SetupError('The given commit sequence directory is "None"')
    directory = Path(directory).absolute()
    if not directory.exists():
        raise SetupError(f'The commit sequence directory "{directory}" does not exist')
    if not directory.is_dir():
        raise SetupError(f'The commit sequence directory "{directory}" is not a directory')
    if not any(directory.iterdir()):
        raise SetupError(f'The commit sequence directory "{directory}" is empty')
    return directory


def _find_manifest_file(directory: Path, entries: Iterable[Path]) -> Path:
    candidates = [
        entry
        for entry in entries
        if entry.name.startswith(COMMIT_SEQUENCE_FILE_PREFIX) and entry.is_file()
    ]
    if not candidates:
        raise ManifestReadError(
            f'The commit sequence directory "{directory}" does not contain a '
            f'"{COMMIT_SEQUENCE_FILE_PREFIX}" file'
        )
    if len(candidates) > 1:
        names = ", ".join(candidate.name for candidate in candidates)
        raise ManifestReadError(
            f'The commit sequence directory "{directory}" contains more than one commit sequence file: {names}'
        )
    return candidates[0]


__all__ = ["COMMIT_SEQUENCE_FILE_PREFIX", "CommitManifest", "validate_commit_directory"]
