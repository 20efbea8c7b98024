"""Zip archive extraction."""

from __future__ import annotations

import shutil
import zipfile
import zlib
from pathlib import Path, PurePosixPath

from .logging import get_logger


class ArchiveError(RuntimeError):
    """Raised when an archive cannot be opened, read, or written to disk.

    ``extracted_root`` points to the partially extracted root entry, if any
    entry reached the disk before the failure.
    """

    def __init__(self, message: str, *, extracted_root: Path | None = None) -> None:
        super().__init__(message)
        self.extracted_root = extracted_root


class ArchiveExtractor:
    """Extracts zip archives next to the archive file (or into a given directory)."""

    _CHUNK_SIZE = 64 * 1024

    def __init__(self) -> None:
        self.logger = get_logger("archive")

    def extract(self, archive_file: Path, destination: Path | None = None) -> Path:
        """Extract every entry and return the path of the root entry."""
        target_dir = (destination or archive_file.parent).resolve()
        self.logger.info('Extracting entries from archive file "%s"', archive_file)
        try:
            archive = zipfile.ZipFile(archive_file)
        except (OSError, zipfile.BadZipFile) as exc:
            raise ArchiveError(f'Opening archive file "{archive_file}" failed') from exc

        extracted_root: Path | None = None
        with archive:
            entries = archive.infolist()
            if not entries:
                raise ArchiveError(f'Archive file "{archive_file}" does not contain any entries')
            for entry in entries:
                try:
                    entry_path = self._entry_path(target_dir, entry.filename, archive_file)
                    if extracted_root is None:
                        extracted_root = target_dir / PurePosixPath(entry.filename).parts[0]
                    self._extract_entry(archive, entry, entry_path)
                except ArchiveError as exc:
                    exc.extracted_root = _partial_root(extracted_root)
                    raise
                except (OSError, zipfile.BadZipFile, zlib.error, EOFError, NotImplementedError, RuntimeError) as exc:
                    # Unsupported compression raises NotImplementedError, encrypted entries RuntimeError.
                    raise ArchiveError(
                        f'Extracting archive entry "{entry.filename}" failed',
                        extracted_root=_partial_root(extracted_root),
                    ) from exc

        self.logger.debug("Extracted %d entries to %s", len(entries), extracted_root)
        return extracted_root

    def _extract_entry(self, archive: zipfile.ZipFile, entry: zipfile.ZipInfo, entry_path: Path) -> None:
        if entry.is_dir():
            entry_path.mkdir(parents=True, exist_ok=True)
            return
        entry_path.parent.mkdir(parents=True, exist_ok=True)
        with archive.open(entry) as source, entry_path.open("wb") as sink:
            shutil.copyfileobj(source, sink, self._CHUNK_SIZE)

    @staticmethod
    def _entry_path(target_dir: Path, name: str, archive_file: Path) -> Path:
        candidate = (target_dir / name).resolve()
        if candidate != target_dir and target_dir not in candidate.parents:
            raise ArchiveError(f'Archive entry "{name}" in "{archive_file}" escapes the target directory')
        return candidate


def _partial_root(root: Path | None) -> Path | None:
    return root if root is not None and root.exists() else None


__all__ = ["ArchiveError", "ArchiveExtractor"]
