"""Helpers for building repository archives and commit sequence directories in tests."""

from __future__ import annotations

import os
import shutil
import subprocess
import zipfile
from pathlib import Path
from typing import Dict, Mapping, Sequence

import pytest

requires_git = pytest.mark.skipif(shutil.which("git") is None, reason="git executable not available")

_GIT_ENV = {
    "GIT_AUTHOR_NAME": "fixture",
    "GIT_AUTHOR_EMAIL": "fixture@example.com",
    "GIT_COMMITTER_NAME": "fixture",
    "GIT_COMMITTER_EMAIL": "fixture@example.com",
}


def git(args: Sequence[str], cwd: Path) -> str:
    """Run git in ``cwd`` and return its stdout, failing loudly on errors."""
    env: Dict[str, str] = dict(os.environ)
    env.update(_GIT_ENV)
    completed = subprocess.run(
        ["git", *args],
        cwd=str(cwd),
        env=env,
        check=True,
        text=True,
        capture_output=True,
    )
    return completed.stdout


def new_file_patch(path: str, content: str) -> str:
    """Return a unified diff that creates ``path`` with ``content``."""
    lines = content.splitlines()
    body = "".join(f"+{line}\n" for line in lines)
    return (
        f"diff --git a/{path} b/{path}\n"
        "new file mode 100644\n"
        "--- /dev/null\n"
        f"+++ b/{path}\n"
        f"@@ -0,0 +1,{len(lines)} @@\n"
        f"{body}"
    )


def replace_line_patch(path: str, old: str, new: str) -> str:
    """Return a unified diff that replaces the single line of ``path``."""
    return (
        f"diff --git a/{path} b/{path}\n"
        f"--- a/{path}\n"
        f"+++ b/{path}\n"
        "@@ -1 +1 @@\n"
        f"-{old}\n"
        f"+{new}\n"
    )


class ArchiveBuilder:
    """Creates zipped Git repositories and commit sequence directories under a tmp path."""

    ROOT_NAME = "TestRepository"

    def __init__(self, tmp_path: Path) -> None:
        self.base = tmp_path

    def plain_archive(self, entries: Mapping[str, str], *, name: str = "plain.zip") -> Path:
        """Zip ``entries`` (``name -> text``; names ending in ``/`` are directories)."""
        archive_dir = self.base / "archives"
        archive_dir.mkdir(parents=True, exist_ok=True)
        archive = archive_dir / name
        with zipfile.ZipFile(archive, "w") as handle:
            for entry, content in entries.items():
                handle.writestr(entry, content)
        return archive

    def repository_archive(self, *, name: str = "repository.zip", directory: str = "archives") -> Path:
        """Zip a Git repository holding one empty initial commit."""
        source = self.base / "sources" / name / self.ROOT_NAME
        source.mkdir(parents=True)
        git(["init", "-q"], source)
        git(["commit", "-q", "--allow-empty", "-m", "initial"], source)

        archive_dir = self.base / directory
        archive_dir.mkdir(parents=True, exist_ok=True)
        archive = archive_dir / name
        with zipfile.ZipFile(archive, "w", zipfile.ZIP_DEFLATED) as handle:
            handle.write(source, f"{self.ROOT_NAME}/")
            for path in sorted(source.rglob("*")):
                arcname = f"{self.ROOT_NAME}/{path.relative_to(source).as_posix()}"
                if path.is_dir():
                    handle.write(path, f"{arcname}/")
                else:
                    handle.write(path, arcname)
        return archive

    def corrupted_archive(self, *, name: str = "repository_corrupted.zip") -> Path:
        """Return a repository archive truncated to half of its bytes."""
        valid = self.repository_archive(name=f"valid_{name}", directory="valid")
        data = valid.read_bytes()
        archive_dir = self.base / "archives"
        archive_dir.mkdir(parents=True, exist_ok=True)
        archive = archive_dir / name
        archive.write_bytes(data[: len(data) // 2])
        return archive

    def commit_sequence(
        self,
        sequence: Sequence[str],
        files: Mapping[str, str],
        *,
        name: str = "commits",
        manifest_name: str = "CommitSequence.txt",
    ) -> Path:
        """Write a manifest listing ``sequence`` plus the given commit files."""
        directory = self.base / name
        directory.mkdir(parents=True)
        (directory / manifest_name).write_text("\n".join(sequence) + "\n", encoding="utf-8")
        for file_name, content in files.items():
            (directory / file_name).write_text(content, encoding="utf-8")
        return directory


__all__ = ["ArchiveBuilder", "git", "new_file_patch", "replace_line_patch", "requires_git"]
