"""Tests for commit sequence indexing."""

from __future__ import annotations

from pathlib import Path

import pytest

from commitreplay.errors import (
    CommitCountMismatchError,
    ManifestReadError,
    MissingCommitFileError,
    SetupError,
)
from commitreplay.files import FileOperationError
from commitreplay.manifest import CommitManifest, validate_commit_directory
from tests._fixtures.archive_builder import ArchiveBuilder


def test_manifest_indexes_commits_in_sequence_order(archive_builder: ArchiveBuilder) -> None:
    directory = archive_builder.commit_sequence(
        ["c3", "c2", "c1"],
        {"c1": "patch 1", "c2": "patch 2", "c3": "patch 3"},
    )

    manifest = CommitManifest.from_directory(directory)

    assert manifest.sequence == ("c3", "c2", "c1")
    assert len(manifest) == 3
    assert manifest.manifest_file.name == "CommitSequence.txt"
    assert manifest.commit_file("c2") == directory / "c2"


def test_replay_order_runs_from_oldest_to_newest(archive_builder: ArchiveBuilder) -> None:
    directory = archive_builder.commit_sequence(["new", "mid", "old"], {"new": "", "mid": "", "old": ""})

    manifest = CommitManifest.from_directory(directory)

    assert [commit for commit, _ in manifest.replay_order()] == ["old", "mid", "new"]
    assert [path.name for _, path in manifest.replay_order()] == ["old", "mid", "new"]


def test_manifest_skips_blank_lines(archive_builder: ArchiveBuilder) -> None:
    directory = archive_builder.commit_sequence(["b", "", "  ", "a"], {"a": "", "b": ""})

    manifest = CommitManifest.from_directory(directory)

    assert manifest.sequence == ("b", "a")


def test_manifest_accepts_any_name_with_prefix(archive_builder: ArchiveBuilder) -> None:
    directory = archive_builder.commit_sequence(["a"], {"a": ""}, manifest_name="CommitSequence_1-5")

    manifest = CommitManifest.from_directory(directory)

    assert manifest.manifest_file == directory / "CommitSequence_1-5"


def test_manifest_count_mismatch_reports_both_numbers(archive_builder: ArchiveBuilder) -> None:
    directory = archive_builder.commit_sequence(["a", "b"], {"a": ""})

    with pytest.raises(CommitCountMismatchError) as excinfo:
        CommitManifest.from_directory(directory)

    error = excinfo.value
    assert error.sequence_length == 2
    assert error.file_count == 1
    assert "(2)" in str(error)
    assert "(1)" in str(error)
    assert str(directory) in str(error)
    assert str(directory / "CommitSequence.txt") in str(error)


def test_manifest_without_commit_files_is_a_count_mismatch(archive_builder: ArchiveBuilder) -> None:
    directory = archive_builder.commit_sequence(["a"], {})

    with pytest.raises(CommitCountMismatchError) as excinfo:
        CommitManifest.from_directory(directory)

    assert excinfo.value.sequence_length == 1
    assert excinfo.value.file_count == 0


def test_manifest_reports_first_missing_commit(archive_builder: ArchiveBuilder) -> None:
    directory = archive_builder.commit_sequence(["X", "Z"], {"Y": "", "W": ""})

    with pytest.raises(MissingCommitFileError) as excinfo:
        CommitManifest.from_directory(directory)

    assert excinfo.value.commit == "X"
    assert str(excinfo.value) == 'The commit file for commit "X" is not available'


def test_manifest_requires_sequence_file(tmp_path: Path) -> None:
    directory = tmp_path / "commits"
    directory.mkdir()
    (directory / "a").write_text("", encoding="utf-8")

    with pytest.raises(ManifestReadError, match="does not contain"):
        CommitManifest.from_directory(directory)


def test_manifest_rejects_multiple_sequence_files(archive_builder: ArchiveBuilder) -> None:
    directory = archive_builder.commit_sequence(["a"], {"a": "", "CommitSequence.bak": "a\n"})

    with pytest.raises(ManifestReadError, match="more than one"):
        CommitManifest.from_directory(directory)


def test_manifest_wraps_read_failures(archive_builder: ArchiveBuilder) -> None:
    directory = archive_builder.commit_sequence(["a"], {"a": ""})

    def reader(path: Path) -> list[str]:
        raise FileOperationError(f"cannot read {path}")

    with pytest.raises(ManifestReadError) as excinfo:
        CommitManifest.from_directory(directory, reader=reader)

    assert isinstance(excinfo.value.__cause__, FileOperationError)


def test_validate_commit_directory_checks_in_order(tmp_path: Path) -> None:
    with pytest.raises(SetupError, match='is "None"'):
        validate_commit_directory(None)

    missing = tmp_path / "missing"
    with pytest.raises(SetupError, match="does not exist"):
        validate_commit_directory(missing)

    regular = tmp_path / "file"
    regular.write_text("", encoding="utf-8")
    with pytest.raises(SetupError, match="is not a directory"):
        validate_commit_directory(regular)

    empty = tmp_path / "empty"
    empty.mkdir()
    with pytest.raises(SetupError, match="is empty"):
        validate_commit_directory(empty)
