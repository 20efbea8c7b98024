"""Setup and replay sequencing for one evaluation run."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Tuple

from .errors import ExecutionError, ManifestError, MissingCommitFileError, SetupError
from .git.repository import DeletionResult, HookType, Repository
from .logging import get_logger
from .manifest import CommitManifest, LineReader


@dataclass
class ReplayOutcome:
    """Result of a completed replay."""

    repository: Path
    hook_file: Path
    applied_commits: Tuple[str, ...]


class EvaluationOrchestrator:
    """Prepares a repository from an archive and replays a commit sequence onto it.

    Replay is strictly sequential and never retried: the first failure ends the run
    and leaves the repository as it is for inspection or ``cleanup()``.
    """

    def __init__(
        self,
        repository: Repository | None = None,
        *,
        manifest_reader: LineReader | None = None,
    ) -> None:
        self.repository = repository or Repository()
        self._manifest_reader = manifest_reader
        self.manifest: Optional[CommitManifest] = None
        self.logger = get_logger("orchestrator")

    def setup(self, archive_file: Optional[Path], commit_sequence_directory: Optional[Path]) -> CommitManifest:
        """Extract the repository, then index the commit sequence directory."""
        self.repository.setup(archive_file)

        self.logger.info('Setting up the evaluation with commit sequence directory "%s"', commit_sequence_directory)
        try:
            manifest = CommitManifest.from_directory(commit_sequence_directory, reader=self._manifest_reader)
        except MissingCommitFileError:
            raise
        except ManifestError as exc:
            raise SetupError("Setting up the commit sequence failed") from exc

        self.manifest = manifest
        self.logger.info("Commit sequence contains %d commits", len(manifest))
        return manifest

    def run(self, hook_actions: Optional[str], hook_type: HookType = HookType.PRE) -> ReplayOutcome:
        """Install the commit hook and apply every commit from the oldest to the newest."""
        manifest = self.manifest
        if manifest is None or self.repository.directory is None:
            raise ExecutionError("The evaluation is not set up")

        hook_file = self.repository.install_hook(hook_actions, hook_type)

        applied = []
        total = len(manifest)
        for position, (commit, commit_file) in enumerate(manifest.replay_order(), start=1):
            self.logger.info("Replaying commit %s (%d/%d)", commit, position, total)
            self.repository.apply_commit(commit_file)
            applied.append(commit)

        self.repository.complete()
        self.logger.info("Replayed %d commits into %s", len(applied), self.repository.directory)
        return ReplayOutcome(
            repository=self.repository.directory,
            hook_file=hook_file,
            applied_commits=tuple(applied),
        )

    def cleanup(self) -> DeletionResult:
        """Delete the extracted repository; never raises."""
        return self.repository.delete()


__all__ = ["EvaluationOrchestrator", "ReplayOutcome"]
