"""Extracted repository instances and the commit replay protocol."""

from __future__ import annotations

import os
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Callable, Dict, List, Mapping, Optional, Sequence, Tuple

from ..archive import ArchiveError, ArchiveExtractor
from ..errors import CommitStepError, ExecutionError, SetupError
from ..files import FileOperationError, WriteOption, write_file
from ..logging import get_logger
from ..process import ExecutionResult, ProcessError, command_string, run_command

Runner = Callable[..., ExecutionResult]
Writer = Callable[[Path, str, WriteOption], Path]


class HookType(Enum):
    """Git hook that receives the user-defined actions."""

    PRE = "pre-commit"
    POST = "post-commit"

    @property
    def file_name(self) -> str:
        return self.value

    @classmethod
    def parse(cls, value: str) -> "HookType":
        normalised = value.strip().lower()
        if normalised in {"pre", "pre-commit"}:
            return cls.PRE
        if normalised in {"post", "post-commit"}:
            return cls.POST
        raise ValueError(f"Unknown commit hook type '{value}'. Allowed values: pre, post")


class GitStep(Enum):
    """The three commands that materialise one commit file, in execution order."""

    APPLY = ("git", "apply")
    STAGE = ("git", "add", "--all")
    COMMIT = ("git", "commit", "-m")

    def command(self, argument: str | None = None) -> List[str]:
        args = list(self.value)
        if argument is not None:
            args.append(argument)
        return args


class RepositoryState(Enum):
    UNINITIALIZED = "uninitialized"
    EXTRACTED = "extracted"
    HOOK_INSTALLED = "hook-installed"
    REPLAYING = "replaying"
    DONE = "done"
    DELETED = "deleted"


@dataclass(frozen=True)
class DeletionResult:
    """Outcome of removing a repository directory tree."""

    path: Optional[Path] = None
    failures: Tuple[Path, ...] = ()

    @property
    def deleted(self) -> bool:
        return not self.failures

    def __bool__(self) -> bool:
        return self.deleted


_GIT_IDENTITY_DEFAULTS = {
    "GIT_AUTHOR_NAME": "commitreplay",
    "GIT_AUTHOR_EMAIL": "commitreplay@example.com",
}


class Repository:
    """Owns one extracted repository and mutates it through hook installation and replay."""

    SHEBANG = "#!/bin/sh"
    ARCHIVE_SUFFIX = ".zip"
    HOOKS_DIRECTORY = Path(".git") / "hooks"
    HOOK_MODE = 0o755

    def __init__(
        self,
        *,
        extractor: ArchiveExtractor | None = None,
        runner: Runner | None = None,
        writer: Writer | None = None,
        timeout: float | None = None,
        env: Mapping[str, str] | None = None,
    ) -> None:
        self._extractor = extractor or ArchiveExtractor()
        self._runner = runner or run_command
        self._writer = writer or write_file
        self._timeout = timeout
        self._env = self._git_env(env)
        self._directory: Optional[Path] = None
        self._state = RepositoryState.UNINITIALIZED
        self.logger = get_logger("repository")

    @property
    def directory(self) -> Optional[Path]:
        return self._directory

    @property
    def state(self) -> RepositoryState:
        return self._state

    def hook_path(self, hook_type: HookType = HookType.PRE) -> Path:
        directory = self._require_directory()
        return directory / self.HOOKS_DIRECTORY / hook_type.file_name

    # ------------------------------------------------------------------
    # Lifecycle

    def setup(self, archive_file: Optional[Path]) -> Path:
        """Extract ``archive_file`` and record the extracted root as working directory."""
        if self._state is not RepositoryState.UNINITIALIZED:
            raise SetupError(f'The repository is already set up at "{self._directory}"')
        if archive_file is None:
            raise SetupError('The given archive file is "None"')
        archive_file = Path(archive_file).absolute()
        if not archive_file.exists():
            raise SetupError(f'The archive file "{archive_file}" does not exist')
        if not archive_file.is_file():
            raise SetupError(f'The archive file "{archive_file}" is not a file')
        if not archive_file.name.endswith(self.ARCHIVE_SUFFIX):
            raise SetupError(f'The archive file "{archive_file}" is not a zip archive')

        self.logger.debug('Setting up repository from archive file "%s"', archive_file)
        try:
            directory = self._extractor.extract(archive_file)
        except ArchiveError as exc:
            # Keep partial output reachable for delete().
            self._directory = exc.extracted_root
            raise SetupError(f'Extracting archive file "{archive_file}" failed') from exc

        self._directory = directory
        self._state = RepositoryState.EXTRACTED
        self._verify_work_tree(archive_file, directory)
        self.logger.info('Repository extracted to "%s"', directory)
        return directory

    def install_hook(
        self,
        hook_actions: Optional[str],
        hook_type: HookType = HookType.PRE,
        *,
        overwrite: bool = False,
    ) -> Path:
        """Write ``hook_actions`` as an executable hook script into ``.git/hooks``."""
        if hook_actions is None:
            raise ExecutionError('The given hook actions are "None"')
        if not hook_actions.strip():
            raise ExecutionError("The given hook actions are empty")
        hook_file = self.hook_path(hook_type)

        content = f"{self.SHEBANG}\n{hook_actions}"
        self.logger.debug('Adding %s hook "%s"\nContent:\n%s', hook_type.file_name, hook_file, content)
        option = WriteOption.OVERWRITE if overwrite else WriteOption.CREATE
        try:
            self._writer(hook_file, content, option)
            hook_file.chmod(self.HOOK_MODE)
        except (FileOperationError, OSError) as exc:
            raise ExecutionError(f"Adding {hook_type.file_name} hook failed") from exc

        self._state = RepositoryState.HOOK_INSTALLED
        return hook_file

    def apply_commit(self, commit_file: Optional[Path]) -> None:
        """Apply, stage, and commit one commit file, stopping at the first failing step."""
        if commit_file is None:
            raise ExecutionError('The given commit file is "None"')
        commit_file = Path(commit_file).absolute()
        if not commit_file.exists():
            raise ExecutionError(f'The given commit file "{commit_file}" does not exist')
        if not commit_file.is_file():
            raise ExecutionError(f'The given commit file "{commit_file}" is not a file')
        directory = self._require_directory()

        self._state = RepositoryState.REPLAYING
        self._run_step(
            GitStep.APPLY,
            GitStep.APPLY.command(str(commit_file)),
            directory,
            commit_file,
            f'Applying changes from "{commit_file}" failed',
        )
        self._run_step(
            GitStep.STAGE,
            GitStep.STAGE.command(),
            directory,
            commit_file,
            "Staging changes failed",
        )
        self._run_step(
            GitStep.COMMIT,
            GitStep.COMMIT.command(commit_file.name),
            directory,
            commit_file,
            "Committing changes failed",
        )

    def complete(self) -> None:
        """Mark the replay as finished; no further commits are expected."""
        self._require_directory()
        if self._state not in {RepositoryState.HOOK_INSTALLED, RepositoryState.REPLAYING}:
            raise ExecutionError(f'The repository cannot complete a replay in state "{self._state.value}"')
        self._state = RepositoryState.DONE

    def delete(self) -> DeletionResult:
        """Remove the working directory tree, children before parents.

        Never raises; failures are reported through the result so cleanup paths
        cannot hide an earlier error.
        """
        directory = self._directory
        if directory is None or not os.path.lexists(directory):
            return DeletionResult(path=directory)

        failures: List[Path] = []
        self._delete_tree(directory, failures)
        if failures:
            self.logger.error('Deleting "%s" left %d entries behind', directory, len(failures))
        else:
            self._state = RepositoryState.DELETED
        return DeletionResult(path=directory, failures=tuple(failures))

    # ------------------------------------------------------------------
    # Helpers

    def _require_directory(self) -> Path:
        if self._directory is None or self._state in {
            RepositoryState.UNINITIALIZED,
            RepositoryState.DELETED,
        }:
            raise ExecutionError("The repository is not set up")
        return self._directory

    def _verify_work_tree(self, archive_file: Path, directory: Path) -> None:
        message = f'The archive file "{archive_file}" does not contain a Git repository'
        if not (directory / ".git").is_dir():
            raise SetupError(message)
        try:
            result = self._run(["git", "rev-parse", "--is-inside-work-tree"], directory)
        except ProcessError as exc:
            raise SetupError(f'Validating Git repository "{directory}" failed') from exc
        if not result.succeeded or result.stdout.strip() != "true":
            raise SetupError(message)

    def _run_step(
        self,
        step: GitStep,
        args: Sequence[str],
        directory: Path,
        commit_file: Path,
        failure_message: str,
    ) -> ExecutionResult:
        self.logger.debug("%s: %s", step.name.lower(), command_string(args))
        try:
            result = self._run(args, directory)
        except ProcessError as exc:
            raise CommitStepError(failure_message, step=step, commit_file=commit_file) from exc
        if not result.succeeded:
            stderr = result.stderr.strip()
            raise CommitStepError(
                f"{failure_message}: {stderr}",
                step=step,
                commit_file=commit_file,
                exit_code=result.exit_code,
                stderr=stderr,
            )
        return result

    def _run(self, args: Sequence[str], cwd: Path) -> ExecutionResult:
        return self._runner(list(args), cwd=cwd, env=self._env, timeout=self._timeout)

    def _delete_tree(self, path: Path, failures: List[Path]) -> None:
        if path.is_dir() and not path.is_symlink():
            try:
                children = list(path.iterdir())
            except OSError:
                children = []
            for child in children:
                self._delete_tree(child, failures)
            remove: Callable[[], None] = path.rmdir
        else:
            remove = path.unlink
        try:
            remove()
        except OSError as exc:
            self.logger.error('Deleting "%s" failed: %s', path, exc)
            failures.append(path)

    @staticmethod
    def _git_env(overrides: Mapping[str, str] | None) -> Dict[str, str]:
        env = dict(os.environ)
        if overrides:
            env.update(overrides)
        for key, value in _GIT_IDENTITY_DEFAULTS.items():
            env.setdefault(key, value)
        env.setdefault("GIT_COMMITTER_NAME", env["GIT_AUTHOR_NAME"])
        env.setdefault("GIT_COMMITTER_EMAIL", env["GIT_AUTHOR_EMAIL"])
        return env


__all__ = [
    "DeletionResult",
    "GitStep",
    "HookType",
    "Repository",
    "RepositoryState",
]
