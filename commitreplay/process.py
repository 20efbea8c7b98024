"""Subprocess execution utilities."""

from __future__ import annotations

import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Mapping, Sequence


class ProcessError(RuntimeError):
    """Raised when an external command cannot be started or does not finish in time."""


@dataclass(frozen=True)
class ExecutionResult:
    """Exit status and captured output of one external command."""

    args: Sequence[str]
    exit_code: int
    stdout: str = ""
    stderr: str = ""

    @property
    def succeeded(self) -> bool:
        return self.exit_code == 0


def command_string(args: Iterable[str]) -> str:
    """Return a printable form of an argument vector."""
    return " ".join(args)


def run_command(
    args: Iterable[str],
    *,
    cwd: Path,
    env: Mapping[str, str] | None = None,
    timeout: float | None = None,
) -> ExecutionResult:
    """Run ``args`` in ``cwd`` and capture its output.

    A non-zero exit status is returned, not raised; callers decide what it means.
    """
    argv = list(args)
    try:
        completed = subprocess.run(
            argv,
            cwd=str(cwd),
            env=dict(env) if env is not None else None,
            check=False,
            text=True,
            capture_output=True,
            timeout=timeout,
        )
    except subprocess.TimeoutExpired as exc:
        raise ProcessError(
            f'Command "{command_string(argv)}" in "{cwd}" timed out after {timeout} seconds'
        ) from exc
    except OSError as exc:
        raise ProcessError(f'Starting command "{command_string(argv)}" in "{cwd}" failed') from exc
    return ExecutionResult(
        args=tuple(argv),
        exit_code=completed.returncode,
        stdout=completed.stdout or "",
        stderr=completed.stderr or "",
    )


__all__ = ["ExecutionResult", "ProcessError", "command_string", "run_command"]
