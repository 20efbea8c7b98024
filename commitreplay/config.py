"""Configuration loading for commitreplay (YAML files)."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from .git.repository import HookType
from .logging import StreamType

EVALUATION_TASK = "evaluation"
GENERATION_TASK = "generation"

_DESCRIPTIONS = {
    "core.task": "Use \"evaluation\" to replay a commit sequence onto a repository archive",
    "core.output_directory": "Use the path to an existing directory to save execution results to",
    "core.command_timeout": "Use a positive number of seconds after which a single external command is aborted",
    "logging.standard_stream": "Use one of: system (default), file, none",
    "logging.debug_stream": "Use one of: system, file, none (default)",
    "evaluation.repository_archive": "Use the path to an existing archive file (*.zip) containing the repository",
    "evaluation.commits_directory": "Use the path to an existing directory containing the commit sequence",
    "evaluation.commit_hook_type": "Use one of: pre, post",
    "evaluation.commit_hook_content": "Use a string containing all instructions for the commit hook",
}


class ConfigError(RuntimeError):
    """Raised when the configuration file cannot be parsed or is inconsistent."""


@dataclass
class LoggingConfig:
    """Routing of the standard and debug logging channels."""

    standard_stream: StreamType = StreamType.SYSTEM
    debug_stream: StreamType = StreamType.NONE


@dataclass
class EvaluationConfig:
    """Inputs of one replay run."""

    repository_archive: Path
    commits_directory: Path
    commit_hook_type: HookType
    commit_hook_content: str


@dataclass
class ReplayConfig:
    """Represents the settings defined in a commitreplay configuration file."""

    source: Path
    task: str
    output_directory: Path
    evaluation: EvaluationConfig
    logging: LoggingConfig
    command_timeout: Optional[float] = None


def load_config(config_path: Path) -> ReplayConfig:
    """Load and validate a configuration file."""
    config_file = Path(config_path).expanduser().absolute()
    if not config_file.exists():
        raise ConfigError(f'Configuration file "{config_file}" does not exist')
    if not config_file.is_file():
        raise ConfigError(f'Configuration file "{config_file}" is not a file')

    data = _read_config(config_file)
    if not data:
        raise ConfigError(f'Configuration file "{config_file}" does not contain any properties')
    if not isinstance(data, dict):
        raise ConfigError(f'Configuration file "{config_file}" must contain a mapping at the root')

    root = config_file.parent
    task = _required(data, "core", "task")
    if task == GENERATION_TASK:
        raise ConfigError("Task \"generation\" is not supported by this tool: " + _DESCRIPTIONS["core.task"])
    if task != EVALUATION_TASK:
        raise ConfigError(f'Setting task "{task}" failed: ' + _DESCRIPTIONS["core.task"])

    output_directory = _as_path(root, _required(data, "core", "output_directory"))
    if not output_directory.is_dir():
        raise ConfigError(
            f'Setting output directory "{output_directory}" failed: ' + _DESCRIPTIONS["core.output_directory"]
        )

    command_timeout = None
    raw_timeout = _optional(data, "core", "command_timeout")
    if raw_timeout is not None:
        command_timeout = _as_float(raw_timeout)
        if command_timeout is None or command_timeout <= 0:
            raise ConfigError(
                f'Setting command timeout "{raw_timeout}" failed: ' + _DESCRIPTIONS["core.command_timeout"]
            )

    logging_config = LoggingConfig()
    standard_stream = _optional(data, "logging", "standard_stream")
    if standard_stream is not None:
        logging_config.standard_stream = _as_stream(standard_stream, "logging.standard_stream")
    debug_stream = _optional(data, "logging", "debug_stream")
    if debug_stream is not None:
        logging_config.debug_stream = _as_stream(debug_stream, "logging.debug_stream")

    return ReplayConfig(
        source=config_file,
        task=task,
        output_directory=output_directory,
        evaluation=_load_evaluation(data, root),
        logging=logging_config,
        command_timeout=command_timeout,
    )


def _load_evaluation(data: Dict[str, Any], root: Path) -> EvaluationConfig:
    archive = _as_path(root, _required(data, "evaluation", "repository_archive"))
    if not archive.is_file():
        raise ConfigError(
            f'Setting repository archive "{archive}" failed: ' + _DESCRIPTIONS["evaluation.repository_archive"]
        )
    if archive.suffix != ".zip":
        raise ConfigError(
            f'Repository archive "{archive}" is not a zip archive: '
            + _DESCRIPTIONS["evaluation.repository_archive"]
        )

    commits_directory = _as_path(root, _required(data, "evaluation", "commits_directory"))
    if not commits_directory.is_dir():
        raise ConfigError(
            f'Setting commit sequence directory "{commits_directory}" failed: '
            + _DESCRIPTIONS["evaluation.commits_directory"]
        )

    raw_hook_type = _required(data, "evaluation", "commit_hook_type")
    try:
        hook_type = HookType.parse(raw_hook_type)
    except ValueError as exc:
        raise ConfigError(
            f'Setting commit hook type "{raw_hook_type}" failed: ' + _DESCRIPTIONS["evaluation.commit_hook_type"]
        ) from exc

    return EvaluationConfig(
        repository_archive=archive,
        commits_directory=commits_directory,
        commit_hook_type=hook_type,
        commit_hook_content=_strip_quotes(_required(data, "evaluation", "commit_hook_content")),
    )


def _read_config(path: Path) -> Any:
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise ConfigError(f'Reading configuration file "{path}" failed') from exc
    if not text.strip():
        return {}
    try:
        return yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Failed to parse {path.name}: {exc}") from exc


def _required(data: Dict[str, Any], section: str, key: str) -> str:
    name = f"{section}.{key}"
    section_data = _as_dict(data.get(section))
    if key not in section_data:
        raise ConfigError(f'Missing property "{name}": {_DESCRIPTIONS[name]}')
    value = _as_str(section_data.get(key))
    if value is None or not value.strip():
        raise ConfigError(f'Empty property "{name}": {_DESCRIPTIONS[name]}')
    return value.strip()


def _optional(data: Dict[str, Any], section: str, key: str) -> Optional[str]:
    section_data = _as_dict(data.get(section))
    if key not in section_data:
        return None
    return _required(data, section, key)


def _as_stream(value: str, name: str) -> StreamType:
    try:
        return StreamType.parse(value)
    except ValueError as exc:
        raise ConfigError(f'Setting "{name}" to "{value}" failed: {_DESCRIPTIONS[name]}') from exc


def _as_path(root: Path, value: str) -> Path:
    path = Path(value).expanduser()
    if not path.is_absolute():
        path = root / path
    return path


def _strip_quotes(value: str) -> str:
    if len(value) >= 2 and value.startswith('"') and value.endswith('"'):
        return value[1:-1]
    return value


def _as_dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _as_str(value: Any) -> Optional[str]:
    if isinstance(value, bool):
        return str(value).lower()
    return str(value) if isinstance(value, (str, int, float)) else None


def _as_float(value: Any) -> Optional[float]:
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


__all__ = [
    "ConfigError",
    "EvaluationConfig",
    "LoggingConfig",
    "ReplayConfig",
    "load_config",
]
