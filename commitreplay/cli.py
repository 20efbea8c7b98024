"""CLI entrypoint for replaying commit sequences."""

from __future__ import annotations

import argparse
import logging
import sys
import time
from pathlib import Path
from typing import Optional

from .config import ConfigError, ReplayConfig, load_config
from .errors import ReplayError
from .git.repository import HookType, Repository
from .logging import StreamType, configure_logging, default_log_file, get_logger
from .orchestrator import EvaluationOrchestrator

ARGUMENTS_DESCRIPTION = (
    "There must be exactly three arguments in the following order:\n"
    "1. The path to the repository archive file (*.zip)\n"
    "2. The path to the commit sequence directory\n"
    "3. The commit hook actions\n"
    "Alternatively, pass a configuration file with --config."
)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="commitreplay",
        description="Replay a commit sequence onto an archived repository with a custom commit hook.",
    )
    parser.add_argument(
        "inputs",
        nargs="*",
        metavar="ARGUMENT",
        help="Repository archive, commit sequence directory, and commit hook actions.",
    )
    parser.add_argument(
        "-c",
        "--config",
        type=Path,
        help="YAML configuration file providing all evaluation inputs.",
    )
    parser.add_argument(
        "--hook-type",
        choices=["pre", "post"],
        default=None,
        help="Hook receiving the actions (defaults to pre).",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=None,
        help="Abort a single git command after this many seconds.",
    )
    parser.add_argument(
        "--cleanup",
        action="store_true",
        help="Delete the extracted repository when the run ends.",
    )
    parser.add_argument(
        "--log-file",
        type=Path,
        default=None,
        help="Write log output to this file instead of the console.",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        default=False,
        help="Increase log verbosity for troubleshooting.",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    """CLI entrypoint for commitreplay."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    config: Optional[ReplayConfig] = None
    config_error: Optional[ConfigError] = None
    if args.config is not None:
        try:
            config = load_config(args.config)
        except ConfigError as exc:
            config_error = exc

    _configure(args, config)
    logger = get_logger("cli")

    if config_error is not None:
        _log_failure(logger, "Loading the configuration failed", config_error)
        return 1

    if config is not None and args.inputs:
        logger.error("Wrong number of arguments\n%s", ARGUMENTS_DESCRIPTION)
        return 2
    if config is None and len(args.inputs) != 3:
        logger.error("Wrong number of arguments\n%s", ARGUMENTS_DESCRIPTION)
        return 2

    if config is not None:
        archive = config.evaluation.repository_archive
        commits_directory = config.evaluation.commits_directory
        hook_actions = config.evaluation.commit_hook_content
        hook_type = config.evaluation.commit_hook_type
        timeout = args.timeout if args.timeout is not None else config.command_timeout
    else:
        archive = Path(args.inputs[0])
        commits_directory = Path(args.inputs[1])
        hook_actions = args.inputs[2]
        hook_type = HookType.PRE
        timeout = args.timeout
    if args.hook_type:
        hook_type = HookType.parse(args.hook_type)

    return _execute(
        logger,
        archive=archive,
        commits_directory=commits_directory,
        hook_actions=hook_actions,
        hook_type=hook_type,
        timeout=timeout,
        cleanup=bool(args.cleanup),
    )


def _execute(
    logger: logging.Logger,
    *,
    archive: Path,
    commits_directory: Path,
    hook_actions: str,
    hook_type: HookType,
    timeout: Optional[float],
    cleanup: bool,
) -> int:
    logger.info(
        'Start execution\nRepository archive file: "%s"\nCommit sequence directory: "%s"\nCommit hook actions: "%s"',
        archive.absolute(),
        commits_directory.absolute(),
        hook_actions,
    )
    orchestrator = EvaluationOrchestrator(Repository(timeout=timeout))
    started = time.monotonic()
    status = 0
    try:
        orchestrator.setup(archive, commits_directory)
        outcome = orchestrator.run(hook_actions, hook_type)
        logger.info("Replayed %d commits into %s", len(outcome.applied_commits), outcome.repository)
    except ReplayError as exc:
        _log_failure(logger, "Evaluation failed", exc)
        status = 1
    finally:
        if cleanup:
            result = orchestrator.cleanup()
            if not result.deleted:
                logger.warning("Deleting the repository left %d entries behind", len(result.failures))
        elapsed = int(time.monotonic() - started)
        logger.info("End execution\nDuration: %d min. and %d sec.", elapsed // 60, elapsed % 60)
    return status


def _configure(args: argparse.Namespace, config: Optional[ReplayConfig]) -> None:
    standard_stream = StreamType.SYSTEM
    debug_stream: Optional[StreamType] = None
    log_file = args.log_file
    if config is not None:
        standard_stream = config.logging.standard_stream
        debug_stream = config.logging.debug_stream
        if args.verbose and debug_stream is StreamType.NONE:
            debug_stream = StreamType.SYSTEM
        if log_file is None and StreamType.FILE in (standard_stream, debug_stream):
            log_file = default_log_file(config.output_directory)
    elif log_file is not None:
        standard_stream = StreamType.FILE
        debug_stream = StreamType.FILE if args.verbose else StreamType.NONE
    configure_logging(
        verbose=bool(args.verbose),
        standard_stream=standard_stream,
        debug_stream=debug_stream,
        log_file=log_file,
    )


def _log_failure(logger: logging.Logger, message: str, exc: BaseException) -> None:
    chain = []
    current: Optional[BaseException] = exc
    while current is not None:
        chain.append(str(current) or current.__class__.__name__)
        current = current.__cause__
    logger.error("%s: %s", message, "\n  caused by: ".join(chain))
    if logger.isEnabledFor(logging.DEBUG):
        logger.debug("Full cause chain", exc_info=exc)


if __name__ == "__main__":
    sys.exit(main(sys.argv[1:]))
