"""Replay a commit sequence onto an archived repository with a custom commit hook."""

__version__ = "0.1.0"
