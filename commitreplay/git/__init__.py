"""Git repository handling for commit replay."""

from .repository import DeletionResult, GitStep, HookType, Repository, RepositoryState

__all__ = ["DeletionResult", "GitStep", "HookType", "Repository", "RepositoryState"]
