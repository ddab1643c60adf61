"""Git operations module.

- Repository: single repository operations
- GitBackend / GitCli: the path-based capability used by the services

Usage:
    from dotdot.git import GitCli

    git = GitCli()
    if git.is_git_repo(path):
        print(git.current_rev(path))
"""

from dotdot.git.backend import GitBackend, GitCli
from dotdot.git.repository import (
    DETACHED_HEAD,
    GitError,
    Repository,
    clone_repository,
)

__all__ = [
    # Repository
    "DETACHED_HEAD",
    "GitError",
    "Repository",
    "clone_repository",
    # Backend
    "GitBackend",
    "GitCli",
]
