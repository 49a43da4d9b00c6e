"""Git operations.

Usage:
    from rk.git import Repository

    repo = Repository(Path("/path/to/repo"))
    subjects = repo.commit_subjects_since("v1.2.0")
"""

from rk.git.repository import GitError, Repository

__all__ = [
    "GitError",
    "Repository",
]
