"""release-kit: commit-driven semantic releases for git repositories."""

__version__ = "0.1.0"
