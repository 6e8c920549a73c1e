"""
Infrastructure layer for srcarchive.

Contains abstractions for external systems:
- GitClient: Git command execution
- ArchiveContainer: The tar file the release is assembled into

These provide clean interfaces that can be mocked for testing.
"""

from .git_client import GitClient, GitResult
from .archive import ArchiveContainer, ContainerError, normalize_member_name

__all__ = [
    'GitClient',
    'GitResult',
    'ArchiveContainer',
    'ContainerError',
    'normalize_member_name',
]
