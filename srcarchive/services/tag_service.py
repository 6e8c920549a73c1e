"""
Tag service for srcarchive.

Resolves the VersionTag for a run and the names derived from it.

Priority chain:
1. Explicit override (TAG_NAME / `tag` in config)
2. `git describe --tags --match <tag_pattern>` at HEAD
3. "<YYYYMMDD-HHMMSS>-<short commit>" from the clock and HEAD
"""

import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Callable, Dict, Optional, Union

from ..domain import ReleaseName
from ..exceptions import TagResolutionError
from ..infra import GitClient

logger = logging.getLogger(__name__)

TIMESTAMP_FORMAT = "%Y%m%d-%H%M%S"


class TagService:
    """
    Service for resolving the release tag.

    Example:
        service = TagService(config={'tag_pattern': '20*'})
        tag = service.resolve("/path/to/repo")
        name = service.release_name("proj", tag, scheduled=False)
        print(name.artifact_name)
    """

    def __init__(
        self,
        git_client: Optional[GitClient] = None,
        config: Optional[Dict[str, Any]] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        """
        Initialize TagService.

        Args:
            git_client: Git client instance (creates default if None)
            config: Configuration dict
            clock: Returns the current local time (datetime.now if None)
        """
        self.git = git_client or GitClient()
        self.config = config or {}
        self.clock = clock or datetime.now

    def resolve(self, repo_path: Union[str, Path], override: Optional[str] = None) -> str:
        """
        Resolve the VersionTag for this run.

        Args:
            repo_path: Root repository
            override: Explicit tag; falls back to config['tag']

        Raises:
            TagResolutionError: if even the timestamp fallback has no commit
        """
        repo = str(repo_path)

        if override is None:
            override = self.config.get('tag') or None
        if override and override.strip():
            tag = override.strip()
            logger.info(f"Using tag override: {tag}")
            return tag

        pattern = self.config.get('tag_pattern', '20*')
        described = self.git.describe(repo, match=pattern)
        if described:
            logger.info(f"Using tag from git describe: {described}")
            return described

        logger.debug(f"No tag matching {pattern!r} reachable from HEAD")
        return self.fallback(repo)

    def fallback(self, repo_path: Union[str, Path]) -> str:
        """Synthesize "<timestamp>-<short commit>"."""
        short = self.git.short_head(str(repo_path))
        if not short:
            raise TagResolutionError(
                f"No release tag found and no commit history in {repo_path}"
            )
        tag = f"{self.clock().strftime(TIMESTAMP_FORMAT)}-{short}"
        logger.info(f"Using synthesized tag: {tag}")
        return tag

    def release_name(self, project: str, tag: str, scheduled: bool = False) -> ReleaseName:
        """
        Bind project and tag into a ReleaseName.

        Raises:
            TagResolutionError: if the tag cannot be used in a path
        """
        try:
            return ReleaseName(project=project, tag=tag, scheduled=scheduled)
        except ValueError as e:
            raise TagResolutionError(str(e)) from e
