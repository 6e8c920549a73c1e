"""
Submodule service for srcarchive.

Lists the nested repositories of a root work tree in the order git
reports them. That order is the processing order for snapshots.
"""

import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from ..domain import SubmoduleEntry, SubmoduleParseError, parse_listing
from ..exceptions import SubmoduleEnumerationError
from ..infra import GitClient

logger = logging.getLogger(__name__)


class SubmoduleService:
    """
    Service for enumerating submodules.

    Only direct submodules are listed unless `recursive` is set in the
    config, in which case git walks nested submodules and reports their
    paths relative to the root.

    Example:
        for entry in SubmoduleService().enumerate("/path/to/repo"):
            print(entry.path)
    """

    def __init__(
        self,
        git_client: Optional[GitClient] = None,
        config: Optional[Dict[str, Any]] = None
    ):
        self.git = git_client or GitClient()
        self.config = config or {}

    def enumerate(self, repo_path: Union[str, Path]) -> List[SubmoduleEntry]:
        """
        Enumerate submodules.

        Raises:
            SubmoduleEnumerationError: listing failed or could not be parsed
        """
        repo = str(repo_path)
        recursive = bool(self.config.get('recursive', False))

        result = self.git.submodule_foreach(repo, recursive=recursive)
        if not result.ok:
            raise SubmoduleEnumerationError(
                f"Cannot list submodules of {repo}: {result.error}"
            )

        try:
            entries = parse_listing(result.stdout)
        except SubmoduleParseError as e:
            raise SubmoduleEnumerationError(
                f"Unexpected submodule listing at line {e.line_number}: {e}"
            ) from e

        for entry in entries:
            logger.debug(f"Found submodule {entry.path}")
        logger.info(f"Found {len(entries)} submodule(s)")
        return entries
