"""
Prune service for srcarchive.

Removes excluded subtrees from an assembled tar by rewriting it. The
entries are truly gone from the file, not merely skipped on extraction.
"""

import logging
import tarfile
from typing import Any, Dict, Optional

from ..domain import ExclusionList, PruneResult
from ..exceptions import PruneError
from ..infra import ArchiveContainer, ContainerError, normalize_member_name

logger = logging.getLogger(__name__)


class PruneService:
    """
    Service for pruning excluded paths.

    Example:
        excl = ExclusionList.from_paths(["docs/screenshots"])
        result = PruneService().prune(container, excl)
        print(f"Removed {result.removed} entries")
    """

    def __init__(self, config: Optional[Dict[str, Any]] = None):
        self.config = config or {}

    def exclusions(self) -> ExclusionList:
        """Exclusion list from config."""
        try:
            return ExclusionList.from_paths(self.config.get('exclude', []))
        except ValueError as e:
            raise PruneError(str(e)) from e

    def prune(
        self,
        container: ArchiveContainer,
        exclusions: Optional[ExclusionList] = None
    ) -> PruneResult:
        """
        Rewrite the container without excluded entries.

        Raises:
            PruneError: the rewrite failed; the container is left as it was
        """
        if exclusions is None:
            exclusions = self.exclusions()

        result = PruneResult()
        if not exclusions:
            return result

        matched = set()
        prefix = container.prefix + '/'

        def keep(member: tarfile.TarInfo) -> bool:
            name = normalize_member_name(member.name)
            if not name.startswith(prefix):
                return True
            excluded = exclusions.matching(name[len(prefix):])
            if excluded:
                matched.add(excluded)
                return False
            return True

        try:
            result.removed = container.rewrite(keep)
        except (ContainerError, tarfile.TarError, OSError) as e:
            raise PruneError(f"Cannot rewrite {container.path}: {e}") from e

        result.matched = [p for p in exclusions if p in matched]
        result.unmatched = [p for p in exclusions if p not in matched]
        for path in result.unmatched:
            logger.debug(f"Exclusion matched nothing: {path}")
        logger.info(f"Pruned {result.removed} entries")
        return result
