"""
Snapshot service for srcarchive.

A snapshot is `git archive` of HEAD: tracked files only, every entry
already rewritten to live under "<prefix>/<relative path>/". Untracked
and ignored files never appear in it.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, Tuple, Union

from ..domain import ReleaseName, SubmoduleEntry
from ..exceptions import SnapshotError
from ..infra import GitClient

logger = logging.getLogger(__name__)


class SnapshotService:
    """
    Service for producing per-repository tar snapshots.

    Example:
        service = SnapshotService()
        tar = service.snapshot("/repo", name, "", Path("/tmp/root.tar"))
        tar = service.snapshot("/repo", name, "deps/x", Path("/tmp/x.tar"))
    """

    def __init__(
        self,
        git_client: Optional[GitClient] = None,
        config: Optional[Dict[str, Any]] = None
    ):
        self.git = git_client or GitClient()
        self.config = config or {}

    def snapshot(
        self,
        root_path: Union[str, Path],
        name: ReleaseName,
        relative_path: str,
        destination: Path,
    ) -> Path:
        """
        Snapshot one repository.

        Args:
            root_path: Root work tree
            name: Release naming (provides the prefix)
            relative_path: Repository location under the root ('' for the root)
            destination: Tar file to write

        Returns:
            destination

        Raises:
            SnapshotError: repository missing, HEAD missing, or git failed
        """
        repo = Path(root_path) / relative_path if relative_path else Path(root_path)
        label = relative_path or "root repository"

        if not repo.is_dir() or not self.git.is_git_repo(str(repo)):
            raise SnapshotError(f"Not a checked-out git repository: {repo}", repo_path=str(repo))

        prefix = name.snapshot_prefix(relative_path)
        logger.debug(f"Snapshotting {label} with prefix {prefix}")

        result = self.git.archive(str(repo), prefix, str(destination))
        if not result.ok:
            self._discard(destination)
            raise SnapshotError(f"git archive failed for {label}: {result.error}", repo_path=str(repo))
        if not destination.is_file():
            raise SnapshotError(f"git archive produced no output for {label}", repo_path=str(repo))

        return destination

    def snapshot_many(
        self,
        root_path: Union[str, Path],
        name: ReleaseName,
        entries: List[SubmoduleEntry],
        workdir: Path,
        jobs: int = 1,
    ) -> Iterator[Tuple[SubmoduleEntry, Path]]:
        """
        Snapshot submodules, yielding results in enumeration order.

        With jobs > 1 snapshots are generated concurrently, but results are
        still handed out in the order of `entries`.
        """
        destinations = [workdir / f"submodule-{i:04d}.tar" for i in range(len(entries))]

        if jobs <= 1 or len(entries) <= 1:
            for entry, destination in zip(entries, destinations):
                yield entry, self.snapshot(root_path, name, entry.path, destination)
            return

        executor = ThreadPoolExecutor(max_workers=jobs)
        try:
            futures = [
                executor.submit(self.snapshot, root_path, name, entry.path, destination)
                for entry, destination in zip(entries, destinations)
            ]
            for entry, future in zip(entries, futures):
                yield entry, future.result()
        finally:
            executor.shutdown(wait=True, cancel_futures=True)

    @staticmethod
    def _discard(path: Path) -> None:
        try:
            path.unlink()
        except FileNotFoundError:
            pass
