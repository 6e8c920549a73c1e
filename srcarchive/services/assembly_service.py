"""
Assembly service for srcarchive.

Builds the uncompressed release tar, in this order and no other:

1. snapshot of the root repository
2. snapshot of each submodule, in enumeration order
3. the ".tag" metadata entry

Snapshots may be generated concurrently, but they are appended one at
a time in enumeration order so reruns produce identical bytes.
"""

import logging
import tarfile
import tempfile
from contextlib import closing
from pathlib import Path
from typing import Any, Dict, Generator, List, Optional, Union

from ..domain import ReleaseName, SubmoduleEntry
from ..exceptions import AssemblyError
from ..infra import ArchiveContainer, ContainerError, GitClient
from .snapshot_service import SnapshotService

logger = logging.getLogger(__name__)

TAG_FILENAME = ".tag"


class AssemblyService:
    """
    Service for assembling one flat tar from many snapshots.

    Example:
        service = AssemblyService()
        container = yield from service.assemble(repo, name, Path("out.tar"), entries)
        print(len(container.names))
    """

    def __init__(
        self,
        git_client: Optional[GitClient] = None,
        snapshot_service: Optional[SnapshotService] = None,
        config: Optional[Dict[str, Any]] = None
    ):
        self.git = git_client or GitClient()
        self.config = config or {}
        self.snapshots = snapshot_service or SnapshotService(git_client=self.git, config=self.config)

    def assemble(
        self,
        root_path: Union[str, Path],
        name: ReleaseName,
        container_path: Path,
        entries: List[SubmoduleEntry],
    ) -> Generator[str, None, ArchiveContainer]:
        """
        Assemble the release tar.

        Yields progress messages, returns the closed ArchiveContainer.

        Raises:
            SnapshotError: a repository could not be archived
            AssemblyError: appending to the container failed
        """
        jobs = int(self.config.get('jobs', 1))
        container = ArchiveContainer(container_path, name.prefix)

        with tempfile.TemporaryDirectory(prefix="srcarchive-") as tmp:
            workdir = Path(tmp)
            try:
                try:
                    container.open()
                except (tarfile.TarError, OSError) as e:
                    raise AssemblyError(f"Cannot create {container_path}: {e}") from e

                yield "Snapshotting root repository"
                root_tar = self.snapshots.snapshot(root_path, name, "", workdir / "root.tar")
                self._append(container, root_tar, "root repository")

                pending = self.snapshots.snapshot_many(root_path, name, entries, workdir, jobs=jobs)
                with closing(pending):
                    for entry, snapshot in pending:
                        yield f"Appending {entry.path}"
                        self._append(container, snapshot, entry.path)

                yield f"Adding {TAG_FILENAME}"
                self.append_metadata(container, root_path, name)
            finally:
                container.close()

        logger.info(f"Assembled {len(container.names)} entries into {container.path}")
        return container

    def append_metadata(
        self,
        container: ArchiveContainer,
        root_path: Union[str, Path],
        name: ReleaseName,
    ) -> None:
        """
        Append "<prefix>/.tag" holding the tag verbatim.

        The entry's mtime is the root HEAD commit time so it does not
        depend on when the run happened.
        """
        mtime = self.git.head_timestamp(str(root_path)) or 0
        try:
            container.add_bytes(TAG_FILENAME, name.tag.encode('utf-8'), mtime=mtime)
        except (ContainerError, OSError) as e:
            raise AssemblyError(f"Cannot add {TAG_FILENAME}: {e}") from e

    @staticmethod
    def _append(container: ArchiveContainer, snapshot: Path, label: str) -> None:
        try:
            written = container.append_tar(snapshot)
        except (ContainerError, OSError) as e:
            raise AssemblyError(f"Cannot append snapshot of {label}: {e}") from e
        finally:
            try:
                snapshot.unlink()
            except FileNotFoundError:
                pass
        logger.debug(f"Appended {written} entries from {label}")
