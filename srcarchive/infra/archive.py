"""
Tar container infrastructure for srcarchive.

ArchiveContainer is the single owned resource the pipeline grows: it is
created empty, receives the members of each snapshot tar in order, and
is closed before the pruner rewrites it.

Members are copied header-by-header into one flat PAX archive, so the
result is the union of all appended entries in append order rather than
an archive of archives.
"""

import io
import logging
import os
import tarfile
import tempfile
from pathlib import Path
from typing import Callable, List, Optional, Set, Union

logger = logging.getLogger(__name__)

ARCHIVE_FORMAT = tarfile.PAX_FORMAT


class ContainerError(Exception):
    """Raised when a member cannot be added to or read from a container."""


def normalize_member_name(name: str) -> str:
    """Canonical member path: no leading './', no trailing '/'."""
    while name.startswith('./'):
        name = name[2:]
    return name.rstrip('/')


class ArchiveContainer:
    """
    Append-only tar container rooted under one prefix.

    Example:
        with ArchiveContainer(Path("proj-1.0-src.tar"), "proj-1.0") as container:
            container.append_tar(Path("root-snapshot.tar"))
            container.add_bytes(".tag", b"1.0", mtime=1700000000)
        print(container.names)

    Attributes:
        path: File backing the container
        prefix: Top-level directory every member must live under
        names: Member names in append order
    """

    def __init__(self, path: Union[str, Path], prefix: str):
        self.path = Path(path)
        self.prefix = prefix.strip('/')
        self.names: List[str] = []
        self._files: Set[str] = set()
        self._dirs: Set[str] = set()
        self._tar: Optional[tarfile.TarFile] = None

    def __enter__(self) -> 'ArchiveContainer':
        self.open()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    @property
    def is_open(self) -> bool:
        return self._tar is not None

    def open(self) -> None:
        """Create the backing file, replacing anything already there."""
        if self._tar is not None:
            return
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self._tar = tarfile.open(self.path, 'w', format=ARCHIVE_FORMAT)

    def close(self) -> None:
        """Write the end-of-archive marker and release the file."""
        if self._tar is not None:
            tar, self._tar = self._tar, None
            tar.close()

    def within_prefix(self, name: str) -> bool:
        return name == self.prefix or name.startswith(self.prefix + '/')

    def _check_member(self, member: tarfile.TarInfo) -> bool:
        """
        Validate a member before writing it.

        Returns False when the member is a directory that is already present.
        """
        name = normalize_member_name(member.name)
        if not self.within_prefix(name):
            raise ContainerError(f"Entry {member.name!r} is outside prefix {self.prefix!r}/")

        if member.isdir():
            if name in self._files:
                raise ContainerError(f"Directory {name!r} collides with an existing file")
            return name not in self._dirs

        if name in self._files or name in self._dirs:
            raise ContainerError(f"Duplicate entry {name!r}")
        return True

    def _record(self, member: tarfile.TarInfo) -> None:
        name = normalize_member_name(member.name)
        if member.isdir():
            self._dirs.add(name)
        else:
            self._files.add(name)
        self.names.append(name)

    def add_member(self, member: tarfile.TarInfo, fileobj=None) -> bool:
        """
        Append one member.

        Returns:
            True if written, False if it was a directory already present
        """
        if self._tar is None:
            raise ContainerError(f"Container {self.path} is not open")
        if not self._check_member(member):
            logger.debug(f"Skipping duplicate directory {member.name}")
            return False
        self._tar.addfile(member, fileobj)
        self._record(member)
        return True

    def append_tar(self, snapshot: Union[str, Path]) -> int:
        """
        Append every member of another tar file, in its order.

        The source's pax global header is not carried over.

        Returns:
            Number of members written
        """
        written = 0
        try:
            with tarfile.open(snapshot, 'r:') as src:
                for member in src:
                    data = src.extractfile(member) if member.isreg() else None
                    if self.add_member(member, data):
                        written += 1
        except (tarfile.TarError, OSError) as e:
            raise ContainerError(f"Cannot append {snapshot}: {e}") from e
        return written

    def add_bytes(
        self,
        relative_name: str,
        data: bytes,
        mtime: int = 0,
        mode: int = 0o644,
    ) -> None:
        """Append a regular file owned by root:root under the prefix."""
        member = tarfile.TarInfo(f"{self.prefix}/{relative_name.strip('/')}")
        member.size = len(data)
        member.mtime = mtime
        member.mode = mode
        member.uid = member.gid = 0
        member.uname = member.gname = "root"
        self.add_member(member, io.BytesIO(data))

    def rewrite(self, keep: Callable[[tarfile.TarInfo], bool]) -> int:
        """
        Replace the container with a copy holding only members `keep` accepts.

        Written to a sibling temporary file, then atomically renamed over
        the original. The container must be closed.

        Returns:
            Number of members dropped
        """
        if self._tar is not None:
            raise ContainerError(f"Container {self.path} must be closed before rewriting")

        fd, temp_path = tempfile.mkstemp(
            dir=self.path.parent,
            prefix=f".{self.path.name}.",
            suffix=".tmp"
        )
        dropped = 0
        kept: List[str] = []
        try:
            with os.fdopen(fd, 'wb') as raw, \
                    tarfile.open(fileobj=raw, mode='w', format=ARCHIVE_FORMAT) as dst, \
                    tarfile.open(self.path, 'r:') as src:
                for member in src:
                    if not keep(member):
                        dropped += 1
                        continue
                    data = src.extractfile(member) if member.isreg() else None
                    dst.addfile(member, data)
                    kept.append(normalize_member_name(member.name))

            # Atomic rename
            os.replace(temp_path, self.path)

        except Exception:
            # Clean up temp file on error
            try:
                os.unlink(temp_path)
            except OSError:
                pass
            raise

        self.names = kept
        return dropped

    def read_names(self) -> List[str]:
        """Member names as stored in the backing file."""
        with tarfile.open(self.path, 'r:') as tar:
            return [normalize_member_name(m.name) for m in tar]
