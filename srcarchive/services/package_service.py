"""
Package service for srcarchive.

gzip-compresses the pruned tar into the distributable artifact. The
gzip header carries no timestamp and no file name, so identical input
gives an identical artifact.
"""

import gzip
import hashlib
import logging
import os
import shutil
import tempfile
from pathlib import Path
from typing import Any, Dict, Optional

from ..exceptions import PackageError

logger = logging.getLogger(__name__)

CHUNK_SIZE = 1024 * 1024


def sha256_file(path: Path) -> str:
    hasher = hashlib.sha256()
    with open(path, "rb") as f:
        for chunk in iter(lambda: f.read(CHUNK_SIZE), b""):
            hasher.update(chunk)
    return hasher.hexdigest()


class PackageService:
    """
    Service for compressing the final archive.

    Example:
        artifact = PackageService().package(Path("p-1-src.tar"), Path("p-1-src.tar.gz"))
    """

    def __init__(self, config: Optional[Dict[str, Any]] = None):
        self.config = config or {}
        self.compresslevel = int(self.config.get('compresslevel', 9))

    def package(self, container_path: Path, artifact_path: Path, keep_input: bool = False) -> Path:
        """
        Compress `container_path` into `artifact_path`.

        The artifact is written to a temporary sibling and renamed into
        place, so it is either absent or complete. The uncompressed input
        is removed afterwards unless `keep_input` is set.

        Raises:
            PackageError: reading, compressing or renaming failed
        """
        try:
            fd, temp_path = tempfile.mkstemp(
                dir=artifact_path.parent,
                prefix=f".{artifact_path.name}.",
                suffix=".tmp"
            )
        except OSError as e:
            raise PackageError(f"Cannot create {artifact_path}: {e}") from e

        try:
            with open(container_path, 'rb') as src, os.fdopen(fd, 'wb') as raw:
                with gzip.GzipFile(
                    filename='',
                    mode='wb',
                    fileobj=raw,
                    compresslevel=self.compresslevel,
                    mtime=0,
                ) as dst:
                    shutil.copyfileobj(src, dst, CHUNK_SIZE)
            os.chmod(temp_path, 0o644)
            os.replace(temp_path, artifact_path)
        except OSError as e:
            try:
                os.unlink(temp_path)
            except OSError:
                pass
            raise PackageError(f"Cannot compress {container_path}: {e}") from e

        if not keep_input:
            container_path.unlink(missing_ok=True)

        logger.info(f"Wrote {artifact_path}")
        return artifact_path
