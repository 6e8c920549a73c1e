"""
Release naming domain object for srcarchive.

A ReleaseName binds the project name to the resolved VersionTag and
derives everything else from them:

- prefix:        "<project>-<tag>", the single top-level directory
- base_name:     "<project>-nightly-src" for scheduled runs,
                 "<project>-<tag>-src" otherwise
- artifact_name: "<base_name>.tar.gz"
"""

from dataclasses import dataclass
from typing import Any, Dict


NIGHTLY_LABEL = "nightly"


@dataclass(frozen=True)
class ReleaseName:
    """
    Immutable naming for one run.

    Examples:
        ReleaseName("proj", "20240101-0101").artifact_name
            -> "proj-20240101-0101-src.tar.gz"
        ReleaseName("proj", "20240101-0101", scheduled=True).artifact_name
            -> "proj-nightly-src.tar.gz"
    """

    project: str
    tag: str
    scheduled: bool = False

    def __post_init__(self):
        if not self.project or '/' in self.project:
            raise ValueError(f"Invalid project name: {self.project!r}")
        if not self.tag or '/' in self.tag or self.tag != self.tag.strip():
            raise ValueError(f"Invalid release tag: {self.tag!r}")

    @property
    def prefix(self) -> str:
        return f"{self.project}-{self.tag}"

    @property
    def base_name(self) -> str:
        label = NIGHTLY_LABEL if self.scheduled else self.tag
        return f"{self.project}-{label}-src"

    @property
    def tar_name(self) -> str:
        return f"{self.base_name}.tar"

    @property
    def artifact_name(self) -> str:
        return f"{self.tar_name}.gz"

    def member(self, relative_path: str = "") -> str:
        """Archive path for a prefix-relative path."""
        relative_path = relative_path.strip('/')
        if not relative_path:
            return self.prefix
        return f"{self.prefix}/{relative_path}"

    def snapshot_prefix(self, relative_path: str = "") -> str:
        """--prefix value for git archive, always ending in '/'."""
        return self.member(relative_path) + '/'

    def to_dict(self) -> Dict[str, Any]:
        return {
            'project': self.project,
            'tag': self.tag,
            'scheduled': self.scheduled,
            'prefix': self.prefix,
            'artifact': self.artifact_name,
        }
