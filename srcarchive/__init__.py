"""
srcarchive - Source release tarballs for repositories with submodules.

`git archive` leaves submodule contents out. srcarchive snapshots the
root repository and every submodule, merges them into one tar under a
single "<project>-<tag>/" directory, adds a ".tag" file, prunes bulky
paths that are not needed to build, and gzips the result.

Quick Start:
    from srcarchive import ReleaseService, ReleaseOptions, load_config

    service = ReleaseService(config=load_config("."))
    for message in service.build(ReleaseOptions(repo_path=".")):
        print(message)
    print(service.last_result.artifact)

Inputs (environment):
    TAG_NAME      - explicit release tag
    BUILD_REASON  - "Schedule" for nightly builds (fixed artifact name)
"""

__version__ = "0.1.0"

from .domain import (
    ReleaseName,
    SubmoduleEntry,
    ExclusionList,
    ReleaseSummary,
)

from .services import (
    TagService,
    SubmoduleService,
    SnapshotService,
    AssemblyService,
    PruneService,
    PackageService,
    ReleaseService,
    ReleaseOptions,
)

from .exceptions import (
    ReleaseError,
    TagResolutionError,
    SubmoduleEnumerationError,
    SnapshotError,
    AssemblyError,
    PruneError,
    PackageError,
    ConfigError,
)

from .config import load_config

__all__ = [
    "__version__",
    "ReleaseName",
    "SubmoduleEntry",
    "ExclusionList",
    "ReleaseSummary",
    "TagService",
    "SubmoduleService",
    "SnapshotService",
    "AssemblyService",
    "PruneService",
    "PackageService",
    "ReleaseService",
    "ReleaseOptions",
    "ReleaseError",
    "TagResolutionError",
    "SubmoduleEnumerationError",
    "SnapshotError",
    "AssemblyError",
    "PruneError",
    "PackageError",
    "ConfigError",
    "load_config",
]
