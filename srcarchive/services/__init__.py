"""
Service layer for srcarchive.

Contains the pipeline steps, each orchestrating domain objects and
infrastructure:
- TagService: VersionTag resolution and release naming
- SubmoduleService: Nested repository enumeration
- SnapshotService: Per-repository git archive snapshots
- AssemblyService: Merging snapshots and metadata into one tar
- PruneService: Removing excluded subtrees
- PackageService: gzip compression
- ReleaseService: The whole run, in order

Services are the primary API for commands to use.
"""

from .tag_service import TagService
from .submodule_service import SubmoduleService
from .snapshot_service import SnapshotService
from .assembly_service import AssemblyService
from .prune_service import PruneService
from .package_service import PackageService
from .release_service import ReleaseService, ReleaseOptions

__all__ = [
    'TagService',
    'SubmoduleService',
    'SnapshotService',
    'AssemblyService',
    'PruneService',
    'PackageService',
    'ReleaseService',
    'ReleaseOptions',
]
