"""
Domain layer for srcarchive.

Contains pure domain objects with no I/O or side effects:
- ReleaseName: Project + VersionTag, and the names derived from them
- SubmoduleEntry: A nested repository path, and the listing parser
- ExclusionList: Prefix-relative paths pruned from the archive
- StepResult / ReleaseSummary: What a run did

These objects are immutable where possible and provide
serialization methods for JSONL output.
"""

from .release import ReleaseName
from .submodule import SubmoduleEntry, SubmoduleParseError, parse_listing, parse_listing_line
from .exclusion import ExclusionList
from .operation import Step, StepStatus, StepResult, PruneResult, ReleaseSummary

__all__ = [
    'ReleaseName',
    'SubmoduleEntry',
    'SubmoduleParseError',
    'parse_listing',
    'parse_listing_line',
    'ExclusionList',
    'Step',
    'StepStatus',
    'StepResult',
    'PruneResult',
    'ReleaseSummary',
]
