"""
Pipeline result domain objects for srcarchive.

Each step of a release run records a StepResult; the run as a whole
produces a ReleaseSummary that the CLI renders as a table or JSONL.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from .release import ReleaseName


class Step(Enum):
    """Pipeline steps, in the only order they may run."""
    RESOLVE = "resolve"
    ENUMERATE = "enumerate"
    SNAPSHOT = "snapshot"
    ASSEMBLE = "assemble"
    PRUNE = "prune"
    PACKAGE = "package"


class StepStatus(Enum):
    """Status of an individual step."""
    SUCCESS = "success"
    FAILED = "failed"


@dataclass
class StepResult:
    """What one step did."""
    step: Step
    status: StepStatus
    message: Optional[str] = None
    error: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        result = {
            'step': self.step.value,
            'status': self.status.value,
        }
        if self.message:
            result['message'] = self.message
        if self.error:
            result['error'] = self.error
        if self.metadata:
            result.update(self.metadata)
        return result


@dataclass
class PruneResult:
    """Outcome of removing excluded paths."""
    removed: int = 0
    matched: List[str] = field(default_factory=list)
    unmatched: List[str] = field(default_factory=list)


@dataclass
class ReleaseSummary:
    """Outcome of a full release run."""
    name: Optional[ReleaseName] = None
    artifact: Optional[str] = None
    submodules: List[str] = field(default_factory=list)
    entries_written: int = 0
    entries_pruned: int = 0
    size_bytes: int = 0
    sha256: Optional[str] = None
    steps: List[StepResult] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return self.artifact is not None and all(
            s.status == StepStatus.SUCCESS for s in self.steps
        )

    def add_step(self, result: StepResult) -> None:
        self.steps.append(result)

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {
            'type': 'summary',
            'success': self.success,
            'artifact': self.artifact,
            'submodules': list(self.submodules),
            'entries_written': self.entries_written,
            'entries_pruned': self.entries_pruned,
            'size_bytes': self.size_bytes,
            'sha256': self.sha256,
        }
        if self.name is not None:
            result.update({
                'tag': self.name.tag,
                'prefix': self.name.prefix,
                'scheduled': self.name.scheduled,
            })
        return result
