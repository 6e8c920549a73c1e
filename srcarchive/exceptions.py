"""
Error taxonomy for srcarchive.

Every failure of the release pipeline is a ReleaseError subclass that
names the step it happened in. Services raise these; only the CLI turns
them into exit codes.
"""

from typing import Optional

from .exit_codes import (
    GENERAL_ERROR,
    TAG_ERROR,
    SUBMODULE_ERROR,
    SNAPSHOT_ERROR,
    ASSEMBLY_ERROR,
    PRUNE_ERROR,
    PACKAGE_ERROR,
    CONFIG_ERROR,
)


class ReleaseError(Exception):
    """
    Base class for all pipeline failures.

    Attributes:
        step: Pipeline step that failed (e.g. "snapshot")
        exit_code: Process exit code for the CLI
    """
    step = "release"
    exit_code = GENERAL_ERROR

    def __init__(self, message: str, step: Optional[str] = None):
        super().__init__(message)
        if step is not None:
            self.step = step

    @property
    def kind(self) -> str:
        return self.__class__.__name__

    def to_dict(self) -> dict:
        return {
            'error': str(self),
            'type': self.kind,
            'step': self.step,
        }


class TagResolutionError(ReleaseError):
    """No tag source is usable, not even the timestamp fallback."""
    step = "resolve"
    exit_code = TAG_ERROR


class SubmoduleEnumerationError(ReleaseError):
    """The nested repository listing could not be obtained or parsed."""
    step = "enumerate"
    exit_code = SUBMODULE_ERROR


class SnapshotError(ReleaseError):
    """A repository snapshot could not be produced."""
    step = "snapshot"
    exit_code = SNAPSHOT_ERROR

    def __init__(self, message: str, repo_path: Optional[str] = None, step: Optional[str] = None):
        super().__init__(message, step)
        self.repo_path = repo_path

    def to_dict(self) -> dict:
        result = super().to_dict()
        if self.repo_path is not None:
            result['repo'] = self.repo_path
        return result


class AssemblyError(ReleaseError):
    """Appending to the shared container failed."""
    step = "assemble"
    exit_code = ASSEMBLY_ERROR


class PruneError(ReleaseError):
    """Rewriting the container without excluded paths failed."""
    step = "prune"
    exit_code = PRUNE_ERROR


class PackageError(ReleaseError):
    """Compressing the container failed."""
    step = "package"
    exit_code = PACKAGE_ERROR


class ConfigError(ReleaseError):
    """Raised when there's a configuration error."""
    step = "config"
    exit_code = CONFIG_ERROR
