"""
Release service for srcarchive.

Runs the whole pipeline, strictly in order:

    Resolve -> Enumerate -> Snapshot(root) -> Snapshot(each submodule)
        -> AppendMetadata -> Prune -> Compress

Any failure aborts the run. Before raising, everything the run wrote
is removed, so an artifact on disk is always either absent or complete.
There are no retries.
"""

import glob
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Generator, Optional, Union

from ..domain import ReleaseName, ReleaseSummary, Step, StepResult, StepStatus
from ..exceptions import ReleaseError
from ..infra import GitClient
from .assembly_service import AssemblyService
from .package_service import PackageService, sha256_file
from .prune_service import PruneService
from .snapshot_service import SnapshotService
from .submodule_service import SubmoduleService
from .tag_service import TagService

logger = logging.getLogger(__name__)


@dataclass
class ReleaseOptions:
    """Options for a release run. None means: take it from config."""
    repo_path: Union[str, Path] = "."
    output_dir: Optional[Union[str, Path]] = None
    project: Optional[str] = None
    tag: Optional[str] = None
    scheduled: Optional[bool] = None


def _step_for(error: ReleaseError) -> Step:
    try:
        return Step(error.step)
    except ValueError:
        return Step.RESOLVE


class ReleaseService:
    """
    Service that produces the source release artifact.

    Example:
        service = ReleaseService(config=load_config(repo))
        for message in service.build(ReleaseOptions(repo_path=repo)):
            print(message)

        summary = service.last_result
        print(summary.artifact)
    """

    def __init__(
        self,
        git_client: Optional[GitClient] = None,
        config: Optional[Dict[str, Any]] = None,
        tag_service: Optional[TagService] = None,
        submodule_service: Optional[SubmoduleService] = None,
        assembly_service: Optional[AssemblyService] = None,
        prune_service: Optional[PruneService] = None,
        package_service: Optional[PackageService] = None,
    ):
        """
        Initialize ReleaseService.

        Args:
            git_client: Git client shared by all steps (creates default if None)
            config: Configuration dict
        """
        self.config = config or {}
        timeout = self.config.get('git', {}).get('timeout', 300)
        self.git = git_client or GitClient(timeout=timeout)
        self.tags = tag_service or TagService(git_client=self.git, config=self.config)
        self.submodules = submodule_service or SubmoduleService(git_client=self.git, config=self.config)
        self.assembler = assembly_service or AssemblyService(
            git_client=self.git,
            snapshot_service=SnapshotService(git_client=self.git, config=self.config),
            config=self.config,
        )
        self.pruner = prune_service or PruneService(config=self.config)
        self.packager = package_service or PackageService(config=self.config)
        self.last_result: Optional[ReleaseSummary] = None

    def project_name(self, repo_path: Path, options: ReleaseOptions) -> str:
        return options.project or self.config.get('project') or repo_path.name

    def output_dir(self, options: ReleaseOptions) -> Path:
        configured = options.output_dir or self.config.get('output_dir') or Path.cwd()
        return Path(configured).expanduser().resolve()

    def is_scheduled(self, options: ReleaseOptions) -> bool:
        if options.scheduled is not None:
            return options.scheduled
        return bool(self.config.get('scheduled', False))

    def resolve_name(self, options: ReleaseOptions) -> ReleaseName:
        """Resolve tag and names without building anything."""
        repo = Path(options.repo_path).expanduser().resolve()
        tag = self.tags.resolve(repo, override=options.tag)
        return self.tags.release_name(
            self.project_name(repo, options), tag, self.is_scheduled(options)
        )

    def build(self, options: ReleaseOptions) -> Generator[str, None, ReleaseSummary]:
        """
        Build the artifact.

        Yields progress messages, returns ReleaseSummary.

        Raises:
            ReleaseError: the failing step's error, after cleanup
        """
        summary = ReleaseSummary()
        self.last_result = summary
        repo = Path(options.repo_path).expanduser().resolve()

        try:
            name = self.resolve_name(options)
        except ReleaseError as e:
            summary.add_step(StepResult(Step.RESOLVE, StepStatus.FAILED, error=str(e)))
            raise
        summary.name = name
        summary.add_step(StepResult(Step.RESOLVE, StepStatus.SUCCESS, message=name.tag))
        yield f"Release {name.tag} -> {name.artifact_name}"

        output_dir = self.output_dir(options)
        tar_path = output_dir / name.tar_name
        artifact_path = output_dir / name.artifact_name

        try:
            output_dir.mkdir(parents=True, exist_ok=True)
            self._remove_outputs(output_dir, name)

            entries = self.submodules.enumerate(repo)
            summary.submodules = [entry.path for entry in entries]
            summary.add_step(StepResult(
                Step.ENUMERATE, StepStatus.SUCCESS,
                message=f"{len(entries)} submodule(s)",
            ))
            yield f"Found {len(entries)} submodule(s)"

            container = yield from self.assembler.assemble(repo, name, tar_path, entries)
            summary.entries_written = len(container.names)
            summary.add_step(StepResult(
                Step.ASSEMBLE, StepStatus.SUCCESS,
                message=f"{summary.entries_written} entries",
            ))

            yield "Pruning excluded paths"
            pruned = self.pruner.prune(container)
            summary.entries_pruned = pruned.removed
            summary.add_step(StepResult(
                Step.PRUNE, StepStatus.SUCCESS,
                message=f"{pruned.removed} entries removed",
                metadata={'matched': pruned.matched, 'unmatched': pruned.unmatched},
            ))

            yield f"Compressing {artifact_path.name}"
            self.packager.package(tar_path, artifact_path)
            summary.add_step(StepResult(Step.PACKAGE, StepStatus.SUCCESS, message=str(artifact_path)))

        except ReleaseError as e:
            summary.add_step(StepResult(_step_for(e), StepStatus.FAILED, error=str(e)))
            logger.error(f"{e.kind} during {e.step}: {e}")
            self._remove_outputs(output_dir, name)
            raise
        except BaseException:
            self._remove_outputs(output_dir, name)
            raise

        summary.artifact = str(artifact_path)
        summary.size_bytes = artifact_path.stat().st_size
        summary.sha256 = sha256_file(artifact_path)
        return summary

    @staticmethod
    def _remove_outputs(output_dir: Path, name: ReleaseName) -> None:
        """Delete "<base_name>.tar*" and leftover temporaries of this run."""
        patterns = [
            glob.escape(name.tar_name) + '*',
            '.' + glob.escape(name.tar_name) + '*.tmp',
        ]
        for pattern in patterns:
            for path in output_dir.glob(pattern):
                if path.is_file():
                    logger.debug(f"Removing {path}")
                    path.unlink(missing_ok=True)
