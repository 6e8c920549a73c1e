"""
Git client infrastructure for srcarchive.

Provides a clean abstraction over git command execution.
All git operations go through this client, making them:
- Easy to mock for testing
- Consistent in error handling
- Isolated from business logic

Commands are passed as argument lists, never through a shell, so
repository paths and prefixes containing spaces or quotes reach git
unchanged.
"""

import os
import subprocess
from dataclasses import dataclass
from typing import Dict, Optional, List
from pathlib import Path
import logging

logger = logging.getLogger(__name__)


@dataclass
class GitResult:
    """Result of a git command."""
    args: List[str]
    returncode: int
    stdout: str = ""
    stderr: str = ""

    @property
    def ok(self) -> bool:
        return self.returncode == 0

    @property
    def error(self) -> str:
        """Best available description of a failure."""
        message = self.stderr.strip() or self.stdout.strip()
        return message or f"git exited with status {self.returncode}"


class GitClient:
    """
    Abstraction over git commands.

    Provides methods for the git operations a source release needs, with
    consistent error handling and return types.

    Example:
        client = GitClient()
        tag = client.describe("/path/to/repo", match="20*")
        if tag is None:
            print("No release tag reachable from HEAD")
    """

    def __init__(self, timeout: float = 300, git: str = "git"):
        """
        Initialize GitClient.

        Args:
            timeout: Command timeout in seconds (default: 300)
            git: git executable to run
        """
        self.timeout = timeout
        self.git = git

    def _env(self) -> Dict[str, str]:
        """Environment for git: untranslated messages so output parses."""
        env = dict(os.environ)
        env['LC_ALL'] = 'C'
        return env

    def _run(self, args: List[str], cwd: str) -> GitResult:
        """
        Run a git command.

        Args:
            args: git arguments (e.g. ['describe', '--tags'])
            cwd: Working directory

        Returns:
            GitResult; returncode is -1 if git could not be run at all
        """
        cmd = [self.git] + list(args)
        logger.debug(f"Running {cmd} in {cwd}")
        try:
            result = subprocess.run(
                cmd,
                cwd=cwd,
                capture_output=True,
                encoding="utf-8",
                errors="surrogateescape",
                env=self._env(),
                timeout=self.timeout
            )
        except subprocess.TimeoutExpired:
            logger.warning(f"Git command timed out: {cmd}")
            return GitResult(args=cmd, returncode=-1, stderr=f"timed out after {self.timeout}s")
        except OSError as e:
            logger.error(f"Git command failed: {cmd} - {e}")
            return GitResult(args=cmd, returncode=-1, stderr=str(e))

        if result.returncode != 0:
            logger.debug(f"git exited {result.returncode}: {result.stderr.strip()}")
        return GitResult(
            args=cmd,
            returncode=result.returncode,
            stdout=result.stdout or "",
            stderr=result.stderr or "",
        )

    def is_git_repo(self, path: str) -> bool:
        """Check if path is a git work tree (a .git directory or gitfile)."""
        return (Path(path) / ".git").exists()

    def describe(self, path: str, match: Optional[str] = None) -> Optional[str]:
        """
        Most recent tag reachable from HEAD.

        Args:
            path: Path to git repository
            match: Only consider tags matching this glob

        Returns:
            `git describe --tags` output, or None if no tag qualifies
        """
        args = ['describe', '--tags']
        if match:
            args += ['--match', match]
        result = self._run(args, cwd=path)
        if result.ok and result.stdout.strip():
            return result.stdout.strip()
        return None

    def short_head(self, path: str) -> Optional[str]:
        """Abbreviated id of the HEAD commit, or None without history."""
        result = self._run(['log', '--format=%h', '-1'], cwd=path)
        if result.ok and result.stdout.strip():
            return result.stdout.strip()
        return None

    def head_timestamp(self, path: str) -> Optional[int]:
        """Committer time of HEAD as a Unix timestamp."""
        result = self._run(['log', '--format=%ct', '-1'], cwd=path)
        if result.ok and result.stdout.strip():
            try:
                return int(result.stdout.strip())
            except ValueError:
                return None
        return None

    def submodule_foreach(self, path: str, recursive: bool = False) -> GitResult:
        """
        Raw `git submodule foreach` listing.

        With no command git prints one "Entering '<path>'" line per
        initialized submodule.
        """
        args = ['submodule', 'foreach']
        if recursive:
            args.append('--recursive')
        return self._run(args, cwd=path)

    def archive(self, path: str, prefix: str, output: str, treeish: str = "HEAD") -> GitResult:
        """
        Write a tar snapshot of tracked files at `treeish`.

        Args:
            path: Path to git repository
            prefix: Prefix for every entry (should end with '/')
            output: File to write the tar to
            treeish: Revision to archive (default: HEAD)
        """
        return self._run(
            ['archive', '--format=tar', f'--prefix={prefix}', '-o', output, treeish],
            cwd=path,
        )
