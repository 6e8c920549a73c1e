"""
Shared fixtures for srcarchive tests.

Integration fixtures build real git repositories (with submodules) in
tmp_path. They are skipped when git is not installed.
"""

import io
import os
import shutil
import subprocess
import tarfile
from pathlib import Path
from typing import Dict

import pytest

requires_git = pytest.mark.skipif(shutil.which("git") is None, reason="git is not installed")

COMMIT_DATE = "2024-01-01 01:01:00 +0000"

GIT_ENV = {
    "GIT_AUTHOR_NAME": "Test User",
    "GIT_AUTHOR_EMAIL": "test@example.com",
    "GIT_AUTHOR_DATE": COMMIT_DATE,
    "GIT_COMMITTER_NAME": "Test User",
    "GIT_COMMITTER_EMAIL": "test@example.com",
    "GIT_COMMITTER_DATE": COMMIT_DATE,
    "GIT_CONFIG_NOSYSTEM": "1",
}


def git(cwd: Path, *args: str) -> str:
    """Run git for test setup, failing loudly."""
    env = dict(os.environ)
    env.update(GIT_ENV)
    result = subprocess.run(
        [
            "git",
            "-c", "init.defaultBranch=main",
            "-c", "commit.gpgsign=false",
            "-c", "tag.gpgsign=false",
            "-c", "protocol.file.allow=always",
            *args,
        ],
        cwd=cwd,
        env=env,
        capture_output=True,
        text=True,
    )
    if result.returncode != 0:
        raise AssertionError(f"git {' '.join(args)} failed: {result.stderr}")
    return result.stdout


def write_files(root: Path, files: Dict[str, str]) -> None:
    for rel, content in files.items():
        path = root / rel
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content)


def add_submodule(root: Path, source: Path, relative_path: str) -> None:
    git(root, "submodule", "add", str(source), relative_path)
    git(root, "commit", "-q", "-m", f"Add {relative_path}")


def make_tar(path: Path, members: Dict[str, bytes], dirs=(), mtime: int = 1700000000) -> Path:
    """Write a small uncompressed tar; `dirs` come first."""
    with tarfile.open(path, "w", format=tarfile.PAX_FORMAT) as tar:
        for name in dirs:
            info = tarfile.TarInfo(name)
            info.type = tarfile.DIRTYPE
            info.mode = 0o755
            info.mtime = mtime
            tar.addfile(info)
        for name, data in members.items():
            info = tarfile.TarInfo(name)
            info.size = len(data)
            info.mtime = mtime
            tar.addfile(info, io.BytesIO(data))
    return path


def tar_names(path: Path):
    """Member names of a tar or tar.gz, trailing slashes removed."""
    with tarfile.open(path, "r:*") as tar:
        return [m.name.rstrip("/") for m in tar]


def tar_files(path: Path) -> Dict[str, bytes]:
    """Regular file members and their contents."""
    with tarfile.open(path, "r:*") as tar:
        return {
            m.name: tar.extractfile(m).read()
            for m in tar
            if m.isreg()
        }


@pytest.fixture(autouse=True)
def clean_env(monkeypatch, tmp_path):
    """Keep CI variables and user git config out of the tests."""
    for key in list(os.environ):
        if key.startswith("SRCARCHIVE_"):
            monkeypatch.delenv(key)
    monkeypatch.delenv("TAG_NAME", raising=False)
    monkeypatch.delenv("BUILD_REASON", raising=False)
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))


@pytest.fixture
def make_repo(tmp_path):
    """Factory: create a committed git repository from a dict of files."""
    def _make(name: str, files: Dict[str, str]) -> Path:
        path = tmp_path / name
        path.mkdir(parents=True)
        git(path, "init", "-q")
        write_files(path, files)
        git(path, "add", "-A")
        git(path, "commit", "-q", "-m", "Initial commit")
        return path
    return _make


@pytest.fixture
def project(make_repo):
    """
    Root repo "project" with a.txt and submodule deps/x holding b.txt.
    """
    sub = make_repo("upstream-x", {"b.txt": "bee\n"})
    root = make_repo("project", {"a.txt": "ay\n"})
    add_submodule(root, sub, "deps/x")
    return root
