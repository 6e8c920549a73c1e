"""
Tests for AssemblyService (snapshot merging and metadata).
"""

import tarfile
from pathlib import Path
from unittest.mock import MagicMock

import pytest

from srcarchive.domain import ReleaseName, SubmoduleEntry
from srcarchive.exceptions import AssemblyError, SnapshotError
from srcarchive.services import AssemblyService
from conftest import make_tar, requires_git, tar_files, tar_names


NAME = ReleaseName(project="project", tag="20240101-0101")
PREFIX = "project-20240101-0101"


class FakeSnapshots:
    """Writes canned tars instead of calling git archive."""

    def __init__(self, contents, fail_on=None):
        self.contents = contents
        self.fail_on = fail_on
        self.calls = []

    def snapshot(self, root_path, name, relative_path, destination):
        self.calls.append(relative_path)
        if relative_path == self.fail_on:
            raise SnapshotError(f"git archive failed for {relative_path}")
        prefix = name.snapshot_prefix(relative_path)
        members = {prefix + rel: data for rel, data in self.contents[relative_path].items()}
        return make_tar(destination, members, dirs=[prefix])

    def snapshot_many(self, root_path, name, entries, workdir, jobs=1):
        for i, entry in enumerate(entries):
            yield entry, self.snapshot(root_path, name, entry.path, workdir / f"s{i}.tar")


def _service(snapshots, timestamp=1704070860):
    git = MagicMock()
    git.head_timestamp.return_value = timestamp
    return AssemblyService(git_client=git, snapshot_service=snapshots)


def _run(service, tmp_path, entries):
    gen = service.assemble(tmp_path, NAME, tmp_path / "out.tar", entries)
    messages = []
    try:
        while True:
            messages.append(next(gen))
    except StopIteration as e:
        return messages, e.value


class TestAssemble:
    """Tests for AssemblyService.assemble."""

    def test_order_root_then_submodules_then_tag(self, tmp_path):
        snapshots = FakeSnapshots({
            "": {"a.txt": b"a", ".gitmodules": b"[submodule]"},
            "deps/x": {"b.txt": b"b"},
            "deps/y": {"c.txt": b"c"},
        })
        entries = [SubmoduleEntry("deps/x"), SubmoduleEntry("deps/y")]

        messages, container = _run(_service(snapshots), tmp_path, entries)

        assert tar_names(container.path) == [
            PREFIX,
            f"{PREFIX}/a.txt",
            f"{PREFIX}/.gitmodules",
            f"{PREFIX}/deps/x",
            f"{PREFIX}/deps/x/b.txt",
            f"{PREFIX}/deps/y",
            f"{PREFIX}/deps/y/c.txt",
            f"{PREFIX}/.tag",
        ]
        assert container.names == tar_names(container.path)
        assert snapshots.calls == ["", "deps/x", "deps/y"]
        assert messages[0] == "Snapshotting root repository"
        assert "Appending deps/x" in messages
        assert messages[-1] == "Adding .tag"

    def test_tag_entry(self, tmp_path):
        snapshots = FakeSnapshots({"": {"a.txt": b"a"}})

        _, container = _run(_service(snapshots), tmp_path, [])

        with tarfile.open(container.path) as tar:
            info = tar.getmember(f"{PREFIX}/.tag")
            assert tar.extractfile(info).read() == b"20240101-0101"
            assert info.uid == 0 and info.gid == 0
            assert info.uname == "root" and info.gname == "root"
            assert info.mtime == 1704070860
            assert info.mode == 0o644

    def test_no_submodules(self, tmp_path):
        snapshots = FakeSnapshots({"": {"a.txt": b"a"}})

        _, container = _run(_service(snapshots), tmp_path, [])

        assert tar_names(container.path) == [PREFIX, f"{PREFIX}/a.txt", f"{PREFIX}/.tag"]

    def test_container_closed_and_workdir_removed(self, tmp_path):
        snapshots = FakeSnapshots({"": {"a.txt": b"a"}})

        _, container = _run(_service(snapshots), tmp_path, [])

        assert not container.is_open
        assert sorted(p.name for p in tmp_path.iterdir() if p.suffix == ".tar") == ["out.tar"]

    def test_duplicate_file_is_an_error(self, tmp_path):
        """A submodule may not overwrite a file from an earlier snapshot."""
        snapshots = FakeSnapshots({
            "": {"deps/x/b.txt": b"root copy"},
            "deps/x": {"b.txt": b"sub copy"},
        })

        with pytest.raises(AssemblyError) as exc_info:
            _run(_service(snapshots), tmp_path, [SubmoduleEntry("deps/x")])

        assert "deps/x" in str(exc_info.value)

    def test_snapshot_failure_propagates(self, tmp_path):
        snapshots = FakeSnapshots(
            {"": {"a.txt": b"a"}, "deps/x": {"b.txt": b"b"}},
            fail_on="deps/x",
        )

        with pytest.raises(SnapshotError):
            _run(_service(snapshots), tmp_path, [SubmoduleEntry("deps/x")])

    def test_missing_head_timestamp(self, tmp_path):
        snapshots = FakeSnapshots({"": {"a.txt": b"a"}})

        _, container = _run(_service(snapshots, timestamp=None), tmp_path, [])

        with tarfile.open(container.path) as tar:
            assert tar.getmember(f"{PREFIX}/.tag").mtime == 0


@requires_git
class TestAssembleWithGit:
    """Assembly against real repositories."""

    def test_project(self, project, tmp_path):
        service = AssemblyService()
        out = tmp_path / "build" / "project-20240101-0101-src.tar"

        gen = service.assemble(project, NAME, out, [SubmoduleEntry("deps/x")])
        for _ in gen:
            pass

        files = tar_files(out)
        assert files[f"{PREFIX}/a.txt"] == b"ay\n"
        assert files[f"{PREFIX}/deps/x/b.txt"] == b"bee\n"
        assert files[f"{PREFIX}/.tag"] == b"20240101-0101"
        assert f"{PREFIX}/.gitmodules" in files
        assert all(Path(n).parts[0] == PREFIX for n in tar_names(out))
