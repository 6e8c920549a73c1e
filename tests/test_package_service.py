"""
Tests for PackageService (gzip compression).
"""

import gzip

import pytest

from srcarchive.exceptions import PackageError
from srcarchive.services import PackageService
from srcarchive.services.package_service import sha256_file
from conftest import make_tar, tar_names


class TestPackage:
    """Tests for PackageService.package."""

    def test_compresses_without_changing_content(self, tmp_path):
        tar = make_tar(tmp_path / "p-src.tar", {"p/a.txt": b"a" * 1000})
        original = tar.read_bytes()

        artifact = PackageService().package(tar, tmp_path / "p-src.tar.gz")

        assert gzip.decompress(artifact.read_bytes()) == original
        assert tar_names(artifact) == ["p/a.txt"]

    def test_input_removed(self, tmp_path):
        tar = make_tar(tmp_path / "p-src.tar", {"p/a.txt": b"a"})

        PackageService().package(tar, tmp_path / "p-src.tar.gz")

        assert not tar.exists()

    def test_keep_input(self, tmp_path):
        tar = make_tar(tmp_path / "p-src.tar", {"p/a.txt": b"a"})

        PackageService().package(tar, tmp_path / "p-src.tar.gz", keep_input=True)

        assert tar.exists()

    def test_deterministic(self, tmp_path):
        """Same input gives the same bytes, regardless of time or file name."""
        tar = make_tar(tmp_path / "p-src.tar", {"p/a.txt": b"abc"})

        one = PackageService().package(tar, tmp_path / "one.tar.gz", keep_input=True)
        two = PackageService().package(tar, tmp_path / "two.tar.gz", keep_input=True)

        assert one.read_bytes() == two.read_bytes()
        assert sha256_file(one) == sha256_file(two)

    def test_gzip_header_has_no_name_or_time(self, tmp_path):
        tar = make_tar(tmp_path / "p-src.tar", {"p/a.txt": b"abc"})

        data = PackageService().package(tar, tmp_path / "p-src.tar.gz").read_bytes()

        flags = data[3]
        mtime = int.from_bytes(data[4:8], "little")
        assert flags & 0x08 == 0  # FNAME
        assert mtime == 0

    def test_compresslevel_from_config(self, tmp_path):
        assert PackageService(config={'compresslevel': 1}).compresslevel == 1

    def test_missing_input(self, tmp_path):
        out = tmp_path / "out"
        out.mkdir()

        with pytest.raises(PackageError) as exc_info:
            PackageService().package(out / "missing.tar", out / "p-src.tar.gz")

        assert exc_info.value.step == "package"
        assert list(out.iterdir()) == []

    def test_missing_output_dir(self, tmp_path):
        tar = make_tar(tmp_path / "p-src.tar", {"p/a.txt": b"a"})

        with pytest.raises(PackageError):
            PackageService().package(tar, tmp_path / "nope" / "p-src.tar.gz")

        assert tar.exists()
