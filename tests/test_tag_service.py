"""
Tests for TagService (release tag resolution).
"""

from datetime import datetime
from unittest.mock import MagicMock

import pytest

from srcarchive.exceptions import TagResolutionError
from srcarchive.services import TagService
from conftest import git, requires_git

FIXED_NOW = datetime(2024, 1, 1, 1, 1, 5)


@pytest.fixture
def mock_git():
    client = MagicMock()
    client.describe.return_value = None
    client.short_head.return_value = "abc1234"
    return client


class TestResolve:
    """Tests for the tag priority chain."""

    def test_override_wins(self, mock_git):
        """An explicit override is used without asking git."""
        mock_git.describe.return_value = "20230101-0000"
        service = TagService(git_client=mock_git, config={'tag': '20240101-0101'})

        assert service.resolve("/repo") == "20240101-0101"
        mock_git.describe.assert_not_called()

    def test_argument_override_beats_config(self, mock_git):
        service = TagService(git_client=mock_git, config={'tag': 'from-config'})

        assert service.resolve("/repo", override="from-arg") == "from-arg"

    def test_blank_override_ignored(self, mock_git):
        mock_git.describe.return_value = "20230101-0000"
        service = TagService(git_client=mock_git, config={'tag': '  '})

        assert service.resolve("/repo") == "20230101-0000"

    def test_describe(self, mock_git):
        mock_git.describe.return_value = "20230101-0000-3-gabc1234"
        service = TagService(git_client=mock_git, config={'tag_pattern': '20*'})

        assert service.resolve("/repo") == "20230101-0000-3-gabc1234"
        mock_git.describe.assert_called_once_with("/repo", match="20*")

    def test_fallback(self, mock_git):
        """Without override or tag: timestamp plus short commit id."""
        service = TagService(git_client=mock_git, clock=lambda: FIXED_NOW)

        assert service.resolve("/repo") == "20240101-010105-abc1234"

    def test_fallback_without_history(self, mock_git):
        mock_git.short_head.return_value = None
        service = TagService(git_client=mock_git, clock=lambda: FIXED_NOW)

        with pytest.raises(TagResolutionError) as exc_info:
            service.resolve("/repo")

        assert exc_info.value.step == "resolve"

    def test_never_empty(self, mock_git):
        mock_git.describe.return_value = ""
        service = TagService(git_client=mock_git, clock=lambda: FIXED_NOW)

        assert service.resolve("/repo")


class TestReleaseName:
    """Tests for deriving names from the tag."""

    def test_scheduled(self, mock_git):
        name = TagService(git_client=mock_git).release_name("project", "20240101-0101", scheduled=True)

        assert name.artifact_name == "project-nightly-src.tar.gz"

    def test_tagged(self, mock_git):
        name = TagService(git_client=mock_git).release_name("project", "20240101-0101")

        assert name.artifact_name == "project-20240101-0101-src.tar.gz"

    def test_unusable_tag(self, mock_git):
        with pytest.raises(TagResolutionError):
            TagService(git_client=mock_git).release_name("project", "release/1.0")


class TestResolveRealRepo:
    """Tests against a real repository."""

    @requires_git
    def test_real_describe(self, make_repo):
        repo = make_repo("r", {"a.txt": "a"})
        git(repo, "tag", "20240101-0101")

        assert TagService().resolve(repo) == "20240101-0101"

    @requires_git
    def test_real_fallback(self, make_repo):
        repo = make_repo("r", {"a.txt": "a"})
        short = git(repo, "log", "--format=%h", "-1").strip()

        tag = TagService(clock=lambda: FIXED_NOW).resolve(repo)

        assert tag == f"20240101-010105-{short}"

    @requires_git
    def test_real_no_history(self, tmp_path):
        repo = tmp_path / "empty"
        repo.mkdir()
        git(repo, "init", "-q")

        with pytest.raises(TagResolutionError):
            TagService().resolve(repo)
