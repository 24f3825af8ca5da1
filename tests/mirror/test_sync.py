"""Tests for mirror sync against a mocked GitClient."""

from unittest.mock import MagicMock, call

import pytest

from polyci.exceptions import ConfigurationError, GitCommandError
from polyci.mirror.git import GitClient
from polyci.mirror.sync import MirrorSync, SyncMode, run_sync


def _git(**overrides) -> MagicMock:
    git = MagicMock(spec=GitClient)
    git.has_remote.return_value = True
    git.remote_branches.return_value = {"master": "aaa", "develop": "bbb"}
    for name, value in overrides.items():
        setattr(git, name, value)
    return git


def _failure(*args) -> GitCommandError:
    return GitCommandError(["git", *args], 1, "rejected")


class TestConfigureRemote:
    def test_adds_missing_remote(self):
        git = _git()
        git.has_remote.side_effect = [False, True]
        MirrorSync(git).configure_remote("https://gitlab.com/r.git")
        git.add_remote.assert_called_once_with("gitlab", "https://gitlab.com/r.git")
        git.set_remote_url.assert_not_called()

    def test_updates_existing_remote(self):
        git = _git()
        MirrorSync(git).configure_remote("https://gitlab.com/r.git")
        git.set_remote_url.assert_called_once_with("gitlab", "https://gitlab.com/r.git")

    def test_missing_remote_without_url_is_fatal(self):
        git = _git()
        git.has_remote.return_value = False
        with pytest.raises(ConfigurationError, match="not configured"):
            MirrorSync(git).configure_remote("")
        git.push.assert_not_called()


class TestSyncOnPush:
    def test_branch_ref(self):
        git = _git()
        result = MirrorSync(git).sync_on_push("refs/heads/main", "abc")
        git.push.assert_called_once_with("gitlab", "refs/heads/main:refs/heads/main")
        assert result.synced == ["branch main"]
        assert result.exit_code == 0

    def test_tag_ref(self):
        git = _git()
        result = MirrorSync(git, mirror_remote="backup").sync_on_push("refs/tags/v1.2.0")
        git.push.assert_called_once_with("backup", "refs/tags/v1.2.0:refs/tags/v1.2.0")
        assert result.synced == ["tag v1.2.0"]

    def test_unknown_ref_is_ignored(self):
        git = _git()
        result = MirrorSync(git).sync_on_push("refs/pull/7/merge")
        git.push.assert_not_called()
        assert result.ignored == ["refs/pull/7/merge"]
        assert result.exit_code == 0

    def test_missing_ref_is_fatal(self):
        with pytest.raises(ConfigurationError, match="GITHUB_REF"):
            MirrorSync(_git()).sync_on_push("")

    def test_push_failure(self):
        git = _git()
        git.push.side_effect = _failure("push")
        result = MirrorSync(git).sync_on_push("refs/heads/main")
        assert result.failed == ["branch main"]
        assert result.exit_code == 1

    def test_dry_run_pushes_nothing(self):
        git = _git()
        result = MirrorSync(git, dry_run=True).sync_on_push("refs/heads/main")
        git.push.assert_not_called()
        assert result.synced == ["branch main"]


class TestFullSync:
    def test_pushes_every_branch_then_tags(self):
        git = _git()
        result = MirrorSync(git).full_sync()

        git.fetch.assert_called_once_with("origin", prune=True, tags=True)
        assert git.push.call_args_list == [
            call("gitlab", "refs/remotes/origin/master:refs/heads/master"),
            call("gitlab", "refs/remotes/origin/develop:refs/heads/develop"),
        ]
        git.push_tags.assert_called_once_with("gitlab")
        assert result.synced == ["branch master", "branch develop", "tags"]
        assert result.exit_code == 0

    def test_one_failed_branch_does_not_stop_the_rest(self):
        git = _git()
        git.push.side_effect = [_failure("push"), None]
        result = MirrorSync(git).full_sync()

        assert git.push.call_count == 2
        git.push_tags.assert_called_once()
        assert result.failed == ["branch master"]
        assert result.exit_code == 1

    def test_tag_failure(self):
        git = _git()
        git.push_tags.side_effect = _failure("push", "--tags")
        result = MirrorSync(git).full_sync()
        assert result.failed == ["tags"]

    def test_fetch_failure_aborts(self):
        git = _git()
        git.fetch.side_effect = _failure("fetch")
        result = MirrorSync(git).full_sync()
        git.push.assert_not_called()
        git.push_tags.assert_not_called()
        assert result.failed == ["origin"]
        assert result.exit_code == 1

    def test_dry_run(self):
        git = _git()
        result = MirrorSync(git, dry_run=True).full_sync()
        git.push.assert_not_called()
        git.push_tags.assert_not_called()
        assert result.synced == ["branch master", "branch develop", "tags"]


class TestRunSync:
    def test_full_mode(self):
        git = _git()
        result = run_sync(MirrorSync(git), SyncMode.FULL)
        git.push_tags.assert_called_once()
        assert result.exit_code == 0

    def test_push_mode_uses_ref(self):
        git = _git()
        run_sync(MirrorSync(git), SyncMode.PUSH, ref="refs/heads/main", sha="abc")
        git.push.assert_called_once_with("gitlab", "refs/heads/main:refs/heads/main")

    def test_remote_checked_before_any_push(self):
        git = _git()
        git.has_remote.return_value = False
        with pytest.raises(ConfigurationError):
            run_sync(MirrorSync(git), SyncMode.FULL)
        git.fetch.assert_not_called()
