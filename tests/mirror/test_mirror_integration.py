"""End-to-end sync and verify against real bare repositories."""

import shutil
import subprocess

import pytest

from polyci.mirror.git import GitClient
from polyci.mirror.sync import MirrorSync, SyncMode, run_sync
from polyci.mirror.verify import EXIT_DISCREPANCIES, EXIT_IN_SYNC, MirrorVerifier

pytestmark = pytest.mark.skipif(shutil.which("git") is None, reason="git is not installed")

GIT_CONFIG = [
    "-c", "user.name=Polyci Test",
    "-c", "user.email=polyci@example.com",
    "-c", "commit.gpgsign=false",
    "-c", "tag.gpgsign=false",
]


def git(cwd, *args, branch="master") -> str:
    result = subprocess.run(
        ["git", *GIT_CONFIG, "-c", f"init.defaultBranch={branch}", *args],
        cwd=cwd,
        check=True,
        capture_output=True,
        text=True,
    )
    return result.stdout.strip()


def make_workspace(tmp_path, branch):
    """A working clone with `origin` and `gitlab` bare repos; origin has history.

    `origin` is added with `git remote add`, so no `origin/HEAD` exists
    until someone sets it.
    """
    source = tmp_path / "source.git"
    mirror = tmp_path / "mirror.git"
    work = tmp_path / "work"
    for bare in (source, mirror):
        bare.mkdir()
        git(bare, "init", "--bare", branch=branch)

    work.mkdir()
    git(work, "init", branch=branch)
    (work / "README.md").write_text("hello\n")
    git(work, "add", "README.md")
    git(work, "commit", "-m", "Initial commit")
    git(work, "tag", "v1.0")
    git(work, "branch", "develop")
    git(work, "remote", "add", "origin", str(source))
    git(work, "push", "origin", f"HEAD:refs/heads/{branch}", "develop:refs/heads/develop", "--tags")
    return work, mirror


@pytest.fixture
def workspace(tmp_path):
    return make_workspace(tmp_path, "master")


class TestMirrorRoundTrip:
    def test_full_sync_then_verify(self, workspace):
        work, mirror = workspace
        client = GitClient(work)

        result = run_sync(MirrorSync(client), SyncMode.FULL, mirror_url=str(mirror))
        assert result.exit_code == 0
        heads = git(mirror, "for-each-ref", "--format=%(refname:short)", "refs/heads/")
        assert set(heads.split()) == {"develop", "master"}
        assert git(mirror, "tag", "--list") == "v1.0"

        verification = MirrorVerifier(client).verify()
        assert verification.exit_code == EXIT_IN_SYNC

    def test_default_branch_other_than_master(self, tmp_path):
        work, mirror = make_workspace(tmp_path, "main")
        client = GitClient(work)

        run_sync(MirrorSync(client), SyncMode.FULL, mirror_url=str(mirror))
        verification = MirrorVerifier(client).verify()

        assert verification.history.default_branch == "main"
        assert verification.history.source_head is not None
        assert verification.history.heads_match
        assert verification.exit_code == EXIT_IN_SYNC

    def test_verify_detects_missing_mirror_content(self, workspace):
        work, mirror = workspace
        client = GitClient(work)
        client.add_remote("gitlab", str(mirror))

        verification = MirrorVerifier(client).verify()
        assert verification.exit_code == EXIT_DISCREPANCIES
        assert verification.branches.missing_in_mirror == ["develop", "master"]
        assert verification.tags.missing_in_mirror == ["v1.0"]
