"""Mirror sync: push refs from the source remote to the mirror remote.

Two modes:
  push: event driven. Pushes the single ref named by GITHUB_REF
         (a branch or a tag) as `<ref>:<ref>`.
  full: fetches the source remote and pushes every branch, then every
         tag.

Every push is forced: the mirror is a copy and never has history of its
own worth keeping. Dry-run replaces each push with a log line.
"""

import logging
from dataclasses import dataclass, field
from enum import StrEnum

from polyci.core.logging import log_success
from polyci.exceptions import ConfigurationError, GitCommandError
from polyci.mirror.git import GitClient, redact_url, short_sha

logger = logging.getLogger(__name__)


class SyncMode(StrEnum):
    PUSH = "push"
    FULL = "full"


@dataclass
class SyncResult:
    synced: list[str] = field(default_factory=list)
    failed: list[str] = field(default_factory=list)
    ignored: list[str] = field(default_factory=list)

    @property
    def exit_code(self) -> int:
        return 1 if self.failed else 0


class MirrorSync:
    def __init__(
        self,
        git: GitClient,
        source_remote: str = "origin",
        mirror_remote: str = "gitlab",
        dry_run: bool = False,
    ) -> None:
        self.git = git
        self.source_remote = source_remote
        self.mirror_remote = mirror_remote
        self.dry_run = dry_run

    def configure_remote(self, mirror_url: str = "") -> None:
        """Point the mirror remote at `mirror_url`, then require that it exists."""
        if mirror_url:
            logger.info("Setting up mirror remote...")
            if self.git.has_remote(self.mirror_remote):
                self.git.set_remote_url(self.mirror_remote, mirror_url)
                logger.info("Updated %s URL to %s", self.mirror_remote, redact_url(mirror_url))
            else:
                self.git.add_remote(self.mirror_remote, mirror_url)
                logger.info("Added %s remote: %s", self.mirror_remote, redact_url(mirror_url))

        if not self.git.has_remote(self.mirror_remote):
            raise ConfigurationError(
                f"Mirror remote '{self.mirror_remote}' not configured. "
                "Set MIRROR_URL or add remote manually."
            )

    # ------------------------------------------------------------------
    # Modes
    # ------------------------------------------------------------------

    def sync_on_push(self, ref: str, sha: str = "") -> SyncResult:
        """Push the single ref that triggered the CI run."""
        if not ref:
            raise ConfigurationError("GITHUB_REF not set - are you running in GitHub Actions?")

        logger.info("Event-driven sync triggered")
        logger.info("Ref: %s", ref)
        logger.info("SHA: %s", short_sha(sha))

        result = SyncResult()
        if ref.startswith("refs/heads/"):
            kind, name = "branch", ref[len("refs/heads/"):]
        elif ref.startswith("refs/tags/"):
            kind, name = "tag", ref[len("refs/tags/"):]
        else:
            logger.warning("Unknown ref type: %s", ref)
            result.ignored.append(ref)
            return result

        logger.info("Syncing %s: %s", kind, name)
        self._push(f"{ref}:{ref}", f"{kind} {name}", result)
        return result

    def full_sync(self) -> SyncResult:
        """Fetch the source remote and force-push all of its branches and tags."""
        logger.info("Starting full mirror sync...")
        logger.info("Fetching from %s...", self.source_remote)
        result = SyncResult()
        try:
            self.git.fetch(self.source_remote, prune=True, tags=True)
            branches = self.git.remote_branches(self.source_remote)
        except GitCommandError as exc:
            logger.error("Failed to fetch from %s: %s", self.source_remote, exc)
            result.failed.append(self.source_remote)
            return result

        logger.info("Syncing all branches...")
        for branch in branches:
            refspec = f"refs/remotes/{self.source_remote}/{branch}:refs/heads/{branch}"
            self._push(refspec, f"branch {branch}", result)
        branch_failures = sum(1 for item in result.failed if item.startswith("branch "))
        logger.info(
            "Branch sync complete: %d succeeded, %d failed",
            len(branches) - branch_failures, branch_failures,
        )

        logger.info("Syncing tags...")
        if self.dry_run:
            logger.info("[DRY RUN] Would push all tags to %s", self.mirror_remote)
            result.synced.append("tags")
        else:
            try:
                self.git.push_tags(self.mirror_remote)
            except GitCommandError as exc:
                logger.error("Failed to sync tags: %s", exc)
                result.failed.append("tags")
            else:
                log_success(logger, "Tags synced successfully")
                result.synced.append("tags")
        return result

    def _push(self, refspec: str, label: str, result: SyncResult) -> None:
        if self.dry_run:
            logger.info("[DRY RUN] Would push %s to %s", refspec, self.mirror_remote)
            result.synced.append(label)
            return
        try:
            self.git.push(self.mirror_remote, refspec)
        except GitCommandError as exc:
            logger.error("Failed to sync %s: %s", label, exc)
            result.failed.append(label)
        else:
            log_success(logger, "Synced %s", label)
            result.synced.append(label)


def run_sync(
    sync: MirrorSync,
    mode: SyncMode,
    mirror_url: str = "",
    ref: str = "",
    sha: str = "",
) -> SyncResult:
    """Configure the mirror remote, then run the requested mode.

    Raises ConfigurationError before any push when the mirror remote is
    missing or, in push mode, when no ref was supplied.
    """
    logger.info("Mirror sync utility")
    sync.configure_remote(mirror_url)

    if mode == SyncMode.FULL:
        result = sync.full_sync()
    else:
        result = sync.sync_on_push(ref, sha)

    if result.exit_code == 0:
        log_success(logger, "Mirror sync completed successfully!")
    else:
        logger.error("Mirror sync completed with errors")
    return result
