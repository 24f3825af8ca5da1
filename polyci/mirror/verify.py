"""Mirror verification: read-only comparison of the source and mirror remotes.

Flow:
1. Fetch both remotes (`--prune --tags`). Failure aborts with exit 2.
2. Compare branches: missing in mirror, missing in source, out of sync.
3. Compare tag names advertised by each remote.
4. Compare history on the default branch: HEAD SHAs must match; commit
   counts that differ only produce a warning.

Every check runs even when an earlier one found discrepancies.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from polyci.core.logging import log_success
from polyci.exceptions import GitCommandError
from polyci.mirror.git import GitClient, short_sha

logger = logging.getLogger(__name__)

REPORT_FILENAME = "mirror-verification-report.txt"

EXIT_IN_SYNC = 0
EXIT_DISCREPANCIES = 1
EXIT_ERROR = 2

# Missing tags listed before collapsing into "... and N more".
MAX_LISTED_TAGS = 10


@dataclass
class BranchComparison:
    source: dict[str, str] = field(default_factory=dict)
    mirror: dict[str, str] = field(default_factory=dict)
    missing_in_mirror: list[str] = field(default_factory=list)
    missing_in_source: list[str] = field(default_factory=list)
    out_of_sync: list[str] = field(default_factory=list)

    @property
    def discrepancies(self) -> int:
        return len(self.missing_in_mirror) + len(self.missing_in_source) + len(self.out_of_sync)


@dataclass
class TagComparison:
    source: list[str] = field(default_factory=list)
    mirror: list[str] = field(default_factory=list)
    missing_in_mirror: list[str] = field(default_factory=list)
    missing_in_source: list[str] = field(default_factory=list)

    @property
    def discrepancies(self) -> int:
        return len(self.missing_in_mirror) + len(self.missing_in_source)


@dataclass
class HistoryComparison:
    default_branch: str
    source_commits: Optional[int] = None
    mirror_commits: Optional[int] = None
    source_head: Optional[str] = None
    mirror_head: Optional[str] = None

    @property
    def heads_match(self) -> bool:
        return self.source_head == self.mirror_head

    @property
    def counts_match(self) -> bool:
        return self.source_commits == self.mirror_commits

    @property
    def discrepancies(self) -> int:
        return 0 if self.heads_match else 1


@dataclass
class VerificationResult:
    source_remote: str
    mirror_remote: str
    error: Optional[str] = None
    branches: Optional[BranchComparison] = None
    tags: Optional[TagComparison] = None
    history: Optional[HistoryComparison] = None

    @property
    def discrepancies(self) -> int:
        return sum(
            part.discrepancies
            for part in (self.branches, self.tags, self.history)
            if part is not None
        )

    @property
    def exit_code(self) -> int:
        if self.error:
            return EXIT_ERROR
        if self.discrepancies:
            return EXIT_DISCREPANCIES
        return EXIT_IN_SYNC


class MirrorVerifier:
    def __init__(self, git: GitClient, source_remote: str = "origin", mirror_remote: str = "gitlab"):
        self.git = git
        self.source_remote = source_remote
        self.mirror_remote = mirror_remote

    def verify(self) -> VerificationResult:
        logger.info("Starting mirror verification")
        logger.info("Source remote: %s", self.source_remote)
        logger.info("Mirror remote: %s", self.mirror_remote)
        result = VerificationResult(self.source_remote, self.mirror_remote)

        try:
            self.fetch_remotes()
        except GitCommandError as exc:
            result.error = str(exc)
            logger.error("Mirror verification failed due to errors.")
            return result

        try:
            result.branches = self.compare_branches()
            result.tags = self.compare_tags()
        except GitCommandError as exc:
            result.error = str(exc)
            logger.error("Mirror verification failed due to errors.")
            return result
        result.history = self.verify_history()

        if result.exit_code == EXIT_IN_SYNC:
            log_success(logger, "Mirror verification passed! All remotes are in sync.")
        else:
            logger.warning(
                "Mirror verification found discrepancies (%d).", result.discrepancies
            )
        return result

    def fetch_remotes(self) -> None:
        logger.info("Fetching from remotes...")
        for remote in (self.source_remote, self.mirror_remote):
            try:
                self.git.fetch(remote, prune=True, tags=True)
            except GitCommandError:
                logger.error("Failed to fetch from %s", remote)
                raise
        log_success(logger, "Fetched from both remotes")

    def compare_branches(self) -> BranchComparison:
        logger.info("Comparing branches...")
        source = self.git.remote_branches(self.source_remote)
        mirror = self.git.remote_branches(self.mirror_remote)

        comparison = BranchComparison(
            source=source,
            mirror=mirror,
            missing_in_mirror=sorted(set(source) - set(mirror)),
            missing_in_source=sorted(set(mirror) - set(source)),
            out_of_sync=sorted(
                name for name in set(source) & set(mirror) if source[name] != mirror[name]
            ),
        )

        if comparison.missing_in_mirror:
            logger.warning(
                "Branches missing in %s: %s",
                self.mirror_remote, ", ".join(comparison.missing_in_mirror),
            )
        if comparison.missing_in_source:
            logger.warning(
                "Branches missing in %s: %s",
                self.source_remote, ", ".join(comparison.missing_in_source),
            )
        if comparison.out_of_sync:
            logger.error("Branches out of sync: %s", ", ".join(comparison.out_of_sync))
        if not comparison.discrepancies:
            log_success(logger, "All branches are in sync!")
        return comparison

    def compare_tags(self) -> TagComparison:
        logger.info("Comparing tags...")
        source = sorted(self.git.remote_tags(self.source_remote))
        mirror = sorted(self.git.remote_tags(self.mirror_remote))

        comparison = TagComparison(
            source=source,
            mirror=mirror,
            missing_in_mirror=sorted(set(source) - set(mirror)),
            missing_in_source=sorted(set(mirror) - set(source)),
        )
        logger.info("Tags in %s: %d", self.source_remote, len(source))
        logger.info("Tags in %s: %d", self.mirror_remote, len(mirror))

        if comparison.missing_in_mirror:
            logger.warning(
                "Tags missing in %s: %s",
                self.mirror_remote, _abbreviate(comparison.missing_in_mirror),
            )
        if comparison.missing_in_source:
            logger.warning(
                "Tags missing in %s: %s",
                self.source_remote, _abbreviate(comparison.missing_in_source),
            )
        if not comparison.discrepancies:
            log_success(logger, "All tags are in sync!")
        return comparison

    def verify_history(self) -> HistoryComparison:
        logger.info("Verifying commit history integrity...")
        branch = self.git.default_branch(self.source_remote)
        source_ref = f"{self.source_remote}/{branch}"
        mirror_ref = f"{self.mirror_remote}/{branch}"

        history = HistoryComparison(
            default_branch=branch,
            source_commits=self.git.commit_count(source_ref),
            source_head=self.git.rev_parse(source_ref),
            mirror_head=self.git.rev_parse(mirror_ref),
        )
        logger.info("Default branch: %s", branch)

        if history.mirror_head is None:
            logger.warning("Cannot find %s", mirror_ref)
        else:
            history.mirror_commits = self.git.commit_count(mirror_ref)
            if history.counts_match:
                log_success(logger, "Commit counts match!")
            else:
                logger.warning(
                    "Commit counts differ (source: %s, mirror: %s)",
                    history.source_commits, history.mirror_commits,
                )

        logger.info("Latest commit on %s: %s", source_ref, short_sha(history.source_head))
        logger.info("Latest commit on %s: %s", mirror_ref, short_sha(history.mirror_head))
        if history.heads_match:
            log_success(logger, "HEAD commits match!")
        else:
            logger.error("HEAD commits differ!")
        return history


def _abbreviate(items: list[str], limit: int = MAX_LISTED_TAGS) -> str:
    shown = ", ".join(items[:limit])
    if len(items) > limit:
        shown += f" ... and {len(items) - limit} more"
    return shown


def _listing(items: list[str], limit: Optional[int] = None) -> list[str]:
    shown = items if limit is None else items[:limit]
    lines = [f"  - {item}" for item in shown]
    if limit is not None and len(items) > limit:
        lines.append(f"  ... and {len(items) - limit} more")
    return lines


# ---------------------------------------------------------------------------
# Output
# ---------------------------------------------------------------------------

def render_summary(result: VerificationResult) -> str:
    """Plain-text comparison tables printed at the end of a run."""
    bar = "=" * 40
    lines: list[str] = []

    if result.branches is not None:
        branches = result.branches
        lines += [bar, f"{'BRANCH COMPARISON':^40}".rstrip(), bar]
        for title, names in (
            (f"Branches missing in {result.mirror_remote}:", branches.missing_in_mirror),
            (f"Branches missing in {result.source_remote}:", branches.missing_in_source),
            ("Branches out of sync:", branches.out_of_sync),
        ):
            if names:
                lines.append(title)
                lines += _listing(names)
        if not branches.discrepancies:
            lines.append("All branches are in sync!")
        lines.append("")

    if result.tags is not None:
        tags = result.tags
        lines += [
            bar,
            f"{'TAG COMPARISON':^40}".rstrip(),
            bar,
            f"Tags in {result.source_remote}: {len(tags.source)}",
            f"Tags in {result.mirror_remote}: {len(tags.mirror)}",
        ]
        for title, names in (
            (f"Tags missing in {result.mirror_remote} (first {MAX_LISTED_TAGS}):", tags.missing_in_mirror),
            (f"Tags missing in {result.source_remote} (first {MAX_LISTED_TAGS}):", tags.missing_in_source),
        ):
            if names:
                lines.append(title)
                lines += _listing(names, MAX_LISTED_TAGS)
        if not tags.discrepancies:
            lines.append("All tags are in sync!")
        lines.append("")

    if result.history is not None:
        history = result.history
        source_ref = f"{result.source_remote}/{history.default_branch}"
        mirror_ref = f"{result.mirror_remote}/{history.default_branch}"
        lines += [
            bar,
            f"{'HISTORY VERIFICATION':^40}".rstrip(),
            bar,
            f"Default branch: {history.default_branch}",
            f"Commits in {source_ref}: {history.source_commits if history.source_commits is not None else 0}",
        ]
        if history.mirror_head is not None:
            lines.append(f"Commits in {mirror_ref}: {history.mirror_commits or 0}")
        lines += [
            f"Latest commit on {source_ref}: {short_sha(history.source_head)}",
            f"Latest commit on {mirror_ref}: {short_sha(history.mirror_head)}",
            "HEAD commits match!" if history.heads_match else "HEAD commits differ!",
            "",
        ]

    final = {
        EXIT_IN_SYNC: "Mirror verification passed! All remotes are in sync.",
        EXIT_DISCREPANCIES: "Mirror verification found discrepancies.",
        EXIT_ERROR: "Mirror verification failed due to errors.",
    }[result.exit_code]
    lines += [bar, f"{'FINAL RESULT':^40}".rstrip(), bar, final]
    if result.error:
        lines.append(result.error)
    return "\n".join(lines)


def write_report(
    result: VerificationResult,
    git: GitClient,
    project_root: Path,
    now: Optional[datetime] = None,
) -> Path:
    """Write mirror-verification-report.txt to the project root."""
    now = now or datetime.now(timezone.utc)
    path = Path(project_root) / REPORT_FILENAME

    branch = (
        result.history.default_branch
        if result.history is not None
        else git.default_branch(result.source_remote)
    )
    recent = git.recent_commits(f"{result.source_remote}/{branch}", limit=10)

    lines = [
        "Mirror Verification Report",
        "==========================",
        f"Generated: {now.strftime('%Y-%m-%d %H:%M:%S')} UTC",
        "",
        f"Source Remote: {result.source_remote}",
        f"Mirror Remote: {result.mirror_remote}",
        "",
        "Remote URLs:",
        git.remotes_verbose(),
        "",
    ]

    if result.branches is not None:
        lines.append("Branches:")
        for remote, refs in (
            (result.source_remote, result.branches.source),
            (result.mirror_remote, result.branches.mirror),
        ):
            lines += [f"  {remote}/{name} {short_sha(sha)}" for name, sha in sorted(refs.items())]
        lines.append("")

    if result.tags is not None:
        lines.append("Tags (last 20):")
        lines += [f"  {tag}" for tag in git.local_tags(limit=20)]
        lines.append("")

    lines += ["Comparison:", render_summary(result), ""]

    lines.append("Recent commits (source):")
    lines += recent or ["N/A"]

    path.write_text("\n".join(lines) + "\n", encoding="utf-8")
    logger.info("Report saved to: %s", path)
    return path
