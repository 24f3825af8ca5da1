"""Thin wrapper over the git CLI for mirror sync and verification.

Every call runs `git` in the repository directory with captured output.
`_run_git` raises GitCommandError on a non-zero exit; `_run_git_allow_fail`
returns the completed process so callers can treat failure as an answer
(for example "this remote does not exist").

Remote URLs may carry credentials (CI tokens). They are passed through
redact_url() before they reach a log line or report.
"""

import logging
import re
import subprocess
from pathlib import Path
from typing import Callable, Optional, Sequence
from urllib.parse import urlparse, urlunparse

from polyci.exceptions import GitCommandError

logger = logging.getLogger(__name__)

SHORT_SHA = 12

Runner = Callable[..., subprocess.CompletedProcess]


def redact_url(url: str) -> str:
    """Return a remote URL safe to write into logs.

    Masks embedded credentials while preserving host/path context useful
    for debugging.
    """
    parsed = urlparse(url)
    if parsed.username is None:
        return url

    host = parsed.hostname or ""
    if not host:
        return url

    port = f":{parsed.port}" if parsed.port else ""
    if parsed.password is not None:
        auth = f"{parsed.username}:***@"
    else:
        auth = "***@"

    return urlunparse(parsed._replace(netloc=f"{auth}{host}{port}"))


_URL_TOKEN = re.compile(r"[a-z][a-z0-9+.-]*://\S+", re.IGNORECASE)


def redact_text(text: str) -> str:
    """Redact every URL found in free text (e.g. `git remote -v` output)."""
    return _URL_TOKEN.sub(lambda match: redact_url(match.group(0)), text)


def short_sha(sha: Optional[str]) -> str:
    return sha[:SHORT_SHA] if sha else "unknown"


class GitClient:
    def __init__(
        self,
        repo_dir: Path,
        *,
        git_executable: str = "git",
        runner: Runner = subprocess.run,
        timeout_seconds: Optional[float] = None,
    ) -> None:
        self.repo_dir = Path(repo_dir)
        self._git_executable = git_executable
        self._runner = runner
        self._timeout_seconds = timeout_seconds

    # ------------------------------------------------------------------
    # Remotes
    # ------------------------------------------------------------------

    def remote_url(self, name: str) -> Optional[str]:
        result = self._run_git_allow_fail(["remote", "get-url", name])
        if result.returncode != 0:
            return None
        return (result.stdout or "").strip() or None

    def has_remote(self, name: str) -> bool:
        return self.remote_url(name) is not None

    def add_remote(self, name: str, url: str) -> None:
        self._run_git(["remote", "add", name, url])

    def set_remote_url(self, name: str, url: str) -> None:
        self._run_git(["remote", "set-url", name, url])

    def remotes_verbose(self) -> str:
        """`git remote -v` with credentials redacted."""
        result = self._run_git_allow_fail(["remote", "-v"])
        return redact_text((result.stdout or "").rstrip())

    def fetch(self, remote: str, *, prune: bool = True, tags: bool = True) -> None:
        args = ["fetch", remote]
        if prune:
            args.append("--prune")
        if tags:
            args.append("--tags")
        self._run_git(args)

    # ------------------------------------------------------------------
    # Refs
    # ------------------------------------------------------------------

    def remote_branches(self, remote: str) -> dict[str, str]:
        """Map branch name -> SHA for the remote-tracking refs of `remote`.

        The symbolic `HEAD` entry is excluded.
        """
        result = self._run_git(
            [
                "for-each-ref",
                "--format=%(refname:strip=3) %(objectname)",
                f"refs/remotes/{remote}/",
            ]
        )
        branches: dict[str, str] = {}
        for line in (result.stdout or "").splitlines():
            name, _, sha = line.strip().rpartition(" ")
            if not name or name == "HEAD":
                continue
            branches[name] = sha
        return branches

    def remote_tags(self, remote: str) -> dict[str, str]:
        """Map tag name -> SHA as advertised by `remote`.

        Peeled `^{}` entries for annotated tags are ignored.
        """
        result = self._run_git(["ls-remote", "--tags", remote])
        tags: dict[str, str] = {}
        for line in (result.stdout or "").splitlines():
            sha, _, ref = line.strip().partition("\t")
            if not ref.startswith("refs/tags/") or ref.endswith("^{}"):
                continue
            tags[ref[len("refs/tags/"):]] = sha
        return tags

    def local_tags(self, limit: Optional[int] = None) -> list[str]:
        """Local tag names, newest first."""
        result = self._run_git_allow_fail(["tag", "-l", "--sort=-creatordate"])
        tags = [line.strip() for line in (result.stdout or "").splitlines() if line.strip()]
        return tags[:limit] if limit is not None else tags

    def default_branch(self, remote: str, fallback: str = "master") -> str:
        """Branch the remote's HEAD points at, or `fallback` when unknown.

        A remote added with `git remote add` has no `<remote>/HEAD` until
        it is set, so a missing symref is refreshed from the remote once
        before falling back.
        """
        branch = self._remote_head_branch(remote)
        if branch is None:
            self.refresh_remote_head(remote)
            branch = self._remote_head_branch(remote)
        return branch or fallback

    def refresh_remote_head(self, remote: str) -> None:
        result = self._run_git_allow_fail(["remote", "set-head", remote, "-a"])
        if result.returncode != 0:
            logger.info("Unable to refresh %s HEAD; continuing with current refs", remote)

    def _remote_head_branch(self, remote: str) -> Optional[str]:
        result = self._run_git_allow_fail(["symbolic-ref", f"refs/remotes/{remote}/HEAD"])
        prefix = f"refs/remotes/{remote}/"
        value = (result.stdout or "").strip()
        if result.returncode != 0 or not value.startswith(prefix):
            return None
        branch = value[len(prefix):]
        return branch if self.rev_parse(f"{remote}/{branch}") else None

    def rev_parse(self, ref: str) -> Optional[str]:
        result = self._run_git_allow_fail(["rev-parse", "--verify", "--quiet", ref])
        if result.returncode != 0:
            return None
        return (result.stdout or "").strip() or None

    def commit_count(self, ref: str) -> Optional[int]:
        result = self._run_git_allow_fail(["rev-list", "--count", ref])
        if result.returncode != 0:
            return None
        try:
            return int((result.stdout or "").strip())
        except ValueError:
            return None

    def recent_commits(self, ref: str, limit: int = 10) -> list[str]:
        result = self._run_git_allow_fail(["log", "--oneline", f"-{limit}", ref])
        if result.returncode != 0:
            return []
        return [line for line in (result.stdout or "").splitlines() if line.strip()]

    # ------------------------------------------------------------------
    # Push (always forced)
    # ------------------------------------------------------------------

    def push(self, remote: str, refspec: str) -> None:
        self._run_git(["push", remote, refspec, "--force"])

    def push_tags(self, remote: str) -> None:
        self._run_git(["push", remote, "--tags", "--force"])

    # ------------------------------------------------------------------
    # Plumbing
    # ------------------------------------------------------------------

    def _run_git_allow_fail(self, args: Sequence[str]) -> subprocess.CompletedProcess:
        command = [self._git_executable, *args]
        logger.debug("git %s", redact_text(" ".join(args)))
        try:
            return self._runner(
                command,
                cwd=str(self.repo_dir),
                check=False,
                text=True,
                capture_output=True,
                timeout=self._timeout_seconds,
            )
        except FileNotFoundError as error:
            raise GitCommandError(
                command, 127, f"Git executable '{self._git_executable}' was not found in PATH"
            ) from error
        except subprocess.TimeoutExpired as error:
            raise GitCommandError(
                command, -1, f"Git command timed out after {self._timeout_seconds}s"
            ) from error

    def _run_git(self, args: Sequence[str]) -> subprocess.CompletedProcess:
        result = self._run_git_allow_fail(args)
        if result.returncode != 0:
            command = [self._git_executable, *(redact_text(arg) for arg in args)]
            details = (result.stderr or "").strip() or (result.stdout or "").strip()
            logger.debug("git command failed (%d): %s", result.returncode, " ".join(command))
            raise GitCommandError(command, result.returncode, redact_text(details))
        return result
