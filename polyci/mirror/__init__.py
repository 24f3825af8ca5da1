"""Git mirroring: push refs to a second remote and verify the two agree.

Public API:
    MirrorSync, run_sync: push refs to the mirror
    MirrorVerifier, write_report: compare remotes
"""

from polyci.mirror.git import GitClient, redact_url
from polyci.mirror.sync import MirrorSync, SyncMode, SyncResult, run_sync
from polyci.mirror.verify import MirrorVerifier, VerificationResult, render_summary, write_report

__all__ = [
    "GitClient",
    "MirrorSync",
    "MirrorVerifier",
    "SyncMode",
    "SyncResult",
    "VerificationResult",
    "redact_url",
    "render_summary",
    "run_sync",
    "write_report",
]
