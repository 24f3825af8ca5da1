"""Exceptions raised by polyci.

Tool failures are not exceptions: they come back as StepResult objects with
a non-zero exit code. Only precondition failures and git plumbing errors
propagate.
"""


class PolyciError(Exception):
    """Base exception for all polyci errors."""


class ConfigurationError(PolyciError):
    """Raised when a required setting or precondition is missing.

    Always fatal: the command aborts before doing any work.
    """


class GitCommandError(PolyciError):
    """Raised when a git command exits non-zero."""

    def __init__(self, command: list[str], exit_code: int, stderr: str = ""):
        self.command = command
        self.exit_code = exit_code
        self.stderr = stderr
        details = stderr.strip() or "No command output"
        super().__init__(
            f"git command failed ({exit_code}): {' '.join(command)}\n{details}"
        )
