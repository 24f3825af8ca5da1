"""Single entry point for running external tools.

Every vendor tool call made by a dispatcher goes through run_step(). It
blocks until the subprocess exits, never raises, and always returns a
StepResult. Output streams straight to the terminal unless `capture` is
set, in which case it is collected on the result.
"""

import logging
import shlex
import subprocess
import time
from pathlib import Path
from typing import Optional, Protocol

from polyci.dispatch.types import StepResult

logger = logging.getLogger(__name__)

# Conventional shell status for "command not found".
EXIT_NOT_FOUND = 127


class StepRunner(Protocol):
    def __call__(
        self,
        name: str,
        argv: list[str],
        cwd: Path,
        env: Optional[dict] = None,
        capture: bool = False,
        timeout: Optional[float] = None,
    ) -> StepResult: ...


def run_step(
    name: str,
    argv: list[str],
    cwd: Path,
    env: Optional[dict] = None,
    capture: bool = False,
    timeout: Optional[float] = None,
) -> StepResult:
    """Execute a single tool invocation as a subprocess.

    No timeout is applied unless one is given. A missing executable
    yields exit code 127 instead of an exception.
    """
    logger.info("Running: %s", shlex.join(argv))
    logger.debug("step '%s' cwd=%s", name, cwd)
    start = time.monotonic()

    try:
        result = subprocess.run(
            argv,
            cwd=str(cwd),
            env=env,
            capture_output=capture,
            text=True,
            timeout=timeout,
        )
        step_result = StepResult(
            name=name,
            command=list(argv),
            exit_code=result.returncode,
            duration_seconds=time.monotonic() - start,
            stdout=result.stdout or "",
            stderr=result.stderr or "",
        )

    except subprocess.TimeoutExpired:
        step_result = StepResult(
            name=name,
            command=list(argv),
            exit_code=-1,
            duration_seconds=time.monotonic() - start,
            stderr=f"Timed out after {timeout} seconds",
        )

    except FileNotFoundError as exc:
        step_result = StepResult(
            name=name,
            command=list(argv),
            exit_code=EXIT_NOT_FOUND,
            duration_seconds=time.monotonic() - start,
            stderr=f"{argv[0]}: command not found ({exc.strerror or exc})",
        )

    except OSError as exc:
        step_result = StepResult(
            name=name,
            command=list(argv),
            exit_code=-2,
            duration_seconds=time.monotonic() - start,
            stderr=str(exc),
        )

    status = "OK" if step_result.is_success else "FAILED"
    logger.debug(
        "Step '%s' %s (exit=%d, %.1fs)",
        name, status, step_result.exit_code, step_result.duration_seconds,
    )
    if not step_result.is_success and step_result.stderr:
        logger.warning(
            "Step '%s' stderr (tail):\n%s", name, _truncate_output(step_result.stderr)
        )

    return step_result


def _truncate_output(text: str, max_lines: int = 60, max_chars: int = 4000) -> str:
    """Return a concise tail of command output for logs."""
    if not text:
        return ""
    lines = text.splitlines()
    tail = lines[-max_lines:]
    joined = "\n".join(tail)
    if len(joined) > max_chars:
        joined = joined[-max_chars:]
    return joined
