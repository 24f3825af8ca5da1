"""Shared fixtures: a recording step runner and a clean environment.

Dispatcher tests never start real tools; they inject FakeRunner in place
of run_step and a fake `which` that only knows the tools a test lists.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import pytest

from polyci.core.config import Settings
from polyci.dispatch.types import StepResult

# Variables CI platforms set that would leak into Settings.
_ENV_VARS = (
    "PROJECT_ROOT",
    "CI",
    "COVERAGE",
    "VERBOSE",
    "FIX",
    "BUILD_MODE",
    "SOURCE_REMOTE",
    "MIRROR_REMOTE",
    "MIRROR_URL",
    "DRY_RUN",
    "GITHUB_REF",
    "GITHUB_SHA",
    "DETECTED_LANGUAGES",
    "PRIMARY_LANGUAGE",
    "DETECTED_PACKAGE_MANAGERS",
    "DETECTED_TEST_FRAMEWORKS",
    "DETECTED_BUILD_SYSTEMS",
    "POLYCI_LOG_LEVEL",
    "POLYCI_LOG_FORMAT",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)


@dataclass
class Call:
    name: str
    argv: list[str]
    cwd: Path
    env: Optional[dict]
    capture: bool

    @property
    def line(self) -> str:
        return " ".join(self.argv)


class FakeRunner:
    """Stand-in for run_step that records calls instead of executing.

    `exit_codes` maps a space-joined command line to its exit code; a list
    value is consumed one entry per call. `stdout` maps command lines to
    captured output.
    """

    def __init__(self, exit_codes: Optional[dict] = None, stdout: Optional[dict] = None):
        self.exit_codes = dict(exit_codes or {})
        self.stdout = dict(stdout or {})
        self.calls: list[Call] = []

    def __call__(self, name, argv, cwd, env=None, capture=False, timeout=None) -> StepResult:
        call = Call(name=name, argv=list(argv), cwd=Path(cwd), env=env, capture=capture)
        self.calls.append(call)

        code = self.exit_codes.get(call.line, 0)
        if isinstance(code, list):
            code = code.pop(0) if code else 0
        return StepResult(
            name=name,
            command=list(argv),
            exit_code=code,
            duration_seconds=0.0,
            stdout=self.stdout.get(call.line, ""),
        )

    @property
    def lines(self) -> list[str]:
        return [call.line for call in self.calls]


def make_which(*available: str):
    """Fake shutil.which that resolves only the listed tool names."""

    def which(name, path=None):
        return f"/usr/bin/{name}" if name in available else None

    return which


@pytest.fixture
def runner() -> FakeRunner:
    return FakeRunner()


@pytest.fixture
def settings() -> Settings:
    return Settings(_env_file=None)


def write(root: Path, relpath: str, content: str = "") -> Path:
    path = root / relpath
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")
    return path
