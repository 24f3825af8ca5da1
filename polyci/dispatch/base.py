"""Table-driven dispatcher base class.

A dispatcher walks the keys of a Classification (languages, or package
managers for setup) in order and calls the handler registered for each
key in HANDLERS. Keys sharing a handler (javascript/typescript,
java/kotlin, the node lock-file managers) trigger it only once per
invocation. Each handler records one outcome per unit of work
(an ecosystem installed, a suite run, a linter run) on the summary.
"""

import logging
import os
import shutil
import sys
from pathlib import Path
from typing import Callable, Iterable, Mapping, Optional

from polyci.core.config import Settings
from polyci.core.logging import log_success
from polyci.detector import Classification, resolve_classification
from polyci.detector.types import (
    ENV_BUILD_SYSTEMS,
    ENV_LANGUAGES,
    ENV_PACKAGE_MANAGERS,
    ENV_PRIMARY_LANGUAGE,
    ENV_TEST_FRAMEWORKS,
)
from polyci.dispatch.executor import StepRunner, run_step
from polyci.dispatch.toolchains import find_venv, venv_env
from polyci.dispatch.types import DispatchSummary, Outcome, StepResult

logger = logging.getLogger(__name__)

WhichFn = Callable[..., Optional[str]]


def load_classification(settings: Settings) -> Classification:
    """Classification exported in the environment, or a fresh detection."""
    exported = {
        ENV_LANGUAGES: settings.detected_languages,
        ENV_PRIMARY_LANGUAGE: settings.primary_language,
        ENV_PACKAGE_MANAGERS: settings.detected_package_managers,
        ENV_TEST_FRAMEWORKS: settings.detected_test_frameworks,
        ENV_BUILD_SYSTEMS: settings.detected_build_systems,
    }
    return resolve_classification(settings.root, exported)


class Dispatcher:
    """Base class for the setup, test, lint and build dispatchers."""

    title = "dispatch"
    unit = "Steps"
    # key -> handler method name
    HANDLERS: Mapping[str, str] = {}
    # log wording for a recorded success / failure
    passed_verb = "passed"
    failed_verb = "failed"

    def __init__(
        self,
        root: Path,
        classification: Classification,
        settings: Optional[Settings] = None,
        runner: StepRunner = run_step,
        which: WhichFn = shutil.which,
        env: Optional[Mapping[str, str]] = None,
    ):
        self.root = Path(root)
        self.classification = classification
        self.settings = settings if settings is not None else Settings()
        self._run_step = runner
        self._which = which
        self.base_env = dict(os.environ if env is None else env)

    # ------------------------------------------------------------------
    # Dispatch loop
    # ------------------------------------------------------------------

    def keys(self) -> Iterable[str]:
        return self.classification.languages

    def run(self) -> DispatchSummary:
        summary = DispatchSummary(title=f"{self.title} summary")
        seen: set[str] = set()

        for key in self.keys():
            method_name = self.HANDLERS.get(key)
            if method_name is None:
                logger.debug("No %s recipe for %s", self.title, key)
                continue
            if method_name in seen:
                continue
            seen.add(method_name)
            getattr(self, method_name)(summary)

        self.finish(summary)
        return summary

    def finish(self, summary: DispatchSummary) -> None:
        """Hook for work that runs regardless of detected keys."""

    # ------------------------------------------------------------------
    # Helpers for handlers
    # ------------------------------------------------------------------

    def step(
        self,
        name: str,
        argv: list[str],
        env: Optional[Mapping[str, str]] = None,
        cwd: Optional[Path] = None,
        capture: bool = False,
    ) -> StepResult:
        return self._run_step(
            name,
            argv,
            cwd=cwd or self.root,
            env=dict(env if env is not None else self.base_env),
            capture=capture,
        )

    def has_tool(self, name: str, env: Optional[Mapping[str, str]] = None) -> bool:
        path = (env if env is not None else self.base_env).get("PATH")
        return self._which(name, path=path) is not None

    def exists(self, *names: str) -> bool:
        return any((self.root / name).exists() for name in names)

    def python_env(self) -> dict:
        """Base environment with the project virtualenv activated, if any."""
        venv = find_venv(self.root)
        if venv is None:
            return dict(self.base_env)
        logger.debug("Activating virtualenv %s", venv)
        return venv_env(venv, self.base_env)

    def python(self) -> str:
        """Interpreter for `python -m ...` calls: the venv's, else our own."""
        return "python" if find_venv(self.root) is not None else sys.executable

    def record(self, summary: DispatchSummary, label: str, result: StepResult) -> Outcome:
        outcome = Outcome.of(result)
        if outcome is Outcome.PASSED:
            log_success(logger, "%s %s", label, self.passed_verb)
        else:
            logger.error("%s %s (exit %d)", label, self.failed_verb, result.exit_code)
        return summary.record(label, outcome, result.command_line)

    def run_sequence(
        self,
        summary: DispatchSummary,
        label: str,
        commands: list[list[str]],
        env: Optional[Mapping[str, str]] = None,
    ) -> Outcome:
        """Run commands in order, stopping at the first failure."""
        result: Optional[StepResult] = None
        for argv in commands:
            result = self.step(label, argv, env=env)
            if not result.is_success:
                break
        if result is None:
            return self.skip(summary, label, "nothing to run")
        return self.record(summary, label, result)

    def skip(self, summary: DispatchSummary, label: str, reason: str, warn: bool = True) -> Outcome:
        if warn:
            logger.warning("%s: %s, skipping", label, reason)
        else:
            logger.debug("%s: %s, skipping", label, reason)
        return summary.record(label, Outcome.SKIPPED, reason)
