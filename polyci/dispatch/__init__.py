"""Dispatchers: map a Classification onto vendor tool invocations.

Public API:
    SetupDispatcher, TestDispatcher, LintDispatcher, BuildDispatcher
    run_step(name, argv, cwd, env) -> StepResult
"""

from polyci.dispatch.base import Dispatcher, load_classification
from polyci.dispatch.building import BuildDispatcher
from polyci.dispatch.executor import run_step
from polyci.dispatch.installer import SetupDispatcher
from polyci.dispatch.linting import LintDispatcher
from polyci.dispatch.testing import TestDispatcher
from polyci.dispatch.types import DispatchSummary, Outcome, StepResult

__all__ = [
    "BuildDispatcher",
    "Dispatcher",
    "DispatchSummary",
    "LintDispatcher",
    "Outcome",
    "SetupDispatcher",
    "StepResult",
    "TestDispatcher",
    "load_classification",
    "run_step",
]
