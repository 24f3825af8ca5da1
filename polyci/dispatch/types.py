"""Types shared by the dispatchers.

StepResult captures one external tool invocation. Outcome and
DispatchSummary aggregate handler results into the counters and exit code
a dispatcher command reports.
"""

import shlex
from dataclasses import dataclass, field
from enum import StrEnum


@dataclass
class StepResult:
    """Result of a single tool invocation (npm ci, pytest, cargo build...).

    A step is successful if exit_code == 0. Exit code 127 means the
    executable was not found; -1 a timeout; -2 any other launch error.
    """

    name: str
    command: list[str]
    exit_code: int
    duration_seconds: float
    stdout: str = ""
    stderr: str = ""

    @property
    def is_success(self) -> bool:
        return self.exit_code == 0

    @property
    def command_line(self) -> str:
        return shlex.join(self.command)


class Outcome(StrEnum):
    PASSED = "passed"
    FAILED = "failed"
    SKIPPED = "skipped"

    @classmethod
    def of(cls, step: StepResult) -> "Outcome":
        return cls.PASSED if step.is_success else cls.FAILED


@dataclass
class OutcomeRecord:
    name: str
    outcome: Outcome
    detail: str = ""


@dataclass
class DispatchSummary:
    """Counters for one dispatcher invocation.

    `run` counts units that actually executed (passed + failed); skipped
    units are tracked separately and never affect the exit code.
    """

    title: str
    records: list[OutcomeRecord] = field(default_factory=list)

    def record(self, name: str, outcome: Outcome, detail: str = "") -> Outcome:
        self.records.append(OutcomeRecord(name=name, outcome=outcome, detail=detail))
        return outcome

    def _count(self, outcome: Outcome) -> int:
        return sum(1 for rec in self.records if rec.outcome is outcome)

    @property
    def passed(self) -> int:
        return self._count(Outcome.PASSED)

    @property
    def failed(self) -> int:
        return self._count(Outcome.FAILED)

    @property
    def skipped(self) -> int:
        return self._count(Outcome.SKIPPED)

    @property
    def run(self) -> int:
        return self.passed + self.failed

    def exit_code(self, nothing_ran: int = 0) -> int:
        """1 if anything failed, `nothing_ran` if nothing executed, else 0."""
        if self.failed:
            return 1
        if self.run == 0:
            return nothing_ran
        return 0

    def render(self, unit: str) -> str:
        """Plain-text summary table, e.g. unit="Suites" or "Linters"."""
        bar = "=" * 40
        lines = [
            bar,
            f"{self.title.upper():^40}".rstrip(),
            bar,
            f"{unit + ' run:':<16}{self.run}",
            f"{unit + ' passed:':<16}{self.passed}",
            f"{unit + ' failed:':<16}{self.failed}",
        ]
        if self.skipped:
            lines.append(f"{unit + ' skipped:':<16}{self.skipped}")
        lines.append(bar)
        return "\n".join(lines)
