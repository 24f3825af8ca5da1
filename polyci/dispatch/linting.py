"""Lint dispatcher: every applicable linter per detected language.

Linters are independent: one failing does not stop the next. A linter
whose executable or config file is missing is recorded as skipped.
shellcheck runs once per invocation whether or not shell was detected.
With `fix` enabled, tools that support it rewrite files instead of
reporting.
"""

import logging
from typing import Optional

from polyci.detector.scan import file_contains, find_files
from polyci.detector.types import Language
from polyci.dispatch.base import Dispatcher
from polyci.dispatch.toolchains import VENV_DIRS
from polyci.dispatch.types import DispatchSummary, Outcome

logger = logging.getLogger(__name__)

ESLINT_CONFIGS = (
    ".eslintrc",
    ".eslintrc.js",
    ".eslintrc.json",
    ".eslintrc.yml",
    ".eslintrc.yaml",
    "eslint.config.js",
    "eslint.config.mjs",
)
PRETTIER_CONFIGS = (
    ".prettierrc",
    ".prettierrc.js",
    ".prettierrc.json",
    ".prettierrc.yml",
    "prettier.config.js",
)

SHELL_PATTERNS = ("*.sh", "*.bash")
SHELL_SKIP_DIRS = ("node_modules", "vendor")


class LintDispatcher(Dispatcher):
    title = "lint"
    unit = "Linters"

    HANDLERS = {
        Language.JAVASCRIPT: "lint_node",
        Language.TYPESCRIPT: "lint_node",
        Language.PYTHON: "lint_python",
        Language.RUBY: "lint_ruby",
        Language.GO: "lint_go",
        Language.RUST: "lint_rust",
        Language.PHP: "lint_php",
    }

    @property
    def fix(self) -> bool:
        return self.settings.fix

    def run(self) -> DispatchSummary:
        summary = super().run()
        if summary.run == 0:
            logger.warning("No linters were run")
        return summary

    def finish(self, summary: DispatchSummary) -> None:
        self.lint_shell(summary)

    # ------------------------------------------------------------------
    # Node
    # ------------------------------------------------------------------

    def _node_tool(self, name: str) -> Optional[list[str]]:
        if (self.root / "node_modules" / ".bin" / name).is_file():
            return ["npx", name]
        if self.has_tool(name):
            return [name]
        return None

    def lint_node(self, summary: DispatchSummary) -> None:
        eslint = self._node_tool("eslint")
        if eslint is None:
            self.skip(summary, "ESLint", "eslint not installed", warn=False)
        elif not self.exists(*ESLINT_CONFIGS):
            self.skip(summary, "ESLint", "no ESLint config found")
        else:
            argv = eslint + ["."] + (["--fix"] if self.fix else [])
            self.record(summary, "ESLint", self.step("ESLint", argv))

        prettier = self._node_tool("prettier")
        if prettier is None:
            self.skip(summary, "Prettier", "prettier not installed", warn=False)
        elif not self.exists(*PRETTIER_CONFIGS):
            self.skip(summary, "Prettier", "no Prettier config found")
        else:
            argv = prettier + (["--write", "."] if self.fix else ["--check", "."])
            self.record(summary, "Prettier", self.step("Prettier", argv))

        if self.classification.has_language(Language.TYPESCRIPT) and self.exists("tsconfig.json"):
            argv = ["npx", "tsc", "--noEmit"]
            self.record(summary, "TypeScript type check", self.step("tsc", argv))

    # ------------------------------------------------------------------
    # Python
    # ------------------------------------------------------------------

    def lint_python(self, summary: DispatchSummary) -> None:
        env = self.python_env()

        if self.has_tool("ruff", env):
            argv = ["ruff", "check", "--fix", "."] if self.fix else ["ruff", "check", "."]
            self.record(summary, "Ruff", self.step("Ruff", argv, env=env))
        elif self.has_tool("flake8", env):
            self.record(summary, "Flake8", self.step("Flake8", ["flake8", "."], env=env))
        elif self.has_tool("pylint", env):
            files = [
                path.relative_to(self.root).as_posix()
                for path in find_files(self.root, ("*.py",), skip_dirs=VENV_DIRS)
            ]
            if files:
                argv = ["pylint", "--exit-zero"] + files
                self.record(summary, "Pylint", self.step("Pylint", argv, env=env))
            else:
                self.skip(summary, "Pylint", "no Python files", warn=False)

        if self.has_tool("black", env):
            argv = ["black", "."] if self.fix else ["black", "--check", "."]
            self.record(summary, "Black", self.step("Black", argv, env=env))

        if self.has_tool("mypy", env) and self.exists("mypy.ini", "pyproject.toml"):
            self.record(summary, "mypy", self.step("mypy", ["mypy", "."], env=env))

    # ------------------------------------------------------------------
    # Ruby / Go / Rust / PHP
    # ------------------------------------------------------------------

    def lint_ruby(self, summary: DispatchSummary) -> None:
        if not file_contains(self.root / "Gemfile", "rubocop"):
            self.skip(summary, "RuboCop", "rubocop not in Gemfile", warn=False)
            return
        argv = ["bundle", "exec", "rubocop"] + (["-a"] if self.fix else [])
        self.record(summary, "RuboCop", self.step("RuboCop", argv))

    def lint_go(self, summary: DispatchSummary) -> None:
        if self.has_tool("golangci-lint"):
            argv = ["golangci-lint", "run"] + (["--fix"] if self.fix else [])
            self.record(summary, "golangci-lint", self.step("golangci-lint", argv))
        elif self.has_tool("go"):
            self.record(summary, "go vet", self.step("go vet", ["go", "vet", "./..."]))

        if self.has_tool("gofmt"):
            self._gofmt(summary)

    def _gofmt(self, summary: DispatchSummary) -> Outcome:
        listing = self.step("gofmt", ["gofmt", "-l", "."], capture=True)
        unformatted = [
            line.strip()
            for line in listing.stdout.splitlines()
            if line.strip() and "vendor" not in line
        ]
        if not unformatted:
            return summary.record("gofmt", Outcome.PASSED, listing.command_line)

        if self.fix:
            return self.record(summary, "gofmt", self.step("gofmt", ["gofmt", "-w", "."]))

        logger.error("gofmt found unformatted files:\n%s", "\n".join(unformatted))
        return summary.record("gofmt", Outcome.FAILED, ", ".join(unformatted))

    def lint_rust(self, summary: DispatchSummary) -> None:
        if not self.exists("Cargo.toml"):
            self.skip(summary, "cargo fmt", "no Cargo.toml found")
            return
        argv = ["cargo", "fmt"] if self.fix else ["cargo", "fmt", "--check"]
        self.record(summary, "cargo fmt", self.step("cargo fmt", argv))

        argv = ["cargo", "clippy", "--", "-D", "warnings"]
        self.record(summary, "cargo clippy", self.step("cargo clippy", argv))

    def lint_php(self, summary: DispatchSummary) -> None:
        if self.exists("vendor/bin/php-cs-fixer"):
            argv = ["./vendor/bin/php-cs-fixer", "fix"]
            if not self.fix:
                argv += ["--dry-run", "--diff"]
            self.record(summary, "PHP-CS-Fixer", self.step("PHP-CS-Fixer", argv))
        elif self.exists("vendor/bin/phpstan"):
            argv = ["./vendor/bin/phpstan", "analyse"]
            self.record(summary, "PHPStan", self.step("PHPStan", argv))

    # ------------------------------------------------------------------
    # Shell (always)
    # ------------------------------------------------------------------

    def lint_shell(self, summary: DispatchSummary) -> None:
        if not self.has_tool("shellcheck"):
            logger.debug("shellcheck not installed, skipping shell lint")
            return
        scripts = find_files(self.root, SHELL_PATTERNS, skip_dirs=SHELL_SKIP_DIRS)
        if not scripts:
            return
        argv = ["shellcheck"] + [path.relative_to(self.root).as_posix() for path in scripts]
        self.record(summary, "shellcheck", self.step("shellcheck", argv))
