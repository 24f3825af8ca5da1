"""Test dispatcher: one test-runner recipe per detected language.

Exit code: 0 when at least one suite ran and none failed, 1 when any
suite failed, 2 when nothing ran at all.
"""

import logging

from polyci.detector.scan import has_files
from polyci.detector.types import Language
from polyci.dispatch.base import Dispatcher
from polyci.dispatch.toolchains import (
    VENV_DIRS,
    gradle_command,
    has_gradle_build,
    node_package_manager,
    package_json_declares,
)
from polyci.dispatch.types import DispatchSummary, Outcome

logger = logging.getLogger(__name__)

EXIT_NO_TESTS = 2

JEST_CONFIGS = ("jest.config.js", "jest.config.ts", "jest.config.json")
VITEST_CONFIGS = ("vitest.config.js", "vitest.config.ts")

# Runners found in node_modules/.bin, highest precedence first.
NODE_BIN_RUNNERS: list[tuple[str, list[str]]] = [
    ("ava", ["npx", "ava"]),
    ("vitest", ["npx", "vitest", "run"]),
    ("mocha", ["npx", "mocha"]),
    ("jest", ["npx", "jest"]),
]

PRUNED_DIRS = VENV_DIRS + ("node_modules", "vendor")


class TestDispatcher(Dispatcher):
    __test__ = False  # not a pytest test class

    title = "test"
    unit = "Suites"

    HANDLERS = {
        Language.JAVASCRIPT: "test_node",
        Language.TYPESCRIPT: "test_node",
        Language.PYTHON: "test_python",
        Language.RUBY: "test_ruby",
        Language.GO: "test_go",
        Language.RUST: "test_rust",
        Language.JAVA: "test_jvm",
        Language.KOTLIN: "test_jvm",
        Language.PHP: "test_php",
        Language.CSHARP: "test_dotnet",
        Language.SHELL: "test_shell",
    }

    def run(self) -> DispatchSummary:
        summary = super().run()
        if summary.run == 0:
            logger.warning("No tests were run")
        return summary

    @staticmethod
    def exit_code(summary: DispatchSummary) -> int:
        return summary.exit_code(nothing_ran=EXIT_NO_TESTS)

    # ------------------------------------------------------------------
    # Recipes
    # ------------------------------------------------------------------

    def test_node(self, summary: DispatchSummary) -> Outcome:
        label = "Node.js tests"
        argv = self._node_test_command()
        if argv is None:
            return self.skip(summary, label, "no Node.js test configuration found")

        if argv[:2] == ["npx", "jest"]:
            if self.settings.coverage:
                argv.append("--coverage")
            if self.settings.ci:
                argv.append("--ci")
        elif argv[:2] == ["npx", "vitest"] and self.settings.coverage:
            argv.append("--coverage")

        return self.record(summary, label, self.step(label, argv))

    def _node_test_command(self):
        if package_json_declares(self.root, "test"):
            return [node_package_manager(self.root), "test"]
        if self.exists(*JEST_CONFIGS):
            return ["npx", "jest"]
        if self.exists(*VITEST_CONFIGS):
            return ["npx", "vitest", "run"]
        bin_dir = self.root / "node_modules" / ".bin"
        for name, argv in NODE_BIN_RUNNERS:
            if (bin_dir / name).is_file():
                return list(argv)
        return None

    def test_python(self, summary: DispatchSummary) -> Outcome:
        label = "Python tests"
        env = self.python_env()

        if self.has_tool("pytest", env) or self.exists(".venv/bin/pytest"):
            argv = ["pytest"]
            if self.settings.verbose:
                argv.append("-v")
            if self.settings.coverage:
                argv += ["--cov=.", "--cov-report=xml"]
        elif self.exists("tox.ini") and self.has_tool("tox", env):
            argv = ["tox"]
        elif has_files(
            self.root, ("test_*.py", "*_test.py"), max_depth=None, skip_dirs=PRUNED_DIRS
        ):
            argv = [self.python(), "-m", "unittest", "discover"]
        else:
            return self.skip(summary, label, "no Python test configuration found")

        return self.record(summary, label, self.step(label, argv, env=env))

    def test_ruby(self, summary: DispatchSummary) -> Outcome:
        label = "Ruby tests"
        if (self.root / "spec").is_dir():
            argv = ["bundle", "exec", "rspec"]
        elif (self.root / "test").is_dir():
            argv = ["bundle", "exec", "rake", "test"]
        else:
            return self.skip(summary, label, "no Ruby test configuration found")
        return self.record(summary, label, self.step(label, argv))

    def test_go(self, summary: DispatchSummary) -> Outcome:
        label = "Go tests"
        if not has_files(self.root, ("*_test.go",), max_depth=None, skip_dirs=("vendor",)):
            return self.skip(summary, label, "no Go test files found")
        argv = ["go", "test", "./..."]
        if self.settings.verbose:
            argv.append("-v")
        if self.settings.coverage:
            argv.append("-coverprofile=coverage.out")
        return self.record(summary, label, self.step(label, argv))

    def test_rust(self, summary: DispatchSummary) -> Outcome:
        label = "Rust tests"
        if not self.exists("Cargo.toml"):
            return self.skip(summary, label, "no Cargo.toml found")
        argv = ["cargo", "test"]
        if self.settings.verbose:
            argv += ["--", "--nocapture"]
        return self.record(summary, label, self.step(label, argv))

    def test_jvm(self, summary: DispatchSummary) -> Outcome:
        if self.exists("pom.xml"):
            return self.record(summary, "Maven tests", self.step("Maven tests", ["mvn", "test", "-B"]))
        if has_gradle_build(self.root):
            argv = [gradle_command(self.root), "test"]
            return self.record(summary, "Gradle tests", self.step("Gradle tests", argv))
        return self.skip(summary, "JVM tests", "no Maven or Gradle build found")

    def test_php(self, summary: DispatchSummary) -> Outcome:
        label = "PHP tests"
        if not self.exists("phpunit.xml", "phpunit.xml.dist"):
            return self.skip(summary, label, "no PHPUnit configuration found")
        argv = ["./vendor/bin/phpunit"]
        if self.settings.coverage:
            argv.append("--coverage-text")
        return self.record(summary, label, self.step(label, argv))

    def test_dotnet(self, summary: DispatchSummary) -> Outcome:
        label = ".NET tests"
        if not has_files(self.root, ("*.csproj",), max_depth=None):
            return self.skip(summary, label, "no .csproj found")
        argv = ["dotnet", "test"]
        if self.settings.coverage:
            argv += ["--collect", "XPlat Code Coverage"]
        return self.record(summary, label, self.step(label, argv))

    def test_shell(self, summary: DispatchSummary) -> Outcome:
        label = "Shell tests"
        test_dir = self.root / "test"
        bats_files = sorted(test_dir.glob("*.bats")) if test_dir.is_dir() else []
        if not bats_files:
            return self.skip(summary, label, "no BATS tests found", warn=False)
        if not self.has_tool("bats"):
            return self.skip(summary, label, "BATS not installed")
        argv = ["bats"] + [path.relative_to(self.root).as_posix() for path in bats_files]
        return self.record(summary, label, self.step(label, argv))
