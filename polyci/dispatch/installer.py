"""Setup dispatcher: installs dependencies once per ecosystem family.

Families are visited in package-manager declaration order. Inside the
node and python families the first matching lock/manifest file decides
the installer. A failing family is recorded and the remaining families
still run.
"""

import logging
import sys

from polyci.core.logging import log_success
from polyci.detector.types import PackageManager, ordered
from polyci.dispatch.base import Dispatcher
from polyci.dispatch.toolchains import find_venv, gradle_command, venv_env
from polyci.dispatch.types import DispatchSummary, Outcome

logger = logging.getLogger(__name__)

# (lock file, frozen install, plain install fallback)
NODE_INSTALL_RECIPES: list[tuple[str, list[str], list[str]]] = [
    ("pnpm-lock.yaml", ["pnpm", "install", "--frozen-lockfile"], ["pnpm", "install"]),
    ("yarn.lock", ["yarn", "install", "--frozen-lockfile"], ["yarn", "install"]),
    ("bun.lockb", ["bun", "install", "--frozen-lockfile"], ["bun", "install"]),
    ("package-lock.json", ["npm", "ci"], ["npm", "install"]),
]


class SetupDispatcher(Dispatcher):
    title = "setup"
    unit = "Ecosystems"
    passed_verb = "dependencies installed"
    failed_verb = "dependency installation failed"

    HANDLERS = {
        PackageManager.NPM: "setup_node",
        PackageManager.YARN: "setup_node",
        PackageManager.PNPM: "setup_node",
        PackageManager.BUN: "setup_node",
        PackageManager.PIP: "setup_python",
        PackageManager.PIPENV: "setup_python",
        PackageManager.POETRY: "setup_python",
        PackageManager.BUNDLER: "setup_ruby",
        PackageManager.GO_MODULES: "setup_go",
        PackageManager.CARGO: "setup_rust",
        PackageManager.MAVEN: "setup_maven",
        PackageManager.GRADLE: "setup_gradle",
        PackageManager.COMPOSER: "setup_php",
        PackageManager.DOTNET: "setup_dotnet",
    }

    def keys(self):
        return ordered(self.classification.package_managers, PackageManager)

    def run(self) -> DispatchSummary:
        summary = super().run()
        if summary.run == 0:
            logger.warning("No recognized package managers found. Skipping dependency installation.")
        else:
            log_success(logger, "Setup complete! (%d package manager(s) configured)", summary.run)
        return summary

    # ------------------------------------------------------------------
    # Families
    # ------------------------------------------------------------------

    def setup_node(self, summary: DispatchSummary) -> Outcome:
        label = "Node.js"
        for lockfile, frozen, plain in NODE_INSTALL_RECIPES:
            if not self.exists(lockfile):
                continue
            result = self.step(label, frozen)
            if not result.is_success:
                logger.warning("%s failed, retrying with %s", " ".join(frozen), " ".join(plain))
                result = self.step(label, plain)
            return self.record(summary, label, result)

        if self.exists("package.json"):
            return self.record(summary, label, self.step(label, ["npm", "install"]))
        return self.skip(summary, label, "no package.json")

    def setup_python(self, summary: DispatchSummary) -> Outcome:
        label = "Python"
        venv = find_venv(self.root)
        if venv is None:
            logger.info("Creating virtual environment...")
            created = self.step(label, [sys.executable, "-m", "venv", ".venv"])
            if not created.is_success:
                return self.record(summary, label, created)
            venv = self.root / ".venv"
        env = venv_env(venv, self.base_env)

        if self.exists("poetry.lock"):
            logger.info("Using poetry...")
            return self.run_sequence(summary, label, [["poetry", "install", "--no-interaction"]], env)
        if self.exists("Pipfile"):
            logger.info("Using pipenv...")
            return self.run_sequence(summary, label, [["pipenv", "install", "--dev"]], env)
        if self.exists("pyproject.toml"):
            logger.info("Installing from pyproject.toml...")
            result = self.step(label, ["pip", "install", "-e", ".[dev]"], env=env)
            if not result.is_success:
                logger.info("No [dev] extra installable, falling back to plain editable install")
                result = self.step(label, ["pip", "install", "-e", "."], env=env)
            return self.record(summary, label, result)
        if self.exists("requirements.txt"):
            logger.info("Using pip...")
            commands = [["pip", "install", "-r", "requirements.txt"]]
            if self.exists("requirements-dev.txt"):
                commands.append(["pip", "install", "-r", "requirements-dev.txt"])
            return self.run_sequence(summary, label, commands, env)
        return self.skip(summary, label, "no Python dependency manifest")

    def setup_ruby(self, summary: DispatchSummary) -> Outcome:
        return self.run_sequence(summary, "Ruby", [["bundle", "install"]])

    def setup_go(self, summary: DispatchSummary) -> Outcome:
        return self.run_sequence(
            summary, "Go", [["go", "mod", "download"], ["go", "mod", "verify"]]
        )

    def setup_rust(self, summary: DispatchSummary) -> Outcome:
        return self.run_sequence(summary, "Rust", [["cargo", "fetch"]])

    def setup_maven(self, summary: DispatchSummary) -> Outcome:
        return self.run_sequence(summary, "Maven", [["mvn", "dependency:resolve", "-q"]])

    def setup_gradle(self, summary: DispatchSummary) -> Outcome:
        gradle = gradle_command(self.root)
        return self.run_sequence(summary, "Gradle", [[gradle, "dependencies", "--quiet"]])

    def setup_php(self, summary: DispatchSummary) -> Outcome:
        return self.run_sequence(summary, "PHP", [["composer", "install", "--no-interaction"]])

    def setup_dotnet(self, summary: DispatchSummary) -> Outcome:
        return self.run_sequence(summary, ".NET", [["dotnet", "restore"]])
