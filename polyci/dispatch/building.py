"""Build dispatcher: one build recipe per detected language.

`release` (default) or `debug` mode changes flags where the toolchain has
them. A Dockerfile at the root is always built, independent of detected
languages. Nothing to build is a warning, not a failure.
"""

import logging

from polyci.core.logging import log_success
from polyci.detector.scan import has_files
from polyci.detector.types import Language
from polyci.dispatch.base import Dispatcher
from polyci.dispatch.toolchains import (
    cpu_count,
    gradle_command,
    has_gradle_build,
    node_package_manager,
    package_json_declares,
)
from polyci.dispatch.types import DispatchSummary, Outcome

logger = logging.getLogger(__name__)

CMAKE_BUILD_DIR = "build"


class BuildDispatcher(Dispatcher):
    title = "build"
    unit = "Builds"
    passed_verb = "build succeeded"
    failed_verb = "build failed"

    HANDLERS = {
        Language.JAVASCRIPT: "build_node",
        Language.TYPESCRIPT: "build_node",
        Language.PYTHON: "build_python",
        Language.GO: "build_go",
        Language.RUST: "build_rust",
        Language.JAVA: "build_jvm",
        Language.KOTLIN: "build_jvm",
        Language.C_CPP: "build_cpp",
        Language.CSHARP: "build_dotnet",
    }

    @property
    def release(self) -> bool:
        return self.settings.is_release

    def run(self) -> DispatchSummary:
        logger.info("Build mode: %s", self.settings.build_mode)
        summary = super().run()
        if summary.run == 0:
            logger.warning("No build targets found")
        elif not summary.failed:
            log_success(logger, "Build complete! (%d target(s) built)", summary.run)
        return summary

    def finish(self, summary: DispatchSummary) -> None:
        if self.exists("Dockerfile"):
            self.build_docker(summary)

    # ------------------------------------------------------------------
    # Recipes
    # ------------------------------------------------------------------

    def build_node(self, summary: DispatchSummary) -> Outcome:
        label = "Node.js"
        if package_json_declares(self.root, "build"):
            argv = [node_package_manager(self.root), "run", "build"]
        elif self.exists("tsconfig.json"):
            argv = ["npx", "tsc"]
        else:
            return self.skip(summary, label, "no build configuration found for Node.js")
        return self.record(summary, label, self.step(label, argv))

    def build_python(self, summary: DispatchSummary) -> Outcome:
        label = "Python"
        if not self.exists("pyproject.toml", "setup.py"):
            return self.skip(summary, label, "no build configuration found for Python")

        env = self.python_env()
        python = self.python()
        result = self.step(label, [python, "-m", "build"], env=env)
        if not result.is_success:
            logger.info("Installing the build frontend and retrying")
            installed = self.step(label, [python, "-m", "pip", "install", "build"], env=env)
            if not installed.is_success:
                return self.record(summary, label, installed)
            result = self.step(label, [python, "-m", "build"], env=env)
        return self.record(summary, label, result)

    def build_go(self, summary: DispatchSummary) -> Outcome:
        label = "Go"
        if not self.exists("go.mod"):
            return self.skip(summary, label, "no Go module found")
        argv = ["go", "build"]
        if self.release:
            argv.append("-ldflags=-s -w")
        argv.append("./...")
        return self.record(summary, label, self.step(label, argv))

    def build_rust(self, summary: DispatchSummary) -> Outcome:
        label = "Rust"
        if not self.exists("Cargo.toml"):
            return self.skip(summary, label, "no Cargo.toml found")
        argv = ["cargo", "build"] + (["--release"] if self.release else [])
        return self.record(summary, label, self.step(label, argv))

    def build_jvm(self, summary: DispatchSummary) -> Outcome:
        if self.exists("pom.xml"):
            argv = ["mvn", "package", "-DskipTests", "-B"]
            return self.record(summary, "Maven", self.step("Maven", argv))
        if has_gradle_build(self.root):
            argv = [gradle_command(self.root), "build", "-x", "test"]
            return self.record(summary, "Gradle", self.step("Gradle", argv))
        return self.skip(summary, "JVM", "no Maven or Gradle build found")

    def build_cpp(self, summary: DispatchSummary) -> Outcome:
        label = "C/C++"
        jobs = f"-j{cpu_count()}"
        if self.exists("CMakeLists.txt"):
            build_dir = self.root / CMAKE_BUILD_DIR
            build_dir.mkdir(exist_ok=True)
            build_type = "Release" if self.release else "Debug"
            configured = self.step(
                label, ["cmake", "..", f"-DCMAKE_BUILD_TYPE={build_type}"], cwd=build_dir
            )
            if not configured.is_success:
                return self.record(summary, label, configured)
            return self.record(summary, label, self.step(label, ["make", jobs], cwd=build_dir))
        if self.exists("Makefile"):
            return self.record(summary, label, self.step(label, ["make", jobs]))
        return self.skip(summary, label, "no build system found for C/C++")

    def build_dotnet(self, summary: DispatchSummary) -> Outcome:
        label = ".NET"
        if not has_files(self.root, ("*.csproj", "*.sln"), max_depth=None):
            return self.skip(summary, label, "no .csproj or .sln found")
        config = "Release" if self.release else "Debug"
        return self.record(summary, label, self.step(label, ["dotnet", "build", "-c", config]))

    def build_docker(self, summary: DispatchSummary) -> Outcome:
        image = self.root.name.lower()
        argv = ["docker", "build", "-t", image, "."]
        return self.record(summary, "Docker image", self.step("Docker image", argv))
