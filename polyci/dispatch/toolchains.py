"""Toolchain lookups shared by the dispatchers.

Small, file-based decisions: which node package manager owns the repo,
where the virtualenv lives, whether the Gradle wrapper is checked in.
"""

import os
from pathlib import Path
from typing import Mapping, Optional

from polyci.detector.scan import file_contains

# (lock file, package manager). First match wins.
NODE_LOCKFILES: list[tuple[str, str]] = [
    ("pnpm-lock.yaml", "pnpm"),
    ("yarn.lock", "yarn"),
    ("bun.lockb", "bun"),
    ("package-lock.json", "npm"),
]

VENV_DIRS = (".venv", "venv")


def node_package_manager(root: Path) -> str:
    """Return the node package manager whose lock file is present (default npm)."""
    for lockfile, manager in NODE_LOCKFILES:
        if (root / lockfile).is_file():
            return manager
    return "npm"


def package_json_declares(root: Path, key: str) -> bool:
    """True when package.json contains the quoted key, e.g. "test"."""
    return file_contains(root / "package.json", f'"{key}"')


def find_venv(root: Path) -> Optional[Path]:
    for name in VENV_DIRS:
        candidate = root / name
        if candidate.is_dir():
            return candidate
    return None


def venv_env(venv: Path, base_env: Optional[Mapping[str, str]] = None) -> dict:
    """Environment with the virtualenv activated.

    Mirrors what `source bin/activate` does for child processes: sets
    VIRTUAL_ENV, puts its bin directory first on PATH, drops PYTHONHOME.
    """
    env = dict(os.environ if base_env is None else base_env)
    bin_dir = venv / ("Scripts" if os.name == "nt" else "bin")
    env["VIRTUAL_ENV"] = str(venv)
    env["PATH"] = os.pathsep.join(filter(None, [str(bin_dir), env.get("PATH", "")]))
    env.pop("PYTHONHOME", None)
    return env


def gradle_command(root: Path) -> str:
    """Prefer the checked-in Gradle wrapper."""
    return "./gradlew" if (root / "gradlew").is_file() else "gradle"


def has_gradle_build(root: Path) -> bool:
    return (root / "build.gradle").is_file() or (root / "build.gradle.kts").is_file()


def cpu_count() -> int:
    return os.cpu_count() or 1
