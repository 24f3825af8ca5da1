"""Package manager detection.

Every check is independent and looks only at the project root: a repo
with both yarn.lock and package-lock.json reports both managers. Picking
one of several is the installer's job.
"""

import logging
from pathlib import Path

from polyci.detector.scan import has_root_glob
from polyci.detector.types import PackageManager, ordered

logger = logging.getLogger(__name__)

# Root marker files; any one present reports the manager.
MARKER_FILES: list[tuple[PackageManager, tuple[str, ...]]] = [
    (PackageManager.NPM, ("package-lock.json",)),
    (PackageManager.YARN, ("yarn.lock",)),
    (PackageManager.PNPM, ("pnpm-lock.yaml",)),
    (PackageManager.BUN, ("bun.lockb",)),
    (PackageManager.PIP, ("requirements.txt", "pyproject.toml")),
    (PackageManager.PIPENV, ("Pipfile",)),
    (PackageManager.POETRY, ("poetry.lock",)),
    (PackageManager.BUNDLER, ("Gemfile",)),
    (PackageManager.GO_MODULES, ("go.mod",)),
    (PackageManager.CARGO, ("Cargo.toml",)),
    (PackageManager.MAVEN, ("pom.xml",)),
    (PackageManager.GRADLE, ("build.gradle", "build.gradle.kts")),
    (PackageManager.COMPOSER, ("composer.json",)),
]

# Root globs; solution and project files have arbitrary names.
MARKER_GLOBS: list[tuple[PackageManager, tuple[str, ...]]] = [
    (PackageManager.DOTNET, ("*.csproj", "*.sln")),
]


def detect_package_managers(root: Path) -> tuple[PackageManager, ...]:
    """Return every package manager with a marker at the project root."""
    root = Path(root)
    found: list[PackageManager] = []

    for manager, names in MARKER_FILES:
        hit = next((name for name in names if (root / name).is_file()), None)
        if hit:
            logger.debug("package manager %s detected (%s)", manager, hit)
            found.append(manager)

    for manager, patterns in MARKER_GLOBS:
        hit = next((pattern for pattern in patterns if has_root_glob(root, pattern)), None)
        if hit:
            logger.debug("package manager %s detected (%s)", manager, hit)
            found.append(manager)

    return ordered(found, PackageManager)
