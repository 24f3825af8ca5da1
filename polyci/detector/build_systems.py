"""Build system detection: root marker files only."""

import logging
from pathlib import Path

from polyci.detector.types import BuildSystem, ordered

logger = logging.getLogger(__name__)

BUILD_MARKERS: list[tuple[BuildSystem, tuple[str, ...]]] = [
    (BuildSystem.MAKE, ("Makefile",)),
    (BuildSystem.CMAKE, ("CMakeLists.txt",)),
    (BuildSystem.NPM_SCRIPTS, ("package.json",)),
    (BuildSystem.WEBPACK, ("webpack.config.js", "webpack.config.ts")),
    (BuildSystem.VITE, ("vite.config.js", "vite.config.ts")),
    (BuildSystem.ROLLUP, ("rollup.config.js",)),
    (BuildSystem.ESBUILD, ("esbuild.config.js",)),
    (BuildSystem.TSC, ("tsconfig.json",)),
    (BuildSystem.DOCKER, ("Dockerfile",)),
    (BuildSystem.DOCKER_COMPOSE, ("docker-compose.yml", "docker-compose.yaml")),
]


def detect_build_systems(root: Path) -> tuple[BuildSystem, ...]:
    root = Path(root)
    found = [
        system
        for system, names in BUILD_MARKERS
        if any((root / name).is_file() for name in names)
    ]
    return ordered(found, BuildSystem)
