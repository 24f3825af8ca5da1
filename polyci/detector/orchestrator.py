"""Detector orchestrator: runs every probe and assembles a Classification.

Detection flow:
1. Scan for languages (ordered; the first one found is the primary).
2. Check root lock/manifest files for package managers.
3. Look for test framework indicators.
4. Look for build system markers.

Each category is independent. Nothing here raises for a missing or
unrecognised layout; an empty directory yields an empty Classification.
"""

import logging
from pathlib import Path
from typing import Mapping, Optional

from polyci.detector.build_systems import detect_build_systems
from polyci.detector.languages import detect_languages
from polyci.detector.package_managers import detect_package_managers
from polyci.detector.test_frameworks import detect_test_frameworks
from polyci.detector.types import ENV_LANGUAGES, Classification

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Public entry points
# ---------------------------------------------------------------------------

def detect(project_root: Path) -> Classification:
    """Classify the project at project_root."""
    root = Path(project_root)
    if not root.is_dir():
        logger.warning("Project root %s is not a directory; nothing to detect", root)
        return Classification()

    logger.info("Detecting project configuration in %s", root)
    classification = Classification(
        languages=detect_languages(root),
        package_managers=detect_package_managers(root),
        test_frameworks=detect_test_frameworks(root),
        build_systems=detect_build_systems(root),
    )
    _log_result(classification)
    return classification


def resolve_classification(
    project_root: Path,
    env: Optional[Mapping[str, str]] = None,
) -> Classification:
    """Reuse an exported classification when present, otherwise detect.

    `env` holds the DETECTED_* variables left behind by an earlier
    ``polyci-detect --format env`` in the same shell.
    """
    if env and env.get(ENV_LANGUAGES, "").strip():
        classification = Classification.from_env(env)
        if classification.languages:
            logger.debug(
                "Using exported classification: %s", ",".join(classification.languages)
            )
            return classification
    return detect(project_root)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _log_result(classification: Classification) -> None:
    logger.info(
        "Detection complete: languages=%s primary=%s package_managers=%s "
        "test_frameworks=%s build_systems=%s",
        ",".join(classification.languages) or "none",
        classification.primary_language or "unknown",
        ",".join(classification.package_managers) or "none",
        ",".join(classification.test_frameworks) or "none",
        ",".join(classification.build_systems) or "none",
    )


def format_text(classification: Classification) -> str:
    """Human-readable summary, one category per line."""

    def joined(items) -> str:
        return ", ".join(items) if items else "none"

    rows = [
        ("Languages:", joined(classification.languages)),
        ("Primary:", classification.primary_language or "unknown"),
        ("Package managers:", joined(classification.package_managers)),
        ("Test frameworks:", joined(classification.test_frameworks)),
        ("Build systems:", joined(classification.build_systems)),
    ]
    return "\n".join(f"{label:<18}{value}" for label, value in rows)


def format_env(classification: Classification) -> str:
    """Shell ``export`` lines suitable for ``eval``."""
    return "\n".join(
        f"export {name}={value}" for name, value in classification.to_env().items()
    )
