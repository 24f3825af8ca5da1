"""Detector module: classifies a project root by marker files.

Public API:
    detect(project_root) -> Classification
"""

from polyci.detector.orchestrator import detect, resolve_classification
from polyci.detector.types import (
    BuildSystem,
    Classification,
    Language,
    PackageManager,
    TestFramework,
)

__all__ = [
    "detect",
    "resolve_classification",
    "BuildSystem",
    "Classification",
    "Language",
    "PackageManager",
    "TestFramework",
]
