"""polyci: ecosystem detection, tool dispatch and git mirroring for CI.

Public API:
    detect(project_root) -> Classification
"""

from polyci.detector import Classification, detect

__version__ = "0.1.0"

__all__ = ["Classification", "detect", "__version__"]
