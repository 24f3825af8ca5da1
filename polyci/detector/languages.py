"""Language detection rules.

A language is detected when any of its conditions holds:
  - one of its marker files exists at the project root, or
  - a root-level file matches one of its root globs, or
  - a file matching one of its patterns exists within the scan depth.

Rules are evaluated in Language declaration order, which is also the
primary-language priority.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Optional

from polyci.detector.scan import DEFAULT_MAX_DEPTH, has_root_glob, iter_files, matches
from polyci.detector.types import Language

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LanguageRule:
    language: Language
    root_files: tuple[str, ...] = ()
    root_globs: tuple[str, ...] = ()
    patterns: tuple[str, ...] = ()
    # Only evaluated when this language was already detected.
    requires: Optional[Language] = None

    def matches(self, root: Path, scanned: list[Path]) -> Optional[str]:
        """Return the marker that matched, or None."""
        for name in self.root_files:
            if (root / name).is_file():
                return name
        for pattern in self.root_globs:
            if has_root_glob(root, pattern):
                return pattern
        for path in scanned:
            if matches(path, self.patterns):
                return path.relative_to(root).as_posix()
        return None


LANGUAGE_RULES: tuple[LanguageRule, ...] = (
    LanguageRule(
        Language.JAVASCRIPT,
        root_files=("package.json",),
        patterns=("*.js", "*.ts", "*.tsx", "*.jsx"),
    ),
    LanguageRule(
        Language.TYPESCRIPT,
        patterns=("*.ts", "*.tsx"),
        requires=Language.JAVASCRIPT,
    ),
    LanguageRule(
        Language.PYTHON,
        root_files=("requirements.txt", "setup.py", "pyproject.toml", "Pipfile"),
        patterns=("*.py",),
    ),
    LanguageRule(
        Language.RUBY,
        root_files=("Gemfile",),
        root_globs=("*.gemspec",),
        patterns=("*.rb",),
    ),
    LanguageRule(Language.GO, root_files=("go.mod",), patterns=("*.go",)),
    LanguageRule(Language.RUST, root_files=("Cargo.toml",), patterns=("*.rs",)),
    LanguageRule(
        Language.JAVA,
        root_files=("pom.xml", "build.gradle", "build.gradle.kts"),
        patterns=("*.java",),
    ),
    LanguageRule(Language.KOTLIN, patterns=("*.kt",), requires=Language.JAVA),
    LanguageRule(
        Language.C_CPP,
        root_files=("CMakeLists.txt", "Makefile"),
        patterns=("*.c", "*.cpp", "*.h", "*.hpp"),
    ),
    LanguageRule(Language.CSHARP, patterns=("*.csproj", "*.sln")),
    LanguageRule(Language.PHP, root_files=("composer.json",), patterns=("*.php",)),
    LanguageRule(Language.SWIFT, root_files=("Package.swift",), patterns=("*.swift",)),
    LanguageRule(Language.SHELL, patterns=("*.sh", "*.bash")),
)


def detect_languages(
    root: Path,
    rules: Iterable[LanguageRule] = LANGUAGE_RULES,
    max_depth: int = DEFAULT_MAX_DEPTH,
) -> tuple[Language, ...]:
    """Return detected languages in declaration order (first = primary)."""
    root = Path(root)
    scanned = list(iter_files(root, max_depth=max_depth))

    detected: list[Language] = []
    for rule in rules:
        if rule.requires is not None and rule.requires not in detected:
            continue
        marker = rule.matches(root, scanned)
        if marker is not None:
            logger.debug("language %s detected (%s)", rule.language, marker)
            detected.append(rule.language)
    return tuple(detected)
