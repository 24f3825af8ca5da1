"""Shared types for the detector module.

Every identifier comes from a closed StrEnum. Declaration order matters:
languages are reported, dispatched and tie-broken (primary language) in
the order they are declared here.
"""

import json
from dataclasses import dataclass
from enum import StrEnum
from typing import Iterable, Mapping, Optional, TypeVar


class Language(StrEnum):
    JAVASCRIPT = "javascript"
    TYPESCRIPT = "typescript"
    PYTHON = "python"
    RUBY = "ruby"
    GO = "go"
    RUST = "rust"
    JAVA = "java"
    KOTLIN = "kotlin"
    C_CPP = "c-cpp"
    CSHARP = "csharp"
    PHP = "php"
    SWIFT = "swift"
    SHELL = "shell"


class PackageManager(StrEnum):
    NPM = "npm"
    YARN = "yarn"
    PNPM = "pnpm"
    BUN = "bun"
    PIP = "pip"
    PIPENV = "pipenv"
    POETRY = "poetry"
    BUNDLER = "bundler"
    GO_MODULES = "go-modules"
    CARGO = "cargo"
    MAVEN = "maven"
    GRADLE = "gradle"
    COMPOSER = "composer"
    DOTNET = "dotnet"


class TestFramework(StrEnum):
    __test__ = False  # not a pytest test class

    JEST = "jest"
    MOCHA = "mocha"
    VITEST = "vitest"
    AVA = "ava"
    TAP = "tap"
    TESTING_LIBRARY = "testing-library"
    CYPRESS = "cypress"
    PLAYWRIGHT = "playwright"
    PYTEST = "pytest"
    TOX = "tox"
    UNITTEST = "unittest"
    RSPEC = "rspec"
    MINITEST = "minitest"
    GO_TEST = "go-test"
    CARGO_TEST = "cargo-test"
    JUNIT = "junit"


class BuildSystem(StrEnum):
    MAKE = "make"
    CMAKE = "cmake"
    NPM_SCRIPTS = "npm-scripts"
    WEBPACK = "webpack"
    VITE = "vite"
    ROLLUP = "rollup"
    ESBUILD = "esbuild"
    TSC = "tsc"
    DOCKER = "docker"
    DOCKER_COMPOSE = "docker-compose"


E = TypeVar("E", bound=StrEnum)

# Environment variable names used to hand a classification to a later
# dispatcher invocation in the same shell.
ENV_LANGUAGES = "DETECTED_LANGUAGES"
ENV_PRIMARY_LANGUAGE = "PRIMARY_LANGUAGE"
ENV_PACKAGE_MANAGERS = "DETECTED_PACKAGE_MANAGERS"
ENV_TEST_FRAMEWORKS = "DETECTED_TEST_FRAMEWORKS"
ENV_BUILD_SYSTEMS = "DETECTED_BUILD_SYSTEMS"


def ordered(members: Iterable[E], enum_cls: type[E]) -> tuple[E, ...]:
    """Deduplicate members and sort them by enum declaration order."""
    present = set(members)
    return tuple(member for member in enum_cls if member in present)


def parse_identifiers(raw: str, enum_cls: type[E]) -> tuple[E, ...]:
    """Parse a comma-joined identifier list, dropping unknown values."""
    values = {item.strip() for item in raw.split(",") if item.strip()}
    return tuple(member for member in enum_cls if member.value in values)


@dataclass(frozen=True)
class Classification:
    """Complete detection output for a project root.

    `languages` is ordered: its first entry is the primary language and
    dispatchers iterate it front to back. The other categories are
    membership sets, stored as tuples in enum order so output is stable.
    """

    languages: tuple[Language, ...] = ()
    package_managers: tuple[PackageManager, ...] = ()
    test_frameworks: tuple[TestFramework, ...] = ()
    build_systems: tuple[BuildSystem, ...] = ()

    @property
    def primary_language(self) -> Optional[Language]:
        return self.languages[0] if self.languages else None

    @property
    def is_empty(self) -> bool:
        return not (
            self.languages or self.package_managers or self.test_frameworks or self.build_systems
        )

    def has_language(self, language: Language) -> bool:
        return language in self.languages

    def to_dict(self) -> dict:
        return {
            "languages": [str(lang) for lang in self.languages],
            "primary_language": str(self.primary_language) if self.primary_language else "",
            "package_managers": [str(pm) for pm in self.package_managers],
            "test_frameworks": [str(fw) for fw in self.test_frameworks],
            "build_systems": [str(bs) for bs in self.build_systems],
        }

    def to_json(self) -> str:
        """Valid JSON with real arrays."""
        return json.dumps(self.to_dict(), indent=2)

    def to_legacy_json(self) -> str:
        """The historical detector output: quoted, comma-joined strings.

        `["a", "b"]` renders as `"a", "b"` without brackets, which is not
        valid JSON when a category holds more than one entry. Kept
        byte-compatible for consumers that grep the old output.
        """

        def joined(items: Iterable[StrEnum]) -> str:
            return '", "'.join(str(item) for item in items)

        primary = str(self.primary_language) if self.primary_language else ""
        return (
            "{\n"
            f'  "languages": "{joined(self.languages)}",\n'
            f'  "primary_language": "{primary}",\n'
            f'  "package_managers": "{joined(self.package_managers)}",\n'
            f'  "test_frameworks": "{joined(self.test_frameworks)}",\n'
            f'  "build_systems": "{joined(self.build_systems)}"\n'
            "}"
        )

    def to_env(self) -> dict[str, str]:
        return {
            ENV_LANGUAGES: ",".join(self.languages),
            ENV_PRIMARY_LANGUAGE: str(self.primary_language or ""),
            ENV_PACKAGE_MANAGERS: ",".join(self.package_managers),
            ENV_TEST_FRAMEWORKS: ",".join(self.test_frameworks),
            ENV_BUILD_SYSTEMS: ",".join(self.build_systems),
        }

    @classmethod
    def from_env(cls, env: Mapping[str, str]) -> "Classification":
        """Rebuild a classification from exported variables.

        Language order is taken from the variable as written, since it
        encodes the primary-language choice.
        """
        raw_languages = [item.strip() for item in env.get(ENV_LANGUAGES, "").split(",")]
        known = {lang.value: lang for lang in Language}
        languages: list[Language] = []
        for item in raw_languages:
            lang = known.get(item)
            if lang is not None and lang not in languages:
                languages.append(lang)
        return cls(
            languages=tuple(languages),
            package_managers=parse_identifiers(env.get(ENV_PACKAGE_MANAGERS, ""), PackageManager),
            test_frameworks=parse_identifiers(env.get(ENV_TEST_FRAMEWORKS, ""), TestFramework),
            build_systems=parse_identifiers(env.get(ENV_BUILD_SYSTEMS, ""), BuildSystem),
        )

