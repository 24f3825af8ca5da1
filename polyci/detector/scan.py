"""Depth-bounded filesystem probes.

Marker scans stop at a small fixed depth instead of walking the whole tree:
a project with Python files only deep inside a vendored directory is not
considered a Python project. Depth counts like ``find -maxdepth``: files
directly under the root are depth 1.
"""

import os
from fnmatch import fnmatchcase
from pathlib import Path
from typing import Iterable, Iterator, Optional

DEFAULT_MAX_DEPTH = 3

# Never descended into, at any depth.
VCS_DIRS = frozenset({".git", ".hg", ".svn"})


def iter_files(
    root: Path,
    max_depth: Optional[int] = DEFAULT_MAX_DEPTH,
    skip_dirs: Iterable[str] = (),
) -> Iterator[Path]:
    """Yield files under root, at most max_depth levels deep.

    `max_depth=None` walks the whole tree. Directories named in
    `skip_dirs` (and VCS metadata directories) are pruned.
    """
    root = Path(root)
    if not root.is_dir():
        return

    pruned = VCS_DIRS | frozenset(skip_dirs)
    for dirpath, dirnames, filenames in os.walk(root):
        current = Path(dirpath)
        depth = len(current.relative_to(root).parts)

        dirnames[:] = sorted(name for name in dirnames if name not in pruned)
        if max_depth is not None and depth + 2 > max_depth:
            # Files in child directories would exceed the limit.
            dirnames[:] = []

        for filename in sorted(filenames):
            yield current / filename


def matches(path: Path, patterns: Iterable[str]) -> bool:
    return any(fnmatchcase(path.name, pattern) for pattern in patterns)


def has_files(
    root: Path,
    patterns: Iterable[str],
    max_depth: Optional[int] = DEFAULT_MAX_DEPTH,
    skip_dirs: Iterable[str] = (),
) -> bool:
    """Return True if any file name under root matches one of the patterns."""
    patterns = tuple(patterns)
    return any(matches(path, patterns) for path in iter_files(root, max_depth, skip_dirs))


def find_files(
    root: Path,
    patterns: Iterable[str],
    max_depth: Optional[int] = None,
    skip_dirs: Iterable[str] = (),
) -> list[Path]:
    """Return every file under root whose name matches one of the patterns."""
    patterns = tuple(patterns)
    return [path for path in iter_files(root, max_depth, skip_dirs) if matches(path, patterns)]


def has_root_glob(root: Path, pattern: str) -> bool:
    """Return True if a file directly under root matches the glob."""
    return any(path.is_file() for path in Path(root).glob(pattern))


def file_contains(path: Path, needle: str) -> bool:
    """Plain substring search in a text file. Unreadable files never match."""
    try:
        return needle in path.read_text(encoding="utf-8", errors="replace")
    except OSError:
        return False
