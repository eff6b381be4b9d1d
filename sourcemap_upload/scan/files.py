"""List candidate files under the input roots."""

import logging
import os
import re
from pathlib import Path
from typing import List, Sequence

from wcmatch import glob

log = logging.getLogger(__name__)

# Characters that make a pattern a glob rather than a literal suffix.
_GLOB_MAGIC_RE = re.compile(r"[*?\[\]{}]|[!+@]\(")

IGNORE_FLAGS = glob.GLOBSTAR | glob.BRACE | glob.EXTGLOB


def has_glob_magic(pattern: str) -> bool:
    """True if pattern contains glob special characters."""
    return bool(_GLOB_MAGIC_RE.search(pattern))


def resolve_root(cwd: str, file_arg: str) -> str:
    """Absolute, normalized path for a root argument (relative roots are taken from cwd)."""
    return os.path.normpath(os.path.join(cwd, file_arg))


def _is_hidden(rel: Path) -> bool:
    """Dot-files and anything under a dot-directory are not enumerated."""
    return any(part.startswith(".") for part in rel.parts)


def is_ignored(rel_path: str, ignore_patterns: Sequence[str]) -> bool:
    """
    True if the forward-slash relative path matches any ignore pattern.
    Patterns use glob syntax: `*` stays within one path segment, `**` spans
    directories (including none), and braces and extglobs expand.
    """
    if not ignore_patterns:
        return False
    return glob.globmatch(rel_path, list(ignore_patterns), flags=IGNORE_FLAGS)


def list_all_files(
    abs_path: str,
    ignore_patterns: Sequence[str],
    extensions: Sequence[str],
) -> List[str]:
    """
    Files for one root. A regular file is returned as-is (no extension filter);
    a directory is walked recursively for names ending in one of the extensions.
    Anything else yields nothing.
    """
    root = Path(abs_path)
    if root.is_file():
        return [str(root)]
    if not root.is_dir():
        log.debug("Skipping %s: not a file or directory", abs_path)
        return []

    suffixes = tuple(extensions)
    out: List[str] = []
    try:
        for f in root.rglob("*"):
            try:
                rel = f.relative_to(root)
                if _is_hidden(rel) or not f.name.endswith(suffixes) or not f.is_file():
                    continue
                if is_ignored(rel.as_posix(), ignore_patterns):
                    log.debug("Ignoring %s", f)
                    continue
                out.append(str(f))
            except (OSError, ValueError):
                continue
    except OSError as e:
        log.debug("Failed to list %s: %s", abs_path, e)
    return sorted(out)
