"""Classify a scanned file as a sourcemap or a generated file.

A file is a sourcemap when it parses as a JSON object with ``version == 3``
and a string ``mappings``; every other readable file is a generated-file
candidate. Sourcemaps may name their generated file through the ``file``
field. Generated files may name their map through a ``sourceMappingURL``
directive, which is only honored inside the trailing comment region of the
file so that strings or comments earlier in the code cannot produce false
matches.
"""

import hashlib
import json
import logging
import re
from pathlib import Path
from typing import Any, Optional, Union
from urllib.parse import quote, urljoin, urlsplit

from sourcemap_upload.scan.models import GeneratedFileEntry, SourceMapEntry

log = logging.getLogger(__name__)

# One lexical step of the trailing-region scan: blanks, a line comment,
# a block comment opener, a run of code, or a lone slash.
_SCAN_TOKEN_RE = re.compile(r"[ \t\r\n]+|//[^\r\n]*|/\*|[^/ \t\r\n]+|/")

# Tokenizes the trailing region; only directive comments capture a URL.
DIRECTIVE_TOKEN_RE = re.compile(
    r"""
      /\*(?:[@#][ \t]*sourceMappingURL=(?P<block>[^\r\n]*?)\s*|[\s\S]*?)\*/
    | //(?:[@#][ \t]*sourceMappingURL=(?P<line>[^\r\n]*)|[^\r\n]*)(?:\r?\n|\Z)
    | \s
    """,
    re.VERBOSE,
)

# Characters left as-is when turning a file path into a URL.
_PATH_SAFE = "/:@!$&'()*+,;=~"
# References may already be percent-encoded and may carry query or fragment.
_REFERENCE_SAFE = _PATH_SAFE + "%?#[]"


def file_url_for(abs_path: str) -> str:
    """Identity URL for an absolute path (file: scheme, percent-encoded)."""
    posix = Path(abs_path).as_posix()
    if not posix.startswith("/"):
        posix = "/" + posix
    return "file://" + quote(posix, safe=_PATH_SAFE)


def resolve_reference(reference: str, base_url: str) -> Optional[str]:
    """Resolve reference relative to base_url; None if empty or malformed."""
    reference = reference.strip()
    if not reference:
        return None
    try:
        resolved = urljoin(base_url, quote(reference, safe=_REFERENCE_SAFE))
        urlsplit(resolved)
    except ValueError:
        return None
    return resolved


def _is_source_map(data: Any) -> bool:
    if not isinstance(data, dict):
        return False
    version = data.get("version")
    if isinstance(version, bool) or not isinstance(version, (int, float)) or version != 3:
        return False
    return isinstance(data.get("mappings"), str)


def _parse_json(content: bytes) -> Any:
    """Parsed JSON value, or None when content is not JSON."""
    try:
        return json.loads(content)
    except (ValueError, RecursionError):
        return None


def trailing_comment_start(text: str) -> int:
    """
    Offset where the trailing run of comments and blanks begins (len(text) if
    the file ends in code). One forward pass; block comments are skipped with
    str.find and an unterminated opener disables later ones.
    """
    start = 0
    pos = 0
    closers_left = True
    while pos < len(text):
        token = _SCAN_TOKEN_RE.match(text, pos).group(0)
        if token == "/*":
            end = text.find("*/", pos + 2) if closers_left else -1
            if end != -1:
                pos = end + 2
                continue
            # Unterminated: no later opener can close either.
            closers_left = False
            pos += 1
            start = pos
            continue
        pos += len(token)
        if not (token[0] in " \t\r\n" or token.startswith("//")):
            start = pos
    return start


def find_source_mapping_url(text: str) -> Optional[str]:
    """Last sourceMappingURL directive in the trailing comment region of text."""
    url = None
    for token in DIRECTIVE_TOKEN_RE.finditer(text, trailing_comment_start(text)):
        value = token.group("block")
        if value is None:
            value = token.group("line")
        if value is not None:
            url = value.strip()
    return url or None


def classify_source_map(abs_path: str, file_url: str, data: dict, content: bytes) -> SourceMapEntry:
    """Build a SourceMapEntry, resolving its "file" field when usable."""
    generated_file = None
    file_field = data.get("file")
    if file_field is not None and not isinstance(file_field, str):
        log.debug("Sourcemap has an invalid 'file' key, ignoring value in %s", abs_path)
    elif file_field:
        generated_file = resolve_reference(file_field, file_url)
        if generated_file is None:
            log.debug("Failed to resolve 'file', ignoring value in %s", abs_path)
    return SourceMapEntry(
        file_url=file_url,
        abs_path=abs_path,
        content=content,
        generated_file=generated_file,
    )


def classify_generated_file(abs_path: str, file_url: str, content: bytes) -> GeneratedFileEntry:
    """Hash a generated file and resolve its sourceMappingURL when it is local."""
    log.debug("hashing filepath: %s", abs_path)
    sha = hashlib.sha256(content).hexdigest()

    map_url = None
    url = find_source_mapping_url(content.decode("utf-8", errors="replace"))
    if url:
        map_url = resolve_reference(url, file_url)
        if map_url is None:
            log.debug("Failed to resolve sourceMappingURL, ignoring value in %s", abs_path)
        elif urlsplit(map_url).scheme != "file":
            log.debug(
                "Generated file had non-file: sourceMappingURL, ignoring value in %s",
                abs_path,
            )
            map_url = None
    return GeneratedFileEntry(file_url=file_url, abs_path=abs_path, sha=sha, map_url=map_url)


def classify_file(abs_path: str, content: bytes) -> Union[GeneratedFileEntry, SourceMapEntry]:
    """Classify one file's raw content. Never both, never neither."""
    file_url = file_url_for(abs_path)
    data = _parse_json(content)
    if _is_source_map(data):
        return classify_source_map(abs_path, file_url, data, content)
    if data is not None:
        log.debug("JSON is not a sourcemap, treating as generated file: %s", abs_path)
    return classify_generated_file(abs_path, file_url, content)
