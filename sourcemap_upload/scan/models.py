"""Classified files and the upload records built from them."""

from dataclasses import dataclass, field
from typing import List, Optional


@dataclass(frozen=True, eq=False)
class GeneratedFileEntry:
    """A build output that may point at its sourcemap. Compared by identity."""

    file_url: str
    abs_path: str
    sha: str
    map_url: Optional[str] = None


@dataclass(eq=False)
class SourceMapEntry:
    """A sourcemap and the generated files linked to it."""

    file_url: str
    abs_path: str
    content: bytes = field(repr=False)
    generated_file: Optional[str] = None
    generated_files: List[GeneratedFileEntry] = field(default_factory=list)

    def add_generated_file(self, entry: GeneratedFileEntry) -> None:
        """Link a generated file; linking the same entry twice keeps one membership."""
        if not any(existing is entry for existing in self.generated_files):
            self.generated_files.append(entry)


@dataclass(frozen=True)
class UploadRecord:
    """A sourcemap with exactly one generated file, ready to send."""

    abs_path: str
    relative_path: str
    content: bytes = field(repr=False)
    # Hash of the linked generated file, not of the map.
    generated_file_hash: str
