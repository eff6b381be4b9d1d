"""Per-run resolution state: classified entries and the links between them."""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Dict, List, Set, Union

from sourcemap_upload.scan.models import GeneratedFileEntry, SourceMapEntry, UploadRecord

log = logging.getLogger(__name__)


@dataclass
class ResolutionContext:
    """
    Owned by one upload run. Scanning fills the entry maps; link() may only run
    once every file has been classified, since a map can point at a generated
    file found later in the scan and vice versa.
    """

    seen_paths: Set[str] = field(default_factory=set)
    generated_files: Dict[str, GeneratedFileEntry] = field(default_factory=dict)
    source_maps: Dict[str, SourceMapEntry] = field(default_factory=dict)

    def claim(self, abs_path: str) -> bool:
        """Mark abs_path as scanned. False if another root already produced it."""
        if abs_path in self.seen_paths:
            return False
        self.seen_paths.add(abs_path)
        return True

    def add(self, entry: Union[GeneratedFileEntry, SourceMapEntry]) -> None:
        if isinstance(entry, SourceMapEntry):
            self.source_maps[entry.file_url] = entry
        else:
            self.generated_files[entry.file_url] = entry

    def link(self) -> None:
        """Follow references in both directions; the passes are additive."""
        # sourceMappingURL: generated file -> map
        for generated_file in self.generated_files.values():
            if generated_file.map_url:
                source_map = self.source_maps.get(generated_file.map_url)
                if source_map is not None:
                    source_map.add_generated_file(generated_file)
        # "file": map -> generated file
        for source_map in self.source_maps.values():
            if source_map.generated_file:
                generated_file = self.generated_files.get(source_map.generated_file)
                if generated_file is not None:
                    source_map.add_generated_file(generated_file)

    def collect_uploads(
        self,
        root_path: str,
        log_message: Callable[[str, str], None],
    ) -> List[UploadRecord]:
        """Upload records for maps with exactly one generated file; report the rest."""
        out: List[UploadRecord] = []
        for source_map in self.source_maps.values():
            relative_path = Path(os.path.relpath(source_map.abs_path, root_path)).as_posix()
            linked = source_map.generated_files
            if len(linked) == 1:
                generated_file = linked[0]
                out.append(
                    UploadRecord(
                        abs_path=source_map.abs_path,
                        relative_path=relative_path,
                        content=source_map.content,
                        generated_file_hash=generated_file.sha,
                    )
                )
                log.debug("Resolved generated source %s for %s", generated_file.abs_path, source_map.abs_path)
                log_message("verbose", f"Linked {relative_path} to {generated_file.abs_path}")
            elif not linked:
                log.debug("Failed to resolve generated source for %s", source_map.abs_path)
                log_message(
                    "verbose",
                    f"Skipped {relative_path} because no generated files for it could be found",
                )
            else:
                candidates = [g.abs_path for g in linked]
                log.debug(
                    "Failed to resolve generated source for %s, matched multiple sources: %s",
                    source_map.abs_path,
                    candidates,
                )
                log_message(
                    "verbose",
                    f"Skipped {relative_path} because multiple generated files were found for it: "
                    + ", ".join(candidates),
                )
        return out
