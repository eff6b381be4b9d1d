"""Upload run: scan roots, classify files, link maps to generated files, upload.

Scanning and classification are per-file and run in a thread pool, but every
entry is collected before linking starts. Uploads then run strictly one after
another; the first sourcemap that cannot be delivered (after all retries)
aborts the run and the remaining maps are not attempted.
"""

import logging
import os
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import List, Optional, Sequence, Union

from sourcemap_upload.api.client import SourcemapUploadAPI
from sourcemap_upload.config import LogCallback, NormalizedOptions, UploadSettings
from sourcemap_upload.scan.classify import classify_file
from sourcemap_upload.scan.files import list_all_files, resolve_root
from sourcemap_upload.scan.graph import ResolutionContext
from sourcemap_upload.scan.models import GeneratedFileEntry, SourceMapEntry, UploadRecord

log = logging.getLogger(__name__)

SCAN_MAX_WORKERS = 8


def upload_source_maps(
    filepaths: Union[str, Sequence[str]],
    group: str,
    key: Optional[str] = None,
    dry_run: Optional[bool] = None,
    extensions: Optional[Sequence[str]] = None,
    ignore: Optional[Sequence[str]] = None,
    root: Optional[str] = None,
    log: Optional[LogCallback] = None,
    cwd: Optional[str] = None,
) -> List[UploadRecord]:
    """
    Validate options and upload every sourcemap under filepaths that links to
    exactly one generated file. Raises pydantic.ValidationError for bad options
    (before any I/O) and UploadError when a sourcemap cannot be delivered.
    """
    if log is not None and not callable(log):
        raise TypeError("'log' must be a function or None")
    options = {
        "filepaths": list(filepaths) if not isinstance(filepaths, str) else filepaths,
        "group": group,
        "api_key": key,
        "dry_run": dry_run,
        "extensions": list(extensions) if extensions is not None else None,
        "ignore": list(ignore) if ignore is not None else None,
        "root": root,
    }
    # Unset options fall through to the environment and defaults.
    settings = UploadSettings(**{k: v for k, v in options.items() if v is not None})
    return process_source_maps(settings.normalize(cwd or os.getcwd(), log))


def _read_and_classify(abs_path: str) -> Optional[Union[GeneratedFileEntry, SourceMapEntry]]:
    """Classify one file; None if it cannot be read."""
    log.debug("processing filepath: %s", abs_path)
    try:
        content = Path(abs_path).read_bytes()
    except OSError as e:
        log.debug("Failed to read %s, skipping: %s", abs_path, e)
        return None
    log.debug("read filepath: %s", abs_path)
    return classify_file(abs_path, content)


def find_and_resolve_maps(opts: NormalizedOptions) -> ResolutionContext:
    """Scan and classify every file under the roots, then link the entries."""
    context = ResolutionContext()
    to_classify: List[str] = []
    for file_arg in opts.filepaths:
        abs_file_arg = resolve_root(opts.cwd, file_arg)
        log.debug("processing argument: %s", abs_file_arg)
        for abs_path in list_all_files(abs_file_arg, opts.ignore_patterns, opts.extensions):
            if context.claim(abs_path):
                to_classify.append(abs_path)

    with ThreadPoolExecutor(max_workers=SCAN_MAX_WORKERS) as executor:
        for entry in executor.map(_read_and_classify, to_classify):
            if entry is not None:
                context.add(entry)
    log.debug(
        "done processing arguments (%d generated files, %d sourcemaps)",
        len(context.generated_files),
        len(context.source_maps),
    )

    context.link()
    return context


def process_source_maps(
    opts: NormalizedOptions,
    client: Optional[SourcemapUploadAPI] = None,
) -> List[UploadRecord]:
    """Run one upload over normalized options. Returns the records uploaded (or that would be, in dry run)."""
    log.debug("resolved options: %s", opts.describe())

    context = find_and_resolve_maps(opts)
    maps_to_upload = context.collect_uploads(opts.root_path, opts.log)

    if maps_to_upload and not opts.dry_run and client is None:
        client = SourcemapUploadAPI()

    for record in maps_to_upload:
        log.debug("Uploading %s", record.abs_path)
        opts.log("normal", f"Uploading {record.relative_path}")
        if not opts.dry_run:
            client.upload(opts.group_name, opts.api_key, record)

    log.debug("Done")
    opts.log(
        "normal",
        f"Done! Uploaded {len(maps_to_upload)} sourcemaps{' (DRY RUN)' if opts.dry_run else ''}",
    )
    return maps_to_upload
