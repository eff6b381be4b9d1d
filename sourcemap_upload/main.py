"""Command-line entry point: sourcemap-upload [options] PATHS..."""

import argparse
import logging
import os
import sys
from typing import List, Optional

from pydantic import ValidationError

from sourcemap_upload import __version__
from sourcemap_upload.api.client import UploadError
from sourcemap_upload.auth.credentials import CredentialsStore
from sourcemap_upload.config import LogCallback, MessageLevel
from sourcemap_upload.engine import upload_source_maps


def _setup_logging() -> None:
    """Debug tracing to stderr; WARNING unless SOURCEMAP_UPLOAD_DEBUG is set."""
    level = logging.DEBUG if os.environ.get("SOURCEMAP_UPLOAD_DEBUG", "").strip() else logging.WARNING
    fmt = logging.Formatter(
        "%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    root = logging.getLogger("sourcemap_upload")
    root.setLevel(level)
    root.handlers.clear()
    ch = logging.StreamHandler(sys.stderr)
    ch.setLevel(level)
    ch.setFormatter(fmt)
    root.addHandler(ch)


def _make_log_callback(verbose: bool) -> LogCallback:
    """Print normal messages always and verbose ones only with --verbose."""

    def _log(level: MessageLevel, message: str) -> None:
        if level == "verbose" and not verbose:
            return
        print(message, file=sys.stdout)

    return _log


def _split_extensions(value: str) -> List[str]:
    return [ext.strip() for ext in value.split(",") if ext.strip()]


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="sourcemap-upload",
        description="Upload sourcemaps for generated files to Replay.",
    )
    parser.add_argument("paths", nargs="+", metavar="PATH", help="Files or directories to scan.")
    parser.add_argument("-g", "--group", required=True, help="Group name for this set of sourcemaps (e.g. a version).")
    parser.add_argument(
        "-k",
        "--key",
        default=None,
        help="API key (otherwise RECORD_REPLAY_API_KEY or the stored key is used).",
    )
    parser.add_argument(
        "--save-key",
        action="store_true",
        help="Store --key in the OS keyring for later runs.",
    )
    parser.add_argument("--dry-run", action="store_true", help="Find and link sourcemaps without uploading.")
    parser.add_argument(
        "-x",
        "--extensions",
        type=_split_extensions,
        default=None,
        metavar=".js,.map",
        help="Comma-separated file extensions to scan in directories (default: .js,.map).",
    )
    parser.add_argument(
        "-i",
        "--ignore",
        action="append",
        default=None,
        metavar="PATTERN",
        help="Glob pattern of files to skip in directories; may be repeated.",
    )
    parser.add_argument("--root", default=None, help="Directory uploaded filenames are relative to (default: cwd).")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log linking details.")
    parser.add_argument("--version", action="version", version=f"sourcemap-upload {__version__}")
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    _setup_logging()
    log = logging.getLogger("sourcemap_upload.main")

    if args.save_key:
        if not args.key:
            print("--save-key requires --key", file=sys.stderr)
            return 1
        CredentialsStore().set_api_key(args.key)
        log.info("Saved API key to keyring")

    try:
        upload_source_maps(
            filepaths=args.paths,
            group=args.group,
            key=args.key,
            dry_run=args.dry_run or None,
            extensions=args.extensions,
            ignore=args.ignore,
            root=args.root,
            log=_make_log_callback(args.verbose),
        )
    except ValidationError as e:
        log.debug("Invalid options: %s", e)
        print(f"Invalid options: {e}", file=sys.stderr)
        return 1
    except UploadError as e:
        log.debug("Upload failed: %s", e)
        print(f"Upload failed: {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
