"""Upload options: validation, defaults and the normalized record the core consumes."""

import os
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Literal, Optional, Union

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from sourcemap_upload.auth.credentials import CredentialsStore
from sourcemap_upload.scan.files import has_glob_magic

MessageLevel = Literal["normal", "verbose"]
# Log sink for user-facing messages: (level, message).
LogCallback = Callable[[MessageLevel, str], None]

DEFAULT_EXTENSIONS = [".js", ".map"]


def _discard_log(level: MessageLevel, message: str) -> None:
    return None


class UploadSettings(BaseSettings):
    """
    Options for one upload run. Every field can also come from the environment
    as RECORD_REPLAY_<NAME> (e.g. RECORD_REPLAY_API_KEY); explicit values win.
    """

    model_config = SettingsConfigDict(env_prefix="RECORD_REPLAY_", extra="ignore")

    filepaths: Union[str, List[str]]
    group: str
    api_key: Optional[str] = None
    dry_run: bool = False
    extensions: Optional[List[str]] = None
    ignore: Optional[List[str]] = None
    root: Optional[str] = None

    @field_validator("filepaths")
    @classmethod
    def _filepaths_as_list(cls, v: Union[str, List[str]]) -> List[str]:
        return [v] if isinstance(v, str) else list(v)

    @field_validator("extensions")
    @classmethod
    def _check_extensions(cls, v: Optional[List[str]]) -> Optional[List[str]]:
        if v is None:
            return v
        if not v:
            raise ValueError("'extensions' must not be empty")
        if any(has_glob_magic(ext) for ext in v):
            raise ValueError("'extensions' entries may not contain special glob chars")
        if not all(ext.startswith(".") for ext in v):
            raise ValueError("'extensions' entries must start with '.'")
        return v

    @model_validator(mode="after")
    def _require_api_key(self) -> "UploadSettings":
        if not self.api_key:
            self.api_key = CredentialsStore().get_api_key()
        if not self.api_key:
            raise ValueError(
                "'key' must contain a key, or the RECORD_REPLAY_API_KEY must be set."
            )
        return self

    def normalize(self, cwd: str, log: Optional[LogCallback] = None) -> "NormalizedOptions":
        """Fill defaults and resolve paths against cwd."""
        return NormalizedOptions(
            cwd=cwd,
            filepaths=list(self.filepaths),
            group_name=self.group,
            api_key=self.api_key or "",
            dry_run=self.dry_run,
            extensions=list(self.extensions or DEFAULT_EXTENSIONS),
            ignore_patterns=list(self.ignore or []),
            root_path=os.path.normpath(os.path.join(cwd, self.root or "")),
            log=log or _discard_log,
        )


@dataclass(frozen=True)
class NormalizedOptions:
    """Fully populated, already validated options for process_source_maps."""

    cwd: str
    filepaths: List[str]
    group_name: str
    api_key: str = field(repr=False)
    dry_run: bool
    extensions: List[str]
    ignore_patterns: List[str]
    root_path: str
    log: LogCallback = field(repr=False)

    def describe(self) -> Dict[str, Any]:
        """Options for debug output; the API key is reduced to its length."""
        return {
            "cwd": self.cwd,
            "filepaths": self.filepaths,
            "group_name": self.group_name,
            "api_key": len(self.api_key),
            "dry_run": self.dry_run,
            "extensions": self.extensions,
            "ignore_patterns": self.ignore_patterns,
            "root_path": self.root_path,
        }
