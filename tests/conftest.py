"""Pytest configuration: keep tests away from the real environment and OS keyring."""

import os
from pathlib import Path
from typing import Callable, List, Tuple
from unittest.mock import MagicMock

import pytest


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch):
    """Drop RECORD_REPLAY_* variables and make the keyring fallback find nothing."""
    for name in list(os.environ):
        if name.upper().startswith("RECORD_REPLAY_"):
            monkeypatch.delenv(name, raising=False)
    monkeypatch.delenv("SOURCEMAP_UPLOAD_DEBUG", raising=False)
    store = MagicMock()
    store.return_value.get_api_key.return_value = None
    monkeypatch.setattr("sourcemap_upload.config.CredentialsStore", store)
    return store


@pytest.fixture
def messages() -> List[Tuple[str, str]]:
    """Collects (level, message) pairs from the log callback."""
    return []


@pytest.fixture
def log_sink(messages) -> Callable[[str, str], None]:
    def _log(level: str, message: str) -> None:
        messages.append((level, message))

    return _log


@pytest.fixture
def write_file(tmp_path: Path) -> Callable[..., Path]:
    """Write text (or bytes) to a path under tmp_path, creating parents."""

    def _write(rel: str, content) -> Path:
        path = tmp_path / rel
        path.parent.mkdir(parents=True, exist_ok=True)
        if isinstance(content, bytes):
            path.write_bytes(content)
        else:
            path.write_text(content, encoding="utf-8")
        return path

    return _write
