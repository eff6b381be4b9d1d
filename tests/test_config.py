"""Tests for upload options: validation, key sources, normalization."""

import os

import pytest
from pydantic import ValidationError

from sourcemap_upload.config import DEFAULT_EXTENSIONS, UploadSettings


def test_filepaths_string_becomes_list() -> None:
    """A single path string is normalized to a one-element list."""
    settings = UploadSettings(filepaths="dist", group="v1", api_key="k")
    assert settings.filepaths == ["dist"]


def test_missing_key_raises(isolated_env) -> None:
    """No explicit key, no env var and nothing in the keyring is a validation error."""
    with pytest.raises(ValidationError) as excinfo:
        UploadSettings(filepaths=["dist"], group="v1")
    assert "RECORD_REPLAY_API_KEY" in str(excinfo.value)
    isolated_env.return_value.get_api_key.assert_called_once()


def test_key_from_environment(monkeypatch) -> None:
    """RECORD_REPLAY_API_KEY supplies the key when none is passed."""
    monkeypatch.setenv("RECORD_REPLAY_API_KEY", "env-key")
    settings = UploadSettings(filepaths=["dist"], group="v1")
    assert settings.api_key == "env-key"


def test_explicit_key_wins_over_environment(monkeypatch) -> None:
    """An explicit key takes precedence over the environment."""
    monkeypatch.setenv("RECORD_REPLAY_API_KEY", "env-key")
    settings = UploadSettings(filepaths=["dist"], group="v1", api_key="explicit")
    assert settings.api_key == "explicit"


def test_key_from_keyring(isolated_env) -> None:
    """The stored keyring key is used as a last resort."""
    isolated_env.return_value.get_api_key.return_value = "stored-key"
    settings = UploadSettings(filepaths=["dist"], group="v1")
    assert settings.api_key == "stored-key"


def test_group_must_be_string() -> None:
    """Non-string group is rejected."""
    with pytest.raises(ValidationError):
        UploadSettings(filepaths=["dist"], group=12, api_key="k")


@pytest.mark.parametrize(
    "extensions, message",
    [
        ([], "must not be empty"),
        ([".js", "*.map"], "special glob chars"),
        (["js"], "must start with '.'"),
    ],
)
def test_invalid_extensions(extensions, message) -> None:
    """Extensions must be a non-empty list of literal suffixes starting with '.'."""
    with pytest.raises(ValidationError) as excinfo:
        UploadSettings(filepaths=["dist"], group="v1", api_key="k", extensions=extensions)
    assert message in str(excinfo.value)


def test_normalize_fills_defaults(tmp_path) -> None:
    """normalize() applies default extensions, empty ignore list and cwd as root."""
    settings = UploadSettings(filepaths=["dist"], group="v1", api_key="secret")
    opts = settings.normalize(str(tmp_path))
    assert opts.extensions == DEFAULT_EXTENSIONS
    assert opts.ignore_patterns == []
    assert opts.root_path == os.path.normpath(str(tmp_path))
    assert opts.group_name == "v1"
    assert opts.dry_run is False
    opts.log("normal", "ignored")  # default sink is a no-op


def test_normalize_resolves_root_against_cwd(tmp_path) -> None:
    """A relative root is resolved against the working directory."""
    settings = UploadSettings(filepaths=["dist"], group="v1", api_key="k", root="dist")
    opts = settings.normalize(str(tmp_path))
    assert opts.root_path == os.path.normpath(str(tmp_path / "dist"))


def test_options_never_expose_key(tmp_path) -> None:
    """repr() and describe() do not contain the API key."""
    settings = UploadSettings(filepaths=["dist"], group="v1", api_key="super-secret")
    opts = settings.normalize(str(tmp_path))
    assert "super-secret" not in repr(opts)
    assert opts.describe()["api_key"] == len("super-secret")
