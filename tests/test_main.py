"""Tests for the command-line entry point."""

import json
from pathlib import Path
from unittest.mock import MagicMock

import pytest

from sourcemap_upload import main as main_module
from sourcemap_upload.api.client import UploadError


def test_parse_args_splits_extensions() -> None:
    """--extensions takes a comma-separated list; --ignore may repeat."""
    args = main_module.parse_args(
        ["-g", "v1", "-x", ".js, .map", "-i", "a/**", "-i", "b/**", "dist"]
    )
    assert args.extensions == [".js", ".map"]
    assert args.ignore == ["a/**", "b/**"]
    assert args.paths == ["dist"]


def test_group_is_required(capsys) -> None:
    """Missing --group is a usage error."""
    with pytest.raises(SystemExit) as excinfo:
        main_module.parse_args(["dist"])
    assert excinfo.value.code == 2


def test_dry_run_prints_summary(tmp_path: Path, write_file, monkeypatch, capsys) -> None:
    """A dry run prints upload intent and the DRY RUN summary and exits 0."""
    write_file("app.js", "a();\n//# sourceMappingURL=app.js.map\n")
    write_file("app.js.map", json.dumps({"version": 3, "mappings": ""}))
    monkeypatch.chdir(tmp_path)

    code = main_module.main(["--group", "v1", "--key", "k", "--dry-run", "-v", "."])

    out = capsys.readouterr().out
    assert code == 0
    assert "Linked app.js.map to" in out
    assert "Uploading app.js.map" in out
    assert "Done! Uploaded 1 sourcemaps (DRY RUN)" in out


def test_verbose_messages_hidden_by_default(tmp_path: Path, write_file, monkeypatch, capsys) -> None:
    """Without --verbose only normal messages are printed."""
    write_file("orphan.js.map", json.dumps({"version": 3, "mappings": ""}))
    monkeypatch.chdir(tmp_path)

    code = main_module.main(["--group", "v1", "--key", "k", "--dry-run", "."])

    out = capsys.readouterr().out
    assert code == 0
    assert "Skipped" not in out
    assert "Done! Uploaded 0 sourcemaps (DRY RUN)" in out


def test_upload_error_exits_1(monkeypatch, capsys) -> None:
    """An irrecoverable upload failure is reported on stderr with exit code 1."""
    monkeypatch.setattr(main_module, "upload_source_maps", MagicMock(side_effect=UploadError("server busy")))
    code = main_module.main(["--group", "v1", "--key", "k", "dist"])
    assert code == 1
    assert "server busy" in capsys.readouterr().err


def test_missing_key_exits_1(tmp_path: Path, monkeypatch, capsys) -> None:
    """Without any API key the options are rejected."""
    monkeypatch.chdir(tmp_path)
    code = main_module.main(["--group", "v1", "."])
    assert code == 1
    assert "RECORD_REPLAY_API_KEY" in capsys.readouterr().err


def test_save_key_stores_in_keyring(monkeypatch) -> None:
    """--save-key writes the key to the credential store before uploading."""
    store = MagicMock()
    monkeypatch.setattr(main_module, "CredentialsStore", store)
    monkeypatch.setattr(main_module, "upload_source_maps", MagicMock())
    code = main_module.main(["--group", "v1", "--key", "abc", "--save-key", "dist"])
    assert code == 0
    store.return_value.set_api_key.assert_called_once_with("abc")


def test_save_key_without_key_fails(monkeypatch, capsys) -> None:
    """--save-key needs --key."""
    monkeypatch.setattr(main_module, "upload_source_maps", MagicMock())
    code = main_module.main(["--group", "v1", "--save-key", "dist"])
    assert code == 1
    assert "--save-key requires --key" in capsys.readouterr().err
