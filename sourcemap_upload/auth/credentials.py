"""Keyring-backed storage for the Replay API key."""

import logging
import os
from typing import Optional

import keyring
from keyring.errors import PasswordDeleteError

log = logging.getLogger(__name__)

KEY_API_KEY = "api_key"


def _keyring_service_name() -> str:
    """Use a separate keyring namespace when SOURCEMAP_UPLOAD_KEYRING_SERVICE is set (CI, tests)."""
    override = os.environ.get("SOURCEMAP_UPLOAD_KEYRING_SERVICE", "").strip()
    return override or "ReplaySourcemapUpload"


class CredentialsStore:
    """
    Stores the upload API key in the OS keyring (Windows Credential Manager,
    macOS Keychain, Linux Secret Service) so it does not have to be passed on
    every run or kept in a plain-text environment file.
    """

    def get_api_key(self) -> Optional[str]:
        """
        Return the stored API key, or None.
        On keyring read error (no backend, locked keychain, corrupted entry) returns None
        so the caller can report a missing key instead of crashing.
        """
        try:
            key = keyring.get_password(_keyring_service_name(), KEY_API_KEY)
        except Exception as e:
            log.warning("Could not read stored API key: %s", e)
            return None
        return key or None

    def set_api_key(self, api_key: str) -> None:
        """Store the API key in the keyring."""
        keyring.set_password(_keyring_service_name(), KEY_API_KEY, api_key)
        log.debug("Stored API key in keyring service %s", _keyring_service_name())

    def clear_api_key(self) -> None:
        """Remove the stored API key."""
        try:
            keyring.delete_password(_keyring_service_name(), KEY_API_KEY)
        except PasswordDeleteError:
            pass
