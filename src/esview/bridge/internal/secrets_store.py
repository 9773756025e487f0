"""Keyring-based storage for connection secrets (username, password, API key)."""

from __future__ import annotations

import json
import logging
from typing import Optional

from esview.bridge.connections import ConnectionSecret

SERVICE_NAME = "esview-bridge"

log = logging.getLogger(__name__)


def _get_keyring():
    """Return the keyring module if a usable backend is available, else None."""
    try:
        import keyring

        backend = keyring.get_keyring()
        if "fail" in type(backend).__name__.lower():
            return None
        return keyring
    except Exception:
        return None


def load_secret(connection_id: str) -> Optional[ConnectionSecret]:
    """Load the secret for a connection from keyring, or None if not found."""
    kr = _get_keyring()
    if kr is None:
        return None
    try:
        stored = kr.get_password(SERVICE_NAME, connection_id)
        if stored is None:
            return None
        return ConnectionSecret.from_dict(json.loads(stored))
    except Exception:
        log.debug("Failed to load connection secret from keyring", exc_info=True)
        return None


def save_secret(connection_id: str, secret: ConnectionSecret) -> None:
    """Store a connection secret in keyring. Raises RuntimeError if keyring is unavailable."""
    kr = _get_keyring()
    if kr is None:
        raise RuntimeError(
            "No usable keyring backend available. "
            "Install a keyring backend or keep the secret in the app state file instead."
        )
    kr.set_password(SERVICE_NAME, connection_id, json.dumps(secret.to_dict()))
    log.debug("Saved secret to keyring for connection=%s", connection_id)


def clear_secret(connection_id: str) -> None:
    """Remove a connection secret from keyring. Silently does nothing if not found or keyring unavailable."""
    kr = _get_keyring()
    if kr is None:
        return
    try:
        kr.delete_password(SERVICE_NAME, connection_id)
        log.debug("Cleared secret from keyring for connection=%s", connection_id)
    except Exception:
        log.debug("Failed to clear secret from keyring", exc_info=True)
