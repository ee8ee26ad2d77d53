"""Credential persistence in the OS keychain (macOS Keychain / Windows Credential Manager / Secret Service)."""

from __future__ import annotations

import json
import logging

from ReMove.models import Identity

logger = logging.getLogger(__name__)

_AVAILABLE = False

try:
    import keyring
    import keyring.errors

    _AVAILABLE = True
except Exception:
    logger.warning("keyring not available; credential persistence disabled")


class CredentialStore:
    """Persists one token and the identity it authenticated as.

    Both values live under the same keychain service as two entries,
    ``token`` and ``user`` (JSON). A missing or unreadable entry means
    the store is empty. No validation happens here.
    """

    TOKEN_KEY = "token"
    USER_KEY = "user"

    def __init__(self, service_name: str = "ReMove"):
        self.service_name = service_name

    def is_available(self) -> bool:
        """Return True if the OS keychain is usable."""
        return _AVAILABLE

    def save(self, token: str, identity: Identity) -> bool:
        """Store both entries, or neither. Returns True on success."""
        if not _AVAILABLE or not token:
            return False
        try:
            keyring.set_password(self.service_name, self.TOKEN_KEY, token)
        except Exception:
            logger.warning("Failed to save token to keyring")
            return False
        try:
            keyring.set_password(
                self.service_name, self.USER_KEY, json.dumps(identity.to_dict())
            )
        except Exception:
            logger.warning("Failed to save identity to keyring; rolling back token")
            self._delete(self.TOKEN_KEY)
            return False
        return True

    def load(self) -> tuple[str, Identity] | None:
        """Return ``(token, identity)`` or None when nothing usable is stored."""
        if not _AVAILABLE:
            return None
        try:
            token = keyring.get_password(self.service_name, self.TOKEN_KEY)
            raw_user = keyring.get_password(self.service_name, self.USER_KEY)
        except Exception:
            return None
        if not token or not raw_user:
            return None
        try:
            identity = Identity.from_dict(json.loads(raw_user))
        except (ValueError, KeyError, TypeError):
            logger.warning("Stored identity is unreadable; discarding it")
            self._delete(self.USER_KEY)
            return None
        return token, identity

    def clear(self) -> None:
        """Remove both entries. Safe to call on an empty store."""
        if not _AVAILABLE:
            return
        self._delete(self.TOKEN_KEY)
        self._delete(self.USER_KEY)

    def _delete(self, key: str) -> bool:
        try:
            keyring.delete_password(self.service_name, key)
            return True
        except keyring.errors.PasswordDeleteError:
            return False
        except Exception:
            logger.warning("Failed to delete %s from keyring", key)
            return False
