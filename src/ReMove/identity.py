"""Token authentication and account lookups."""

from __future__ import annotations

import logging
from typing import Callable

from ReMove.credential_store import CredentialStore
from ReMove.errors import AuthenticationFailed, NotFoundError, ReMoveError
from ReMove.models import Identity
from ReMove.providers.base import RepoHost
from ReMove.validation_cache import ValidationCache

logger = logging.getLogger(__name__)

ProviderFactory = Callable[[str], RepoHost]


class IdentityValidator:
    """Confirms tokens against the remote host and resolves account names."""

    def __init__(
        self,
        provider_factory: ProviderFactory,
        store: CredentialStore,
        cache: ValidationCache | None = None,
    ):
        self._provider_factory = provider_factory
        self._store = store
        self.cache = cache if cache is not None else ValidationCache()
        self._provider: RepoHost | None = None

    @property
    def provider(self) -> RepoHost | None:
        """Provider bound to the last accepted token, if any."""
        return self._provider

    def authenticate(self, token: str) -> Identity:
        """Verify *token* and persist it together with its identity.

        Nothing is written unless both the identity call and the
        capability probe succeed; on failure the store is cleared and
        AuthenticationFailed is raised.
        """
        token = token.strip()
        if not token:
            raise AuthenticationFailed("A token is required.")

        provider = self._provider_factory(token)
        try:
            identity = provider.get_authenticated_identity()
            provider.check_rate_limit()
        except (ReMoveError, KeyError, ValueError) as exc:
            logger.warning("Authentication failed: %s", exc)
            self._provider = None
            self._store.clear()
            raise AuthenticationFailed() from exc

        self._provider = provider
        self._store.save(token, identity)
        logger.info("Authenticated as %s", identity.login)
        return identity

    def check_liveness(self, token: str) -> bool:
        """Return True if a previously stored token still works."""
        if not token:
            return False
        provider = self._provider_factory(token)
        try:
            provider.check_rate_limit()
        except ReMoveError as exc:
            logger.warning("Stored token rejected: %s", exc)
            return False
        self._provider = provider
        return True

    def forget(self) -> None:
        self._provider = None
        self.cache.clear()

    def lookup_account(self, name: str) -> Identity | None:
        """Resolve *name* to an identity, or None if no such account exists.

        Results, including "not found", are cached. Transport failures
        propagate and are not cached.
        """
        if not name or not name.strip():
            return None
        if self._provider is None:
            raise AuthenticationFailed("Not authenticated.")

        cached = self.cache.get(name)
        if cached is not None:
            return cached.result

        logger.debug("Looking up account %s", name.strip())
        try:
            identity = self._provider.lookup_account_by_name(name.strip())
        except NotFoundError:
            identity = None
        self.cache.put(name, identity)
        return identity
