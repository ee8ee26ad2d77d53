"""The transfer wizard's state machine.

``Workflow`` composes the credential store, identity validator,
inventory aggregator, destination resolver and batch executor, and owns
the read model the presentation layer renders (``Workflow.state``).
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Callable, Iterable, Iterator

from ReMove.config import Settings
from ReMove.credential_store import CredentialStore
from ReMove.errors import AuthenticationFailed, ReMoveError, WorkflowError
from ReMove.identity import IdentityValidator, ProviderFactory
from ReMove.inventory import InventoryAggregator
from ReMove.models import (
    DestinationSpec,
    Identity,
    RepositoryDescriptor,
    TransferOutcome,
    TransferSummary,
    ValidationStatus,
    WorkflowStep,
)
from ReMove.providers.base import RepoHost
from ReMove.providers.github import GitHubProvider
from ReMove.resolver import DestinationResolver
from ReMove.transfer import BatchTransferExecutor, summarize
from ReMove.validation_cache import ValidationCache

logger = logging.getLogger(__name__)

_BACK = {
    WorkflowStep.CONFIGURE: WorkflowStep.SELECT,
    WorkflowStep.CONFIRM: WorkflowStep.CONFIGURE,
}


@dataclass
class WorkflowState:
    step: WorkflowStep = WorkflowStep.AUTH
    identity: Identity | None = None
    repositories: list[RepositoryDescriptor] = field(default_factory=list)
    organizations: list[Identity] = field(default_factory=list)
    selection: list[str] = field(default_factory=list)
    destination: DestinationSpec = field(default_factory=DestinationSpec)
    results: list[TransferOutcome] = field(default_factory=list)
    transferring: bool = False
    error: str | None = None
    warnings: list[str] = field(default_factory=list)


def github_provider_factory(settings: Settings) -> ProviderFactory:
    def build(token: str) -> RepoHost:
        return GitHubProvider(
            token=token, api_host=settings.api_host, timeout=settings.request_timeout
        )

    return build


class Workflow:
    def __init__(
        self,
        store: CredentialStore,
        provider_factory: ProviderFactory | None = None,
        settings: Settings | None = None,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.settings = settings or Settings()
        self.store = store
        self.validator = IdentityValidator(
            provider_factory or github_provider_factory(self.settings),
            store,
            ValidationCache(ttl=self.settings.cache_ttl, clock=clock),
        )
        self.resolver = DestinationResolver(
            self.validate_destination,
            on_resolved=self._on_destination_resolved,
            debounce_interval=self.settings.debounce_interval,
            host=self.settings.api_host,
        )
        self._sleep = sleep
        self._executor: BatchTransferExecutor | None = None
        self.state = WorkflowState()

    # -- authentication ----------------------------------------------------

    @property
    def is_authenticated(self) -> bool:
        return self.state.identity is not None and self.validator.provider is not None

    def restore(self) -> Identity | None:
        """Resume a stored session if its token is still accepted."""
        stored = self.store.load()
        if stored is None:
            return None
        token, identity = stored
        if not self.validator.check_liveness(token):
            self.store.clear()
            self.state.error = "Your saved token is no longer valid. Please sign in again."
            return None
        self.state.identity = identity
        self.state.error = None
        logger.info("Restored session for %s", identity.login)
        return identity

    def authenticate(self, token: str) -> Identity:
        self._require_idle()
        self.state.error = None
        try:
            identity = self.validator.authenticate(token)
        except AuthenticationFailed as exc:
            self.state.identity = None
            self.state.error = str(exc)
            raise
        self.state.identity = identity
        return identity

    def logout(self) -> None:
        self._require_idle()
        self.resolver.reset()
        self.validator.forget()
        self.store.clear()
        self.state = WorkflowState()
        logger.info("Logged out")

    # -- inventory ---------------------------------------------------------

    def fetch_repositories(self) -> list[RepositoryDescriptor]:
        provider = self._require_provider()
        self.state.error = None
        try:
            result = InventoryAggregator(provider, self.settings.page_size).list_all_repositories()
        except AuthenticationFailed as exc:
            self._expire_session(str(exc))
            raise
        except ReMoveError as exc:
            self.state.error = str(exc)
            raise
        self.state.repositories = result.repositories
        self.state.warnings = result.warnings
        known = {repo.name for repo in result.repositories}
        self.state.selection = [name for name in self.state.selection if name in known]
        return result.repositories

    def fetch_organizations(self) -> list[Identity]:
        provider = self._require_provider()
        try:
            orgs = InventoryAggregator(provider, self.settings.page_size).list_organizations()
        except ReMoveError as exc:
            logger.warning("Failed to fetch organizations: %s", exc)
            return []
        self.state.organizations = orgs
        return orgs

    # -- selection ---------------------------------------------------------

    def set_selection(self, names: Iterable[str]) -> list[str]:
        self._require_idle()
        self.state.selection = list(dict.fromkeys(names))
        return self.state.selection

    def toggle_repository(self, name: str) -> list[str]:
        if name in self.state.selection:
            return self.set_selection(n for n in self.state.selection if n != name)
        return self.set_selection([*self.state.selection, name])

    def select_all(self, names: Iterable[str]) -> list[str]:
        """Select every name given, or clear the selection if that is already the case."""
        names = list(dict.fromkeys(names))
        if names and set(names) == set(self.state.selection):
            return self.set_selection([])
        return self.set_selection(names)

    # -- destination -------------------------------------------------------

    @property
    def validation_status(self) -> ValidationStatus:
        return self.resolver.status

    def validate_destination(self, name: str) -> Identity | None:
        self._require_provider()
        return self.validator.lookup_account(name)

    def set_destination(
        self,
        raw_input: str,
        is_organization: bool = False,
        identity: Identity | None = None,
    ) -> DestinationSpec:
        """Record the destination; *identity* is the result of a completed validation."""
        self._require_idle()
        self.state.destination = DestinationSpec(
            raw_input=raw_input,
            is_organization=is_organization,
            resolved_identity=identity,
        )
        return self.state.destination

    def enter_destination(self, raw_input: str, is_organization: bool = False) -> None:
        """Feed typed input to the debounced resolver (needs a running event loop)."""
        self.set_destination(raw_input, is_organization)
        self.resolver.update(raw_input, is_organization)

    def _on_destination_resolved(self, destination: DestinationSpec | None) -> None:
        if destination is None:
            self.state.destination = DestinationSpec(
                raw_input=self.resolver.raw_input,
                is_organization=self.resolver.is_organization,
            )
        else:
            self.state.destination = destination

    # -- steps ---------------------------------------------------------------

    def advance(self) -> WorkflowStep:
        self._require_idle()
        step = self.state.step
        if step is WorkflowStep.AUTH:
            if self.state.identity is None:
                raise WorkflowError("Authenticate before selecting repositories.")
            self.state.step = WorkflowStep.SELECT
        elif step is WorkflowStep.SELECT:
            if not self.state.selection:
                raise WorkflowError("Select at least one repository.")
            self.state.step = WorkflowStep.CONFIGURE
        elif step is WorkflowStep.CONFIGURE:
            if self.state.destination.resolved_identity is None:
                raise WorkflowError("Choose a valid destination first.")
            self.resolver.cancel()
            self.state.step = WorkflowStep.CONFIRM
        elif step is WorkflowStep.CONFIRM:
            raise WorkflowError("Use start_transfer() to begin the transfer.")
        else:
            raise WorkflowError("The transfer is finished; reset to start over.")
        return self.state.step

    def back(self) -> WorkflowStep:
        self._require_idle()
        previous = _BACK.get(self.state.step)
        if previous is None:
            raise WorkflowError(f"Cannot go back from the {self.state.step.value} step.")
        if self.state.step is WorkflowStep.CONFIGURE:
            self.resolver.cancel()
        self.state.step = previous
        return previous

    # -- transfer ------------------------------------------------------------

    def start_transfer(self) -> Iterator[TransferOutcome]:
        """Enter the Transfer step and return a generator of per-item outcomes.

        Each outcome is appended to ``state.results`` before it is yielded.
        The workflow counts as busy from the first ``next()`` until the
        generator is exhausted or closed.
        """
        provider = self._require_provider()
        if self.state.step is not WorkflowStep.CONFIRM:
            raise WorkflowError("Transfers can only start from the confirm step.")
        self._require_idle()
        new_owner = self.state.destination.login
        if new_owner is None:
            raise WorkflowError("Choose a valid destination first.")
        if not self.state.selection:
            raise WorkflowError("Select at least one repository.")

        owners: dict[str, str] = {}
        for repo in self.state.repositories:
            owners.setdefault(repo.name, repo.owner.login)

        self._executor = BatchTransferExecutor(
            provider, self.settings.pacing_interval, sleep=self._sleep
        )
        outcomes = self._executor.run(
            self.state.selection,
            new_owner,
            default_owner=self.state.identity.login,
            owners=owners,
        )
        self.state.step = WorkflowStep.TRANSFER
        self.state.results = []
        return self._record(outcomes)

    def _record(self, outcomes: Iterator[TransferOutcome]) -> Iterator[TransferOutcome]:
        # Busy only once iteration starts; an unstarted generator holds no lock.
        self.state.transferring = True
        try:
            for outcome in outcomes:
                self.state.results.append(outcome)
                yield outcome
        finally:
            self.state.transferring = False
            summary = self.summary()
            logger.info(
                "Transfer finished: %d succeeded, %d failed",
                summary.succeeded,
                summary.failed,
            )

    def summary(self) -> TransferSummary:
        return summarize(self.state.results)

    def reset(self) -> WorkflowState:
        """Return to the first step with every collection cleared.

        The signed-in identity is kept; use logout() to drop it.
        """
        self._require_idle()
        self.resolver.reset()
        self.state = WorkflowState(identity=self.state.identity)
        return self.state

    # -- helpers -------------------------------------------------------------

    def _require_provider(self) -> RepoHost:
        provider = self.validator.provider
        if provider is None or self.state.identity is None:
            raise WorkflowError("Not authenticated.")
        return provider

    def _require_idle(self) -> None:
        if self.state.transferring:
            raise WorkflowError("A transfer is in progress.")

    def _expire_session(self, message: str) -> None:
        self.resolver.reset()
        self.validator.forget()
        self.store.clear()
        self.state = WorkflowState(error=message)
