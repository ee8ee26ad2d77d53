"""Sequential, paced execution of repository transfers."""

from __future__ import annotations

import logging
import time
from enum import Enum
from typing import Callable, Iterable, Iterator, Mapping

from ReMove.errors import WorkflowError
from ReMove.models import TransferOutcome, TransferSummary
from ReMove.providers.base import RepoHost

logger = logging.getLogger(__name__)

PACING_INTERVAL = 1.0


class ItemState(Enum):
    PENDING = "pending"
    IN_FLIGHT = "in_flight"
    DONE = "done"


class BatchTransferExecutor:
    """Transfers repositories one at a time, yielding each outcome as it lands.

    Every item is attempted exactly once. A failure is recorded in that
    item's outcome and the batch moves on. The executor waits
    ``pacing_interval`` seconds between items (not after the last one).
    Closing the returned generator abandons the remaining items.
    """

    def __init__(
        self,
        provider: RepoHost,
        pacing_interval: float = PACING_INTERVAL,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.provider = provider
        self.pacing_interval = pacing_interval
        self._sleep = sleep
        self.running = False
        self.states: dict[str, ItemState] = {}

    def run(
        self,
        names: Iterable[str],
        new_owner: str,
        default_owner: str,
        owners: Mapping[str, str] | None = None,
    ) -> Iterator[TransferOutcome]:
        if self.running:
            raise WorkflowError("A transfer batch is already running.")
        if not new_owner:
            raise WorkflowError("No destination account given.")
        items = list(dict.fromkeys(names))
        return self._drive(items, new_owner, default_owner, owners or {})

    def _drive(
        self,
        items: list[str],
        new_owner: str,
        default_owner: str,
        owners: Mapping[str, str],
    ) -> Iterator[TransferOutcome]:
        if self.running:
            raise WorkflowError("A transfer batch is already running.")
        self.running = True
        self.states = {name: ItemState.PENDING for name in items}
        logger.info("Transferring %d repositories to %s", len(items), new_owner)
        try:
            for index, name in enumerate(items):
                self.states[name] = ItemState.IN_FLIGHT
                outcome = self._transfer_one(owners.get(name, default_owner), name, new_owner)
                self.states[name] = ItemState.DONE
                yield outcome
                if index < len(items) - 1:
                    self._sleep(self.pacing_interval)
        finally:
            self.running = False

    def _transfer_one(self, owner: str, name: str, new_owner: str) -> TransferOutcome:
        try:
            self.provider.transfer_repository(owner, name, new_owner)
        except Exception as exc:
            logger.warning("Transfer of %s/%s failed: %s", owner, name, exc)
            return TransferOutcome.failed(name, str(exc) or "Transfer failed")
        logger.info("Transferred %s/%s to %s", owner, name, new_owner)
        return TransferOutcome.succeeded(name, self.provider.web_url(new_owner, name))


def summarize(outcomes: Iterable[TransferOutcome]) -> TransferSummary:
    outcomes = list(outcomes)
    succeeded = sum(1 for o in outcomes if o.success)
    return TransferSummary(
        total=len(outcomes),
        succeeded=succeeded,
        failed=len(outcomes) - succeeded,
    )
