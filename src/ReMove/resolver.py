"""Debounced destination validation with stale-result protection.

Every input change bumps ``round_id``. A round captures the id it was
started with and may only touch state while that id is still current,
so a slow lookup that resolves after a newer one can never overwrite
the newer result. Abandoned lookups are not aborted at the transport
level; their results are simply dropped.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Callable

from ReMove.account_parser import AccountParseError, parse_account_input
from ReMove.models import DestinationSpec, Identity, ValidationStatus

logger = logging.getLogger(__name__)

DEBOUNCE_INTERVAL = 0.8

Lookup = Callable[[str], "Identity | None"]
Publisher = Callable[["DestinationSpec | None"], None]


class DestinationResolver:
    def __init__(
        self,
        lookup: Lookup,
        on_resolved: Publisher | None = None,
        debounce_interval: float = DEBOUNCE_INTERVAL,
        host: str = "github.com",
    ):
        self._lookup = lookup
        self._on_resolved = on_resolved
        self.debounce_interval = debounce_interval
        self.host = host

        self.round_id = 0
        self.rounds_dispatched = 0
        self.status = ValidationStatus.IDLE
        self.destination: DestinationSpec | None = None
        self.raw_input = ""
        self.is_organization = False

        self._waiting: set[asyncio.Task] = set()
        self._tasks: set[asyncio.Task] = set()

    def update(self, raw_input: str, is_organization: bool = False) -> None:
        """Record new input and schedule a validation round after the quiet period.

        Must be called from inside a running event loop unless the input
        is blank or unparseable.
        """
        self.round_id += 1
        self.raw_input = raw_input
        self.is_organization = is_organization
        self._cancel_waiting()
        self._publish(None)

        if not raw_input.strip():
            self.status = ValidationStatus.IDLE
            return

        try:
            login = parse_account_input(raw_input, self.host)
        except AccountParseError as exc:
            logger.debug("Rejected destination input: %s", exc)
            self.status = ValidationStatus.INVALID
            return

        self.status = ValidationStatus.IDLE
        task = asyncio.get_running_loop().create_task(
            self._run_round(self.round_id, raw_input, login, is_organization)
        )
        self._waiting.add(task)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        task.add_done_callback(self._waiting.discard)

    def cancel(self) -> None:
        """Abandon the pending quiet period and any in-flight round.

        An already published destination stays published.
        """
        self.round_id += 1
        self._cancel_waiting()
        if self.status is ValidationStatus.VALIDATING:
            self.status = ValidationStatus.IDLE

    def reset(self) -> None:
        """Cancel everything and forget the last input without publishing."""
        self.cancel()
        self.status = ValidationStatus.IDLE
        self.destination = None
        self.raw_input = ""
        self.is_organization = False

    async def wait(self) -> None:
        """Wait until every scheduled or in-flight round has finished."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    def _cancel_waiting(self) -> None:
        for task in list(self._waiting):
            task.cancel()
        self._waiting.clear()

    async def _run_round(
        self, round_id: int, raw_input: str, login: str, is_organization: bool
    ) -> None:
        await asyncio.sleep(self.debounce_interval)
        if round_id != self.round_id:
            return

        self._waiting.discard(asyncio.current_task())
        self.status = ValidationStatus.VALIDATING
        self.rounds_dispatched += 1
        logger.debug("Validation round %d for %s", round_id, login)

        try:
            identity = await asyncio.to_thread(self._lookup, login)
        except Exception as exc:
            if round_id != self.round_id:
                return
            logger.warning("Destination validation failed for %s: %s", login, exc)
            identity = None

        if round_id != self.round_id:
            logger.debug("Discarding stale round %d", round_id)
            return

        if identity is None:
            self.status = ValidationStatus.INVALID
            self._publish(None)
            return

        self.status = ValidationStatus.VALID
        self._publish(
            DestinationSpec(
                raw_input=raw_input,
                is_organization=is_organization,
                resolved_identity=identity,
            )
        )

    def _publish(self, destination: DestinationSpec | None) -> None:
        if destination is None and self.destination is None:
            return
        self.destination = destination
        if self._on_resolved is not None:
            self._on_resolved(destination)
