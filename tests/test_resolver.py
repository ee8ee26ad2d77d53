"""Tests for resolver module."""

import asyncio
import threading

from ReMove.models import ValidationStatus
from ReMove.resolver import DestinationResolver

from fakes import make_identity

DEBOUNCE = 0.05


class RecordingLookup:
    def __init__(self, accounts=None, error=None):
        self.accounts = {k.lower(): v for k, v in (accounts or {}).items()}
        self.error = error
        self.calls = []

    def __call__(self, name):
        self.calls.append(name)
        if self.error is not None:
            raise self.error
        return self.accounts.get(name.lower())


async def _until(predicate, timeout=5.0):
    deadline = asyncio.get_running_loop().time() + timeout
    while not predicate():
        if asyncio.get_running_loop().time() > deadline:
            raise AssertionError("condition not reached")
        await asyncio.sleep(0.005)


def _resolver(lookup, published=None):
    return DestinationResolver(
        lookup,
        on_resolved=published.append if published is not None else None,
        debounce_interval=DEBOUNCE,
    )


class TestIdle:
    def test_blank_input_is_idle_without_lookup(self):
        lookup = RecordingLookup()
        resolver = _resolver(lookup)
        resolver.update("   ")
        assert resolver.status is ValidationStatus.IDLE
        assert lookup.calls == []

    def test_unparseable_input_is_invalid_without_lookup(self):
        lookup = RecordingLookup()
        resolver = _resolver(lookup)
        resolver.update("not a login!")
        assert resolver.status is ValidationStatus.INVALID
        assert lookup.calls == []


class TestDebounce:
    def test_fast_typing_dispatches_one_round_for_final_value(self):
        octocat = make_identity("octocat")
        lookup = RecordingLookup({"octocat": octocat})
        published = []
        resolver = _resolver(lookup, published)

        async def scenario():
            for text in ["o", "oc", "octo", "octocat"]:
                resolver.update(text)
                await asyncio.sleep(DEBOUNCE / 5)
            await resolver.wait()

        asyncio.run(scenario())
        assert lookup.calls == ["octocat"]
        assert resolver.rounds_dispatched == 1
        assert resolver.status is ValidationStatus.VALID
        assert published[-1].resolved_identity == octocat

    def test_pause_longer_than_quiet_period_dispatches_again(self):
        lookup = RecordingLookup({"octo": make_identity("octo"), "octocat": make_identity()})
        resolver = _resolver(lookup)

        async def scenario():
            resolver.update("octo")
            await resolver.wait()
            resolver.update("octocat")
            await resolver.wait()

        asyncio.run(scenario())
        assert lookup.calls == ["octo", "octocat"]


class TestOutcomes:
    def test_valid_publishes_case_correct_identity(self):
        acme = make_identity("AcMe", 9, org=True)
        published = []
        resolver = _resolver(RecordingLookup({"acme": acme}), published)

        async def scenario():
            resolver.update(" acme ", is_organization=True)
            await resolver.wait()

        asyncio.run(scenario())
        destination = published[-1]
        assert destination.login == "AcMe"
        assert destination.is_organization is True
        assert destination.raw_input == " acme "
        assert resolver.destination is destination

    def test_not_found_is_invalid(self):
        published = []
        resolver = _resolver(RecordingLookup(), published)

        async def scenario():
            resolver.update("ghost")
            await resolver.wait()

        asyncio.run(scenario())
        assert resolver.status is ValidationStatus.INVALID
        assert resolver.destination is None
        assert published == []

    def test_lookup_error_is_invalid(self):
        resolver = _resolver(RecordingLookup(error=RuntimeError("boom")))

        async def scenario():
            resolver.update("octocat")
            await resolver.wait()

        asyncio.run(scenario())
        assert resolver.status is ValidationStatus.INVALID
        assert resolver.destination is None

    def test_new_input_withdraws_published_destination(self):
        published = []
        resolver = _resolver(RecordingLookup({"octocat": make_identity()}), published)

        async def scenario():
            resolver.update("octocat")
            await resolver.wait()
            resolver.update("octocat2")
            assert resolver.destination is None
            await resolver.wait()

        asyncio.run(scenario())
        assert published[-1] is None
        assert resolver.status is ValidationStatus.INVALID


class TestStaleRounds:
    def test_late_result_does_not_overwrite_newer_round(self):
        slow_identity = make_identity("slow", 1)
        fast_identity = make_identity("fast", 2)
        release = threading.Event()
        calls = []

        def lookup(name):
            calls.append(name)
            if name == "slow":
                release.wait(timeout=5)
                return slow_identity
            return fast_identity

        published = []
        resolver = _resolver(lookup, published)

        async def scenario():
            resolver.update("slow")
            await _until(lambda: resolver.status is ValidationStatus.VALIDATING)
            resolver.update("fast")
            await _until(lambda: resolver.status is ValidationStatus.VALID)
            release.set()
            await resolver.wait()

        asyncio.run(scenario())
        assert calls == ["slow", "fast"]
        assert resolver.destination.resolved_identity == fast_identity
        assert [p.login for p in published if p is not None] == ["fast"]


class TestCancel:
    def test_cancel_during_quiet_period_prevents_dispatch(self):
        lookup = RecordingLookup({"octocat": make_identity()})
        resolver = _resolver(lookup)

        async def scenario():
            resolver.update("octocat")
            resolver.cancel()
            await resolver.wait()
            await asyncio.sleep(DEBOUNCE * 2)

        asyncio.run(scenario())
        assert lookup.calls == []
        assert resolver.status is ValidationStatus.IDLE

    def test_cancel_in_flight_discards_result(self):
        release = threading.Event()

        def lookup(name):
            release.wait(timeout=5)
            return make_identity(name)

        published = []
        resolver = _resolver(lookup, published)

        async def scenario():
            resolver.update("octocat")
            await _until(lambda: resolver.status is ValidationStatus.VALIDATING)
            resolver.cancel()
            release.set()
            await resolver.wait()

        asyncio.run(scenario())
        assert resolver.status is ValidationStatus.IDLE
        assert published == []

    def test_cancel_keeps_published_destination(self):
        resolver = _resolver(RecordingLookup({"octocat": make_identity()}))

        async def scenario():
            resolver.update("octocat")
            await resolver.wait()
            resolver.cancel()

        asyncio.run(scenario())
        assert resolver.destination.login == "octocat"

    def test_reset_forgets_everything(self):
        resolver = _resolver(RecordingLookup({"octocat": make_identity()}))

        async def scenario():
            resolver.update("octocat")
            await resolver.wait()

        asyncio.run(scenario())
        resolver.reset()
        assert resolver.destination is None
        assert resolver.raw_input == ""
        assert resolver.status is ValidationStatus.IDLE
