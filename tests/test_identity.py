"""Tests for identity module."""

import pytest
import responses

from ReMove.errors import AuthenticationFailed, TransportError
from ReMove.identity import IdentityValidator
from ReMove.providers.github import GitHubProvider
from ReMove.validation_cache import ValidationCache

from fakes import FakeClock, FakeHost, make_identity, transport_error


def _validator(host, store, cache=None):
    return IdentityValidator(lambda token: host, store, cache)


class TestAuthenticate:
    def test_success_persists_identity(self, host, store):
        validator = _validator(host, store)
        identity = validator.authenticate("  ghp_good  ")
        assert identity == host.identity
        assert store.load() == ("ghp_good", host.identity)
        assert validator.provider is host

    def test_identity_failure_raises_and_leaves_store_empty(self, host, store):
        host.errors["identity"] = AuthenticationFailed()
        with pytest.raises(AuthenticationFailed):
            _validator(host, store).authenticate("ghp_bad")
        assert store.load() is None

    def test_probe_failure_is_atomic(self, host, store):
        host.errors["rate_limit"] = transport_error()
        validator = _validator(host, store)
        with pytest.raises(AuthenticationFailed):
            validator.authenticate("ghp_noscope")
        assert store.load() is None
        assert validator.provider is None

    def test_failure_rolls_back_previous_credentials(self, host, store):
        store.save("ghp_old", make_identity("previous"))
        host.errors["identity"] = transport_error()
        with pytest.raises(AuthenticationFailed):
            _validator(host, store).authenticate("ghp_new")
        assert store.load() is None

    def test_blank_token_rejected_without_calls(self, host, store):
        with pytest.raises(AuthenticationFailed):
            _validator(host, store).authenticate("   ")
        assert host.calls == []


class TestCheckLiveness:
    def test_live_token(self, host, store):
        validator = _validator(host, store)
        assert validator.check_liveness("ghp_ok") is True
        assert validator.provider is host

    def test_rejected_token_returns_false(self, host, store):
        host.errors["rate_limit"] = AuthenticationFailed()
        assert _validator(host, store).check_liveness("ghp_revoked") is False

    def test_transport_failure_returns_false(self, host, store):
        host.errors["rate_limit"] = transport_error()
        assert _validator(host, store).check_liveness("ghp_ok") is False

    def test_empty_token(self, host, store):
        assert _validator(host, store).check_liveness("") is False

    @responses.activate
    def test_non_json_reply_returns_false(self, store):
        responses.add(
            responses.GET,
            "https://api.github.com/rate_limit",
            body="<html>proxy</html>",
            status=200,
            content_type="text/html",
        )
        validator = IdentityValidator(lambda token: GitHubProvider(token=token), store)
        assert validator.check_liveness("ghp_ok") is False
        assert validator.provider is None


class TestLookupAccount:
    def _ready(self, store, clock=None, **accounts):
        host = FakeHost(accounts=accounts)
        cache = ValidationCache(clock=clock) if clock else None
        validator = _validator(host, store, cache)
        validator.authenticate("ghp_ok")
        return host, validator

    def test_found(self, store):
        acme = make_identity("Acme", 9, org=True)
        host, validator = self._ready(store, acme=acme)
        assert validator.lookup_account("acme") == acme

    def test_not_found_is_none(self, store):
        host, validator = self._ready(store)
        assert validator.lookup_account("ghost") is None

    def test_blank_name_no_call(self, store):
        host, validator = self._ready(store)
        assert validator.lookup_account("  ") is None
        assert host.calls_named("lookup") == []

    def test_cached_case_insensitively_until_ttl(self, store):
        clock = FakeClock()
        acme = make_identity("Acme", 9, org=True)
        host, validator = self._ready(store, clock=clock, acme=acme)

        validator.lookup_account("Acme")
        validator.lookup_account("ACME")
        assert len(host.calls_named("lookup")) == 1

        clock.advance(300 + 1)
        validator.lookup_account("acme")
        assert len(host.calls_named("lookup")) == 2

    def test_negative_result_cached(self, store):
        host, validator = self._ready(store)
        validator.lookup_account("ghost")
        validator.lookup_account("Ghost")
        assert len(host.calls_named("lookup")) == 1

    def test_transport_failure_propagates_and_is_not_cached(self, store):
        acme = make_identity("Acme", 9, org=True)
        host, validator = self._ready(store, acme=acme)
        host.errors["lookup"] = transport_error()
        with pytest.raises(TransportError):
            validator.lookup_account("acme")
        del host.errors["lookup"]
        assert validator.lookup_account("acme") == acme

    def test_requires_authentication(self, store):
        validator = _validator(FakeHost(), store)
        with pytest.raises(AuthenticationFailed):
            validator.lookup_account("acme")
