import keyring
import pytest

from ReMove import credential_store
from ReMove.credential_store import CredentialStore

from fakes import FakeHost, MemoryKeyring


@pytest.fixture
def memory_keyring(monkeypatch):
    backend = MemoryKeyring()
    previous = keyring.get_keyring()
    keyring.set_keyring(backend)
    monkeypatch.setattr(credential_store, "_AVAILABLE", True)
    yield backend
    keyring.set_keyring(previous)


@pytest.fixture
def store(memory_keyring):
    return CredentialStore("ReMove-test")


@pytest.fixture
def host():
    return FakeHost()
