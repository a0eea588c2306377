"""
Pytest configuration file for the PillTracker test suite.

This file defines shared fixtures used across the test files:
- An encrypted store written to a temporary directory with a throwaway key,
  so tests never touch production data.
- A fixed clock, so "today" is always Monday 2024-01-01.
- Trackers for an administrator and for standard users.
"""
from datetime import datetime

import pytest
from cryptography.fernet import Fernet

from modules.clock import FixedClock
from modules.models import IdentityContext
from modules.store import EncryptedJsonStore
from modules.tracker import AdherenceTracker

ADMIN = "admin@x.com"
ALICE = "alice@x.com"
BOB = "bob@y.com"


@pytest.fixture
def encryptor():
    """Provides a Fernet instance with a fresh key for test isolation."""
    return Fernet(Fernet.generate_key())


@pytest.fixture
def data_file(tmp_path):
    return str(tmp_path / "records.json")


@pytest.fixture
def store(data_file, encryptor):
    """Provides an empty encrypted store in a temporary directory."""
    return EncryptedJsonStore(data_file, encryptor)


@pytest.fixture
def clock():
    """A clock fixed at 10:30 on 2024-01-01."""
    return FixedClock(datetime(2024, 1, 1, 10, 30))


@pytest.fixture
def aspirin(store):
    """Adds the twice-daily Aspirin medication to the store."""
    return store.upsert_medication({
        'name': 'Aspirin',
        'dosage': '100mg',
        'frequency': 2,
        'time_slots': ['09:00', '21:00'],
        'notes': '',
        'is_active': True,
    })


@pytest.fixture
def make_tracker(store, clock):
    """
    Provides a factory that builds and loads a tracker for an identity.

    Usage:
        tracker = make_tracker("alice@x.com")
        admin = make_tracker("admin@x.com", is_admin=True)
    """
    def _make(identity, is_admin=False):
        tracker = AdherenceTracker(store, IdentityContext(identity, is_admin), clock)
        assert tracker.load().ok
        return tracker

    return _make


@pytest.fixture
def admin_tracker(make_tracker, aspirin):
    return make_tracker(ADMIN, is_admin=True)


@pytest.fixture
def alice_tracker(make_tracker, aspirin):
    return make_tracker(ALICE)
