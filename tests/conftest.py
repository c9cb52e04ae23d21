"""Pytest fixtures for creature registry tests.

Randomness and block height are replaced by deterministic fakes
(tests/testing_utils.py) so that DNA, gender and identifiers are
reproducible.
"""

from __future__ import annotations

import pytest
from dotenv import load_dotenv

from src.creatures.genetics import GeneticsEngine
from src.creatures.ledger import Ledger
from src.creatures.lifecycle import LifecycleService
from src.creatures.storage import StorageContext
from tests.testing_utils import CountingRandomness, FixedHeight, RecordingSink

# Load environment variables from .env before any tests run
load_dotenv()


@pytest.fixture
def height() -> FixedHeight:
    return FixedHeight(1)


@pytest.fixture
def randomness() -> CountingRandomness:
    return CountingRandomness()


@pytest.fixture
def genetics(randomness: CountingRandomness, height: FixedHeight) -> GeneticsEngine:
    return GeneticsEngine(randomness, height)


@pytest.fixture
def storage() -> StorageContext:
    """Storage where each account can own up to five creatures."""
    return StorageContext(max_owned=5)


@pytest.fixture
def sink() -> RecordingSink:
    return RecordingSink()


@pytest.fixture
def ledger() -> Ledger:
    """Ledger with alice (100 scrip) and bob (200 scrip)."""
    ledger = Ledger()
    ledger.create_account("alice", starting_scrip=100)
    ledger.create_account("bob", starting_scrip=200)
    return ledger


@pytest.fixture
def service(
    storage: StorageContext,
    genetics: GeneticsEngine,
    ledger: Ledger,
    sink: RecordingSink,
) -> LifecycleService:
    """Fully wired service with deterministic collaborators."""
    return LifecycleService(storage, genetics, currency=ledger, events=sink)
