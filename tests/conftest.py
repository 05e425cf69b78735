"""Shared fixtures: a fresh ledger per test, a controllable clock and an API client."""

import pytest
from fastapi.testclient import TestClient

from patentchain.dependencies import get_ledger
from patentchain.ledger import Ledger
from patentchain.main import app
from patentchain.models.asset_models import AssetMetadata
from patentchain.routers.auth import get_current_active_user
from patentchain.services.payout_service import InMemoryPayoutGateway

ADMIN = "0x1000000000000000000000000000000000000001"
ALICE = "0x2000000000000000000000000000000000000002"
BOB = "0x3000000000000000000000000000000000000003"
CAROL = "0x4000000000000000000000000000000000000004"

ETHER = 10**18
DAY = 86400
START_TIME = 1_700_000_000


class FakeClock:
    def __init__(self, now: int = START_TIME):
        self.now = now

    def __call__(self) -> int:
        return self.now

    def advance(self, seconds: int) -> None:
        self.now += seconds


def patent_metadata(to: str = ALICE, royalty_bps: int = 500, **overrides) -> AssetMetadata:
    fields = dict(
        to=to,
        asset_number="US-2023-TEST001",
        title="Test Patent System",
        creator_name="Test Inventor",
        filed_at=START_TIME - 30 * DAY,
        granted_at=START_TIME,
        royalty_bps=royalty_bps,
        token_uri="ipfs://test-patent-metadata",
    )
    fields.update(overrides)
    return AssetMetadata(**fields)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def gateway():
    return InMemoryPayoutGateway()


@pytest.fixture
def ledger(clock, gateway):
    return Ledger(administrator=ADMIN, gateway=gateway, clock=clock)


@pytest.fixture
def minted(ledger):
    """Asset #1 owned by ALICE with a 5% royalty."""
    ledger.registry.mint(ADMIN, 1, patent_metadata())
    return 1


class Caller:
    address = ALICE


@pytest.fixture
def caller():
    return Caller()


@pytest.fixture
def client(ledger, caller):
    """TestClient bound to the test ledger; set ``caller.address`` to switch identity."""
    app.dependency_overrides[get_ledger] = lambda: ledger
    app.dependency_overrides[get_current_active_user] = lambda: caller.address
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
