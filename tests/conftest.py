"""
Pytest configuration and fixtures for Astro Sale tests.
"""

import pytest

from sale.access import CallContext
from sale.clock import ManualClock
from sale.engine import SaleEngine
from sale.schema import CollectionConfig

OWNER = "0x" + "a1" * 20
BUYER = "0x" + "b2" * 20
OTHER_BUYER = "0x" + "c3" * 20
PAYEE = "0x70997970c51812dc3a010c7d01b50e0d17dc79c8"

CONTRACT_URI = "ipfs-contract-metadata"
HIDDEN_URI = "https://hidden.json"
ROYALTY_BPS = 750
UNIT_PRICE = 80000000000000000


@pytest.fixture
def clock():
    """Manually driven clock."""
    return ManualClock(start=1_700_000_000)


@pytest.fixture
def owner_ctx():
    return CallContext(OWNER)


@pytest.fixture
def buyer_ctx():
    return CallContext(BUYER)


@pytest.fixture
def other_ctx():
    return CallContext(OTHER_BUYER)


@pytest.fixture
def collection_config():
    """Configuration matching the original deployment."""
    return CollectionConfig(
        contract_uri=CONTRACT_URI,
        hidden_metadata_uri=HIDDEN_URI,
        payee_address=PAYEE,
        royalty_fee_bps=ROYALTY_BPS,
    )


@pytest.fixture
def engine(collection_config, clock):
    """Sale engine with the default 10000 supply collection."""
    return SaleEngine(collection_config, OWNER, clock=clock)


@pytest.fixture
def small_engine(clock):
    """Sale engine with a small supply and cheap tokens."""
    config = CollectionConfig(
        max_supply=10,
        max_purchase_per_transaction=4,
        unit_price=100,
        contract_uri=CONTRACT_URI,
        hidden_metadata_uri=HIDDEN_URI,
        payee_address=PAYEE,
        royalty_fee_bps=ROYALTY_BPS,
    )
    return SaleEngine(config, OWNER, clock=clock)


def pytest_collection_modifyitems(config, items):
    """Add markers based on test file paths."""
    for item in items:
        if "unit" in str(item.fspath):
            item.add_marker(pytest.mark.unit)
        elif "integration" in str(item.fspath):
            item.add_marker(pytest.mark.integration)

        if "slow" in item.name or "sold_out" in item.name:
            item.add_marker(pytest.mark.slow)
