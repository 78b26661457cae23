import sys
from pathlib import Path

import pytest

# Ensure the package is importable without installation when running tests locally
pkg_src = Path(__file__).resolve().parents[1] / "src"
if str(pkg_src) not in sys.path:
    sys.path.insert(0, str(pkg_src))

from vaultus.core import AssetLedger, EventLog, ManualClock  # noqa: E402
from vaultus.engine import AllocationEngine  # noqa: E402
from vaultus.pool import Pool  # noqa: E402

START = 1_700_000_000
USDC = 10**6
OWNER = "owner"
RELAY = "relay"


@pytest.fixture
def clock() -> ManualClock:
    return ManualClock(START)


@pytest.fixture
def ledger() -> AssetLedger:
    book = AssetLedger()
    for user in ("alice", "bob", "carol"):
        book.mint(user, 100_000 * USDC)
    return book


@pytest.fixture
def events() -> EventLog:
    return EventLog()


@pytest.fixture
def pool_a(ledger: AssetLedger, clock: ManualClock, events: EventLog) -> Pool:
    return Pool(
        "pool-a",
        ledger,
        owner=OWNER,
        base_rate=300,
        slope=1_000,
        optimal_deposits=10_000 * USDC,
        clock=clock,
        log=events,
    )


@pytest.fixture
def pool_b(ledger: AssetLedger, clock: ManualClock, events: EventLog) -> Pool:
    return Pool(
        "pool-b",
        ledger,
        owner=OWNER,
        base_rate=500,
        slope=1_500,
        optimal_deposits=10_000 * USDC,
        clock=clock,
        log=events,
    )


@pytest.fixture
def engine(
    ledger: AssetLedger, pool_a: Pool, pool_b: Pool, clock: ManualClock, events: EventLog
) -> AllocationEngine:
    return AllocationEngine(
        "engine",
        ledger,
        pool_a,
        pool_b,
        owner=OWNER,
        authorized_caller=RELAY,
        rebalance_threshold=100,
        min_rebalance_interval=3_600,
        clock=clock,
        log=events,
    )
