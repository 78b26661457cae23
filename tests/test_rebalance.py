import pytest

from vaultus.core import (
    InvalidPool,
    ManualClock,
    NoFundsToRebalance,
    Paused,
    RateKnowledge,
    RateUpdated,
    Rebalanced,
    RebalanceTooSoon,
    Unauthorized,
)
from vaultus.engine import AllocationEngine
from vaultus.pool import Pool

from conftest import OWNER, RELAY, USDC


@pytest.fixture
def funded(engine: AllocationEngine) -> AllocationEngine:
    engine.deposit("alice", 1_000 * USDC)
    assert engine.get_allocations() == (0, 1_000 * USDC)
    return engine


def _rebalances(engine: AllocationEngine) -> list[Rebalanced]:
    return engine.log.of_type(Rebalanced)


def test_rate_updates_walk_the_knowledge_states(engine: AllocationEngine) -> None:
    assert engine.rate_knowledge is RateKnowledge.NO_DATA
    engine.update_rate(RELAY, "pool-a", 400)
    assert engine.rate_knowledge is RateKnowledge.SINGLE_SIDE_KNOWN
    engine.update_rate(RELAY, "pool-b", 650)
    assert engine.rate_knowledge is RateKnowledge.BOTH_KNOWN
    assert engine.get_pool_rates() == (400, 650)
    assert [e.pool for e in engine.log.of_type(RateUpdated)] == ["pool-a", "pool-b"]


def test_update_from_unknown_sender_is_rejected(funded: AllocationEngine) -> None:
    with pytest.raises(Unauthorized):
        funded.update_rate("mallory", "pool-a", 900)
    assert funded.get_pool_rates() == (0, 0)
    assert funded.log.of_type(RateUpdated) == []


def test_update_for_unknown_pool_is_rejected(funded: AllocationEngine) -> None:
    with pytest.raises(InvalidPool):
        funded.update_rate(RELAY, "pool-z", 900)
    assert funded.get_pool_rates() == (0, 0)


def test_single_known_side_never_rebalances(funded: AllocationEngine) -> None:
    assert funded.update_rate(RELAY, "pool-a", 5_000) is None
    assert funded.get_allocations() == (0, 1_000 * USDC)


def test_scenario_moves_everything_to_the_better_pool(funded: AllocationEngine, clock: ManualClock) -> None:
    assert funded.update_rate(RELAY, "pool-a", 1_000) is None
    clock.advance(funded.min_rebalance_interval)
    event = funded.update_rate(RELAY, "pool-b", 200)

    assert isinstance(event, Rebalanced)
    assert (event.from_pool, event.to_pool, event.amount) == ("pool-b", "pool-a", 1_000 * USDC)
    assert funded.get_allocations() == (1_000 * USDC, 0)
    assert funded.pool_a.get_deposit("engine") == 1_000 * USDC
    assert funded.pool_b.get_deposit("engine") == 0
    assert funded.last_rebalance_time == clock()


def test_difference_below_threshold_is_ignored(funded: AllocationEngine) -> None:
    funded.update_rate(RELAY, "pool-b", 650)
    assert funded.update_rate(RELAY, "pool-a", 749) is None
    assert funded.get_allocations() == (0, 1_000 * USDC)
    assert funded.update_rate(RELAY, "pool-a", 750) is not None


def test_equal_rates_do_not_move_funds(funded: AllocationEngine) -> None:
    funded.set_rebalance_threshold(OWNER, 0)
    funded.update_rate(RELAY, "pool-a", 650)
    assert funded.update_rate(RELAY, "pool-b", 650) is None
    assert funded.get_allocations() == (0, 1_000 * USDC)


def test_lower_rate_side_without_funds_is_skipped(funded: AllocationEngine) -> None:
    funded.update_rate(RELAY, "pool-a", 100)
    assert funded.update_rate(RELAY, "pool-b", 900) is None
    assert _rebalances(funded) == []


def test_repeated_identical_update_rebalances_at_most_once(funded: AllocationEngine, clock: ManualClock) -> None:
    funded.set_min_rebalance_interval(OWNER, 0)
    funded.update_rate(RELAY, "pool-a", 1_000)
    first = funded.update_rate(RELAY, "pool-b", 200)
    second = funded.update_rate(RELAY, "pool-b", 200)
    clock.advance(10_000)
    third = funded.update_rate(RELAY, "pool-b", 200)

    assert first is not None
    assert second is None and third is None
    assert funded.get_pool_rates() == (1_000, 200)
    assert len(_rebalances(funded)) == 1


def test_update_order_between_pools_does_not_matter(engine: AllocationEngine) -> None:
    engine.deposit("alice", 1_000 * USDC)
    engine.update_rate(RELAY, "pool-b", 200)
    engine.update_rate(RELAY, "pool-a", 1_000)
    assert engine.get_allocations() == (1_000 * USDC, 0)


def test_eligible_updates_within_interval_execute_once(funded: AllocationEngine, clock: ManualClock) -> None:
    funded.update_rate(RELAY, "pool-a", 1_000)
    assert funded.update_rate(RELAY, "pool-b", 200) is not None
    funded.deposit("bob", 400 * USDC)  # live rates: A 400, B 500
    assert funded.get_allocations() == (1_000 * USDC, 400 * USDC)

    clock.advance(funded.min_rebalance_interval - 1)
    assert funded.update_rate(RELAY, "pool-b", 2_000) is None
    assert funded.update_rate(RELAY, "pool-b", 2_000) is None
    assert len(_rebalances(funded)) == 1

    clock.advance(1)
    event = funded.update_rate(RELAY, "pool-b", 2_000)
    assert event is not None and event.amount == 1_000 * USDC
    assert funded.get_allocations() == (0, 1_400 * USDC)


def test_automatic_check_skips_while_engine_paused(funded: AllocationEngine) -> None:
    funded.pause(OWNER)
    funded.update_rate(RELAY, "pool-a", 1_000)
    assert funded.update_rate(RELAY, "pool-b", 200) is None
    assert funded.get_pool_rates() == (1_000, 200)
    funded.unpause(OWNER)
    assert funded.update_rate(RELAY, "pool-b", 200) is not None


def test_automatic_check_skips_paused_pool(
    funded: AllocationEngine, pool_a: Pool, caplog: pytest.LogCaptureFixture
) -> None:
    pool_a.pause(OWNER)
    funded.update_rate(RELAY, "pool-a", 1_000)
    with caplog.at_level("INFO", logger="vaultus.engine"):
        assert funded.update_rate(RELAY, "pool-b", 200) is None
    assert any("pool paused" in rec.message for rec in caplog.records)
    assert funded.get_allocations() == (0, 1_000 * USDC)


def test_rebalance_logs_execution(funded: AllocationEngine, caplog: pytest.LogCaptureFixture) -> None:
    funded.update_rate(RELAY, "pool-a", 1_000)
    with caplog.at_level("INFO", logger="vaultus.engine"):
        funded.update_rate(RELAY, "pool-b", 200)
    assert any(rec.message.startswith("Rebalanced") for rec in caplog.records)


# -----------------
# Manual rebalance
# -----------------


def test_manual_rebalance_moves_position(funded: AllocationEngine) -> None:
    event = funded.rebalance(RELAY, "pool-b", "pool-a")
    assert event.amount == 1_000 * USDC
    assert funded.get_allocations() == (1_000 * USDC, 0)


def test_manual_rebalance_requires_relay_sender(funded: AllocationEngine) -> None:
    with pytest.raises(Unauthorized):
        funded.rebalance(OWNER, "pool-b", "pool-a")


@pytest.mark.parametrize(("src", "dst"), [("pool-a", "pool-a"), ("pool-x", "pool-a"), ("pool-b", "pool-y")])
def test_manual_rebalance_rejects_bad_pools(funded: AllocationEngine, src: str, dst: str) -> None:
    with pytest.raises(InvalidPool):
        funded.rebalance(RELAY, src, dst)


def test_manual_rebalance_too_soon_is_an_error(funded: AllocationEngine, clock: ManualClock) -> None:
    funded.rebalance(RELAY, "pool-b", "pool-a")
    clock.advance(10)
    with pytest.raises(RebalanceTooSoon):
        funded.rebalance(RELAY, "pool-a", "pool-b")
    assert funded.get_allocations() == (1_000 * USDC, 0)


def test_manual_rebalance_from_empty_side_fails(funded: AllocationEngine) -> None:
    with pytest.raises(NoFundsToRebalance):
        funded.rebalance(RELAY, "pool-a", "pool-b")


def test_manual_rebalance_refused_when_paused(funded: AllocationEngine, pool_a: Pool) -> None:
    pool_a.pause(OWNER)
    with pytest.raises(Paused):
        funded.rebalance(RELAY, "pool-b", "pool-a")
    pool_a.unpause(OWNER)
    funded.pause(OWNER)
    with pytest.raises(Paused):
        funded.rebalance(RELAY, "pool-b", "pool-a")
    assert funded.get_allocations() == (0, 1_000 * USDC)
