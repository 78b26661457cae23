import random

import pytest

from vaultus.core import (
    PRECISION,
    AssetLedger,
    Deposited,
    EmergencyWithdrawal,
    InsufficientBalance,
    InsufficientFunds,
    InvalidConfig,
    InvalidRateConfig,
    ManualClock,
    NoDeposit,
    Paused,
    RateChanged,
    ReentrantCall,
    Unauthorized,
    ZeroAddress,
    ZeroAmount,
)
from vaultus.pool import Pool, RateModel

from conftest import OWNER, USDC


@pytest.mark.parametrize(
    ("base", "slope", "optimal", "error"),
    [
        (6_000, 4_001, 1, InvalidRateConfig),
        (-1, 100, 1, InvalidRateConfig),
        (100, -1, 1, InvalidRateConfig),
        (100, 100, 0, InvalidConfig),
    ],
)
def test_rate_model_rejects_bad_parameters(base: int, slope: int, optimal: int, error: type) -> None:
    with pytest.raises(error):
        RateModel(base, slope, optimal)


def test_rate_model_full_range_allowed() -> None:
    model = RateModel(2_000, 8_000, 100)
    assert model.rate(0) == 2_000
    assert model.rate(10**9) == 10_000


def test_rate_is_linear_until_optimal_then_capped() -> None:
    model = RateModel(300, 1_000, 10_000 * USDC)
    assert model.rate(0) == 300
    assert model.rate(1_000 * USDC) == 400
    assert model.rate(5_000 * USDC) == 800
    assert model.rate(10_000 * USDC) == 1_300
    assert model.rate(50_000 * USDC) == 1_300
    assert model.utilization(20_000 * USDC) == PRECISION


@pytest.mark.parametrize("seed", [1, 2, 3])
def test_rate_monotone_and_bounded(seed: int) -> None:
    rng = random.Random(seed)
    base = rng.randrange(0, 5_000)
    slope = rng.randrange(0, 10_000 - base + 1)
    model = RateModel(base, slope, rng.randrange(1, 10**12))
    totals = sorted(rng.randrange(0, 10**13) for _ in range(200))
    rates = [model.rate(t) for t in totals]
    assert rates == sorted(rates)
    assert all(base <= r <= base + slope <= 10_000 for r in rates)


def test_pool_requires_addresses(ledger: AssetLedger) -> None:
    with pytest.raises(ZeroAddress):
        Pool("", ledger, owner=OWNER, base_rate=1, slope=1, optimal_deposits=1)


def test_deposit_updates_balances_and_emits_rate_change(pool_a: Pool, ledger: AssetLedger, clock: ManualClock) -> None:
    pool_a.deposit("alice", 1_000 * USDC)

    assert pool_a.get_deposit("alice") == 1_000 * USDC
    assert pool_a.get_total_deposits() == 1_000 * USDC
    assert pool_a.get_deposit_timestamp("alice") == clock()
    assert ledger.balance_of("pool-a") == 1_000 * USDC
    assert pool_a.get_rate() == 400

    deposited, changed = pool_a.log.tail(2)
    assert isinstance(deposited, Deposited) and deposited.amount == 1_000 * USDC
    assert isinstance(changed, RateChanged)
    assert (changed.old_rate, changed.new_rate) == (300, 400)


def test_zero_deposit_rejected(pool_a: Pool) -> None:
    with pytest.raises(ZeroAmount):
        pool_a.deposit("alice", 0)
    assert len(pool_a.log) == 0


def test_withdraw_more_than_balance_rejected(pool_a: Pool) -> None:
    pool_a.deposit("alice", 10 * USDC)
    with pytest.raises(InsufficientBalance):
        pool_a.withdraw("alice", 11 * USDC)
    assert pool_a.get_deposit("alice") == 10 * USDC


def test_withdraw_returns_funds_and_lowers_rate(pool_a: Pool, ledger: AssetLedger) -> None:
    before = ledger.balance_of("alice")
    pool_a.deposit("alice", 5_000 * USDC)
    pool_a.withdraw("alice", 2_000 * USDC)

    assert ledger.balance_of("alice") == before - 3_000 * USDC
    last = pool_a.log.of_type(RateChanged)[-1]
    assert (last.old_rate, last.new_rate) == (800, 600)


def test_withdraw_all_requires_deposit(pool_a: Pool) -> None:
    with pytest.raises(NoDeposit):
        pool_a.withdraw_all("alice")
    pool_a.deposit("alice", 7 * USDC)
    assert pool_a.withdraw_all("alice") == 7 * USDC
    assert pool_a.get_deposit("alice") == 0
    assert pool_a.get_total_deposits() == 0


def test_pause_blocks_entrypoints_but_not_emergency(pool_a: Pool, ledger: AssetLedger) -> None:
    pool_a.deposit("alice", 50 * USDC)
    pool_a.pause(OWNER)
    assert pool_a.is_paused()

    with pytest.raises(Paused):
        pool_a.deposit("alice", 1)
    with pytest.raises(Paused):
        pool_a.withdraw("alice", 1)
    with pytest.raises(Paused):
        pool_a.withdraw_all("alice")

    before = ledger.balance_of("alice")
    assert pool_a.emergency_withdraw("alice") == 50 * USDC
    assert ledger.balance_of("alice") == before + 50 * USDC
    assert isinstance(pool_a.log.tail(2)[0], EmergencyWithdrawal)

    pool_a.unpause(OWNER)
    pool_a.deposit("alice", 1)


def test_emergency_withdraw_requires_deposit(pool_a: Pool) -> None:
    with pytest.raises(NoDeposit):
        pool_a.emergency_withdraw("alice")


def test_pause_is_owner_only(pool_a: Pool) -> None:
    with pytest.raises(Unauthorized):
        pool_a.pause("alice")
    with pytest.raises(Unauthorized):
        pool_a.unpause("alice")
    assert not pool_a.is_paused()


def test_listeners_receive_events_until_unsubscribed(pool_a: Pool) -> None:
    seen = []
    pool_a.subscribe(seen.append)
    pool_a.deposit("alice", USDC)
    pool_a.unsubscribe(seen.append)
    pool_a.deposit("alice", USDC)

    assert [type(e).__name__ for e in seen] == ["Deposited", "RateChanged"]


def test_reentrant_withdraw_rejected(pool_a: Pool, ledger: AssetLedger) -> None:
    pool_a.deposit("alice", 100 * USDC)
    rejected: list[ReentrantCall] = []

    def reenter(sender: str, recipient: str, amount: int) -> None:
        if sender == "pool-a":
            try:
                pool_a.withdraw("alice", USDC)
            except ReentrantCall as exc:
                rejected.append(exc)

    ledger.add_hook(reenter)
    pool_a.withdraw("alice", 10 * USDC)
    ledger.remove_hook(reenter)

    assert len(rejected) == 1
    assert pool_a.get_deposit("alice") == 90 * USDC
    assert pool_a.get_total_deposits() == ledger.balance_of("pool-a")


@pytest.mark.parametrize("seed", [11, 12, 13, 14])
def test_total_deposits_match_balances_for_random_sequences(pool_b: Pool, seed: int) -> None:
    rng = random.Random(seed)
    users = ["alice", "bob", "carol"]
    for _ in range(150):
        user = rng.choice(users)
        action = rng.choice(["deposit", "withdraw", "withdraw_all"])
        try:
            if action == "deposit":
                pool_b.deposit(user, rng.randrange(0, 3_000 * USDC))
            elif action == "withdraw":
                pool_b.withdraw(user, rng.randrange(0, 3_000 * USDC))
            else:
                pool_b.withdraw_all(user)
        except (ZeroAmount, InsufficientBalance, InsufficientFunds, NoDeposit):
            pass
        assert pool_b.get_total_deposits() == sum(pool_b.balances.values())
        assert 500 <= pool_b.get_rate() <= 2_000
