"""Share-accounted allocation engine spreading pooled deposits over two pools.

Depositors receive shares representing a proportional claim on everything the
engine holds: the asset sitting idle on its own ledger account plus what it
has placed in pool A and pool B.  New deposits are routed to whichever pool
currently pays more.  Rate updates relayed from the pools feed a rebalance
check that moves the entire position from the lower-yielding pool to the
higher-yielding one, subject to a rate-difference threshold and a minimum
interval between moves.

Rate updates arrive over an at-least-once channel with no ordering between
the two pools, so :meth:`AllocationEngine.update_rate` only ever overwrites the
last known rate for one side and re-evaluates the decision from scratch.
"""

from __future__ import annotations

import logging

from .core import (
    SHARE_PRECISION,
    AssetLedger,
    Clock,
    EmergencyWithdrawal,
    Event,
    EventLog,
    InsufficientBalance,
    InvalidConfig,
    InvalidPool,
    NoFundsToRebalance,
    ParameterChanged,
    Paused,
    PausedToggled,
    PoolSlot,
    RateKnowledge,
    RateUpdated,
    Rebalanced,
    RebalanceTooSoon,
    VaultDeposited,
    VaultWithdrawn,
    ZeroAddress,
    ZeroAmount,
    wall_clock,
)
from .guards import Serialized, authenticated, entrypoint, require_owner
from .pool import Pool

logger = logging.getLogger(__name__)


class AllocationEngine(Serialized):
    """User-facing vault bound to exactly two pools and one asset."""

    def __init__(
        self,
        address: str,
        ledger: AssetLedger,
        pool_a: Pool,
        pool_b: Pool,
        *,
        owner: str,
        authorized_caller: str,
        rebalance_threshold: int = 100,
        min_rebalance_interval: int = 3600,
        clock: Clock | None = None,
        log: EventLog | None = None,
    ) -> None:
        super().__init__()
        if not address or not owner or not authorized_caller:
            raise ZeroAddress("engine, owner and authorized caller addresses must be non-empty")
        if pool_a is pool_b or pool_a.address == pool_b.address:
            raise InvalidConfig("pool A and pool B must be distinct")
        if pool_a.ledger is not ledger or pool_b.ledger is not ledger:
            raise InvalidConfig("both pools must hold the engine's asset")
        if rebalance_threshold < 0 or min_rebalance_interval < 0:
            raise InvalidConfig("threshold and interval must be non-negative")

        self.address = address
        self.ledger = ledger
        self.owner = owner
        self.authorized_caller = authorized_caller
        self.pools: dict[PoolSlot, Pool] = {PoolSlot.A: pool_a, PoolSlot.B: pool_b}
        self.clock = clock or wall_clock
        self.log = log if log is not None else EventLog()

        self.total_shares = 0
        self.shares: dict[str, int] = {}
        self.allocations: dict[PoolSlot, int] = {PoolSlot.A: 0, PoolSlot.B: 0}
        self.last_rates: dict[PoolSlot, int] = {PoolSlot.A: 0, PoolSlot.B: 0}
        self.rebalance_threshold = rebalance_threshold
        self.min_rebalance_interval = min_rebalance_interval
        self.last_rebalance_time = 0
        self.paused = False

    # -----------------
    # Views
    # -----------------

    @property
    def pool_a(self) -> Pool:
        return self.pools[PoolSlot.A]

    @property
    def pool_b(self) -> Pool:
        return self.pools[PoolSlot.B]

    @property
    def allocation_a(self) -> int:
        return self.allocations[PoolSlot.A]

    @property
    def allocation_b(self) -> int:
        return self.allocations[PoolSlot.B]

    @property
    def last_rate_a(self) -> int:
        return self.last_rates[PoolSlot.A]

    @property
    def last_rate_b(self) -> int:
        return self.last_rates[PoolSlot.B]

    @property
    def rate_knowledge(self) -> RateKnowledge:
        return RateKnowledge.from_rates(self.last_rate_a, self.last_rate_b)

    def slot_of(self, pool: str) -> PoolSlot:
        """Resolve a pool address to its slot, raising :class:`InvalidPool` otherwise."""

        for slot, candidate in self.pools.items():
            if candidate.address == pool:
                return slot
        raise InvalidPool(f"{pool!r} is neither pool A nor pool B")

    def idle_balance(self) -> int:
        return self.ledger.balance_of(self.address)

    def total_assets(self) -> int:
        return self.idle_balance() + self.allocation_a + self.allocation_b

    get_total_assets = total_assets

    def shares_to_assets(self, shares: int) -> int:
        if self.total_shares == 0:
            return 0
        return shares * self.total_assets() // self.total_shares

    def assets_to_shares(self, amount: int) -> int:
        assets = self.total_assets()
        if self.total_shares == 0 or assets == 0:
            return amount * SHARE_PRECISION
        return amount * self.total_shares // assets

    def user_shares(self, user: str) -> int:
        return self.shares.get(user, 0)

    def get_user_balance(self, user: str) -> int:
        return self.shares_to_assets(self.user_shares(user))

    def get_allocations(self) -> tuple[int, int]:
        return self.allocation_a, self.allocation_b

    def get_pool_rates(self) -> tuple[int, int]:
        return self.last_rate_a, self.last_rate_b

    def is_paused(self) -> bool:
        return self.paused

    def _emit(self, event: Event) -> None:
        self.log.add(event)

    # -----------------
    # Depositor entrypoints
    # -----------------

    @entrypoint
    def deposit(self, caller: str, amount: int) -> int:
        """Pull ``amount`` from ``caller``, mint shares and place the funds.

        Returns the number of shares minted.
        """

        if amount <= 0:
            raise ZeroAmount("deposit amount must be positive")
        if self.paused:
            raise Paused("engine is paused")
        minted = self.assets_to_shares(amount)
        if minted == 0:
            raise ZeroAmount(f"deposit of {amount} is too small to mint a share")

        self.ledger.transfer(caller, self.address, amount)
        self.shares[caller] = self.user_shares(caller) + minted
        self.total_shares += minted

        target = self._deposit_target()
        if target is None:
            logger.warning("Both pools paused; %s of %s left idle", amount, caller)
            placed = "idle"
        else:
            self.pools[target].deposit(self.address, amount)
            self.allocations[target] += amount
            placed = self.pools[target].address

        self._emit(
            VaultDeposited(
                timestamp=self.clock(),
                emitter=self.address,
                account=caller,
                amount=amount,
                shares=minted,
                pool=placed,
            )
        )
        return minted

    def _deposit_target(self) -> PoolSlot | None:
        # Live rates decide placement; ties favour pool A.
        open_slots = [slot for slot, pool in self.pools.items() if not pool.is_paused()]
        if not open_slots:
            return None
        return max(open_slots, key=lambda slot: (self.pools[slot].get_rate(), slot is PoolSlot.A))

    @entrypoint
    def withdraw(self, caller: str, shares: int) -> int:
        """Burn ``shares`` and pay out their asset value; returns the amount paid."""

        if shares <= 0:
            raise ZeroAmount("shares to withdraw must be positive")
        held = self.user_shares(caller)
        if shares > held:
            raise InsufficientBalance(f"{caller} holds {held} shares, requested {shares}")

        amount = shares * self.total_assets() // self.total_shares
        plan = self._plan_withdrawal(amount)

        # Burn before any external transfer.
        self.shares[caller] = held - shares
        self.total_shares -= shares

        for slot, draw in plan.items():
            if draw:
                self.pools[slot].withdraw(self.address, draw)
                self.allocations[slot] -= draw

        # Bookkeeping is complete before the payout leaves the engine.
        self._emit(
            VaultWithdrawn(
                timestamp=self.clock(), emitter=self.address, account=caller, amount=amount, shares=shares
            )
        )
        self.ledger.transfer(self.address, caller, amount)
        return amount

    def _plan_withdrawal(self, amount: int) -> dict[PoolSlot, int]:
        """Split ``amount`` into pool draws after idle funds, pool A first."""

        remaining = amount - min(amount, self.idle_balance())
        plan: dict[PoolSlot, int] = {}
        for slot in (PoolSlot.A, PoolSlot.B):
            pool = self.pools[slot]
            available = min(self.allocations[slot], pool.get_deposit(self.address))
            draw = min(remaining, available)
            if draw and pool.is_paused():
                raise Paused(f"pool {pool.address} is paused; cannot draw {draw}")
            plan[slot] = draw
            remaining -= draw
        if remaining:
            raise InsufficientBalance(f"engine is short {remaining} to cover withdrawal of {amount}")
        return plan

    # -----------------
    # Relay entrypoints
    # -----------------

    @entrypoint
    @authenticated
    def update_rate(self, sender: str, pool: str, rate: int) -> Rebalanced | None:
        """Record the latest rate of ``pool`` and re-run the rebalance check.

        Safe to repeat and to interleave arbitrarily across the two pools.
        Returns the :class:`Rebalanced` event when a rebalance executed.
        """

        slot = self.slot_of(pool)
        if rate < 0:
            raise InvalidConfig(f"rate must be non-negative, got {rate}")
        self.last_rates[slot] = rate
        self._emit(RateUpdated(timestamp=self.clock(), emitter=self.address, pool=pool, rate=rate))
        return self._check_rebalance()

    def _check_rebalance(self) -> Rebalanced | None:
        if self.paused:
            logger.debug("Rebalance check skipped: engine paused")
            return None
        if self.rate_knowledge is not RateKnowledge.BOTH_KNOWN:
            logger.debug("Rebalance check skipped: rates %s", self.rate_knowledge.value)
            return None
        now = self.clock()
        if now < self.last_rebalance_time + self.min_rebalance_interval:
            logger.debug(
                "Rebalance check skipped: next window opens at %s",
                self.last_rebalance_time + self.min_rebalance_interval,
            )
            return None

        rate_a, rate_b = self.get_pool_rates()
        diff = abs(rate_a - rate_b)
        if diff == 0 or diff < self.rebalance_threshold:
            logger.debug("Rebalance check skipped: diff %s bps below threshold %s", diff, self.rebalance_threshold)
            return None

        target = PoolSlot.A if rate_a > rate_b else PoolSlot.B
        source = target.other
        if self._movable(source) == 0:
            logger.debug("Rebalance check skipped: nothing held in pool %s", source.value)
            return None
        if self.pools[source].is_paused() or self.pools[target].is_paused():
            logger.info("Rebalance %s -> %s skipped: pool paused", source.value, target.value)
            return None
        return self._execute_rebalance(source, target)

    @entrypoint
    @authenticated
    def rebalance(self, sender: str, from_pool: str, to_pool: str) -> Rebalanced:
        """Move the whole position from ``from_pool`` to ``to_pool``.

        Unlike the automatic check, every guard failure here is an error.
        """

        if from_pool == to_pool:
            raise InvalidPool("source and destination pools must differ")
        source = self.slot_of(from_pool)
        target = self.slot_of(to_pool)
        if self.paused:
            raise Paused("engine is paused")
        now = self.clock()
        if now < self.last_rebalance_time + self.min_rebalance_interval:
            raise RebalanceTooSoon(
                f"next rebalance allowed at {self.last_rebalance_time + self.min_rebalance_interval}, now {now}"
            )
        if self._movable(source) == 0:
            raise NoFundsToRebalance(f"nothing held in pool {from_pool}")
        for slot in (source, target):
            if self.pools[slot].is_paused():
                raise Paused(f"pool {self.pools[slot].address} is paused")
        return self._execute_rebalance(source, target)

    def _movable(self, slot: PoolSlot) -> int:
        if self.allocations[slot] == 0:
            return 0
        return self.pools[slot].get_deposit(self.address)

    def _execute_rebalance(self, source: PoolSlot, target: PoolSlot) -> Rebalanced:
        moved = self.pools[source].withdraw_all(self.address)
        self.pools[target].deposit(self.address, moved)
        self.allocations[source] = 0
        self.allocations[target] += moved
        self.last_rebalance_time = self.clock()

        event = Rebalanced(
            timestamp=self.last_rebalance_time,
            emitter=self.address,
            from_pool=self.pools[source].address,
            to_pool=self.pools[target].address,
            amount=moved,
        )
        self._emit(event)
        logger.info(
            "Rebalanced %s from %s to %s (rates A=%s B=%s)",
            moved,
            event.from_pool,
            event.to_pool,
            self.last_rate_a,
            self.last_rate_b,
        )
        return event

    # -----------------
    # Owner entrypoints
    # -----------------

    @entrypoint
    def pause(self, caller: str) -> None:
        require_owner(self.owner, caller)
        self._set_paused(True)

    @entrypoint
    def unpause(self, caller: str) -> None:
        require_owner(self.owner, caller)
        self._set_paused(False)

    def _set_paused(self, paused: bool) -> None:
        if self.paused == paused:
            return
        self.paused = paused
        logger.info("Engine %s %s", self.address, "paused" if paused else "unpaused")
        self._emit(PausedToggled(timestamp=self.clock(), emitter=self.address, paused=paused))

    @entrypoint
    def set_min_rebalance_interval(self, caller: str, value: int) -> None:
        require_owner(self.owner, caller)
        if value < 0:
            raise InvalidConfig("min_rebalance_interval must be non-negative")
        self._set_parameter("min_rebalance_interval", value)

    @entrypoint
    def set_rebalance_threshold(self, caller: str, value: int) -> None:
        require_owner(self.owner, caller)
        if value < 0:
            raise InvalidConfig("rebalance_threshold must be non-negative")
        self._set_parameter("rebalance_threshold", value)

    def _set_parameter(self, name: str, value: int) -> None:
        old = getattr(self, name)
        setattr(self, name, value)
        logger.info("Engine %s: %s %s -> %s", self.address, name, old, value)
        self._emit(
            ParameterChanged(
                timestamp=self.clock(), emitter=self.address, parameter=name, old_value=old, new_value=value
            )
        )

    @entrypoint
    def emergency_withdraw_all(self, caller: str) -> int:
        """Pull the full position out of both pools, bypassing pool pauses.

        Funds stay idle in the engine and remain claimable through
        :meth:`withdraw`.  Returns the amount recovered.
        """

        require_owner(self.owner, caller)
        recovered = 0
        for slot, pool in self.pools.items():
            if pool.get_deposit(self.address):
                recovered += pool.emergency_withdraw(self.address)
            self.allocations[slot] = 0
        logger.info("Emergency withdrawal recovered %s into %s", recovered, self.address)
        self._emit(
            EmergencyWithdrawal(timestamp=self.clock(), emitter=self.address, account=caller, amount=recovered)
        )
        return recovered


__all__ = ["AllocationEngine"]
