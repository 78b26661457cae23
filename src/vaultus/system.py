"""Wire ledger, pools, engine, relay monitor and delivery channel together."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from .config import SystemConfig
from .core import AssetLedger, EventLog, ManualClock
from .engine import AllocationEngine
from .pool import Pool
from .relay import DeliveryChannel, RelayMonitor

logger = logging.getLogger(__name__)

OWNER = "owner"
POOL_A = "pool-a"
POOL_B = "pool-b"
ENGINE = "engine"
MONITOR = "relay-monitor"
RELAY_IDENTITY = "relay"


@dataclass
class System:
    """A fully connected control loop sharing one clock and one event log."""

    clock: ManualClock
    ledger: AssetLedger
    pool_a: Pool
    pool_b: Pool
    engine: AllocationEngine
    channel: DeliveryChannel
    monitor: RelayMonitor
    events: EventLog

    def fund(self, user: str, amount: int) -> None:
        self.ledger.mint(user, amount)

    def settle(self, limit: int | None = None) -> int:
        """Deliver every pending relay payload.

        Returns how many payloads the destination accepted; dropped envelopes
        are consumed but not counted.
        """

        before = self.channel.delivered
        self.channel.drain(limit)
        return self.channel.delivered - before

    def advance(self, seconds: int) -> int:
        return self.clock.advance(seconds)


def build_system(config: SystemConfig | None = None, *, clock: ManualClock | None = None) -> System:
    cfg = config or SystemConfig.default()
    clock = clock or ManualClock(cfg.start_time)
    events = EventLog()
    ledger = AssetLedger()

    pools = []
    for address, pool_cfg in ((POOL_A, cfg.pool_a), (POOL_B, cfg.pool_b)):
        pool = Pool(
            address,
            ledger,
            owner=OWNER,
            base_rate=pool_cfg.base_rate,
            slope=pool_cfg.slope,
            optimal_deposits=pool_cfg.optimal_deposits,
            clock=clock,
            log=events,
        )
        if pool_cfg.paused:
            pool.pause(OWNER)
        pools.append(pool)
    pool_a, pool_b = pools

    engine = AllocationEngine(
        ENGINE,
        ledger,
        pool_a,
        pool_b,
        owner=OWNER,
        authorized_caller=RELAY_IDENTITY,
        rebalance_threshold=cfg.engine.rebalance_threshold,
        min_rebalance_interval=cfg.engine.min_rebalance_interval,
        clock=clock,
        log=events,
    )
    channel = DeliveryChannel(
        RELAY_IDENTITY,
        duplicate_rate=cfg.relay.duplicate_rate,
        reorder=cfg.relay.reorder,
        seed=cfg.relay.seed,
    )
    channel.register(engine.address, engine.update_rate)
    monitor = RelayMonitor(
        MONITOR,
        pool_a,
        pool_b,
        destination=engine.address,
        channel=channel,
        owner=OWNER,
        threshold=cfg.relay.threshold,
        gas_budget=cfg.relay.gas_budget,
        clock=clock,
        log=events,
    )
    monitor.subscribe(OWNER)
    logger.debug("Built system: %s, %s, engine=%s", pool_a, pool_b, engine.address)

    return System(
        clock=clock,
        ledger=ledger,
        pool_a=pool_a,
        pool_b=pool_b,
        engine=engine,
        channel=channel,
        monitor=monitor,
        events=events,
    )


__all__ = [
    "ENGINE",
    "MONITOR",
    "OWNER",
    "POOL_A",
    "POOL_B",
    "RELAY_IDENTITY",
    "System",
    "build_system",
]
