"""Tabular views of engine state and event history, plus CSV export."""

from __future__ import annotations

from pathlib import Path

import pandas as pd

from ..core import (
    ASSET_DECIMALS,
    PRECISION,
    Deposited,
    EmergencyWithdrawal,
    EventLog,
    PoolSlot,
    RateChanged,
    Withdrawn,
)
from ..engine import AllocationEngine

_SNAPSHOT_COLUMNS = [
    "slot",
    "address",
    "allocation",
    "last_rate",
    "live_rate",
    "utilization",
    "total_deposits",
    "paused",
]


def _ensure_outdir(outdir: str | Path) -> Path:
    p = Path(outdir)
    p.mkdir(parents=True, exist_ok=True)
    return p


def format_rate(bps: int | None) -> str:
    """Render basis points as a percentage with two decimals, e.g. ``"5.00"``."""

    if not bps:
        return "0.00"
    return f"{bps / 100:.2f}"


def format_amount(value: int | None, decimals: int = ASSET_DECIMALS) -> str:
    if not value:
        return "0.00"
    return f"{value / 10**decimals:,.2f}"


def effective_rate(engine: AllocationEngine) -> int:
    """Allocation-weighted rate of the engine's position in basis points.

    Each side uses its last relayed rate, falling back to the pool's live rate
    while the relayed rate is still unknown.  With nothing allocated the rate
    of pool B is reported.
    """

    rates = {
        slot: engine.last_rates[slot] or engine.pools[slot].get_rate() for slot in (PoolSlot.A, PoolSlot.B)
    }
    total = engine.allocation_a + engine.allocation_b
    if total == 0:
        return rates[PoolSlot.B]
    weighted = rates[PoolSlot.A] * engine.allocation_a + rates[PoolSlot.B] * engine.allocation_b
    return weighted // total


def engine_snapshot(engine: AllocationEngine) -> pd.DataFrame:
    """One row per pool describing where the engine's funds sit."""

    rows = []
    for slot, pool in engine.pools.items():
        rows.append(
            {
                "slot": slot.value,
                "address": pool.address,
                "allocation": engine.allocations[slot],
                "last_rate": engine.last_rates[slot],
                "live_rate": pool.get_rate(),
                "utilization": pool.get_utilization() / PRECISION,
                "total_deposits": pool.get_total_deposits(),
                "paused": pool.is_paused(),
            }
        )
    return pd.DataFrame(rows, columns=_SNAPSHOT_COLUMNS)


def holder_table(engine: AllocationEngine) -> pd.DataFrame:
    """Shares and redeemable asset value per holder, largest first."""

    df = pd.DataFrame(
        [
            {"holder": holder, "shares": shares, "assets": engine.shares_to_assets(shares)}
            for holder, shares in engine.shares.items()
            if shares
        ],
        columns=["holder", "shares", "assets"],
    )
    if df.empty:
        return df
    df["share_pct"] = df["shares"] / engine.total_shares * 100.0
    return df.sort_values("shares", ascending=False).reset_index(drop=True)


def rate_history(events: EventLog) -> pd.DataFrame:
    """Wide frame of pool rates (bps) indexed by timestamp, one column per pool."""

    rows = [e.to_dict() for e in events.of_type(RateChanged)]
    if not rows:
        return pd.DataFrame()
    df = pd.DataFrame(rows)
    wide = df.pivot_table(index="timestamp", columns="emitter", values="new_rate", aggfunc="last")
    wide.columns.name = None
    return wide.sort_index().ffill()


def allocation_history(events: EventLog, account: str) -> pd.DataFrame:
    """Running balance of ``account`` in each pool, indexed by timestamp."""

    rows = []
    for event in events:
        if isinstance(event, Deposited) and event.account == account:
            rows.append({"timestamp": event.timestamp, "pool": event.emitter, "delta": event.amount})
        elif isinstance(event, (Withdrawn, EmergencyWithdrawal)) and event.account == account:
            rows.append({"timestamp": event.timestamp, "pool": event.emitter, "delta": -event.amount})
    if not rows:
        return pd.DataFrame()
    df = pd.DataFrame(rows)
    flows = df.pivot_table(index="timestamp", columns="pool", values="delta", aggfunc="sum", fill_value=0)
    flows.columns.name = None
    return flows.sort_index().cumsum()


def summary_lines(engine: AllocationEngine) -> list[str]:
    a, b = engine.get_allocations()
    rate_a, rate_b = engine.get_pool_rates()
    return [
        f"Total assets:    {format_amount(engine.total_assets())}",
        f"Allocation A:    {format_amount(a)} (last rate {format_rate(rate_a)}%)",
        f"Allocation B:    {format_amount(b)} (last rate {format_rate(rate_b)}%)",
        f"Idle:            {format_amount(engine.idle_balance())}",
        f"Effective rate:  {format_rate(effective_rate(engine))}%",
        f"Rate knowledge:  {engine.rate_knowledge.value}",
    ]


def write_report(engine: AllocationEngine, events: EventLog, outdir: str | Path) -> dict[str, Path]:
    """Write ``snapshot.csv``, ``holders.csv`` and ``events.csv`` to ``outdir``."""

    out = _ensure_outdir(outdir)
    paths = {
        "snapshot": out / "snapshot.csv",
        "holders": out / "holders.csv",
        "events": out / "events.csv",
    }
    engine_snapshot(engine).to_csv(paths["snapshot"], index=False)
    holder_table(engine).to_csv(paths["holders"], index=False)
    events.to_dataframe().to_csv(paths["events"], index=False)
    return paths


__all__ = [
    "allocation_history",
    "effective_rate",
    "engine_snapshot",
    "format_amount",
    "format_rate",
    "holder_table",
    "rate_history",
    "summary_lines",
    "write_report",
]
