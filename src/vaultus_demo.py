from __future__ import annotations

import logging
import os
import sys
from pathlib import Path
from typing import Any

from vaultus import SystemConfig, Visualizer, build_system, load_config, reporting
from vaultus.system import System

logger = logging.getLogger(__name__)


def _report(system: System, label: str) -> None:
    print(f"--- {label} ---")
    for line in reporting.summary_lines(system.engine):
        print(line)


def run_scenario(system: System, scenario: dict[str, Any]) -> None:
    """Drive the control loop: deposit, pool-side rate shifts, relay settlement."""

    depositor = str(scenario["depositor"])
    whale = str(scenario["whale"])
    deposit = int(scenario["deposit"])
    whale_deposit = int(scenario["whale_deposit"])
    step = int(scenario["step_seconds"])

    system.fund(depositor, deposit)
    system.fund(whale, whale_deposit)

    system.engine.deposit(depositor, deposit)
    delivered = system.settle()
    _report(system, f"after deposit ({delivered} updates accepted)")

    # A large outside deposit lifts pool A's utilisation and rate.
    system.advance(step)
    system.pool_a.deposit(whale, whale_deposit)
    delivered = system.settle()
    _report(system, f"after pool A inflow ({delivered} updates accepted)")

    # The outflow pushes pool A back down once the rate limit has expired.
    system.advance(step)
    system.pool_a.withdraw_all(whale)
    delivered = system.settle()
    _report(system, f"after pool A outflow ({delivered} updates accepted)")


def main() -> None:
    """Run the demo using configuration from file or environment variables."""
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    cfg_file = os.getenv("VAULTUS_CONFIG") or (sys.argv[1] if len(sys.argv) > 1 else None)
    cfg = load_config(cfg_file)
    if outdir_env := os.getenv("VAULTUS_OUTDIR"):
        cfg.setdefault("output", {})["outdir"] = outdir_env

    system = build_system(SystemConfig.from_mapping(cfg))
    run_scenario(system, cfg["scenario"])

    out = cfg.get("output", {})
    outdir = Path(out["outdir"]) if out.get("outdir") else None
    show = bool(out.get("show", False)) if not outdir else False
    charts = out.get("charts", [])

    if outdir:
        paths = reporting.write_report(system.engine, system.events, outdir)
        print(f"Report written to {', '.join(str(p) for p in paths.values())}")

    if "rates" in charts:
        Visualizer.line_rates(
            reporting.rate_history(system.events),
            save_path=str(outdir / "rates.png") if outdir else None,
            show=show,
        )
    if "allocations" in charts:
        Visualizer.line_allocations(
            reporting.allocation_history(system.events, system.engine.address),
            save_path=str(outdir / "allocations.png") if outdir else None,
            show=show,
        )


if __name__ == "__main__":
    main()
