"""Matplotlib-based chart helpers for Vaultus."""

from __future__ import annotations

import pandas as pd


class Visualizer:
    """Collection of static helpers that turn reporting outputs into charts."""

    @staticmethod
    def _plt():
        try:
            import matplotlib.pyplot as plt
        except Exception as exc:  # pragma: no cover
            raise RuntimeError("matplotlib is required for visualization. Install via pip.") from exc
        return plt

    @staticmethod
    def line_rates(
        rates: pd.DataFrame,
        title: str = "Pool rates",
        *,
        save_path: str | None = None,
        show: bool = True,
    ) -> None:
        """Plot pool rates (basis points) from :func:`vaultus.reporting.rate_history`."""
        if rates.empty:
            return
        plt = Visualizer._plt()
        plt.figure(figsize=(10, 6))
        for col in rates.columns:
            plt.step(rates.index, rates[col] / 100.0, where="post", label=str(col))
        plt.xlabel("Timestamp")
        plt.ylabel("Rate (%)")
        plt.title(title)
        if rates.shape[1] > 1:
            plt.legend()
        plt.tight_layout()
        if save_path:
            plt.savefig(save_path, bbox_inches="tight")
        if show:
            plt.show()

    @staticmethod
    def bar_allocations(
        snapshot: pd.DataFrame,
        title: str = "Engine allocation per pool",
        *,
        decimals: int = 6,
        save_path: str | None = None,
        show: bool = True,
    ) -> None:
        if snapshot.empty:
            return
        plt = Visualizer._plt()
        plt.figure(figsize=(8, 5))
        plt.bar(snapshot["address"], snapshot["allocation"] / 10**decimals)
        plt.title(title)
        plt.ylabel("Allocated assets")
        plt.tight_layout()
        if save_path:
            plt.savefig(save_path, bbox_inches="tight")
        if show:
            plt.show()

    @staticmethod
    def line_allocations(
        history: pd.DataFrame,
        title: str = "Allocation over time",
        *,
        decimals: int = 6,
        save_path: str | None = None,
        show: bool = True,
    ) -> None:
        """Plot running pool balances from :func:`vaultus.reporting.allocation_history`."""
        if history.empty:
            return
        plt = Visualizer._plt()
        plt.figure(figsize=(10, 6))
        for col in history.columns:
            plt.step(history.index, history[col] / 10**decimals, where="post", label=str(col))
        if history.shape[1] > 1:
            plt.legend()
        plt.xlabel("Timestamp")
        plt.ylabel("Allocated assets")
        plt.title(title)
        plt.tight_layout()
        if save_path:
            plt.savefig(save_path, bbox_inches="tight")
        if show:
            plt.show()


__all__ = ["Visualizer"]
