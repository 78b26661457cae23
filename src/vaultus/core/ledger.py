"""In-memory fungible asset ledger used as the transfer collaborator."""

from __future__ import annotations

import logging
from collections.abc import Callable

from .errors import InsufficientFunds, ZeroAddress

logger = logging.getLogger(__name__)

TransferHook = Callable[[str, str, int], None]


class AssetLedger:
    """Balance book for a single fungible asset.

    ``transfer`` debits ``sender`` and credits ``recipient`` before notifying
    hooks, so a hook observing the transfer sees the settled balances.  A
    failing hook is logged and never undoes or fails the transfer.
    """

    def __init__(self, symbol: str = "USDC", decimals: int = 6) -> None:
        self.symbol = symbol
        self.decimals = decimals
        self._balances: dict[str, int] = {}
        self._hooks: list[TransferHook] = []

    def balance_of(self, holder: str) -> int:
        return self._balances.get(holder, 0)

    def total_supply(self) -> int:
        return sum(self._balances.values())

    def mint(self, holder: str, amount: int) -> None:
        if not holder:
            raise ZeroAddress("cannot mint to an empty address")
        if amount < 0:
            raise ValueError("mint amount must be non-negative")
        self._balances[holder] = self.balance_of(holder) + amount

    def transfer(self, sender: str, recipient: str, amount: int) -> None:
        if not sender or not recipient:
            raise ZeroAddress("transfer endpoints must be non-empty")
        if amount < 0:
            raise ValueError("transfer amount must be non-negative")
        available = self.balance_of(sender)
        if available < amount:
            raise InsufficientFunds(
                f"{sender} holds {available} {self.symbol}, cannot send {amount}"
            )
        self._balances[sender] = available - amount
        self._balances[recipient] = self.balance_of(recipient) + amount
        for hook in list(self._hooks):
            try:
                hook(sender, recipient, amount)
            except Exception:
                logger.exception("Transfer hook %r failed on %s -> %s", hook, sender, recipient)

    def add_hook(self, hook: TransferHook) -> None:
        self._hooks.append(hook)

    def remove_hook(self, hook: TransferHook) -> None:
        self._hooks.remove(hook)


__all__ = ["AssetLedger", "TransferHook"]
