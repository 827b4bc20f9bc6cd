"""Collaborators the splitter consumes from its host."""

from __future__ import annotations

from typing import Protocol


class BalanceOracle(Protocol):
    def balance_of(self, asset: str, address: str) -> int:
        ...


class TransferExecutor(Protocol):
    def transfer(self, asset: str, to: str, amount: int) -> bool:
        """Move `amount` of `asset` from the splitter's holding to `to`. False on failure."""
        ...
