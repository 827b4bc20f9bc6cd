"""
Deposit settlement (imperative shell around the allocation kernels).

For one deposit notification:
1. Resolve the asset's cap and (when needed) the primary's current balance.
2. Split the deposit; skip the split entirely when the cap is unset or no
   secondary table is configured.
3. Distribute the secondary share across the weight table.
4. Issue transfers: primary first, then secondaries in table order, skipping
   zero amounts; then sweep any residual holding of the asset to the first
   secondary recipient.

A failed transfer aborts the settlement with `TransferFailure`. Nothing is
retried here; retry is the host re-submitting the deposit.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum, unique
from typing import List, Optional, Tuple

from ..errors import TransferFailure
from ..state.caps import CapRegistry, MaxAmount
from ..state.weights import SecondaryEntry, WeightTable, require_address
from .allocation import Allocation, SplitResult, distribute_secondary, split
from .interfaces import BalanceOracle, TransferExecutor
from .math import require_uint

logger = logging.getLogger(__name__)


@unique
class TransferKind(Enum):
    PRIMARY = "primary"
    SECONDARY = "secondary"
    SWEEP = "sweep"


@dataclass(frozen=True)
class TransferInstruction:
    asset: str
    to: str
    amount: int
    kind: TransferKind

    def to_dict(self) -> dict:
        return {"asset": self.asset, "to": self.to, "amount": self.amount, "kind": self.kind.value}


@dataclass(frozen=True)
class SettlementResult:
    """Everything decided and issued for one deposit."""

    asset: str
    deposit_amount: int
    cap: MaxAmount
    split: SplitResult
    allocations: Tuple[Allocation, ...] = ()
    transfers: Tuple[TransferInstruction, ...] = ()
    primary_balance: Optional[int] = None  # None when the lookup was skipped

    @property
    def swept(self) -> int:
        return sum(t.amount for t in self.transfers if t.kind == TransferKind.SWEEP)

    def amounts_by_recipient(self) -> dict[str, int]:
        out: dict[str, int] = {}
        for t in self.transfers:
            out[t.to] = out.get(t.to, 0) + t.amount
        return out


class SettlementCoordinator:
    """
    Runs one settlement pass against the current caps and weight table.

    `holder` is the address holding deposited funds (the splitter itself). It is
    required: the residual sweep reads its balance after every distribution.
    """

    def __init__(
        self,
        *,
        caps: CapRegistry,
        weights: WeightTable,
        balance_oracle: BalanceOracle,
        transfer_executor: TransferExecutor,
        holder: str,
    ) -> None:
        self._caps = caps
        self._weights = weights
        self._oracle = balance_oracle
        self._executor = transfer_executor
        self._holder = require_address(holder, name="holder")

    @property
    def holder(self) -> str:
        return self._holder

    def settle(self, asset: str, amount: int, *, primary: str) -> SettlementResult:
        asset = require_address(asset, name="asset")
        primary = require_address(primary, name="primary")
        require_uint("amount", amount)

        cap = self._caps.get(asset)
        table: Tuple[SecondaryEntry, ...] = self._weights.entries()

        primary_balance: Optional[int] = None
        if not table or not cap.is_set:
            result = SplitResult(primary_amount=amount, secondary_amount=0)
        else:
            primary_balance = require_uint("primary_balance", self._oracle.balance_of(asset, primary))
            result = split(amount, primary_balance, cap)

        allocations: Tuple[Allocation, ...] = ()
        if result.secondary_amount > 0:
            allocations = distribute_secondary(result.secondary_amount, table)

        issued: List[TransferInstruction] = []
        if result.primary_amount > 0:
            self._issue(TransferInstruction(asset, primary, result.primary_amount, TransferKind.PRIMARY), issued)
        for alloc in allocations:
            if alloc.amount > 0:
                self._issue(TransferInstruction(asset, alloc.address, alloc.amount, TransferKind.SECONDARY), issued)

        if allocations:
            residual = require_uint("residual", self._oracle.balance_of(asset, self._holder))
            if residual > 0:
                logger.info(f"Sweeping residual {residual} of {asset} to {table[0].address}")
                self._issue(TransferInstruction(asset, table[0].address, residual, TransferKind.SWEEP), issued)

        logger.info(
            f"Settled deposit of {amount} {asset}: primary={result.primary_amount} "
            f"secondary={result.secondary_amount} transfers={len(issued)}"
        )
        return SettlementResult(
            asset=asset,
            deposit_amount=amount,
            cap=cap,
            split=result,
            allocations=allocations,
            transfers=tuple(issued),
            primary_balance=primary_balance,
        )

    def _issue(self, instruction: TransferInstruction, issued: List[TransferInstruction]) -> None:
        logger.debug(f"Transfer {instruction.kind.value}: {instruction.amount} {instruction.asset} -> {instruction.to}")
        try:
            ok = self._executor.transfer(instruction.asset, instruction.to, instruction.amount)
        except Exception as exc:
            logger.error(f"Transfer to {instruction.to} raised after {len(issued)} completed transfer(s): {exc}")
            raise TransferFailure(instruction, issued, reason=f"{type(exc).__name__}: {exc}") from exc
        if not ok:
            logger.error(f"Transfer to {instruction.to} rejected after {len(issued)} completed transfer(s)")
            raise TransferFailure(instruction, issued, reason="rejected by transfer executor")
        issued.append(instruction)
