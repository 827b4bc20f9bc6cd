"""
Allocation kernels (deterministic, integer-only).

Two pure functions:
- `split` partitions a deposit between the primary recipient and the
  secondary pool according to the primary's cap;
- `distribute_secondary` partitions the secondary pool across the weight
  table with floor rounding, adding the whole rounding remainder to the first
  entry.

Both conserve value exactly: the outputs always sum to the input.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Tuple

from ..state.caps import MaxAmount
from ..state.weights import SecondaryEntry
from .math import bps_share, checked_add, checked_sub, require_uint


@dataclass(frozen=True)
class SplitResult:
    primary_amount: int
    secondary_amount: int

    def __post_init__(self) -> None:
        for name, v in (
            ("primary_amount", self.primary_amount),
            ("secondary_amount", self.secondary_amount),
        ):
            if not isinstance(v, int) or isinstance(v, bool):
                raise TypeError(f"{name} must be an int")
            if v < 0:
                raise ValueError(f"{name} must be non-negative: {v}")


@dataclass(frozen=True)
class Allocation:
    address: str
    amount: int


def split(deposit_amount: int, primary_balance: int, cap: MaxAmount) -> SplitResult:
    """
    Split `deposit_amount` between the primary recipient and the secondary pool.

    - cap unset: everything to primary
    - primary already above cap: everything to secondary
    - room left for the whole deposit: everything to primary
    - otherwise the primary is topped up to exactly the cap and the rest is secondary
    """
    require_uint("deposit_amount", deposit_amount)
    require_uint("primary_balance", primary_balance)

    if not cap.is_set:
        return SplitResult(primary_amount=deposit_amount, secondary_amount=0)
    if primary_balance > cap.value:
        return SplitResult(primary_amount=0, secondary_amount=deposit_amount)
    if checked_add(primary_balance, deposit_amount) <= cap.value:
        return SplitResult(primary_amount=deposit_amount, secondary_amount=0)

    primary_amount = checked_sub(cap.value, primary_balance)
    secondary_amount = checked_sub(deposit_amount, primary_amount)
    return SplitResult(primary_amount=primary_amount, secondary_amount=secondary_amount)


def distribute_secondary(secondary_amount: int, table: Iterable[SecondaryEntry]) -> Tuple[Allocation, ...]:
    """
    Split `secondary_amount` across `table` by weight, in table order.

    Every entry is returned, including zero amounts. The remainder left by
    floor rounding goes entirely to the first entry.
    """
    require_uint("secondary_amount", secondary_amount)
    entries = tuple(table)
    if secondary_amount == 0 or not entries:
        return ()

    amounts = [bps_share(secondary_amount, e.weight) for e in entries]
    distributed = sum(amounts)
    if distributed > secondary_amount:
        raise AssertionError("secondary split over-distributed")
    amounts[0] += secondary_amount - distributed

    return tuple(Allocation(address=e.address, amount=a) for e, a in zip(entries, amounts))
