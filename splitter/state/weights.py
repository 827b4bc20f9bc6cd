"""
Secondary recipient weight table.

Weights are integer basis points (10_000 = 100.00%). The table is held as an
immutable tuple snapshot and replaced wholesale: a replacement is validated in
full before the stored reference is swapped, so a rejected replacement leaves
the previous table untouched and readers never see a half-built table.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Iterator, Optional, Tuple

from ..errors import ValidationError, ValidationRule
from .canonical import NULL_ADDRESS, canonical_address


BPS_DENOM = 10_000


def require_address(address: str, *, name: str = "address") -> str:
    """Canonicalize `address`, rejecting malformed and null addresses with ValidationError."""
    if address is None:
        raise ValidationError(ValidationRule.NULL_ADDRESS, f"{name} is required")
    try:
        addr = canonical_address(address, name=name)
    except (TypeError, ValueError) as exc:
        raise ValidationError(ValidationRule.INVALID_ADDRESS, str(exc)) from exc
    if addr == NULL_ADDRESS:
        raise ValidationError(ValidationRule.NULL_ADDRESS, f"{name} must not be the null address")
    return addr


@dataclass(frozen=True)
class SecondaryEntry:
    address: str
    weight: int

    def __post_init__(self) -> None:
        if not isinstance(self.weight, int) or isinstance(self.weight, bool):
            raise TypeError("weight must be an int")
        # Normalize the address so equality and hashing follow the canonical form.
        object.__setattr__(self, "address", require_address(self.address))
        if not (0 < self.weight <= BPS_DENOM):
            raise ValidationError(
                ValidationRule.WEIGHT_OUT_OF_RANGE,
                f"weight for {self.address} must be in (0, {BPS_DENOM}]: {self.weight}",
            )

    def to_dict(self) -> dict:
        return {"address": self.address, "weight": self.weight}


def _coerce_entry(item) -> SecondaryEntry:
    if isinstance(item, SecondaryEntry):
        return item
    if isinstance(item, dict):
        return SecondaryEntry(address=item.get("address"), weight=item.get("weight"))
    try:
        address, weight = item
    except (TypeError, ValueError) as exc:
        raise TypeError(f"secondary entry must be an (address, weight) pair, got {item!r}") from exc
    return SecondaryEntry(address=address, weight=weight)


def validate_entries(
    new_entries: Iterable,
    primary_recipient: Optional[str],
) -> Tuple[SecondaryEntry, ...]:
    """
    Validate a candidate table and return it as a tuple of entries.

    Accepts `SecondaryEntry` objects, `(address, weight)` pairs or
    `{"address": ..., "weight": ...}` dicts.

    Raises:
        ValidationError: naming the first violated rule
    """
    entries = tuple(_coerce_entry(item) for item in new_entries)
    primary = require_address(primary_recipient, name="primary") if primary_recipient is not None else None

    seen: set[str] = set()
    total = 0
    for entry in entries:
        if primary is not None and entry.address == primary:
            raise ValidationError(
                ValidationRule.PRIMARY_COLLISION,
                f"{entry.address} is the primary recipient",
            )
        if entry.address in seen:
            raise ValidationError(ValidationRule.DUPLICATE_ADDRESS, entry.address)
        seen.add(entry.address)
        total += entry.weight

    if entries and total != BPS_DENOM:
        raise ValidationError(ValidationRule.WEIGHT_SUM, f"weights must sum to {BPS_DENOM}, got {total}")
    return entries


class WeightTable:
    """Ordered secondary recipients. Index 0 receives rounding remainders."""

    def __init__(self) -> None:
        self._entries: Tuple[SecondaryEntry, ...] = ()

    def replace(self, new_entries: Iterable, primary_recipient: Optional[str]) -> Tuple[SecondaryEntry, ...]:
        """
        Validate and install a new table.

        Returns:
            The previous table snapshot (for audit events).
        """
        entries = validate_entries(new_entries, primary_recipient)
        previous = self._entries
        self._entries = entries
        return previous

    def entries(self) -> Tuple[SecondaryEntry, ...]:
        return self._entries

    def count(self) -> int:
        return len(self._entries)

    def entry(self, index: int) -> SecondaryEntry:
        if not isinstance(index, int) or isinstance(index, bool):
            raise TypeError("index must be an int")
        if index < 0 or index >= len(self._entries):
            raise IndexError(f"secondary index out of range: {index}")
        return self._entries[index]

    def contains(self, address: str) -> bool:
        addr = canonical_address(address)
        return any(e.address == addr for e in self._entries)

    def __iter__(self) -> Iterator[SecondaryEntry]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __repr__(self) -> str:
        return f"WeightTable({len(self._entries)} entries)"
