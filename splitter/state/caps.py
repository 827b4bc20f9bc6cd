"""
Per-asset primary balance caps.

An asset without an entry has an *unset* cap: no split ever happens and the
whole deposit goes to the primary recipient. This is distinct from a numeric
cap of 2**256 - 1 and from a cap of zero (always split).
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Tuple

from ..errors import ValidationError, ValidationRule
from .weights import require_address


MAX_UINT256 = (1 << 256) - 1


@dataclass(frozen=True)
class MaxAmount:
    value: int = 0
    is_set: bool = False

    def __post_init__(self) -> None:
        if not isinstance(self.value, int) or isinstance(self.value, bool):
            raise TypeError("value must be an int")
        if not isinstance(self.is_set, bool):
            raise TypeError("is_set must be a bool")
        if not (0 <= self.value <= MAX_UINT256):
            raise ValidationError(ValidationRule.AMOUNT_OUT_OF_RANGE, f"cap must fit in uint256: {self.value}")

    @classmethod
    def unset(cls) -> "MaxAmount":
        return cls()

    @classmethod
    def of(cls, value: int) -> "MaxAmount":
        return cls(value=value, is_set=True)


class CapRegistry:
    """Mapping asset -> MaxAmount. Entries are independent of each other."""

    def __init__(self) -> None:
        self._caps: Dict[str, MaxAmount] = {}

    def set_max(self, asset: str, value: int) -> MaxAmount:
        """
        Overwrite the cap for `asset` (marking it set).

        Returns:
            The previous MaxAmount (unset if there was none)

        Raises:
            ValidationError: If `asset` is null/malformed or `value` is not a uint256
        """
        key = require_address(asset, name="asset")
        new = MaxAmount.of(value)
        previous = self._caps.get(key, MaxAmount.unset())
        self._caps[key] = new
        return previous

    def get(self, asset: str) -> MaxAmount:
        key = require_address(asset, name="asset")
        return self._caps.get(key, MaxAmount.unset())

    def items(self) -> List[Tuple[str, MaxAmount]]:
        """Snapshot of all set caps, sorted by asset."""
        return sorted(self._caps.items())

    def __len__(self) -> int:
        return len(self._caps)

    def __repr__(self) -> str:
        return f"CapRegistry({len(self._caps)} assets)"
