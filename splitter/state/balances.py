"""
Multi-asset balance tracking with deterministic ordering.

Implements BalanceTable[Address, AssetId] -> Amount. This is the reference
ledger behind the in-memory host; the splitter core only ever sees it through
the balance oracle / transfer executor interfaces.
"""

from typing import Dict, Tuple

from .canonical import canonical_address


# Type aliases
Address = str  # 20-byte hex string (0x...)
AssetId = str  # token contract address (0x...)
Amount = int  # Non-negative integer (arbitrary precision)


class BalanceTable:
    """
    Deterministic balance table mapping (address, asset) -> amount.

    Keys are canonicalized on every access, so mixed-case input addresses refer
    to the same slot. Callers that need a stable order should sort explicitly.
    """

    def __init__(self):
        """Initialize empty balance table."""
        self._balances: Dict[Tuple[Address, AssetId], Amount] = {}

    @staticmethod
    def _key(address: Address, asset: AssetId) -> Tuple[Address, AssetId]:
        return canonical_address(address), canonical_address(asset, name="asset")

    def get(self, address: Address, asset: AssetId) -> Amount:
        """Get balance for (address, asset). Returns 0 if not found."""
        return self._balances.get(self._key(address, asset), 0)

    def set(self, address: Address, asset: AssetId, amount: Amount) -> None:
        """
        Set balance for (address, asset).

        Raises:
            ValueError: If amount is negative
        """
        if not isinstance(amount, int) or isinstance(amount, bool):
            raise TypeError("amount must be an int")
        if amount < 0:
            raise ValueError(f"Balance cannot be negative: {amount}")
        key = self._key(address, asset)
        if amount == 0:
            # Remove zero balances to keep table sparse
            self._balances.pop(key, None)
        else:
            self._balances[key] = amount

    def add(self, address: Address, asset: AssetId, delta: Amount) -> None:
        """
        Add delta to balance (delta may be negative).

        Raises:
            ValueError: If resulting balance would be negative
        """
        current = self.get(address, asset)
        new_balance = current + delta
        if new_balance < 0:
            raise ValueError(
                f"Insufficient balance: {current} + {delta} = {new_balance} < 0"
            )
        self.set(address, asset, new_balance)

    def subtract(self, address: Address, asset: AssetId, delta: Amount) -> None:
        """
        Subtract delta from balance. Equivalent to add(address, asset, -delta).

        Raises:
            ValueError: If delta is negative or insufficient balance
        """
        if delta < 0:
            raise ValueError(f"Delta must be non-negative: {delta}")
        self.add(address, asset, -delta)

    def transfer(self, asset: AssetId, src: Address, dst: Address, amount: Amount) -> None:
        """Move `amount` of `asset` from `src` to `dst`. All-or-nothing."""
        if not isinstance(amount, int) or isinstance(amount, bool) or amount < 0:
            raise ValueError(f"transfer amount must be a non-negative int: {amount!r}")
        self.subtract(src, asset, amount)
        self.add(dst, asset, amount)

    def total_supply(self, asset: AssetId) -> Amount:
        """Sum of every holder's balance of `asset`."""
        a = canonical_address(asset, name="asset")
        return sum(amount for (_addr, a2), amount in self._balances.items() if a2 == a)

    def get_balances_for_asset(self, asset: AssetId) -> Dict[Address, Amount]:
        """Mapping address -> amount for one asset."""
        a = canonical_address(asset, name="asset")
        return {addr: amount for (addr, a2), amount in self._balances.items() if a2 == a}

    def snapshot(self) -> Dict[Tuple[Address, AssetId], Amount]:
        """Copy of the raw table, for rollback."""
        return dict(self._balances)

    def restore(self, snapshot: Dict[Tuple[Address, AssetId], Amount]) -> None:
        self._balances = dict(snapshot)

    def __repr__(self) -> str:
        return f"BalanceTable({len(self._balances)} entries)"
