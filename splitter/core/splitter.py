"""
Token splitter facade.

Holds the configuration (owner, primary recipient, weight table, caps) and
exposes the host-facing operations:
- `initialize` once, then owner-gated `set_*` replacements,
- `on_deposit` as the settlement entry point,
- read-only getters.

`events` is a bounded in-memory audit log (oldest entries drop first); hosts
that need the full history drain it after each call. It is not rolled back
when the host reverts a delivery.

All configuration reads and writes go through one re-entrant lock, so a
settlement always runs against a single consistent (primary, table, cap) view.
"""

from __future__ import annotations

import logging
import threading
from collections import deque
from typing import Any, Deque, Dict, Iterable, List, Optional, Tuple

from ..errors import ValidationError, ValidationRule
from ..state.caps import CapRegistry, MaxAmount
from ..state.config_root import compute_config_root
from ..state.weights import SecondaryEntry, WeightTable, require_address
from .access import OwnerGate
from .interfaces import BalanceOracle, TransferExecutor
from .settlement import SettlementCoordinator, SettlementResult

logger = logging.getLogger(__name__)

# Receiver acknowledgement expected by transfer-and-call token protocols:
# bytes4(keccak256("onTransferReceived(address,address,uint256,bytes)")).
DEPOSIT_ACK = "0x88a7ca5c"

# Audit events kept in memory; older entries are dropped first.
DEFAULT_MAX_EVENTS = 1024


class TokenSplitter:
    def __init__(
        self,
        *,
        balance_oracle: BalanceOracle,
        transfer_executor: TransferExecutor,
        holder: str,
        max_events: int = DEFAULT_MAX_EVENTS,
    ) -> None:
        if not isinstance(max_events, int) or isinstance(max_events, bool) or max_events < 1:
            raise ValueError(f"max_events must be a positive int: {max_events!r}")
        self._lock = threading.RLock()
        self._gate: Optional[OwnerGate] = None
        self._primary: Optional[str] = None
        self._weights = WeightTable()
        self._caps = CapRegistry()
        self._coordinator = SettlementCoordinator(
            caps=self._caps,
            weights=self._weights,
            balance_oracle=balance_oracle,
            transfer_executor=transfer_executor,
            holder=holder,
        )
        self.events: Deque[Dict[str, Any]] = deque(maxlen=max_events)

    # -- lifecycle ---------------------------------------------------------

    @property
    def initialized(self) -> bool:
        return self._gate is not None

    def initialize(self, owner: str, primary_recipient: str, entries: Iterable = ()) -> None:
        """One-time setup. Nothing is stored unless owner, primary and table all validate."""
        with self._lock:
            if self._gate is not None:
                raise ValidationError(ValidationRule.ALREADY_INITIALIZED, "splitter already initialized")
            gate = OwnerGate(owner)
            primary = require_address(primary_recipient, name="primary")
            self._weights.replace(entries, primary)
            self._primary = primary
            self._gate = gate
            logger.info(f"Splitter initialized: owner={gate.owner} primary={primary} secondaries={self._weights.count()}")
            self._emit("Initialized", owner=gate.owner, primary=primary, secondaries=self._table_dicts())

    def _require_initialized(self) -> OwnerGate:
        if self._gate is None:
            raise ValidationError(ValidationRule.NOT_INITIALIZED, "splitter not initialized")
        return self._gate

    def _require_owner(self, caller: str) -> None:
        self._require_initialized().require_owner(caller)

    # -- owner-gated configuration -----------------------------------------

    def transfer_ownership(self, caller: str, new_owner: str) -> str:
        with self._lock:
            gate = self._require_initialized()
            previous = gate.transfer_ownership(caller, new_owner)
            logger.info(f"Ownership transferred: {previous} -> {gate.owner}")
            self._emit("OwnershipTransferred", old=previous, new=gate.owner)
            return previous

    def set_primary_recipient(self, caller: str, address: str) -> str:
        """Replace the primary recipient. Returns the previous one."""
        with self._lock:
            self._require_owner(caller)
            new = require_address(address, name="primary")
            if self._weights.contains(new):
                raise ValidationError(ValidationRule.PRIMARY_COLLISION, f"{new} is a secondary recipient")
            previous = self._primary
            self._primary = new
            logger.info(f"Primary recipient changed: {previous} -> {new}")
            self._emit("PrimaryRecipientChanged", old=previous, new=new)
            return previous

    def set_cap(self, caller: str, asset: str, value: int) -> MaxAmount:
        """Set the primary's cap for `asset`. Returns the previous MaxAmount."""
        with self._lock:
            self._require_owner(caller)
            key = require_address(asset, name="asset")
            previous = self._caps.set_max(key, value)
            current = self._caps.get(key)
            logger.info(f"Cap changed for {key}: {_fmt_cap(previous)} -> {current.value}")
            self._emit(
                "CapChanged",
                asset=key,
                old={"value": previous.value, "is_set": previous.is_set},
                new={"value": current.value, "is_set": current.is_set},
            )
            return previous

    def set_secondary_table(self, caller: str, entries: Iterable) -> Tuple[SecondaryEntry, ...]:
        """Replace the whole weight table (all-or-nothing). Returns the previous table."""
        with self._lock:
            self._require_owner(caller)
            previous = self._weights.replace(entries, self._primary)
            logger.info(f"Secondary table replaced: {len(previous)} -> {self._weights.count()} entries")
            self._emit(
                "SecondaryTableChanged",
                old=[e.to_dict() for e in previous],
                new=self._table_dicts(),
            )
            return previous

    # -- settlement --------------------------------------------------------

    def settle(self, asset: str, amount: int) -> SettlementResult:
        """Settle one deposit and return the full settlement record."""
        with self._lock:
            self._require_initialized()
            result = self._coordinator.settle(asset, amount, primary=self._primary)
            self._emit(
                "DepositSettled",
                asset=result.asset,
                amount=result.deposit_amount,
                primary_amount=result.split.primary_amount,
                secondary_amount=result.split.secondary_amount,
                transfers=[t.to_dict() for t in result.transfers],
            )
            return result

    def on_deposit(self, asset: str, amount: int) -> str:
        """Deposit notification entry point. Returns `DEPOSIT_ACK` once all transfers are issued."""
        self.settle(asset, amount)
        return DEPOSIT_ACK

    # -- queries -----------------------------------------------------------

    @property
    def owner(self) -> Optional[str]:
        return self._gate.owner if self._gate is not None else None

    @property
    def holder(self) -> str:
        return self._coordinator.holder

    def get_primary_recipient(self) -> Optional[str]:
        return self._primary

    def get_secondary_count(self) -> int:
        return self._weights.count()

    def get_secondary_entry(self, index: int) -> SecondaryEntry:
        return self._weights.entry(index)

    def get_secondary_entries(self) -> Tuple[SecondaryEntry, ...]:
        return self._weights.entries()

    def get_cap(self, asset: str) -> MaxAmount:
        return self._caps.get(asset)

    def get_caps(self) -> List[Tuple[str, MaxAmount]]:
        with self._lock:
            return self._caps.items()

    def config_root(self) -> str:
        with self._lock:
            return compute_config_root(
                primary=self._primary,
                entries=self._weights.entries(),
                caps=self._caps.items(),
            )

    # -- helpers -----------------------------------------------------------

    def _table_dicts(self) -> List[Dict[str, Any]]:
        return [e.to_dict() for e in self._weights.entries()]

    def _emit(self, event: str, **fields: Any) -> None:
        self.events.append({"event": event, **fields})


def _fmt_cap(cap: MaxAmount) -> str:
    return str(cap.value) if cap.is_set else "unset"
