"""
In-memory host for the splitter.

`LedgerHost` plays the environment around a `TokenSplitter`:
- balance oracle and transfer executor over a `BalanceTable`,
- all-or-nothing execution (`atomic()` restores a snapshot on error),
- transfer-and-call delivery: credit the splitter, notify it, and roll the
  whole delivery back unless it acknowledges.

Used by the replay tool and the tests; production hosts implement the same two
collaborator methods against a real chain.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Iterable, Iterator, Optional, Set

from ..core.splitter import DEPOSIT_ACK, TokenSplitter
from ..errors import SplitterError
from ..state.balances import BalanceTable
from ..state.canonical import canonical_address

logger = logging.getLogger(__name__)


class DeliveryRejected(SplitterError):
    """The receiving splitter did not acknowledge a transfer-and-call delivery."""


class LedgerHost:
    def __init__(
        self,
        holder: str,
        *,
        balances: Optional[BalanceTable] = None,
        refusing: Iterable[str] = (),
    ) -> None:
        self.holder = canonical_address(holder, name="holder")
        self.balances = balances if balances is not None else BalanceTable()
        # Recipients whose transfers fail (fault injection).
        self.refusing: Set[str] = {canonical_address(a) for a in refusing}
        self.transfer_count = 0

    # -- collaborator interface --------------------------------------------

    def balance_of(self, asset: str, address: str) -> int:
        return self.balances.get(address, asset)

    def transfer(self, asset: str, to: str, amount: int) -> bool:
        if canonical_address(to) in self.refusing:
            return False
        if amount > self.balances.get(self.holder, asset):
            return False
        self.balances.transfer(asset, self.holder, to, amount)
        self.transfer_count += 1
        return True

    # -- host services -----------------------------------------------------

    @contextmanager
    def atomic(self) -> Iterator[None]:
        """
        Run a block all-or-nothing against the ledger (balances and transfer count).

        State held by the splitter itself, such as its audit events, is not
        rolled back.
        """
        snapshot = self.balances.snapshot()
        transfer_count = self.transfer_count
        try:
            yield
        except BaseException:
            self.balances.restore(snapshot)
            self.transfer_count = transfer_count
            raise

    def mint(self, address: str, asset: str, amount: int) -> None:
        self.balances.add(address, asset, amount)

    def splitter(self) -> TokenSplitter:
        """A fresh splitter wired to this host (not yet initialized)."""
        return TokenSplitter(balance_oracle=self, transfer_executor=self, holder=self.holder)

    def deliver(self, splitter: TokenSplitter, asset: str, sender: str, amount: int) -> str:
        """
        Transfer `amount` from `sender` to the splitter and notify it.

        Raises:
            DeliveryRejected: If the splitter returns anything but `DEPOSIT_ACK`
            SplitterError: Propagated from settlement; the ledger is rolled back
        """
        with self.atomic():
            self.balances.transfer(asset, sender, self.holder, amount)
            try:
                ack = splitter.on_deposit(asset, amount)
            except SplitterError as exc:
                logger.warning(f"Delivery of {amount} {asset} from {sender} reverted: {exc}")
                raise
            if ack != DEPOSIT_ACK:
                raise DeliveryRejected(f"unexpected acknowledgement: {ack!r}")
            return ack
