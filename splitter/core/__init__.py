"""
Core splitter algorithms
"""

from .allocation import Allocation, SplitResult, distribute_secondary, split
from .access import OwnerGate
from .settlement import SettlementCoordinator, SettlementResult, TransferInstruction, TransferKind
from .splitter import DEPOSIT_ACK, TokenSplitter

__all__ = [
    "Allocation",
    "SplitResult",
    "distribute_secondary",
    "split",
    "OwnerGate",
    "SettlementCoordinator",
    "SettlementResult",
    "TransferInstruction",
    "TransferKind",
    "DEPOSIT_ACK",
    "TokenSplitter",
]
