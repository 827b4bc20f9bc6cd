"""
State management for the splitter
"""

from .balances import BalanceTable
from .caps import MAX_UINT256, CapRegistry, MaxAmount
from .config_root import compute_config_root
from .weights import BPS_DENOM, SecondaryEntry, WeightTable

__all__ = [
    "BalanceTable",
    "MAX_UINT256",
    "CapRegistry",
    "MaxAmount",
    "compute_config_root",
    "BPS_DENOM",
    "SecondaryEntry",
    "WeightTable",
]
