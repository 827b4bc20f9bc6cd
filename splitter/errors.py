"""Exception types for the splitter.

Configuration errors leave state unchanged; settlement errors abort the whole
deposit attempt. Nothing in the core catches these: they propagate to the host.
"""

from __future__ import annotations

from enum import Enum, unique
from typing import TYPE_CHECKING, Optional, Sequence

if TYPE_CHECKING:
    from .core.settlement import TransferInstruction


@unique
class ValidationRule(Enum):
    """One member per configuration rule that can be violated."""
    NULL_ADDRESS = "null_address"
    INVALID_ADDRESS = "invalid_address"
    DUPLICATE_ADDRESS = "duplicate_address"
    PRIMARY_COLLISION = "primary_collision"
    WEIGHT_OUT_OF_RANGE = "weight_out_of_range"
    WEIGHT_SUM = "weight_sum"
    AMOUNT_OUT_OF_RANGE = "amount_out_of_range"
    NOT_INITIALIZED = "not_initialized"
    ALREADY_INITIALIZED = "already_initialized"


class SplitterError(Exception):
    """Base class for every error raised by the splitter."""


class ValidationError(SplitterError, ValueError):
    """Raised when a configuration input violates a rule."""

    def __init__(self, rule: ValidationRule, detail: str = "") -> None:
        self.rule = rule
        self.detail = detail
        msg = rule.value if not detail else f"{rule.value}: {detail}"
        super().__init__(msg)


class SplitOverflowError(SplitterError, OverflowError):
    """Raised when engine arithmetic leaves the uint256 domain."""


class AuthorizationError(SplitterError, PermissionError):
    """Raised when a non-owner invokes an owner-gated operation."""

    def __init__(self, caller: str) -> None:
        self.caller = caller
        super().__init__(f"unauthorized account: {caller}")


class TransferFailure(SplitterError):
    """Raised when the transfer executor reports failure.

    ``completed`` lists the instructions that went through before ``failed``;
    whether they stick is up to the host's atomicity.
    """

    def __init__(
        self,
        failed: "TransferInstruction",
        completed: Sequence["TransferInstruction"] = (),
        reason: Optional[str] = None,
    ) -> None:
        self.failed = failed
        self.completed = tuple(completed)
        self.reason = reason
        msg = f"transfer of {failed.amount} {failed.asset} to {failed.to} failed"
        if reason:
            msg += f": {reason}"
        super().__init__(msg)
