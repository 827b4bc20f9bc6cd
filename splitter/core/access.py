"""
Owner gate for configuration changes.

The caller identity is passed in explicitly by the host (it is whatever the
host authenticated, e.g. the transaction sender); the gate only compares it
against the current owner.
"""

from __future__ import annotations

from ..errors import AuthorizationError
from ..state.canonical import canonical_address
from ..state.weights import require_address


class OwnerGate:
    def __init__(self, owner: str) -> None:
        self._owner = require_address(owner, name="owner")

    @property
    def owner(self) -> str:
        return self._owner

    def is_owner(self, caller: str) -> bool:
        try:
            return canonical_address(caller, name="caller") == self._owner
        except (TypeError, ValueError):
            return False

    def require_owner(self, caller: str) -> None:
        if not self.is_owner(caller):
            raise AuthorizationError(str(caller))

    def transfer_ownership(self, caller: str, new_owner: str) -> str:
        """Hand the gate to `new_owner`. Returns the previous owner."""
        self.require_owner(caller)
        new = require_address(new_owner, name="new_owner")
        previous = self._owner
        self._owner = new
        return previous
