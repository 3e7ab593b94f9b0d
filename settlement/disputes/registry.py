"""
Generic registry of open challenges.

Each scope (an asset id, or an (asset id, checkpoint root) pair) owns a dense
1-indexed array of Challenge entries plus a reverse index from challenge
transaction bytes to slot. Slot 0 is the "absent" sentinel and never holds a
live entry.

Removal swaps the last live entry into the freed slot, so every operation is
O(1) and live slots are always exactly 1..count.
"""

from dataclasses import dataclass, field
from typing import Dict, Generic, Hashable, List, Optional, Tuple, TypeVar

from ..core.errors import AbsentError, DuplicateEntryError

ABSENT_SLOT = 0

K = TypeVar("K", bound=Hashable)


@dataclass(frozen=True)
class Challenge:
    """
    Open challenge record.

    Fields:
        exists: Always True for live entries (False only for the sentinel)
        challenge_tx: Opaque raw transaction bytes
        block_number: Ledger block the challenge transaction was proven in
    """
    exists: bool
    challenge_tx: bytes
    block_number: int


_SENTINEL = Challenge(exists=False, challenge_tx=b"", block_number=0)


@dataclass
class _Scope:
    slots: List[Challenge] = field(default_factory=lambda: [_SENTINEL])
    index: Dict[bytes, int] = field(default_factory=dict)


class DisputeRegistry(Generic[K]):
    """
    Open challenges grouped by scope key.

    Not synchronized: callers hold the per-key lock of the owning state
    machine around every mutation.

    Usage:
        registry = DisputeRegistry()
        registry.add(7, challenge_tx, 12)
        registry.exists(7, challenge_tx)   # True
        registry.remove(7, challenge_tx)
    """

    def __init__(self) -> None:
        self._scopes: Dict[K, _Scope] = {}

    def exists(self, scope: K, challenge_tx: bytes) -> bool:
        state = self._scopes.get(scope)
        return state is not None and challenge_tx in state.index

    def slot_of(self, scope: K, challenge_tx: bytes) -> int:
        """Slot of challenge_tx, ABSENT_SLOT if not live."""
        state = self._scopes.get(scope)
        if state is None:
            return ABSENT_SLOT
        return state.index.get(challenge_tx, ABSENT_SLOT)

    def get(self, scope: K, challenge_tx: bytes) -> Optional[Challenge]:
        slot = self.slot_of(scope, challenge_tx)
        if slot == ABSENT_SLOT:
            return None
        return self._scopes[scope].slots[slot]

    def count(self, scope: K) -> int:
        state = self._scopes.get(scope)
        if state is None:
            return 0
        return len(state.slots) - 1

    def entries(self, scope: K) -> Tuple[Challenge, ...]:
        """Live entries in slot order."""
        state = self._scopes.get(scope)
        if state is None:
            return ()
        return tuple(state.slots[1:])

    def add(self, scope: K, challenge_tx: bytes, block_number: int) -> int:
        """
        Register a challenge.

        Returns:
            Slot assigned to the challenge (first live slot is 1)

        Raises:
            DuplicateEntryError: If challenge_tx is already open for scope
        """
        if self.exists(scope, challenge_tx):
            raise DuplicateEntryError("challenge already exists")
        state = self._scopes.get(scope)
        if state is None:
            state = _Scope()
            self._scopes[scope] = state
        challenge_tx = bytes(challenge_tx)
        state.slots.append(Challenge(exists=True, challenge_tx=challenge_tx, block_number=block_number))
        slot = len(state.slots) - 1
        state.index[challenge_tx] = slot
        return slot

    def remove(self, scope: K, challenge_tx: bytes) -> Challenge:
        """
        Remove a challenge, compacting by swap-with-last.

        Returns:
            The removed entry

        Raises:
            AbsentError: If challenge_tx is not open for scope
        """
        slot = self.slot_of(scope, challenge_tx)
        if slot == ABSENT_SLOT:
            raise AbsentError("challenge does not exist")
        state = self._scopes[scope]
        removed = state.slots[slot]

        if len(state.slots) == 2:
            del self._scopes[scope]
            return removed

        last_slot = len(state.slots) - 1
        if slot != last_slot:
            moved = state.slots[last_slot]
            state.slots[slot] = moved
            state.index[moved.challenge_tx] = slot
        state.slots.pop()
        del state.index[removed.challenge_tx]
        return removed

    def scopes(self) -> Tuple[K, ...]:
        """Scopes with at least one open challenge."""
        return tuple(self._scopes)
