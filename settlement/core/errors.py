"""
Exception types for the settlement layer.

Every operation either applies its documented effect or raises one of these
before touching any state.
"""


class SettlementError(Exception):
    """Base class for all settlement failures."""
    pass


class AlreadyBuiltError(SettlementError):
    """Raised when a block is mutated or built after it has been built."""
    pass


class DuplicateEntryError(SettlementError):
    """Raised when an id, challenge or checkpoint is already present."""
    pass


class AbsentError(SettlementError):
    """Raised when a referenced challenge, dispute, exit or checkpoint does not exist."""
    pass


class PreconditionFailedError(SettlementError):
    """Raised when an ownership, nonce, proof or timing check fails."""
    pass


class InvalidTransactionError(PreconditionFailedError):
    """Raised when raw transaction bytes cannot be decoded or their signature is invalid."""
    pass


class InvalidEncodingError(SettlementError):
    """Raised when persisted input is malformed."""
    pass


class IntegrityError(SettlementError):
    """Raised when the journal hash chain verification fails."""
    pass


class EventStoreError(SettlementError):
    """Raised when journal store operations fail."""
    pass
