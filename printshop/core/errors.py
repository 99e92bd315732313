"""Error taxonomy shared by the ledger services."""


class LedgerError(Exception):
    """Base exception for all ledger errors."""

    kind = "ledger_error"

    def to_dict(self) -> dict:
        return {"error": self.kind, "detail": str(self)}


class ValidationError(LedgerError):
    """Invalid input. Always raised before anything is written."""

    kind = "validation_error"


class NotFoundError(LedgerError):
    """An order, installment or expense id does not exist."""

    kind = "not_found"


class StoreError(LedgerError):
    """The record store failed (network, permission, conflict)."""

    kind = "store_error"


class ConcurrencyConflict(StoreError):
    """The record changed since it was read (version mismatch)."""

    kind = "conflict"


class PreconditionDrift(UserWarning):
    """An accepted operation left a purchase-level invariant broken.

    Logged as a warning, never raised.
    """
