"""
Ledger error taxonomy.

Every failure raised by the ledger components derives from LedgerError.
Errors are synchronous and never retried internally; the HTTP layer maps
them onto status codes through ``status_code``.
"""

from typing import Any, Dict, List


class LedgerError(Exception):
    """Base class for all ledger failures."""

    status_code = 400

    def __init__(self, message: str, **details: Any):
        super().__init__(message)
        self.message = message
        self.details = details

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for logging/serialization."""
        result = {
            "type": type(self).__name__,
            "detail": self.message,
        }
        if self.details:
            result["details"] = self.details
        return result


class Unauthorized(LedgerError):
    """Caller lacks the required relationship (owner, administrator, licensor)."""

    status_code = 403


class NotFound(LedgerError):
    status_code = 404


class AssetNotFound(NotFound):
    pass


class NoShareTable(NotFound):
    pass


class DuplicateAsset(LedgerError):
    status_code = 409


class DuplicateHash(LedgerError):
    status_code = 409


class InvalidArgument(LedgerError):
    status_code = 422


class InvalidShareTable(LedgerError):
    """Share table does not sum to 10000 bps, is empty, or is misshapen."""

    status_code = 422


class LengthMismatch(InvalidShareTable):
    pass


class AlreadyPaid(LedgerError):
    status_code = 409


class InsufficientPayment(LedgerError):
    status_code = 402


class ZeroAmount(LedgerError):
    status_code = 422


class TransferFailed(LedgerError):
    """
    One or more value transfers failed after the ledger state was committed.

    ``reference`` is the committed license or distribution id, ``failures``
    lists the transfers that did not go through. The amounts stay recorded
    as outstanding balances of their recipients.
    """

    status_code = 502

    def __init__(self, message: str, reference: int | None = None, failures: List[Dict[str, Any]] | None = None):
        super().__init__(message, reference=reference, failures=failures or [])
        self.reference = reference
        self.failures = failures or []
