"""Error types raised by the migration pipeline and the voucher store."""

from __future__ import annotations


class LedgerError(Exception):
    """Base class for every error raised by the ledger package."""


class UnsupportedFormatError(LedgerError):
    """The source type or file shape cannot be turned into raw records."""

    def __init__(self, message: str, source_type: str | None = None):
        super().__init__(message)
        self.source_type = source_type


class NestedTransactionError(LedgerError):
    """A transaction was opened while another one was still active."""


class VoucherValidationError(LedgerError):
    """Voucher entries break the double-entry rules."""


class BatchNotFoundError(LedgerError):
    def __init__(self, batch_id: int):
        super().__init__(f"Batch {batch_id} not found")
        self.batch_id = batch_id


class AccountMappingError(LedgerError):
    """A validated record no longer resolves to both a debit and a credit account."""


__all__ = [
    "LedgerError",
    "UnsupportedFormatError",
    "NestedTransactionError",
    "VoucherValidationError",
    "BatchNotFoundError",
    "AccountMappingError",
]
