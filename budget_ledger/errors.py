"""
Ledger error taxonomy.

Every failure the ledger reports is one of these types.
The API layer maps them onto HTTP status codes; the ledger
itself never decides how an error is presented.
"""


class LedgerError(Exception):
    """Base class for all ledger failures."""


class ValidationError(LedgerError):
    """
    One or more rule violations on a candidate record.

    All violations found in a single pass are collected in
    `reasons` so the caller sees every problem at once.
    """

    def __init__(self, reasons: list[str]):
        self.reasons = list(reasons)
        super().__init__("; ".join(self.reasons))


class NotFoundError(LedgerError):
    """The requested record does not exist. Never retried."""


class TypeMismatchError(LedgerError):
    """Transfer between accounts of different types."""


class InvalidTypeError(LedgerError):
    """Unknown account type or an invalid type combination."""


class InvalidCategoryAccountError(InvalidTypeError):
    """A category-type account was used where it is not allowed."""


class StorageError(LedgerError):
    """Persistence failed and the retry budget is exhausted."""
