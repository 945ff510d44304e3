from typing import Optional


class LedgerError(Exception):
    """Base for every error the ledger reports to its callers."""
    code = "ledger_error"

    def __init__(self, message: str, entity_id: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.entity_id = entity_id


class ValidationError(LedgerError):
    code = "validation_error"


class ConflictError(LedgerError):
    code = "conflict"


class NotFoundError(LedgerError):
    code = "not_found"


class StorageError(LedgerError):
    code = "storage_error"
