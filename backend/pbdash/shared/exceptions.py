"""
Errors shared across features.

Feature-specific errors (Concept2 API failures) live next to the code
that raises them and derive from PBDashError.
"""


class PBDashError(Exception):
    """Base application error."""
    pass


class ValidationError(PBDashError):
    """
    Malformed result or catalog record.

    Raised per record. Callers skip the record and keep processing
    the rest of the batch.
    """

    def __init__(self, message: str, record_id: str | None = None):
        super().__init__(message)
        self.record_id = record_id


class OperationTimeoutError(PBDashError):
    """A wall-clock budget was exceeded."""

    def __init__(self, operation: str, budget_s: float):
        super().__init__(f"{operation} exceeded {budget_s:.0f}s budget")
        self.operation = operation
        self.budget_s = budget_s


class OperationInProgressError(PBDashError):
    """Another request holds the lease for this athlete and operation."""

    def __init__(self, user_id: str, operation: str):
        super().__init__(f"{operation} already running for user {user_id}")
        self.user_id = user_id
        self.operation = operation
