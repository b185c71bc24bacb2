"""
Exceptions raised by the draft reconciliation pipeline.

Validation outcomes are never raised: schema and business failures come back
as a ValidationResult. The exceptions here signal caller misuse (lifecycle),
missing entities, or failures of external collaborators.
"""


class DraftPipelineError(Exception):
    """Base error for the draft pipeline; optionally wraps a root cause."""

    def __init__(self, message: str, cause: Exception | None = None):
        self.message = message
        self.cause = cause
        super().__init__(message)

    def __str__(self) -> str:
        if self.cause:
            return f"{self.message}: {self.cause}"
        return self.message


class LifecycleError(DraftPipelineError):
    """Raised when an operation is not allowed in the draft's current status."""

    def __init__(self, operation: str, draft_id: int | None, status: str, message: str | None = None):
        self.operation = operation
        self.draft_id = draft_id
        self.status = status
        super().__init__(
            message or f"Cannot {operation} draft {draft_id} in status '{status}'"
        )


class DraftNotFoundError(DraftPipelineError):
    """Raised when a draft id does not exist in the repository."""

    def __init__(self, draft_id: int):
        self.draft_id = draft_id
        super().__init__(f"Draft {draft_id} not found")


class InvalidPatchError(DraftPipelineError):
    """Raised when a manual patch names fields outside the reservation shape."""

    def __init__(self, unknown_fields: list[str]):
        self.unknown_fields = unknown_fields
        super().__init__(f"Manual patch contains unknown fields: {', '.join(unknown_fields)}")


class OracleFailure(DraftPipelineError):
    """Raised by extraction adapters when the oracle call fails or times out."""


class ReservationConflictError(DraftPipelineError):
    """Raised when a reservation number is already used by a committed reservation."""

    def __init__(self, reservation_number: str, cause: Exception | None = None):
        self.reservation_number = reservation_number
        super().__init__(f"Reservation number '{reservation_number}' already exists", cause)
