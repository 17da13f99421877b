"""Domain errors raised by the calculation core.

Validation errors subclass ValueError so callers that already translate
ValueError into a 400 keep working.
"""


class BrokerageError(Exception):
    """Base class for calculation-core errors."""


class InvalidRange(BrokerageError, ValueError):
    """End before start, or a payroll period without a valid month/year."""


class EmptySelection(BrokerageError, ValueError):
    """No collaborator ids were supplied."""


class InvalidStatusTransition(BrokerageError, ValueError):
    """A commission status change that does not move forward in its lifecycle."""


class UpstreamFailure(BrokerageError, RuntimeError):
    """A system-of-record call failed or timed out; the whole generation is aborted."""

    def __init__(self, operation: str, detail: str = ""):
        self.operation = operation
        self.detail = detail
        message = f"{operation} failed"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)


class CollaboratorNotFound(BrokerageError, LookupError):
    pass


class GenerationSuperseded(BrokerageError):
    """A newer generation started on the same scope before this one finished."""

    def __init__(self, scope: str):
        self.scope = scope
        super().__init__(f"Generation on '{scope}' was superseded by a newer request")


class InvalidDecommission(BrokerageError, ValueError):
    """A decommission of a decommission, or an amount outside (0, original amount]."""


class InvalidLedgerRecord(BrokerageError, ValueError):
    """A stored row that cannot be read as a valid ledger record (data-quality issue)."""

    def __init__(self, record: str, record_id, detail: str = ""):
        self.record = record
        self.record_id = record_id
        self.detail = detail
        message = f"Invalid {record} {record_id}"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)
