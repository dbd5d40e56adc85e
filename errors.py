class ReconciliationError(Exception):
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InvalidInput(ReconciliationError):
    status_code = 400


class InvariantViolation(ReconciliationError):
    """The contact store holds a cluster that breaks the primary/secondary rules."""
    status_code = 500
