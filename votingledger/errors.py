class LedgerError(Exception):
    """Base class for rejected ledger operations."""

    kind = "LedgerError"
    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InvalidArgument(LedgerError):
    kind = "InvalidArgument"
    status_code = 400


class NotFound(LedgerError):
    kind = "NotFound"
    status_code = 404


class InvalidPayment(LedgerError):
    kind = "InvalidPayment"
    status_code = 402


class AlreadyVoted(LedgerError):
    kind = "AlreadyVoted"
    status_code = 409


class Unauthorized(LedgerError):
    kind = "Unauthorized"
    status_code = 403


class TransferFailed(LedgerError):
    """The value-transfer mechanism refused or could not complete a movement."""

    kind = "TransferFailed"
    status_code = 502
