class InvoicerError(Exception):
    """Base class for errors raised by the invoicing service."""


class InvoiceValidationError(InvoicerError, ValueError):
    """Input the caller has to correct, e.g. a missing customer name."""


class RecordNotFoundError(InvoicerError, LookupError):
    def __init__(self, kind: str, record_id):
        super().__init__(f"{kind} {record_id} not found")
        self.kind = kind
        self.record_id = record_id


class PersistenceError(InvoicerError, RuntimeError):
    """A write to the database failed and was rolled back."""
