"""Error kinds raised by the ingestion components."""


class IngestError(RuntimeError):
    """Base class for failures surfaced by the ingestion pipeline."""


class DirectoryUnavailable(IngestError):
    """Raised when the places directory cannot be reached or answers with an error."""


class StoreUnavailable(IngestError):
    """Raised when the database rejects or cannot serve a request."""


class DuplicateKey(StoreUnavailable):
    """Raised when a place record is created twice for the same identifier."""


class DeliveryFailure(IngestError):
    """Raised when a webhook alert could not be delivered."""
