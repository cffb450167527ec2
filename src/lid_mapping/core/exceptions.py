"""Custom exceptions for the LID mapping store."""


class MappingError(Exception):
    """Base exception for mapping operations."""

    pass


class ValidationError(MappingError):
    """Raised when an identifier or pair fails validation."""

    def __init__(self, message: str, jid: str | None = None):
        self.jid = jid
        super().__init__(message)


class StorageError(MappingError):
    """Raised when persistent store operations fail."""

    pass


class StoreTransactionError(StorageError):
    """Raised when a batch of mappings could not be committed."""

    def __init__(self, batch_id: str, message: str = ""):
        self.batch_id = batch_id
        super().__init__(message or f"Failed to commit mapping batch {batch_id}")


class ExternalLookupError(MappingError):
    """Raised when the external directory lookup fails or times out."""

    def __init__(self, jid: str, message: str = ""):
        self.jid = jid
        super().__init__(message or f"External lookup failed for {jid}")
