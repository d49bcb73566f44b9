"""Custom exception hierarchy for Berry."""


class BerryError(Exception):
    """Base exception for all Berry errors."""

    pass


# --- Storage errors ---


class StorageError(BerryError):
    """Base for storage-related errors."""

    pass


class StorageConnectionError(StorageError):
    """The vector store could not be reached or rejected the request."""

    pass


# --- Memory errors ---


class MemoryNotFoundError(BerryError):
    """Requested memory record does not exist."""

    def __init__(self, memory_id=None, message: str = "Memory not found"):
        self.memory_id = memory_id
        super().__init__(f"{message}: {memory_id}" if memory_id else message)


class MemoryAccessDenied(BerryError):
    """Caller does not have permission to access the requested memory."""

    def __init__(self, memory_id=None, actor=None, message: str = "Access denied"):
        self.memory_id = memory_id
        self.actor = actor
        super().__init__(message)


# --- Validation errors ---


class ValidationError(BerryError):
    """Input validation failed."""

    pass


class ConfigurationError(BerryError):
    """Application configuration is invalid or missing required values."""

    pass
