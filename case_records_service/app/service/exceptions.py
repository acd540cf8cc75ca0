"""
Custom exceptions for the Case Records service.

Lookup misses are not exceptions in this layer: stores return None, False
or an empty list instead.
"""

from typing import Optional

class BaseCaseRecordsError(Exception):
    """Base class for exceptions in this module."""
    pass

class CaseValidationError(BaseCaseRecordsError):
    """Raised when caller input is rejected, e.g. an empty case name."""
    def __init__(self, field: str, message: str):
        self.field = field
        super().__init__(f"Invalid {field}: {message}")

class SerializationError(BaseCaseRecordsError):
    """Raised when a stored record collection cannot be decoded or validated."""
    def __init__(self, key: str, reason: str):
        self.key = key
        self.reason = reason
        super().__init__(f"Stored records under key '{key}' could not be parsed: {reason}")

class RemoteUnavailableError(BaseCaseRecordsError):
    """Raised by the remote records client; handled inside the fallback coordinator."""
    def __init__(self, operation: str, path: str, reason: str, status_code: Optional[int] = None):
        self.operation = operation
        self.path = path
        self.reason = reason
        self.status_code = status_code
        super().__init__(f"Remote {operation} {path} failed: {reason}")

class ConfigurationError(BaseCaseRecordsError):
    """Raised when a configuration issue is detected."""
    pass
