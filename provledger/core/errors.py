"""
Typed failures returned by the provenance engine.

Engine operations hand these back as values instead of raising them, so a
caller can branch with isinstance(). The store raises StoreUnavailable for
backend I/O errors and the engine converts it into a returned value.
"""

from typing import Optional


class ProvenanceError(Exception):
    """Base class for every ledger failure."""
    code = "PROVENANCE_ERROR"

    def __init__(self, message: str, record_id: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.record_id = record_id

    def to_dict(self):
        return {
            "error_type": self.code,
            "message": self.message,
            "record_id": self.record_id,
        }


class AlreadyExists(ProvenanceError):
    """Creation attempted on an ID that already holds a record."""
    code = "ALREADY_EXISTS"


class NotFound(ProvenanceError):
    """Read or update of an ID with no record."""
    code = "NOT_FOUND"


class BrokenReference(ProvenanceError):
    """Linking with an entity, agent or activity ID that does not resolve."""
    code = "BROKEN_REFERENCE"


class StoreUnavailable(ProvenanceError):
    """Backend I/O failure. Not recovered locally."""
    code = "STORE_UNAVAILABLE"


class InvalidArgument(ProvenanceError):
    """Empty identifiers, unknown operations and wrong argument counts."""
    code = "INVALID_ARGUMENT"


class VersionConflict(ProvenanceError):
    """A key moved past the version an operation read before writing."""
    code = "VERSION_CONFLICT"

    def __init__(self, message: str, record_id: Optional[str] = None, expected: int = None, actual: int = None):
        super().__init__(message, record_id)
        self.expected = expected
        self.actual = actual
