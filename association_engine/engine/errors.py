"""
Error taxonomy of the association engine.

Every error carries a stable machine-readable `kind` and a human-readable
message. The HTTP boundary maps kinds to its own status codes.
"""

from typing import Dict, Optional


class EngineError(Exception):
    """Base exception for association engine errors."""

    kind: str = "EngineError"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> Dict[str, str]:
        return {"kind": self.kind, "message": self.message}


class ValidationError(EngineError):
    """Raised for bad query input; rejected before any fetch."""

    kind = "ValidationError"


class InvalidCursorError(EngineError):
    """Raised when a cursor is malformed or was produced under another ordering."""

    kind = "InvalidCursorError"


class StoreError(EngineError):
    """Raised when a storage fetch fails or a required datasource times out."""

    kind = "StoreError"

    def __init__(self, message: str, datasource_id: Optional[str] = None):
        super().__init__(message)
        self.datasource_id = datasource_id
