"""Exception hierarchy and error payloads used across the package."""

import json
from typing import Any, Dict, Optional


class FermionError(Exception):
    """Base exception for all package errors.

    Attributes:
        message: Human-readable error description
        error_code: Machine-readable error identifier
        context: Additional error context and metadata
    """

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.error_code = error_code or self._default_error_code()
        self.context = context or {}

    def _default_error_code(self) -> str:
        return self.__class__.__name__.upper().replace("ERROR", "_ERROR")

    def to_dict(self) -> Dict[str, Any]:
        """Convert error to structured dictionary for logging/reporting."""
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "error_code": self.error_code,
            "context": self.context,
        }


class MaskDepthExceededError(FermionError):
    """Raised when a structured value nests deeper than the configured limit."""

    def __init__(self, max_depth: int):
        super().__init__(
            f"Structure nesting exceeds maximum masking depth of {max_depth}",
            context={"max_depth": max_depth},
        )
        self.max_depth = max_depth


def serialization_error_payload(exc: Exception) -> str:
    """Build the terminal error payload returned when masked output cannot be encoded."""
    return json.dumps({"error": "SerializationError", "message": str(exc)}, ensure_ascii=False)
