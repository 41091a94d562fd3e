from __future__ import annotations


class InsufficientDataError(ValueError):
    """Raised when too few usable records or series points remain to continue."""

    def __init__(self, message: str, required: int = 1, available: int = 0) -> None:
        super().__init__(message)
        self.required = required
        self.available = available
