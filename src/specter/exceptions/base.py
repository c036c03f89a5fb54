"""Base exception for Specter."""

from typing import Dict, Optional


class SpecterError(Exception):
    """Base exception for all Specter errors.

    ``exit_code`` is the status the command line exits with when the error
    reaches it; ``details`` are rendered after the message.
    """

    exit_code = 1

    def __init__(self, message: str, details: Optional[Dict[str, str]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if not self.details:
            return self.message
        details_str = ", ".join(f"{k}={v}" for k, v in self.details.items())
        return f"{self.message} ({details_str})"
