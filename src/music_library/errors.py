from __future__ import annotations

from typing import Any, Dict, Optional


# PUBLIC_INTERFACE
class LibraryError(Exception):
    """
    Base exception for library failures that abort an operation.

    Recoverable conditions (unknown item IDs, malformed rows) are never raised;
    they are logged and reported in operation summaries instead.
    """

    def __init__(self, message: str, code: str, http_status: int = 500) -> None:
        super().__init__(message)
        self.message = message
        self.code = code
        self.http_status = http_status

    def to_response(self) -> Dict[str, Any]:
        """Convert to the JSON error envelope returned by the API."""
        return {"error": type(self).__name__, "code": self.code, "message": self.message}


class InventorySheetNotFoundError(LibraryError):
    """The configured Items sheet is missing from the store. Fatal for the run."""

    def __init__(self, sheet_name: str) -> None:
        super().__init__(f"{sheet_name} sheet not found", "SHEET_NOT_FOUND", 503)
        self.sheet_name = sheet_name


class MailDeliveryError(LibraryError):
    """A mail transport could not deliver one message."""

    def __init__(self, recipient: str, reason: Optional[str] = None) -> None:
        message = f"Failed to send email to {recipient}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message, "MAIL_DELIVERY_FAILED", 502)
        self.recipient = recipient
