from typing import Optional


class UpstreamError(Exception):
    """
    Raised when the spreadsheet provider call fails or returns a payload
    that does not have the expected shape.

    Attributes:
        message: Short description of the failure
        details: Upstream error body or exception text, surfaced to API clients
    """

    def __init__(self, message: str, details: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.details = details or message

    def __str__(self) -> str:
        if self.details and self.details != self.message:
            return f"{self.message}: {self.details}"
        return self.message
