"""Errors raised by the books API client."""
from typing import Optional


class RequestError(Exception):
    """A books API call failed, at the transport level or with a non-2xx status."""
    
    def __init__(self, operation: str, status_code: Optional[int] = None):
        """
        Args:
            operation: What was being attempted, e.g. "Failed to fetch books"
            status_code: HTTP status of the response, if one was received
        """
        super().__init__(operation)
        self.operation = operation
        self.status_code = status_code
    
    @property
    def message(self) -> str:
        return self.operation
