"""
Error types raised by the book store and identifier parsing.
"""


class InvalidBookId(ValueError):
    """Raised when a path identifier is not a valid ObjectId hex string."""

    def __init__(self, value: str):
        self.value = value
        super().__init__(f"Invalid book ID: {value!r}")


class StoreError(Exception):
    """Raised when a database operation fails."""

    def __init__(self, operation: str, message: str):
        self.operation = operation
        self.message = message
        super().__init__(f"{operation} failed: {message}")


class StoreTimeout(StoreError):
    """Raised when a database operation exceeds its time budget."""

    def __init__(self, operation: str, timeout: float):
        self.timeout = timeout
        super().__init__(operation, f"timed out after {timeout} seconds")
