import httpx

# Raised unchanged from the HTTP layer (connection errors, timeouts, non-2xx).
TransportError = httpx.HTTPError


class BooksError(ValueError):
    """Base class for request validation failures."""


class InvalidQuery(BooksError):
    def __init__(self, message: str = "Invalid search term"):
        super().__init__(message)


class InvalidIdentifier(BooksError):
    def __init__(self, message: str = "Invalid ID to search by"):
        super().__init__(message)


class MissingField(BooksError):
    def __init__(self, message: str = "Must provide search field"):
        super().__init__(message)


class UnsupportedField(BooksError):
    def __init__(self, field):
        self.field = field
        super().__init__(f"Invalid field to search by: {field}")
