"""
Exceptions raised by the fuzzy search pipeline.
"""


class SearchError(Exception):
    """Base class for search pipeline errors."""


class InvalidQueryError(SearchError, ValueError):
    """Raised when a search query is empty or not a string."""

    def __init__(self, message: str = "Search query must be a non-empty string"):
        super().__init__(message)


class SearchTimeoutError(SearchError):
    """Raised when ranking runs past the caller's deadline."""

    def __init__(self, scored: int, total: int):
        self.scored = scored
        self.total = total
        super().__init__(f"Search deadline exceeded after scoring {scored} of {total} candidates")
