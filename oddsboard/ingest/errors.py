"""Errors raised while fetching and normalizing scraper payloads."""

from typing import Optional


class IngestError(Exception):
    """Base class for ingestion failures."""

    pass


class NetworkError(IngestError):
    """The scraper backend could not be reached or answered non-2xx."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class FetchCancelledError(IngestError):
    """The fetch was aborted or superseded. Not a user-visible failure."""

    pass


class MalformedInputError(IngestError):
    """The scraped payload does not have the expected shape."""

    def __init__(self, message: str, index: Optional[int] = None):
        if index is not None:
            message = f"entry {index}: {message}"
        super().__init__(message)
        self.index = index


class EmptyResultError(IngestError):
    """A valid response that contains no usable records."""

    pass
