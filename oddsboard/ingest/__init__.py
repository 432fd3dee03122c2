"""Ingestion of scraper backend payloads into the canonical race model."""

from oddsboard.ingest.cancel import CancelToken
from oddsboard.ingest.client import RaceApiClient
from oddsboard.ingest.errors import (
    EmptyResultError,
    FetchCancelledError,
    IngestError,
    MalformedInputError,
    NetworkError,
)
from oddsboard.ingest.normalizer import NormalizeOptions, normalize, normalize_winners
from oddsboard.ingest.pipeline import IngestPipeline, RefreshRequest

__all__ = [
    "CancelToken",
    "RaceApiClient",
    "EmptyResultError",
    "FetchCancelledError",
    "IngestError",
    "MalformedInputError",
    "NetworkError",
    "NormalizeOptions",
    "normalize",
    "normalize_winners",
    "IngestPipeline",
    "RefreshRequest",
]
