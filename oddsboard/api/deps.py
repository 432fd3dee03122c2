"""Shared request dependencies."""

from fastapi import Request

from oddsboard.ingest.pipeline import IngestPipeline
from oddsboard.scheduler.refresh import RefreshScheduler


def get_refresher(request: Request) -> RefreshScheduler:
    """The app's refresh scheduler (created in the lifespan)."""
    return request.app.state.refresher


def get_pipeline(request: Request) -> IngestPipeline:
    return request.app.state.pipeline
