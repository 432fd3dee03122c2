"""Fetch + normalize: the unit of work the refresh scheduler runs."""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Optional

from oddsboard.config import OddsField, Settings, melb_now
from oddsboard.ingest.cancel import CancelToken
from oddsboard.ingest.client import RaceApiClient, validate_date_token
from oddsboard.ingest.errors import EmptyResultError
from oddsboard.ingest.normalizer import (
    NormalizeOptions,
    carry_previous_odds,
    normalize,
    normalize_winners,
)
from oddsboard.models.race import RaceSnapshot, Winner

logger = logging.getLogger(__name__)

ALL_RACES = "all-races"
UPCOMING = "upcoming"


@dataclass(frozen=True)
class RefreshRequest:
    """Which scrape to run."""

    kind: str = ALL_RACES
    date_token: Optional[str] = None

    @classmethod
    def all_races(cls) -> "RefreshRequest":
        return cls(ALL_RACES)

    @classmethod
    def upcoming(cls, date_token: str) -> "RefreshRequest":
        return cls(UPCOMING, validate_date_token(date_token))

    @property
    def title(self) -> str:
        if self.kind == UPCOMING:
            return f"Schedule of {self.date_token}"
        return "Today's Result"

    @property
    def is_schedule(self) -> bool:
        return self.kind == UPCOMING


class IngestPipeline:
    """Runs one scrape and turns the payload into a :class:`RaceSnapshot`."""

    def __init__(
        self,
        client: RaceApiClient,
        odds_field: OddsField = OddsField.WIN_FIXED,
        track_movement: bool = True,
        clock: Callable[[], datetime] = melb_now,
    ):
        self.client = client
        self.odds_field = odds_field
        self.track_movement = track_movement
        self._clock = clock

    @classmethod
    def from_settings(cls, settings: Settings) -> "IngestPipeline":
        client = RaceApiClient(settings.api_url, timeout=settings.request_timeout)
        return cls(
            client,
            odds_field=settings.odds_field,
            track_movement=settings.track_movement,
        )

    async def fetch_races(
        self,
        request: RefreshRequest,
        token: CancelToken,
        previous: Optional[RaceSnapshot] = None,
    ) -> RaceSnapshot:
        """Fetch and normalize races.

        Raises:
            NetworkError, MalformedInputError, FetchCancelledError: From the
                client and normalizer.
            EmptyResultError: When the backend returned no racetracks.
        """
        if request.is_schedule:
            response = await self.client.scrape_upcoming(request.date_token, token)
        else:
            response = await self.client.scrape_all_races(token)

        options = NormalizeOptions(
            odds_field=self.odds_field,
            skip_first_race_of_first_track=request.is_schedule,
        )
        racecourses = normalize(response.data, options)
        if not racecourses:
            raise EmptyResultError(f"{request.title}: no racetracks returned")

        # Movement only makes sense against the same board (same day/view)
        if self.track_movement and previous is not None and previous.title == request.title:
            racecourses = carry_previous_odds(racecourses, previous.racecourses)

        rounds = sum(len(rc.rounds) for rc in racecourses)
        logger.info(f"{request.title}: {len(racecourses)} racetracks, {rounds} rounds")
        return RaceSnapshot(
            racecourses=tuple(racecourses),
            title=request.title,
            fetched_at=self._clock(),
            source_timestamp=response.timestamp,
        )

    async def fetch_winners(self, token: CancelToken) -> list[Winner]:
        response = await self.client.scrape_winners(token)
        winners = normalize_winners(response.data)
        logger.info(f"Winners: {len(winners)} results")
        return winners

    async def close(self) -> None:
        await self.client.close()
