"""Pydantic models describing the scraper backend payloads.

Only the shape is enforced here. Numeric fields arrive as strings (sometimes
numbers, sometimes junk like ``"SCR"``) and are parsed permissively by the
normalizer, so they are typed loosely on purpose.
"""

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


def _text_or_none(value: Any) -> Any:
    """Accept numbers where text is expected (e.g. raceNumber: 3)."""
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    return value


class _Payload(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class ScrapedOdds(_Payload):
    open: Any = None
    fluc1: Any = None
    fluc2: Any = None
    win_fixed: Any = Field(default=None, alias="winFixed")
    place_fixed: Any = Field(default=None, alias="placeFixed")
    each_way_fixed: Any = Field(default=None, alias="eachWayFixed")

    def price(self, field_name: str) -> Any:
        """Raw value of a price field by its wire name (``winFixed``...)."""
        return self.model_dump(by_alias=True).get(field_name)


class ScrapedHorse(_Payload):
    rank: Any = None
    horse_number: Any = Field(default=None, alias="horseNumber")
    horse_name: Optional[str] = Field(default=None, alias="horseName")
    jockey: Optional[str] = None
    odds: ScrapedOdds = Field(default_factory=ScrapedOdds)

    @field_validator("horse_name", "jockey", mode="before")
    @classmethod
    def coerce_text(cls, value: Any) -> Any:
        return _text_or_none(value)


class ScrapedRace(_Payload):
    race_number: Optional[str] = Field(default=None, alias="raceNumber")
    time: Optional[str] = None
    result: Optional[str] = None
    link: Optional[str] = None
    horses: list[ScrapedHorse] = Field(default_factory=list)

    @field_validator("race_number", "time", mode="before")
    @classmethod
    def coerce_text(cls, value: Any) -> Any:
        return _text_or_none(value)


class ScrapedRacetrack(_Payload):
    racetrack: str
    tracklink_url: Optional[str] = Field(default=None, alias="tracklinkUrl")
    completed_races: list[ScrapedRace] = Field(default_factory=list, alias="completedRaces")


class ScrapedWinnerHorse(_Payload):
    number: Any = None
    name: Optional[str] = None
    jockey: Optional[str] = None
    win_odds: Any = Field(default=None, alias="winOdds")

    @field_validator("name", "jockey", mode="before")
    @classmethod
    def coerce_text(cls, value: Any) -> Any:
        return _text_or_none(value)


class ScrapedWinner(_Payload):
    racecourse: str
    race_number: str = Field(alias="raceNumber")
    time: Optional[str] = None
    link: Optional[str] = None
    winner: ScrapedWinnerHorse

    @field_validator("race_number", "time", mode="before")
    @classmethod
    def coerce_text(cls, value: Any) -> Any:
        return _text_or_none(value)


class ScrapeResponse(_Payload):
    """Envelope shared by every scrape endpoint."""

    data: list[Any]
    timestamp: Optional[str] = None
