"""Convert scraped racetrack payloads into the canonical race model.

The scraper backend is loose about types: saddlecloth numbers and prices are
strings, scratched runners carry ``"SCR"`` or an empty price, and the odds
object has several fixed-price fields. Shape problems are rejected with
:class:`MalformedInputError`; unparsable numbers default to ``0`` and are
logged so a quiet data problem still leaves a trace.
"""

import logging
import math
import re
from dataclasses import dataclass, field, replace
from typing import Any, Iterable, Optional, Sequence

from pydantic import ValidationError

from oddsboard.config import OddsField
from oddsboard.ingest.errors import MalformedInputError
from oddsboard.ingest.schema import ScrapedRacetrack, ScrapedWinner
from oddsboard.models.race import (
    Horse,
    Racecourse,
    Round,
    Winner,
    WinnerHorse,
    parse_race_number,
)

logger = logging.getLogger(__name__)

NOT_AVAILABLE = "N/A"

_LEADING_INT = re.compile(r"^\s*[+-]?\d+")


@dataclass(frozen=True)
class NormalizeOptions:
    """Caller-selected normalization policy."""

    odds_field: OddsField = OddsField.WIN_FIXED
    # Schedule/upcoming payloads lead with a placeholder race on the first track
    skip_first_race_of_first_track: bool = False


@dataclass
class _DefaultLog:
    """Collects fields that fell back to 0 during one normalize call."""

    entries: list[str] = field(default_factory=list)

    def record(self, where: str, name: str, value: Any) -> None:
        self.entries.append(where)
        logger.debug(f"Defaulted {name}={value!r} to 0 ({where})")

    def summarize(self, what: str) -> None:
        if self.entries:
            logger.info(f"Normalized {what}: {len(self.entries)} unparsable field(s) defaulted to 0")


def _parse_int(value: Any, where: str, name: str, defaults: _DefaultLog) -> int:
    """Leading integer of a value ("5", 5, "5a"), else 0."""
    if isinstance(value, bool):
        value = None
    if isinstance(value, int):
        return value
    if isinstance(value, float) and math.isfinite(value):
        return int(value)
    if isinstance(value, str):
        match = _LEADING_INT.match(value)
        if match:
            return int(match.group(0))
    defaults.record(where, name, value)
    return 0


def _parse_price(value: Any, where: str, name: str, defaults: _DefaultLog) -> float:
    """Parse a price like "3.50", "$3.50" or 3.5. No market / junk -> 0."""
    price: Optional[float] = None
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        price = float(value)
    elif isinstance(value, str):
        cleaned = value.replace("$", "").replace(",", "").strip()
        try:
            price = float(cleaned)
        except ValueError:
            price = None
    if price is None or not math.isfinite(price) or price < 0:
        defaults.record(where, name, value)
        return 0.0
    return price


def _validate_racetrack(entry: Any, index: int) -> ScrapedRacetrack:
    if not isinstance(entry, dict):
        raise MalformedInputError(
            f"racetrack must be an object, got {type(entry).__name__}", index=index
        )
    try:
        return ScrapedRacetrack.model_validate(entry)
    except ValidationError as e:
        first = e.errors()[0]
        loc = ".".join(str(p) for p in first["loc"])
        raise MalformedInputError(f"{loc}: {first['msg']}", index=index) from e


def normalize(
    raw_racetracks: Sequence[Any],
    options: Optional[NormalizeOptions] = None,
) -> list[Racecourse]:
    """Map scraped racetracks to canonical racecourses.

    Args:
        raw_racetracks: The ``data`` list returned by a scrape endpoint.
        options: Odds-field policy and the schedule-view skip flag.

    Raises:
        MalformedInputError: If an entry does not have the racetrack shape.
            The error names the offending racetrack index.
    """
    options = options or NormalizeOptions()
    if not isinstance(raw_racetracks, (list, tuple)):
        raise MalformedInputError(
            f"expected a list of racetracks, got {type(raw_racetracks).__name__}"
        )

    defaults = _DefaultLog()
    price_field = options.odds_field.value
    racecourses: list[Racecourse] = []

    for track_index, entry in enumerate(raw_racetracks):
        track = _validate_racetrack(entry, track_index)
        races = track.completed_races
        if track_index == 0 and options.skip_first_race_of_first_track:
            races = races[1:]

        rounds = []
        for race in races:
            where = f"{track.racetrack} {race.race_number or '?'}"
            horses = tuple(
                Horse(
                    number=_parse_int(h.horse_number, where, "horseNumber", defaults),
                    position=_parse_int(h.rank, where, "rank", defaults),
                    odds=_parse_price(h.odds.price(price_field), where, price_field, defaults),
                    previous_odds=None,
                    name=h.horse_name,
                    jockey=h.jockey or NOT_AVAILABLE,
                )
                for h in race.horses
            )
            rounds.append(
                Round(
                    round_number=parse_race_number(race.race_number),
                    time=race.time or NOT_AVAILABLE,
                    horses=horses,
                )
            )

        racecourses.append(Racecourse(name=track.racetrack, rounds=tuple(rounds)))

    defaults.summarize(f"{len(racecourses)} racetracks")
    return racecourses


def normalize_winners(raw_winners: Sequence[Any]) -> list[Winner]:
    """Map the winners endpoint payload to canonical winners.

    Raises:
        MalformedInputError: If an entry does not have the winner shape.
    """
    if not isinstance(raw_winners, (list, tuple)):
        raise MalformedInputError(
            f"expected a list of winners, got {type(raw_winners).__name__}"
        )

    defaults = _DefaultLog()
    winners = []
    for index, entry in enumerate(raw_winners):
        if not isinstance(entry, dict):
            raise MalformedInputError(
                f"winner must be an object, got {type(entry).__name__}", index=index
            )
        try:
            raw = ScrapedWinner.model_validate(entry)
        except ValidationError as e:
            first = e.errors()[0]
            loc = ".".join(str(p) for p in first["loc"])
            raise MalformedInputError(f"{loc}: {first['msg']}", index=index) from e

        where = f"{raw.racecourse} {raw.race_number}"
        winners.append(
            Winner(
                racecourse=raw.racecourse,
                race_number=raw.race_number,
                time=raw.time or NOT_AVAILABLE,
                link=raw.link,
                winner=WinnerHorse(
                    number=_parse_int(raw.winner.number, where, "number", defaults),
                    name=raw.winner.name or "",
                    jockey=raw.winner.jockey or NOT_AVAILABLE,
                    win_odds=_parse_price(raw.winner.win_odds, where, "winOdds", defaults),
                ),
            )
        )

    defaults.summarize(f"{len(winners)} winners")
    return winners


def carry_previous_odds(
    current: Iterable[Racecourse],
    previous: Optional[Iterable[Racecourse]],
) -> list[Racecourse]:
    """Rebuild ``current`` with each horse's price from the replaced model.

    Horses are matched on (racecourse name, round number, horse number).
    Only valid older prices are carried; nothing else is copied across.
    """
    current = list(current)
    if not previous:
        return current

    prices: dict[tuple[str, int, int], float] = {}
    for rc in previous:
        for rnd in rc.rounds:
            for horse in rnd.horses:
                key = (rc.name, rnd.round_number, horse.number)
                if horse.odds > 0 and key not in prices:
                    prices[key] = horse.odds

    if not prices:
        return current

    rebuilt = []
    for rc in current:
        rounds = []
        for rnd in rc.rounds:
            horses = tuple(
                replace(h, previous_odds=prices[(rc.name, rnd.round_number, h.number)])
                if (rc.name, rnd.round_number, h.number) in prices
                else h
                for h in rnd.horses
            )
            rounds.append(replace(rnd, horses=horses))
        rebuilt.append(replace(rc, rounds=tuple(rounds)))
    return rebuilt
