"""Canonical race model: racecourses, rounds, horses and winners.

These records are produced by the normalizer and never mutated afterwards.
Analytics build new derived views instead of editing them, and a fresh fetch
replaces the whole model.
"""

import re
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional

_DIGITS = re.compile(r"\d+")


def parse_race_number(text: Optional[str]) -> int:
    """Round number from labels like "R12" (first run of digits), else 0."""
    if not text:
        return 0
    match = _DIGITS.search(text)
    if match:
        return int(match.group(0))
    try:
        return int(text)
    except ValueError:
        return 0


class Movement(str, Enum):
    """Direction of a price change since the previous fetch."""

    UP = "up"
    DOWN = "down"
    NEUTRAL = "neutral"


@dataclass(frozen=True)
class Horse:
    """A runner in a round. ``odds == 0`` means no market price."""

    number: int
    position: int
    odds: float
    previous_odds: Optional[float] = None
    name: Optional[str] = None
    jockey: Optional[str] = None

    @property
    def has_valid_odds(self) -> bool:
        return self.odds > 0

    def to_dict(self) -> dict:
        return {
            "number": self.number,
            "position": self.position,
            "odds": self.odds,
            "previous_odds": self.previous_odds,
            "name": self.name,
            "jockey": self.jockey,
        }


@dataclass(frozen=True)
class Round:
    """One race at a racecourse."""

    round_number: int
    time: str
    horses: tuple[Horse, ...] = ()


@dataclass(frozen=True)
class Racecourse:
    """A racecourse and its rounds in the order they were received."""

    name: str
    rounds: tuple[Round, ...] = ()

    def find_round(self, round_number: int) -> Optional[Round]:
        for rnd in self.rounds:
            if rnd.round_number == round_number:
                return rnd
        return None


@dataclass(frozen=True)
class Favorite:
    """Shortest-priced horse of a round (derived, never stored)."""

    racecourse: str
    round: int
    time: str
    horse_number: int
    position: int
    odds: float
    horse_name: Optional[str] = None
    jockey: Optional[str] = None
    previous_odds: Optional[float] = None
    movement: Movement = Movement.NEUTRAL

    def to_dict(self) -> dict:
        return {
            "racecourse": self.racecourse,
            "round": self.round,
            "time": self.time,
            "horse_number": self.horse_number,
            "horse_name": self.horse_name,
            "jockey": self.jockey,
            "position": self.position,
            "odds": self.odds,
            "previous_odds": self.previous_odds,
            "movement": self.movement.value,
        }


@dataclass(frozen=True)
class WinnerHorse:
    number: int
    name: str
    jockey: str
    win_odds: float
    odds_rank: Optional[int] = None


@dataclass(frozen=True)
class Winner:
    """A race result reported by the winners endpoint."""

    racecourse: str
    race_number: str  # "R<n>"
    time: str
    winner: WinnerHorse
    link: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "racecourse": self.racecourse,
            "race_number": self.race_number,
            "time": self.time,
            "link": self.link,
            "winner": {
                "number": self.winner.number,
                "name": self.winner.name,
                "jockey": self.winner.jockey,
                "win_odds": self.winner.win_odds,
                "odds_rank": self.winner.odds_rank,
            },
        }


@dataclass(frozen=True)
class RaceSnapshot:
    """Result of one successful fetch; replaced wholesale by the next one."""

    racecourses: tuple[Racecourse, ...]
    title: str
    fetched_at: datetime
    source_timestamp: Optional[str] = None

    @property
    def names(self) -> list[str]:
        return [rc.name for rc in self.racecourses]

    def find_racecourse(self, name: str) -> Optional[Racecourse]:
        for rc in self.racecourses:
            if rc.name == name:
                return rc
        return None
