"""Canonical race model and preference storage for Oddsboard."""

from oddsboard.models.race import (
    Favorite,
    Horse,
    Movement,
    RaceSnapshot,
    Racecourse,
    Round,
    Winner,
    WinnerHorse,
    parse_race_number,
)

__all__ = [
    "Favorite",
    "Horse",
    "Movement",
    "RaceSnapshot",
    "Racecourse",
    "Round",
    "Winner",
    "WinnerHorse",
    "parse_race_number",
]
