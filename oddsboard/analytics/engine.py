"""Betting analytics over the canonical race model.

Everything here is a pure function of its input: nothing mutates the
racecourses it is given and missing data yields an empty or neutral result
rather than an exception. A horse with ``odds <= 0`` has no market price; it
is shown on the board but never ranked or staked.
"""

from dataclasses import replace
from typing import Iterable, Optional, Sequence

from oddsboard.models.race import (
    Favorite,
    Horse,
    Movement,
    Racecourse,
    Round,
    Winner,
    parse_race_number,
)


# ──────────────────────────────────────────────
# Ranking
# ──────────────────────────────────────────────

def sort_by_odds(horses: Iterable[Horse]) -> list[Horse]:
    """All horses, shortest price first; unpriced horses last.

    The sort is stable, so equal prices keep their received order and
    sorting an already sorted list is a no-op.
    """
    return sorted(horses, key=lambda h: (h.odds <= 0, h.odds if h.odds > 0 else 0.0))


def ranked_horses(horses: Iterable[Horse]) -> list[Horse]:
    """Horses with a valid price, shortest first (stable)."""
    return sorted((h for h in horses if h.has_valid_odds), key=lambda h: h.odds)


def filter_horse_numbers(horses: Iterable[Horse], numbers_filter: str) -> list[Horse]:
    """Apply the board's "1,3,5" horse-number filter.

    Anything that is not a number is ignored; an empty filter keeps every
    horse.
    """
    wanted = set()
    for part in numbers_filter.split(","):
        digits = "".join(ch for ch in part if ch.isdigit())
        if digits:
            wanted.add(int(digits))
    horses = list(horses)
    if not wanted:
        return horses
    return [h for h in horses if h.number in wanted]


# ──────────────────────────────────────────────
# Dutch staking
# ──────────────────────────────────────────────

def dutch_profit(odds_list: Sequence[float]) -> float:
    """Profit % of dutching ``odds_list`` for an equal payout.

    Staking a total of 1 split as ``(1/o_i) / Σ(1/o)`` returns
    ``R = 1 / Σ(1/o)`` whichever horse wins, so the profit is
    ``(R - 1) * 100``. Returns 0 for an empty list or any price ``<= 0``.
    """
    if not odds_list or any(o <= 0 for o in odds_list):
        return 0.0
    total = sum(1.0 / o for o in odds_list)
    if total == 0:
        return 0.0
    return (1.0 / total - 1.0) * 100.0


def top_dutch_profit(rnd: Round, count: int) -> Optional[float]:
    """Dutch profit over the ``count`` shortest valid prices.

    None when the round has fewer than ``count`` priced horses.
    """
    ranked = ranked_horses(rnd.horses)
    if len(ranked) < count:
        return None
    return dutch_profit([h.odds for h in ranked[:count]])


def top_numbers(rnd: Round, count: int) -> list[int]:
    """Horse numbers of the ``count`` shortest valid prices."""
    return [h.number for h in ranked_horses(rnd.horses)[:count]]


def summarize_round(rnd: Round, numbers_filter: str = "") -> dict:
    """Board row data for one round: sorted runners plus staking rows.

    ``numbers_filter`` narrows the listed runners only; the staking rows
    always cover the whole field.
    """
    return {
        "round_number": rnd.round_number,
        "time": rnd.time,
        "horses": [h.to_dict() for h in filter_horse_numbers(sort_by_odds(rnd.horses), numbers_filter)],
        "valid_count": len(ranked_horses(rnd.horses)),
        "t2": top_dutch_profit(rnd, 2),
        "t3": top_dutch_profit(rnd, 3),
        "top3": top_numbers(rnd, 3),
        "top6": top_numbers(rnd, 6) if len(ranked_horses(rnd.horses)) >= 6 else None,
    }


# ──────────────────────────────────────────────
# Favourites / market movers
# ──────────────────────────────────────────────

def movement(horse: Horse) -> Movement:
    """Price direction against the previous fetch (shortening is ``down``)."""
    if not horse.previous_odds:
        return Movement.NEUTRAL
    if horse.odds < horse.previous_odds:
        return Movement.DOWN
    if horse.odds > horse.previous_odds:
        return Movement.UP
    return Movement.NEUTRAL


def favorite_for_round(racecourse: str, rnd: Round) -> Optional[Favorite]:
    """The round's shortest-priced horse, or None if nothing is priced."""
    ranked = ranked_horses(rnd.horses)
    if not ranked:
        return None
    fav = ranked[0]
    return Favorite(
        racecourse=racecourse,
        round=rnd.round_number,
        time=rnd.time,
        horse_number=fav.number,
        horse_name=fav.name,
        jockey=fav.jockey,
        position=fav.position,
        odds=fav.odds,
        previous_odds=fav.previous_odds,
        movement=movement(fav),
    )


def market_movers(racecourses: Iterable[Racecourse]) -> list[Favorite]:
    """One favourite per (racecourse, round) that has a priced horse."""
    favorites = []
    for rc in racecourses:
        for rnd in rc.rounds:
            fav = favorite_for_round(rc.name, rnd)
            if fav is not None:
                favorites.append(fav)
    return favorites


# ──────────────────────────────────────────────
# Winners
# ──────────────────────────────────────────────

def resolve_winner_rank(
    racecourses: Iterable[Racecourse],
    racecourse: str,
    race_number: str,
    horse_number: int,
) -> Optional[int]:
    """1-based market rank of the winning horse, or None if not on the board."""
    course = next((rc for rc in racecourses if rc.name == racecourse), None)
    if course is None:
        return None
    rnd = course.find_round(parse_race_number(race_number))
    if rnd is None:
        return None
    for index, horse in enumerate(ranked_horses(rnd.horses), start=1):
        if horse.number == horse_number:
            return index
    return None


def annotate_winners(winners: Iterable[Winner], racecourses: Iterable[Racecourse]) -> list[Winner]:
    """Copies of ``winners`` with ``odds_rank`` taken from the current board."""
    racecourses = list(racecourses)
    annotated = []
    for w in winners:
        rank = resolve_winner_rank(racecourses, w.racecourse, w.race_number, w.winner.number)
        annotated.append(replace(w, winner=replace(w.winner, odds_rank=rank)))
    return annotated


def time_of_day_minutes(time_str: Optional[str]) -> Optional[int]:
    """Minutes past midnight for "HH:MM", or None if it is not a time."""
    if not time_str or ":" not in time_str:
        return None
    hours, _, minutes = time_str.strip().partition(":")
    if not (hours.isdigit() and minutes[:2].isdigit()):
        return None
    h, m = int(hours), int(minutes[:2])
    if h > 23 or m > 59:
        return None
    return h * 60 + m


def sort_winners_by_time(winners: Iterable[Winner]) -> list[Winner]:
    """Earliest race first; winners without a usable time go last."""

    def key(w: Winner) -> tuple[bool, int]:
        minutes = time_of_day_minutes(w.time)
        return (minutes is None, minutes or 0)

    return sorted(winners, key=key)
