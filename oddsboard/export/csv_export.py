"""Row-oriented text export.

Layout::

    RACE TABLES

    Racecourse: Flemington
    Round 1 - 12:30
    Horse No,Position,Horse Name,Win Odds
    4,2,"Fast Horse",$2.50
    ...

    MARKET MOVERS

    Racecourse,Round,Time,Horse Number,Horse Name,Position,Odds
    Flemington,1,"12:30",4,"Fast Horse",2,$2.50

Commas inside names become semicolons instead of being quoted, so every
line splits on ``,`` into a fixed number of fields.
"""

from typing import Iterable

from oddsboard.analytics.engine import ranked_horses
from oddsboard.analytics.formatting import format_price, sanitize_csv_field
from oddsboard.config import OddsField
from oddsboard.models.race import Favorite, Racecourse


def render_csv(
    racecourses: Iterable[Racecourse],
    favorites: Iterable[Favorite],
    odds_field: OddsField = OddsField.WIN_FIXED,
) -> str:
    """Render the race tables and market movers as CSV text.

    Args:
        racecourses: The selected racecourses, in board order.
        favorites: Market movers over the same racecourses.
        odds_field: Price shown in the odds column (used for its label).
    """
    lines = ["RACE TABLES", ""]

    for rc in racecourses:
        lines.append(f"Racecourse: {sanitize_csv_field(rc.name)}")
        for rnd in rc.rounds:
            lines.append(f"Round {rnd.round_number} - {rnd.time}")
            lines.append(f"Horse No,Position,Horse Name,{odds_field.label} Odds")
            for horse in ranked_horses(rnd.horses):
                name = sanitize_csv_field(horse.name)
                lines.append(f'{horse.number},{horse.position},"{name}",{format_price(horse.odds)}')
            lines.append("")
        lines.append("")

    lines.extend(["MARKET MOVERS", ""])
    lines.append("Racecourse,Round,Time,Horse Number,Horse Name,Position,Odds")
    for fav in favorites:
        lines.append(
            f"{sanitize_csv_field(fav.racecourse)},{fav.round},\"{fav.time}\","
            f"{fav.horse_number},\"{sanitize_csv_field(fav.horse_name)}\","
            f"{fav.position},{format_price(fav.odds)}"
        )

    return "\n".join(lines) + "\n"
