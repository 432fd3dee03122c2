"""Excel workbook export (one sheet per racecourse)."""

import io
import logging
import re
import zipfile
from datetime import datetime, timezone
from typing import Iterable, Optional

from openpyxl import Workbook
from openpyxl.styles import Font
from openpyxl.utils import get_column_letter
from openpyxl.writer.excel import ExcelWriter

from oddsboard.analytics.engine import ranked_horses, sort_winners_by_time, top_dutch_profit, top_numbers
from oddsboard.analytics.formatting import format_price, format_profit, ordinal
from oddsboard.config import OddsField
from oddsboard.models.race import Favorite, Racecourse, Winner

logger = logging.getLogger(__name__)

MAX_SHEET_NAME = 31
_INVALID_SHEET_CHARS = re.compile(r"[:\\/?*\[\]]")

RACE_WIDTHS = (10, 10, 25, 20, 12)  # horse no, rank, name, jockey, odds
MOVERS_WIDTHS = (20, 8, 10, 12, 25, 20, 10, 10)
WINNERS_WIDTHS = (20, 8, 10, 10, 25, 20, 10, 10)

BOLD = Font(bold=True)


def sanitize_sheet_name(name: str) -> str:
    """Excel sheet name: first 31 characters, ``: \\ / ? * [ ]`` removed."""
    cleaned = _INVALID_SHEET_CHARS.sub("", name[:MAX_SHEET_NAME]).strip()
    return cleaned or "Sheet"


def _unique_sheet_name(name: str, taken: set[str]) -> str:
    # Excel compares sheet names case-insensitively
    candidate = name
    n = 2
    while candidate.lower() in taken:
        suffix = f" ({n})"
        candidate = name[: MAX_SHEET_NAME - len(suffix)] + suffix
        n += 1
    taken.add(candidate.lower())
    return candidate


def _set_widths(ws, widths: Iterable[int]) -> None:
    for i, width in enumerate(widths, start=1):
        ws.column_dimensions[get_column_letter(i)].width = width


def _write_racecourse(ws, rc: Racecourse, odds_field: OddsField) -> None:
    for rnd in rc.rounds:
        ws.append([f"Round {rnd.round_number} - {rnd.time}"])
        ws.cell(row=ws.max_row, column=1).font = BOLD
        ws.append(["Horse No", "Rank", "Horse Name", "Jockey", f"{odds_field.label} Odds"])
        for cell in ws[ws.max_row]:
            cell.font = BOLD

        ranked = ranked_horses(rnd.horses)
        for rank, horse in enumerate(ranked, start=1):
            ws.append([horse.number, ordinal(rank), horse.name or "", horse.jockey or "N/A", format_price(horse.odds)])

        ws.append([])
        ws.append(["T2", "", "", "", format_profit(top_dutch_profit(rnd, 2))])
        ws.append(["T3", "", "", "", format_profit(top_dutch_profit(rnd, 3))])
        if len(ranked) >= 6:
            ws.append(["Top6", "", "", "", ",".join(str(n) for n in top_numbers(rnd, 6))])
        ws.append([])

    _set_widths(ws, RACE_WIDTHS)


def _write_movers(ws, favorites: Iterable[Favorite]) -> None:
    ws.append(["MARKET MOVERS"])
    ws["A1"].font = BOLD
    ws.append(["Racecourse", "Round", "Time", "Horse Number", "Horse Name", "Jockey", "Position", "Odds"])
    for cell in ws[2]:
        cell.font = BOLD
    for fav in favorites:
        ws.append([
            fav.racecourse,
            fav.round,
            fav.time,
            fav.horse_number,
            fav.horse_name or "",
            fav.jockey or "N/A",
            fav.position,
            format_price(fav.odds),
        ])
    _set_widths(ws, MOVERS_WIDTHS)


def _write_winners(ws, winners: Iterable[Winner]) -> None:
    ws.append(["Racecourse", "Race", "Time", "Horse No", "Horse Name", "Jockey", "Win Odds", "Odds Rank"])
    for cell in ws[1]:
        cell.font = BOLD
    for w in sort_winners_by_time(winners):
        rank = w.winner.odds_rank
        ws.append([
            w.racecourse,
            w.race_number,
            w.time,
            w.winner.number,
            w.winner.name,
            w.winner.jockey,
            format_price(w.winner.win_odds),
            ordinal(rank) if rank else "N/A",
        ])
    _set_widths(ws, WINNERS_WIDTHS)


def _pinned_zip(data: bytes, stamp: datetime) -> bytes:
    """Re-pack the archive with every entry dated ``stamp``."""
    date_time = (max(stamp.year, 1980), stamp.month, stamp.day, stamp.hour, stamp.minute, stamp.second)
    out = io.BytesIO()
    with zipfile.ZipFile(io.BytesIO(data)) as src, zipfile.ZipFile(out, "w", zipfile.ZIP_DEFLATED) as dst:
        for info in src.infolist():
            entry = zipfile.ZipInfo(info.filename, date_time=date_time)
            entry.compress_type = zipfile.ZIP_DEFLATED
            entry.external_attr = info.external_attr
            dst.writestr(entry, src.read(info.filename))
    return out.getvalue()


def render_xlsx(
    racecourses: Iterable[Racecourse],
    favorites: Iterable[Favorite],
    now: datetime,
    odds_field: OddsField = OddsField.WIN_FIXED,
    winners: Optional[Iterable[Winner]] = None,
) -> bytes:
    """Build the workbook and return the ``.xlsx`` bytes.

    The same input and ``now`` always give the same bytes: the document
    properties and the zip entry dates all come from ``now``.

    Args:
        racecourses: The selected racecourses, one sheet each.
        favorites: Market movers for the ``Market Movers`` sheet.
        now: Export time, recorded as the workbook creation time.
        odds_field: Price shown in the odds column (used for its label).
        winners: Race results; a ``Winners`` sheet is added when given.
    """
    # openpyxl stores document times as naive UTC
    stamp = now.astimezone(timezone.utc).replace(tzinfo=None) if now.tzinfo else now
    wb = Workbook()
    wb.properties.created = stamp
    wb.properties.modified = stamp
    ws = wb.active
    taken: set[str] = set()
    first = True

    for rc in racecourses:
        title = _unique_sheet_name(sanitize_sheet_name(rc.name), taken)
        if first:
            ws.title = title
            first = False
        else:
            ws = wb.create_sheet(title)
        _write_racecourse(ws, rc, odds_field)

    movers_title = _unique_sheet_name("Market Movers", taken)
    if first:
        ws.title = movers_title
        movers = ws
    else:
        movers = wb.create_sheet(movers_title)
    _write_movers(movers, favorites)

    if winners is not None:
        _write_winners(wb.create_sheet(_unique_sheet_name("Winners", taken)), winners)

    # ExcelWriter directly, since save_workbook overwrites the modified time
    buf = io.BytesIO()
    with zipfile.ZipFile(buf, "w", zipfile.ZIP_DEFLATED, allowZip64=True) as archive:
        ExcelWriter(wb, archive).write_data()
    logger.debug(f"Built workbook with sheets: {', '.join(wb.sheetnames)}")
    return _pinned_zip(buf.getvalue(), stamp)
