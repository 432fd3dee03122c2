"""Dashboard state: the single canonical-model slot and what the UI shows.

Only the refresh scheduler writes the model slot and the loading flag, and
only on behalf of the most recently issued fetch.
"""

import logging
from datetime import datetime
from typing import Optional

from oddsboard.analytics.engine import annotate_winners, market_movers, summarize_round
from oddsboard.models.race import Favorite, RaceSnapshot, Racecourse, Winner

logger = logging.getLogger(__name__)


class DashboardState:
    """Current board, loading flag, notification, selection and winners."""

    def __init__(self):
        self.snapshot: Optional[RaceSnapshot] = None
        self.loading = False
        self.loading_title: Optional[str] = None
        self.notification: Optional[str] = None
        self.no_data = False
        self.no_data_title: Optional[str] = None
        self.selected: set[str] = set()

        self.winners: list[Winner] = []
        self.winners_loading = False
        self.winners_error: Optional[str] = None
        self.winners_updated_at: Optional[datetime] = None

    # Races

    def begin_loading(self, title: str) -> None:
        self.loading = True
        self.loading_title = title

    def end_loading(self) -> None:
        self.loading = False
        self.loading_title = None

    def publish(self, snapshot: RaceSnapshot) -> None:
        """Swap in a new model; the old one is discarded, never merged."""
        self.snapshot = snapshot
        self.no_data = False
        self.no_data_title = None
        self.notification = None
        # The board opens on the first racecourse of every new model
        self.selected = {snapshot.racecourses[0].name} if snapshot.racecourses else set()
        logger.debug(f"Published {snapshot.title} ({len(snapshot.racecourses)} racecourses)")

    def mark_empty(self, title: str) -> None:
        """A fetch succeeded but returned nothing usable."""
        self.snapshot = None
        self.selected = set()
        self.no_data = True
        self.no_data_title = title

    def notify_error(self, message: str) -> None:
        """Blocking error notification; the current model stays as it is."""
        self.notification = message

    def dismiss_notification(self) -> None:
        self.notification = None

    # Selection

    def toggle(self, name: str) -> bool:
        """Toggle a racecourse selection. Returns whether it is now selected."""
        if self.snapshot is None or self.snapshot.find_racecourse(name) is None:
            raise KeyError(name)
        if name in self.selected:
            self.selected.discard(name)
            return False
        self.selected.add(name)
        return True

    def selected_racecourses(self) -> list[Racecourse]:
        """Selected racecourses in board order."""
        if self.snapshot is None:
            return []
        return [rc for rc in self.snapshot.racecourses if rc.name in self.selected]

    def favorites(self) -> list[Favorite]:
        return market_movers(self.selected_racecourses())

    # Winners

    def set_winners(self, winners: list[Winner], updated_at: datetime) -> None:
        self.winners = list(winners)
        self.winners_error = None
        self.winners_updated_at = updated_at

    def annotated_winners(self) -> list[Winner]:
        racecourses = self.snapshot.racecourses if self.snapshot else ()
        return annotate_winners(self.winners, racecourses)

    def to_dict(self, numbers_filter: str = "") -> dict:
        snapshot = self.snapshot
        return {
            "title": snapshot.title if snapshot else None,
            "fetched_at": snapshot.fetched_at.isoformat() if snapshot else None,
            "source_timestamp": snapshot.source_timestamp if snapshot else None,
            "racecourses": snapshot.names if snapshot else [],
            "selected": [rc.name for rc in self.selected_racecourses()],
            "boards": [
                {
                    "name": rc.name,
                    "rounds": [summarize_round(rnd, numbers_filter) for rnd in rc.rounds],
                }
                for rc in self.selected_racecourses()
            ],
            "favorites": [f.to_dict() for f in self.favorites()],
            "loading": self.loading,
            "loading_title": self.loading_title,
            "notification": self.notification,
            "no_data": self.no_data,
            "no_data_title": self.no_data_title,
            "winners": [w.to_dict() for w in self.annotated_winners()],
            "winners_loading": self.winners_loading,
            "winners_error": self.winners_error,
            "winners_updated_at": (
                self.winners_updated_at.isoformat() if self.winners_updated_at else None
            ),
        }
