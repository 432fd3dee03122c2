"""Tests for the dashboard state."""

from datetime import datetime

import pytest

from oddsboard.config import MELB_TZ
from oddsboard.models.race import Winner, WinnerHorse
from oddsboard.state import DashboardState

from conftest import make_snapshot


@pytest.fixture
def state(flemington, caulfield) -> DashboardState:
    state = DashboardState()
    state.publish(make_snapshot([flemington, caulfield]))
    return state


class TestPublish:

    def test_first_racecourse_selected(self, state):
        assert state.selected == {"Flemington"}
        assert [rc.name for rc in state.selected_racecourses()] == ["Flemington"]

    def test_new_model_resets_selection(self, state, caulfield):
        state.toggle("Caulfield")
        state.publish(make_snapshot([caulfield]))
        assert state.selected == {"Caulfield"}

    def test_publish_clears_no_data_and_notification(self, flemington):
        state = DashboardState()
        state.mark_empty("Schedule of today")
        state.notify_error("boom")
        state.publish(make_snapshot([flemington]))
        assert not state.no_data
        assert state.notification is None

    def test_mark_empty(self, state):
        state.mark_empty("Schedule of tomorrow")
        assert state.snapshot is None
        assert state.no_data
        assert state.selected_racecourses() == []

    def test_notification_dismissed(self, state):
        state.notify_error("HTTP 500")
        state.dismiss_notification()
        assert state.notification is None


class TestSelection:

    def test_toggle(self, state):
        assert state.toggle("Caulfield") is True
        assert [rc.name for rc in state.selected_racecourses()] == ["Flemington", "Caulfield"]
        assert state.toggle("Flemington") is False
        assert [rc.name for rc in state.selected_racecourses()] == ["Caulfield"]

    def test_toggle_unknown(self, state):
        with pytest.raises(KeyError):
            state.toggle("Nowhere")

    def test_favorites_follow_selection(self, state):
        assert {f.racecourse for f in state.favorites()} == {"Flemington"}
        state.toggle("Caulfield")
        assert {f.racecourse for f in state.favorites()} == {"Flemington", "Caulfield"}


class TestView:

    def test_to_dict(self, state):
        state.set_winners(
            [Winner("Flemington", "R1", "12:30", WinnerHorse(2, "Horse 2", "J Smith", 2.0))],
            datetime(2025, 3, 1, 13, 0, tzinfo=MELB_TZ),
        )
        view = state.to_dict()

        assert view["title"] == "Today's Result"
        assert view["racecourses"] == ["Flemington", "Caulfield"]
        assert view["selected"] == ["Flemington"]
        assert [r["round_number"] for r in view["boards"][0]["rounds"]] == [1, 2]
        assert len(view["favorites"]) == 2
        assert view["winners"][0]["winner"]["odds_rank"] == 1
        assert view["loading"] is False

    def test_number_filter_narrows_runners(self, state):
        rounds = state.to_dict("3")["boards"][0]["rounds"]
        assert [[h["number"] for h in r["horses"]] for r in rounds] == [[3], [3]]
        assert rounds[1]["t2"] == state.to_dict()["boards"][0]["rounds"][1]["t2"]

    def test_empty_view(self):
        view = DashboardState().to_dict()
        assert view["title"] is None
        assert view["boards"] == []
        assert view["winners"] == []
