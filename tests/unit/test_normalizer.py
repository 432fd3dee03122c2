"""Tests for scraped payload normalization."""

import logging

import pytest

from oddsboard.config import OddsField
from oddsboard.ingest.errors import MalformedInputError
from oddsboard.ingest.normalizer import (
    NOT_AVAILABLE,
    NormalizeOptions,
    carry_previous_odds,
    normalize,
    normalize_winners,
)
from oddsboard.models.race import Racecourse, parse_race_number

from conftest import make_round


class TestParseRaceNumber:

    @pytest.mark.parametrize("text,expected", [
        ("R1", 1),
        ("Race 12", 12),
        ("7", 7),
        ("R3 - Maiden", 3),
        ("", 0),
        (None, 0),
        ("TBA", 0),
    ])
    def test_race_numbers(self, text, expected):
        assert parse_race_number(text) == expected


class TestNormalize:

    def test_builds_racecourses_in_order(self, sample_racetracks):
        racecourses = normalize(sample_racetracks)
        assert [rc.name for rc in racecourses] == ["Flemington", "Randwick"]
        assert [r.round_number for r in racecourses[0].rounds] == [1, 2]
        assert racecourses[1].rounds[0].round_number == 3

    def test_horse_fields(self, sample_racetracks):
        rnd = normalize(sample_racetracks)[0].rounds[0]
        first = rnd.horses[0]
        assert first.number == 4
        assert first.position == 1
        assert first.name == "Fast Horse"
        assert first.jockey == "J McDonald"
        assert first.odds == 2.5
        assert first.previous_odds is None

    def test_currency_prefix_stripped(self, sample_racetracks):
        rnd = normalize(sample_racetracks)[0].rounds[0]
        assert rnd.horses[1].odds == 6.0

    def test_numeric_payload_values(self, sample_racetracks):
        horse = normalize(sample_racetracks)[0].rounds[1].horses[0]
        assert horse.number == 1
        assert horse.position == 1
        assert horse.odds == 1.8

    def test_unparsable_odds_default_to_zero(self, sample_racetracks, caplog):
        with caplog.at_level(logging.DEBUG, logger="oddsboard.ingest.normalizer"):
            rnd = normalize(sample_racetracks)[0].rounds[0]
        assert rnd.horses[2].odds == 0
        assert any("SCR" in r.getMessage() for r in caplog.records)

    def test_missing_jockey_and_time(self, sample_racetracks):
        racecourses = normalize(sample_racetracks)
        assert racecourses[0].rounds[0].horses[1].jockey == NOT_AVAILABLE
        assert racecourses[1].rounds[0].time == NOT_AVAILABLE

    def test_place_odds_field(self, sample_racetracks):
        options = NormalizeOptions(odds_field=OddsField.PLACE_FIXED)
        rnd = normalize(sample_racetracks, options)[0].rounds[0]
        assert [h.odds for h in rnd.horses] == [1.3, 2.1, 0]

    def test_skip_first_race_of_first_track_only(self, sample_racetracks):
        options = NormalizeOptions(skip_first_race_of_first_track=True)
        racecourses = normalize(sample_racetracks, options)
        assert [r.round_number for r in racecourses[0].rounds] == [2]
        assert [r.round_number for r in racecourses[1].rounds] == [3]

    def test_empty_list(self):
        assert normalize([]) == []

    def test_extra_keys_ignored(self):
        raw = [{"racetrack": "Ascot", "horseCount": 9, "completedRaces": [
            {"raceNumber": "R1", "time": "14:00", "result": "1-2-3", "link": "x", "horses": []},
        ]}]
        racecourses = normalize(raw)
        assert racecourses[0].rounds[0].horses == ()

    def test_non_list_payload(self):
        with pytest.raises(MalformedInputError):
            normalize({"racetrack": "Flemington"})

    def test_missing_racetrack_names_index(self, sample_racetracks):
        sample_racetracks.append({"completedRaces": []})
        with pytest.raises(MalformedInputError) as exc_info:
            normalize(sample_racetracks)
        assert exc_info.value.index == 2
        assert "entry 2" in str(exc_info.value)

    def test_non_object_racetrack(self):
        with pytest.raises(MalformedInputError) as exc_info:
            normalize(["Flemington"])
        assert exc_info.value.index == 0

    def test_races_must_be_a_list(self):
        with pytest.raises(MalformedInputError):
            normalize([{"racetrack": "Flemington", "completedRaces": "R1"}])


class TestNormalizeWinners:

    def test_winners(self, sample_winners):
        winners = normalize_winners(sample_winners)
        assert len(winners) == 2
        first = winners[0]
        assert first.racecourse == "Flemington"
        assert first.race_number == "R2"
        assert first.link == "https://example.com/r2"
        assert first.winner.number == 1
        assert first.winner.win_odds == 1.8
        assert first.winner.odds_rank is None

    def test_winner_defaults(self, sample_winners):
        second = normalize_winners(sample_winners)[1]
        assert second.winner.number == 7
        assert second.winner.jockey == NOT_AVAILABLE
        assert second.winner.win_odds == 6.0

    def test_malformed_winner(self, sample_winners):
        sample_winners.append({"racecourse": "Flemington"})
        with pytest.raises(MalformedInputError) as exc_info:
            normalize_winners(sample_winners)
        assert exc_info.value.index == 2


class TestCarryPreviousOdds:

    def test_previous_prices_attached(self):
        old = [Racecourse("Flemington", (make_round(1, [4.0, 3.0]),))]
        new = [Racecourse("Flemington", (make_round(1, [3.5, 3.0]),))]
        carried = carry_previous_odds(new, old)
        horses = carried[0].rounds[0].horses
        assert horses[0].previous_odds == 4.0
        assert horses[1].previous_odds == 3.0
        assert horses[0].odds == 3.5

    def test_unpriced_previous_not_carried(self):
        old = [Racecourse("Flemington", (make_round(1, [0, 3.0]),))]
        new = [Racecourse("Flemington", (make_round(1, [3.5, 3.0]),))]
        horses = carry_previous_odds(new, old)[0].rounds[0].horses
        assert horses[0].previous_odds is None

    def test_unmatched_racecourse(self):
        old = [Racecourse("Caulfield", (make_round(1, [4.0]),))]
        new = [Racecourse("Flemington", (make_round(1, [3.5]),))]
        assert carry_previous_odds(new, old)[0].rounds[0].horses[0].previous_odds is None

    def test_no_previous(self):
        new = [Racecourse("Flemington", (make_round(1, [3.5]),))]
        assert carry_previous_odds(new, None) == new
