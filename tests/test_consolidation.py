"""Tests de la consolidation communale et de l'enchaînement jusqu'aux sièges."""

import pytest

from municipales.engine.allocation import allocate_municipal_seats
from municipales.engine.consolidation import consolidate_results, list_standings, results_frame
from municipales.engine.runoff import second_round_necessary


class TestConsolidation:

    def test_totals(self, result_rows):
        c = consolidate_results(result_rows)
        assert c.registered == 3750
        assert c.voters == 1350
        assert (c.blanks, c.nulls, c.expressed) == (22, 13, 1315)
        assert c.votes_by_list == {"L1": 700, "L2": 450, "L3": 165}

    def test_station_counts(self, result_rows):
        c = consolidate_results(result_rows)
        assert c.declared_stations == 2
        assert c.validated_stations == 1

    def test_percentages(self, result_rows):
        c = consolidate_results(result_rows)
        assert c.turnout_percent == pytest.approx(1350 / 3750 * 100)
        assert c.abstention == 2400
        assert c.blank_percent == pytest.approx(22 / 1350 * 100)

    def test_empty(self):
        c = consolidate_results([])
        assert c.expressed == 0
        assert c.turnout_percent == 0.0
        assert c.blank_percent == 0.0

    def test_frame(self, result_rows):
        df = results_frame(result_rows)
        assert list(df.index) == ["BV1", "BV2", "BV3"]
        assert df.loc["BV3", "L1"] == 0


class TestStandings:

    def test_round_one(self, result_rows, candidates):
        standings = list_standings(consolidate_results(result_rows), candidates, 1)
        assert [s.list_id for s in standings] == ["L1", "L2", "L3"]
        assert standings[1].average_age == 51.0

    def test_round_two_filters_inactive(self, result_rows, candidates):
        standings = list_standings(consolidate_results(result_rows), candidates, 2)
        assert [s.list_id for s in standings] == ["L1", "L2"]

    def test_end_to_end(self, result_rows, candidates):
        standings = list_standings(consolidate_results(result_rows), candidates, 1)
        # L1 : 700 / 1315 = 53% des exprimés, 700 / 3750 = 18.7% des inscrits
        assert second_round_necessary(standings, 3750) is True

        allocations = allocate_municipal_seats(standings, 35)
        assert sum(a.total_seats for a in allocations) == 35
        assert allocations[0].list_id == "L1"
        assert allocations[0].bonus_seats == 18
