"""Tests des contrôles de cohérence."""

from municipales.data.schemas import CandidateList, PollingStation, ResultRow, TurnoutRow
from municipales.engine.allocation import ListVotes
from municipales.engine.validation import (
    validate_candidate_list,
    validate_polling_station,
    validate_result_row,
    validate_rows,
    validate_seat_computation,
    validate_second_round_transition,
    validate_turnout_row,
)


class TestResultRow:

    def test_valid(self):
        row = ResultRow(station_id="BV1", registered=1250, voters=100, blanks=5, nulls=3,
                        expressed=92, votes={"L1": 50, "L2": 42})
        report = validate_result_row(row)
        assert report.valid
        assert report.errors == []

    def test_voters_mismatch_cites_both_values(self):
        row = ResultRow(station_id="BV1", voters=100, blanks=5, nulls=3, expressed=90,
                        votes={"L1": 90})
        report = validate_result_row(row)
        assert not report.valid
        assert len(report.errors) == 1
        assert "100" in report.errors[0]
        assert "98" in report.errors[0]

    def test_votes_sum_mismatch(self):
        row = ResultRow(station_id="BV2", voters=100, blanks=5, nulls=3, expressed=92,
                        votes={"L1": 50, "L2": 40})
        report = validate_result_row(row)
        assert not report.valid
        assert "90" in report.errors[0] and "92" in report.errors[0]

    def test_voters_above_registered(self):
        row = ResultRow(station_id="BV3", registered=50, voters=60, expressed=60, votes={"L1": 60})
        report = validate_result_row(row)
        assert any("inscrits" in e for e in report.errors)

    def test_missing_registered_is_warned(self):
        row = ResultRow(station_id="BV3", voters=60, expressed=60, votes={"L1": 60})
        report = validate_result_row(row)
        assert report.valid
        assert any("inscrits" in w for w in report.warnings)

    def test_negative_counts(self):
        row = ResultRow(station_id="BV3", voters=-1, blanks=0, nulls=0, expressed=-1, votes={"L1": -1})
        report = validate_result_row(row)
        assert len(report.errors) == 3

    def test_never_corrected(self):
        row = ResultRow(station_id="BV1", voters=100, blanks=5, nulls=3, expressed=90)
        validate_result_row(row)
        assert row.expressed == 90


class TestTurnoutRow:

    def test_valid(self):
        row = TurnoutRow(station_id="BV1", registered=1000, hourly={"09h": 50, "10h": 120})
        assert validate_turnout_row(row).valid

    def test_registered_must_be_positive(self):
        row = TurnoutRow(station_id="BV1", registered=0, hourly={"09h": 50})
        assert not validate_turnout_row(row).valid

    def test_voters_above_registered(self):
        row = TurnoutRow(station_id="BV1", registered=100, hourly={"20h": 150})
        report = validate_turnout_row(row)
        assert any("150" in e and "100" in e for e in report.errors)

    def test_bad_hour_format(self):
        row = TurnoutRow(station_id="BV1", registered=100, hourly={"9h": 10, "21h": 20})
        report = validate_turnout_row(row)
        assert len(report.errors) == 2

    def test_negative(self):
        row = TurnoutRow(station_id="BV1", registered=100, hourly={"09h": -4})
        assert not validate_turnout_row(row).valid

    def test_late_zero_is_not_an_error(self):
        row = TurnoutRow(station_id="BV1", registered=1000, hourly={"09h": 50, "10h": 0})
        report = validate_turnout_row(row)
        assert report.valid
        assert report.warnings == []

    def test_drop_is_warned(self):
        row = TurnoutRow(station_id="BV1", registered=1000, hourly={"09h": 50, "10h": 40})
        report = validate_turnout_row(row)
        assert report.valid
        assert len(report.warnings) == 1


class TestIdentifiers:

    def test_candidate(self):
        candidate = CandidateList(list_id="L1", name="Ensemble", lead_last_name="Martin",
                                  lead_first_name="Claire", color="#0055A4", average_age=46.3)
        report = validate_candidate_list(candidate)
        assert report.valid
        assert report.warnings == []

    def test_candidate_bad_format(self):
        candidate = CandidateList(list_id="Liste1", name="", color="blue")
        report = validate_candidate_list(candidate)
        assert any("L1, L2" in e for e in report.errors)
        assert any("couleur" in e for e in report.errors)
        assert any("âge moyen" in w for w in report.warnings)

    def test_station(self):
        station = PollingStation(station_id="BV3", name="École", address="Avenue du Rouergue",
                                 registered=1320)
        assert validate_polling_station(station).valid

    def test_station_bad_format(self):
        station = PollingStation(station_id="3", name="École", address="", registered=0)
        report = validate_polling_station(station)
        assert len(report.errors) == 3


class TestBatchAndPreconditions:

    def test_validate_rows_merges(self):
        rows = [
            ResultRow(station_id="BV1", voters=10, expressed=10, votes={"L1": 10}),
            ResultRow(station_id="BV2", voters=10, expressed=9, votes={"L1": 9}),
            ResultRow(station_id="BV3", voters=10, expressed=10, votes={"L1": 8}),
        ]
        report = validate_rows(rows, validate_result_row)
        assert len(report.errors) == 2
        assert report.errors[0].startswith("Bureau BV2")

    def test_second_round_transition(self):
        results = [ResultRow(station_id="BV1", voters=10, expressed=10, votes={"L1": 10})]
        candidates = [CandidateList(list_id="L1", active_round1=True)]
        report = validate_second_round_transition(results, candidates)
        assert not report.valid
        assert validate_second_round_transition([], candidates).errors

    def test_seat_computation(self):
        assert validate_seat_computation([ListVotes("L1", 10)], 35).valid
        report = validate_seat_computation([ListVotes("L1", 0)], 0)
        assert len(report.errors) == 2

    def test_sample_round_is_clean(self, stations, result_rows, turnout_rows):
        assert validate_rows(stations, validate_polling_station).valid
        report = validate_rows(result_rows, validate_result_row)
        assert report.errors == []
        assert report.warnings == []
        assert validate_rows(turnout_rows, validate_turnout_row).valid
