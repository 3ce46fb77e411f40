"""Tests unitaires de la plus forte moyenne et de la répartition des sièges."""

import math

import pytest

from municipales.engine.allocation import (
    ListVotes,
    allocate_community_seats,
    allocate_municipal_seats,
    allocation_report,
    compute_quotient_table,
    highest_averages,
)


def _lists(votes, ages=None):
    ages = ages or {}
    return [ListVotes(list_id=k, votes=v, name=f"Liste {k}", average_age=ages.get(k, 0.0))
            for k, v in votes.items()]


def _seats(allocations):
    return {a.list_id: a.total_seats for a in allocations}


class TestHighestAverages:
    """Tests de la répartition proportionnelle à la plus forte moyenne."""

    def test_simple_case(self):
        """Cas simple avec 2 listes."""
        seats = highest_averages(_lists({"A": 600, "B": 400}), 10)
        assert seats == {"A": 6, "B": 4}

    def test_three_lists(self):
        """D'Hondt classique : 100k / 80k / 30k sur 8 sièges."""
        seats = highest_averages(_lists({"A": 100_000, "B": 80_000, "C": 30_000}), 8)
        assert seats == {"A": 4, "B": 3, "C": 1}

    def test_with_threshold(self):
        """C sous 5% ne participe pas."""
        seats = highest_averages(_lists({"A": 600, "B": 350, "C": 49}), 10, threshold=0.05)
        assert seats["C"] == 0
        assert sum(seats.values()) == 10

    def test_threshold_is_inclusive(self):
        """Une liste à exactement 5% est éligible."""
        seats = highest_averages(_lists({"A": 50, "B": 950}), 40, threshold=0.05)
        assert seats["A"] > 0

    def test_zero_seats(self):
        seats = highest_averages(_lists({"A": 500, "B": 500}), 0)
        assert seats == {"A": 0, "B": 0}

    def test_no_votes(self):
        seats = highest_averages(_lists({"A": 0, "B": 0}), 10)
        assert seats == {"A": 0, "B": 0}

    def test_tie_broken_by_votes(self):
        """Moyennes égales (300/2 = 150/1) : la liste la plus forte en voix l'emporte."""
        seats = highest_averages(_lists({"A": 300, "B": 150}), 2)
        # Siège 1 : A (300). Siège 2 : A 150 contre B 150 → A (plus de voix)
        assert seats == {"A": 2, "B": 0}

    def test_tie_broken_by_age(self):
        """Même moyenne et mêmes voix : bénéfice de l'âge."""
        lists = _lists({"A": 200, "B": 200}, ages={"A": 41.5, "B": 47.2})
        seats = highest_averages(lists, 1)
        assert seats == {"A": 0, "B": 1}

    def test_full_tie_keeps_input_order(self):
        lists = _lists({"A": 200, "B": 200}, ages={"A": 45.0, "B": 45.0})
        assert highest_averages(lists, 1) == {"A": 1, "B": 0}

    def test_deterministic(self):
        lists = _lists({"A": 1234, "B": 987, "C": 456, "D": 321})
        assert highest_averages(lists, 17) == highest_averages(lists, 17)


class TestMunicipalSeats:
    """Tests de la répartition avec prime majoritaire."""

    def test_bonus_is_half_rounded_up(self):
        allocations = allocate_municipal_seats(_lists({"A": 400, "B": 350, "C": 250}), 35)
        winner = next(a for a in allocations if a.list_id == "A")
        assert winner.bonus_seats == 18
        assert sum(a.bonus_seats for a in allocations) == 18

    def test_sum_equals_total(self):
        for total in (7, 15, 29, 33, 35, 69):
            allocations = allocate_municipal_seats(
                _lists({"A": 4120, "B": 3077, "C": 1503, "D": 812, "E": 233}), total,
            )
            assert sum(a.total_seats for a in allocations) == total

    def test_known_result(self):
        """29 sièges : prime 15, puis 14 à la plus forte moyenne."""
        allocations = allocate_municipal_seats(_lists({"A": 5200, "B": 3100, "C": 1700}), 29)
        seats = _seats(allocations)
        # Proportionnelle sur 14 sièges : A 8, B 4, C 2
        assert seats == {"A": 23, "B": 4, "C": 2}
        a = allocations[0]
        assert (a.bonus_seats, a.proportional_seats) == (15, 8)

    def test_ineligible_list_gets_nothing(self):
        allocations = allocate_municipal_seats(_lists({"A": 600, "B": 360, "C": 40}), 35)
        c = next(a for a in allocations if a.list_id == "C")
        assert c.eligible is False
        assert c.total_seats == 0
        assert c.percent == pytest.approx(4.0)

    def test_zero_expressed(self):
        allocations = allocate_municipal_seats(_lists({"A": 0, "B": 0}), 35)
        assert [a.total_seats for a in allocations] == [0, 0]

    def test_empty(self):
        assert allocate_municipal_seats([], 35) == []

    def test_bonus_tie_uses_age(self):
        """Égalité de voix en tête : la prime va à la liste la plus âgée."""
        allocations = allocate_municipal_seats(
            _lists({"A": 500, "B": 500}, ages={"A": 39.0, "B": 52.0}), 11,
        )
        seats = {a.list_id: a.bonus_seats for a in allocations}
        assert seats == {"A": 0, "B": 6}

    def test_monotonic_in_total_seats(self):
        lists = _lists({"A": 4120, "B": 3077, "C": 1503, "D": 812})
        previous = {k: 0 for k in ("A", "B", "C", "D")}
        for total in range(1, 60):
            seats = _seats(allocate_municipal_seats(lists, total))
            for k in seats:
                assert seats[k] >= previous[k], f"{k} perd un siège à {total}"
            previous = seats

    def test_strict_leader_always_gets_bonus(self):
        for total in (7, 19, 35):
            allocations = allocate_municipal_seats(_lists({"A": 2, "B": 3, "C": 1}), total)
            b = next(a for a in allocations if a.list_id == "B")
            assert b.bonus_seats == math.ceil(total / 2)


class TestCommunitySeats:
    """Conseil communautaire : pas de prime."""

    def test_no_bonus(self):
        allocations = allocate_community_seats(_lists({"A": 5200, "B": 3100, "C": 1700}), 7)
        assert all(a.bonus_seats == 0 for a in allocations)
        assert _seats(allocations) == {"A": 4, "B": 2, "C": 1}

    def test_sum_equals_total(self):
        allocations = allocate_community_seats(_lists({"A": 812, "B": 777, "C": 95, "D": 30}), 6)
        assert sum(a.total_seats for a in allocations) == 6

    def test_zero_expressed_does_not_raise(self):
        allocations = allocate_community_seats(_lists({"A": 0, "B": 0}), 7)
        assert all(a.total_seats == 0 for a in allocations)


class TestQuotientTable:
    """Tests de la table des quotients."""

    def test_table_order(self):
        table = compute_quotient_table(_lists({"A": 120, "B": 80}), max_divisor=5)
        assert table[0] == ("A", 1, 120.0)
        for i in range(len(table) - 1):
            assert table[i][2] >= table[i + 1][2]


class TestAllocationReport:

    def test_report(self):
        allocations = allocate_municipal_seats(_lists({"A": 600, "B": 400}), 29)
        report = allocation_report(allocations, 29)
        assert report["bonus_seats"] == 15
        assert report["proportional_seats"] == 14
        assert report["bonus_winner"] == "A"
        assert report["seats_awarded"] == 29
        assert report["threshold_votes"] == pytest.approx(50.0)
