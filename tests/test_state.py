"""Tests de l'état de l'élection et des actions administratives."""

import pytest

from municipales.engine.state import (
    ElectionRoundState,
    enable_second_round,
    lock_round,
    pass_to_second_round,
    unlock_round,
)


class TestElectionRoundState:

    def test_defaults(self):
        state = ElectionRoundState()
        assert state.current_round == 1
        assert state.can_edit(1)
        assert not state.can_edit(2)

    def test_invalid_round(self):
        with pytest.raises(ValueError):
            ElectionRoundState(current_round=3)

    def test_lock_and_unlock(self):
        state = lock_round(ElectionRoundState(), 1)
        assert state.is_locked(1)
        assert not state.can_edit(1)
        assert not unlock_round(state, 1).is_locked(1)

    def test_transitions_are_pure(self):
        state = ElectionRoundState()
        lock_round(state, 1)
        assert state.round1_locked is False

    def test_enable_second_round(self):
        assert enable_second_round(ElectionRoundState()).can_edit(2)


class TestPassToSecondRound:

    def test_pass(self):
        state = pass_to_second_round(ElectionRoundState(), ["L2", "L1"])
        assert state.current_round == 2
        assert state.round1_locked
        assert state.qualified == ("L2", "L1")
        assert state.can_edit(2)
        assert not state.can_edit(1)

    def test_needs_two_lists(self):
        with pytest.raises(ValueError, match="2 listes"):
            pass_to_second_round(ElectionRoundState(), ["L1", "L1"])

    def test_only_once(self):
        state = pass_to_second_round(ElectionRoundState(), ["L1", "L2"])
        with pytest.raises(ValueError):
            pass_to_second_round(state, ["L1", "L2"])

    def test_round_one_stays_locked(self):
        state = pass_to_second_round(ElectionRoundState(), ["L1", "L2", "L3"])
        with pytest.raises(ValueError):
            unlock_round(state, 1)
