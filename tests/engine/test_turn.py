"""
Farkle Engine - Turn State Machine Tests
"""

import random

import pytest

from src.engine.base import ToggleResult, TurnPhase
from src.engine.errors import IllegalTransition, InvalidSelection
from src.engine.events import GameEvent
from src.engine.scoring import ScoringRules
from src.engine.turn import TurnEngine


def _turn(dice, **kwargs) -> TurnEngine:
    return TurnEngine("p1", random_source=dice, **kwargs)


class TestRoll:
    """Rolling the free dice."""

    def test_initial_state(self, scripted_dice):
        state = _turn(scripted_dice()).state
        assert state.phase is TurnPhase.AWAITING_ROLL
        assert state.dice_remaining == 6
        assert state.banked_this_turn == 0
        assert len(state.dice) == 0

    def test_scoring_roll_awaits_selection(self, scripted_dice):
        turn = _turn(scripted_dice((1, 5, 2, 3, 3, 6)))
        evaluation = turn.roll()
        assert not evaluation.is_farkle
        assert turn.phase is TurnPhase.AWAITING_SELECTION
        assert turn.state.dice.faces == (1, 5, 2, 3, 3, 6)
        assert turn.state.roll_count == 1

    def test_farkle_on_first_roll(self, scripted_dice):
        turn = _turn(scripted_dice((2, 3, 4, 6, 6, 2)))
        evaluation = turn.roll()
        assert evaluation.is_farkle
        assert evaluation.points == 0
        assert turn.phase is TurnPhase.FARKLED
        assert turn.is_terminal

    def test_farkle_forfeits_whole_turn(self, scripted_dice):
        turn = _turn(scripted_dice((1, 2, 3, 4, 6, 6), (2, 3, 4, 6, 6)))
        turn.roll()
        turn.select_and_keep({0})
        assert turn.state.banked_this_turn == 100

        turn.roll()
        state = turn.state
        assert state.phase is TurnPhase.FARKLED
        assert state.banked_this_turn == 0
        assert state.forfeited_points == 100

    def test_roll_twice_is_illegal(self, scripted_dice):
        turn = _turn(scripted_dice((1, 5, 2, 3, 3, 6)))
        turn.roll()
        with pytest.raises(IllegalTransition):
            turn.roll()

    def test_roll_after_farkle_is_illegal(self, scripted_dice):
        turn = _turn(scripted_dice((2, 3, 4, 6, 6, 2)))
        turn.roll()
        with pytest.raises(IllegalTransition):
            turn.roll()

    def test_only_free_dice_are_rerolled(self, scripted_dice):
        turn = _turn(scripted_dice((1, 5, 2, 3, 3, 6), (5, 5, 5, 2, 3)))
        turn.roll()
        turn.select_and_keep({0})
        turn.roll()
        dice = turn.state.dice
        assert dice.faces == (1, 5, 5, 5, 2, 3)
        assert dice.kept_indices == (0,)

    def test_reduced_dice_count(self, scripted_dice):
        dice = scripted_dice((1, 2, 3))
        turn = _turn(dice, dice_count=3)
        turn.roll()
        assert turn.state.dice.faces == (1, 2, 3)
        assert dice.remaining == 0

    def test_seeded_source_is_reproducible(self):
        first = TurnEngine("p1", random_source=random.Random(42)).roll()
        second = TurnEngine("p1", random_source=random.Random(42)).roll()
        assert first == second


class TestSelectAndKeep:
    """Keeping scoring dice."""

    def test_keep_adds_points_and_shrinks_dice(self, scripted_dice):
        turn = _turn(scripted_dice((1, 5, 2, 3, 3, 6)))
        turn.roll()
        selection = turn.select_and_keep({0, 1})
        assert selection.points == 150
        state = turn.state
        assert state.banked_this_turn == 150
        assert state.dice_remaining == 4
        assert state.phase is TurnPhase.AWAITING_ROLL
        assert state.hand == (selection,)

    def test_keep_accumulates_across_rolls(self, scripted_dice):
        turn = _turn(scripted_dice((1, 5, 2, 3, 3, 6), (5, 5, 5, 2, 3)))
        turn.roll()
        turn.select_and_keep({0})
        turn.roll()
        turn.select_and_keep({1, 2, 3})
        state = turn.state
        assert state.banked_this_turn == 600
        assert state.dice_remaining == 2
        assert [s.points for s in state.hand] == [100, 500]

    def test_keep_scores_best_partition(self, scripted_dice):
        turn = _turn(scripted_dice((1, 1, 1, 1, 2, 3)))
        turn.roll()
        assert turn.select_and_keep({0, 1, 2, 3}).points == 2000

    def test_hot_dice_resets_to_full_set(self, scripted_dice):
        turn = _turn(scripted_dice((1, 1, 1, 5, 5, 5), (2, 2, 2, 3, 4, 6)))
        turn.roll()
        turn.select_and_keep(range(6))
        state = turn.state
        assert state.phase is TurnPhase.AWAITING_ROLL
        assert state.dice_remaining == 6
        assert state.banked_this_turn == 1500
        assert state.hot_dice_count == 1
        assert state.dice.kept_indices == ()

        turn.roll()
        assert turn.state.dice.faces == (2, 2, 2, 3, 4, 6)
        assert turn.phase is TurnPhase.AWAITING_SELECTION

    def test_keep_before_roll_is_illegal(self, scripted_dice):
        with pytest.raises(IllegalTransition):
            _turn(scripted_dice()).select_and_keep({0})


class TestInvalidSelection:
    """Invalid keeps raise and leave the turn unchanged."""

    @pytest.mark.parametrize("indices", [
        {2},        # a lone 2
        {0, 2},     # a scoring die plus a dead one
        {6},        # no such die
        set(),      # nothing chosen
    ])
    def test_invalid_selection_leaves_state(self, scripted_dice, indices):
        turn = _turn(scripted_dice((1, 5, 2, 3, 3, 6)))
        turn.roll()
        before = turn.state
        with pytest.raises(InvalidSelection):
            turn.select_and_keep(indices)
        assert turn.state == before

    def test_previously_kept_die(self, scripted_dice):
        turn = _turn(scripted_dice((1, 5, 2, 3, 3, 6), (5, 5, 5, 2, 3)))
        turn.roll()
        turn.select_and_keep({0})
        turn.roll()
        before = turn.state
        with pytest.raises(InvalidSelection, match="earlier roll"):
            turn.select_and_keep({0, 1})
        assert turn.state == before


class TestBank:
    """Ending the turn with points."""

    def test_bank_returns_turn_score(self, scripted_dice):
        turn = _turn(scripted_dice((1, 5, 2, 3, 3, 6)))
        turn.roll()
        turn.select_and_keep({0, 1})
        assert turn.bank() == 150
        assert turn.phase is TurnPhase.BANKED

    def test_bank_with_nothing_is_illegal(self, scripted_dice):
        with pytest.raises(IllegalTransition, match="Nothing to bank"):
            _turn(scripted_dice()).bank()

    def test_bank_before_keeping_is_illegal(self, scripted_dice):
        turn = _turn(scripted_dice((1, 5, 2, 3, 3, 6)))
        turn.roll()
        with pytest.raises(IllegalTransition):
            turn.bank()

    def test_roll_after_bank_is_illegal(self, scripted_dice):
        turn = _turn(scripted_dice((1, 5, 2, 3, 3, 6)))
        turn.roll()
        turn.select_and_keep({0})
        turn.bank()
        with pytest.raises(IllegalTransition):
            turn.roll()


class TestPicking:
    """Toggle-based selection for interactive play."""

    def test_toggle_cycle(self, scripted_dice):
        turn = _turn(scripted_dice((1, 5, 2, 3, 3, 6)))
        turn.roll()
        assert turn.pickable() == frozenset({0, 1})
        assert turn.toggle(0) is ToggleResult.PICKED
        assert turn.toggle(2) is ToggleResult.NOT_PICKABLE
        assert turn.toggle(0) is ToggleResult.UNPICKED
        assert turn.pending_selection == frozenset()

    def test_confirm_keeps_pending(self, scripted_dice):
        turn = _turn(scripted_dice((1, 5, 2, 3, 3, 6)))
        turn.roll()
        turn.toggle(0)
        turn.toggle(1)
        assert turn.confirm_selection().points == 150
        assert turn.pending_selection == frozenset()

    def test_confirm_partial_triple_clears_picks(self, scripted_dice):
        turn = _turn(scripted_dice((2, 2, 2, 3, 4, 6)))
        turn.roll()
        turn.toggle(0)
        with pytest.raises(InvalidSelection):
            turn.confirm_selection()
        assert turn.pending_selection == frozenset()
        assert turn.phase is TurnPhase.AWAITING_SELECTION

    def test_kept_die_cannot_be_unpicked(self, scripted_dice):
        turn = _turn(scripted_dice((1, 5, 2, 3, 3, 6), (5, 5, 5, 2, 3)))
        turn.roll()
        turn.select_and_keep({0})
        turn.roll()
        assert turn.toggle(0) is ToggleResult.NOT_UNPICKABLE

    def test_clear_selection(self, scripted_dice):
        turn = _turn(scripted_dice((1, 5, 2, 3, 3, 6)))
        turn.roll()
        turn.toggle(1)
        turn.clear_selection()
        assert turn.pending_selection == frozenset()

    def test_nothing_pickable_before_roll(self, scripted_dice):
        turn = _turn(scripted_dice())
        assert turn.pickable() == frozenset()
        assert turn.available_combinations == ()
        with pytest.raises(IllegalTransition):
            turn.toggle(0)


class TestTurnEvents:
    """Events reported to the listener."""

    def test_events_in_order(self, scripted_dice):
        received = []
        turn = _turn(scripted_dice((1, 1, 1, 5, 5, 5)), listener=received.append)
        turn.roll()
        turn.select_and_keep(range(6))
        assert [e.event for e in received] == [
            GameEvent.DICE_ROLLED,
            GameEvent.DICE_KEPT,
            GameEvent.HOT_DICE,
        ]
        assert all(e.player_id == "p1" for e in received)

    def test_farkle_event(self, scripted_dice):
        received = []
        turn = _turn(scripted_dice((2, 3, 4, 6, 6, 2)), listener=received.append)
        turn.roll()
        assert received[-1].event is GameEvent.PLAYER_FARKLED


class TestRulesInjection:
    """The turn scores with the rules it was given."""

    def test_house_rule_straight(self, scripted_dice):
        turn = _turn(scripted_dice((1, 2, 3, 4, 5, 2)), rules=ScoringRules(low_straight=500))
        turn.roll()
        assert turn.select_and_keep(range(5)).points == 500
