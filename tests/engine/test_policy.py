"""
Farkle Engine - Decision Policy Tests
"""

import pytest

from src.engine.actions import Bank, Keep, Roll
from src.engine.base import TurnPhase, TurnState
from src.engine.errors import IllegalTransition, InvalidSelection
from src.engine.policy import (
    EXPECTED_ROLL_POINTS,
    FARKLE_PROBABILITY,
    HeuristicPolicy,
    InteractivePolicy,
)
from src.engine.turn import TurnEngine


class TestProbabilityTables:
    """The fixed risk tables cover every dice count."""

    def test_tables_cover_one_to_six(self):
        assert set(FARKLE_PROBABILITY) == set(range(1, 7))
        assert set(EXPECTED_ROLL_POINTS) == set(range(1, 7))

    def test_more_dice_is_safer(self):
        risks = [FARKLE_PROBABILITY[n] for n in range(1, 7)]
        assert risks == sorted(risks, reverse=True)


class TestHeuristicPolicy:
    """Default computer player."""

    def test_keeps_maximum_value_dice(self, scripted_dice):
        turn = TurnEngine("p1", random_source=scripted_dice((1, 5, 2, 3, 3, 6)))
        turn.roll()
        action = HeuristicPolicy().decide(turn.state, turn.available_combinations)
        assert action == Keep({0, 1})

    def test_keeps_straight_whole(self, scripted_dice):
        turn = TurnEngine("p1", random_source=scripted_dice((6, 5, 4, 3, 2, 1)))
        turn.roll()
        action = HeuristicPolicy().decide(turn.state, turn.available_combinations)
        assert action == Keep(range(6))

    def test_rolls_with_nothing_banked(self):
        assert HeuristicPolicy().decide(TurnState(player_id="p1"), ()) == Roll()

    def test_banks_when_risk_is_high(self):
        state = TurnState(player_id="p1", banked_this_turn=300, dice_remaining=3)
        assert HeuristicPolicy().decide(state, ()) == Bank()

    def test_rolls_with_full_set(self):
        state = TurnState(player_id="p1", banked_this_turn=300, dice_remaining=6)
        assert HeuristicPolicy().decide(state, ()) == Roll()

    def test_banks_on_last_die(self):
        state = TurnState(player_id="p1", banked_this_turn=50, dice_remaining=1)
        assert HeuristicPolicy().decide(state, ()) == Bank()

    def test_rolls_until_entry_threshold(self):
        state = TurnState(player_id="p1", banked_this_turn=450, dice_remaining=1, minimum_bank=500)
        assert HeuristicPolicy().decide(state, ()) == Roll()

    def test_custom_tables(self):
        cautious = HeuristicPolicy(farkle_probability={n: 0.99 for n in range(1, 7)})
        state = TurnState(player_id="p1", banked_this_turn=300, dice_remaining=6)
        assert cautious.decide(state, ()) == Bank()

    @pytest.mark.parametrize("phase", [TurnPhase.FARKLED, TurnPhase.BANKED])
    def test_terminal_turn_is_illegal(self, phase):
        with pytest.raises(IllegalTransition):
            HeuristicPolicy().decide(TurnState(player_id="p1", phase=phase), ())


class TestInteractivePolicy:
    """Proxy for externally supplied actions."""

    def test_forwards_source(self):
        seen = []

        def source(state, available):
            seen.append(state.phase)
            return Roll()

        policy = InteractivePolicy(source)
        assert policy.decide(TurnState(player_id="p1"), ()) == Roll()
        assert seen == [TurnPhase.AWAITING_ROLL]

    def test_from_actions_replays_in_order(self):
        policy = InteractivePolicy.from_actions([Roll(), Keep({0}), Bank()])
        state = TurnState(player_id="p1")
        assert policy.decide(state, ()) == Roll()
        assert policy.decide(state, ()) == Keep({0})
        assert policy.decide(state, ()) == Bank()

    def test_exhausted_script_is_illegal(self):
        policy = InteractivePolicy.from_actions([])
        with pytest.raises(IllegalTransition, match="exhausted"):
            policy.decide(TurnState(player_id="p1"), ())

    def test_unknown_action_is_invalid(self):
        policy = InteractivePolicy(lambda state, available: "bank")
        with pytest.raises(InvalidSelection):
            policy.decide(TurnState(player_id="p1"), ())

    def test_terminal_turn_is_illegal(self):
        policy = InteractivePolicy.from_actions([Roll()])
        with pytest.raises(IllegalTransition):
            policy.decide(TurnState(player_id="p1", phase=TurnPhase.BANKED), ())
