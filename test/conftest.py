"""
Shared fixtures: a five-territory board, seeded and scripted random sources,
and a factory for hand-built game states.

Board layout:

    North (bonus 2): A - B - C
                         |   |
    South (bonus 1):     D - E   (B-D, C-D, D-E)
"""

import random

import pytest

from conquest.engine.definitions import board_from_dict
from conquest.engine.probability import ProbabilityTable
from conquest.engine.state import GameState, PlayerState, TurnPhase

SMALL_BOARD_DATA = {
    "continents": [
        {"name": "North", "bonus_armies": 2, "territories": ["A", "B", "C"]},
        {"name": "South", "bonus_armies": 1, "territories": ["D", "E"]},
    ],
    "territories": [
        {"name": "A", "continent": "North", "adjacent_territories": ["B"]},
        {"name": "B", "continent": "North", "adjacent_territories": ["A", "C", "D"]},
        {"name": "C", "continent": "North", "adjacent_territories": ["B", "D"]},
        {"name": "D", "continent": "South", "adjacent_territories": ["B", "C", "E"]},
        {"name": "E", "continent": "South", "adjacent_territories": ["D"]},
    ],
}


class ScriptedDice:
    """Stands in for random.Random in combat: randint returns the scripted values in order."""

    def __init__(self, rolls):
        self.rolls = list(rolls)

    def randint(self, a, b):
        return self.rolls.pop(0)


def _make_state(
    holdings: dict[int, dict[str, int]],
    phase: TurnPhase = TurnPhase.REINFORCE,
    current_turn: int = 0,
    reinforcement_armies: int = 0,
    cards: dict | None = None,
    deck: list | None = None,
) -> GameState:
    players = []
    for player_id in sorted(holdings):
        player = PlayerState(id=player_id, name=f"Player {player_id + 1}")
        for territory, armies in holdings[player_id].items():
            player.add_territory(territory)
            player.set_armies(territory, armies)
        player.cards = list((cards or {}).get(player_id, []))
        players.append(player)
    return GameState(
        players=players,
        current_turn=current_turn,
        turn_phase=phase,
        reinforcement_armies=reinforcement_armies,
        initial_reinforcement_armies=reinforcement_armies,
        deck=list(deck or []),
        active_players=[p.id for p in players],
    )


@pytest.fixture
def board():
    return board_from_dict(SMALL_BOARD_DATA)


@pytest.fixture
def board_data():
    return SMALL_BOARD_DATA


@pytest.fixture
def rng():
    return random.Random(1234)


@pytest.fixture
def make_state():
    return _make_state


@pytest.fixture
def scripted_dice():
    return ScriptedDice


@pytest.fixture
def probabilities():
    return ProbabilityTable()
