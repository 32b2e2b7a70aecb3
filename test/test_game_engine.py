import json
import random
import threading

import pytest

from conquest import config
from conquest.engine.game import GameEngine
from conquest.engine.probability import ProbabilityCacheError, ProbabilityTable
from conquest.engine.state import TurnPhase


@pytest.fixture
def engine(board, make_state, probabilities):
    state = make_state(
        {0: {"A": 3, "C": 2, "E": 1}, 1: {"B": 2, "D": 4}},
        reinforcement_armies=8,
    )
    return GameEngine(board, state, probabilities, random.Random(11), default_num_players=2)


def test_successful_action_returns_snapshot(engine):
    result = engine.reinforce(0, "A", 2)
    assert result.ok
    assert result.state["reinforcement_armies"] == 6
    assert result.events[0].type == "armies_reinforced"
    assert engine.state.players[0].get_armies("A") == 5


def test_rejected_action_keeps_state(engine):
    result = engine.reinforce(0, "B", 2)
    assert result.error == "Player Player 1 does not own B"
    assert result.events == []
    assert result.state["reinforcement_armies"] == 8


def test_bulk_reinforce_stops_at_first_error(engine):
    result = engine.bulk_reinforce(0, [("A", 1), ("B", 1), ("C", 1)])

    assert "does not own B" in result.error
    assert engine.state.players[0].get_armies("A") == 4
    assert engine.state.players[0].get_armies("C") == 2
    assert engine.state.reinforcement_armies == 7
    assert len(result.events) == 1


def test_bulk_reinforce_applies_all(engine):
    result = engine.bulk_reinforce(0, [("A", 4), ("C", 4)])
    assert result.ok
    assert engine.state.turn_phase == TurnPhase.ATTACK


def test_advance_phase_uses_current_player(engine):
    engine.reinforce(0, "A", 8)
    result = engine.advance_phase()
    assert result.ok
    assert result.state["turn_phase"] == "Fortify"

    result = engine.advance_phase()
    assert result.state["current_turn"] == 1
    assert result.state["turn_phase"] == "Reinforce"


def test_result_to_dict(engine):
    data = engine.get_game_state().to_dict()
    assert set(data) == {"game_state", "error", "events"}
    assert data["error"] is None


def test_concurrent_actions_are_serialized(engine):
    errors = []

    def place():
        result = engine.reinforce(0, "E", 1)
        if result.error:
            errors.append(result.error)

    threads = [threading.Thread(target=place) for _ in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert errors == []
    assert engine.state.players[0].get_armies("E") == 9
    assert engine.state.reinforcement_armies == 0


def test_new_random_game(engine):
    result = engine.new_game(num_players=3)
    assert result.ok
    assert len(engine.state.players) == 3
    assert engine.state.turn_phase == TurnPhase.REINFORCE


def test_new_game_from_config_replaces_board(engine, tmp_path):
    data = {
        "continents": [{"name": "Isle", "bonus_armies": 1, "territories": ["X", "Y"]}],
        "territories": [
            {"name": "X", "continent": "Isle", "adjacent_territories": ["Y"]},
            {"name": "Y", "continent": "Isle", "adjacent_territories": ["X"]},
        ],
        "players": [
            {"id": 0, "name": "North", "territories": [{"name": "X", "armies": 5}]},
            {"id": 1, "name": "South", "territories": [{"name": "Y", "armies": 1}]},
        ],
    }
    path = tmp_path / "isle.json"
    path.write_text(json.dumps(data))

    result = engine.new_game(config_path=path)

    assert result.ok
    assert set(engine.board.territories) == {"X", "Y"}
    assert result.state["current_player"] == "North"


def test_unreadable_config_falls_back_to_random_game(engine, tmp_path):
    result = engine.new_game(config_path=tmp_path / "missing.json")
    assert result.ok
    assert len(engine.state.players) == 2
    assert set(engine.board.territories) == {"A", "B", "C", "D", "E"}


def test_inconsistent_config_keeps_current_game(engine, tmp_path, board_data):
    data = dict(board_data)
    data["players"] = [{"id": 0, "name": "Solo", "territories": [{"name": "A", "armies": 1}]}]
    path = tmp_path / "bad.json"
    path.write_text(json.dumps(data))

    result = engine.new_game(config_path=path)

    assert result.error.startswith("Invalid game config")
    assert engine.state.reinforcement_armies == 8


def two_player_data(board_data, cards=(), armies=1):
    data = dict(board_data)
    data["players"] = [
        {"id": 0, "name": "North", "territories": [
            {"name": "A", "armies": armies}, {"name": "B", "armies": 1}, {"name": "C", "armies": 1},
        ], "cards": list(cards)},
        {"id": 1, "name": "South", "territories": [{"name": "D", "armies": 1}, {"name": "E", "armies": 1}]},
    ]
    return data


@pytest.mark.parametrize("build", [
    pytest.param(lambda board_data: {}, id="empty"),
    pytest.param(lambda board_data: two_player_data(board_data, cards=[{"territory": None, "kind": "Bogus"}]),
                 id="unknown-card-kind"),
    pytest.param(lambda board_data: two_player_data(board_data, cards=[{"territory": "A"}]),
                 id="card-missing-kind"),
    pytest.param(lambda board_data: two_player_data(board_data, cards=[{"territory": "Atlantis", "kind": "Infantry"}]),
                 id="card-unknown-territory"),
    pytest.param(lambda board_data: two_player_data(board_data, armies=-1), id="non-positive-armies"),
])
def test_malformed_config_keeps_current_game(engine, tmp_path, board_data, build):
    path = tmp_path / "bad.json"
    path.write_text(json.dumps(build(board_data)))

    result = engine.new_game(config_path=path)

    assert result.error.startswith("Invalid game config")
    assert engine.state.reinforcement_armies == 8
    assert set(engine.board.territories) == {"A", "B", "C", "D", "E"}


def test_from_settings_requires_probability_cache(tmp_path):
    with pytest.raises(ProbabilityCacheError):
        GameEngine.from_settings(cache_path=tmp_path / "missing.bin")


def test_from_settings_loads_cache(tmp_path):
    path = tmp_path / "cache.bin"
    table = ProbabilityTable()
    table.warm(5, 5)
    table.save(path)

    engine = GameEngine.from_settings(
        board_path=config.DATA_DIR / "classic_board.json",
        cache_path=path,
        num_players=4,
        rng=random.Random(2),
    )

    assert len(engine.state.players) == 4
    assert len(engine.probabilities) >= len(table)
    assert engine.get_game_state().state["conquer_probabilities"]
