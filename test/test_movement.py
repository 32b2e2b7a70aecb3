import pytest

from conquest.engine.movement import are_connected, get_connected_territories, is_adjacent


def test_adjacency(board):
    assert is_adjacent(board, "A", "B")
    assert is_adjacent(board, "B", "A")
    assert not is_adjacent(board, "A", "E")


def test_connected_through_owned_territories(board):
    owned = {"C", "D", "E"}
    assert are_connected(board, owned, "C", "E")
    assert are_connected(board, owned, "E", "C")


def test_not_connected_across_enemy_territory(board):
    # A reaches C only through B
    assert not are_connected(board, {"A", "C"}, "A", "C")


def test_unowned_endpoint_is_not_connected(board):
    assert not are_connected(board, {"A", "B"}, "A", "C")


def test_unknown_territory_raises(board):
    with pytest.raises(KeyError):
        are_connected(board, {"A"}, "A", "Nowhere")
    with pytest.raises(KeyError):
        get_connected_territories(board, {"A"}, "Nowhere")


def test_connected_territories_include_start(board):
    assert get_connected_territories(board, {"A", "B", "D", "E"}, "A") == {"A", "B", "D", "E"}
    assert get_connected_territories(board, {"A", "C"}, "A") == {"A"}


def test_cycles_are_handled(board):
    # B, C and D form a triangle
    owned = set(board.territories)
    assert get_connected_territories(board, owned, "B") == owned
