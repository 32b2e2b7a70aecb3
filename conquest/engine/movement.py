"""
Territory graph queries: adjacency and reachability through owned land.
"""

from conquest.engine.definitions import Board


def is_adjacent(board: Board, a: str, b: str) -> bool:
    """True if territory a borders territory b. Raises KeyError if a is unknown."""
    return board.is_adjacent(a, b)


def get_connected_territories(board: Board, owned: set[str], start: str) -> set[str]:
    """
    All territories reachable from start moving only through territories in owned.

    Depth-first over the adjacency graph, each territory visited at most once.
    The result includes start itself. Raises KeyError for an unknown territory.
    """
    board.get_territory(start)
    visited: set[str] = set()
    stack = [start]

    while stack:
        current = stack.pop()
        if current in visited:
            continue
        visited.add(current)
        for adjacent in board.get_territory(current).adjacent:
            if adjacent in owned and adjacent not in visited:
                stack.append(adjacent)

    return visited


def are_connected(board: Board, owned: set[str], from_territory: str, to_territory: str) -> bool:
    """
    True if to_territory can be reached from from_territory through owned territories only.
    Both endpoints must be in owned. Raises KeyError for unknown territory names.
    """
    board.get_territory(from_territory)
    board.get_territory(to_territory)
    if from_territory not in owned or to_territory not in owned:
        return False

    visited: set[str] = set()
    stack = [from_territory]

    while stack:
        current = stack.pop()
        if current == to_territory:
            return True
        if current in visited:
            continue
        visited.add(current)
        for adjacent in board.get_territory(current).adjacent:
            if adjacent in owned and adjacent not in visited:
                stack.append(adjacent)

    return False
