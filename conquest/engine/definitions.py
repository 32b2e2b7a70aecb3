"""
Static definitions for the board: territories, continents and their adjacency.
Also parses declarative game configurations (board + players) from JSON files.

Config file shape:
    {
        "players": [{"id": 0, "name": str,
                     "territories": [{"name": str, "armies": int}, ...],
                     "cards": [{"territory": str | null, "kind": "Infantry"}, ...]}, ...],
        "territories": [{"name": str, "continent": str, "adjacent_territories": [str, ...]}, ...],
        "continents": [{"name": str, "bonus_armies": int, "territories": [str, ...]}, ...]
    }
"""

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from conquest.engine.state import Card


@dataclass
class TerritoryDefinition:
    """Defines immutable properties of a territory."""
    name: str
    continent: str  # Back-reference to the owning continent's name
    adjacent: set[str] = field(default_factory=set)

    def is_adjacent(self, territory: str) -> bool:
        return territory in self.adjacent

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "continent": self.continent,
            "adjacent_territories": sorted(self.adjacent),
        }


@dataclass
class ContinentDefinition:
    """A named region granting bonus_armies to a player holding all of its territories."""
    name: str
    bonus_armies: int
    territories: set[str] = field(default_factory=set)

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "bonus_armies": self.bonus_armies,
            "territories": sorted(self.territories),
        }


@dataclass
class Board:
    """
    Territory graph plus continent catalog.
    Immutable after setup; ownership lives on the players, not here.
    """
    territories: dict[str, TerritoryDefinition] = field(default_factory=dict)
    continents: dict[str, ContinentDefinition] = field(default_factory=dict)

    def get_territory(self, name: str) -> TerritoryDefinition:
        """Look up a territory. Raises KeyError for unknown names."""
        try:
            return self.territories[name]
        except KeyError:
            raise KeyError(f"Unknown territory: {name}") from None

    def is_adjacent(self, a: str, b: str) -> bool:
        return self.get_territory(a).is_adjacent(b)

    def validate(self) -> list[str]:
        """
        Check configuration-time invariants of the graph.
        Returns a list of problems (empty when the board is consistent):
        - adjacency to an undefined territory
        - asymmetric adjacency (A lists B but B does not list A)
        - continent membership naming an undefined territory
        """
        problems = []
        for name in sorted(self.territories):
            territory = self.territories[name]
            for adjacent in sorted(territory.adjacent):
                other = self.territories.get(adjacent)
                if other is None:
                    problems.append(f"{name} is adjacent to unknown territory {adjacent}")
                elif name not in other.adjacent:
                    problems.append(f"{name} is adjacent to {adjacent} but not the reverse")
        for continent_name in sorted(self.continents):
            for member in sorted(self.continents[continent_name].territories):
                if member not in self.territories:
                    problems.append(f"Continent {continent_name} lists unknown territory {member}")
        return problems

    def to_dict(self) -> dict[str, Any]:
        return {
            "territories": {name: t.to_dict() for name, t in self.territories.items()},
            "continents": {name: c.to_dict() for name, c in self.continents.items()},
        }


@dataclass
class PlayerSetup:
    """Declared starting position for one player."""
    id: int
    name: str
    armies: dict[str, int]  # territory -> initial armies
    cards: list[Card] = field(default_factory=list)


@dataclass
class GameConfig:
    """A declarative game: board plus every player's starting position."""
    board: Board
    players: list[PlayerSetup]


def board_from_dict(data: dict[str, Any]) -> Board:
    """Build a Board from the "territories" and "continents" sections of a config dict."""
    board = Board()

    for continent_data in data.get("continents", []):
        continent = ContinentDefinition(
            name=continent_data["name"],
            bonus_armies=int(continent_data["bonus_armies"]),
            territories=set(continent_data.get("territories", [])),
        )
        board.continents[continent.name] = continent

    for territory_data in data.get("territories", []):
        territory = TerritoryDefinition(
            name=territory_data["name"],
            continent=territory_data["continent"],
            adjacent=set(territory_data.get("adjacent_territories", [])),
        )
        board.territories[territory.name] = territory

    return board


def _card_from_config(board: Board, data: dict[str, Any]) -> Card:
    """Parse one hand card. Raises ValueError for a missing key, unknown kind or unknown territory."""
    try:
        card = Card.from_dict(data)
    except KeyError as e:
        raise ValueError(f"Card is missing {e}: {data}") from None
    except (TypeError, ValueError) as e:
        raise ValueError(f"Invalid card {data}: {e}") from None
    if card.territory is not None and card.territory not in board.territories:
        raise ValueError(f"Card refers to unknown territory: {card.territory}")
    return card


def game_config_from_dict(data: dict[str, Any]) -> GameConfig:
    """
    Build a GameConfig from a parsed config dict.

    Every continent-declared territory must be assigned to exactly one player;
    a duplicate or missing assignment raises ValueError (fatal at setup).
    Player ids must be 0..n-1; players are ordered by id.
    """
    board = board_from_dict(data)
    problems = board.validate()
    if problems:
        raise ValueError("Invalid board configuration: " + "; ".join(problems))

    players = []
    assigned: set[str] = set()
    duplicates: set[str] = set()
    for player_data in data.get("players", []):
        armies = {}
        for entry in player_data.get("territories", []):
            name = entry["name"]
            if name in assigned:
                duplicates.add(name)
            assigned.add(name)
            armies[name] = int(entry["armies"])
            if armies[name] < 1:
                raise ValueError(f"Territory {name} must start with at least 1 army, got {armies[name]}")
        players.append(PlayerSetup(
            id=int(player_data["id"]),
            name=str(player_data["name"]),
            armies=armies,
            cards=[_card_from_config(board, card) for card in player_data.get("cards", [])],
        ))

    if len(players) < 2:
        raise ValueError(f"A game needs at least 2 players, got {len(players)}")
    if duplicates:
        raise ValueError(f"Duplicate territories found: {sorted(duplicates)}")

    declared = set(board.territories)
    for continent in board.continents.values():
        declared |= continent.territories
    unassigned = declared - assigned
    if unassigned:
        raise ValueError(f"Territory not assigned: {sorted(unassigned)}")
    unknown = assigned - set(board.territories)
    if unknown:
        raise ValueError(f"Players own undefined territories: {sorted(unknown)}")

    players.sort(key=lambda p: p.id)
    if [p.id for p in players] != list(range(len(players))):
        raise ValueError(f"Player ids must be 0..{len(players) - 1}, got {[p.id for p in players]}")

    return GameConfig(board=board, players=players)


def load_board(path: Path | str) -> Board:
    """Load a board (territories + continents) from a JSON file. Raises ValueError if inconsistent."""
    with open(path, "r") as f:
        data = json.load(f)
    board = board_from_dict(data)
    problems = board.validate()
    if problems:
        raise ValueError(f"Invalid board in {path}: " + "; ".join(problems))
    return board


def load_game_config(path: Path | str) -> GameConfig:
    """Load a full game configuration (board + players) from a JSON file."""
    with open(path, "r") as f:
        data = json.load(f)
    return game_config_from_dict(data)
