"""
Game state representation.
The reducer never mutates the state it is given; it works on a copy.
Includes dict serialization for the public game snapshot.
"""

from copy import deepcopy
from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class TurnPhase(str, Enum):
    REINFORCE = "Reinforce"
    ATTACK = "Attack"
    FORTIFY = "Fortify"
    MOVE_ARMIES = "MoveArmies"
    GAME_OVER = "GameOver"


class CardKind(str, Enum):
    INFANTRY = "Infantry"
    CAVALRY = "Cavalry"
    ARTILLERY = "Artillery"
    JOKER = "Joker"


@dataclass
class Card:
    """A card in a hand, the deck or the discard pile. Jokers have no territory."""
    kind: CardKind
    territory: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {"territory": self.territory, "kind": self.kind.value}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Card":
        return cls(kind=CardKind(data["kind"]), territory=data.get("territory"))


@dataclass
class PlayerState:
    """
    Per-player ledger: owned territories, army counts and card hand.
    armies has an entry only for owned territories.
    """
    id: int
    name: str
    territories: set[str] = field(default_factory=set)
    armies: dict[str, int] = field(default_factory=dict)  # territory -> army count
    cards: list[Card] = field(default_factory=list)
    army_supply: int = 0  # Reinforcement allotment, refreshed on snapshot
    total_armies: int = 0  # Sum of armies, refreshed on snapshot

    def add_territory(self, territory: str) -> None:
        self.territories.add(territory)
        self.armies.setdefault(territory, 0)

    def remove_territory(self, territory: str) -> None:
        """Drop a territory and its army entry."""
        self.territories.discard(territory)
        self.armies.pop(territory, None)

    def reinforce(self, territory: str, num_armies: int) -> None:
        self.armies[territory] = self.armies.get(territory, 0) + num_armies

    def remove_armies(self, territory: str, num_armies: int) -> None:
        """Saturating subtract; never goes below zero."""
        if territory in self.armies:
            self.armies[territory] = max(0, self.armies[territory] - num_armies)

    def set_armies(self, territory: str, armies: int) -> None:
        self.armies[territory] = armies

    def get_armies(self, territory: str) -> int:
        return self.armies.get(territory, 0)

    def fortify(self, from_territory: str, to_territory: str, num_armies: int) -> None:
        """Move armies between two territories. Silently skipped if from holds fewer than num_armies."""
        available = self.armies.get(from_territory)
        if available is None or available < num_armies:
            return
        self.armies[from_territory] = available - num_armies
        self.armies[to_territory] = self.armies.get(to_territory, 0) + num_armies

    def calculate_total_armies(self) -> int:
        self.total_armies = sum(self.armies.values())
        return self.total_armies

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "territories": sorted(self.territories),
            "armies": dict(sorted(self.armies.items())),
            "cards": [c.to_dict() for c in self.cards],
            "army_supply": self.army_supply,
            "total_armies": self.total_armies,
        }


@dataclass
class PendingMove:
    """Armies waiting to follow a successful attack into the conquered territory."""
    from_territory: str
    to_territory: str
    dice: int  # Attacker dice used in the resolving round; minimum armies to move

    def to_dict(self) -> dict[str, Any]:
        return {
            "from_territory": self.from_territory,
            "to_territory": self.to_territory,
            "dice": self.dice,
        }


@dataclass
class GameState:
    """Complete mutable game state. Players are addressed by index (== PlayerState.id)."""
    players: list[PlayerState]
    current_turn: int = 0
    round: int = 0  # Increments each time play wraps back to the first active player
    turn_phase: TurnPhase = TurnPhase.REINFORCE
    reinforcement_armies: int = 0
    initial_reinforcement_armies: int = 0
    deck: list[Card] = field(default_factory=list)  # Drawn from the end
    discard_pile: list[Card] = field(default_factory=list)
    conquered_territory: bool = False
    defeated_players: list[int] = field(default_factory=list)
    active_players: list[int] = field(default_factory=list)  # Turn rotation order
    pending_move: PendingMove | None = None

    def copy(self) -> "GameState":
        """Return a deep copy of this game state."""
        return deepcopy(self)

    @property
    def current_player(self) -> PlayerState:
        return self.players[self.current_turn]

    def get_player(self, player_id: int) -> PlayerState:
        """Look up a player by id. Raises ValueError for unknown ids."""
        if not isinstance(player_id, int) or player_id < 0 or player_id >= len(self.players):
            raise ValueError(f"Invalid player ID: {player_id}")
        return self.players[player_id]

    def owner_of(self, territory: str) -> PlayerState | None:
        """The player owning a territory, or None if nobody does."""
        for player in self.players:
            if territory in player.territories:
                return player
        return None

    def to_dict(self) -> dict[str, Any]:
        return {
            "current_turn": self.current_turn,
            "round": self.round,
            "turn_phase": self.turn_phase.value,
            "reinforcement_armies": self.reinforcement_armies,
            "initial_reinforcement_armies": self.initial_reinforcement_armies,
            "deck_size": len(self.deck),
            "discard_pile_size": len(self.discard_pile),
            "conquered_territory": self.conquered_territory,
            "defeated_players": list(self.defeated_players),
            "active_players": list(self.active_players),
            "pending_move": self.pending_move.to_dict() if self.pending_move else None,
            "players": [p.to_dict() for p in self.players],
        }
