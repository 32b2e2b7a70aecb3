"""
Game engine: owns the one live game and serializes every action against it.

Each public method takes the engine lock for the duration of one action, runs the
reducer and swaps in the new state. Rule violations come back as ActionResult.error;
the state is left as it was.
"""

import json
import logging
import random
import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from conquest import config
from conquest.engine import actions
from conquest.engine.actions import Action
from conquest.engine.definitions import Board, load_board, load_game_config
from conquest.engine.events import GameEvent
from conquest.engine.probability import ProbabilityTable
from conquest.engine.queries import get_game_snapshot
from conquest.engine.reducer import apply_action
from conquest.engine.state import GameState
from conquest.engine.utils import create_random_game, initialize_game_state

logger = logging.getLogger(__name__)


@dataclass
class ActionResult:
    """Snapshot after an action, plus the error (None on success) and the events it produced."""
    state: dict[str, Any]
    error: str | None = None
    events: list[GameEvent] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.error is None

    def to_dict(self) -> dict[str, Any]:
        return {
            "game_state": self.state,
            "error": self.error,
            "events": [e.to_dict() for e in self.events],
        }


class GameEngine:
    def __init__(
        self,
        board: Board,
        state: GameState,
        probabilities: ProbabilityTable,
        rng: random.Random | None = None,
        default_num_players: int = config.DEFAULT_NUM_PLAYERS,
    ):
        self.board = board
        self.state = state
        self.probabilities = probabilities
        self.rng = rng or random.Random()
        self.default_num_players = default_num_players
        self._random_board = board
        self._lock = threading.Lock()

    @classmethod
    def from_settings(
        cls,
        board_path: Path | str = config.BOARD_PATH,
        cache_path: Path | str = config.PROBABILITY_CACHE_PATH,
        num_players: int = config.DEFAULT_NUM_PLAYERS,
        rng: random.Random | None = None,
    ) -> "GameEngine":
        """
        Build the engine for the server: load the board and the persisted probability table
        and start a randomized game. A missing or corrupt cache raises ProbabilityCacheError.
        """
        board = load_board(board_path)
        probabilities = ProbabilityTable.load(cache_path)
        rng = rng or random.Random()
        state = create_random_game(board, num_players, rng)
        return cls(board, state, probabilities, rng, default_num_players=num_players)

    # ===== Internals =====

    def _snapshot(self) -> dict[str, Any]:
        return get_game_snapshot(self.state, self.board, self.probabilities)

    def _apply_locked(self, action: Action) -> tuple[str | None, list[GameEvent]]:
        """Apply one action; caller holds the lock."""
        try:
            new_state, events = apply_action(self.state, action, self.board, self.rng)
        except ValueError as e:
            logger.info("Rejected %s from player %s: %s", action.type, action.player_id, e)
            return str(e), []
        self.state = new_state
        return None, events

    def _apply(self, action: Action) -> ActionResult:
        with self._lock:
            error, events = self._apply_locked(action)
            return ActionResult(self._snapshot(), error, events)

    # ===== Action API =====

    def get_game_state(self) -> ActionResult:
        with self._lock:
            return ActionResult(self._snapshot())

    def reinforce(self, player_id: int, territory: str, num_armies: int) -> ActionResult:
        return self._apply(actions.reinforce(player_id, territory, num_armies))

    def bulk_reinforce(self, player_id: int, placements: list[tuple[str, int]]) -> ActionResult:
        """
        Apply placements in order as separate reinforce actions.
        Stops at the first rejected placement; the ones before it stay applied.
        """
        with self._lock:
            all_events: list[GameEvent] = []
            error = None
            for territory, num_armies in placements:
                error, events = self._apply_locked(actions.reinforce(player_id, territory, num_armies))
                all_events.extend(events)
                if error is not None:
                    break
            return ActionResult(self._snapshot(), error, all_events)

    def attack(
        self,
        player_id: int,
        from_territory: str,
        to_territory: str,
        num_dice: int,
        repeat: bool = False,
    ) -> ActionResult:
        return self._apply(actions.attack(player_id, from_territory, to_territory, num_dice, repeat))

    def fortify(self, player_id: int, from_territory: str, to_territory: str, num_armies: int) -> ActionResult:
        return self._apply(actions.fortify(player_id, from_territory, to_territory, num_armies))

    def move_armies_after_attack(
        self,
        player_id: int,
        from_territory: str,
        to_territory: str,
        num_armies: int,
    ) -> ActionResult:
        return self._apply(actions.move_armies(player_id, from_territory, to_territory, num_armies))

    def trade_cards(self, player_id: int, card_indices: list[int]) -> ActionResult:
        return self._apply(actions.trade_cards(player_id, card_indices))

    def advance_phase(self) -> ActionResult:
        """End the current player's phase."""
        with self._lock:
            error, events = self._apply_locked(actions.end_phase(self.state.current_turn))
            return ActionResult(self._snapshot(), error, events)

    def new_game(self, config_path: Path | str | None = None, num_players: int | None = None) -> ActionResult:
        """
        Replace the current game.
        With a config path, the game (board included) comes from that file; an unreadable
        file falls back to a randomized game. An inconsistent config is reported as an
        error and the current game is kept.
        """
        with self._lock:
            if config_path is not None:
                try:
                    game_config = load_game_config(config_path)
                except (OSError, json.JSONDecodeError) as e:
                    logger.warning("Could not read game config %s (%s); starting a random game", config_path, e)
                except (KeyError, ValueError) as e:
                    logger.info("Rejected game config %s: %s", config_path, e)
                    return ActionResult(self._snapshot(), f"Invalid game config: {e}")
                else:
                    self.board = game_config.board
                    self.state = initialize_game_state(game_config, self.rng)
                    return ActionResult(self._snapshot())

            try:
                state = create_random_game(
                    self._random_board,
                    num_players or self.default_num_players,
                    self.rng,
                )
            except ValueError as e:
                return ActionResult(self._snapshot(), str(e))
            self.board = self._random_board
            self.state = state
            return ActionResult(self._snapshot())
