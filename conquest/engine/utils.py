"""
Utility functions for the game engine: setup and reinforcement bookkeeping.
"""

import logging
import random

from conquest.engine import (
    DEFAULT_INITIAL_ARMIES,
    INITIAL_ARMIES_BY_PLAYER_COUNT,
    MIN_REINFORCEMENTS,
    TERRITORIES_PER_REINFORCEMENT,
)
from conquest.engine.cards import create_deck
from conquest.engine.definitions import Board, GameConfig
from conquest.engine.state import GameState, PlayerState, TurnPhase

logger = logging.getLogger(__name__)


def calculate_reinforcements(player: PlayerState, board: Board) -> int:
    """
    Armies granted at the start of a turn:
    max(territories // 3, 3) plus the bonus of every continent the player fully holds.
    """
    base = max(len(player.territories) // TERRITORIES_PER_REINFORCEMENT, MIN_REINFORCEMENTS)
    continent_bonus = sum(
        continent.bonus_armies
        for continent in board.continents.values()
        if continent.territories and continent.territories <= player.territories
    )
    return base + continent_bonus


def check_win_condition(state: GameState, board: Board) -> int | None:
    """Return the id of the player owning every territory, or None."""
    all_territories = set(board.territories)
    for player in state.players:
        if all_territories and all_territories <= player.territories:
            return player.id
    return None


def initial_armies_for(num_players: int) -> int:
    return INITIAL_ARMIES_BY_PLAYER_COUNT.get(num_players, DEFAULT_INITIAL_ARMIES)


def start_turn(state: GameState, board: Board) -> None:
    """
    Begin the current player's turn in place: compute the reinforcement allotment,
    reset the conquest flag and enter the reinforce phase.
    """
    player = state.current_player
    state.reinforcement_armies = calculate_reinforcements(player, board)
    state.initial_reinforcement_armies = state.reinforcement_armies
    state.conquered_territory = False
    state.pending_move = None
    state.turn_phase = TurnPhase.REINFORCE


def initialize_game_state(config: GameConfig, rng: random.Random) -> GameState:
    """
    Create the starting state from a declarative configuration.
    Players keep their configured armies and hands; the deck is built for the board.
    """
    players = []
    for setup in config.players:
        player = PlayerState(id=setup.id, name=setup.name)
        for territory, armies in setup.armies.items():
            player.add_territory(territory)
            player.set_armies(territory, armies)
        player.cards = list(setup.cards)
        players.append(player)

    state = GameState(
        players=players,
        deck=create_deck(config.board, rng),
        active_players=[p.id for p in players],
    )
    start_turn(state, config.board)
    logger.info("Initialized game from config with %d players", len(players))
    return state


def distribute_territories(board: Board, players: list[PlayerState], rng: random.Random) -> None:
    """
    Deal territories one continent at a time, round-robin across players, one army each.
    The dealer position carries over between continents, so with two or more players
    nobody is dealt every territory of a continent.
    """
    by_continent: dict[str, list[str]] = {}
    for name in sorted(board.territories):
        by_continent.setdefault(board.territories[name].continent, []).append(name)

    player_index = 0
    for continent_name in sorted(by_continent):
        territories = by_continent[continent_name]
        rng.shuffle(territories)
        for territory in territories:
            player = players[player_index]
            player.add_territory(territory)
            player.reinforce(territory, 1)
            player_index = (player_index + 1) % len(players)


def top_up_armies(players: list[PlayerState], initial_armies: int) -> None:
    """Add one army at a time across each player's territories until it holds initial_armies."""
    for player in players:
        remaining = initial_armies - player.calculate_total_armies()
        territories = sorted(player.territories)
        if not territories:
            continue
        i = 0
        while remaining > 0:
            player.reinforce(territories[i % len(territories)], 1)
            remaining -= 1
            i += 1
        player.calculate_total_armies()


def create_random_game(board: Board, num_players: int, rng: random.Random) -> GameState:
    """
    Randomized setup on the given board: shuffle and deal territories, top every player
    up to the starting total for the player count, build the deck and start player 0's turn.
    """
    if num_players < 2:
        raise ValueError(f"A game needs at least 2 players, got {num_players}")
    if num_players > len(board.territories):
        raise ValueError(
            f"Too many players ({num_players}) for a board with {len(board.territories)} territories"
        )

    players = [PlayerState(id=i, name=f"Player {i + 1}") for i in range(num_players)]
    distribute_territories(board, players, rng)
    top_up_armies(players, initial_armies_for(num_players))

    state = GameState(
        players=players,
        deck=create_deck(board, rng),
        active_players=list(range(num_players)),
    )
    start_turn(state, board)
    logger.info("Created random game with %d players", num_players)
    return state
