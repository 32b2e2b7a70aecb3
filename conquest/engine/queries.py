"""
Query functions for UI integration.
These functions help the UI understand what actions are available
without mutating game state.
"""

import random
from dataclasses import dataclass
from typing import Any

from conquest.engine import FORCED_TRADE_HAND_SIZE, MAX_ATTACK_DICE
from conquest.engine.actions import (
    ATTACK,
    END_PHASE,
    FORTIFY,
    MOVE_ARMIES,
    REINFORCE,
    TRADE_CARDS,
    Action,
)
from conquest.engine.cards import get_valid_trades
from conquest.engine.combat import attacker_dice_count
from conquest.engine.definitions import Board
from conquest.engine.movement import get_connected_territories
from conquest.engine.probability import Memo, conquest_probability
from conquest.engine.reducer import apply_action
from conquest.engine.state import GameState, TurnPhase
from conquest.engine.utils import calculate_reinforcements


@dataclass
class ValidationResult:
    """Result of action validation."""
    valid: bool
    error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {"valid": self.valid, "error": self.error}


# ===== Action Validation =====

def validate_action(state: GameState, action: Action, board: Board) -> ValidationResult:
    """
    Validate an action without applying it.
    Runs the reducer against a copy with a throwaway random source, so the live dice
    sequence is not consumed.
    """
    try:
        apply_action(state, action, board, random.Random(0))
    except ValueError as e:
        return ValidationResult(False, str(e))
    return ValidationResult(True)


# ===== Legal Actions =====

def get_possible_actions(state: GameState, board: Board) -> list[dict[str, Any]]:
    """
    Every legal action for the current player in the current phase.
    Enumeration walks territories in sorted order, so the list is stable for a given state.
    An end_phase entry is appended wherever the phase does not advance on its own.
    """
    phase = state.turn_phase
    player = state.current_player
    actions: list[dict[str, Any]] = []

    if phase == TurnPhase.REINFORCE:
        if state.reinforcement_armies > 0:
            for territory in sorted(player.territories):
                actions.append({
                    "type": REINFORCE,
                    "territory": territory,
                    "max_armies": state.reinforcement_armies,
                })
        for indices in get_valid_trades(player.cards):
            actions.append({"type": TRADE_CARDS, "card_indices": indices})
        if state.reinforcement_armies == 0 and len(player.cards) < FORCED_TRADE_HAND_SIZE:
            actions.append({"type": END_PHASE})

    elif phase == TurnPhase.ATTACK:
        actions.extend(get_attack_options(state, board, player.id))
        actions.append({"type": END_PHASE})

    elif phase == TurnPhase.MOVE_ARMIES:
        pending = state.pending_move
        if pending is not None:
            actions.append({
                "type": MOVE_ARMIES,
                "from": pending.from_territory,
                "to": pending.to_territory,
                "min_armies": pending.dice,
                "max_armies": player.get_armies(pending.from_territory) - 1,
            })

    elif phase == TurnPhase.FORTIFY:
        actions.extend(get_fortify_options(state, board, player.id))
        actions.append({"type": END_PHASE})

    return actions


def get_attack_options(state: GameState, board: Board, player_id: int) -> list[dict[str, Any]]:
    """Attacks from every owned territory with more than one army onto each adjacent enemy territory."""
    player = state.get_player(player_id)
    options = []
    for from_territory in sorted(player.territories):
        armies = player.get_armies(from_territory)
        if armies <= 1:
            continue
        for to_territory in sorted(board.get_territory(from_territory).adjacent):
            if to_territory in player.territories:
                continue
            options.append({
                "type": ATTACK,
                "from": from_territory,
                "to": to_territory,
                "max_dice": attacker_dice_count(MAX_ATTACK_DICE, armies),
            })
    return options


def get_fortify_options(state: GameState, board: Board, player_id: int) -> list[dict[str, Any]]:
    """Every (from, to) pair of owned territories connected through owned land, where from can spare armies."""
    player = state.get_player(player_id)
    options = []
    for from_territory in sorted(player.territories):
        max_armies = max(0, player.get_armies(from_territory) - 1)
        if max_armies == 0:
            continue
        reachable = get_connected_territories(board, player.territories, from_territory)
        for to_territory in sorted(reachable - {from_territory}):
            options.append({
                "type": FORTIFY,
                "from": from_territory,
                "to": to_territory,
                "max_armies": max_armies,
            })
    return options


# ===== Probabilities =====

def get_conquer_probabilities(
    state: GameState,
    board: Board,
    memo: Memo,
) -> list[tuple[str, str, float]]:
    """
    (from, to, win percentage) for every possible attack of every player:
    each owned territory with more than one army against each adjacent enemy territory.
    """
    probabilities = []
    for player in state.players:
        for from_territory in sorted(player.territories):
            attacker_armies = player.get_armies(from_territory)
            if attacker_armies <= 1:
                continue
            for to_territory in sorted(board.get_territory(from_territory).adjacent):
                if to_territory in player.territories:
                    continue
                defender = state.owner_of(to_territory)
                if defender is None:
                    continue
                defender_armies = defender.get_armies(to_territory)
                probabilities.append((
                    from_territory,
                    to_territory,
                    conquest_probability(attacker_armies, defender_armies, memo),
                ))
    return probabilities


# ===== Snapshot =====

def get_game_snapshot(state: GameState, board: Board, memo: Memo) -> dict[str, Any]:
    """
    Public view of the game: turn bookkeeping, legal actions, players with their
    reinforcement allotment and total armies, the board and attack probabilities.
    Refreshes the derived per-player fields on the given state.
    """
    for player in state.players:
        player.army_supply = calculate_reinforcements(player, board)
        player.calculate_total_armies()

    snapshot = state.to_dict()
    snapshot["current_player"] = state.current_player.name
    snapshot["possible_actions"] = get_possible_actions(state, board)
    snapshot["board"] = board.to_dict()
    snapshot["conquer_probabilities"] = [
        {"from": from_territory, "to": to_territory, "probability": probability}
        for from_territory, to_territory, probability in get_conquer_probabilities(state, board, memo)
    ]
    return snapshot
