"""
Main game reducer.
Applies actions to state, enforcing rules and producing new state.
Returns (new_state, events) where events describe what happened.
"""

import logging
import random

from conquest.engine import FORCED_TRADE_HAND_SIZE, TRADE_TERRITORY_BONUS
from conquest.engine.actions import (
    ATTACK,
    END_PHASE,
    FORTIFY,
    MOVE_ARMIES,
    REINFORCE,
    TRADE_CARDS,
    Action,
)
from conquest.engine.cards import TRADE_SIZE, calculate_trade_in_bonus
from conquest.engine.combat import attacker_dice_count, defender_dice_count, roll_attack_round
from conquest.engine.definitions import Board
from conquest.engine.events import (
    GameEvent,
    armies_moved,
    armies_reinforced,
    attack_round_resolved,
    card_drawn,
    cards_traded,
    phase_changed,
    player_defeated,
    territory_conquered,
    turn_ended,
    turn_started,
    victory,
)
from conquest.engine.movement import are_connected
from conquest.engine.state import GameState, PendingMove, PlayerState, TurnPhase
from conquest.engine.utils import check_win_condition, start_turn

logger = logging.getLogger(__name__)


# Phase rules: which action types are allowed in which phases
# MoveArmies has no end_phase: the conquering move must be made.
PHASE_ALLOWED_ACTIONS = {
    TurnPhase.REINFORCE: [REINFORCE, TRADE_CARDS, END_PHASE],
    TurnPhase.ATTACK: [ATTACK, END_PHASE],
    TurnPhase.MOVE_ARMIES: [MOVE_ARMIES],
    TurnPhase.FORTIFY: [FORTIFY, END_PHASE],
    TurnPhase.GAME_OVER: [],
}


def _validate_action_for_phase(action: Action, state: GameState) -> None:
    """Validate that an action is allowed in the current phase."""
    phase = state.turn_phase
    allowed_actions = PHASE_ALLOWED_ACTIONS.get(phase, [])

    if action.type not in allowed_actions:
        raise ValueError(
            f"Action '{action.type}' is not allowed in phase '{phase.value}'. "
            f"Allowed actions: {', '.join(allowed_actions) or 'none'}"
        )


def _validate_player(action: Action, state: GameState) -> None:
    state.get_player(action.player_id)
    if action.player_id != state.current_turn:
        raise ValueError(
            f"Action player {action.player_id} does not match current player {state.current_turn}"
        )


def apply_action(
    state: GameState,
    action: Action,
    board: Board,
    rng: random.Random,
) -> tuple[GameState, list[GameEvent]]:
    """
    Apply a single action to the current state, returning new state and events.

    Validates:
    - The game is not over
    - Action player is a known player and matches current_turn
    - Action is valid for the current phase

    Args:
        state: Current game state (never mutated)
        action: Action to apply
        board: Territory graph and continent catalog
        rng: Random source for dice rolls

    Returns:
        Tuple of (new_state, events) where events describe what happened

    Raises:
        ValueError: if the action breaks a rule; the caller's state is untouched
    """
    if state.turn_phase == TurnPhase.GAME_OVER:
        raise ValueError("Game is over.")

    _validate_player(action, state)
    _validate_action_for_phase(action, state)

    new_state = state.copy()
    events: list[GameEvent] = []

    if action.type == REINFORCE:
        events.extend(_handle_reinforce(new_state, action, board))
    elif action.type == TRADE_CARDS:
        events.extend(_handle_trade_cards(new_state, action))
    elif action.type == ATTACK:
        events.extend(_handle_attack(new_state, action, board, rng))
    elif action.type == MOVE_ARMIES:
        events.extend(_handle_move_armies(new_state, action))
    elif action.type == FORTIFY:
        events.extend(_handle_fortify(new_state, action, board))
    elif action.type == END_PHASE:
        events.extend(_handle_end_phase(new_state, board))
    else:
        raise ValueError(f"Unknown action type: {action.type}")

    return new_state, events


# ===== Helpers =====

def _require_territory(board: Board, name: str) -> None:
    if name not in board.territories:
        raise ValueError(f"Unknown territory: {name}")


def _require_count(value, what: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"{what} must be an integer, got {value!r}")
    if value < 1:
        raise ValueError(f"{what} must be at least 1, got {value}")
    return value


def _set_phase(state: GameState, new_phase: TurnPhase, events: list[GameEvent]) -> None:
    old_phase = state.turn_phase
    if old_phase == new_phase:
        return
    state.turn_phase = new_phase
    events.append(phase_changed(old_phase.value, new_phase.value, state.current_turn))


def _can_leave_reinforce(state: GameState) -> bool:
    return (
        state.reinforcement_armies == 0
        and len(state.current_player.cards) < FORCED_TRADE_HAND_SIZE
    )


# ===== Reinforce Phase =====

def _handle_reinforce(state: GameState, action: Action, board: Board) -> list[GameEvent]:
    """Place armies from the reinforcement pool. Auto-advances to attack once the pool is empty."""
    territory = action.payload.get("territory")
    num_armies = _require_count(action.payload.get("num_armies"), "Number of armies")
    _require_territory(board, territory)

    player = state.current_player
    if territory not in player.territories:
        raise ValueError(f"Player {player.name} does not own {territory}")
    if num_armies > state.reinforcement_armies:
        raise ValueError(
            f"Not enough reinforcement armies: requested {num_armies}, "
            f"{state.reinforcement_armies} available"
        )

    player.reinforce(territory, num_armies)
    state.reinforcement_armies -= num_armies

    events = [armies_reinforced(player.id, territory, num_armies, state.reinforcement_armies)]
    if _can_leave_reinforce(state):
        _set_phase(state, TurnPhase.ATTACK, events)
    return events


def _handle_trade_cards(state: GameState, action: Action) -> list[GameEvent]:
    """
    Trade three cards from the hand for bonus reinforcement armies.
    Cards are removed highest index first. The first removed card bound to a territory
    the player owns places +2 armies there immediately.
    """
    indices = action.payload.get("card_indices") or []
    player = state.current_player

    if len(indices) != TRADE_SIZE:
        raise ValueError(f"Exactly {TRADE_SIZE} cards must be traded, got {len(indices)}")
    if len(set(indices)) != len(indices):
        raise ValueError(f"Card indices must be distinct: {indices}")
    for index in indices:
        if isinstance(index, bool) or not isinstance(index, int) or not 0 <= index < len(player.cards):
            raise ValueError(f"Invalid card index: {index}")

    bonus = calculate_trade_in_bonus(player.cards[i].kind for i in indices)

    removed = [player.cards.pop(i) for i in sorted(indices, reverse=True)]
    state.discard_pile.extend(removed)
    state.reinforcement_armies += bonus

    bonus_territory = None
    for card in removed:
        if card.territory is not None and card.territory in player.territories:
            player.reinforce(card.territory, TRADE_TERRITORY_BONUS)
            bonus_territory = card.territory
            break

    logger.info("Player %d traded cards for %d armies", player.id, bonus)
    return [cards_traded(player.id, [c.to_dict() for c in removed], bonus, bonus_territory)]


# ===== Attack Phase =====

def _handle_attack(
    state: GameState,
    action: Action,
    board: Board,
    rng: random.Random,
) -> list[GameEvent]:
    """
    Resolve one attack round, or keep rolling when repeat is set until the territory
    falls or the attacker is down to one army on the source territory.
    """
    from_territory = action.payload.get("from")
    to_territory = action.payload.get("to")
    num_dice = _require_count(action.payload.get("num_dice"), "Number of dice")
    repeat = bool(action.payload.get("repeat", False))

    _require_territory(board, from_territory)
    _require_territory(board, to_territory)

    attacker = state.current_player
    if from_territory not in attacker.territories:
        raise ValueError(f"Player {attacker.name} does not own {from_territory}")
    defender = state.owner_of(to_territory)
    if defender is None:
        raise ValueError(f"Territory {to_territory} has no owner")
    if defender.id == attacker.id:
        raise ValueError(f"Cannot attack own territory {to_territory}")
    if not board.is_adjacent(from_territory, to_territory):
        raise ValueError(f"{from_territory} is not adjacent to {to_territory}")
    if attacker.get_armies(from_territory) < 2:
        raise ValueError(f"Not enough armies to attack from {from_territory}")

    events: list[GameEvent] = []
    while True:
        attacker_dice = attacker_dice_count(num_dice, attacker.get_armies(from_territory))
        defender_dice = defender_dice_count(defender.get_armies(to_territory))
        result = roll_attack_round(rng, attacker_dice, defender_dice)

        attacker.remove_armies(from_territory, result.attacker_losses)
        defender.remove_armies(to_territory, result.defender_losses)
        logger.debug(
            "Attack %s -> %s: %s vs %s",
            from_territory, to_territory, result.attacker_rolls, result.defender_rolls,
        )
        events.append(attack_round_resolved(
            attacker.id,
            defender.id,
            from_territory,
            to_territory,
            result.to_dict(),
            attacker.get_armies(from_territory),
            defender.get_armies(to_territory),
        ))

        if defender.get_armies(to_territory) == 0:
            events.extend(_conquer(state, board, attacker, defender, from_territory, to_territory, attacker_dice))
            break
        if not repeat or attacker.get_armies(from_territory) <= 1:
            break

    return events


def _conquer(
    state: GameState,
    board: Board,
    attacker: PlayerState,
    defender: PlayerState,
    from_territory: str,
    to_territory: str,
    dice_used: int,
) -> list[GameEvent]:
    """Transfer a territory whose defenders are gone, handle defeat, and enter MoveArmies."""
    events: list[GameEvent] = []

    defender.remove_territory(to_territory)
    attacker.add_territory(to_territory)
    state.conquered_territory = True
    events.append(territory_conquered(to_territory, defender.id, attacker.id))
    logger.info("Player %d conquered %s from player %d", attacker.id, to_territory, defender.id)

    if not defender.territories:
        cards_transferred = len(defender.cards)
        attacker.cards.extend(defender.cards)
        defender.cards = []
        if defender.id in state.active_players:
            state.active_players.remove(defender.id)
        state.defeated_players.append(defender.id)
        events.append(player_defeated(defender.id, attacker.id, cards_transferred))
        logger.info("Player %d was defeated by player %d", defender.id, attacker.id)

    state.pending_move = PendingMove(from_territory, to_territory, dice_used)
    _set_phase(state, TurnPhase.MOVE_ARMIES, events)

    winner = check_win_condition(state, board)
    if winner is not None:
        _set_phase(state, TurnPhase.GAME_OVER, events)
        events.append(victory(winner, len(board.territories)))
        logger.info("Player %d has won the game", winner)

    return events


def _handle_move_armies(state: GameState, action: Action) -> list[GameEvent]:
    """
    Move armies into the just-conquered territory.
    At least the dice used in the winning round must move; one army stays behind.
    """
    pending = state.pending_move
    if pending is None:
        raise ValueError("No conquered territory to move armies into")

    from_territory = action.payload.get("from")
    to_territory = action.payload.get("to")
    num_armies = _require_count(action.payload.get("num_armies"), "Number of armies")

    if from_territory != pending.from_territory or to_territory != pending.to_territory:
        raise ValueError(
            f"Armies must move from {pending.from_territory} to {pending.to_territory}"
        )

    player = state.current_player
    max_armies = player.get_armies(from_territory) - 1
    if num_armies < pending.dice:
        raise ValueError(f"Must move at least {pending.dice} armies, got {num_armies}")
    if num_armies > max_armies:
        raise ValueError(f"Can move at most {max_armies} armies, got {num_armies}")

    player.fortify(from_territory, to_territory, num_armies)
    state.pending_move = None

    events = [armies_moved(player.id, from_territory, to_territory, num_armies, "conquest")]
    if len(player.cards) >= FORCED_TRADE_HAND_SIZE:
        _set_phase(state, TurnPhase.REINFORCE, events)
    else:
        _set_phase(state, TurnPhase.ATTACK, events)
    return events


# ===== Fortify Phase =====

def _handle_fortify(state: GameState, action: Action, board: Board) -> list[GameEvent]:
    """Move armies between two owned territories connected through owned land, then end the turn."""
    from_territory = action.payload.get("from")
    to_territory = action.payload.get("to")
    num_armies = _require_count(action.payload.get("num_armies"), "Number of armies")

    _require_territory(board, from_territory)
    _require_territory(board, to_territory)

    player = state.current_player
    if from_territory not in player.territories:
        raise ValueError(f"Player {player.name} does not own {from_territory}")
    if to_territory not in player.territories:
        raise ValueError(f"Player {player.name} does not own {to_territory}")
    if from_territory == to_territory:
        raise ValueError("Cannot fortify a territory from itself")
    if num_armies >= player.get_armies(from_territory):
        raise ValueError(
            f"Not enough armies in {from_territory}: {player.get_armies(from_territory)} present, "
            f"at least one must stay"
        )
    if not are_connected(board, player.territories, from_territory, to_territory):
        raise ValueError(f"{from_territory} and {to_territory} are not connected through owned territories")

    player.fortify(from_territory, to_territory, num_armies)
    events = [armies_moved(player.id, from_territory, to_territory, num_armies, "fortify")]
    events.extend(_end_turn(state, board))
    return events


# ===== Phase Progression =====

def _handle_end_phase(state: GameState, board: Board) -> list[GameEvent]:
    events: list[GameEvent] = []
    phase = state.turn_phase

    if phase == TurnPhase.REINFORCE:
        if state.reinforcement_armies > 0:
            raise ValueError(
                f"Place all reinforcement armies first ({state.reinforcement_armies} remaining)"
            )
        if len(state.current_player.cards) >= FORCED_TRADE_HAND_SIZE:
            raise ValueError(
                f"Must trade cards while holding {FORCED_TRADE_HAND_SIZE} or more"
            )
        _set_phase(state, TurnPhase.ATTACK, events)
    elif phase == TurnPhase.ATTACK:
        _set_phase(state, TurnPhase.FORTIFY, events)
    elif phase == TurnPhase.FORTIFY:
        events.extend(_end_turn(state, board))
    else:
        raise ValueError(f"Cannot end phase '{phase.value}'")

    return events


def _end_turn(state: GameState, board: Board) -> list[GameEvent]:
    """
    Finish the current player's turn: draw a card if a territory was conquered,
    pass to the next active player (a new round when wrapping to the first) and start its turn.
    """
    events: list[GameEvent] = []
    player = state.current_player

    if state.conquered_territory and state.deck:
        player.cards.append(state.deck.pop())
        events.append(card_drawn(player.id, len(player.cards)))

    events.append(turn_ended(state.round, player.id))

    position = state.active_players.index(player.id)
    next_position = (position + 1) % len(state.active_players)
    if next_position == 0:
        state.round += 1
    state.current_turn = state.active_players[next_position]

    old_phase = state.turn_phase
    start_turn(state, board)
    events.append(phase_changed(old_phase.value, state.turn_phase.value, state.current_turn))
    events.append(turn_started(state.round, state.current_turn, state.reinforcement_armies))
    return events
