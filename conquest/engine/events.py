"""
Game events for UI hooks and logging.
Events describe what happened during action processing.
"""

from dataclasses import dataclass
from typing import Any


@dataclass
class GameEvent:
    """Base event class. All events have a type and payload."""
    type: str
    payload: dict[str, Any]

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.type, "payload": self.payload}


# ===== Event Type Constants =====

# Phase/Turn events
PHASE_CHANGED = "phase_changed"
TURN_STARTED = "turn_started"
TURN_ENDED = "turn_ended"

# Army placement events
ARMIES_REINFORCED = "armies_reinforced"
CARDS_TRADED = "cards_traded"
CARD_DRAWN = "card_drawn"
ARMIES_MOVED = "armies_moved"

# Combat events
ATTACK_ROUND_RESOLVED = "attack_round_resolved"
TERRITORY_CONQUERED = "territory_conquered"
PLAYER_DEFEATED = "player_defeated"

# Victory events
VICTORY = "victory"


# ===== Event Factory Functions =====

def phase_changed(old_phase: str, new_phase: str, player_id: int) -> GameEvent:
    return GameEvent(PHASE_CHANGED, {
        "old_phase": old_phase,
        "new_phase": new_phase,
        "player_id": player_id,
    })


def turn_started(round_number: int, player_id: int, reinforcements: int) -> GameEvent:
    return GameEvent(TURN_STARTED, {
        "round": round_number,
        "player_id": player_id,
        "reinforcements": reinforcements,
    })


def turn_ended(round_number: int, player_id: int) -> GameEvent:
    return GameEvent(TURN_ENDED, {
        "round": round_number,
        "player_id": player_id,
    })


def armies_reinforced(player_id: int, territory: str, armies: int, remaining: int) -> GameEvent:
    return GameEvent(ARMIES_REINFORCED, {
        "player_id": player_id,
        "territory": territory,
        "armies": armies,
        "remaining": remaining,  # reinforcement armies left to place
    })


def cards_traded(
    player_id: int,
    cards: list[dict[str, Any]],
    bonus_armies: int,
    territory_bonus: str | None,
) -> GameEvent:
    return GameEvent(CARDS_TRADED, {
        "player_id": player_id,
        "cards": cards,
        "bonus_armies": bonus_armies,
        "territory_bonus": territory_bonus,  # territory that received +2, if any
    })


def card_drawn(player_id: int, hand_size: int) -> GameEvent:
    return GameEvent(CARD_DRAWN, {
        "player_id": player_id,
        "hand_size": hand_size,
    })


def armies_moved(
    player_id: int,
    from_territory: str,
    to_territory: str,
    armies: int,
    reason: str,
) -> GameEvent:
    return GameEvent(ARMIES_MOVED, {
        "player_id": player_id,
        "from": from_territory,
        "to": to_territory,
        "armies": armies,
        "reason": reason,  # "fortify" or "conquest"
    })


def attack_round_resolved(
    attacker_id: int,
    defender_id: int,
    from_territory: str,
    to_territory: str,
    round_result: dict[str, Any],
    attacker_remaining: int,
    defender_remaining: int,
) -> GameEvent:
    return GameEvent(ATTACK_ROUND_RESOLVED, {
        "attacker_id": attacker_id,
        "defender_id": defender_id,
        "from": from_territory,
        "to": to_territory,
        **round_result,
        "attacker_remaining": attacker_remaining,
        "defender_remaining": defender_remaining,
    })


def territory_conquered(territory: str, old_owner: int, new_owner: int) -> GameEvent:
    return GameEvent(TERRITORY_CONQUERED, {
        "territory": territory,
        "old_owner": old_owner,
        "new_owner": new_owner,
    })


def player_defeated(player_id: int, defeated_by: int, cards_transferred: int) -> GameEvent:
    return GameEvent(PLAYER_DEFEATED, {
        "player_id": player_id,
        "defeated_by": defeated_by,
        "cards_transferred": cards_transferred,
    })


def victory(player_id: int, territories: int) -> GameEvent:
    return GameEvent(VICTORY, {
        "player_id": player_id,
        "territories": territories,
    })
