"""
Action definitions for the game.
Actions are immutable instructions; the reducer decides whether they are legal.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class Action:
    """Base action class. All actions have a type, acting player, and payload."""
    type: str  # e.g., "reinforce", "attack", "fortify", "move_armies", "trade_cards", "end_phase"
    player_id: int
    payload: dict  # Action-specific data


REINFORCE = "reinforce"
ATTACK = "attack"
FORTIFY = "fortify"
MOVE_ARMIES = "move_armies"
TRADE_CARDS = "trade_cards"
END_PHASE = "end_phase"


def reinforce(player_id: int, territory: str, num_armies: int) -> Action:
    """Place num_armies of the turn's reinforcement pool on an owned territory."""
    return Action(
        type=REINFORCE,
        player_id=player_id,
        payload={"territory": territory, "num_armies": num_armies},
    )


def attack(
    player_id: int,
    from_territory: str,
    to_territory: str,
    num_dice: int,
    repeat: bool = False,
) -> Action:
    """
    Attack an adjacent enemy territory.
    num_dice is an upper bound; the attacker never rolls more than armies - 1 or 3.
    repeat=True keeps rolling until the territory falls or the attacker is down to one army.

    Example: attack(0, "Alaska", "Kamchatka", 3, repeat=True)
    """
    return Action(
        type=ATTACK,
        player_id=player_id,
        payload={
            "from": from_territory,
            "to": to_territory,
            "num_dice": num_dice,
            "repeat": repeat,
        },
    )


def fortify(player_id: int, from_territory: str, to_territory: str, num_armies: int) -> Action:
    """Move armies between two owned territories connected through owned land. Ends the turn."""
    return Action(
        type=FORTIFY,
        player_id=player_id,
        payload={"from": from_territory, "to": to_territory, "num_armies": num_armies},
    )


def move_armies(player_id: int, from_territory: str, to_territory: str, num_armies: int) -> Action:
    """Move armies into a just-conquered territory (only valid right after a conquest)."""
    return Action(
        type=MOVE_ARMIES,
        player_id=player_id,
        payload={"from": from_territory, "to": to_territory, "num_armies": num_armies},
    )


def trade_cards(player_id: int, card_indices: list[int]) -> Action:
    """Trade exactly three cards (by hand index) for bonus reinforcement armies."""
    return Action(
        type=TRADE_CARDS,
        player_id=player_id,
        payload={"card_indices": list(card_indices)},
    )


def end_phase(player_id: int) -> Action:
    """End the current phase and move to the next (ends the turn from fortify)."""
    return Action(
        type=END_PHASE,
        player_id=player_id,
        payload={},
    )
