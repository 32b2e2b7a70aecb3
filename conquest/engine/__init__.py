"""
Conquest Rules Engine
Owns the authoritative game state, validates and applies player actions,
resolves dice combat and enumerates legal moves per turn phase.
"""

DICE_SIDES = 6
MAX_ATTACK_DICE = 3
MAX_DEFEND_DICE = 2

# Holding this many cards blocks leaving the reinforce phase until a trade is made.
FORCED_TRADE_HAND_SIZE = 5

MIN_REINFORCEMENTS = 3
TERRITORIES_PER_REINFORCEMENT = 3

# Armies each player starts with in a randomized game, by player count (fallback: 20).
INITIAL_ARMIES_BY_PLAYER_COUNT = {3: 35, 4: 30, 5: 25}
DEFAULT_INITIAL_ARMIES = 20

# Extra armies placed on a traded card's territory when the trader owns it.
TRADE_TERRITORY_BONUS = 2
