"""
Card trade-in rules.
Pure functions over card kinds: set validity, bonus schedule and deck construction.

Bonus schedule:
    3 x Infantry                        -> 4
    3 x Cavalry                         -> 6
    3 x Artillery                       -> 8
    Infantry + Cavalry + Artillery      -> 10
    any set completed with a Joker      -> 10
"""

import random
from collections import Counter
from itertools import combinations
from typing import Iterable

from conquest.engine.definitions import Board
from conquest.engine.state import Card, CardKind

TRADE_SIZE = 3

SET_BONUSES = {
    CardKind.INFANTRY: 4,
    CardKind.CAVALRY: 6,
    CardKind.ARTILLERY: 8,
}
MIXED_SET_BONUS = 10
JOKER_SET_BONUS = 10

SOLDIER_KINDS = (CardKind.INFANTRY, CardKind.CAVALRY, CardKind.ARTILLERY)


def _count_kinds(kinds: Iterable[CardKind]) -> Counter:
    return Counter(CardKind(k) for k in kinds)


def is_valid_trade(kinds: Iterable[CardKind]) -> bool:
    """True if exactly three cards form a tradeable set."""
    return trade_bonus(kinds) is not None


def trade_bonus(kinds: Iterable[CardKind]) -> int | None:
    """Bonus armies for a set of three card kinds, or None if the set is not tradeable."""
    counts = _count_kinds(kinds)
    if sum(counts.values()) != TRADE_SIZE:
        return None

    for kind, bonus in SET_BONUSES.items():
        if counts[kind] == TRADE_SIZE:
            return bonus

    if all(counts[kind] == 1 for kind in SOLDIER_KINDS):
        return MIXED_SET_BONUS

    # Three cards with at least one Joker always complete one of the six patterns:
    # a triple of the remaining kind, or a one-of-each with the remaining two kinds.
    if counts[CardKind.JOKER] > 0:
        return JOKER_SET_BONUS

    return None


def calculate_trade_in_bonus(kinds: Iterable[CardKind]) -> int:
    """Bonus armies for a set of three card kinds. Raises ValueError for an invalid combination."""
    kinds = list(kinds)
    bonus = trade_bonus(kinds)
    if bonus is None:
        raise ValueError(f"Invalid combination of cards: {[CardKind(k).value for k in kinds]}")
    return bonus


def get_valid_trades(cards: list[Card]) -> list[list[int]]:
    """Every distinct sorted 3-index combination of a hand that forms a tradeable set."""
    if len(cards) < TRADE_SIZE:
        return []
    trades = []
    seen: set[tuple[int, ...]] = set()
    for combo in combinations(range(len(cards)), TRADE_SIZE):
        key = tuple(sorted(combo))
        if key in seen:
            continue
        if is_valid_trade(cards[i].kind for i in key):
            seen.add(key)
            trades.append(list(key))
    return trades


def create_deck(board: Board, rng: random.Random) -> list[Card]:
    """
    One card per territory with a random soldier kind, plus two Jokers, shuffled.
    Territories are visited in sorted order so a seeded rng gives a reproducible deck.
    """
    deck = [
        Card(kind=rng.choice(SOLDIER_KINDS), territory=name)
        for name in sorted(board.territories)
    ]
    deck.append(Card(kind=CardKind.JOKER))
    deck.append(Card(kind=CardKind.JOKER))
    rng.shuffle(deck)
    return deck
