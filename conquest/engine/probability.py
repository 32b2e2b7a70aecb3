"""
Conquest probability estimation.

P(a, d) is the probability that an attacker with a armies on the source territory
eventually takes a territory defended by d armies, attacking with as many dice as allowed
until one side is exhausted. Computed by memoized recursion over (a, d):

    P(a, d) = 0                          if a <= 1
    P(a, d) = 1                          if d == 0
    P(a, d) = w2 * P(a, d-2) + s * P(a-1, d-1) + l2 * P(a-2, d)     if a >= 3 and d >= 2
    P(a, d) = w1 * P(a, d-1) + (1 - w1) * P(a-1, d)                  otherwise

Dice outcomes are enumerated as non-decreasing roll tuples reduced to their best one
or two values; ties always go to the defender.

The memo is an explicit mapping passed in by the caller. ProbabilityTable is the shared,
lock-guarded memo used both by the live engine and by the offline precompute tool, and
persists to a compact binary file.
"""

import logging
import struct
import threading
from collections.abc import MutableMapping
from pathlib import Path
from typing import Iterator

from conquest.engine import DICE_SIDES, MAX_ATTACK_DICE, MAX_DEFEND_DICE

logger = logging.getLogger(__name__)

CACHE_MAGIC = b"CQPROB01"
_HEADER = struct.Struct("<8sI")
_ENTRY = struct.Struct("<HHd")

Memo = MutableMapping[tuple[int, int], float]


class ProbabilityCacheError(RuntimeError):
    """The persisted probability table is missing or unreadable."""


def dice_distribution(num_dice: int) -> list[tuple[int, int]]:
    """
    Enumerate roll outcomes for 1-3 dice as (second best, best) pairs.

    1 die:  (1, x) for each face
    2 dice: (low, high) for every non-decreasing pair
    3 dice: the top two of every non-decreasing triple
    """
    faces = range(1, DICE_SIDES + 1)
    if num_dice == 1:
        return [(1, i) for i in faces]
    if num_dice == 2:
        return [(i, j) for i in faces for j in range(i, DICE_SIDES + 1)]
    if num_dice == 3:
        return [
            (j, k)
            for i in faces
            for j in range(i, DICE_SIDES + 1)
            for k in range(j, DICE_SIDES + 1)
        ]
    raise ValueError(f"Invalid number of dice: {num_dice}")


def attacker_dice_for(attacker_armies: int) -> int:
    return min(attacker_armies - 1, MAX_ATTACK_DICE)


def defender_dice_for(defender_armies: int) -> int:
    return min(defender_armies, MAX_DEFEND_DICE)


def p_win2(attacker_armies: int) -> float:
    """Probability the defender loses both armies in a two-on-two comparison round."""
    attacker_dist = dice_distribution(attacker_dice_for(attacker_armies))
    defender_dist = dice_distribution(MAX_DEFEND_DICE)
    wins = sum(
        1
        for a1, a2 in attacker_dist
        for d1, d2 in defender_dist
        if a1 > d1 and a2 > d2
    )
    return wins / (len(attacker_dist) * len(defender_dist))


def p_lose2(attacker_armies: int) -> float:
    """Probability the attacker loses both armies in a two-on-two comparison round."""
    attacker_dist = dice_distribution(attacker_dice_for(attacker_armies))
    defender_dist = dice_distribution(MAX_DEFEND_DICE)
    losses = sum(
        1
        for a1, a2 in attacker_dist
        for d1, d2 in defender_dist
        if a1 <= d1 and a2 <= d2
    )
    return losses / (len(attacker_dist) * len(defender_dist))


def p_win1(attacker_armies: int, defender_armies: int) -> float:
    """Probability the attacker's best die beats the defender's best die."""
    attacker_dist = dice_distribution(attacker_dice_for(attacker_armies))
    defender_dist = dice_distribution(defender_dice_for(defender_armies))
    wins = sum(
        1
        for _, a2 in attacker_dist
        for _, d2 in defender_dist
        if a2 > d2
    )
    return wins / (len(attacker_dist) * len(defender_dist))


def attack_probability(attacker_armies: int, defender_armies: int, memo: Memo) -> float:
    """
    Exact probability (0..1) that the attacker eventually conquers the territory.
    Results for non-base cells are stored in memo; cached cells are returned without recursion.
    """
    if attacker_armies <= 1:
        return 0.0
    if defender_armies <= 0:
        return 1.0

    key = (attacker_armies, defender_armies)
    cached = memo.get(key)
    if cached is not None:
        return cached

    a, d = attacker_armies, defender_armies
    if a >= 3 and d >= 2:
        win2 = p_win2(a)
        lose2 = p_lose2(a)
        split = 1.0 - win2 - lose2
        probability = (
            win2 * attack_probability(a, d - 2, memo)
            + split * attack_probability(a - 1, d - 1, memo)
            + lose2 * attack_probability(a - 2, d, memo)
        )
    else:
        win1 = p_win1(a, d)
        probability = (
            win1 * attack_probability(a, d - 1, memo)
            + (1.0 - win1) * attack_probability(a - 1, d, memo)
        )

    memo[key] = probability
    return probability


def to_percentage(probability: float) -> float:
    """Scale a 0..1 probability to a percentage rounded to two decimals."""
    return round(probability * 10000) / 100


def conquest_probability(attacker_armies: int, defender_armies: int, memo: Memo) -> float:
    """Attacker's eventual win chance as a percentage rounded to 0.01 (e.g. P(2, 1) == 41.67)."""
    return to_percentage(attack_probability(attacker_armies, defender_armies, memo))


class ProbabilityTable(MutableMapping):
    """
    Thread-safe memo of exact conquest probabilities keyed by (attacker, defender).

    Every read and write takes the table's lock. Recursion runs outside the lock, so two
    threads may compute the same cell; both store the same value.
    """

    def __init__(self, entries: dict[tuple[int, int], float] | None = None):
        self._lock = threading.Lock()
        self._cache: dict[tuple[int, int], float] = dict(entries or {})

    def __getitem__(self, key: tuple[int, int]) -> float:
        with self._lock:
            return self._cache[key]

    def __setitem__(self, key: tuple[int, int], value: float) -> None:
        with self._lock:
            self._cache[key] = value

    def __delitem__(self, key: tuple[int, int]) -> None:
        with self._lock:
            del self._cache[key]

    def __iter__(self) -> Iterator[tuple[int, int]]:
        with self._lock:
            keys = list(self._cache)
        return iter(keys)

    def __len__(self) -> int:
        with self._lock:
            return len(self._cache)

    def get(self, key, default=None):
        with self._lock:
            return self._cache.get(key, default)

    def probability(self, attacker_armies: int, defender_armies: int) -> float:
        """Exact 0..1 probability, computing and caching missing cells."""
        return attack_probability(attacker_armies, defender_armies, self)

    def percentage(self, attacker_armies: int, defender_armies: int) -> float:
        """Percentage rounded to 0.01, computing and caching missing cells."""
        return conquest_probability(attacker_armies, defender_armies, self)

    def warm(self, max_attack: int, max_defend: int, min_attack: int = 2) -> int:
        """
        Fill every cell with min_attack <= a <= max_attack and 1 <= d <= max_defend
        in ascending order, keeping recursion shallow. Returns cells visited.
        """
        for attacker_armies in range(min_attack, max_attack + 1):
            for defender_armies in range(1, max_defend + 1):
                attack_probability(attacker_armies, defender_armies, self)
        return max(0, max_attack - min_attack + 1) * max(0, max_defend)

    def snapshot(self) -> dict[tuple[int, int], float]:
        with self._lock:
            return dict(self._cache)

    # ===== Persistence =====

    def to_bytes(self) -> bytes:
        entries = sorted(self.snapshot().items())
        parts = [_HEADER.pack(CACHE_MAGIC, len(entries))]
        for (attacker_armies, defender_armies), probability in entries:
            parts.append(_ENTRY.pack(attacker_armies, defender_armies, probability))
        return b"".join(parts)

    @classmethod
    def from_bytes(cls, data: bytes) -> "ProbabilityTable":
        """Decode a persisted table. Raises ProbabilityCacheError on any corruption."""
        if len(data) < _HEADER.size:
            raise ProbabilityCacheError("Probability cache is truncated (no header)")
        magic, count = _HEADER.unpack_from(data, 0)
        if magic != CACHE_MAGIC:
            raise ProbabilityCacheError(f"Probability cache has bad magic {magic!r}")
        expected = _HEADER.size + count * _ENTRY.size
        if len(data) != expected:
            raise ProbabilityCacheError(
                f"Probability cache size mismatch: expected {expected} bytes, got {len(data)}"
            )

        entries = {}
        for attacker_armies, defender_armies, probability in _ENTRY.iter_unpack(data[_HEADER.size:]):
            if not 0.0 <= probability <= 1.0:
                raise ProbabilityCacheError(
                    f"Probability cache entry ({attacker_armies}, {defender_armies}) "
                    f"out of range: {probability}"
                )
            entries[(attacker_armies, defender_armies)] = probability
        return cls(entries)

    def save(self, path: Path | str) -> None:
        data = self.to_bytes()
        with open(path, "wb") as f:
            f.write(data)
        logger.info("Wrote %d probability entries to %s", len(self), path)

    @classmethod
    def load(cls, path: Path | str) -> "ProbabilityTable":
        """Load a persisted table. A missing or corrupt file raises ProbabilityCacheError."""
        try:
            with open(path, "rb") as f:
                data = f.read()
        except OSError as e:
            raise ProbabilityCacheError(f"Failed to open probabilities file {path}: {e}") from e
        table = cls.from_bytes(data)
        logger.info("Loaded %d probability entries from %s", len(table), path)
        return table
