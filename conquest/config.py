"""
Single place for default server configuration.
Every value can be overridden with an environment variable.
"""

import os
from pathlib import Path

DATA_DIR = Path(__file__).parent / "data"

# Board used for randomized games (territories + continents, no players).
BOARD_PATH = Path(os.environ.get("CONQUEST_BOARD_PATH", DATA_DIR / "classic_board.json"))

# Binary conquest-probability table written by conquest.scripts.precompute_probabilities.
# Loaded once at startup; the server refuses to start without it.
PROBABILITY_CACHE_PATH = Path(os.environ.get("CONQUEST_PROBABILITY_CACHE", "conquer_probabilities.bin"))

DEFAULT_NUM_PLAYERS = int(os.environ.get("CONQUEST_NUM_PLAYERS", "6"))

CORS_ORIGINS = [
    origin.strip()
    for origin in os.environ.get("CONQUEST_CORS_ORIGINS", "*").split(",")
    if origin.strip()
]

LOG_LEVEL = os.environ.get("CONQUEST_LOG_LEVEL", "INFO").upper()
