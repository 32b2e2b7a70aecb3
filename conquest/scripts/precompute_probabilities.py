#!/usr/bin/env python3
"""
Precompute the conquest-probability table the server loads at startup.

Usage (from repo root):
  python -m conquest.scripts.precompute_probabilities [max_attack] [max_defend] [-o PATH]
Example: python -m conquest.scripts.precompute_probabilities 100 100 -o conquer_probabilities.bin

Every cell (a, d) with 2 <= a <= max_attack and 1 <= d <= max_defend is computed by a
thread pool against one shared ProbabilityTable, then the table is written in the
binary format ProbabilityTable.load reads.
"""

import argparse
import logging
import os
import sys
import time
from concurrent.futures import ThreadPoolExecutor

from conquest import config
from conquest.engine.probability import ProbabilityTable

logger = logging.getLogger(__name__)


def compute_row(table: ProbabilityTable, attacker_armies: int, max_defend: int) -> int:
    """Fill every defender count for one attacker count. Returns cells computed."""
    return table.warm(attacker_armies, max_defend, min_attack=attacker_armies)


def precompute(max_attack: int, max_defend: int, workers: int | None = None) -> ProbabilityTable:
    """Compute the full table; rows are independent tasks sharing the lock-guarded memo."""
    table = ProbabilityTable()
    with ThreadPoolExecutor(max_workers=workers) as executor:
        futures = [
            executor.submit(compute_row, table, attacker_armies, max_defend)
            for attacker_armies in range(2, max_attack + 1)
        ]
        cells = sum(f.result() for f in futures)
    logger.info("Computed %d cells (%d memo entries)", cells, len(table))
    return table


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        description="Precompute attacker conquest probabilities into a binary cache file.",
    )
    parser.add_argument(
        "max_attack",
        type=int,
        nargs="?",
        default=100,
        help="Largest attacker army count (default: 100)",
    )
    parser.add_argument(
        "max_defend",
        type=int,
        nargs="?",
        default=100,
        help="Largest defender army count (default: 100)",
    )
    parser.add_argument(
        "-o",
        "--output",
        default=str(config.PROBABILITY_CACHE_PATH),
        help=f"Output file (default: {config.PROBABILITY_CACHE_PATH})",
    )
    parser.add_argument(
        "-w",
        "--workers",
        type=int,
        default=os.cpu_count(),
        help="Worker threads (default: CPU count)",
    )
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=config.LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.max_attack < 2 or args.max_defend < 1:
        parser.error("max_attack must be at least 2 and max_defend at least 1")

    start = time.time()
    table = precompute(args.max_attack, args.max_defend, args.workers)
    table.save(args.output)
    logger.info("Done in %.1fs", time.time() - start)
    return 0


if __name__ == "__main__":
    sys.exit(main())
