#!/usr/bin/env python3
"""
Scramble statistics for the level curve.

Deals many boards per level and reports how often the scramble leaves the
board already solved (the random shifts cancelled out or the strips were
uniform) and how far the net scramble is from the nominal step count.

Usage examples:
  python tools/scramble_stats.py --levels 1-10 --samples 2000
  python tools/scramble_stats.py --levels 4 --samples 500 --seed 7 --json
"""
from __future__ import annotations

import argparse
import json
import os
import random
import sys
from collections import Counter
from typing import Dict, List, Tuple

sys.path.append(os.path.dirname(os.path.dirname(__file__)))

from game import Axis, Shift, deal_level, level_config  # type: ignore


def parse_levels(text: str) -> List[int]:
    if "-" in text:
        lo, hi = text.split("-", 1)
        return list(range(int(lo), int(hi) + 1))
    return [int(text)]


def net_displacement(shifts: List[Shift], rows: int, cols: int) -> int:
    """Sums each strip's net travel in unit shifts, going the short way round."""
    totals: Counter = Counter()
    for s in shifts:
        totals[(s.axis, s.index)] += s.amount
    n = 0
    for (axis, _), amount in totals.items():
        length = cols if axis is Axis.ROW else rows
        a = amount % length
        n += min(a, length - a)
    return n


def level_stats(level: int, samples: int, rng: random.Random) -> Dict[str, float]:
    config = level_config(level)
    solved = 0
    cancelled: List[int] = []
    for _ in range(samples):
        target, start, shifts = deal_level(config, rng=rng)
        if start.equals(target):
            solved += 1
        cancelled.append(config.scramble_steps - net_displacement(shifts, config.rows, config.cols))
    return {
        "level": level,
        "size": config.rows,
        "steps": config.scramble_steps,
        "density": round(config.density, 3),
        "solvedAtStart": solved / samples,
        "avgCancelled": sum(cancelled) / samples,
    }


def main() -> None:
    ap = argparse.ArgumentParser(description="Measure no-op and cancelled scrambles per level")
    ap.add_argument("--levels", default="1-10", help="Level or range, e.g. 3 or 1-10")
    ap.add_argument("--samples", type=int, default=1000)
    ap.add_argument("--seed", type=int, default=None)
    ap.add_argument("--json", action="store_true", help="Print JSON instead of a table")
    args = ap.parse_args()

    rng = random.Random(args.seed)
    rows = [level_stats(lv, args.samples, rng) for lv in parse_levels(args.levels)]
    if args.json:
        print(json.dumps(rows, indent=2))
        return
    print(f"{'level':>5} {'size':>4} {'steps':>5} {'density':>7} {'solved%':>8} {'cancelled':>9}")
    for r in rows:
        print(f"{r['level']:>5} {r['size']:>4} {r['steps']:>5} {r['density']:>7} "
              f"{r['solvedAtStart'] * 100:>7.2f}% {r['avgCancelled']:>9.2f}")


if __name__ == "__main__":
    main()
