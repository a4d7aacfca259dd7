"""
Frontier scouting — where to go next when nothing is worth fetching.

A frontier tile is one the agent can stand on (passable with its current
tools and reachable from where it is) whose look-around ring still holds
Unknown cells: walking there is guaranteed to reveal something new.

Candidates are found with whole-grid numpy masks; among them the one met
first by a square spiral walked outwards from the agent wins, so the result
is deterministic and biased towards nearby cells.
"""

from __future__ import annotations

import logging
from functools import lru_cache
from typing import Dict, Iterator, Tuple

import numpy as np

from island_seeker.search import flood_fill
from island_seeker.tiles import Coordinate, look_around
from island_seeker.world_model import WorldModel

logger = logging.getLogger(__name__)


def spiral_offsets(steps: int) -> Iterator[Tuple[int, int]]:
    """
    Offsets of a square spiral starting at (0, 0).

    The first (2k+1)**2 offsets cover the square of radius k exactly.
    """
    x = y = 0
    dx, dy = 0, -1
    for _ in range(steps):
        yield x, y
        # Turn at the corners of the current ring
        if x == y or (x < 0 and x == -y) or (x > 0 and x == 1 - y):
            dx, dy = -dy, dx
        x += dx
        y += dy


@lru_cache(maxsize=4)
def _spiral_ranks(steps: int) -> Dict[Tuple[int, int], int]:
    return {offset: rank for rank, offset in enumerate(spiral_offsets(steps))}


def _near_unknown(unknown: np.ndarray, radius: int) -> np.ndarray:
    """Cells with at least one Unknown cell in their look-around ring."""
    near = np.zeros_like(unknown)
    n, m = unknown.shape
    for dx, dy in look_around(radius):
        source = unknown[max(dx, 0):n + min(dx, 0), max(dy, 0):m + min(dy, 0)]
        near[max(-dx, 0):n + min(-dx, 0), max(-dy, 0):m + min(-dy, 0)] |= source
    return near


def next_frontier(model: WorldModel, start: Coordinate,
                  has_key: bool, has_axe: bool) -> Coordinate:
    """
    The first frontier tile met by a spiral walked outwards from `start`.

    Returns `start` itself when no frontier tile is reachable, meaning no
    further exploration is possible from here with these tools.
    """
    mask = model.passable_mask(has_key, has_axe)
    mask &= _near_unknown(model.unknown_mask(), model.config.look_radius)
    candidates = np.argwhere(mask)
    if candidates.size == 0:
        return start

    reachable = flood_fill(model, start, has_key, has_axe)
    ranks = _spiral_ranks(model.config.spiral_limit)
    best_rank, best = None, start
    for i, j in candidates:
        coord = model.from_index(i, j)
        if coord == start or coord not in reachable:
            continue
        rank = ranks.get((coord.x - start.x, coord.y - start.y))
        if rank is None:
            continue  # beyond the spiral
        if best_rank is None or rank < best_rank:
            best_rank, best = rank, coord

    if best_rank is not None:
        logger.debug("Frontier from %s: %s (spiral step %d)", start, best, best_rank)
    return best
