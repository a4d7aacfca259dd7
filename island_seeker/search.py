"""
Capability-gated search over the belief map.

Two queries share one traversability rule (is_passable):

- **flood_fill / can_reach**: breadth-first traversal answering "can the
  agent get from A to B at all". Cheap, so it gates the expensive planning.
- **find_path**: A* with a Manhattan-distance heuristic returning the
  shortest route itself.

Both treat the start cell like any other: an impassable start reaches
nothing. This keeps reachability symmetric and makes
``find_path(...) is not None`` agree with ``can_reach(...)`` for every input.
Neither query raises on failure; "no route" is an ordinary answer.
"""

from __future__ import annotations

import heapq
import itertools
from collections import deque
from typing import Dict, List, Optional

from island_seeker.tiles import Coordinate
from island_seeker.world_model import WorldModel


# ---------------------------------------------------------------------------
# Reachability
# ---------------------------------------------------------------------------

def flood_fill(model: WorldModel, start: Coordinate,
               has_key: bool, has_axe: bool) -> Dict[Coordinate, int]:
    """Step distance from `start` to every cell reachable from it."""
    if not model.passable(start, has_key, has_axe):
        return {}
    distances = {start: 0}
    queue = deque([start])
    while queue:
        current = queue.popleft()
        for neighbour in current.neighbours():
            if neighbour in distances:
                continue
            if not model.passable(neighbour, has_key, has_axe):
                continue
            distances[neighbour] = distances[current] + 1
            queue.append(neighbour)
    return distances


def can_reach(model: WorldModel, start: Coordinate, goal: Coordinate,
              has_key: bool, has_axe: bool) -> bool:
    """Breadth-first reachability test, stopping as soon as `goal` is seen."""
    if not model.passable(start, has_key, has_axe):
        return False
    if start == goal:
        return True
    seen = {start}
    queue = deque([start])
    while queue:
        current = queue.popleft()
        for neighbour in current.neighbours():
            if neighbour in seen:
                continue
            if not model.passable(neighbour, has_key, has_axe):
                continue
            if neighbour == goal:
                return True
            seen.add(neighbour)
            queue.append(neighbour)
    return False


# ---------------------------------------------------------------------------
# Shortest paths
# ---------------------------------------------------------------------------

def find_path(model: WorldModel, start: Coordinate, goal: Coordinate,
              has_key: bool, has_axe: bool) -> Optional[List[Coordinate]]:
    """
    A* search for the shortest 4-connected route from `start` to `goal`.

    The Manhattan heuristic is consistent for unit steps, so the first time
    the goal leaves the open set its route is optimal. Entries with equal
    priority expand in insertion order.

    Returns the route including both end points, or None when no route
    exists with the given capabilities.
    """
    if not model.passable(start, has_key, has_axe):
        return None

    order = itertools.count()
    open_set = [(start.manhattan(goal), next(order), start)]
    g_score: Dict[Coordinate, int] = {start: 0}
    came_from: Dict[Coordinate, Coordinate] = {}
    closed = set()

    while open_set:
        _, _, current = heapq.heappop(open_set)
        if current == goal:
            return _reconstruct(came_from, current)
        if current in closed:
            continue  # stale entry superseded by a cheaper one
        closed.add(current)

        for neighbour in current.neighbours():
            if neighbour in closed:
                continue
            if not model.passable(neighbour, has_key, has_axe):
                continue
            tentative = g_score[current] + 1
            if tentative >= g_score.get(neighbour, tentative + 1):
                continue
            came_from[neighbour] = current
            g_score[neighbour] = tentative
            heapq.heappush(
                open_set,
                (tentative + neighbour.manhattan(goal), next(order), neighbour),
            )

    return None


def _reconstruct(came_from: Dict[Coordinate, Coordinate],
                 goal: Coordinate) -> List[Coordinate]:
    path = [goal]
    while path[-1] in came_from:
        path.append(came_from[path[-1]])
    path.reverse()
    return path
