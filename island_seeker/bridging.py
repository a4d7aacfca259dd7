"""
Bridging search — spending stepping stones to cross water.

Given the stones in hand, find the smallest contiguous group of known
water cells whose bridging makes a target reachable:

1. For sizes 1, 2, ... up to the number of stones held, enumerate the
   contiguous groups of that size.
2. Try each group: mark it passable inside WorldModel.speculate(), test
   reachability, and let the context manager restore the water.
3. Stop at the first size with any success. Among its successes prefer the
   group closest to the treasure, then closest to the tools being sought.
4. Commit only the chosen group.

Only groups touching the region the agent can already reach are
enumerated: the first bridged cell on any useful route must border that
region, so no successful group is missed.

Scaling: the number of contiguous groups grows exponentially with the
group size (bounded by C(|water|, size)), and each trial is a flood fill.
This is affordable only because stones are scarce and the known shoreline
is short; nothing here bounds the cost beyond that.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import FrozenSet, Iterable, List, Optional, Set, Tuple

from island_seeker.search import can_reach, flood_fill
from island_seeker.tiles import Coordinate, Tile
from island_seeker.world_model import WorldModel

logger = logging.getLogger(__name__)

__all__ = ["BridgePlan", "BridgingSearch", "contiguous_groups"]


@dataclass
class BridgePlan:
    """A chosen placement of stones and how it was found."""
    target: Coordinate
    cells: Tuple[Coordinate, ...]
    successes: int = 0      # Successful groups at the chosen size
    trials: int = 0         # Groups tried across all sizes

    @property
    def size(self) -> int:
        return len(self.cells)

    def __repr__(self) -> str:
        return (f"BridgePlan(target={self.target}, cells={list(self.cells)}, "
                f"successes={self.successes}, trials={self.trials})")


def contiguous_groups(pool: Set[Coordinate], seeds: Iterable[Coordinate],
                      size: int) -> List[Tuple[Coordinate, ...]]:
    """
    Every orthogonally connected group of `size` cells drawn from `pool`
    that contains at least one seed, in a deterministic order.
    """
    if size < 1:
        return []
    level: Set[FrozenSet[Coordinate]] = {
        frozenset([seed]) for seed in seeds if seed in pool
    }
    for _ in range(size - 1):
        grown: Set[FrozenSet[Coordinate]] = set()
        for group in level:
            for cell in group:
                for neighbour in cell.neighbours():
                    if neighbour in pool and neighbour not in group:
                        grown.add(group | {neighbour})
        level = grown
    return sorted(tuple(sorted(group)) for group in level)


class BridgingSearch:
    """
    Minimal stone placement towards a target, bound to one WorldModel.

    The search itself never leaves a mark on the map; only commit() does.
    """

    def __init__(self, model: WorldModel):
        self.model = model

    def find(self, target: Coordinate,
             attractors: Iterable[Coordinate] = ()) -> Optional[BridgePlan]:
        """
        Smallest bridge making `target` reachable, or None if the stones in
        hand cannot do it. A target that is already reachable yields an
        empty plan.
        """
        model = self.model
        start = model.pose.position
        has_key = model.inventory.has_key
        has_axe = model.inventory.has_axe
        attractors = sorted(attractors)

        if can_reach(model, start, target, has_key, has_axe):
            return BridgePlan(target, ())

        budget = model.inventory.stones
        pool = {cell for cell in model.water if model.tile_at(cell) == Tile.WATER}
        if budget <= 0 or not pool:
            return None

        reachable = flood_fill(model, start, has_key, has_axe)
        seeds = sorted(
            cell for cell in pool
            if any(n in reachable for n in cell.neighbours())
        )

        trials = 0
        for size in range(1, budget + 1):
            successes = []
            for group in contiguous_groups(pool, seeds, size):
                trials += 1
                with model.speculate(group):
                    if can_reach(model, start, target, has_key, has_axe):
                        successes.append(group)
            if successes:
                chosen = min(successes, key=lambda cells: self._cost(cells, attractors))
                return BridgePlan(target, chosen, len(successes), trials)

        logger.debug("No bridge of up to %d stones reaches %s (%d trials)",
                     budget, target, trials)
        return None

    def _cost(self, cells: Tuple[Coordinate, ...],
              attractors: List[Coordinate]) -> tuple:
        treasure = self.model.treasure
        to_treasure = 0
        if treasure is not None:
            to_treasure = sum(cell.manhattan(treasure) for cell in cells)
        to_tools = 0
        if attractors:
            to_tools = sum(
                min(cell.manhattan(a) for a in attractors) for cell in cells
            )
        return to_treasure, to_tools, cells

    def commit(self, plan: BridgePlan) -> None:
        """Mark the plan's cells for stones on the map."""
        if not plan.cells:
            return
        self.model.commit_bridge(plan.cells)
        logger.info("Bridging %s towards %s (%d of %d trials succeeded)",
                    list(plan.cells), plan.target, plan.successes, plan.trials)

    def bridge_to(self, target: Coordinate,
                  attractors: Iterable[Coordinate] = ()) -> Optional[BridgePlan]:
        """find() then commit() the result."""
        plan = self.find(target, attractors)
        if plan is not None:
            self.commit(plan)
        return plan
