"""
Planner — turns the belief state into one action per turn.

Each turn the Planner merges the observation into its WorldModel. If its
action queue is empty it evaluates an ordered list of rules, each a plain
function of (model, needed tools) returning an action list or None, and
queues the first non-empty result. It then pops one action, mirrors it
into the model and returns it.

Default rule order:

1. return_with_treasure   holding the treasure, head for the origin
2. fetch_treasure         treasure seen and reachable, go and get it
3. diagnose_missing_tools treasure unreachable, note which tools would help
4. fetch_needed_tool      a needed tool is seen and reachable, fetch it
5. explore_frontier       walk to the nearest tile bordering the unknown
6. collect_resources      pick up anything reachable (key, axe, stone, tree)
7. build_bridge           spend stones to reach a new area
8. return_to_origin       nothing else to do

A rule whose route turns out to be missing (stale reachability) simply
returns None and the next rule is tried.
"""

from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass
from typing import Callable, Deque, Iterable, List, Optional, Sequence, Tuple

from island_seeker.bridging import BridgingSearch
from island_seeker.config import AgentConfig
from island_seeker.frontier import next_frontier
from island_seeker.search import can_reach, find_path, flood_fill
from island_seeker.tiles import Action, Coordinate, Direction, Tile
from island_seeker.world_model import ObservationError, WorldModel

logger = logging.getLogger(__name__)


@dataclass
class NeededTools:
    """Sticky hints: tools believed to unlock the route to the treasure.

    Set when the treasure proves unreachable, cleared only when the agent
    walks onto a matching item. Not re-verified in between, so a hint can
    outlive its usefulness by a turn if the tool is picked up on the way.
    """
    key: bool = False
    axe: bool = False


Rule = Callable[[WorldModel, NeededTools], Optional[List[Action]]]


# ---------------------------------------------------------------------------
# Route translation
# ---------------------------------------------------------------------------

def alignment_moves(current: Direction, desired: Direction) -> List[Action]:
    """Fewest turns from `current` to `desired`; ties go to left turns."""
    lefts = (current - desired) % 4
    rights = (desired - current) % 4
    if lefts <= rights:
        return [Action.LEFT] * lefts
    return [Action.RIGHT] * rights


def path_to_actions(model: WorldModel, path: Sequence[Coordinate]) -> List[Action]:
    """Primitive actions walking `path` from the current facing."""
    facing = model.pose.facing
    actions: List[Action] = []
    for here, there in zip(path, path[1:]):
        heading = Direction.between(here, there)
        actions.extend(alignment_moves(facing, heading))
        facing = heading
        tile = model.tile_at(there)
        if tile == Tile.TREE:
            actions.append(Action.CHOP)
        elif tile == Tile.DOOR:
            actions.append(Action.UNLOCK)
        actions.append(Action.FORWARD)
    return actions


def route(model: WorldModel, target: Coordinate) -> Optional[List[Action]]:
    """Actions taking the agent to `target`, or None if there is no route."""
    start = model.pose.position
    if target == start:
        return None
    path = find_path(model, start, target,
                     model.inventory.has_key, model.inventory.has_axe)
    if path is None:
        logger.debug("No route from %s to %s", start, target)
        return None
    return path_to_actions(model, path)


def _nearest_reachable(model: WorldModel,
                       targets: Iterable[Coordinate]) -> Optional[Coordinate]:
    targets = set(targets)
    if not targets:
        return None
    inv = model.inventory
    distances = flood_fill(model, model.pose.position, inv.has_key, inv.has_axe)
    reachable = [(distances[t], t) for t in targets if t in distances]
    return min(reachable)[1] if reachable else None


def _route_to_nearest(model: WorldModel,
                      targets: Iterable[Coordinate]) -> Optional[List[Action]]:
    target = _nearest_reachable(model, targets)
    return route(model, target) if target is not None else None


# ---------------------------------------------------------------------------
# Rules
# ---------------------------------------------------------------------------

def return_with_treasure(model: WorldModel, needed: NeededTools) -> Optional[List[Action]]:
    if not model.inventory.has_treasure:
        return None
    return route(model, model.config.origin)


def fetch_treasure(model: WorldModel, needed: NeededTools) -> Optional[List[Action]]:
    inv = model.inventory
    if model.treasure is None or inv.has_treasure:
        return None
    if not can_reach(model, model.pose.position, model.treasure, inv.has_key, inv.has_axe):
        return None
    return route(model, model.treasure)


def diagnose_missing_tools(model: WorldModel, needed: NeededTools) -> Optional[List[Action]]:
    """Probe with hypothetical tools to see what blocks the treasure."""
    inv = model.inventory
    if model.treasure is None or inv.has_treasure:
        return None
    start, goal = model.pose.position, model.treasure
    if can_reach(model, start, goal, inv.has_key, inv.has_axe):
        return None
    key_alone = not inv.has_key and can_reach(model, start, goal, True, inv.has_axe)
    axe_alone = not inv.has_axe and can_reach(model, start, goal, inv.has_key, True)
    if key_alone:
        needed.key = True
    if axe_alone:
        needed.axe = True
    # Both only when neither tool on its own opens the way
    if not (key_alone or axe_alone or inv.has_key or inv.has_axe) \
            and can_reach(model, start, goal, True, True):
        needed.key = True
        needed.axe = True
    return None


def fetch_needed_tool(model: WorldModel, needed: NeededTools) -> Optional[List[Action]]:
    inv = model.inventory
    if needed.key and not inv.has_key:
        actions = _route_to_nearest(model, model.keys)
        if actions:
            return actions
    if needed.axe and not inv.has_axe:
        actions = _route_to_nearest(model, model.axes)
        if actions:
            return actions
    return None


def explore_frontier(model: WorldModel, needed: NeededTools) -> Optional[List[Action]]:
    inv = model.inventory
    start = model.pose.position
    target = next_frontier(model, start, inv.has_key, inv.has_axe)
    if target == start:
        return None
    return route(model, target)


def collect_resources(model: WorldModel, needed: NeededTools) -> Optional[List[Action]]:
    inv = model.inventory
    groups = [
        model.keys if not inv.has_key else (),
        model.axes if not inv.has_axe else (),
        model.stones,
        model.trees,
    ]
    for group in groups:
        actions = _route_to_nearest(model, group)
        if actions:
            return actions
    return None


def _bridge_targets(model: WorldModel) -> List[Tuple[Coordinate, List[Coordinate]]]:
    """(target, attractors) pairs in the order bridging should try them."""
    inv = model.inventory
    here = model.pose.position

    def by_distance(cells: Iterable[Coordinate]) -> List[Coordinate]:
        return sorted(cells, key=lambda c: (c.manhattan(here), c))

    tools = sorted(model.stones
                   | (set() if inv.has_key else model.keys)
                   | (set() if inv.has_axe else model.axes))

    targets: List[Tuple[Coordinate, List[Coordinate]]] = []
    if inv.has_treasure:
        targets.append((model.config.origin, []))
    elif model.treasure is not None:
        targets.append((model.treasure, []))
    stones = sorted(model.stones)
    targets.extend((stone, stones) for stone in by_distance(model.stones))
    if not inv.has_key:
        keys = sorted(model.keys)
        targets.extend((key, keys) for key in by_distance(model.keys))
    if not inv.has_axe:
        axes = sorted(model.axes)
        targets.extend((axe, axes) for axe in by_distance(model.axes))

    reachable = flood_fill(model, here, inv.has_key, inv.has_axe)
    shore = [cell for cell in model.empty
             if cell not in reachable and model.borders_unknown(cell)]
    targets.extend((cell, tools) for cell in by_distance(shore))
    return targets


def build_bridge(model: WorldModel, needed: NeededTools) -> Optional[List[Action]]:
    if model.inventory.stones <= 0:
        return None
    bridging = BridgingSearch(model)
    for target, attractors in _bridge_targets(model):
        plan = bridging.find(target, attractors)
        if plan is None or not plan.cells:
            continue
        bridging.commit(plan)
        actions = route(model, target)
        if actions:
            return actions
    return None


def return_to_origin(model: WorldModel, needed: NeededTools) -> Optional[List[Action]]:
    return route(model, model.config.origin)


DEFAULT_RULES: Tuple[Rule, ...] = (
    return_with_treasure,
    fetch_treasure,
    diagnose_missing_tools,
    fetch_needed_tool,
    explore_frontier,
    collect_resources,
    build_bridge,
    return_to_origin,
)


# ---------------------------------------------------------------------------
# Planner
# ---------------------------------------------------------------------------

class Planner:
    """
    The agent's turn loop: one observation in, one action out.

    The Planner owns the WorldModel; no other component writes to it
    except through the narrow bridging capability the rules use.
    """

    def __init__(self, config: Optional[AgentConfig] = None,
                 rules: Optional[Sequence[Rule]] = None):
        self.config = config or AgentConfig()
        self.model = WorldModel(self.config)
        self.needed = NeededTools()
        self.rules: Tuple[Rule, ...] = tuple(rules) if rules is not None else DEFAULT_RULES
        self.queue: Deque[Action] = deque()
        self.last_rule: Optional[str] = None

    def make_move(self, window: Sequence[Sequence[str]]) -> Action:
        """Consume one observation window and return exactly one action."""
        try:
            self.model.apply_observation(window)
        except ObservationError as exc:
            logger.warning("Turn %d: ignoring malformed observation: %s",
                           self.model.move_count, exc)

        if not self.queue:
            self.plan()

        if self.queue:
            action = self.queue.popleft()
        else:
            action = self.config.fallback_action
            logger.debug("Turn %d: no plan, emitting %s", self.model.move_count, action)

        if action is Action.FORWARD:
            ahead = self.model.tile_at(self.model.pose.front())
            if ahead == Tile.KEY:
                self.needed.key = False
            elif ahead == Tile.AXE:
                self.needed.axe = False

        self.model.apply_move(action)
        return action

    def plan(self) -> Optional[str]:
        """Queue the first non-empty plan; returns the name of the rule used."""
        for rule in self.rules:
            actions = rule(self.model, self.needed)
            if actions:
                self.queue.extend(actions)
                self.last_rule = rule.__name__
                logger.debug("Turn %d: %s queued %d actions",
                             self.model.move_count, rule.__name__, len(actions))
                return rule.__name__
        self.last_rule = None
        return None
