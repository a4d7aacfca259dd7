"""
Island Seeker: a planning agent for partially observed tool-gated grid worlds.

The agent explores an unknown island one 5x5 view at a time, collects the
tools that unlock otherwise impassable terrain (keys for doors, axes for
trees, stepping stones for water), retrieves the treasure and carries it
back to where it started. Each turn it consumes one view and emits one
primitive action.
"""

from island_seeker.tiles import Action, Coordinate, Direction, Tile, ORIGIN
from island_seeker.config import AgentConfig
from island_seeker.world_model import (
    Inventory,
    ObservationError,
    Pose,
    WorldModel,
    is_passable,
)
from island_seeker.search import can_reach, find_path, flood_fill
from island_seeker.frontier import next_frontier
from island_seeker.bridging import BridgePlan, BridgingSearch
from island_seeker.planner import NeededTools, Planner

__version__ = "0.1.0"
__all__ = [
    "Action",
    "Coordinate",
    "Direction",
    "Tile",
    "ORIGIN",
    "AgentConfig",
    "Inventory",
    "ObservationError",
    "Pose",
    "WorldModel",
    "is_passable",
    "can_reach",
    "find_path",
    "flood_fill",
    "next_frontier",
    "BridgePlan",
    "BridgingSearch",
    "NeededTools",
    "Planner",
]
