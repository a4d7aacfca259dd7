"""
Simulated islands for driving the agent end to end.

The agent never sees these rules; it only receives view windows and
answers with one action per turn, exactly as it would against the real
game server.
"""

from island_seeker.worlds.island_env import (
    IslandConfig,
    IslandWorld,
    Observation,
    make_forest_island,
    make_key_door_island,
    make_stepping_stone_island,
    make_treasure_in_view,
    make_walled_rooms,
)
from island_seeker.worlds.episode import EpisodeLog, run_episode

__all__ = [
    "IslandConfig",
    "IslandWorld",
    "Observation",
    "EpisodeLog",
    "run_episode",
    "make_treasure_in_view",
    "make_walled_rooms",
    "make_key_door_island",
    "make_forest_island",
    "make_stepping_stone_island",
]
