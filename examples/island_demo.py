"""
Demo: the planner exploring islands of increasing difficulty.

For each island the agent starts knowing nothing, receives one 5x5 view per
turn and answers with one action, until it returns home with the treasure.
"""

import logging

from island_seeker.worlds import (
    make_forest_island,
    make_key_door_island,
    make_stepping_stone_island,
    make_treasure_in_view,
    make_walled_rooms,
    run_episode,
)
from island_seeker.planner import Planner


LEVELS = [
    ("Treasure in view", make_treasure_in_view),
    ("Walled rooms", make_walled_rooms),
    ("Key and door", make_key_door_island),
    ("Forest", make_forest_island),
    ("Stepping stone", make_stepping_stone_island),
]


def main():
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    print("=" * 60)
    print("  Island Seeker — planning under partial observability")
    print("=" * 60)

    for number, (name, make_world) in enumerate(LEVELS, start=1):
        print(f"\n--- Level {number}: {name} ---\n")
        world = make_world()
        print("Island:")
        print(world.render())
        print()

        planner = Planner()
        log = run_episode(world, planner, verbose=True)
        print()
        print(log.summary())
        print()
        print("Belief map:")
        print(planner.model.render())


if __name__ == "__main__":
    main()
