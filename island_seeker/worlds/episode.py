"""
Episode runner — plays a Planner against an IslandWorld.

This is the turn loop the real transport would drive:

    observe → Planner.make_move → world.step → observe ...

exactly one view in and one action out per turn, until the island reports
the episode over.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from island_seeker.config import AgentConfig
from island_seeker.planner import Planner
from island_seeker.tiles import Action
from island_seeker.worlds.island_env import IslandWorld


@dataclass
class EpisodeLog:
    """Record of a single episode."""
    steps: int
    won: bool
    message: str
    actions: List[Action] = field(default_factory=list)
    path: List[Tuple[int, int]] = field(default_factory=list)   # World (row, col) cells
    rules: List[str] = field(default_factory=list)              # Rule behind each new plan

    @property
    def action_string(self) -> str:
        return "".join(action.value for action in self.actions)

    def summary(self) -> str:
        lines = [
            "═" * 50,
            "  Episode Result",
            "═" * 50,
            f"  Won:        {'Yes' if self.won else 'No'}",
            f"  Outcome:    {self.message or 'still running'}",
            f"  Steps:      {self.steps}",
            f"  Actions:    {self.action_string}",
            f"  Plans:      {len(self.rules)}",
        ]
        for rule in self.rules:
            lines.append(f"    - {rule}")
        lines.append("═" * 50)
        return "\n".join(lines)


def run_episode(world: IslandWorld, planner: Optional[Planner] = None,
                config: Optional[AgentConfig] = None,
                verbose: bool = False) -> EpisodeLog:
    """Reset `world` and play it to the end with a (fresh) Planner."""
    planner = planner or Planner(config)
    obs = world.reset()
    log = EpisodeLog(steps=0, won=False, message="", path=[world.position])

    while not obs.done:
        had_plan = bool(planner.queue)
        action = planner.make_move(obs.view)
        if not had_plan and planner.last_rule is not None:
            log.rules.append(planner.last_rule)
        log.actions.append(action)

        obs = world.step(action)
        log.path.append(world.position)

        if verbose and world.steps % 25 == 0:
            print(
                f"  [step {world.steps:4d}] "
                f"pos={planner.model.pose.position} "
                f"facing={planner.model.pose.facing.name:5s} "
                f"stones={planner.model.inventory.stones} "
                f"rule={planner.last_rule}"
            )

    log.steps = world.steps
    log.won = obs.won
    log.message = obs.message
    if verbose:
        print(f"  [step {world.steps:4d}] {obs.message}")
    return log
