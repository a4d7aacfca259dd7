"""Configuration for the planning agent."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from island_seeker.tiles import ORIGIN, Action, Coordinate, Direction


@dataclass
class AgentConfig:
    """Configuration for a WorldModel and the Planner driving it."""
    max_size: int = 80                       # Working window is [-max_size, max_size] on both axes
    view_size: int = 5                       # Side of the square observation window
    origin: Coordinate = ORIGIN              # Where the agent starts and must return to
    initial_facing: Direction = Direction.UP
    look_radius: int = 2                     # Ring checked for unknown cells around a frontier tile
    spiral_steps: Optional[int] = None       # Frontier spiral length; None covers the whole window
    fallback_action: Action = Action.LEFT    # Emitted when no rule produces a plan

    def __post_init__(self) -> None:
        if self.view_size < 3 or self.view_size % 2 == 0:
            raise ValueError(f"view_size must be odd and at least 3, got {self.view_size}")
        if self.max_size < self.view_size:
            raise ValueError(
                f"max_size ({self.max_size}) must be at least view_size ({self.view_size})"
            )
        if self.look_radius < 1:
            raise ValueError(f"look_radius must be positive, got {self.look_radius}")
        if abs(self.origin[0]) > self.max_size or abs(self.origin[1]) > self.max_size:
            raise ValueError(f"origin {self.origin} lies outside the working window")
        self.origin = Coordinate(*self.origin)
        self.initial_facing = Direction(self.initial_facing)
        self.fallback_action = Action(self.fallback_action)

    @property
    def spiral_limit(self) -> int:
        """Number of spiral steps the frontier scan may take."""
        if self.spiral_steps is not None:
            return self.spiral_steps
        side = 2 * self.max_size + 1
        return side * side
