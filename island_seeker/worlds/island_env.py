"""
Island environments for exercising the agent end to end.

An island is drawn as ASCII rows using the observation symbols:

    *  wall            T  tree (chop with an axe)
    .  off the island  -  locked door (unlock with a key)
    ~  water           a  axe
    o  stepping stone  k  key
    O  placed stone    $  treasure
       (space) land    ^ > v <  the start cell and initial facing

Each turn the environment hands the agent a view window centred on it,
rotated so the row ahead comes first, and applies the action it returns.
The rules are hidden from the agent; it only sees views.

Rules:
- Forward is blocked by walls, trees and locked doors
- walking off the island, or into water with neither stone nor raft, ends
  the episode as a loss
- walking into water with a stone places it (the cell becomes O)
- a raft carries the agent over water and is lost on landing
- Chop with an axe fells a tree and yields a raft
- Unlock with a key opens a door
- items are picked up by walking onto them
- the episode is won by returning to the start cell with the treasure
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Tuple

import numpy as np

from island_seeker.tiles import Action, Direction, Tile

_START_MARKERS = {
    "^": Direction.UP,
    ">": Direction.RIGHT,
    "v": Direction.DOWN,
    "<": Direction.LEFT,
}
_BLOCKING = {"*", "T", "-"}
_ITEMS = {"a", "k", "o", "$"}


@dataclass
class Observation:
    """What the agent receives at the start of a turn."""
    view: List[str]                 # Player-relative window, ahead row first
    done: bool                      # Episode over?
    won: bool = False
    message: str = ""

    def __repr__(self) -> str:
        return f"Obs(done={self.done}, won={self.won}, message={self.message!r})"


@dataclass
class IslandConfig:
    """Configuration for building an island."""
    rows: List[str] = field(default_factory=lambda: ["^ $"])
    view_size: int = 5
    max_steps: int = 1000


class IslandWorld:
    """
    A configurable island environment.

    The agent interacts via step(action) and receives Observations.
    """

    def __init__(self, config: IslandConfig):
        self.config = config
        self._build_grid()
        self.reset()

    def _build_grid(self) -> None:
        """Parse the ASCII rows into a character grid and locate the start."""
        rows = self.config.rows
        width = max(len(row) for row in rows)
        grid = np.array([list(row.ljust(width, ".")) for row in rows], dtype="<U1")

        starts = [
            (r, c) for r in range(grid.shape[0]) for c in range(grid.shape[1])
            if grid[r, c] in _START_MARKERS
        ]
        if len(starts) != 1:
            raise ValueError(f"Island needs exactly one start marker, found {len(starts)}")
        self.start = starts[0]
        self.start_facing = _START_MARKERS[grid[self.start]]
        grid[self.start] = " "

        known = {tile.symbol for tile in Tile}
        unknown = set(grid.ravel()) - known
        if unknown:
            raise ValueError(f"Unknown symbols in island: {sorted(unknown)}")
        self.grid = grid

    def reset(self) -> Observation:
        """Reset the island to its initial layout."""
        self.cells = self.grid.copy()
        self.position: Tuple[int, int] = self.start
        self.facing = self.start_facing
        self.have_axe = False
        self.have_key = False
        self.have_treasure = False
        self.stones = 0
        self.have_raft = False
        self.on_raft = False
        self.steps = 0
        self.done = False
        self.won = False
        self.message = ""
        return self._make_observation()

    def step(self, action: Action) -> Observation:
        """Apply one action and return the next observation."""
        if self.done:
            return self._make_observation()

        self.steps += 1
        action = Action(action)
        front = self._front()
        ahead = self._cell(front)

        if action is Action.LEFT:
            self.facing = self.facing.left()
        elif action is Action.RIGHT:
            self.facing = self.facing.right()
        elif action is Action.CHOP:
            if ahead == "T" and self.have_axe:
                self.cells[front] = " "
                self.have_raft = True
        elif action is Action.UNLOCK:
            if ahead == "-" and self.have_key:
                self.cells[front] = " "
        else:
            self._forward(front, ahead)

        if self.have_treasure and self.position == self.start:
            self._finish(won=True, message="returned with the treasure")
        elif not self.done and self.steps >= self.config.max_steps:
            self._finish(won=False, message="out of moves")
        return self._make_observation()

    def _forward(self, front: Tuple[int, int], ahead: str) -> None:
        if ahead in _BLOCKING:
            return
        if ahead == ".":
            self._finish(won=False, message="walked off the island")
            return

        if ahead == "~":
            if self.stones > 0:
                self.stones -= 1
                self.cells[front] = "O"
            elif self.on_raft or self.have_raft:
                self.have_raft = False
                self.on_raft = True
            else:
                self._finish(won=False, message="drowned")
                return
        else:
            self.on_raft = False
            if ahead in _ITEMS:
                self._collect(ahead)
                self.cells[front] = " "
        self.position = front

    def _collect(self, item: str) -> None:
        if item == "a":
            self.have_axe = True
        elif item == "k":
            self.have_key = True
        elif item == "o":
            self.stones += 1
        elif item == "$":
            self.have_treasure = True

    def _finish(self, won: bool, message: str) -> None:
        self.done = True
        self.won = won
        self.message = message

    def _front(self) -> Tuple[int, int]:
        dx, dy = self.facing.delta()
        row, col = self.position
        return row - dy, col + dx

    def _cell(self, pos: Tuple[int, int]) -> str:
        row, col = pos
        if 0 <= row < self.cells.shape[0] and 0 <= col < self.cells.shape[1]:
            return str(self.cells[row, col])
        return "."

    def view(self) -> List[str]:
        """The window around the agent, rotated so its facing is up."""
        half = self.config.view_size // 2
        row, col = self.position
        window = np.array([
            [self._cell((r, c)) for c in range(col - half, col + half + 1)]
            for r in range(row - half, row + half + 1)
        ], dtype="<U1")
        window = np.rot90(window, k=int(self.facing))
        window[half, half] = self.facing.player_tile.symbol
        return ["".join(line) for line in window]

    def _make_observation(self) -> Observation:
        return Observation(
            view=self.view(),
            done=self.done,
            won=self.won,
            message=self.message,
        )

    def render(self) -> str:
        """ASCII rendering of the island with the agent drawn in."""
        lines = []
        for r in range(self.cells.shape[0]):
            row_str = ""
            for c in range(self.cells.shape[1]):
                if (r, c) == self.position:
                    row_str += self.facing.player_tile.symbol
                else:
                    row_str += str(self.cells[r, c])
            lines.append(row_str)
        return "\n".join(lines)


# ---------------------------------------------------------------------------
# Pre-built islands of increasing difficulty
# ---------------------------------------------------------------------------

def make_treasure_in_view() -> IslandWorld:
    """Level 1: open ground, the treasure two cells to the right of the start."""
    return IslandWorld(IslandConfig(rows=[
        "     ",
        "     ",
        "  ^ $",
        "     ",
        "     ",
    ]))


def make_walled_rooms() -> IslandWorld:
    """Level 2: the treasure is hidden behind interior walls."""
    return IslandWorld(IslandConfig(rows=[
        "*********",
        "*   *  $*",
        "* * * * *",
        "*   ^   *",
        "*********",
    ], max_steps=300))


def make_key_door_island() -> IslandWorld:
    """Level 3: a locked door guards the treasure; the key lies to the west."""
    return IslandWorld(IslandConfig(rows=[
        "*****",
        "**$**",
        "**-**",
        "k ^  ",
        "*****",
    ], max_steps=200))


def make_forest_island() -> IslandWorld:
    """Level 4: a tree blocks the treasure; the axe lies behind the agent."""
    return IslandWorld(IslandConfig(rows=[
        "*******",
        "*a ^T$*",
        "*******",
    ], max_steps=200))


def make_stepping_stone_island() -> IslandWorld:
    """Level 5: one stone must be fetched and placed to cross the water."""
    return IslandWorld(IslandConfig(rows=[
        "*******",
        "*o ^~$*",
        "*******",
    ], max_steps=200))
