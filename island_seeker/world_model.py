"""
World model — the agent's belief about the island.

The model is the only component that mutates persistent state. It owns:

1. **The belief map**: a numpy grid of Tile codes covering the working
   window, every cell Unknown until an observation reveals it.
2. **Discovered-resource indices**: coordinates of tools, stones, water,
   empty land, trees and doors seen but not yet used up, plus the first
   treasure sighting (which never moves once recorded).
3. **Inventory and pose**: what the agent carries, where it stands and
   which way it faces.

Two operations advance it each turn:
- apply_observation merges the current view window into the map
- apply_move mirrors the effect the environment will give an action

Bridging placements are the one exception to "observations win": a cell
marked TEMPORARY is protected from re-observation, and such marks may only
be made through speculate() (always reverted) or commit_bridge().
"""

from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass
from typing import Dict, Iterable, Iterator, List, Optional, Sequence, Set, Tuple

import numpy as np

from island_seeker.config import AgentConfig
from island_seeker.tiles import (
    OBSERVABLE_TILES,
    Action,
    Coordinate,
    Direction,
    Tile,
    is_contiguous,
)


class ObservationError(ValueError):
    """An observation window had the wrong shape or an unknown symbol."""


_ALWAYS_BLOCKED = frozenset({Tile.UNKNOWN, Tile.BOUNDARY, Tile.WALL, Tile.WATER})


def is_passable(tile: Tile, has_key: bool, has_axe: bool) -> bool:
    """Whether a tile can be entered with the given capabilities.

    This is the single traversability rule shared by path search,
    reachability, frontier scouting and bridging.
    """
    if tile in _ALWAYS_BLOCKED:
        return False
    if tile == Tile.DOOR:
        return has_key
    if tile == Tile.TREE:
        return has_axe
    return True


@dataclass
class Inventory:
    """What the agent carries."""
    has_axe: bool = False
    has_key: bool = False
    has_treasure: bool = False
    stones: int = 0
    rafts: int = 0


@dataclass
class Pose:
    """Where the agent stands and which way it faces."""
    position: Coordinate
    facing: Direction

    def front(self) -> Coordinate:
        return self.position.step(self.facing)


class WorldModel:
    """
    Belief state built incrementally from view windows and committed moves.

    Coordinates outside the working window read as Unknown and silently
    ignore writes, so callers never need to bounds-check.
    """

    def __init__(self, config: Optional[AgentConfig] = None):
        self.config = config or AgentConfig()
        self._radius = self.config.max_size
        side = 2 * self._radius + 1
        self._grid = np.full((side, side), Tile.UNKNOWN, dtype=np.int8)

        self.inventory = Inventory()
        self.pose = Pose(self.config.origin, self.config.initial_facing)
        self.move_count = 0

        # Discovered-resource indices
        self.axes: Set[Coordinate] = set()
        self.keys: Set[Coordinate] = set()
        self.stones: Set[Coordinate] = set()
        self.water: Set[Coordinate] = set()
        self.empty: Set[Coordinate] = set()
        self.trees: Set[Coordinate] = set()
        self.doors: Set[Coordinate] = set()
        self.treasure: Optional[Coordinate] = None

        # A bridged-but-unwalked cell is still water for indexing purposes.
        self._indices: Dict[Tile, Set[Coordinate]] = {
            Tile.AXE: self.axes,
            Tile.KEY: self.keys,
            Tile.STONE: self.stones,
            Tile.WATER: self.water,
            Tile.TEMPORARY: self.water,
            Tile.EMPTY: self.empty,
            Tile.TREE: self.trees,
            Tile.DOOR: self.doors,
        }

        self._raw_set(self.pose.position, self.pose.facing.player_tile)

    # ------------------------------------------------------------------
    # Grid access
    # ------------------------------------------------------------------

    def in_window(self, coord: Coordinate) -> bool:
        return abs(coord[0]) <= self._radius and abs(coord[1]) <= self._radius

    def tile_at(self, coord: Coordinate) -> Tile:
        if not self.in_window(coord):
            return Tile.UNKNOWN
        return Tile(int(self._grid[coord[0] + self._radius, coord[1] + self._radius]))

    def passable(self, coord: Coordinate, has_key: Optional[bool] = None,
                 has_axe: Optional[bool] = None) -> bool:
        """Passability of a cell; capabilities default to the inventory."""
        if has_key is None:
            has_key = self.inventory.has_key
        if has_axe is None:
            has_axe = self.inventory.has_axe
        return is_passable(self.tile_at(coord), has_key, has_axe)

    @property
    def grid(self) -> np.ndarray:
        """Read-only view of the belief map, indexed [x + max_size, y + max_size]."""
        view = self._grid.view()
        view.flags.writeable = False
        return view

    def to_index(self, coord: Coordinate) -> Tuple[int, int]:
        return coord[0] + self._radius, coord[1] + self._radius

    def from_index(self, i: int, j: int) -> Coordinate:
        return Coordinate(int(i) - self._radius, int(j) - self._radius)

    def passable_mask(self, has_key: bool, has_axe: bool) -> np.ndarray:
        """Boolean grid of cells is_passable accepts."""
        lookup = np.array([is_passable(t, has_key, has_axe) for t in Tile], dtype=bool)
        return lookup[self._grid]

    def unknown_mask(self) -> np.ndarray:
        return self._grid == Tile.UNKNOWN

    def borders_unknown(self, coord: Coordinate) -> bool:
        """Whether any cell of the look-around ring is still Unknown.

        Cells beyond the working window do not count as unexplored.
        """
        r = self.config.look_radius
        x, y = coord
        for dx in range(-r, r + 1):
            for dy in range(-r, r + 1):
                neighbour = Coordinate(x + dx, y + dy)
                if (dx or dy) and self.in_window(neighbour) \
                        and self.tile_at(neighbour) == Tile.UNKNOWN:
                    return True
        return False

    # ------------------------------------------------------------------
    # Observations
    # ------------------------------------------------------------------

    def apply_observation(self, window: Sequence[Sequence[str]],
                          facing: Optional[Direction] = None) -> None:
        """
        Merge a player-relative view window into the belief map.

        The window is rotated into the absolute frame using `facing`
        (default: the current pose). The whole window is validated before
        any cell is written; a malformed window raises ObservationError
        and leaves the model untouched.
        """
        view = self._parse_window(window)
        facing = self.pose.facing if facing is None else Direction(facing)
        absolute = np.rot90(view, k=-int(facing))

        half = self.config.view_size // 2
        px, py = self.pose.position
        for i in range(self.config.view_size):
            for j in range(self.config.view_size):
                coord = Coordinate(px + j - half, py + half - i)
                if i == half and j == half:
                    self._merge(coord, facing.player_tile)
                else:
                    self._merge(coord, Tile(int(absolute[i, j])))

    def _parse_window(self, window: Sequence[Sequence[str]]) -> np.ndarray:
        size = self.config.view_size
        half = size // 2
        try:
            rows = [list(row) for row in window]
        except TypeError as exc:
            raise ObservationError(f"Observation is not a grid of symbols: {exc}") from exc
        if len(rows) != size or any(len(row) != size for row in rows):
            shape = [len(row) for row in rows]
            raise ObservationError(
                f"Expected a {size}x{size} window, got row lengths {shape}"
            )

        view = np.full((size, size), Tile.UNKNOWN, dtype=np.int8)
        for i, row in enumerate(rows):
            for j, symbol in enumerate(row):
                if i == half and j == half:
                    continue  # the player's own cell
                try:
                    tile = Tile.from_symbol(str(symbol))
                except ValueError as exc:
                    raise ObservationError(f"Cell ({i}, {j}): {exc}") from exc
                if tile not in OBSERVABLE_TILES:
                    raise ObservationError(
                        f"Cell ({i}, {j}): {symbol!r} cannot appear in an observation"
                    )
                view[i, j] = tile
        return view

    def _merge(self, coord: Coordinate, tile: Tile) -> None:
        """Write an observed tile unless the cell holds a bridging mark."""
        if not self.in_window(coord):
            return
        current = self.tile_at(coord)
        if current == Tile.TEMPORARY or tile == Tile.UNKNOWN:
            return
        self._store(coord, tile)
        if tile == Tile.TREASURE and self.treasure is None:
            self.treasure = coord

    def _store(self, coord: Coordinate, tile: Tile) -> None:
        """Overwrite a cell, keeping the resource indices in step with it."""
        current = self.tile_at(coord)
        if current != tile:
            index = self._indices.get(current)
            if index is not None:
                index.discard(coord)
        self._raw_set(coord, tile)
        index = self._indices.get(tile)
        if index is not None:
            index.add(coord)

    def _raw_set(self, coord: Coordinate, tile: Tile) -> None:
        if self.in_window(coord):
            self._grid[self.to_index(coord)] = tile

    # ------------------------------------------------------------------
    # Moves
    # ------------------------------------------------------------------

    def apply_move(self, action: Action) -> None:
        """Mirror the effect of an action the agent is about to send."""
        action = Action(action)
        self.move_count += 1
        pose = self.pose
        inv = self.inventory

        if action is Action.LEFT:
            pose.facing = pose.facing.left()
            return
        if action is Action.RIGHT:
            pose.facing = pose.facing.right()
            return

        front = pose.front()
        ahead = self.tile_at(front)

        if action is Action.CHOP:
            if ahead == Tile.TREE and inv.has_axe:
                self._store(front, Tile.EMPTY)
                inv.rafts += 1
            return

        if action is Action.UNLOCK:
            # Passability of the door still hinges on has_key.
            if ahead == Tile.DOOR and inv.has_key:
                self.doors.discard(front)
            return

        # Forward
        if ahead == Tile.TREE and inv.has_axe:
            self._store(front, Tile.EMPTY)
            inv.rafts += 1
        elif ahead in (Tile.WATER, Tile.TEMPORARY):
            if inv.stones > 0:
                inv.stones -= 1
            if ahead == Tile.TEMPORARY:
                self._raw_set(front, Tile.STONE_PLACED)
            self.water.discard(front)
        elif ahead == Tile.STONE:
            self._store(front, Tile.EMPTY)
            inv.stones += 1
        elif ahead == Tile.AXE:
            self._store(front, Tile.EMPTY)
            inv.has_axe = True
        elif ahead == Tile.KEY:
            self._store(front, Tile.EMPTY)
            inv.has_key = True
        elif ahead == Tile.TREASURE:
            self._store(front, Tile.EMPTY)
            inv.has_treasure = True

        pose.position = front

    # ------------------------------------------------------------------
    # Bridging marks
    # ------------------------------------------------------------------

    def _check_water(self, cells: Iterable[Coordinate]) -> List[Coordinate]:
        cells = [Coordinate(*c) for c in cells]
        for cell in cells:
            if self.tile_at(cell) != Tile.WATER:
                raise ValueError(
                    f"{cell} is {self.tile_at(cell).name}, only WATER can be bridged"
                )
        return cells

    @contextmanager
    def speculate(self, cells: Iterable[Coordinate]) -> Iterator["WorldModel"]:
        """Temporarily mark water cells passable; restored on exit, always."""
        cells = self._check_water(cells)
        try:
            for cell in cells:
                self._raw_set(cell, Tile.TEMPORARY)
            yield self
        finally:
            for cell in cells:
                self._raw_set(cell, Tile.WATER)

    def commit_bridge(self, cells: Iterable[Coordinate]) -> None:
        """Permanently mark a contiguous group of water cells for stones."""
        cells = self._check_water(cells)
        if not is_contiguous(cells):
            raise ValueError(f"Bridge cells {cells} are not orthogonally connected")
        for cell in cells:
            self._raw_set(cell, Tile.TEMPORARY)

    # ------------------------------------------------------------------
    # Reporting
    # ------------------------------------------------------------------

    def known_bounds(self) -> Optional[Tuple[Coordinate, Coordinate]]:
        """Lower-left and upper-right corners of the observed region."""
        known = np.argwhere(self._grid != Tile.UNKNOWN)
        if known.size == 0:
            return None
        (i0, j0), (i1, j1) = known.min(axis=0), known.max(axis=0)
        return self.from_index(i0, j0), self.from_index(i1, j1)

    def render(self) -> str:
        """ASCII rendering of the known part of the map, Up at the top."""
        bounds = self.known_bounds()
        if bounds is None:
            return ""
        low, high = bounds
        lines = []
        for y in range(high.y, low.y - 1, -1):
            lines.append("".join(
                self.tile_at(Coordinate(x, y)).symbol
                for x in range(low.x, high.x + 1)
            ))
        return "\n".join(lines)

    def summary(self) -> str:
        inv = self.inventory
        lines = [
            "═" * 40,
            "  World Model Summary",
            "═" * 40,
            f"  Position:   {self.pose.position} facing {self.pose.facing.name}",
            f"  Moves:      {self.move_count}",
            f"  Axe/Key:    {inv.has_axe}/{inv.has_key}",
            f"  Treasure:   {'held' if inv.has_treasure else self.treasure}",
            f"  Stones:     {inv.stones}   Rafts: {inv.rafts}",
            f"  Known:      axes={len(self.axes)} keys={len(self.keys)} "
            f"stones={len(self.stones)} trees={len(self.trees)} water={len(self.water)}",
            "═" * 40,
        ]
        return "\n".join(lines)
