"""
Tiles, directions, actions and coordinates shared by every component.

The belief map uses an absolute frame anchored at the agent's starting cell:
x grows to the Right, y grows Up. Observations arrive in the player's own
frame ("ahead" is the top row) and are rotated into this frame by the
WorldModel.
"""

from __future__ import annotations

from enum import Enum, IntEnum
from typing import Dict, Iterable, List, NamedTuple, Tuple


# ---------------------------------------------------------------------------
# Directions and coordinates
# ---------------------------------------------------------------------------

class Direction(IntEnum):
    """The four facings, numbered clockwise from Up."""
    UP = 0
    RIGHT = 1
    DOWN = 2
    LEFT = 3

    def delta(self) -> Tuple[int, int]:
        """x, y displacement of one step in this direction."""
        return {
            Direction.UP: (0, 1),
            Direction.RIGHT: (1, 0),
            Direction.DOWN: (0, -1),
            Direction.LEFT: (-1, 0),
        }[self]

    def left(self) -> "Direction":
        return Direction((self - 1) % 4)

    def right(self) -> "Direction":
        return Direction((self + 1) % 4)

    @property
    def player_tile(self) -> "Tile":
        return _PLAYER_TILES[self]

    @staticmethod
    def between(start: "Coordinate", goal: "Coordinate") -> "Direction":
        """Direction of travel between two orthogonally adjacent cells."""
        delta = (goal.x - start.x, goal.y - start.y)
        for direction in Direction:
            if direction.delta() == delta:
                return direction
        raise ValueError(f"{start} and {goal} are not adjacent")


class Coordinate(NamedTuple):
    """A cell of the logical grid. Compares and sorts by (x, y)."""
    x: int
    y: int

    def step(self, direction: Direction) -> "Coordinate":
        dx, dy = direction.delta()
        return Coordinate(self.x + dx, self.y + dy)

    def neighbours(self) -> List["Coordinate"]:
        """Orthogonal neighbours in the fixed order right, left, up, down."""
        x, y = self
        return [
            Coordinate(x + 1, y),
            Coordinate(x - 1, y),
            Coordinate(x, y + 1),
            Coordinate(x, y - 1),
        ]

    def manhattan(self, other: "Coordinate") -> int:
        return abs(self.x - other.x) + abs(self.y - other.y)

    def __repr__(self) -> str:
        return f"({self.x}, {self.y})"


ORIGIN = Coordinate(0, 0)


def look_around(radius: int = 2) -> List[Tuple[int, int]]:
    """Offsets of the square ring around a cell, excluding the cell itself.

    With the default radius this is the 24 cells a 5x5 view reveals.
    """
    return [
        (dx, dy)
        for dx in range(-radius, radius + 1)
        for dy in range(-radius, radius + 1)
        if (dx, dy) != (0, 0)
    ]


def is_contiguous(cells: Iterable[Coordinate]) -> bool:
    """Whether every cell is reachable from every other through orthogonally
    adjacent members of the same group. The empty group counts as contiguous.
    """
    remaining = {Coordinate(*cell) for cell in cells}
    if not remaining:
        return True
    stack = [remaining.pop()]
    while stack:
        current = stack.pop()
        for neighbour in current.neighbours():
            if neighbour in remaining:
                remaining.remove(neighbour)
                stack.append(neighbour)
    return not remaining


# ---------------------------------------------------------------------------
# Tiles
# ---------------------------------------------------------------------------

class Tile(IntEnum):
    """What the agent believes occupies a cell."""
    UNKNOWN = 0
    BOUNDARY = 1       # Outside the island
    WALL = 2
    EMPTY = 3
    WATER = 4
    TEMPORARY = 5      # Water earmarked for a stepping stone
    STONE_PLACED = 6   # Water already bridged by a stone
    DOOR = 7           # Locked door
    TREE = 8
    AXE = 9
    KEY = 10
    STONE = 11         # Uncollected stepping stone
    TREASURE = 12
    PLAYER_UP = 13
    PLAYER_RIGHT = 14
    PLAYER_DOWN = 15
    PLAYER_LEFT = 16

    @property
    def symbol(self) -> str:
        return _SYMBOLS[self]

    @staticmethod
    def from_symbol(symbol: str) -> "Tile":
        try:
            return _FROM_SYMBOL[symbol]
        except KeyError:
            raise ValueError(f"Unknown tile symbol {symbol!r}") from None


_SYMBOLS: Dict[Tile, str] = {
    Tile.UNKNOWN: "?",
    Tile.BOUNDARY: ".",
    Tile.WALL: "*",
    Tile.EMPTY: " ",
    Tile.WATER: "~",
    Tile.TEMPORARY: "#",
    Tile.STONE_PLACED: "O",
    Tile.DOOR: "-",
    Tile.TREE: "T",
    Tile.AXE: "a",
    Tile.KEY: "k",
    Tile.STONE: "o",
    Tile.TREASURE: "$",
    Tile.PLAYER_UP: "^",
    Tile.PLAYER_RIGHT: ">",
    Tile.PLAYER_DOWN: "v",
    Tile.PLAYER_LEFT: "<",
}
_FROM_SYMBOL: Dict[str, Tile] = {s: t for t, s in _SYMBOLS.items()}

_PLAYER_TILES: Dict[Direction, Tile] = {
    Direction.UP: Tile.PLAYER_UP,
    Direction.RIGHT: Tile.PLAYER_RIGHT,
    Direction.DOWN: Tile.PLAYER_DOWN,
    Direction.LEFT: Tile.PLAYER_LEFT,
}

# Tiles an environment may report in a view window. TEMPORARY is internal only.
OBSERVABLE_TILES = frozenset({
    Tile.UNKNOWN, Tile.BOUNDARY, Tile.WALL, Tile.EMPTY, Tile.WATER,
    Tile.STONE_PLACED, Tile.DOOR, Tile.TREE, Tile.AXE, Tile.KEY,
    Tile.STONE, Tile.TREASURE,
})


# ---------------------------------------------------------------------------
# Actions
# ---------------------------------------------------------------------------

class Action(str, Enum):
    """Primitive actions; the value is the symbol sent to the environment."""
    FORWARD = "F"
    LEFT = "L"
    RIGHT = "R"
    CHOP = "C"
    UNLOCK = "U"

    def __str__(self) -> str:
        return self.value
