"""Tests for the belief-state world model."""

import unittest

import numpy as np

from island_seeker.config import AgentConfig
from island_seeker.tiles import Action, Coordinate, Direction, Tile
from island_seeker.world_model import ObservationError, WorldModel, is_passable


OPEN = [
    "     ",
    "     ",
    "     ",
    "     ",
    "     ",
]


class TestPassability(unittest.TestCase):
    """The shared traversability rule."""

    def test_always_blocked(self):
        for tile in (Tile.UNKNOWN, Tile.BOUNDARY, Tile.WALL, Tile.WATER):
            self.assertFalse(is_passable(tile, True, True), tile)

    def test_capability_gates(self):
        self.assertFalse(is_passable(Tile.DOOR, False, True))
        self.assertTrue(is_passable(Tile.DOOR, True, False))
        self.assertFalse(is_passable(Tile.TREE, True, False))
        self.assertTrue(is_passable(Tile.TREE, False, True))

    def test_open_tiles(self):
        for tile in (Tile.EMPTY, Tile.AXE, Tile.KEY, Tile.STONE, Tile.TREASURE,
                     Tile.TEMPORARY, Tile.STONE_PLACED, Tile.PLAYER_LEFT):
            self.assertTrue(is_passable(tile, False, False), tile)


class TestObservation(unittest.TestCase):
    """Merging view windows into the belief map."""

    def setUp(self):
        self.model = WorldModel()

    def test_initial_state(self):
        self.assertEqual(self.model.pose.position, Coordinate(0, 0))
        self.assertEqual(self.model.pose.facing, Direction.UP)
        self.assertEqual(self.model.tile_at(Coordinate(0, 0)), Tile.PLAYER_UP)
        self.assertEqual(self.model.tile_at(Coordinate(3, 3)), Tile.UNKNOWN)
        self.assertEqual(self.model.move_count, 0)

    def test_facing_up_layout(self):
        self.model.apply_observation([
            "k    ",
            "     ",
            "    $",
            "     ",
            "   ~T",
        ])
        self.assertEqual(self.model.tile_at(Coordinate(-2, 2)), Tile.KEY)
        self.assertEqual(self.model.tile_at(Coordinate(2, 0)), Tile.TREASURE)
        self.assertEqual(self.model.tile_at(Coordinate(1, -2)), Tile.WATER)
        self.assertEqual(self.model.tile_at(Coordinate(2, -2)), Tile.TREE)
        self.assertEqual(self.model.keys, {Coordinate(-2, 2)})
        self.assertEqual(self.model.treasure, Coordinate(2, 0))
        self.assertIn(Coordinate(0, 1), self.model.empty)

    def test_rotation_for_each_facing(self):
        # The top-left cell of the view is two ahead and two to the left.
        expected = {
            Direction.UP: Coordinate(-2, 2),
            Direction.RIGHT: Coordinate(2, 2),
            Direction.DOWN: Coordinate(2, -2),
            Direction.LEFT: Coordinate(-2, -2),
        }
        for facing, coord in expected.items():
            model = WorldModel()
            model.pose.facing = facing
            model.apply_observation(["a    "] + OPEN[1:])
            self.assertEqual(model.axes, {coord}, facing)

    def test_explicit_facing_argument(self):
        self.model.apply_observation(["    k"] + OPEN[1:], Direction.RIGHT)
        self.assertEqual(self.model.keys, {Coordinate(2, -2)})

    def test_player_cell_marks_facing(self):
        self.model.pose.facing = Direction.LEFT
        self.model.apply_observation(OPEN)
        self.assertEqual(self.model.tile_at(Coordinate(0, 0)), Tile.PLAYER_LEFT)

    def test_centre_cell_is_ignored(self):
        view = ["     ", "     ", "  Z  ", "     ", "     "]
        self.model.apply_observation(view)
        self.assertEqual(self.model.tile_at(Coordinate(0, 0)), Tile.PLAYER_UP)

    def test_wrong_shape_is_rejected_without_mutation(self):
        before = self.model.grid.copy()
        with self.assertRaises(ObservationError):
            self.model.apply_observation(OPEN[:4])
        with self.assertRaises(ObservationError):
            self.model.apply_observation(["k   "] + OPEN[1:])
        np.testing.assert_array_equal(self.model.grid, before)

    def test_unknown_symbol_is_rejected_without_mutation(self):
        before = self.model.grid.copy()
        with self.assertRaises(ObservationError):
            self.model.apply_observation(["k   Z"] + OPEN[1:])
        np.testing.assert_array_equal(self.model.grid, before)
        self.assertEqual(self.model.keys, set())

    def test_internal_tiles_cannot_be_observed(self):
        with self.assertRaises(ObservationError):
            self.model.apply_observation(["#    "] + OPEN[1:])
        with self.assertRaises(ObservationError):
            self.model.apply_observation(["^    "] + OPEN[1:])

    def test_observation_error_is_a_value_error(self):
        self.assertTrue(issubclass(ObservationError, ValueError))

    def test_known_cells_never_revert_to_unknown(self):
        self.model.apply_observation(["*    "] + OPEN[1:])
        self.model.apply_observation(["?    "] + OPEN[1:])
        self.assertEqual(self.model.tile_at(Coordinate(-2, 2)), Tile.WALL)

    def test_reobserving_is_idempotent(self):
        view = ["a   o"] + OPEN[1:]
        self.model.apply_observation(view)
        self.model.apply_observation(view)
        self.assertEqual(self.model.axes, {Coordinate(-2, 2)})
        self.assertEqual(self.model.stones, {Coordinate(2, 2)})

    def test_first_treasure_sighting_is_permanent(self):
        self.model.apply_observation(["$    "] + OPEN[1:])
        self.model.apply_observation(["    $"] + OPEN[1:])
        self.assertEqual(self.model.treasure, Coordinate(-2, 2))

    def test_changed_tile_leaves_its_index(self):
        self.model.apply_observation(["T    "] + OPEN[1:])
        self.assertEqual(self.model.trees, {Coordinate(-2, 2)})
        self.model.apply_observation(OPEN)
        self.assertEqual(self.model.trees, set())
        self.assertIn(Coordinate(-2, 2), self.model.empty)

    def test_bridged_cell_survives_reobservation(self):
        self.model.apply_observation(["     ", "  ~  "] + OPEN[2:])
        water = Coordinate(0, 1)
        self.model.commit_bridge([water])
        self.model.apply_observation(["     ", "  ~  "] + OPEN[2:])
        self.assertEqual(self.model.tile_at(water), Tile.TEMPORARY)
        self.assertIn(water, self.model.water)

    def test_cells_outside_window_are_ignored(self):
        model = WorldModel(AgentConfig(max_size=5))
        model.pose.position = Coordinate(5, 0)
        model.apply_observation(["    k"] + OPEN[1:])
        self.assertEqual(model.tile_at(Coordinate(7, 2)), Tile.UNKNOWN)
        self.assertEqual(model.keys, set())
        self.assertEqual(model.tile_at(Coordinate(4, 0)), Tile.EMPTY)


class TestMoves(unittest.TestCase):
    """Mirroring committed actions into the model."""

    def setUp(self):
        self.model = WorldModel()

    def _ahead(self, symbol):
        self.model.apply_observation(["     ", f"  {symbol}  "] + OPEN[2:])
        return Coordinate(0, 1)

    def test_turns_only_change_facing(self):
        self.model.apply_move(Action.LEFT)
        self.assertEqual(self.model.pose.facing, Direction.LEFT)
        self.model.apply_move(Action.LEFT)
        self.assertEqual(self.model.pose.facing, Direction.DOWN)
        self.model.apply_move("R")
        self.assertEqual(self.model.pose.facing, Direction.LEFT)
        self.assertEqual(self.model.pose.position, Coordinate(0, 0))
        self.assertEqual(self.model.move_count, 3)

    def test_forward_advances(self):
        self._ahead(" ")
        self.model.apply_move(Action.FORWARD)
        self.assertEqual(self.model.pose.position, Coordinate(0, 1))

    def test_collect_stone(self):
        cell = self._ahead("o")
        self.model.apply_move(Action.FORWARD)
        self.assertEqual(self.model.inventory.stones, 1)
        self.assertNotIn(cell, self.model.stones)
        self.assertEqual(self.model.tile_at(cell), Tile.EMPTY)
        self.assertEqual(self.model.pose.position, cell)

    def test_collect_tools_and_treasure(self):
        for symbol, attr in (("a", "has_axe"), ("k", "has_key"), ("$", "has_treasure")):
            model = WorldModel()
            model.apply_observation(["     ", f"  {symbol}  "] + OPEN[2:])
            model.apply_move(Action.FORWARD)
            self.assertTrue(getattr(model.inventory, attr), symbol)
        self.assertEqual(model.treasure, Coordinate(0, 1))

    def test_chop_needs_axe(self):
        cell = self._ahead("T")
        self.model.apply_move(Action.CHOP)
        self.assertEqual(self.model.inventory.rafts, 0)
        self.assertIn(cell, self.model.trees)

        self.model.inventory.has_axe = True
        self.model.apply_move(Action.CHOP)
        self.assertEqual(self.model.inventory.rafts, 1)
        self.assertNotIn(cell, self.model.trees)
        self.assertEqual(self.model.pose.position, Coordinate(0, 0))

    def test_walking_into_tree_with_axe_yields_raft(self):
        self._ahead("T")
        self.model.inventory.has_axe = True
        self.model.apply_move(Action.FORWARD)
        self.assertEqual(self.model.inventory.rafts, 1)
        self.assertEqual(self.model.trees, set())

    def test_rafts_are_per_model(self):
        self._ahead("T")
        self.model.inventory.has_axe = True
        self.model.apply_move(Action.CHOP)
        self.assertEqual(WorldModel().inventory.rafts, 0)

    def test_unlock_needs_key(self):
        cell = self._ahead("-")
        self.model.apply_move(Action.UNLOCK)
        self.assertIn(cell, self.model.doors)
        self.model.inventory.has_key = True
        self.model.apply_move(Action.UNLOCK)
        self.assertNotIn(cell, self.model.doors)
        self.assertEqual(self.model.pose.position, Coordinate(0, 0))

    def test_unlock_unindexed_door_is_harmless(self):
        self.model.inventory.has_key = True
        self.model.apply_move(Action.UNLOCK)  # unknown cell ahead
        self.assertEqual(self.model.doors, set())

    def test_crossing_bridged_water_spends_stone(self):
        cell = self._ahead("~")
        self.model.inventory.stones = 2
        self.model.commit_bridge([cell])
        self.model.apply_move(Action.FORWARD)
        self.assertEqual(self.model.inventory.stones, 1)
        self.assertEqual(self.model.tile_at(cell), Tile.STONE_PLACED)
        self.assertNotIn(cell, self.model.water)
        self.assertEqual(self.model.pose.position, cell)

    def test_stone_count_never_negative(self):
        cell = self._ahead("~")
        self.model.commit_bridge([cell])
        self.model.apply_move(Action.FORWARD)
        self.assertEqual(self.model.inventory.stones, 0)


class TestBridgingMarks(unittest.TestCase):
    """Speculative and committed TEMPORARY marks."""

    def setUp(self):
        self.model = WorldModel()
        self.model.apply_observation([
            "     ",
            " ~~  ",
            "     ",
            "   ~ ",
            "     ",
        ])

    def test_speculation_is_reverted(self):
        cells = [Coordinate(-1, 1), Coordinate(0, 1)]
        with self.model.speculate(cells):
            for cell in cells:
                self.assertEqual(self.model.tile_at(cell), Tile.TEMPORARY)
        for cell in cells:
            self.assertEqual(self.model.tile_at(cell), Tile.WATER)

    def test_speculation_is_reverted_on_error(self):
        cell = Coordinate(1, -1)
        with self.assertRaises(RuntimeError):
            with self.model.speculate([cell]):
                raise RuntimeError("trial failed")
        self.assertEqual(self.model.tile_at(cell), Tile.WATER)

    def test_only_water_can_be_marked(self):
        with self.assertRaises(ValueError):
            with self.model.speculate([Coordinate(2, 2)]):
                pass
        with self.assertRaises(ValueError):
            self.model.commit_bridge([Coordinate(2, 2)])

    def test_commit_requires_contiguous_cells(self):
        with self.assertRaises(ValueError):
            self.model.commit_bridge([Coordinate(0, 1), Coordinate(1, -1)])
        self.assertEqual(self.model.tile_at(Coordinate(0, 1)), Tile.WATER)

    def test_grid_view_is_read_only(self):
        with self.assertRaises(ValueError):
            self.model.grid[0, 0] = Tile.EMPTY


class TestReporting(unittest.TestCase):

    def test_render_known_region(self):
        model = WorldModel()
        model.apply_observation(["*****"] + OPEN[1:])
        rendered = model.render().split("\n")
        self.assertEqual(len(rendered), 5)
        self.assertEqual(rendered[0], "*****")
        self.assertEqual(rendered[2], "  ^  ")

    def test_summary_returns_string(self):
        summary = WorldModel().summary()
        self.assertIsInstance(summary, str)
        self.assertIn("World Model", summary)


if __name__ == "__main__":
    unittest.main()
