"""Maze grid, spatial schemas and pathfinding.

World generation lives in :mod:`mogsim.environment.generation`; it is not
re-exported here because it depends on the entity schemas in
:mod:`mogsim.schemas`, which in turn depend on this package.
"""

from .grid import CARDINAL_OFFSETS, MazeGrid
from .schemas import Cell, CellType, Position, Resources, cell_id, parse_cell_id
from .pathfinding import (
    find_path,
    flood_fill,
    flood_fill_regions,
    is_connected,
    known_passability,
    manhattan,
)

__all__ = [
    "CARDINAL_OFFSETS",
    "MazeGrid",
    "Cell",
    "CellType",
    "Position",
    "Resources",
    "cell_id",
    "parse_cell_id",
    "find_path",
    "flood_fill",
    "flood_fill_regions",
    "is_connected",
    "known_passability",
    "manhattan",
]
