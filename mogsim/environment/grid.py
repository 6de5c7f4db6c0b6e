"""Maze grid container.

The grid is a plain dataclass holding a row-major ``cells[y][x]`` matrix of
pydantic :class:`~mogsim.environment.schemas.Cell` models. Lookups outside
the bounds return ``None`` rather than raising so callers can scan
neighbourhoods without bounds checks of their own.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Iterator, List, Optional, Tuple

from .schemas import Cell, CellType, Position

# Cardinal offsets in scan order: left, right, up, down.
CARDINAL_OFFSETS: Tuple[Tuple[int, int], ...] = ((-1, 0), (1, 0), (0, -1), (0, 1))

PassabilityFn = Callable[[int, int], bool]


@dataclass
class MazeGrid:
    """Rectangular maze of ``width`` x ``height`` cells."""

    width: int
    height: int
    cells: List[List[Cell]] = field(default_factory=list)

    def __post_init__(self) -> None:
        if not self.cells:
            self.cells = [
                [Cell(position=Position(x=x, y=y)) for x in range(self.width)]
                for y in range(self.height)
            ]

    @classmethod
    def filled(cls, width: int, height: int, cell_type: CellType = "wall") -> "MazeGrid":
        grid = cls(width=width, height=height)
        for cell in grid.iter_cells():
            cell.type = cell_type
        return grid

    def in_bounds(self, x: int, y: int) -> bool:
        return 0 <= x < self.width and 0 <= y < self.height

    def get(self, x: int, y: int) -> Optional[Cell]:
        if not self.in_bounds(x, y):
            return None
        return self.cells[y][x]

    def at(self, position: Position) -> Optional[Cell]:
        return self.get(position.x, position.y)

    def is_passable(self, x: int, y: int) -> bool:
        cell = self.get(x, y)
        return cell is not None and cell.is_passable()

    def neighbors(self, x: int, y: int) -> List[Cell]:
        """In-bounds 4-neighbours in left, right, up, down order."""
        result = []
        for dx, dy in CARDINAL_OFFSETS:
            cell = self.get(x + dx, y + dy)
            if cell is not None:
                result.append(cell)
        return result

    def passable_neighbors(self, x: int, y: int) -> List[Cell]:
        return [cell for cell in self.neighbors(x, y) if cell.is_passable()]

    def iter_cells(self) -> Iterator[Cell]:
        """Yield every cell in row-major scan order."""
        for row in self.cells:
            yield from row

    def cells_of_type(self, *types: CellType) -> List[Cell]:
        return [cell for cell in self.iter_cells() if cell.type in types]

    def passability(self) -> List[List[bool]]:
        """Boolean ``[y][x]`` view of passable cells for the pathfinder."""
        return [[cell.is_passable() for cell in row] for row in self.cells]

    def render_ascii(self) -> str:
        """Debug rendering: ``#`` wall, ``.`` path, ``B`` basin, ``D`` dungeon."""
        glyphs = {"wall": "#", "path": ".", "basin": "B", "dungeon": "D"}
        return "\n".join("".join(glyphs[cell.type] for cell in row) for row in self.cells)
