"""Procedural world generation.

Pipeline (all steps share one ``random.Random`` seeded from the seed string):

1. Randomised Prim's carving from an odd-aligned interior cell
2. Connectivity repair: corridors join every stray path region to the main one
3. Basin placement with a guaranteed exit outside the basin radius
4. Dungeon placement with exactly one entrance each
5. Resource distribution (basin grants, distance-scaled path resources, hotspots)

When a placement phase cannot find enough eligible cells it returns an empty
list rather than raising.
"""

from __future__ import annotations

import random
import uuid
from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Set, Tuple

from mogsim.catalogs import random_augment, random_basin_name, random_dungeon_name
from mogsim.config import Config
from mogsim.logging_utils import log_deterministic
from mogsim.schemas import Basin, Dungeon

from .grid import CARDINAL_OFFSETS, MazeGrid
from .pathfinding import flood_fill_regions, manhattan
from .schemas import Cell, Position, parse_cell_id

MAX_PLACEMENT_ATTEMPTS = 100
DUNGEON_MIN_BASIN_DISTANCE = 5
DUNGEON_MIN_SPACING = 3
RESOURCE_FALLOFF_DISTANCE = 20


@dataclass
class GeneratedWorld:
    """Output of :func:`generate_world`."""

    grid: MazeGrid
    basins: List[Basin] = field(default_factory=list)
    dungeons: List[Dungeon] = field(default_factory=list)
    seed: str = ""


def _validate_dimensions(width: int, height: int) -> None:
    if width < 3 or height < 3:
        raise ValueError(
            f"Maze must be at least 3x3 (got {width}x{height}). "
            "Smaller grids have no interior cell to start carving from."
        )


def too_close(position: Position, others: Iterable[Position], min_distance: int) -> bool:
    """True when ``position`` is strictly closer than ``min_distance`` to any of ``others``."""
    return any(manhattan(position, other) < min_distance for other in others)


# ============================================================================
# Maze carving
# ============================================================================


def generate_maze(width: int, height: int, rng: Optional[random.Random] = None) -> MazeGrid:
    """Carve a connected maze of path cells out of a solid wall grid."""
    _validate_dimensions(width, height)
    rng = rng or random.Random()
    grid = MazeGrid.filled(width, height, "wall")

    start_x = rng.randrange((width - 1) // 2) * 2 + 1
    start_y = rng.randrange((height - 1) // 2) * 2 + 1
    grid.cells[start_y][start_x].type = "path"

    frontier: List[Tuple[int, int]] = []
    queued: Set[Tuple[int, int]] = set()

    def push_walls(x: int, y: int) -> None:
        for cell in grid.neighbors(x, y):
            xy = (cell.x, cell.y)
            if cell.type == "wall" and xy not in queued:
                frontier.append(xy)
                queued.add(xy)

    push_walls(start_x, start_y)
    while frontier:
        x, y = frontier.pop(rng.randrange(len(frontier)))
        queued.discard((x, y))
        path_neighbors = sum(1 for cell in grid.neighbors(x, y) if cell.type == "path")
        # Only extend into walls that touch the maze at exactly one point
        if path_neighbors == 1:
            grid.cells[y][x].type = "path"
            push_walls(x, y)

    ensure_connectivity(grid)
    return grid


def ensure_connectivity(grid: MazeGrid) -> int:
    """Join every path region to the first one found.

    Returns:
        Number of corridors carved.
    """
    carved = 0
    regions = flood_fill_regions(grid, "path")
    while len(regions) > 1:
        main = regions[0]
        # First closest pair wins ties
        _, start, end = min(
            (
                (abs(ax - bx) + abs(ay - by), (ax, ay), (bx, by))
                for region in regions[1:]
                for ax, ay in region
                for bx, by in main
            ),
            key=lambda candidate: candidate[0],
        )
        _carve_corridor(grid, start, end)
        carved += 1
        regions = flood_fill_regions(grid, "path")
    return carved


def _carve_corridor(grid: MazeGrid, start: Tuple[int, int], end: Tuple[int, int]) -> None:
    """Open an x-then-y corridor between two coordinates."""
    x, y = start
    step_x = (end[0] > x) - (end[0] < x)
    step_y = (end[1] > y) - (end[1] < y)
    while x != end[0]:
        x += step_x
        if grid.cells[y][x].type == "wall":
            grid.cells[y][x].type = "path"
    while y != end[1]:
        y += step_y
        if grid.cells[y][x].type == "wall":
            grid.cells[y][x].type = "path"


# ============================================================================
# Basins
# ============================================================================


def place_basins(grid: MazeGrid, count: int, rng: random.Random) -> List[Basin]:
    """Place up to ``count`` basins on path cells, spaced apart.

    Each basin claims the non-wall cells within its Manhattan radius (2-3)
    that no other basin owns, then opens an exit one step beyond the radius.
    """
    if count < 0:
        raise ValueError(f"Basin count must not be negative (got {count})")
    candidates = grid.cells_of_type("path")
    if len(candidates) < count:
        return []

    min_distance = min(grid.width, grid.height) // 4
    basins: List[Basin] = []
    for index in range(count):
        for _ in range(MAX_PLACEMENT_ATTEMPTS):
            cell = rng.choice(candidates)
            if cell.type != "path":
                continue
            if too_close(cell.position, (basin.location for basin in basins), min_distance):
                continue

            basin = Basin(
                id=f"basin-{index}",
                name=random_basin_name(rng),
                location=cell.position.model_copy(),
                radius=2 + rng.randrange(2),
            )
            _claim_basin_cells(grid, basin)
            _open_basin_exit(grid, basin)
            basins.append(basin)
            break
    return basins


def _claim_basin_cells(grid: MazeGrid, basin: Basin) -> None:
    cx, cy, radius = basin.location.x, basin.location.y, basin.radius
    for y in range(cy - radius, cy + radius + 1):
        for x in range(cx - radius, cx + radius + 1):
            cell = grid.get(x, y)
            if cell is None or abs(x - cx) + abs(y - cy) > radius:
                continue
            if cell.type == "wall" or _owned_by_other(cell, basin):
                continue
            basin.add_cell(cell)


def _owned_by_other(cell: Cell, basin: Basin) -> bool:
    return cell.type == "basin" and cell.basin_id != basin.id


def _open_basin_exit(grid: MazeGrid, basin: Basin) -> None:
    """Guarantee a passable cell at distance radius+1 reachable from the center."""
    cx, cy, radius = basin.location.x, basin.location.y, basin.radius
    reach = radius + 1
    in_bounds = [
        (dx, dy) for dx, dy in CARDINAL_OFFSETS
        if grid.in_bounds(cx + dx * reach, cy + dy * reach)
    ]
    walled = [
        (dx, dy) for dx, dy in in_bounds
        if grid.cells[cy + dy * reach][cx + dx * reach].type == "wall"
    ]
    if walled:
        direction = walled[0]
    elif in_bounds:
        direction = in_bounds[0]
    else:
        return

    dx, dy = direction
    for step in range(1, reach + 1):
        cell = grid.cells[cy + dy * step][cx + dx * step]
        if cell.type != "wall":
            continue
        if step < reach:
            basin.add_cell(cell)
        else:
            cell.convert_to_path()


# ============================================================================
# Dungeons
# ============================================================================


def place_dungeons(
    grid: MazeGrid,
    basins: List[Basin],
    count: int,
    rng: random.Random,
) -> List[Dungeon]:
    """Place up to ``count`` single-entrance dungeons away from basins."""
    if count < 0:
        raise ValueError(f"Dungeon count must not be negative (got {count})")

    def far_from_basins(cell: Cell) -> bool:
        # Keep clear of basin cells and their exits
        return all(
            manhattan(cell.position, basin.location)
            >= max(DUNGEON_MIN_BASIN_DISTANCE, basin.radius + 3)
            for basin in basins
        )

    pool = [cell for cell in grid.cells_of_type("path") if far_from_basins(cell)]
    dead_ends = [cell for cell in pool if len(grid.passable_neighbors(cell.x, cell.y)) == 1]
    if count and len(dead_ends) >= count:
        pool = dead_ends
    if len(pool) < count:
        return []

    min_distance = max(min(grid.width, grid.height) // 5, DUNGEON_MIN_SPACING)
    dungeons: List[Dungeon] = []
    for index in range(count):
        for _ in range(MAX_PLACEMENT_ATTEMPTS):
            cell = rng.choice(pool)
            if cell.type != "path":
                continue
            if too_close(cell.position, (dungeon.location for dungeon in dungeons), min_distance):
                continue

            dungeon = Dungeon(
                id=f"dungeon-{index}",
                name=random_dungeon_name(rng),
                location=cell.position.model_copy(),
                difficulty=1 + rng.randrange(10),
                augment_reward=random_augment(rng),
            )
            cell.convert_to_dungeon(dungeon.id)
            _enforce_single_entrance(grid, cell, rng)
            dungeons.append(dungeon)
            break
    return dungeons


def _enforce_single_entrance(grid: MazeGrid, cell: Cell, rng: random.Random) -> None:
    entrances = grid.passable_neighbors(cell.x, cell.y)
    if not entrances:
        options = [
            (dx, dy) for dx, dy in CARDINAL_OFFSETS
            if grid.in_bounds(cell.x + dx, cell.y + dy)
        ]
        dx, dy = rng.choice(options)
        grid.cells[cell.y + dy][cell.x + dx].convert_to_path()
        return
    for extra in entrances[1:]:
        extra.convert_to_wall()


# ============================================================================
# Resources
# ============================================================================


def distribute_resources(grid: MazeGrid, basins: List[Basin], rng: random.Random) -> None:
    """Seed food and water across the maze. Only ever adds resources."""
    for basin in basins:
        basin.distribute_resources(grid, rng)

    for basin in basins:
        for cell in _basin_cells(grid, basin):
            cell.add_resources(50 + rng.randrange(50), 70 + rng.randrange(30))

    centers = [basin.location for basin in basins]
    for cell in grid.iter_cells():
        if cell.type not in ("path", "dungeon"):
            continue
        if centers:
            nearest = min(manhattan(cell.position, center) for center in centers)
            factor = max(0.0, 1 - nearest / RESOURCE_FALLOFF_DISTANCE)
        else:
            factor = 0.0
        food = int(rng.random() * 10 * factor)
        water = int(rng.random() * 15 * factor)
        cell.add_resources(food, water)

    for _ in range(grid.width * grid.height // 100):
        cell = grid.cells[rng.randrange(grid.height)][rng.randrange(grid.width)]
        food = 10 + rng.randrange(20)
        water = 15 + rng.randrange(25)
        if cell.type != "wall":
            cell.add_resources(food, water)


def _basin_cells(grid: MazeGrid, basin: Basin) -> List[Cell]:
    cells = (grid.get(*parse_cell_id(value)) for value in basin.cell_ids)
    return [cell for cell in cells if cell is not None and cell.basin_id == basin.id]


# ============================================================================
# Entry point
# ============================================================================


def generate_world(
    width: int,
    height: int,
    basin_count: int,
    dungeon_count: int,
    seed: Optional[str] = None,
    verbose: Optional[bool] = None,
) -> GeneratedWorld:
    """Build a complete world: maze, basins, dungeons and resources.

    Args:
        width: Grid width (>= 3)
        height: Grid height (>= 3)
        basin_count: Number of basins requested (>= 0)
        dungeon_count: Number of dungeons requested (>= 0)
        seed: Seed string; identical seeds produce identical worlds. A fresh
            seed is drawn and recorded when omitted.
        verbose: Print a summary line (defaults to ``Config.VERBOSE``)

    Returns:
        GeneratedWorld holding the grid, placed basins and dungeons, and the seed.
    """
    _validate_dimensions(width, height)
    if basin_count < 0 or dungeon_count < 0:
        raise ValueError(
            f"Basin and dungeon counts must not be negative "
            f"(got basins={basin_count}, dungeons={dungeon_count})"
        )

    if seed is None:
        seed = uuid.uuid4().hex[:12]
    rng = random.Random(seed)

    grid = generate_maze(width, height, rng)
    basins = place_basins(grid, basin_count, rng)
    dungeons = place_dungeons(grid, basins, dungeon_count, rng)
    distribute_resources(grid, basins, rng)

    if Config.VERBOSE if verbose is None else verbose:
        log_deterministic(
            f"Generated {width}x{height} maze (seed={seed}): "
            f"{len(basins)}/{basin_count} basins, {len(dungeons)}/{dungeon_count} dungeons"
        )

    return GeneratedWorld(grid=grid, basins=basins, dungeons=dungeons, seed=seed)
