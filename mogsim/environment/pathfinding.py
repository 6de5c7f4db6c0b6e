"""A* pathfinding and region analysis on the maze grid.

Movement is 4-connected with uniform step cost, so Manhattan distance is an
admissible heuristic. The open set is a binary heap keyed by
``(f, insertion_counter)``; equal ``f`` scores pop in the order they were
pushed, which keeps paths stable for a given grid.

``passable`` arguments accept either a callable ``(x, y) -> bool`` or a
precomputed ``[y][x]`` boolean matrix such as :meth:`MazeGrid.passability`.
"""

from __future__ import annotations

import heapq
from itertools import count
from typing import Callable, Dict, Iterable, List, Optional, Sequence, Set, Tuple, Union

from .grid import CARDINAL_OFFSETS, MazeGrid
from .schemas import CellType, Position, cell_id

Passability = Union[Callable[[int, int], bool], Sequence[Sequence[bool]]]
Coord = Tuple[int, int]


def manhattan(a: Position, b: Position) -> int:
    return abs(a.x - b.x) + abs(a.y - b.y)


def _as_predicate(passable: Passability) -> Callable[[int, int], bool]:
    if callable(passable):
        return passable

    matrix = passable

    def lookup(x: int, y: int) -> bool:
        if y < 0 or x < 0 or y >= len(matrix):
            return False
        row = matrix[y]
        if x >= len(row):
            return False
        return bool(row[x])

    return lookup


def known_passability(grid: MazeGrid, known_map: Iterable[str]) -> Callable[[int, int], bool]:
    """Passability restricted to the cells an agent has already seen."""
    known = set(known_map)

    def lookup(x: int, y: int) -> bool:
        return grid.is_passable(x, y) and cell_id(x, y) in known

    return lookup


def find_path(start: Position, goal: Position, passable: Passability) -> List[Position]:
    """Find the shortest 4-connected route from ``start`` to ``goal``.

    Args:
        start: Starting position (not required to be passable).
        goal: Destination; must be passable.
        passable: Callable or boolean matrix describing walkable cells.

    Returns:
        Positions after the start up to and including the goal, or an empty
        list when already at the goal, the goal is blocked, or no route exists.
    """
    is_open = _as_predicate(passable)
    if start.x == goal.x and start.y == goal.y:
        return []
    if not is_open(goal.x, goal.y):
        return []

    start_xy: Coord = (start.x, start.y)
    goal_xy: Coord = (goal.x, goal.y)

    def heuristic(xy: Coord) -> int:
        return abs(xy[0] - goal_xy[0]) + abs(xy[1] - goal_xy[1])

    counter = count()
    open_heap: List[Tuple[int, int, Coord]] = [(heuristic(start_xy), next(counter), start_xy)]
    came_from: Dict[Coord, Coord] = {}
    g_score: Dict[Coord, int] = {start_xy: 0}
    closed: Set[Coord] = set()

    while open_heap:
        _, _, current = heapq.heappop(open_heap)
        if current == goal_xy:
            return _reconstruct(came_from, current, start_xy)
        if current in closed:
            continue
        closed.add(current)

        cx, cy = current
        for dx, dy in CARDINAL_OFFSETS:
            nxt = (cx + dx, cy + dy)
            if nxt in closed or not is_open(*nxt):
                continue
            tentative = g_score[current] + 1
            if tentative < g_score.get(nxt, tentative + 1):
                came_from[nxt] = current
                g_score[nxt] = tentative
                heapq.heappush(open_heap, (tentative + heuristic(nxt), next(counter), nxt))

    return []


def _reconstruct(came_from: Dict[Coord, Coord], current: Coord, start: Coord) -> List[Position]:
    steps: List[Position] = []
    while current != start:
        steps.append(Position(x=current[0], y=current[1]))
        current = came_from[current]
    steps.reverse()
    return steps


def flood_fill(grid: MazeGrid, origin: Position, passable: Optional[Passability] = None) -> Set[Coord]:
    """All coordinates reachable from ``origin`` (explicit stack, no recursion)."""
    is_open = _as_predicate(passable) if passable is not None else grid.is_passable
    if not is_open(origin.x, origin.y):
        return set()
    seen: Set[Coord] = {(origin.x, origin.y)}
    stack: List[Coord] = [(origin.x, origin.y)]
    while stack:
        x, y = stack.pop()
        for dx, dy in CARDINAL_OFFSETS:
            nxt = (x + dx, y + dy)
            if nxt not in seen and is_open(*nxt):
                seen.add(nxt)
                stack.append(nxt)
    return seen


def flood_fill_regions(grid: MazeGrid, cell_type: CellType = "path") -> List[Set[Coord]]:
    """Partition all cells of ``cell_type`` into 4-connected regions.

    Regions are returned in scan order of their first cell.
    """

    def same_type(x: int, y: int) -> bool:
        cell = grid.get(x, y)
        return cell is not None and cell.type == cell_type

    regions: List[Set[Coord]] = []
    assigned: Set[Coord] = set()
    for cell in grid.iter_cells():
        xy = (cell.x, cell.y)
        if cell.type != cell_type or xy in assigned:
            continue
        region = flood_fill(grid, cell.position, same_type)
        assigned |= region
        regions.append(region)
    return regions


def is_connected(grid: MazeGrid) -> bool:
    """True when every passable cell is reachable from every other one."""
    passable_cells = [cell for cell in grid.iter_cells() if cell.is_passable()]
    if not passable_cells:
        return True
    reached = flood_fill(grid, passable_cells[0].position)
    return len(reached) == len(passable_cells)
