"""
Save/load contract for simulation state.

``save_simulation`` flattens a :class:`~mogsim.world.World` into a
:class:`SaveData` snapshot of deep copies; ``load_simulation`` validates a
snapshot (model, dict or JSON text) and rebuilds a world from it. Where the
snapshot is written to (files, browser storage, a database) is up to the
host.

Loader guarantees:
- Nothing is partially reconstructed: every check runs before the world is built
- Cell -> basin/dungeon links, basin cell lists and basin populations are
  rebuilt from the flattened records
- Any inconsistency raises :class:`InvalidSaveError`
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, Field, ValidationError

from mogsim.environment.grid import MazeGrid
from mogsim.environment.schemas import Cell, Position, Resources
from mogsim.schemas import Agent, Basin, Dungeon, Structure
from mogsim.world import World

SAVE_VERSION = "1.0.0"


class InvalidSaveError(ValueError):
    """Raised when a save payload cannot be turned back into a world."""

    def __init__(self, *, reason: str, underlying: Optional[Exception] = None) -> None:
        self.reason = reason
        self.underlying = underlying
        message = f"Invalid save: {reason}"
        if underlying is not None:
            message += f"\n{underlying}"
        message += (
            "\n\nRemediation tips:\n"
            "  - Re-export the save with save_simulation() from the same mogsim version\n"
            "  - Check that the payload was not truncated or edited by hand"
        )
        super().__init__(message)


class SavedBasin(BaseModel):
    """Basin record as stored; cell ids are rebuilt from the grid on load."""

    id: str
    name: str
    location: Position
    radius: int = Field(2, ge=2)
    agent_ids: List[str] = Field(default_factory=list)
    resources: Resources = Field(default_factory=Resources)
    structures: List[Structure] = Field(default_factory=list)
    history: List[str] = Field(default_factory=list)


class SaveData(BaseModel):
    """Complete persisted state of a simulation."""

    version: str = SAVE_VERSION
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    seed: Optional[str] = None
    current_day: int = Field(0, ge=0)
    maze_width: int = Field(..., ge=1)
    maze_height: int = Field(..., ge=1)
    grid: List[List[Cell]]
    basins: List[SavedBasin] = Field(default_factory=list)
    dungeons: List[Dungeon] = Field(default_factory=list)
    agents: List[Agent] = Field(default_factory=list)
    events: List[str] = Field(default_factory=list)


def save_simulation(world: World) -> SaveData:
    """Snapshot ``world``. The result shares no objects with the world."""
    return SaveData(
        seed=world.seed,
        current_day=world.day,
        maze_width=world.grid.width,
        maze_height=world.grid.height,
        grid=[[cell.model_copy(deep=True) for cell in row] for row in world.grid.cells],
        basins=[
            SavedBasin(
                id=basin.id,
                name=basin.name,
                location=basin.location.model_copy(),
                radius=basin.radius,
                agent_ids=list(basin.population),
                resources=basin.resources.model_copy(),
                structures=[structure.model_copy(deep=True) for structure in basin.structures],
                history=list(basin.history),
            )
            for basin in world.basins.values()
        ],
        dungeons=[dungeon.model_copy(deep=True) for dungeon in world.dungeons.values()],
        agents=[agent.model_copy(deep=True) for agent in world.agents.values()],
        events=list(world.event_log),
    )


def load_simulation(payload: Union[SaveData, Dict[str, Any], str, bytes]) -> World:
    """Validate ``payload`` and rebuild the world it describes.

    Args:
        payload: A :class:`SaveData`, its ``model_dump`` dict, or JSON text.

    Returns:
        A new :class:`World` with fresh objects.

    Raises:
        InvalidSaveError: If the payload is malformed or internally inconsistent.
    """
    data = _parse(payload)
    _check_version(data.version)
    _check_grid(data)

    basin_ids = {basin.id for basin in data.basins}
    dungeon_ids = {dungeon.id for dungeon in data.dungeons}
    agent_ids = {agent.id for agent in data.agents}
    _check_references(data, basin_ids, dungeon_ids, agent_ids)

    grid = MazeGrid(width=data.maze_width, height=data.maze_height, cells=data.grid)
    cell_ids: Dict[str, List[str]] = {basin_id: [] for basin_id in basin_ids}
    for cell in grid.iter_cells():
        if cell.type == "basin" and cell.basin_id is not None:
            cell_ids[cell.basin_id].append(cell.id)

    basins = [
        Basin(
            id=saved.id,
            name=saved.name,
            location=saved.location,
            radius=saved.radius,
            population=list(saved.agent_ids),
            resources=saved.resources,
            structures=saved.structures,
            history=saved.history,
            cell_ids=cell_ids[saved.id],
        )
        for saved in data.basins
    ]

    world = World.build(
        grid,
        basins,
        data.dungeons,
        data.agents,
        day=data.current_day,
        seed=data.seed,
    )
    for agent in world.agents.values():
        basin = world.basins.get(agent.basin_origin)
        if basin is not None:
            basin.add_agent(agent.id)
    world.event_log = list(data.events)
    return world


def _parse(payload: Union[SaveData, Dict[str, Any], str, bytes]) -> SaveData:
    try:
        if isinstance(payload, SaveData):
            # Round-trip through a dump so the world never aliases the caller's model
            return SaveData.model_validate(payload.model_dump())
        if isinstance(payload, (str, bytes)):
            return SaveData.model_validate_json(payload)
        if isinstance(payload, dict):
            # Model instances inside a dict are not revalidated, so copy them out
            return SaveData.model_validate(payload).model_copy(deep=True)
    except ValidationError as exc:
        raise InvalidSaveError(reason="payload failed schema validation", underlying=exc) from exc
    raise InvalidSaveError(reason=f"unsupported payload type {type(payload).__name__}")


def _check_version(version: str) -> None:
    major = version.split(".", 1)[0]
    if major != SAVE_VERSION.split(".", 1)[0]:
        raise InvalidSaveError(reason=f"unsupported save version {version!r} (expected {SAVE_VERSION})")


def _check_grid(data: SaveData) -> None:
    if len(data.grid) != data.maze_height:
        raise InvalidSaveError(
            reason=f"grid has {len(data.grid)} rows but maze_height is {data.maze_height}"
        )
    for y, row in enumerate(data.grid):
        if len(row) != data.maze_width:
            raise InvalidSaveError(
                reason=f"grid row {y} has {len(row)} cells but maze_width is {data.maze_width}"
            )
        for x, cell in enumerate(row):
            if cell.position.x != x or cell.position.y != y:
                raise InvalidSaveError(
                    reason=f"cell at index ({x}, {y}) claims position "
                    f"({cell.position.x}, {cell.position.y})"
                )


def _check_references(
    data: SaveData,
    basin_ids: set,
    dungeon_ids: set,
    agent_ids: set,
) -> None:
    for row in data.grid:
        for cell in row:
            if cell.basin_id is not None and cell.basin_id not in basin_ids:
                raise InvalidSaveError(reason=f"cell {cell.id} references unknown basin {cell.basin_id!r}")
            if cell.dungeon_id is not None and cell.dungeon_id not in dungeon_ids:
                raise InvalidSaveError(reason=f"cell {cell.id} references unknown dungeon {cell.dungeon_id!r}")

    for basin in data.basins:
        missing = [agent_id for agent_id in basin.agent_ids if agent_id not in agent_ids]
        if missing:
            raise InvalidSaveError(reason=f"basin {basin.id} lists unknown agents {missing}")

    for agent in data.agents:
        if agent.basin_origin not in basin_ids:
            raise InvalidSaveError(
                reason=f"agent {agent.id} originates from unknown basin {agent.basin_origin!r}"
            )
