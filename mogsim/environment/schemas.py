"""Pydantic schemas for the maze grid.

Cells are the single source of truth for spatial occupancy. Links to the
basin or dungeon that owns a cell are stored as plain ids; the registries in
``mogsim.world`` resolve them.
"""

from __future__ import annotations

from typing import Literal, Optional

from pydantic import BaseModel, Field

CellType = Literal["wall", "path", "basin", "dungeon"]


def cell_id(x: int, y: int) -> str:
    """Return the canonical ``"x-y"`` id for a grid coordinate."""
    return f"{x}-{y}"


def parse_cell_id(value: str) -> tuple[int, int]:
    """Inverse of :func:`cell_id`. Raises ``ValueError`` on malformed ids."""
    x_str, sep, y_str = value.partition("-")
    if not sep:
        raise ValueError(f"Malformed cell id {value!r}; expected 'x-y'")
    return int(x_str), int(y_str)


class Position(BaseModel):
    """Integer grid coordinate."""

    x: int
    y: int

    def as_tuple(self) -> tuple[int, int]:
        return self.x, self.y

    def manhattan(self, other: "Position") -> int:
        return abs(self.x - other.x) + abs(self.y - other.y)


class Resources(BaseModel):
    """Consumable amounts held by a cell or a basin pool."""

    food: int = Field(0, ge=0)
    water: int = Field(0, ge=0)
    health: int = Field(0, ge=0, description="Health replenishment resource")
    energy: int = Field(0, ge=0, description="Energy replenishment resource")

    def add(self, food: int = 0, water: int = 0, health: int = 0, energy: int = 0) -> None:
        self.food = max(0, self.food + food)
        self.water = max(0, self.water + water)
        self.health = max(0, self.health + health)
        self.energy = max(0, self.energy + energy)

    def take(self, food: int = 0, water: int = 0, health: int = 0, energy: int = 0) -> "Resources":
        """Remove up to the requested amounts and return what was actually taken."""
        taken = Resources(
            food=min(self.food, max(0, food)),
            water=min(self.water, max(0, water)),
            health=min(self.health, max(0, health)),
            energy=min(self.energy, max(0, energy)),
        )
        self.food -= taken.food
        self.water -= taken.water
        self.health -= taken.health
        self.energy -= taken.energy
        return taken


class Cell(BaseModel):
    """A single square of the maze."""

    position: Position
    type: CellType = "wall"
    resources: Resources = Field(default_factory=Resources)
    discovered: bool = False
    last_visited_day: Optional[int] = None
    basin_id: Optional[str] = None
    dungeon_id: Optional[str] = None

    @property
    def id(self) -> str:
        return cell_id(self.position.x, self.position.y)

    @property
    def x(self) -> int:
        return self.position.x

    @property
    def y(self) -> int:
        return self.position.y

    def is_passable(self) -> bool:
        return self.type != "wall"

    def has_food_or_water(self) -> bool:
        return self.resources.food > 0 or self.resources.water > 0

    def add_resources(self, food: int, water: int, health: int = 0, energy: int = 0) -> None:
        self.resources.add(food, water, health, energy)

    def consume_resources(self, food: int, water: int, health: int = 0, energy: int = 0) -> Resources:
        """Consume resources, never going below zero.

        Returns:
            The amounts actually consumed (may be less than requested).
        """
        return self.resources.take(food, water, health, energy)

    def mark_discovered(self) -> None:
        self.discovered = True

    def convert_to_basin(self, basin_id: str) -> None:
        self.type = "basin"
        self.basin_id = basin_id
        self.dungeon_id = None

    def convert_to_dungeon(self, dungeon_id: str) -> None:
        self.type = "dungeon"
        self.dungeon_id = dungeon_id
        self.basin_id = None

    def convert_to_path(self) -> None:
        self.type = "path"
        self.basin_id = None
        self.dungeon_id = None

    def convert_to_wall(self) -> None:
        self.type = "wall"
        self.basin_id = None
        self.dungeon_id = None
