"""
Pydantic schemas for the MOG simulation engine.

Every entity that lives in a world (basins, dungeons, agents) and every
record the engine emits (events, outcomes, day summaries) is defined here.

Design Philosophy:
- Entities link to each other by id only; ``mogsim.world.World`` resolves ids
- Stat mutation always clamps to [0, 100]; clamping is never an error
- Dead agents are terminal: stat mutators become no-ops once status is dead
- Everything dumps to JSON-compatible dicts for the save format
"""

from __future__ import annotations

from typing import Dict, List, Literal, Mapping, Optional, Set

from pydantic import BaseModel, Field, field_validator, model_validator

from mogsim.environment.schemas import Position, Resources, cell_id, parse_cell_id

AgentStatusName = Literal["alive", "injured", "dead"]
Rarity = Literal["common", "uncommon", "rare", "legendary"]
EventCategory = Literal["random", "social", "combat", "resource", "dungeon", "discovery", "environmental"]
TargetType = Literal["agent", "cell", "basin", "dungeon"]
ItemType = Literal["food", "water", "tool", "weapon", "medicine"]

STAT_MIN = 0
STAT_MAX = 100
RELATIONSHIP_LIMIT = 100


def clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


# ============================================================================
# Traits and rewards
# ============================================================================


class Effect(BaseModel):
    """A typed numeric modifier carried by birthrights, augments and structures."""

    type: str
    value: int
    description: str = ""


class Birthright(BaseModel):
    """Innate trait every agent is born with."""

    id: str
    name: str
    description: str = ""
    effects: List[Effect] = Field(default_factory=list)


class Augment(BaseModel):
    """Reward granted by conquering a dungeon."""

    id: str
    name: str
    description: str = ""
    effects: List[Effect] = Field(default_factory=list)
    rarity: Rarity = "common"


class Achievement(BaseModel):
    id: str
    name: str
    description: str
    day: int
    importance: int = Field(5, description="1-10; 8+ makes the holder notable")


class Structure(BaseModel):
    """Something built inside a basin."""

    id: str
    name: str
    type: str
    effects: List[Effect] = Field(default_factory=list)
    build_day: int = 0
    condition: int = Field(100, ge=0, le=100)


class Item(BaseModel):
    """Something an agent carries. Using one applies its effects once."""

    id: str
    name: str
    type: ItemType
    effects: List[Effect] = Field(default_factory=list)
    quantity: int = Field(1, ge=0)


# ============================================================================
# Basins and dungeons
# ============================================================================


class Basin(BaseModel):
    """Settlement area owning a radius of cells around its center.

    ``population`` stores agent ids, ``cell_ids`` stores ``"x-y"`` ids of the
    cells converted to basin type during placement.
    """

    id: str
    name: str
    location: Position
    radius: int = Field(2, ge=2)
    population: List[str] = Field(default_factory=list)
    resources: Resources = Field(default_factory=Resources)
    structures: List[Structure] = Field(default_factory=list)
    history: List[str] = Field(default_factory=list)
    cell_ids: List[str] = Field(default_factory=list)

    @property
    def population_count(self) -> int:
        return len(self.population)

    def add_agent(self, agent_id: str) -> None:
        if agent_id not in self.population:
            self.population.append(agent_id)

    def remove_agent(self, agent_id: str) -> None:
        self.population = [existing for existing in self.population if existing != agent_id]

    def add_cell(self, cell) -> None:
        """Register ``cell`` as part of this basin and convert it."""
        if cell.id not in self.cell_ids:
            self.cell_ids.append(cell.id)
        cell.convert_to_basin(self.id)

    def add_resources(self, food: int, water: int, health: int = 0, energy: int = 0) -> None:
        self.resources.add(food, water, health, energy)

    def consume_resources(self, food: int, water: int, health: int = 0, energy: int = 0) -> Resources:
        return self.resources.take(food, water, health, energy)

    def add_structure(self, structure: Structure) -> None:
        self.structures.append(structure)

    def add_history_event(self, day: int, description: str) -> None:
        self.history.append(f"Day {day}: {description}")

    def living_population_count(self, agents: Mapping[str, "Agent"]) -> int:
        return sum(
            1 for agent_id in self.population
            if agent_id in agents and agents[agent_id].is_alive
        )

    def is_position_in_basin(self, position: Position) -> bool:
        return self.location.manhattan(position) <= self.radius

    def distribute_resources(self, grid, rng) -> None:
        """Split a one-off grant evenly over the basin's cells.

        Any remainder (or the whole grant when the basin owns no cells) goes
        to the basin's own pool.
        """
        total_food = 50 + rng.randrange(50)
        total_water = 70 + rng.randrange(30)
        total_health = 30 + rng.randrange(20)
        total_energy = 40 + rng.randrange(20)

        cells = [grid.get(x, y) for x, y in (parse_cell_id(cid) for cid in self.cell_ids)]
        cells = [cell for cell in cells if cell is not None]
        if not cells:
            self.add_resources(total_food, total_water, total_health, total_energy)
            return

        n = len(cells)
        per_food, per_water = total_food // n, total_water // n
        per_health, per_energy = total_health // n, total_energy // n
        for cell in cells:
            cell.add_resources(per_food, per_water, per_health, per_energy)

        self.add_resources(
            total_food - per_food * n,
            total_water - per_water * n,
            total_health - per_health * n,
            total_energy - per_energy * n,
        )


class DungeonAttempt(BaseModel):
    """One entry in a dungeon's history: a challenge or a dungeon event."""

    id: str
    day: int
    agent_id: str
    agent_name: str
    success: bool
    description: str


class Dungeon(BaseModel):
    """Single-entrance challenge room guarding one augment."""

    id: str
    name: str
    location: Position
    difficulty: int = 5
    augment_reward: Augment
    challenges_completed: int = 0
    history: List[DungeonAttempt] = Field(default_factory=list)

    @field_validator("difficulty", mode="before")
    @classmethod
    def _clamp_difficulty(cls, value: int) -> int:
        return int(clamp(int(value), 1, 10))

    def calculate_success_chance(self, agent_level: float) -> float:
        """Percent chance (1-30) that an agent of ``agent_level`` conquers this dungeon."""
        base_chance = 5 + agent_level / 2
        difficulty_factor = 1 - self.difficulty / 20
        return clamp(base_chance * difficulty_factor, 1, 30)

    def record_attempt(self, day: int, agent_id: str, agent_name: str, success: bool) -> str:
        attempt_id = f"dungeon-event-{self.id}-{day}-{agent_id}"
        if success:
            description = (
                f"{agent_name} conquered the {self.name} and gained the "
                f"{self.augment_reward.name} augment!"
            )
            self.challenges_completed += 1
        else:
            description = f"{agent_name} attempted to challenge the {self.name} but was defeated."

        self.history.append(
            DungeonAttempt(
                id=attempt_id,
                day=day,
                agent_id=agent_id,
                agent_name=agent_name,
                success=success,
                description=description,
            )
        )
        return attempt_id

    def get_augment_reward(self) -> Augment:
        return self.augment_reward.model_copy(deep=True)

    @property
    def total_attempts(self) -> int:
        return len(self.history)

    @property
    def successful_attempts(self) -> int:
        return sum(1 for attempt in self.history if attempt.success)

    @property
    def failed_attempts(self) -> int:
        return self.total_attempts - self.successful_attempts

    @property
    def success_rate(self) -> float:
        if not self.history:
            return 0.0
        return self.successful_attempts / self.total_attempts * 100


# ============================================================================
# Agents
# ============================================================================


class AgentStats(BaseModel):
    """Survival drives, each clamped to [0, 100]. Higher is better."""

    health: int = Field(100, ge=STAT_MIN, le=STAT_MAX)
    hunger: int = Field(100, ge=STAT_MIN, le=STAT_MAX, description="Satiation; 0 is starving")
    thirst: int = Field(100, ge=STAT_MIN, le=STAT_MAX, description="Hydration; 0 is parched")
    energy: int = Field(100, ge=STAT_MIN, le=STAT_MAX)
    morale: int = Field(100, ge=STAT_MIN, le=STAT_MAX)


STAT_NAMES = ("health", "hunger", "thirst", "energy", "morale")


class Agent(BaseModel):
    """A survivor wandering the maze.

    The agent's starting cell is always part of its known map. Once
    ``status`` is ``"dead"`` every stat mutator below becomes a no-op.
    """

    id: str
    name: str
    status: AgentStatusName = "alive"
    location: Position
    basin_origin: str
    stats: AgentStats = Field(default_factory=AgentStats)
    birthright: Birthright
    augment: Optional[Augment] = None
    inventory: List[Item] = Field(default_factory=list)
    known_map: Set[str] = Field(default_factory=set)
    relationships: Dict[str, int] = Field(default_factory=dict)
    history: List[str] = Field(default_factory=list)
    achievements: List[Achievement] = Field(default_factory=list)
    is_notable: bool = False
    days_survived: int = 0

    @model_validator(mode="after")
    def _discover_start(self) -> "Agent":
        self.known_map.add(cell_id(self.location.x, self.location.y))
        return self

    @property
    def is_alive(self) -> bool:
        return self.status != "dead"

    # -- stats --------------------------------------------------------------

    def adjust_stat(self, name: str, delta: int) -> None:
        """Add ``delta`` to stat ``name`` clamped to [0, 100].

        Health changes re-derive status.
        """
        if not self.is_alive:
            return
        if name not in STAT_NAMES:
            raise ValueError(f"Unknown agent stat {name!r}; expected one of {STAT_NAMES}")
        current = getattr(self.stats, name)
        setattr(self.stats, name, int(clamp(current + delta, STAT_MIN, STAT_MAX)))
        if name == "health":
            self.update_status()

    def update_status(self) -> None:
        health = self.stats.health
        if health <= 0:
            self.status = "dead"
        elif health < 30:
            self.status = "injured"
        elif self.status == "injured" and health >= 50:
            self.status = "alive"

    def apply_daily_decay(self) -> None:
        """Advance the agent's drives by one day."""
        if not self.is_alive:
            return
        stats = self.stats
        stats.hunger = max(STAT_MIN, stats.hunger - 10)
        stats.thirst = max(STAT_MIN, stats.thirst - 15)
        stats.energy = min(STAT_MAX, stats.energy + 5)
        stats.health = min(STAT_MAX, stats.health + 2)

        if stats.hunger <= 0 or stats.thirst <= 0 or stats.energy <= 0:
            stats.health = max(STAT_MIN, stats.health - 15)

        self.update_status()
        if self.is_alive:
            self.days_survived += 1

    def consume(self, food: int, water: int) -> None:
        if not self.is_alive:
            return
        self.stats.hunger = min(STAT_MAX, self.stats.hunger + food)
        self.stats.thirst = min(STAT_MAX, self.stats.thirst + water)
        if food > 0 or water > 0:
            self.stats.morale = min(STAT_MAX, self.stats.morale + 5)

    def rest(self) -> None:
        if not self.is_alive:
            return
        self.stats.energy = min(STAT_MAX, self.stats.energy + 20)
        if self.status != "injured":
            self.stats.health = min(STAT_MAX, self.stats.health + 5)

    # -- inventory ------------------------------------------------------------

    def add_item(self, item: Item) -> None:
        """Store a copy of ``item``, merging quantities with an item of the same id."""
        if not self.is_alive:
            return
        for held in self.inventory:
            if held.id == item.id:
                held.quantity += item.quantity
                return
        self.inventory.append(item.model_copy(deep=True))

    def use_item(self, item_id: str) -> bool:
        """Apply one unit of an item's stat effects.

        Returns:
            False when the agent is dead or holds none of the item.
        """
        if not self.is_alive:
            return False
        for index, held in enumerate(self.inventory):
            if held.id == item_id and held.quantity > 0:
                break
        else:
            return False

        for effect in held.effects:
            if effect.type in STAT_NAMES:
                self.adjust_stat(effect.type, effect.value)
        held.quantity -= 1
        if held.quantity <= 0:
            del self.inventory[index]
        return True

    # -- movement and knowledge ---------------------------------------------

    def move_to(self, position: Position) -> None:
        if not self.is_alive:
            return
        self.location = Position(x=position.x, y=position.y)
        self.discover_cell(cell_id(position.x, position.y))
        self.stats.energy = max(STAT_MIN, self.stats.energy - 5)

    def discover_cell(self, value: str) -> None:
        self.known_map.add(value)

    def knows_cell(self, value: str) -> bool:
        return value in self.known_map

    def update_relationship(self, agent_id: str, delta: int) -> None:
        if not self.is_alive or agent_id == self.id:
            return
        current = self.relationships.get(agent_id, 0)
        self.relationships[agent_id] = int(clamp(current + delta, -RELATIONSHIP_LIMIT, RELATIONSHIP_LIMIT))

    # -- history, rewards, notability ---------------------------------------

    def add_history_event(self, day: int, description: str) -> None:
        self.history.append(f"Day {day}: {description}")

    def add_achievement(self, achievement: Achievement) -> None:
        self.achievements.append(achievement)
        self.add_history_event(achievement.day, achievement.description)
        self.refresh_notability()

    def has_achievement(self, name: str) -> bool:
        return any(achievement.name == name for achievement in self.achievements)

    def gain_augment(self, augment: Augment) -> None:
        self.augment = augment
        self.refresh_notability()

    def compute_notability(self) -> bool:
        return (
            self.days_survived > 30
            or self.augment is not None
            or any(achievement.importance >= 8 for achievement in self.achievements)
        )

    def refresh_notability(self) -> None:
        self.is_notable = self.compute_notability()


# ============================================================================
# Events
# ============================================================================


class Outcome(BaseModel):
    """A single effect an event applies to one target."""

    type: str = Field(..., description="health, hunger/food, thirst/water, energy, morale, relationship")
    target_id: str
    target_type: TargetType
    value: int
    description: str = ""
    related_id: Optional[str] = Field(None, description="Other agent for relationship outcomes")


class Event(BaseModel):
    """Something that happened in the maze on a given day."""

    id: str
    day: int
    category: EventCategory
    description: str
    agent_ids: List[str] = Field(default_factory=list)
    location: Position
    basin_id: Optional[str] = None
    dungeon_id: Optional[str] = None
    outcomes: List[Outcome] = Field(default_factory=list)
    importance: int = 5

    @field_validator("importance", mode="before")
    @classmethod
    def _clamp_importance(cls, value: int) -> int:
        return int(clamp(int(value), 1, 10))

    def formatted(self) -> str:
        return f"Day {self.day}: {self.description}"

    def involves_agent(self, agent_id: str) -> bool:
        return agent_id in self.agent_ids

    def involves_basin(self, basin_id: str) -> bool:
        return self.basin_id == basin_id

    def involves_dungeon(self, dungeon_id: str) -> bool:
        return self.dungeon_id == dungeon_id

    def is_important(self, threshold: int = 7) -> bool:
        return self.importance >= threshold


class DaySummary(BaseModel):
    """Result of one simulation tick."""

    day: int
    events: List[str] = Field(default_factory=list, description="Action narrations then world events")
    world_events: List[Event] = Field(default_factory=list)
    pass_counts: Dict[str, int] = Field(default_factory=dict)
    notable_agent_ids: List[str] = Field(default_factory=list)
