"""World registry.

A :class:`World` bundles the grid with id-indexed basins, dungeons and
agents plus the day counter and running event log. Dict insertion order is
the registry order; every pass over agents follows it.
"""

from __future__ import annotations

import random
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional

from mogsim.config import Config
from mogsim.environment.generation import GeneratedWorld, generate_world
from mogsim.environment.grid import MazeGrid
from mogsim.environment.schemas import Cell, Position
from mogsim.population import populate_basins
from mogsim.schemas import Agent, Basin, Dungeon


@dataclass
class World:
    """Mutable simulation state shared by the decision engine and event generator."""

    grid: MazeGrid
    basins: Dict[str, Basin] = field(default_factory=dict)
    dungeons: Dict[str, Dungeon] = field(default_factory=dict)
    agents: Dict[str, Agent] = field(default_factory=dict)
    day: int = 0
    seed: Optional[str] = None
    event_log: List[str] = field(default_factory=list)

    # -- construction ---------------------------------------------------------

    @classmethod
    def build(
        cls,
        grid: MazeGrid,
        basins: Iterable[Basin] = (),
        dungeons: Iterable[Dungeon] = (),
        agents: Iterable[Agent] = (),
        day: int = 0,
        seed: Optional[str] = None,
    ) -> "World":
        """Index entity lists by id. Later duplicates replace earlier ones."""
        return cls(
            grid=grid,
            basins={basin.id: basin for basin in basins},
            dungeons={dungeon.id: dungeon for dungeon in dungeons},
            agents={agent.id: agent for agent in agents},
            day=day,
            seed=seed,
        )

    @classmethod
    def from_generated(cls, generated: GeneratedWorld, agents: Iterable[Agent] = ()) -> "World":
        return cls.build(
            generated.grid,
            generated.basins,
            generated.dungeons,
            agents,
            seed=generated.seed,
        )

    @classmethod
    def generate(
        cls,
        width: Optional[int] = None,
        height: Optional[int] = None,
        basin_count: Optional[int] = None,
        dungeon_count: Optional[int] = None,
        seed: Optional[str] = None,
        population_per_basin: Optional[int] = None,
        casualty_rate: Optional[float] = None,
        rng: Optional[random.Random] = None,
    ) -> "World":
        """Generate a world and populate its basins.

        Unspecified arguments fall back to :class:`~mogsim.config.Config`.
        Population draws use ``rng`` when given, otherwise a generator seeded
        from the world seed, so a seeded world is reproducible end to end.
        """
        basin_count = Config.BASIN_COUNT if basin_count is None else basin_count
        generated = generate_world(
            Config.MAZE_WIDTH if width is None else width,
            Config.MAZE_HEIGHT if height is None else height,
            basin_count,
            Config.dungeon_count(basin_count) if dungeon_count is None else dungeon_count,
            seed=Config.SEED if seed is None else seed,
        )
        rng = rng or random.Random(f"{generated.seed}:population")
        agents = populate_basins(
            generated.basins,
            Config.POPULATION_PER_BASIN if population_per_basin is None else population_per_basin,
            Config.CASUALTY_RATE if casualty_rate is None else casualty_rate,
            rng,
        )
        return cls.from_generated(generated, agents)

    # -- lookups --------------------------------------------------------------

    def cell_at(self, position: Position) -> Optional[Cell]:
        return self.grid.at(position)

    def get_agent(self, agent_id: str) -> Optional[Agent]:
        return self.agents.get(agent_id)

    def get_basin(self, basin_id: str) -> Optional[Basin]:
        return self.basins.get(basin_id)

    def get_dungeon(self, dungeon_id: str) -> Optional[Dungeon]:
        return self.dungeons.get(dungeon_id)

    def add_agent(self, agent: Agent) -> None:
        self.agents[agent.id] = agent
        basin = self.basins.get(agent.basin_origin)
        if basin is not None:
            basin.add_agent(agent.id)

    def living_agents(self) -> List[Agent]:
        return [agent for agent in self.agents.values() if agent.is_alive]

    def basin_at(self, position: Position) -> Optional[Basin]:
        cell = self.cell_at(position)
        if cell is None or cell.basin_id is None:
            return None
        return self.basins.get(cell.basin_id)

    def dungeon_at(self, position: Position) -> Optional[Dungeon]:
        cell = self.cell_at(position)
        if cell is None or cell.dungeon_id is None:
            return None
        return self.dungeons.get(cell.dungeon_id)

    def nearest_basin(self, position: Position) -> Optional[Basin]:
        """Closest basin by Manhattan distance to its center; ties keep registry order."""
        if not self.basins:
            return None
        return min(self.basins.values(), key=lambda basin: basin.location.manhattan(position))

    def nearest_dungeon(self, position: Position) -> Optional[Dungeon]:
        if not self.dungeons:
            return None
        return min(self.dungeons.values(), key=lambda dungeon: dungeon.location.manhattan(position))

    def notable_agents(self) -> List[Agent]:
        """Living notable agents, longest survivors first."""
        notable = [agent for agent in self.living_agents() if agent.is_notable]
        return sorted(notable, key=lambda agent: agent.days_survived, reverse=True)
