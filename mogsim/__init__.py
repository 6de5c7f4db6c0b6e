"""
MOG Simulator - maze survival simulation engine.

Generate a seeded maze with basins and dungeons, populate it with agents and
advance it one day at a time. Rendering, timers and storage belong to the
host; the engine only mutates in-memory state and returns narrations.
"""

__version__ = "0.1.0"

from .config import Config

# Core schemas
from .environment import Cell, MazeGrid, Position, Resources, find_path
from .schemas import (
    Achievement,
    Agent,
    AgentStats,
    Augment,
    Basin,
    Birthright,
    DaySummary,
    Dungeon,
    DungeonAttempt,
    Effect,
    Event,
    Item,
    Outcome,
    Structure,
)

# Generation and population
from .environment.generation import GeneratedWorld, generate_world
from .population import populate_basins
from .world import World

# Simulation
from .decision import AgentDecisionEngine, DecisionContext, decide_action
from .events import EventContext, EventGenerator, generate_events
from .orchestrator import SimulationClock, advance_day

# Persistence and offload
from .persistence import InvalidSaveError, SaveData, load_simulation, save_simulation
from .offload import (
    OffloadRequestError,
    OffloadService,
    OffloadUnavailableError,
)

__all__ = [
    "Config",
    "Cell",
    "MazeGrid",
    "Position",
    "Resources",
    "find_path",
    "Achievement",
    "Agent",
    "AgentStats",
    "Augment",
    "Basin",
    "Birthright",
    "DaySummary",
    "Dungeon",
    "DungeonAttempt",
    "Effect",
    "Event",
    "Item",
    "Outcome",
    "Structure",
    "GeneratedWorld",
    "generate_world",
    "populate_basins",
    "World",
    "AgentDecisionEngine",
    "DecisionContext",
    "decide_action",
    "EventContext",
    "EventGenerator",
    "generate_events",
    "SimulationClock",
    "advance_day",
    "InvalidSaveError",
    "SaveData",
    "load_simulation",
    "save_simulation",
    "OffloadRequestError",
    "OffloadService",
    "OffloadUnavailableError",
]
