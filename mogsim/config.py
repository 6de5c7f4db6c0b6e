"""
MOG Simulator Configuration

Loads configuration from environment variables with sensible defaults.
Hosts may ignore this entirely and pass explicit values to the engine.
"""

import os
from dotenv import load_dotenv

# Load .env file if it exists
load_dotenv()


def _env_bool(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


class Config:
    """Engine configuration loaded from environment variables."""

    # World generation defaults
    MAZE_WIDTH: int = int(os.getenv("MOGSIM_MAZE_WIDTH", "30"))
    MAZE_HEIGHT: int = int(os.getenv("MOGSIM_MAZE_HEIGHT", "30"))
    BASIN_COUNT: int = int(os.getenv("MOGSIM_BASIN_COUNT", "3"))
    # Dungeons per basin (the host UI always asked for floor(basins * 1.5))
    DUNGEON_RATIO: float = float(os.getenv("MOGSIM_DUNGEON_RATIO", "1.5"))
    SEED: str | None = os.getenv("MOGSIM_SEED") or None

    # Population defaults
    POPULATION_PER_BASIN: int = int(os.getenv("MOGSIM_POPULATION_PER_BASIN", "10"))
    # Percent of agents created dead
    CASUALTY_RATE: float = float(os.getenv("MOGSIM_CASUALTY_RATE", "0"))

    # Logging
    VERBOSE: bool = _env_bool("MOGSIM_VERBOSE")

    @classmethod
    def dungeon_count(cls, basin_count: int | None = None) -> int:
        """Number of dungeons to request for ``basin_count`` basins."""
        basins = cls.BASIN_COUNT if basin_count is None else basin_count
        return int(basins * cls.DUNGEON_RATIO)

    @classmethod
    def validate(cls) -> None:
        """Validate configuration and raise errors if values are out of range."""
        if cls.MAZE_WIDTH < 3 or cls.MAZE_HEIGHT < 3:
            raise ValueError(
                "MOGSIM_MAZE_WIDTH and MOGSIM_MAZE_HEIGHT must both be at least 3 "
                f"(got {cls.MAZE_WIDTH}x{cls.MAZE_HEIGHT})"
            )

        if cls.BASIN_COUNT < 0:
            raise ValueError("MOGSIM_BASIN_COUNT must not be negative")

        if cls.DUNGEON_RATIO < 0:
            raise ValueError("MOGSIM_DUNGEON_RATIO must not be negative")

        if cls.POPULATION_PER_BASIN < 0:
            raise ValueError("MOGSIM_POPULATION_PER_BASIN must not be negative")

        if not 0 <= cls.CASUALTY_RATE <= 100:
            raise ValueError(
                "MOGSIM_CASUALTY_RATE is a percentage and must be between 0 and 100 "
                f"(got {cls.CASUALTY_RATE})"
            )

    @classmethod
    def display(cls) -> str:
        """Return a formatted string showing current configuration."""
        lines = [
            "MOG Simulator Configuration:",
            f"  Maze: {cls.MAZE_WIDTH}x{cls.MAZE_HEIGHT}",
            f"  Basins: {cls.BASIN_COUNT} (dungeons: {cls.dungeon_count()})",
            f"  Population per basin: {cls.POPULATION_PER_BASIN}",
            f"  Casualty rate: {cls.CASUALTY_RATE}%",
            f"  Seed: {cls.SEED or '(random)'}",
            f"  Verbose: {cls.VERBOSE}",
        ]
        return "\n".join(lines)
