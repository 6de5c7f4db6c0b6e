"""Initial population of basins."""

from __future__ import annotations

import random
from typing import Iterable, List

from mogsim.catalogs import random_agent_name, random_birthright
from mogsim.schemas import Agent, Basin


def populate_basins(
    basins: Iterable[Basin],
    per_basin: int,
    casualty_rate: float,
    rng: random.Random,
) -> List[Agent]:
    """Create ``per_basin`` agents at the center of every basin.

    Args:
        basins: Basins to populate; each gets its agent ids appended.
        per_basin: Agents created per basin (>= 0).
        casualty_rate: Percent chance (0-100) that an agent starts dead.
        rng: Source of names, birthrights and casualty rolls.

    Returns:
        The created agents in basin order, ids ``agent-<basin id>-<i>``.
    """
    if per_basin < 0:
        raise ValueError(f"Population per basin must not be negative (got {per_basin})")
    if not 0 <= casualty_rate <= 100:
        raise ValueError(f"Casualty rate is a percentage between 0 and 100 (got {casualty_rate})")

    agents: List[Agent] = []
    for basin in basins:
        for index in range(per_basin):
            agent = Agent(
                id=f"agent-{basin.id}-{index}",
                name=random_agent_name(rng),
                location=basin.location.model_copy(),
                basin_origin=basin.id,
                birthright=random_birthright(rng),
            )
            if rng.random() * 100 < casualty_rate:
                agent.status = "dead"
            basin.add_agent(agent.id)
            agents.append(agent)
    return agents
