"""
World event generation.

After every agent has acted, four passes roll for events over the world:

| Pass        | Trigger                                   | Chance     |
|-------------|-------------------------------------------|------------|
| random      | each living agent                         | 5%         |
| interaction | each cell holding two or more living agents | 20% per cell |
| resource    | hunger or thirst below 20                 | 30%        |
| dungeon     | agent standing on a dungeon cell          | 10%        |

Each event is drawn uniformly from its pass's templates in
:mod:`mogsim.catalogs` and its outcomes are applied immediately, so later
passes observe the effects of earlier ones (an agent killed in a fight is
skipped by the resource pass).
"""

from __future__ import annotations

import random
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional

from mogsim.catalogs import (
    BASIN_RESOURCE_EVENTS,
    DUNGEON_EVENTS,
    MIXED_BASIN_INTERACTIONS,
    PRIMARY,
    RANDOM_EVENTS,
    SAME_BASIN_INTERACTIONS,
    WILD_RESOURCE_EVENTS,
    EventTemplate,
)
from mogsim.environment.schemas import parse_cell_id
from mogsim.logging_utils import log_roll
from mogsim.schemas import Agent, Basin, DungeonAttempt, Event, Outcome
from mogsim.world import World

PASS_RANDOM = "random"
PASS_INTERACTION = "interaction"
PASS_RESOURCE = "resource"
PASS_DUNGEON = "dungeon"
PASS_NAMES = (PASS_RANDOM, PASS_INTERACTION, PASS_RESOURCE, PASS_DUNGEON)

RANDOM_EVENT_CHANCE = 0.05
INTERACTION_CHANCE = 0.2
RESOURCE_EVENT_CHANCE = 0.3
DUNGEON_EVENT_CHANCE = 0.1
RESOURCE_NEED_THRESHOLD = 20

# Outcome types accepted for agent targets, mapped to the stat they change
STAT_OUTCOMES = {
    "health": "health",
    "hunger": "hunger",
    "food": "hunger",
    "thirst": "thirst",
    "water": "thirst",
    "energy": "energy",
    "morale": "morale",
}


@dataclass
class EventContext:
    world: World
    day: int


class EventGenerator:
    """Rolls the four event passes for one day.

    ``last_pass_counts`` maps each pass name to the number of events it
    produced during the most recent :meth:`generate` call. With ``verbose``
    every event is printed with the ``[~]`` tag as it is rolled.
    """

    def __init__(self, rng: Optional[random.Random] = None, verbose: bool = False):
        self.rng = rng or random.Random()
        self.verbose = verbose
        self.last_pass_counts: Dict[str, int] = {name: 0 for name in PASS_NAMES}
        self._sequence = 0

    def generate(self, context: EventContext) -> List[Event]:
        passes = (
            (PASS_RANDOM, self._random_pass),
            (PASS_INTERACTION, self._interaction_pass),
            (PASS_RESOURCE, self._resource_pass),
            (PASS_DUNGEON, self._dungeon_pass),
        )
        events: List[Event] = []
        counts: Dict[str, int] = {}
        for name, run_pass in passes:
            produced = run_pass(context)
            counts[name] = len(produced)
            if self.verbose:
                for event in produced:
                    log_roll(context.day, f"{name} event: {event.description}")
            events.extend(produced)
        self.last_pass_counts = counts
        return events

    # -- passes ---------------------------------------------------------------

    def _random_pass(self, context: EventContext) -> List[Event]:
        world, events = context.world, []
        for agent in list(world.agents.values()):
            if not agent.is_alive:
                continue
            if self.rng.random() < RANDOM_EVENT_CHANCE:
                template = self.rng.choice(RANDOM_EVENTS)
                event = self._build(template, context.day, PASS_RANDOM, agent)
                apply_event_outcomes(event, world)
                events.append(event)
        return events

    def _interaction_pass(self, context: EventContext) -> List[Event]:
        world, events = context.world, []
        by_cell: Dict[str, List[Agent]] = {}
        for agent in world.agents.values():
            if agent.is_alive:
                key = f"{agent.location.x}-{agent.location.y}"
                by_cell.setdefault(key, []).append(agent)

        for occupants in by_cell.values():
            living = [agent for agent in occupants if agent.is_alive]
            if len(living) < 2:
                continue
            if self.rng.random() >= INTERACTION_CHANCE:
                continue
            first, second = self.rng.sample(living, 2)
            if first.basin_origin == second.basin_origin:
                template = self.rng.choice(SAME_BASIN_INTERACTIONS)
            else:
                template = self.rng.choice(MIXED_BASIN_INTERACTIONS)
            event = self._build(template, context.day, PASS_INTERACTION, first, second)
            apply_event_outcomes(event, world)
            events.append(event)
        return events

    def _resource_pass(self, context: EventContext) -> List[Event]:
        world, events = context.world, []
        for agent in list(world.agents.values()):
            if not agent.is_alive:
                continue
            stats = agent.stats
            if stats.hunger >= RESOURCE_NEED_THRESHOLD and stats.thirst >= RESOURCE_NEED_THRESHOLD:
                continue
            if self.rng.random() >= RESOURCE_EVENT_CHANCE:
                continue

            cell = world.cell_at(agent.location)
            in_basin = cell is not None and cell.type == "basin"
            if in_basin:
                template = self.rng.choice(BASIN_RESOURCE_EVENTS)
            else:
                template = self.rng.choice(WILD_RESOURCE_EVENTS)
            event = self._build(template, context.day, PASS_RESOURCE, agent)
            if in_basin:
                event.basin_id = cell.basin_id
            apply_event_outcomes(event, world)
            events.append(event)
        return events

    def _dungeon_pass(self, context: EventContext) -> List[Event]:
        world, events = context.world, []
        for agent in list(world.agents.values()):
            if not agent.is_alive:
                continue
            cell = world.cell_at(agent.location)
            if cell is None or cell.type != "dungeon":
                continue
            dungeon = world.get_dungeon(cell.dungeon_id) if cell.dungeon_id else None
            if dungeon is None:
                continue
            if self.rng.random() < DUNGEON_EVENT_CHANCE:
                template = self.rng.choice(DUNGEON_EVENTS)
                event = self._build(template, context.day, PASS_DUNGEON, agent, dungeon_name=dungeon.name)
                event.dungeon_id = dungeon.id
                apply_event_outcomes(event, world)
                events.append(event)
        return events

    # -- construction -----------------------------------------------------------

    def _build(
        self,
        template: EventTemplate,
        day: int,
        pass_name: str,
        agent: Agent,
        other: Optional[Agent] = None,
        dungeon_name: str = "",
    ) -> Event:
        self._sequence += 1
        outcomes = [
            Outcome(
                type=spec.type,
                target_id=agent.id if spec.target == PRIMARY or other is None else other.id,
                target_type="agent",
                value=spec.value,
                description=spec.description,
            )
            for spec in template.outcomes
        ]
        agent_ids = [agent.id]
        if other is not None:
            agent_ids.append(other.id)
            if template.relationship:
                outcomes.extend(
                    Outcome(
                        type="relationship",
                        target_id=source.id,
                        target_type="agent",
                        value=template.relationship,
                        description="Relationship changed",
                        related_id=target.id,
                    )
                    for source, target in ((agent, other), (other, agent))
                )

        return Event(
            id=f"event-{pass_name}-{day}-{agent.id}-{self._sequence}",
            day=day,
            category=template.category,
            description=template.render(
                agent.name,
                other.name if other is not None else "",
                dungeon_name,
            ),
            agent_ids=agent_ids,
            location=agent.location.model_copy(),
            outcomes=outcomes,
            importance=template.importance,
        )


def apply_event_outcomes(event: Event, world: World) -> None:
    """Apply every outcome of ``event`` to the world in place.

    Agent stats clamp to [0, 100] and health re-derives status. Each agent
    and basin touched gets exactly one history line for the event. Agents
    that were already dead when the event started are left untouched.
    """
    alive_at_start = {agent_id for agent_id, agent in world.agents.items() if agent.is_alive}
    agents_to_log: Dict[str, Agent] = {}
    basins_to_log: Dict[str, Basin] = {}

    for outcome in event.outcomes:
        if outcome.target_type == "agent":
            if outcome.target_id not in alive_at_start:
                continue
            agent = world.agents[outcome.target_id]
            if outcome.type == "relationship":
                if outcome.related_id:
                    agent.update_relationship(outcome.related_id, outcome.value)
            elif outcome.type in STAT_OUTCOMES:
                agent.adjust_stat(STAT_OUTCOMES[outcome.type], outcome.value)
            agents_to_log.setdefault(agent.id, agent)

        elif outcome.target_type == "cell":
            try:
                x, y = parse_cell_id(outcome.target_id)
            except ValueError:
                continue
            cell = world.grid.get(x, y)
            if cell is None:
                continue
            if outcome.type == "food":
                cell.resources.add(food=outcome.value)
            elif outcome.type == "water":
                cell.resources.add(water=outcome.value)
            cell.mark_discovered()

        elif outcome.target_type == "basin":
            basin = world.get_basin(outcome.target_id)
            if basin is None:
                continue
            if outcome.type == "food":
                basin.resources.add(food=outcome.value)
            elif outcome.type == "water":
                basin.resources.add(water=outcome.value)
            basins_to_log.setdefault(basin.id, basin)

        elif outcome.target_type == "dungeon":
            dungeon = world.get_dungeon(outcome.target_id)
            if dungeon is None:
                continue
            actor_id = event.agent_ids[0] if event.agent_ids else ""
            actor = world.get_agent(actor_id)
            dungeon.history.append(
                DungeonAttempt(
                    id=f"dungeon-event-{event.id}",
                    day=event.day,
                    agent_id=actor_id,
                    agent_name=actor.name if actor is not None else "Unknown",
                    success=False,
                    description=event.description,
                )
            )

    for agent in agents_to_log.values():
        agent.add_history_event(event.day, event.description)
    for basin in basins_to_log.values():
        basin.add_history_event(event.day, event.description)


def generate_events(context: EventContext, rng: Optional[random.Random] = None) -> List[Event]:
    """Run all four passes once with a fresh generator."""
    return EventGenerator(rng).generate(context)


# ============================================================================
# Formatting and filtering
# ============================================================================


def format_events(events: Iterable[Event]) -> List[str]:
    return [event.formatted() for event in events]


def filter_events_by_agent(events: Iterable[Event], agent_id: str) -> List[Event]:
    return [event for event in events if event.involves_agent(agent_id)]


def filter_events_by_basin(events: Iterable[Event], basin_id: str) -> List[Event]:
    return [event for event in events if event.involves_basin(basin_id)]


def filter_events_by_dungeon(events: Iterable[Event], dungeon_id: str) -> List[Event]:
    return [event for event in events if event.involves_dungeon(dungeon_id)]


def filter_events_by_category(events: Iterable[Event], category: str) -> List[Event]:
    return [event for event in events if event.category == category]


def filter_events_by_importance(events: Iterable[Event], min_importance: int) -> List[Event]:
    return [event for event in events if event.importance >= min_importance]


def filter_events_by_day_range(events: Iterable[Event], start_day: int, end_day: int) -> List[Event]:
    """Events whose day lies in the inclusive range ``[start_day, end_day]``."""
    return [event for event in events if start_day <= event.day <= end_day]
