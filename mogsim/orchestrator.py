"""
Simulation clock.

Fully decoupled from rendering, timers and storage. The host owns the
cadence and calls :meth:`SimulationClock.advance_day` whenever it wants the
world to move forward one day.

Each day:
1. Increment the day counter
2. For each living agent in registry order: daily decay, then decide + execute
3. Roll the world event passes over the updated world
4. Recompute notability for every agent
5. Return narrations followed by formatted world events
"""

from __future__ import annotations

import random
from typing import Callable, Dict, Iterable, List, Optional

from mogsim.config import Config
from mogsim.decision import AgentDecisionEngine, DecisionContext, grant_survival_milestones
from mogsim.environment.grid import MazeGrid
from mogsim.events import EventContext, EventGenerator, format_events
from mogsim.logging_utils import (
    Color,
    LOG_TAG_DETERMINISTIC,
    LOG_TAG_RANDOM,
    colored,
    log_error,
)
from mogsim.schemas import Agent, Basin, DaySummary, Dungeon
from mogsim.world import World

DayListener = Callable[[DaySummary, World], None]


def run_agent_phase(world: World, day: int, engine: AgentDecisionEngine) -> List[str]:
    """Decay and act for every living agent; return ``"Day N: ..."`` narrations.

    Rest actions that succeed are not narrated.
    """
    narrations: List[str] = []
    for agent in list(world.agents.values()):
        if not agent.is_alive:
            continue

        agent.apply_daily_decay()
        if not agent.is_alive:
            narrations.append(f"Day {day}: {agent.name} died from starvation or dehydration.")
            continue

        for achievement in grant_survival_milestones(agent, day):
            narrations.append(f"Day {day}: {achievement.description}")

        action = engine.decide(DecisionContext(agent=agent, world=world, day=day))
        result = action.execute()
        if action.type != "rest" or not result.success:
            narrations.append(f"Day {day}: {result.message}")
    return narrations


def refresh_notability(world: World) -> List[str]:
    """Re-derive ``is_notable`` for every agent; return living notable ids by seniority."""
    for agent in world.agents.values():
        agent.refresh_notability()
    return [agent.id for agent in world.notable_agents()]


class SimulationClock:
    """Advances a :class:`World` one day at a time.

    The decision engine and event generator share one ``random.Random`` so a
    seeded clock replays identically.
    """

    def __init__(
        self,
        world: World,
        rng: Optional[random.Random] = None,
        verbose: Optional[bool] = None,
        day_listeners: Optional[List[DayListener]] = None,
    ):
        """Initialize the clock.

        Args:
            world: World to mutate in place
            rng: Shared source of randomness for decisions and events
            verbose: Print a per-day summary and every random roll (defaults to
                ``Config.VERBOSE``)
            day_listeners: Callbacks invoked with each day's summary and the
                world. Listener failures are reported but never stop the clock.
        """
        self.world = world
        self.rng = rng or random.Random()
        self.verbose = Config.VERBOSE if verbose is None else verbose
        self.decision_engine = AgentDecisionEngine(self.rng, verbose=self.verbose)
        self.event_generator = EventGenerator(self.rng, verbose=self.verbose)
        self.day_listeners: List[DayListener] = list(day_listeners or [])

    def advance_day(self) -> DaySummary:
        world = self.world
        world.day += 1
        day = world.day

        narrations = run_agent_phase(world, day, self.decision_engine)
        world_events = self.event_generator.generate(EventContext(world=world, day=day))
        notable_ids = refresh_notability(world)

        lines = narrations + format_events(world_events)
        world.event_log.extend(lines)

        summary = DaySummary(
            day=day,
            events=lines,
            world_events=world_events,
            pass_counts=dict(self.event_generator.last_pass_counts),
            notable_agent_ids=notable_ids,
        )
        if self.verbose:
            self._print_day_summary(summary)

        for listener in self.day_listeners:
            try:
                listener(summary, world)
            except Exception as exc:
                log_error(f"[Clock] Day listener failed: {exc}")
        return summary

    def run(self, days: int) -> List[DaySummary]:
        """Advance ``days`` times and return every summary in order."""
        if days < 0:
            raise ValueError(f"Cannot run a negative number of days (got {days})")
        return [self.advance_day() for _ in range(days)]

    def _print_day_summary(self, summary: DaySummary) -> None:
        living = len(self.world.living_agents())
        print(colored(
            f"  {LOG_TAG_DETERMINISTIC} [Day {summary.day}] {living}/{len(self.world.agents)} agents alive",
            Color.BLUE,
        ))
        counts = ", ".join(f"{name}={count}" for name, count in summary.pass_counts.items())
        print(colored(
            f"  {LOG_TAG_RANDOM} [Day {summary.day}] {len(summary.world_events)} world events ({counts})",
            Color.YELLOW,
        ))
        for event in summary.world_events:
            if event.is_important():
                print(f"  EVENT (importance {event.importance}): {event.description}")


def advance_day(
    agents: Iterable[Agent],
    grid: MazeGrid,
    basins: Iterable[Basin],
    dungeons: Iterable[Dungeon],
    day: int,
    rng: Optional[random.Random] = None,
) -> List[str]:
    """Run one day over caller-owned entities and return its narration lines.

    The entities are mutated in place; ``day`` is the day being simulated.
    """
    world = World.build(grid, basins, dungeons, agents, day=day)
    rng = rng or random.Random()
    narrations = run_agent_phase(world, day, AgentDecisionEngine(rng))
    world_events = EventGenerator(rng).generate(EventContext(world=world, day=day))
    refresh_notability(world)
    return narrations + format_events(world_events)


def pass_totals(summaries: Iterable[DaySummary]) -> Dict[str, int]:
    """Sum per-pass event counts over several days."""
    totals: Dict[str, int] = {}
    for summary in summaries:
        for name, count in summary.pass_counts.items():
            totals[name] = totals.get(name, 0) + count
    return totals
