"""Tests for world event passes, outcome application and event filters."""

import random

from mogsim.catalogs import AUGMENTS, BIRTHRIGHTS
from mogsim.environment import MazeGrid, Position
from mogsim.events import (
    PASS_NAMES,
    EventContext,
    EventGenerator,
    apply_event_outcomes,
    filter_events_by_agent,
    filter_events_by_basin,
    filter_events_by_category,
    filter_events_by_day_range,
    filter_events_by_dungeon,
    filter_events_by_importance,
    format_events,
    generate_events,
)
from mogsim.schemas import Agent, Basin, Dungeon, Event, Outcome
from mogsim.world import World


class SequenceRandom(random.Random):
    """Replays ``values`` from ``random()``, then keeps returning ``default``."""

    def __init__(self, values=(), default=0.0):
        super().__init__(0)
        self._values = list(values)
        self._default = default

    def random(self):
        if self._values:
            return self._values.pop(0)
        return self._default


def make_agent(agent_id: str, basin: str = "basin-0", x: int = 1, y: int = 1, **overrides) -> Agent:
    return Agent(
        id=agent_id,
        name=agent_id.replace("-", " ").title(),
        location=Position(x=x, y=y),
        basin_origin=basin,
        birthright=BIRTHRIGHTS[0].model_copy(deep=True),
        **overrides,
    )


def small_world(*agents: Agent) -> World:
    grid = MazeGrid.filled(5, 5, "path")
    basin = Basin(id="basin-0", name="Hidden Haven", location=Position(x=4, y=4))
    basin.add_cell(grid.get(4, 4))
    other = Basin(id="basin-1", name="Lost Camp", location=Position(x=0, y=4))
    other.add_cell(grid.get(0, 4))
    return World.build(grid, [basin, other], [], agents, day=3)


# ============================================================================
# Passes
# ============================================================================


def test_random_pass_applies_outcomes_and_history():
    agent = make_agent("agent-a")
    agent.stats.hunger = 50
    agent.stats.thirst = 50
    agent.stats.morale = 50
    world = small_world(agent)
    generator = EventGenerator(SequenceRandom(default=0.0))

    events = generator.generate(EventContext(world=world, day=3))

    assert len(events) == 1
    event = events[0]
    assert event.category == "random"
    assert event.description == "Agent A found a hidden cache of supplies."
    assert event.id == "event-random-3-agent-a-1"
    assert (agent.stats.hunger, agent.stats.thirst, agent.stats.morale) == (70, 70, 60)
    assert agent.history == ["Day 3: Agent A found a hidden cache of supplies."]
    assert generator.last_pass_counts == {"random": 1, "interaction": 0, "resource": 0, "dungeon": 0}


def test_same_basin_interaction_is_mutual():
    first = make_agent("agent-a")
    second = make_agent("agent-b")
    first.stats.morale = 50
    second.stats.hunger = 50
    second.stats.thirst = 50
    second.stats.morale = 50
    world = small_world(first, second)
    # Both random rolls miss, every later draw picks the first option
    generator = EventGenerator(SequenceRandom([0.5, 0.5], default=0.0))

    events = generator.generate(EventContext(world=world, day=3))

    assert [event.category for event in events] == ["social"]
    event = events[0]
    assert event.description == "Agent A shared supplies with Agent B."
    assert event.agent_ids == ["agent-a", "agent-b"]
    assert first.stats.morale == 55
    assert (second.stats.hunger, second.stats.thirst, second.stats.morale) == (60, 60, 60)
    assert first.relationships == {"agent-b": 10}
    assert second.relationships == {"agent-a": 10}
    assert len(first.history) == 1 and len(second.history) == 1


def test_mixed_basin_interaction_uses_mixed_templates():
    first = make_agent("agent-a", basin="basin-0")
    second = make_agent("agent-b", basin="basin-1")
    world = small_world(first, second)
    generator = EventGenerator(SequenceRandom([0.5, 0.5], default=0.0))

    events = generator.generate(EventContext(world=world, day=3))

    assert events[0].description == "Agent A and Agent B cautiously traded supplies."
    assert first.relationships == {"agent-b": 5}


def test_interaction_roll_miss_produces_nothing():
    world = small_world(make_agent("agent-a"), make_agent("agent-b"))
    generator = EventGenerator(SequenceRandom(default=0.9))

    assert generator.generate(EventContext(world=world, day=3)) == []
    assert sum(generator.last_pass_counts.values()) == 0


def test_resource_pass_in_basin_tags_event():
    agent = make_agent("agent-a", x=4, y=4)
    agent.stats.hunger = 10
    agent.stats.thirst = 50
    world = small_world(agent)
    generator = EventGenerator(SequenceRandom([0.5], default=0.0))

    events = generator.generate(EventContext(world=world, day=3))

    assert len(events) == 1
    assert events[0].category == "resource"
    assert events[0].basin_id == "basin-0"
    assert events[0].description == "Agent A found a fresh water source in the basin."
    assert agent.stats.thirst == 80


def test_resource_pass_outside_basin_uses_wild_templates():
    agent = make_agent("agent-a", x=2, y=2)
    agent.stats.thirst = 5
    world = small_world(agent)
    generator = EventGenerator(SequenceRandom([0.5], default=0.0))

    events = generator.generate(EventContext(world=world, day=3))

    assert events[0].description == "Agent A found a small puddle of water."
    assert events[0].basin_id is None
    assert agent.stats.thirst == 20


def test_dungeon_pass_tags_dungeon():
    agent = make_agent("agent-a", x=2, y=0)
    world = small_world(agent)
    dungeon = Dungeon(
        id="dungeon-0",
        name="Void Spire",
        location=Position(x=2, y=0),
        augment_reward=AUGMENTS[0].model_copy(deep=True),
    )
    world.grid.get(2, 0).convert_to_dungeon(dungeon.id)
    world.dungeons[dungeon.id] = dungeon
    agent.stats.morale = 50
    generator = EventGenerator(SequenceRandom([0.5], default=0.0))

    events = generator.generate(EventContext(world=world, day=3))

    assert len(events) == 1
    assert events[0].dungeon_id == "dungeon-0"
    assert events[0].description == "Agent A discovered ancient technology in the Void Spire."
    assert events[0].is_important()
    assert agent.stats.morale == 70
    assert generator.last_pass_counts["dungeon"] == 1


def test_dead_agents_are_skipped_by_every_pass():
    dead = make_agent("agent-a", status="dead")
    dead.stats.hunger = 0
    world = small_world(dead, make_agent("agent-b", status="dead"))

    assert generate_events(EventContext(world=world, day=3), SequenceRandom(default=0.0)) == []


def test_pass_counts_match_events_over_many_days():
    world = World.generate(20, 20, 2, 2, seed="event-counts", population_per_basin=6, casualty_rate=0)
    generator = EventGenerator(random.Random(11))
    for agent in world.agents.values():
        agent.stats.hunger = 15

    for day in range(1, 6):
        events = generator.generate(EventContext(world=world, day=day))
        assert set(generator.last_pass_counts) == set(PASS_NAMES)
        assert sum(generator.last_pass_counts.values()) == len(events)
        assert len({event.id for event in events}) == len(events)


# ============================================================================
# Outcome application
# ============================================================================


def _event(outcomes, agent_ids=("agent-a",)):
    return Event(
        id="event-test",
        day=5,
        category="random",
        description="Something happened.",
        agent_ids=list(agent_ids),
        location=Position(x=1, y=1),
        outcomes=outcomes,
    )


def test_outcomes_reach_cells_basins_and_dungeons():
    agent = make_agent("agent-a")
    world = small_world(agent)
    world.dungeons["dungeon-0"] = Dungeon(
        id="dungeon-0",
        name="Void Spire",
        location=Position(x=2, y=0),
        augment_reward=AUGMENTS[0].model_copy(deep=True),
    )
    event = _event([
        Outcome(type="food", target_id="3-2", target_type="cell", value=12),
        Outcome(type="water", target_id="basin-1", target_type="basin", value=7),
        Outcome(type="morale", target_id="dungeon-0", target_type="dungeon", value=0),
        Outcome(type="food", target_id="not-a-cell", target_type="cell", value=5),
        Outcome(type="food", target_id="99-99", target_type="cell", value=5),
    ])

    apply_event_outcomes(event, world)

    cell = world.grid.get(3, 2)
    assert cell.resources.food == 12 and cell.discovered
    assert world.basins["basin-1"].resources.water == 7
    assert world.basins["basin-1"].history == ["Day 5: Something happened."]
    attempt = world.dungeons["dungeon-0"].history[0]
    assert attempt.agent_name == "Agent A" and not attempt.success


def test_outcomes_write_one_history_line_per_agent():
    agent = make_agent("agent-a")
    agent.stats.health = 50
    world = small_world(agent)
    event = _event([
        Outcome(type="health", target_id="agent-a", target_type="agent", value=-10),
        Outcome(type="energy", target_id="agent-a", target_type="agent", value=-10),
        Outcome(type="water", target_id="agent-a", target_type="agent", value=500),
    ])

    apply_event_outcomes(event, world)

    assert agent.stats.health == 40
    assert agent.stats.energy == 90
    assert agent.stats.thirst == 100
    assert agent.history == ["Day 5: Something happened."]


def test_lethal_outcome_sets_status_and_dead_agents_are_untouched():
    victim = make_agent("agent-a")
    victim.stats.health = 10
    corpse = make_agent("agent-b", status="dead")
    world = small_world(victim, corpse)
    event = _event(
        [
            Outcome(type="health", target_id="agent-a", target_type="agent", value=-30),
            Outcome(type="morale", target_id="agent-b", target_type="agent", value=-30),
        ],
        agent_ids=("agent-a", "agent-b"),
    )

    apply_event_outcomes(event, world)

    assert victim.status == "dead" and victim.stats.health == 0
    assert corpse.stats.morale == 100
    assert corpse.history == []


# ============================================================================
# Filters
# ============================================================================


def _sample_events():
    origin = Position(x=0, y=0)
    return [
        Event(id="e1", day=1, category="random", description="one", agent_ids=["a"], location=origin, importance=3),
        Event(id="e2", day=2, category="social", description="two", agent_ids=["a", "b"], location=origin,
              importance=7),
        Event(id="e3", day=4, category="resource", description="three", agent_ids=["b"], location=origin,
              basin_id="basin-0", importance=4),
        Event(id="e4", day=5, category="dungeon", description="four", agent_ids=["c"], location=origin,
              dungeon_id="dungeon-0", importance=8),
    ]


def test_event_filters():
    events = _sample_events()

    assert [e.id for e in filter_events_by_agent(events, "a")] == ["e1", "e2"]
    assert [e.id for e in filter_events_by_basin(events, "basin-0")] == ["e3"]
    assert [e.id for e in filter_events_by_dungeon(events, "dungeon-0")] == ["e4"]
    assert [e.id for e in filter_events_by_category(events, "social")] == ["e2"]
    assert [e.id for e in filter_events_by_importance(events, 7)] == ["e2", "e4"]
    assert [e.id for e in filter_events_by_day_range(events, 2, 4)] == ["e2", "e3"]
    assert format_events(events[:2]) == ["Day 1: one", "Day 2: two"]
