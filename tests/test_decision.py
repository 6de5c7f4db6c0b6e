"""Tests for the agent decision engine."""

import random

from mogsim.catalogs import AUGMENTS
from mogsim.decision import (
    AgentDecisionEngine,
    DecisionContext,
    agent_level,
    decide_action,
    dungeon_attempt_chance,
    grant_survival_milestones,
    move_agent,
)
from mogsim.environment import MazeGrid, Position
from mogsim.schemas import Agent, Basin, Birthright, Dungeon, Effect
from mogsim.world import World


class ScriptedRandom(random.Random):
    """Random source whose ``random()`` replays a fixed script."""

    def __init__(self, values):
        super().__init__(0)
        self._values = list(values)

    def random(self):
        return self._values.pop(0)


def corridor_world(length: int = 6) -> World:
    """One-row corridor of path cells with no resources."""
    grid = MazeGrid.filled(length, 1, "path")
    return World.build(grid)


def make_agent(**overrides) -> Agent:
    data = dict(
        id="agent-1",
        name="Alex Smith",
        location=Position(x=0, y=0),
        basin_origin="basin-0",
        birthright=Birthright(id="plain", name="Plain"),
    )
    data.update(overrides)
    return Agent(**data)


def decide(world: World, agent: Agent, rng=None, day: int = 1):
    world.agents[agent.id] = agent
    engine = AgentDecisionEngine(rng or random.Random(0))
    return engine.decide(DecisionContext(agent=agent, world=world, day=day))


# ============================================================================
# Survival
# ============================================================================


def test_hungry_agent_eats_from_current_cell():
    world = corridor_world()
    world.grid.get(0, 0).add_resources(50, 0)
    agent = make_agent()
    agent.stats.hunger = 20
    agent.stats.morale = 50

    action = decide(world, agent)
    result = action.execute()

    assert action.type == "eat"
    assert result.success
    assert result.message == "Alex Smith consumed food from the current location."
    assert agent.stats.hunger == 30
    assert agent.stats.morale == 55
    assert world.grid.get(0, 0).resources.food == 40


def test_thirsty_agent_drinks_from_current_cell():
    world = corridor_world()
    world.grid.get(0, 0).add_resources(50, 30)
    agent = make_agent()
    agent.stats.hunger = 50
    agent.stats.thirst = 10

    action = decide(world, agent)
    action.execute()

    assert action.type == "drink"
    assert agent.stats.thirst == 25
    assert world.grid.get(0, 0).resources.water == 15


def test_hungry_agent_walks_toward_nearest_resource():
    world = corridor_world()
    world.grid.get(4, 0).add_resources(20, 0)
    agent = make_agent()
    agent.stats.hunger = 10

    action = decide(world, agent)
    result = action.execute()

    assert action.type == "move"
    assert agent.location == Position(x=1, y=0)
    assert result.message == "Alex Smith moved towards resources."
    assert agent.stats.energy == 95


def test_thirsty_agent_on_food_only_cell_walks_toward_water():
    world = corridor_world()
    world.grid.get(0, 0).add_resources(50, 0)
    world.grid.get(3, 0).add_resources(0, 30)
    agent = make_agent()
    agent.stats.hunger = 25
    agent.stats.thirst = 20

    action = decide(world, agent)
    result = action.execute()

    assert action.type == "move"
    assert result.message == "Alex Smith moved towards resources."
    assert agent.location == Position(x=1, y=0)
    assert world.grid.get(0, 0).resources.food == 50


def test_hungry_agent_moves_randomly_without_resources():
    world = corridor_world()
    agent = make_agent()
    agent.stats.thirst = 5

    action = decide(world, agent)
    result = action.execute()

    assert action.type == "move"
    assert result.message == "Alex Smith moved randomly."
    assert agent.location == Position(x=1, y=0)


# ============================================================================
# Safety
# ============================================================================


def basin_world() -> World:
    world = corridor_world(8)
    basin = Basin(id="basin-0", name="Hidden Haven", location=Position(x=6, y=0), radius=2)
    for x in (5, 6, 7):
        basin.add_cell(world.grid.get(x, 0))
    world.basins[basin.id] = basin
    return world


def test_injured_agent_heads_for_nearest_basin():
    world = basin_world()
    agent = make_agent()
    agent.stats.health = 40

    action = decide(world, agent)
    result = action.execute()

    assert action.type == "move"
    assert action.target_id == "basin-0"
    assert result.message == "Alex Smith moved towards safety."
    assert agent.location == Position(x=1, y=0)


def test_injured_agent_inside_basin_rests():
    world = basin_world()
    agent = make_agent(location=Position(x=5, y=0))
    agent.stats.health = 40
    agent.stats.energy = 50

    action = decide(world, agent)
    result = action.execute()

    assert action.type == "rest"
    assert result.success
    assert agent.stats.energy == 70
    assert agent.stats.health == 45


def test_agent_standing_in_a_wall_seeks_safety():
    world = basin_world()
    world.grid.get(0, 0).convert_to_wall()
    agent = make_agent()

    action = decide(world, agent)

    assert action.type == "move"
    assert action.target == Position(x=1, y=0)


# ============================================================================
# Advancement
# ============================================================================


def dungeon_world() -> World:
    world = corridor_world(6)
    dungeon = Dungeon(
        id="dungeon-0",
        name="Arcane Vault",
        location=Position(x=0, y=0),
        difficulty=1,
        augment_reward=AUGMENTS[1].model_copy(deep=True),
    )
    world.grid.get(0, 0).convert_to_dungeon(dungeon.id)
    world.dungeons[dungeon.id] = dungeon
    return world


def test_healthy_agent_explores_unknown_cells():
    world = corridor_world()
    agent = make_agent()

    action = decide(world, agent)
    result = action.execute()

    assert action.type == "explore"
    assert result.message == "Alex Smith explored new territory."
    assert agent.knows_cell("1-0")


def test_successful_dungeon_challenge_grants_augment():
    world = dungeon_world()
    agent = make_agent()

    action = decide(world, agent, rng=ScriptedRandom([0.0, 0.0]), day=7)
    result = action.execute()

    assert action.type == "challenge"
    assert result.success
    assert result.message == (
        f"Alex Smith conquered the Arcane Vault and gained the {AUGMENTS[1].name} augment!"
    )
    assert agent.augment is not None and agent.augment.name == AUGMENTS[1].name
    assert agent.has_achievement("Dungeon Conqueror")
    assert agent.is_notable
    dungeon = world.dungeons["dungeon-0"]
    assert dungeon.challenges_completed == 1
    assert dungeon.history[0].success


def test_failed_dungeon_challenge_kills_agent():
    world = dungeon_world()
    agent = make_agent()

    action = decide(world, agent, rng=ScriptedRandom([0.0, 0.99]), day=7)
    result = action.execute()

    assert action.type == "challenge"
    assert not result.success
    assert result.message == "Alex Smith attempted to challenge the Arcane Vault but was defeated."
    assert agent.status == "dead"
    assert world.dungeons["dungeon-0"].failed_attempts == 1


def test_agent_walks_toward_dungeon_when_roll_succeeds():
    world = dungeon_world()
    agent = make_agent(location=Position(x=3, y=0))

    action = decide(world, agent, rng=ScriptedRandom([0.0]))
    result = action.execute()

    assert action.type == "move"
    assert action.target_id == "dungeon-0"
    assert result.message == "Alex Smith moved towards the Arcane Vault."
    assert agent.location == Position(x=2, y=0)


def test_augmented_agent_never_challenges():
    world = dungeon_world()
    agent = make_agent(augment=AUGMENTS[0].model_copy(deep=True))

    action = decide(world, agent, rng=ScriptedRandom([0.0, 0.0]))

    assert action.type == "explore"


def test_moderately_fed_agent_rests():
    world = corridor_world()
    agent = make_agent()
    agent.stats.hunger = 60

    action = decide(world, agent)
    assert action.type == "rest"


def test_dead_agent_cannot_act():
    world = corridor_world()
    agent = make_agent(status="dead")

    result = decide_action(DecisionContext(agent=agent, world=world, day=1)).execute()

    assert not result.success
    assert result.message == "Alex Smith is dead and cannot take actions."


# ============================================================================
# Helpers
# ============================================================================


def test_agent_level_and_attempt_chance():
    agent = make_agent(
        birthright=Birthright(id="w", name="Warrior", effects=[Effect(type="combat", value=20)]),
        days_survived=25,
    )
    # 1 + 25 // 10 + 100 // 20 + 100 // 20 + 20 // 10
    assert agent_level(agent) == 15

    agent.stats.morale = 50
    agent.days_survived = 0
    agent.stats.health = 80
    assert dungeon_attempt_chance(agent) == 1

    agent.days_survived = 500
    assert dungeon_attempt_chance(agent) == 10


def test_survival_milestones_are_granted_once():
    agent = make_agent(days_survived=50)

    first = grant_survival_milestones(agent, 50)
    again = grant_survival_milestones(agent, 51)

    assert [a.name for a in first] == ["Seasoned Survivor"]
    assert again == []

    agent.days_survived = 100
    later = grant_survival_milestones(agent, 100)
    assert [a.name for a in later] == ["Maze Veteran"]
    assert agent.is_notable


def test_move_agent_stamps_cell():
    world = corridor_world()
    agent = make_agent()

    move_agent(world, agent, Position(x=1, y=0), day=4)

    cell = world.grid.get(1, 0)
    assert cell.discovered
    assert cell.last_visited_day == 4
    assert agent.location == Position(x=1, y=0)
