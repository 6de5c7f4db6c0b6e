"""
Agent decision engine.

Each living agent picks exactly one action per day using a fixed priority
model (first match wins):

1. Survival    - hunger or thirst below 30: eat/drink here or walk to food
2. Safety      - hurt or in danger: head for the nearest basin and rest there
3. Advancement - well fed and healthy: maybe attempt a dungeon, else explore
4. Default     - rest

Decisions are pure; nothing changes until :meth:`AgentAction.execute` runs.
Pathfinding always sees the full grid. The agent's known map only decides
which cells count as unexplored.
"""

from __future__ import annotations

import random
from dataclasses import dataclass, field
from typing import Callable, List, Literal, Optional

from mogsim.environment.pathfinding import find_path
from mogsim.environment.schemas import Cell, Position
from mogsim.logging_utils import log_roll
from mogsim.schemas import Achievement, Agent, Basin, Dungeon, Effect
from mogsim.world import World

ActionType = Literal["eat", "drink", "move", "explore", "rest", "challenge"]

SURVIVAL_THRESHOLD = 30
SAFETY_HEALTH_THRESHOLD = 50
DANGER_HEALTH_THRESHOLD = 20
DANGER_NEED_THRESHOLD = 10
EAT_AMOUNT = 10
DRINK_AMOUNT = 15
MAX_DUNGEON_ATTEMPT_CHANCE = 10

DUNGEON_CONQUEROR_IMPORTANCE = 9
SURVIVAL_MILESTONES = (
    (50, "Seasoned Survivor", 5),
    (100, "Maze Veteran", 8),
)


@dataclass
class ActionResult:
    success: bool
    message: str
    effects: List[Effect] = field(default_factory=list)


@dataclass
class DecisionContext:
    """Everything an agent may look at while deciding."""

    agent: Agent
    world: World
    day: int


@dataclass
class AgentAction:
    """A decided but not yet applied action.

    ``perform`` closes over the live agent and world; calling
    :meth:`execute` applies the action in place.
    """

    type: ActionType
    agent_id: str
    perform: Callable[[], ActionResult] = field(repr=False)
    target: Optional[Position] = None
    target_id: Optional[str] = None

    def execute(self) -> ActionResult:
        return self.perform()


def agent_level(agent: Agent) -> int:
    """Combat level used for dungeon challenges."""
    level = 1
    level += agent.days_survived // 10
    level += agent.stats.health // 20
    level += agent.stats.morale // 20
    for effect in agent.birthright.effects:
        if effect.type in ("combat", "defense"):
            level += effect.value // 10
    return level


def dungeon_attempt_chance(agent: Agent) -> float:
    """Daily percent chance that a healthy agent goes looking for a dungeon."""
    stats = agent.stats
    chance = (
        1
        + 0.1 * agent.days_survived
        + 0.1 * (stats.health - 80)
        + 0.05 * (stats.morale - 50)
    )
    return min(MAX_DUNGEON_ATTEMPT_CHANCE, chance)


def is_in_danger(agent: Agent, cell: Optional[Cell]) -> bool:
    if cell is None or cell.type == "wall":
        return True
    stats = agent.stats
    return (
        stats.health < DANGER_HEALTH_THRESHOLD
        or stats.hunger < DANGER_NEED_THRESHOLD
        or stats.thirst < DANGER_NEED_THRESHOLD
    )


def grant_survival_milestones(agent: Agent, day: int) -> List[Achievement]:
    """Award day-count achievements the agent has just earned."""
    granted = []
    for days, name, importance in SURVIVAL_MILESTONES:
        if agent.days_survived >= days and not agent.has_achievement(name):
            achievement = Achievement(
                id=f"achievement-{agent.id}-{days}",
                name=name,
                description=f"{agent.name} survived {days} days in the maze.",
                day=day,
                importance=importance,
            )
            agent.add_achievement(achievement)
            granted.append(achievement)
    return granted


class AgentDecisionEngine:
    """Chooses one action per agent per day.

    All randomness (random moves, dungeon rolls) comes from ``rng`` so tests
    can substitute a deterministic generator. With ``verbose`` each challenge
    roll is printed with the ``[~]`` tag.
    """

    def __init__(self, rng: Optional[random.Random] = None, verbose: bool = False):
        self.rng = rng or random.Random()
        self.verbose = verbose

    def decide(self, context: DecisionContext) -> AgentAction:
        agent, world = context.agent, context.world
        if not agent.is_alive:
            return AgentAction(
                "rest",
                agent.id,
                lambda: ActionResult(False, f"{agent.name} is dead and cannot take actions."),
            )

        stats = agent.stats
        if stats.hunger < SURVIVAL_THRESHOLD or stats.thirst < SURVIVAL_THRESHOLD:
            return self._survival_action(context)

        cell = world.cell_at(agent.location)
        if stats.health < SAFETY_HEALTH_THRESHOLD or is_in_danger(agent, cell):
            return self._safety_action(context)

        if stats.hunger > 70 and stats.thirst > 70 and stats.health > 80:
            return self._advancement_action(context)

        return self._rest_action(context)

    # -- priorities -----------------------------------------------------------

    def _survival_action(self, context: DecisionContext) -> AgentAction:
        agent, world = context.agent, context.world
        cell = world.cell_at(agent.location)

        if cell is not None and cell.has_food_or_water():
            if agent.stats.hunger < agent.stats.thirst and cell.resources.food > 0:
                return self._eat_action(agent, cell)
            if cell.resources.water > 0:
                return self._drink_action(agent, cell)

        target = self._nearest_resource_cell(world, agent.location)
        if target is not None:
            path = find_path(agent.location, target.position, world.grid.is_passable)
            if path:
                return self._move_action(context, path[0], "moved towards resources.")

        return self._random_move_action(context)

    def _safety_action(self, context: DecisionContext) -> AgentAction:
        agent, world = context.agent, context.world
        basin = world.nearest_basin(agent.location)
        if basin is None or self._inside_basin(world, agent, basin):
            return self._rest_action(context)

        path = find_path(agent.location, basin.location, world.grid.is_passable)
        if not path:
            return self._rest_action(context)
        return self._move_action(context, path[0], "moved towards safety.", target_id=basin.id)

    def _advancement_action(self, context: DecisionContext) -> AgentAction:
        agent, world = context.agent, context.world
        if agent.augment is None and world.dungeons:
            roll = self.rng.random() * 100
            if roll < dungeon_attempt_chance(agent):
                dungeon = world.nearest_dungeon(agent.location)
                if dungeon is not None:
                    if agent.location == dungeon.location:
                        return self._challenge_action(context, dungeon)
                    path = find_path(agent.location, dungeon.location, world.grid.is_passable)
                    if path:
                        return self._move_action(
                            context, path[0], f"moved towards the {dungeon.name}.", target_id=dungeon.id
                        )
        return self._explore_action(context)

    # -- concrete actions -------------------------------------------------------

    def _eat_action(self, agent: Agent, cell: Cell) -> AgentAction:
        def perform() -> ActionResult:
            taken = cell.consume_resources(EAT_AMOUNT, 0)
            agent.consume(taken.food, taken.water)
            return ActionResult(
                True,
                f"{agent.name} consumed food from the current location.",
                [Effect(type="hunger", value=taken.food)],
            )

        return AgentAction("eat", agent.id, perform, target=cell.position, target_id=cell.id)

    def _drink_action(self, agent: Agent, cell: Cell) -> AgentAction:
        def perform() -> ActionResult:
            taken = cell.consume_resources(0, DRINK_AMOUNT)
            agent.consume(taken.food, taken.water)
            return ActionResult(
                True,
                f"{agent.name} consumed water from the current location.",
                [Effect(type="thirst", value=taken.water)],
            )

        return AgentAction("drink", agent.id, perform, target=cell.position, target_id=cell.id)

    def _move_action(
        self,
        context: DecisionContext,
        step: Position,
        message: str,
        action_type: ActionType = "move",
        target_id: Optional[str] = None,
    ) -> AgentAction:
        agent, world, day = context.agent, context.world, context.day

        def perform() -> ActionResult:
            move_agent(world, agent, step, day)
            return ActionResult(True, f"{agent.name} {message}", [Effect(type="energy", value=-5)])

        return AgentAction(action_type, agent.id, perform, target=step, target_id=target_id)

    def _random_move_action(self, context: DecisionContext) -> AgentAction:
        agent, world = context.agent, context.world
        options = world.grid.passable_neighbors(agent.location.x, agent.location.y)
        if not options:
            return self._rest_action(context)
        choice = self.rng.choice(options)
        return self._move_action(context, choice.position, "moved randomly.")

    def _explore_action(self, context: DecisionContext) -> AgentAction:
        agent, world = context.agent, context.world
        target = self._nearest_unknown_cell(world, agent)
        if target is not None:
            path = find_path(agent.location, target.position, world.grid.is_passable)
            if path:
                return self._move_action(context, path[0], "explored new territory.", "explore")
        return self._random_move_action(context)

    def _rest_action(self, context: DecisionContext) -> AgentAction:
        agent = context.agent

        def perform() -> ActionResult:
            agent.rest()
            return ActionResult(
                True,
                f"{agent.name} rested and recovered energy.",
                [Effect(type="energy", value=20)],
            )

        return AgentAction("rest", agent.id, perform)

    def _challenge_action(self, context: DecisionContext, dungeon: Dungeon) -> AgentAction:
        agent, day = context.agent, context.day
        rng, verbose = self.rng, self.verbose

        def perform() -> ActionResult:
            chance = dungeon.calculate_success_chance(agent_level(agent))
            roll = rng.random() * 100
            success = roll < chance
            if verbose:
                log_roll(
                    day,
                    f"{agent.name} challenged the {dungeon.name}: "
                    f"rolled {roll:.1f} against {chance:.2f}% -> {'success' if success else 'defeat'}"
                )
            dungeon.record_attempt(day, agent.id, agent.name, success)

            if success:
                augment = dungeon.get_augment_reward()
                message = f"{agent.name} conquered the {dungeon.name} and gained the {augment.name} augment!"
                agent.add_history_event(day, message)
                agent.gain_augment(augment)
                agent.add_achievement(
                    Achievement(
                        id=f"achievement-{agent.id}-{dungeon.id}",
                        name="Dungeon Conqueror",
                        description=f"{agent.name} conquered the {dungeon.name}.",
                        day=day,
                        importance=DUNGEON_CONQUEROR_IMPORTANCE,
                    )
                )
                return ActionResult(True, message, [Effect(type="augment", value=1, description=augment.name)])

            message = f"{agent.name} attempted to challenge the {dungeon.name} but was defeated."
            agent.add_history_event(day, message)
            agent.status = "dead"
            return ActionResult(False, message, [Effect(type="health", value=-agent.stats.health)])

        return AgentAction("challenge", agent.id, perform, target=dungeon.location, target_id=dungeon.id)

    # -- helpers ------------------------------------------------------------------

    @staticmethod
    def _inside_basin(world: World, agent: Agent, basin: Basin) -> bool:
        cell = world.cell_at(agent.location)
        if cell is not None and cell.basin_id == basin.id:
            return True
        return basin.is_position_in_basin(agent.location)

    @staticmethod
    def _nearest_resource_cell(world: World, origin: Position) -> Optional[Cell]:
        """Closest cell other than ``origin`` holding food or water."""
        best: Optional[Cell] = None
        best_distance = 0
        for cell in world.grid.iter_cells():
            if not cell.is_passable() or not cell.has_food_or_water():
                continue
            distance = cell.position.manhattan(origin)
            if distance == 0:
                continue
            if best is None or distance < best_distance:
                best, best_distance = cell, distance
        return best

    @staticmethod
    def _nearest_unknown_cell(world: World, agent: Agent) -> Optional[Cell]:
        best: Optional[Cell] = None
        best_distance = 0
        for cell in world.grid.iter_cells():
            if not cell.is_passable() or agent.knows_cell(cell.id):
                continue
            distance = cell.position.manhattan(agent.location)
            if best is None or distance < best_distance:
                best, best_distance = cell, distance
        return best


def move_agent(world: World, agent: Agent, position: Position, day: int) -> None:
    """Move ``agent`` one step, updating its knowledge and the cell's visit stamp."""
    agent.move_to(position)
    cell = world.cell_at(position)
    if cell is not None:
        cell.mark_discovered()
        cell.last_visited_day = day


def decide_action(context: DecisionContext, rng: Optional[random.Random] = None) -> AgentAction:
    return AgentDecisionEngine(rng).decide(context)
