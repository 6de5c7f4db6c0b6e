"""Tests for log tags: [•] deterministic steps, [~] random rolls, [!] errors."""

from __future__ import annotations

import contextlib
import io
import random

import pytest

from mogsim.catalogs import AUGMENTS
from mogsim.decision import AgentDecisionEngine, DecisionContext
from mogsim.environment import MazeGrid, Position
from mogsim.environment.generation import generate_world
from mogsim.events import EventContext, EventGenerator
from mogsim.logging_utils import (
    Color,
    colored,
    log_deterministic,
    log_error,
    log_info,
    log_random,
    log_roll,
    log_success,
)
from mogsim.offload import OffloadService
from mogsim.schemas import Agent, Birthright, Dungeon
from mogsim.world import World


def _capture(fn, *args, **kwargs) -> str:
    buf = io.StringIO()
    with contextlib.redirect_stdout(buf):
        fn(*args, **kwargs)
    return buf.getvalue()


def test_log_helpers_use_their_tags(monkeypatch):
    monkeypatch.setenv("MOGSIM_NO_COLOR", "1")

    assert _capture(log_deterministic, "carved") == "[•] carved\n"
    assert _capture(log_random, "rolled") == "[~] rolled\n"
    assert _capture(log_roll, 4, "rolled") == "[~] [Day 4] rolled\n"
    assert _capture(log_error, "failed") == "[!] failed\n"
    assert _capture(log_success, "done") == "[✓] done\n"
    assert _capture(log_info, "note") == "[i] note\n"


def test_colored_wraps_text_unless_disabled(monkeypatch):
    monkeypatch.delenv("MOGSIM_NO_COLOR", raising=False)
    text = colored("hello", Color.RED, bold=True)
    assert text == f"{Color.BOLD.value}{Color.RED.value}hello{Color.RESET.value}"

    monkeypatch.setenv("MOGSIM_NO_COLOR", "1")
    assert colored("hello", Color.RED) == "hello"


def test_generation_logs_deterministic_summary(monkeypatch):
    monkeypatch.setenv("MOGSIM_NO_COLOR", "1")

    out = _capture(generate_world, 11, 11, 1, 1, seed="tags", verbose=True)

    assert out.startswith("[•] Generated 11x11 maze (seed=tags)")
    assert "[~]" not in out


def test_generation_is_silent_when_not_verbose():
    assert _capture(generate_world, 11, 11, 1, 1, seed="tags", verbose=False) == ""


@pytest.mark.asyncio
async def test_offload_lifecycle_is_logged(monkeypatch):
    monkeypatch.setenv("MOGSIM_NO_COLOR", "1")
    service = OffloadService(verbose=True)

    buf = io.StringIO()
    with contextlib.redirect_stdout(buf):
        await service.start()
        await service.shutdown()
    out = buf.getvalue()

    assert "[i] [Offload] Worker started" in out
    assert "[✓] [Offload] Worker stopped" in out


class AlwaysLow(random.Random):
    """``random()`` always returns 0.0, so every roll succeeds."""

    def random(self):
        return 0.0


def _lone_agent_world() -> World:
    agent = Agent(
        id="agent-a",
        name="Kai Lee",
        location=Position(x=1, y=0),
        basin_origin="basin-0",
        birthright=Birthright(id="plain", name="Plain"),
    )
    return World.build(MazeGrid.filled(3, 1, "path"), agents=[agent], day=3)


def test_event_rolls_use_random_tag(monkeypatch):
    monkeypatch.setenv("MOGSIM_NO_COLOR", "1")
    generator = EventGenerator(AlwaysLow(), verbose=True)

    out = _capture(generator.generate, EventContext(world=_lone_agent_world(), day=3))

    assert out == "[~] [Day 3] random event: Kai Lee found a hidden cache of supplies.\n"


def test_event_rolls_are_silent_when_not_verbose():
    generator = EventGenerator(AlwaysLow())
    assert _capture(generator.generate, EventContext(world=_lone_agent_world(), day=3)) == ""


def test_dungeon_challenge_roll_uses_random_tag(monkeypatch):
    monkeypatch.setenv("MOGSIM_NO_COLOR", "1")
    world = _lone_agent_world()
    dungeon = Dungeon(
        id="dungeon-0",
        name="Arcane Vault",
        location=Position(x=1, y=0),
        difficulty=1,
        augment_reward=AUGMENTS[0].model_copy(deep=True),
    )
    world.grid.get(1, 0).convert_to_dungeon(dungeon.id)
    world.dungeons[dungeon.id] = dungeon
    agent = world.agents["agent-a"]
    engine = AgentDecisionEngine(AlwaysLow(), verbose=True)

    action = engine.decide(DecisionContext(agent=agent, world=world, day=7))
    out = _capture(action.execute)

    assert action.type == "challenge"
    assert out.startswith("[~] [Day 7] Kai Lee challenged the Arcane Vault: rolled 0.0 against ")
    assert out.endswith("-> success\n")
