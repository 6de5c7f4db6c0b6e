"""Fixed content tables: names, birthrights, augments and event templates.

Every draw takes an explicit ``random.Random`` so that generation and ticks
stay reproducible for a given seed.
"""

from __future__ import annotations

import random
from dataclasses import dataclass
from enum import Enum
from typing import Tuple

from mogsim.schemas import Augment, Birthright, Effect

# ============================================================================
# Names
# ============================================================================

AGENT_FIRST_NAMES = (
    "Alex", "Jordan", "Taylor", "Morgan", "Casey", "Riley", "Avery", "Quinn",
    "Skyler", "Reese", "Parker", "Blake", "Dakota", "Hayden", "Rowan", "Kai",
)
AGENT_LAST_NAMES = (
    "Smith", "Johnson", "Williams", "Brown", "Jones", "Miller", "Davis", "Garcia",
    "Rodriguez", "Wilson", "Martinez", "Anderson", "Taylor", "Thomas", "Moore", "Lee",
)

BASIN_PREFIXES = (
    "North", "South", "East", "West", "Hidden", "Lost", "Ancient", "Forgotten",
    "Mystic", "Sacred", "Cursed", "Blessed", "Shadowed", "Sunlit", "Moonlit",
)
BASIN_SUFFIXES = (
    "Haven", "Refuge", "Sanctuary", "Enclave", "Settlement", "Camp", "Outpost",
    "Colony", "Bastion", "Stronghold", "Hideout", "Shelter", "Hollow", "Glen",
)

DUNGEON_PREFIXES = (
    "Abyssal", "Infernal", "Celestial", "Arcane", "Forbidden", "Corrupted",
    "Haunted", "Twisted", "Shattered", "Forsaken", "Eternal", "Primal", "Void",
)
DUNGEON_SUFFIXES = (
    "Tower", "Spire", "Pillar", "Monolith", "Obelisk", "Citadel", "Bastion",
    "Sanctum", "Temple", "Shrine", "Vault", "Chamber", "Nexus", "Gateway",
)


def random_agent_name(rng: random.Random) -> str:
    return f"{rng.choice(AGENT_FIRST_NAMES)} {rng.choice(AGENT_LAST_NAMES)}"


def random_basin_name(rng: random.Random) -> str:
    return f"{rng.choice(BASIN_PREFIXES)} {rng.choice(BASIN_SUFFIXES)}"


def random_dungeon_name(rng: random.Random) -> str:
    return f"{rng.choice(DUNGEON_PREFIXES)} {rng.choice(DUNGEON_SUFFIXES)}"


# ============================================================================
# Birthrights and augments
# ============================================================================

BIRTHRIGHTS: Tuple[Birthright, ...] = (
    Birthright(
        id="birthright-1",
        name="Enhanced Vision",
        description="+5% chance to find resources",
        effects=[Effect(type="resource-find", value=5, description="Increased chance to find resources")],
    ),
    Birthright(
        id="birthright-2",
        name="Calming Presence",
        description="-10% chance of negative social conflict",
        effects=[Effect(type="social-conflict", value=-10, description="Reduced chance of negative social conflict")],
    ),
    Birthright(
        id="birthright-3",
        name="Booming Voice",
        description="+20% chance to successfully call for help",
        effects=[Effect(type="call-help", value=20, description="Increased chance to call for help")],
    ),
    Birthright(
        id="birthright-4",
        name="Efficient Metabolism",
        description="-15% food and water consumption",
        effects=[Effect(type="resource-consumption", value=-15, description="Reduced resource consumption")],
    ),
    Birthright(
        id="birthright-5",
        name="Natural Explorer",
        description="+10% movement speed",
        effects=[Effect(type="movement", value=10, description="Increased movement speed")],
    ),
)

AUGMENTS: Tuple[Augment, ...] = (
    Augment(
        id="augment-1",
        name="Sand Sovereign",
        description="Immune to the first lethal attack in any conflict",
        effects=[Effect(type="combat", value=100, description="Survive first lethal attack")],
        rarity="legendary",
    ),
    Augment(
        id="augment-2",
        name="Night Piercing Gaze",
        description="Can see in complete darkness and through walls",
        effects=[Effect(type="vision", value=100, description="See in darkness and through walls")],
        rarity="rare",
    ),
    Augment(
        id="augment-3",
        name="Verdant Touch",
        description="Can create food from any organic material",
        effects=[Effect(type="survival", value=50, description="Create food from organic material")],
        rarity="uncommon",
    ),
    Augment(
        id="augment-4",
        name="Aqua Nexus",
        description="Can locate and purify water sources",
        effects=[Effect(type="survival", value=50, description="Locate and purify water")],
        rarity="uncommon",
    ),
    Augment(
        id="augment-5",
        name="Stone Skin",
        description="Skin hardens like stone, reducing damage",
        effects=[Effect(type="defense", value=50, description="Reduce physical damage")],
        rarity="rare",
    ),
)


def random_birthright(rng: random.Random) -> Birthright:
    """Draw a birthright; the returned model is a private copy."""
    return rng.choice(BIRTHRIGHTS).model_copy(deep=True)


def random_augment(rng: random.Random) -> Augment:
    return rng.choice(AUGMENTS).model_copy(deep=True)


# ============================================================================
# Event templates
# ============================================================================


class EventKind(str, Enum):
    """Every kind of world event the generator can produce."""

    # Random pass
    SUPPLY_CACHE = "supply_cache"
    TUNNEL_COLLAPSE = "tunnel_collapse"
    ANCIENT_WRITINGS = "ancient_writings"
    DUST_STORM = "dust_storm"
    STRANGE_WHISPERS = "strange_whispers"
    # Interaction pass, same basin
    SHARED_SUPPLIES = "shared_supplies"
    EXCHANGED_INFORMATION = "exchanged_information"
    TREATED_INJURY = "treated_injury"
    # Interaction pass, different basins
    CAUTIOUS_TRADE = "cautious_trade"
    TENSE_STANDOFF = "tense_standoff"
    RESOURCE_FIGHT = "resource_fight"
    # Resource pass
    FRESH_WATER = "fresh_water"
    EDIBLE_PLANTS = "edible_plants"
    WATER_PUDDLE = "water_puddle"
    SMALL_CREATURE = "small_creature"
    EDIBLE_FUNGI = "edible_fungi"
    # Dungeon pass
    ANCIENT_TECHNOLOGY = "ancient_technology"
    STRANGE_PUZZLES = "strange_puzzles"
    DUNGEON_GUARDIAN = "dungeon_guardian"


PRIMARY = "primary"
SECONDARY = "secondary"


@dataclass(frozen=True)
class OutcomeSpec:
    """Stat change applied to one participant of an event."""

    type: str
    value: int
    description: str
    target: str = PRIMARY


@dataclass(frozen=True)
class EventTemplate:
    """Blueprint for an event.

    ``description`` is a ``str.format`` template with ``{agent}``, ``{other}``
    and ``{dungeon}`` placeholders. ``relationship`` is the affinity change
    both participants of a two-agent event feel toward each other.
    """

    kind: EventKind
    category: str
    description: str
    importance: int
    outcomes: Tuple[OutcomeSpec, ...]
    relationship: int = 0

    def render(self, agent: str, other: str = "", dungeon: str = "") -> str:
        return self.description.format(agent=agent, other=other, dungeon=dungeon)


RANDOM_EVENTS: Tuple[EventTemplate, ...] = (
    EventTemplate(
        EventKind.SUPPLY_CACHE, "random", "{agent} found a hidden cache of supplies.", 4,
        (
            OutcomeSpec("food", 20, "Found food"),
            OutcomeSpec("water", 20, "Found water"),
            OutcomeSpec("morale", 10, "Improved morale"),
        ),
    ),
    EventTemplate(
        EventKind.TUNNEL_COLLAPSE, "random", "{agent} narrowly escaped a collapsing tunnel.", 5,
        (
            OutcomeSpec("health", -10, "Minor injuries"),
            OutcomeSpec("energy", -20, "Lost energy"),
        ),
    ),
    EventTemplate(
        EventKind.ANCIENT_WRITINGS, "random", "{agent} discovered ancient writings on the maze walls.", 6,
        (OutcomeSpec("morale", 15, "Gained insight"),),
    ),
    EventTemplate(
        EventKind.DUST_STORM, "random", "{agent} was caught in a sudden dust storm.", 3,
        (
            OutcomeSpec("health", -5, "Minor injuries"),
            OutcomeSpec("energy", -10, "Lost energy"),
        ),
    ),
    EventTemplate(
        EventKind.STRANGE_WHISPERS, "random", "{agent} heard strange whispers from deeper in the maze.", 4,
        (OutcomeSpec("morale", -5, "Unsettled"),),
    ),
)

SAME_BASIN_INTERACTIONS: Tuple[EventTemplate, ...] = (
    EventTemplate(
        EventKind.SHARED_SUPPLIES, "social", "{agent} shared supplies with {other}.", 3,
        (
            OutcomeSpec("food", 10, "Received food", SECONDARY),
            OutcomeSpec("water", 10, "Received water", SECONDARY),
            OutcomeSpec("morale", 5, "Improved morale from helping"),
            OutcomeSpec("morale", 10, "Improved morale from receiving help", SECONDARY),
        ),
        relationship=10,
    ),
    EventTemplate(
        EventKind.EXCHANGED_INFORMATION, "social", "{agent} and {other} exchanged information about the maze.", 4,
        (
            OutcomeSpec("morale", 5, "Gained knowledge"),
            OutcomeSpec("morale", 5, "Gained knowledge", SECONDARY),
        ),
        relationship=5,
    ),
    EventTemplate(
        EventKind.TREATED_INJURY, "social", "{agent} helped {other} treat a minor injury.", 5,
        (
            OutcomeSpec("health", 15, "Healed injury", SECONDARY),
            OutcomeSpec("morale", 5, "Improved morale from helping"),
            OutcomeSpec("morale", 10, "Improved morale from receiving help", SECONDARY),
        ),
        relationship=10,
    ),
)

MIXED_BASIN_INTERACTIONS: Tuple[EventTemplate, ...] = (
    EventTemplate(
        EventKind.CAUTIOUS_TRADE, "social", "{agent} and {other} cautiously traded supplies.", 4,
        (
            OutcomeSpec("food", 5, "Received food", SECONDARY),
            OutcomeSpec("water", 5, "Received water"),
        ),
        relationship=5,
    ),
    EventTemplate(
        EventKind.TENSE_STANDOFF, "social", "{agent} and {other} had a tense standoff.", 5,
        (
            OutcomeSpec("morale", -5, "Stress from confrontation"),
            OutcomeSpec("morale", -5, "Stress from confrontation", SECONDARY),
            OutcomeSpec("energy", -5, "Lost energy"),
            OutcomeSpec("energy", -5, "Lost energy", SECONDARY),
        ),
        relationship=-5,
    ),
    EventTemplate(
        EventKind.RESOURCE_FIGHT, "combat", "{agent} fought with {other} over resources.", 7,
        (
            OutcomeSpec("health", -20, "Injured in fight"),
            OutcomeSpec("health", -15, "Injured in fight", SECONDARY),
            OutcomeSpec("energy", -15, "Lost energy"),
            OutcomeSpec("energy", -15, "Lost energy", SECONDARY),
        ),
        relationship=-15,
    ),
)

BASIN_RESOURCE_EVENTS: Tuple[EventTemplate, ...] = (
    EventTemplate(
        EventKind.FRESH_WATER, "resource", "{agent} found a fresh water source in the basin.", 4,
        (
            OutcomeSpec("water", 30, "Found water"),
            OutcomeSpec("morale", 10, "Improved morale"),
        ),
    ),
    EventTemplate(
        EventKind.EDIBLE_PLANTS, "resource", "{agent} harvested edible plants growing in the basin.", 4,
        (
            OutcomeSpec("food", 25, "Found food"),
            OutcomeSpec("morale", 5, "Improved morale"),
        ),
    ),
)

WILD_RESOURCE_EVENTS: Tuple[EventTemplate, ...] = (
    EventTemplate(
        EventKind.WATER_PUDDLE, "resource", "{agent} found a small puddle of water.", 3,
        (OutcomeSpec("water", 15, "Found water"),),
    ),
    EventTemplate(
        EventKind.SMALL_CREATURE, "resource", "{agent} caught a small creature for food.", 3,
        (OutcomeSpec("food", 20, "Found food"),),
    ),
    EventTemplate(
        EventKind.EDIBLE_FUNGI, "resource", "{agent} found some edible fungi growing on the walls.", 3,
        (OutcomeSpec("food", 10, "Found food"),),
    ),
)

DUNGEON_EVENTS: Tuple[EventTemplate, ...] = (
    EventTemplate(
        EventKind.ANCIENT_TECHNOLOGY, "dungeon", "{agent} discovered ancient technology in the {dungeon}.", 7,
        (OutcomeSpec("morale", 20, "Excitement from discovery"),),
    ),
    EventTemplate(
        EventKind.STRANGE_PUZZLES, "dungeon", "{agent} was tested by strange puzzles in the {dungeon}.", 6,
        (
            OutcomeSpec("energy", -20, "Mental exertion"),
            OutcomeSpec("morale", 10, "Satisfaction from solving puzzles"),
        ),
    ),
    EventTemplate(
        EventKind.DUNGEON_GUARDIAN, "dungeon", "{agent} encountered a guardian in the {dungeon}.", 8,
        (
            OutcomeSpec("health", -30, "Injured by guardian"),
            OutcomeSpec("energy", -25, "Exhausted from battle"),
        ),
    ),
)
