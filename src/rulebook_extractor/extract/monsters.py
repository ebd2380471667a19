"""Monster stat block extraction.

Two header forms are recognised: the markdown stat block

    ## Goblin
    Challenge 1/4
    Small humanoid (goblinoid), neutral evil
    **AC **15 (leather armor, shield)
    **HP **7 (2d6)
    **Speed **30 ft.

and the plain-text ``Name`` / ``Challenge 1/4`` form from PDF output. Both
share one builder that reads the rest of the block line by line.
"""

import re

from ..models.records import AbilityScores, LegendaryAction, Monster, MonsterAction, NamedText
from ..normalize.challenge import parse_challenge_rating, xp_for_challenge_rating
from ..normalize.confidence import calculate_confidence
from .patterns import (
    ABILITIES,
    CREATURE_SIZES,
    NAME,
    clean_inline,
    named_entries,
    plain_entries,
    signed_values,
    split_list,
)
from .rules import Candidate, ExtractionRule, ScanContext, run_rules

MARKDOWN_MONSTER = re.compile(
    r"^\#\#[ \t]+([A-Z][^\n]+?)[ \t]*\n"
    r"[ \t]*Challenge[ \t]+(?P<cr>[\d./]+)[^\n]*\n"
    r"[ \t]*(?P<size_line>[^\n]+)\n"
    r"[ \t]*\*\*AC[ \t]*\*\*[ \t]*(?P<ac>\d+)(?:[ \t]*\((?P<ac_type>[^)\n]+)\))?[^\n]*\n"
    r"[ \t]*\*\*HP[ \t]*\*\*[ \t]*(?P<hp>\d+)(?:[ \t]*\((?P<hit_dice>[^)\n]+)\))?[^\n]*\n"
    r"[ \t]*\*\*Speed[ \t]*\*\*[ \t]*(?P<speed>[^\n]+)\n",
    re.MULTILINE,
)

PLAIN_MONSTER = re.compile(
    rf"^({NAME})[ \t]*\n[ \t]*(?:Challenge|CR)[ \t:]+(?P<cr>[\d./]+)",
    re.MULTILINE,
)

MONSTER_BOUNDARY = re.compile(
    r"\n(?:\#\#[ \t]+[A-Z]|[A-Z][A-Za-z' \-]{2,50}[ \t]*\n[ \t]*(?:Challenge|CR)\b)"
)

_SECTION_HEADING = re.compile(
    r"^[ \t]*(?:\#+[ \t]*)?[*_]{0,3}"
    r"(?P<title>Traits?|Actions?|Bonus[ \t]+Actions?|Legendary[ \t]+Actions?|Reactions?|Lair[ \t]+Actions?)"
    r"[*_]{0,3}[ \t]*:?[ \t]*$",
    re.IGNORECASE | re.MULTILINE,
)

_SECTION_KEYS = {
    "trait": "traits",
    "action": "actions",
    "bonus action": "actions",
    "legendary action": "legendary_actions",
    "reaction": "reactions",
    "lair action": "lair_actions",
}

# Bold labels in the stat block that are not traits
_STAT_LABELS = re.compile(
    r"^(?:AC|HP|Speed|STR|DEX|CON|INT|WIS|CHA|Armor Class|Hit Points|Saving Throws|Skills|"
    r"Damage \w+|Condition Immunities|Senses|Languages|Challenge|XP|Proficiency Bonus)\b",
    re.IGNORECASE,
)

_SIZE_TYPE = re.compile(
    r"\b(Tiny|Small|Medium|Large|Huge|Gargantuan)\b[ \t]+([^\n,]+)(?:,[ \t]*([^\n]+))?",
    re.IGNORECASE,
)
_ARMOR_CLASS = re.compile(r"Armor[ \t]+Class[ \t:]+(\d+)(?:[ \t]*\(([^)\n]+)\))?", re.IGNORECASE)
_HIT_POINTS = re.compile(r"Hit[ \t]+Points[ \t:]+(\d+)(?:[ \t]*\(([^)\n]+)\))?", re.IGNORECASE)
_XP = re.compile(r"\*\*XP:?\*\*[ \t:]*([\d,]+)|\(([\d,]+)[ \t]*XP\)", re.IGNORECASE)
_SPEED_PART = re.compile(r"(?:\b([a-z]+)[ \t]+)?(\d+)[ \t]*(?:ft|feet)", re.IGNORECASE)
_ABILITY_ROW = re.compile(
    r"\bSTR\b[ \t|]*\bDEX\b[ \t|]*\bCON\b[ \t|]*\bINT\b[ \t|]*\bWIS\b[ \t|]*\bCHA\b[^\n]*\n(?:[ \t|:\-]+\n)?(?P<values>[^\n]+)"
)
_TO_HIT = re.compile(r"([+\-−]\d+)[ \t]+to[ \t]+hit", re.IGNORECASE)
_DAMAGE = re.compile(r"(\d+d\d+(?:[ \t]*[+\-−][ \t]*\d+)?)", re.IGNORECASE)
_COSTS = re.compile(r"\(Costs?[ \t]+(\d+)[ \t]+Actions?\)", re.IGNORECASE)

SPEED_MODES = ("walk", "fly", "swim", "climb", "burrow")


def stat_line(block: str, label: str) -> str | None:
    """Value of a stat block line such as ``**Senses:** darkvision 60 ft.``.

    The colon is optional since plain-text stat blocks often omit it.
    """
    match = re.search(
        rf"^[ \t]*[*_]{{0,2}}(?:{label})[*_]{{0,2}}[ \t]*:?[ \t]*[*_]{{0,2}}[ \t]*(?P<value>[^\n]+)",
        block,
        re.IGNORECASE | re.MULTILINE,
    )
    if not match:
        return None
    return clean_inline(match.group("value")) or None


def parse_speed(text: str | None) -> dict[str, int]:
    """``30 ft., fly 60 ft. (hover)`` -> ``{"walk": 30, "fly": 60}``."""
    speed: dict[str, int] = {}
    if not text:
        return speed
    for mode, feet in _SPEED_PART.findall(text):
        mode = mode.lower()
        if mode not in SPEED_MODES:
            mode = "walk"
        speed.setdefault(mode, int(feet))
    return speed


def parse_ability_scores(block: str) -> tuple[AbilityScores, list[str]]:
    """Ability scores and the list of abilities that were not found."""
    found: dict[str, int] = {}

    row = _ABILITY_ROW.search(block)
    if row:
        values = re.findall(r"\d+", re.sub(r"\([^)]*\)", "", row.group("values")))
        if len(values) >= 6:
            found = {ability: int(value) for ability, value in zip(ABILITIES, values)}

    if not found:
        for ability in ABILITIES:
            match = re.search(rf"\b{ability.upper()}\b[ \t*:]*(\d+)", block)
            if match:
                found[ability] = int(match.group(1))

    missing = [ability for ability in ABILITIES if ability not in found]
    return AbilityScores(**found), missing


def split_sections(block: str) -> dict[str, str]:
    """Split a stat block into its sub-blocks.

    Text before the first sub-block heading is returned under ``preamble``.
    """
    headings = list(_SECTION_HEADING.finditer(block))
    sections: dict[str, str] = {"preamble": block[:headings[0].start()] if headings else block}
    for index, heading in enumerate(headings):
        end = headings[index + 1].start() if index + 1 < len(headings) else len(block)
        title = re.sub(r"\s+", " ", heading.group("title").lower()).rstrip("s")
        key = _SECTION_KEYS[title]
        body = block[heading.end():end]
        sections[key] = f"{sections[key]}\n{body}" if key in sections else body
    return sections


def section_entries(section: str | None) -> list[tuple[str, str]]:
    """Named paragraphs in a sub-block, bold or plain ``Name. text``."""
    if not section:
        return []
    entries = [
        (name, description)
        for name, description in named_entries(section)
        if not _STAT_LABELS.match(name) and not name.endswith(":")
    ]
    if entries:
        return entries
    return [entry for entry in plain_entries(section) if not _STAT_LABELS.match(entry[0])]


def parse_action(name: str, description: str) -> MonsterAction:
    to_hit = _TO_HIT.search(description)
    damage = _DAMAGE.search(description)
    return MonsterAction(
        name=name,
        description=description[:500],
        attack_bonus=int(to_hit.group(1).replace("−", "-")) if to_hit else None,
        damage=re.sub(r"\s+", "", damage.group(1)) if damage else None,
    )


def parse_legendary_action(name: str, description: str) -> LegendaryAction:
    cost = _COSTS.search(name) or _COSTS.search(description[:40])
    return LegendaryAction(
        name=_COSTS.sub("", name).strip(),
        description=description[:500],
        cost=int(cost.group(1)) if cost else 1,
    )


def build_monster(candidate: Candidate) -> Monster:
    block = candidate.block
    groups = candidate.match.groupdict()
    assumed: list[str] = []

    size_line = groups.get("size_line") or ""
    size_type = _SIZE_TYPE.search(size_line) or _SIZE_TYPE.search(block)
    if size_type:
        size = size_type.group(1).lower()
        monster_type = re.sub(r"\(.*", "", size_type.group(2)).strip().lower()
        alignment = size_type.group(3).strip() if size_type.group(3) else None
    else:
        size, monster_type, alignment = "medium", "beast", None
        assumed.extend(["size", "type"])

    ac_match = _ARMOR_CLASS.search(block)
    if groups.get("ac"):
        armor_class, armor_class_type = int(groups["ac"]), groups.get("ac_type")
    elif ac_match:
        armor_class, armor_class_type = int(ac_match.group(1)), ac_match.group(2)
    else:
        armor_class, armor_class_type = 10, None
        assumed.append("armor_class")

    hp_match = _HIT_POINTS.search(block)
    if groups.get("hp"):
        hit_points, hit_dice = int(groups["hp"]), groups.get("hit_dice")
    elif hp_match:
        hit_points, hit_dice = int(hp_match.group(1)), hp_match.group(2)
    else:
        hit_points, hit_dice = 1, None
        assumed.append("hit_points")

    speed = parse_speed(groups.get("speed") or stat_line(block, "Speed"))
    if not speed:
        speed = {"walk": 30}
        assumed.append("speed")

    stats, missing = parse_ability_scores(block)
    assumed.extend(f"stats.{ability}" for ability in missing)

    challenge_rating = parse_challenge_rating(groups["cr"])

    xp_match = _XP.search(block)
    if xp_match:
        xp = int((xp_match.group(1) or xp_match.group(2)).replace(",", ""))
    else:
        xp = xp_for_challenge_rating(challenge_rating)
        if xp is not None:
            assumed.append("xp")

    saving_throws = {
        name[:3]: value
        for name, value in signed_values(stat_line(block, r"Saving[ \t]+Throws")).items()
    }

    sections = split_sections(block)
    traits = [
        NamedText(name=name, description=description[:500])
        for name, description in section_entries(sections["preamble"]) + section_entries(sections.get("traits"))
    ]
    actions = [parse_action(*entry) for entry in section_entries(sections.get("actions"))]
    legendary_actions = [
        parse_legendary_action(*entry) for entry in section_entries(sections.get("legendary_actions"))
    ]
    reactions = [
        NamedText(name=name, description=description[:500])
        for name, description in section_entries(sections.get("reactions"))
    ]
    lair_actions = [
        NamedText(name=name, description=description[:500])
        for name, description in section_entries(sections.get("lair_actions"))
    ]

    confidence = calculate_confidence(
        has_weight=False,
        has_cost=False,
        has_description=len(block) > 200,
        description_length=len(block),
        has_structured_data=bool(traits or actions),
        kind="monster",
    )

    return Monster(
        name=candidate.name,
        source=candidate.source,
        size=size,
        type=monster_type or "beast",
        alignment=alignment,
        armor_class=armor_class,
        armor_class_type=armor_class_type.strip() if armor_class_type else None,
        hit_points=hit_points,
        hit_dice=hit_dice.strip() if hit_dice else None,
        speed=speed,
        stats=stats,
        saving_throws=saving_throws,
        skills=signed_values(stat_line(block, "Skills")),
        damage_resistances=split_list(stat_line(block, r"Damage[ \t]+Resistances")),
        damage_immunities=split_list(stat_line(block, r"Damage[ \t]+Immunities")),
        condition_immunities=split_list(stat_line(block, r"Condition[ \t]+Immunities")),
        senses=stat_line(block, "Senses"),
        languages=stat_line(block, "Languages"),
        challenge_rating=challenge_rating,
        xp=xp,
        traits=traits,
        actions=actions,
        legendary_actions=legendary_actions,
        reactions=reactions,
        lair_actions=lair_actions,
        extraction_confidence_score=confidence,
        assumed_fields=assumed,
    )


MONSTER_GATES = [
    ("invalid_size", lambda monster: monster.size in CREATURE_SIZES),
    (
        "invalid_challenge_rating",
        lambda monster: monster.challenge_rating is not None and 0 <= monster.challenge_rating <= 30,
    ),
]

RULES = [
    ExtractionRule(
        name="monster_markdown",
        trigger=MARKDOWN_MONSTER,
        build=build_monster,
        boundary=MONSTER_BOUNDARY,
        max_window=5000,
        gates=MONSTER_GATES,
    ),
    ExtractionRule(
        name="monster_plain",
        trigger=PLAIN_MONSTER,
        build=build_monster,
        boundary=MONSTER_BOUNDARY,
        max_window=5000,
        gates=MONSTER_GATES,
    ),
]


def extract_monsters(text: str, source: str, context: ScanContext | None = None) -> list[Monster]:
    """Extract monster stat blocks from rulebook text."""
    return run_rules(RULES, text, source, context)
