"""Race (species) extraction."""

import re

from ..errors import CandidateRejected
from ..models.records import NamedText, Race
from ..normalize.confidence import calculate_confidence
from .patterns import (
    CREATURE_SIZES,
    KNOWN_RACES,
    NAME,
    canonical_name,
    denylist,
    named_entries,
    plain_entries,
    tidy,
    truncate,
)
from .rules import Candidate, ExtractionRule, ScanContext, run_rules

RACE_DENYLIST = denylist(
    "Race", "Races", "Size", "Speed", "Ability", "Score", "Increase", "Trait",
    "Traits", "Language", "Languages", "Subrace", "Subraces", "Feature",
    "Features", "Proficiency", "Proficiencies", "Skill", "Skills", "Saving",
    "Throw", "Throws", "Armor", "Weapon", "Weapons", "Tool", "Tools",
    "Equipment", "Starting", "Hit", "Points", "Dice", "Level", "Class",
    "Classes", "Background", "Backgrounds", "Spell", "Spells", "Monster",
    "Monsters", "Item", "Items", "Feat", "Feats",
)

PLAIN_RACE = re.compile(
    rf"^((?:The[ \t]+)?{NAME})[ \t]*\n[ \t]*(?:Race|Size|Speed)\b",
    re.MULTILINE,
)

HEADING_RACE = re.compile(
    rf"^\#\#[ \t]+({NAME})[ \t]*\n[ \t]*[*_]{{0,2}}(?:Race|Size|Speed)\b",
    re.MULTILINE,
)

PLAIN_BOUNDARY = re.compile(r"\n[A-Z][A-Za-z' \-]{2,50}[ \t]*\n[ \t]*(?:Race|Size|Speed)\b")
HEADING_BOUNDARY = re.compile(r"\n\#\#[ \t]+[A-Z]")

RACE_SECTION = r"Races?"
RACE_SECTION_DISTANCE = 10000

# Entries that are race fields rather than traits
_NOT_TRAITS = re.compile(r"^(?:Size|Speed|Ability|Languages?|Subraces?)\b", re.IGNORECASE)
_SIZE_LINE = re.compile(r"^[ \t]*[*_]{0,3}Size\b[*_.:]*[ \t]*([^\n]+)", re.IGNORECASE | re.MULTILINE)
_SIZE_WORD = re.compile(rf"\b({'|'.join(CREATURE_SIZES)})\b", re.IGNORECASE)
_SPEED = re.compile(r"^[ \t]*[*_]{0,3}(?:Base[ \t]+Walking[ \t]+)?Speed\b[^\n\d]{0,80}?(\d+)", re.IGNORECASE | re.MULTILINE)
_ASI = re.compile(r"Your\s+(\w+)\s+score\s+increases?\s+by\s+(\d+)", re.IGNORECASE)
_LANGUAGES = re.compile(r"^[ \t]*[*_]{0,3}Languages?\b[*_.:]*[ \t]*([^\n]+)", re.IGNORECASE | re.MULTILINE)

ABILITY_PREFIXES = ("str", "dex", "con", "int", "wis", "cha")


def is_known_race(name: str) -> bool:
    """Known race, a variant naming one ("Hill Dwarf"), or a close misspelling."""
    for race in KNOWN_RACES:
        if re.search(rf"\b{re.escape(race)}\b", name, re.IGNORECASE):
            return True
    return canonical_name(name, KNOWN_RACES) is not None


def parse_languages(value: str | None) -> list[str]:
    """``You can speak, read, and write Common and Dwarvish.`` -> ["Common", "Dwarvish"]."""
    if not value:
        return []
    written = re.search(r"\bwrite\s+(.+)", value, re.IGNORECASE)
    if written:
        value = written.group(1)
    value = re.split(r"\.\s", value, maxsplit=1)[0]
    parts = re.split(r",|\band\b", value)
    return [part.strip(" .*_") for part in parts if part.strip(" .*_")]


def build_race(candidate: Candidate) -> Race:
    if not is_known_race(candidate.name) and not candidate.near_heading(RACE_SECTION, RACE_SECTION_DISTANCE):
        raise CandidateRejected("unknown_race")

    block = candidate.block
    assumed: list[str] = []

    size = None
    size_line = _SIZE_LINE.search(block)
    size_word = _SIZE_WORD.search(size_line.group(1)) if size_line else None
    if size_word is None:
        size_word = re.search(r"Your\s+size\s+is\s+(\w+)", block, re.IGNORECASE)
    if size_word:
        size = size_word.group(1).lower()
    else:
        size = "medium"
        assumed.append("size")

    speed_match = _SPEED.search(block)
    if speed_match:
        speed = int(speed_match.group(1))
    else:
        speed = 30
        assumed.append("speed")

    increases: dict[str, int] = {}
    for ability, amount in _ASI.findall(block):
        key = ability.lower()[:3]
        if key in ABILITY_PREFIXES:
            increases[key] = int(amount)

    entries = named_entries(block) or plain_entries(candidate.body)
    traits = [
        NamedText(name=name, description=description[:500])
        for name, description in entries
        if not _NOT_TRAITS.match(name) and name.lower() != candidate.name.lower()
    ]

    languages_line = _LANGUAGES.search(block)
    languages = parse_languages(languages_line.group(1) if languages_line else None)

    confidence = calculate_confidence(
        has_weight=False,
        has_cost=False,
        has_description=len(block) > 100,
        description_length=len(block),
        has_structured_data=bool(traits) or (size_line is not None and speed_match is not None),
        kind="race",
    )

    return Race(
        name=candidate.name,
        source=candidate.source,
        description=truncate(tidy(candidate.body)),
        size=size,
        speed=speed,
        ability_score_increases=increases,
        traits=traits,
        languages=languages,
        extraction_confidence_score=confidence,
        assumed_fields=assumed,
    )


RACE_GATES = [
    ("invalid_speed", lambda race: 0 < race.speed < 200),
]


def _strip_article(name: str) -> str:
    return re.sub(r"^The\s+", "", name).strip()


RULES = [
    ExtractionRule(
        name="race_plain",
        trigger=PLAIN_RACE,
        build=build_race,
        boundary=PLAIN_BOUNDARY,
        max_window=3000,
        denylist=RACE_DENYLIST,
        gates=RACE_GATES,
        clean_name=_strip_article,
    ),
]

ENHANCED_RULES = [
    ExtractionRule(
        name="race_heading",
        trigger=HEADING_RACE,
        build=build_race,
        boundary=HEADING_BOUNDARY,
        max_window=3000,
        denylist=RACE_DENYLIST,
        gates=RACE_GATES,
    ),
]


def extract_races(text: str, source: str, context: ScanContext | None = None) -> list[Race]:
    return run_rules(RULES, text, source, context)


def extract_races_enhanced(text: str, source: str, context: ScanContext | None = None) -> list[Race]:
    return run_rules(ENHANCED_RULES, text, source, context)
