"""Spell extraction.

Spells are recognised by a name line followed by a level/school line:

    Fireball
    3rd-level evocation
    Casting Time: 1 action
    ...

or the markdown form ``#### Fireball`` / ``_3rd-level evocation_`` /
``**Casting Time:** 1 action``.
"""

import re

from ..models.records import Spell
from ..normalize.confidence import calculate_confidence
from .patterns import (
    NAME,
    SCHOOL_ALTERNATION,
    SPELL_SCHOOLS,
    label_value,
    tidy,
    truncate,
)
from .rules import Candidate, ExtractionRule, ScanContext, min_description, one_of, run_rules

# A name line followed by a level line, used to find where a spell block ends
SPELL_BOUNDARY = re.compile(
    r"^(?:\#{2,4}[ \t]+)?[A-Z][^\n]{2,60}\n[ \t]*_?"
    rf"(?i:\d(?:st|nd|rd|th)?[- ]level\b|(?:{SCHOOL_ALTERNATION})[ \t]+cantrip|cantrip\b)",
    re.MULTILINE,
)

MARKDOWN_SPELL = re.compile(
    rf"^\#{{3,4}}[ \t]+({NAME})[ \t]*\n[ \t]*_(?P<level_line>[^_\n]+)_[ \t]*\n(?=[ \t]*\*\*Casting Time)",
    re.MULTILINE,
)

# Mixed-case name so that all-caps headers fall to the rule below
PLAIN_SPELL = re.compile(
    rf"^([A-Z](?=[^\n]*[a-z])[A-Za-z' \-]{{2,50}}?)[ \t]*\n"
    rf"[ \t]*(?P<level_line>(?i:\d(?:st|nd|rd|th)?[- ]level[ \t]+(?:{SCHOOL_ALTERNATION})[^\n]*))",
    re.MULTILINE,
)

CAPS_SPELL = re.compile(
    r"^([A-Z][A-Z' \-]{2,50}?)[ \t]*\n"
    r"[ \t]*(?P<level_line>(?i:\d(?:st|nd|rd|th)?[- ]level\b[^\n]*))",
    re.MULTILINE,
)

CANTRIP_SPELL = re.compile(
    rf"^({NAME})[ \t]*\n"
    rf"[ \t]*(?P<level_line>(?i:(?:{SCHOOL_ALTERNATION})[ \t]+cantrip|cantrip[ \t]+\(?(?:{SCHOOL_ALTERNATION})\)?)[^\n]*)",
    re.MULTILINE,
)

_LEVEL_RE = re.compile(r"(\d)(?:st|nd|rd|th)?[- ]level", re.IGNORECASE)
_SCHOOL_RE = re.compile(rf"\b({SCHOOL_ALTERNATION})\b", re.IGNORECASE)
_DURATION_LINE = re.compile(r"^[ \t]*[*_]{0,3}Duration\b[^\n]*\n?", re.IGNORECASE | re.MULTILINE)
_HIGHER_LEVELS = re.compile(
    r"[*_]{0,3}At[ \t]+Higher[ \t]+Levels[.:]?[*_]{0,3}[.:]?\s*", re.IGNORECASE
)
_CASTING_TIME_OK = re.compile(r"action|bonus action|reaction|minute|hour|day", re.IGNORECASE)


def parse_level_line(line: str) -> tuple[int | None, str | None, bool]:
    """``3rd-level evocation (ritual)`` -> (3, "evocation", True)."""
    level = None
    level_match = _LEVEL_RE.search(line)
    if level_match:
        level = int(level_match.group(1))
    elif re.search(r"cantrip", line, re.IGNORECASE):
        level = 0

    school_match = _SCHOOL_RE.search(line)
    school = school_match.group(1).lower() if school_match else None
    return level, school, "ritual" in line.lower()


def parse_components(value: str, block: str) -> tuple[list[str], str | None]:
    """Split ``V, S, M (a pinch of sulfur)`` into letters and the material."""
    letters_part = value.split("(", 1)[0]
    components = [
        letter for letter in ("V", "S", "M")
        if re.search(rf"\b{letter}\b", letters_part)
    ]

    material = None
    if "M" in components:
        # The material text may wrap onto following lines in PDF output
        material_match = re.search(r"Components[^\n]*?\bM\b\s*\(([^)]*)\)", block, re.IGNORECASE | re.DOTALL)
        if material_match:
            material = " ".join(material_match.group(1).split())
    return components, material


def build_spell(candidate: Candidate) -> Spell:
    block = candidate.block
    level, school, ritual = parse_level_line(candidate.match.group("level_line"))
    if school is None:
        school_match = _SCHOOL_RE.search(block)
        school = school_match.group(1).lower() if school_match else ""

    assumed: list[str] = []

    casting_time = label_value(block, r"Casting[ \t]+Time")
    if casting_time is None:
        casting_time = "1 action"
        assumed.append("casting_time")

    spell_range = label_value(block, "Range")
    if spell_range is None:
        spell_range = "Self"
        assumed.append("range")

    raw_components = label_value(block, "Components")
    material = None
    if raw_components is None:
        components = ["V"]
        assumed.append("components")
    else:
        components, material = parse_components(raw_components, block)

    duration = label_value(block, "Duration")
    if duration is None:
        duration = "Instantaneous"
        assumed.append("duration")

    # Description is everything after the duration line
    duration_line = _DURATION_LINE.search(block, candidate.match.end() - candidate.start)
    start = duration_line.end() if duration_line else len(candidate.header)
    description = block[start:]

    higher_level = None
    higher = _HIGHER_LEVELS.search(description)
    if higher:
        higher_level = truncate(tidy(description[higher.end():]), 500) or None
        description = description[:higher.start()]
    description = truncate(tidy(description))

    ritual = ritual or bool(re.search(r"\britual\b", casting_time, re.IGNORECASE))
    concentration = duration.lower().startswith("concentration")

    confidence = calculate_confidence(
        has_weight=False,
        has_cost=False,
        has_description=len(description) > 50,
        description_length=len(description),
        has_structured_data="casting_time" not in assumed and "range" not in assumed,
        kind="spell",
    )

    return Spell(
        name=candidate.name,
        source=candidate.source,
        level=level if level is not None else -1,
        school=school,
        casting_time=casting_time,
        range=spell_range,
        components=components,
        material_components=material,
        duration=duration,
        description=description,
        higher_level=higher_level,
        ritual=ritual,
        concentration=concentration,
        extraction_confidence_score=confidence,
        assumed_fields=assumed,
    )


SPELL_GATES = [
    min_description(20),
    ("invalid_level", lambda spell: 0 <= spell.level <= 9),
    one_of("school", SPELL_SCHOOLS),
    ("invalid_casting_time", lambda spell: bool(_CASTING_TIME_OK.search(spell.casting_time))),
]


def _spell_rule(name: str, trigger: re.Pattern, **kwargs) -> ExtractionRule:
    return ExtractionRule(
        name=name,
        trigger=trigger,
        build=build_spell,
        boundary=SPELL_BOUNDARY,
        max_window=2000,
        gates=SPELL_GATES,
        **kwargs,
    )


RULES = [
    _spell_rule("spell_markdown", MARKDOWN_SPELL),
    _spell_rule("spell_plain", PLAIN_SPELL),
    _spell_rule("spell_caps", CAPS_SPELL, clean_name=lambda name: name.title()),
    _spell_rule("spell_cantrip", CANTRIP_SPELL),
]


def extract_spells(text: str, source: str, context: ScanContext | None = None) -> list[Spell]:
    """Extract spells from rulebook text."""
    return run_rules(RULES, text, source, context)
