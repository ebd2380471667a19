"""Feat extraction.

Plain-text feats are only looked for near a ``Feats`` heading; outside a
feat chapter the ``Name`` / ``When you ...`` shape matches far too much
ordinary prose.
"""

import re

from ..errors import CandidateRejected
from ..models.records import Feat
from ..normalize.confidence import calculate_confidence
from .patterns import LONG_NAME, denylist, tidy, truncate
from .rules import Candidate, ExtractionRule, ScanContext, min_description, run_rules

FEAT_DENYLIST = denylist(
    "Spell", "Spells", "Monster", "Monsters", "Item", "Items", "Class", "Classes",
    "Race", "Races", "Background", "Backgrounds", "Level", "Ability", "Skill",
    "Saving", "Attack", "Damage", "Armor", "Hit", "Speed", "Challenge",
    "Experience", "Proficiency", "Equipment", "Weapon", "Tool", "Language",
    "Feature", "Trait", "Action", "Reaction", "Legendary", "Lair", "Regional",
    "Innate", "Spellcasting", "Cantrip", "Ritual", "Concentration", "Material",
    "Somatic", "Verbal", "Component", "Range", "Duration", "Casting", "Time",
    "School", "Evocation", "Abjuration", "Conjuration", "Divination",
    "Enchantment", "Illusion", "Necromancy", "Transmutation", "Feat", "Feats",
    "Prerequisite", "Prerequisites",
)

PLAIN_FEAT = re.compile(
    r"^([A-Z][A-Za-z' \-]{3,40}?)[ \t]*\n[ \t]*(?:Prerequisites?\b|You[ \t]+gain|When[ \t]+you)",
    re.MULTILINE,
)

HEADING_FEAT = re.compile(
    rf"^(?:\#{{2,4}}[ \t]+|\*\*)({LONG_NAME})(?:\*\*)?[ \t]*\n[ \t]*[*_]{{0,2}}Prerequisites?\b",
    re.MULTILINE,
)

PLAIN_BOUNDARY = re.compile(
    r"\n[A-Z][A-Za-z' \-]{3,40}[ \t]*\n[ \t]*(?:Prerequisites?\b|You[ \t]+gain|When[ \t]+you)"
)
HEADING_BOUNDARY = re.compile(r"\n(?:\#{2,4}[ \t]*|\*\*)[A-Z]")

FEAT_SECTION = r"Feats?"
FEAT_SECTION_DISTANCE = 5000

_PREREQUISITE = re.compile(
    r"^[ \t]*[*_]{0,2}Prerequisites?[*_]{0,2}[ \t]*:?[*_]{0,2}[ \t]*([^\n]+)\n?",
    re.IGNORECASE | re.MULTILINE,
)
_BULLET = re.compile(r"^[ \t]*(?:[-•*]|\d+[.)])[ \t]+(\S[^\n]*)", re.MULTILINE)


def build_feat(candidate: Candidate) -> Feat:
    body = candidate.block[candidate.block.index("\n") + 1:]

    prerequisites = None
    prerequisite = _PREREQUISITE.search(body)
    if prerequisite:
        prerequisites = prerequisite.group(1).strip(" *_") or None
        body = body[:prerequisite.start()] + body[prerequisite.end():]

    benefits = [line.strip() for line in _BULLET.findall(body)]
    description = truncate(tidy(body))

    confidence = calculate_confidence(
        has_weight=False,
        has_cost=False,
        has_description=len(description) > 50,
        description_length=len(description),
        has_structured_data=prerequisites is not None or bool(benefits),
        kind="feat",
    )

    return Feat(
        name=candidate.name,
        source=candidate.source,
        description=description,
        prerequisites=prerequisites,
        benefits=benefits,
        extraction_confidence_score=confidence,
    )


def build_plain_feat(candidate: Candidate) -> Feat:
    if not candidate.near_heading(FEAT_SECTION, FEAT_SECTION_DISTANCE):
        raise CandidateRejected("outside_feats_section")
    return build_feat(candidate)


RULES = [
    ExtractionRule(
        name="feat_plain",
        trigger=PLAIN_FEAT,
        build=build_plain_feat,
        boundary=PLAIN_BOUNDARY,
        max_window=1000,
        denylist=FEAT_DENYLIST,
        gates=[min_description(31)],
    ),
]

ENHANCED_RULES = [
    ExtractionRule(
        name="feat_heading",
        trigger=HEADING_FEAT,
        build=build_feat,
        boundary=HEADING_BOUNDARY,
        max_window=1000,
        denylist=FEAT_DENYLIST,
        gates=[min_description(21)],
    ),
]


def extract_feats(text: str, source: str, context: ScanContext | None = None) -> list[Feat]:
    """Feats from a ``Feats`` chapter of plain text."""
    return run_rules(RULES, text, source, context)


def extract_feats_enhanced(text: str, source: str, context: ScanContext | None = None) -> list[Feat]:
    """Feats under markdown headings or bold names with a prerequisite line."""
    return run_rules(ENHANCED_RULES, text, source, context)
