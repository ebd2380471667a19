"""Trap and hazard extraction."""

import re

from ..models.records import Trap
from ..normalize.confidence import calculate_confidence
from .patterns import THREAT_LEVELS, infer_difficulty, labelled_paragraph, tidy, truncate
from .rules import Candidate, ExtractionRule, ScanContext, min_description, run_rules

# The Collapsing Roof Trap
# simple trap (level 1-4, dangerous threat)
STRUCTURED_TRAP = re.compile(
    r"(The[ \t]+[A-Z][A-Za-z' \-]{3,40}?[ \t]+Trap)[ \t]*\n[ \t]*(?:simple|complex)[ \t]+trap[ \t]*\([^)]+\)",
    re.IGNORECASE,
)

STANDARD_TRAP = re.compile(
    r"(?:^\#\#[ \t]+|\*\*)([A-Z][^\n*]+?)(?:\*\*)?[ \t]*(?:Trap|Hazard)\b",
    re.MULTILINE,
)

STRUCTURED_BOUNDARY = re.compile(r"The[ \t]+[A-Z][^\n]+?[ \t]+Trap\b|\#\#[ \t]+[A-Z]|\n\n\n")
STANDARD_BOUNDARY = re.compile(r"\n(?:\#\#|\*\*)[A-Z]")

TRAP_DENYLIST = re.compile(r"^The\s+(?:Traps?|[A-Z])\s*(?:Trap)?$", re.IGNORECASE)

_SECTION_LABELS = r"Trigger|Effect|Countermeasures|Special"
_DC = re.compile(r"\bDC[ \t]+(\d+)", re.IGNORECASE)
_DAMAGE = re.compile(r"(\d+d\d+[^\n]*?damage)", re.IGNORECASE)
_LEVEL_RANGE = re.compile(r"level[ \t]+(\d+)[ \t]*[-–][ \t]*(\d+)", re.IGNORECASE)
_THREAT = re.compile(r"\b(setback|dangerous|deadly)[ \t]+threat", re.IGNORECASE)


def build_trap(candidate: Candidate, description: str) -> Trap:
    """Read trap fields from ``description``; rules differ in what they count as the description."""
    dc = _DC.search(description)
    damage = _DAMAGE.search(description)
    level_range = _LEVEL_RANGE.search(description)
    threat = _THREAT.search(description)

    trigger = labelled_paragraph(description, "Trigger", _SECTION_LABELS)
    effect = labelled_paragraph(description, "Effect", _SECTION_LABELS)
    countermeasures = labelled_paragraph(description, "Countermeasures", _SECTION_LABELS)
    special = labelled_paragraph(description, "Special", _SECTION_LABELS)

    confidence = calculate_confidence(
        has_weight=False,
        has_cost=False,
        has_description=bool(description),
        description_length=len(description),
        has_structured_data=trigger is not None or effect is not None,
        kind="trap",
    )

    return Trap(
        name=candidate.name,
        source=candidate.source,
        description=truncate(description),
        trigger=trigger,
        effect=effect,
        countermeasures=countermeasures,
        special=special,
        difficulty_class=int(dc.group(1)) if dc else None,
        damage=damage.group(1).strip() if damage else None,
        level_range=f"{level_range.group(1)}-{level_range.group(2)}" if level_range else None,
        threat_level=threat.group(1).lower() if threat else None,
        difficulty=infer_difficulty(description),
        extraction_confidence_score=confidence,
    )


def build_structured_trap(candidate: Candidate) -> Trap:
    return build_trap(candidate, tidy(candidate.block))


def build_standard_trap(candidate: Candidate) -> Trap:
    return build_trap(candidate, tidy(candidate.body.lstrip("*")))


TRAP_GATES = [
    ("invalid_dc", lambda trap: trap.difficulty_class is None or 1 <= trap.difficulty_class <= 30),
    ("invalid_threat", lambda trap: trap.threat_level is None or trap.threat_level in THREAT_LEVELS),
]

RULES = [
    ExtractionRule(
        name="trap_structured",
        trigger=STRUCTURED_TRAP,
        build=build_structured_trap,
        boundary=STRUCTURED_BOUNDARY,
        max_window=2000,
        min_name_length=8,
        denylist=TRAP_DENYLIST,
        gates=[min_description(60), *TRAP_GATES],
    ),
    ExtractionRule(
        name="trap_standard",
        trigger=STANDARD_TRAP,
        build=build_standard_trap,
        boundary=STANDARD_BOUNDARY,
        max_window=2000,
        gates=[min_description(31), *TRAP_GATES],
    ),
]


def extract_traps(text: str, source: str, context: ScanContext | None = None) -> list[Trap]:
    return run_rules(RULES, text, source, context)
