"""Subclass extraction.

Plain-text subclasses have no explicit parent, so the parent class is
inferred from the text preceding the header: first a class whose subclass
keyword matches the header, then the nearest class name, then any class
name in a wider window. A subclass with no class anywhere near it is
rejected as a false positive.
"""

import re

from ..errors import CandidateRejected
from ..models.records import LevelFeature, Subclass
from ..normalize.confidence import calculate_confidence
from .classes import canonical_class, level_features
from .patterns import CLASS_ALTERNATION, LONG_NAME, SUBCLASS_KEYWORDS, denylist, tidy, truncate
from .rules import Candidate, ExtractionRule, ScanContext, run_rules

KEYWORDS = (
    "Path", "Archetype", "Domain", "Circle", "Oath", "Way", "School",
    "Origin", "Patron", "Tradition", "College", "Conclave",
)

SUBCLASS_DENYLIST = denylist("Subclass", "Subclasses", "Class Features", "Features", "Spellcasting")

PLAIN_SUBCLASS = re.compile(
    rf"^((?:The[ \t]+)?{LONG_NAME})[ \t]*\n[ \t]*(?P<keyword>{'|'.join(KEYWORDS)})\b",
    re.MULTILINE,
)

HEADING_SUBCLASS = re.compile(
    rf"^\#{{2,3}}[ \t]+({LONG_NAME})[ \t]*\((?P<parent>[A-Z][A-Za-z ]+)\)[ \t]*$",
    re.MULTILINE,
)

PLAIN_BOUNDARY = re.compile(
    rf"\n(?:\#\#[ \t]+)?[A-Z][A-Za-z' \-]{{3,50}}[ \t]*\n[ \t]*(?:{'|'.join(KEYWORDS)})\b"
)
HEADING_BOUNDARY = re.compile(r"\n\#{2,3}[ \t]+[A-Z]")

_CLASS_RE = re.compile(rf"\b({CLASS_ALTERNATION})\b", re.IGNORECASE)

BACKWARD_CONTEXT = 3000
WIDE_BEFORE = 5000
WIDE_AFTER = 1000


def infer_parent_class(candidate: Candidate, keyword: str | None) -> str | None:
    """Find the class a plain-text subclass header belongs to."""
    context = candidate.context_before(BACKWARD_CONTEXT)

    if keyword:
        for class_name, keywords in SUBCLASS_KEYWORDS.items():
            if keyword.lower() not in (k.lower() for k in keywords):
                continue
            if re.search(rf"\b{class_name}\b", context, re.IGNORECASE):
                return class_name

    mentions = list(_CLASS_RE.finditer(context))
    if mentions:
        return canonical_class(mentions[-1].group(1))

    nearby = _CLASS_RE.search(candidate.context_around(WIDE_BEFORE, WIDE_AFTER))
    if nearby:
        return canonical_class(nearby.group(1))
    return None


def build_plain_subclass(candidate: Candidate) -> Subclass:
    parent = infer_parent_class(candidate, candidate.match.group("keyword"))
    if parent is None:
        raise CandidateRejected("no_parent_class")
    if len(candidate.block) <= 100:
        raise CandidateRejected("block_too_short")

    features = level_features(candidate.block, min_level=2)[:10]
    return _subclass(candidate, parent, features)


def build_heading_subclass(candidate: Candidate) -> Subclass:
    parent = canonical_class(candidate.match.group("parent").strip())
    features = level_features(candidate.block)
    return _subclass(candidate, parent, features)


def _subclass(candidate: Candidate, parent: str, features: list[LevelFeature]) -> Subclass:
    block = candidate.block
    confidence = calculate_confidence(
        has_weight=False,
        has_cost=False,
        has_description=len(block) > 200,
        description_length=len(block),
        has_structured_data=bool(features),
        kind="subclass",
    )
    return Subclass(
        name=candidate.name,
        source=candidate.source,
        description=truncate(tidy(candidate.body)),
        parent_class=parent,
        level_granted=features[0].level if features else None,
        features=features,
        extraction_confidence_score=confidence,
    )


def _strip_article(name: str) -> str:
    return re.sub(r"^The\s+", "", name).strip()


RULES = [
    ExtractionRule(
        name="subclass_plain",
        trigger=PLAIN_SUBCLASS,
        build=build_plain_subclass,
        boundary=PLAIN_BOUNDARY,
        max_window=3000,
        denylist=SUBCLASS_DENYLIST,
        clean_name=_strip_article,
    ),
]

ENHANCED_RULES = [
    ExtractionRule(
        name="subclass_heading",
        trigger=HEADING_SUBCLASS,
        build=build_heading_subclass,
        boundary=HEADING_BOUNDARY,
        max_window=3000,
        denylist=SUBCLASS_DENYLIST,
        gates=[("no_features", lambda record: bool(record.features))],
    ),
]


def extract_subclasses(text: str, source: str, context: ScanContext | None = None) -> list[Subclass]:
    return run_rules(RULES, text, source, context)


def extract_subclasses_enhanced(text: str, source: str, context: ScanContext | None = None) -> list[Subclass]:
    return run_rules(ENHANCED_RULES, text, source, context)
