"""Pattern extractors, one module per content kind."""

from typing import Callable

from ..models.records import ContentKind, ExtractedRecord
from .classes import extract_classes, extract_classes_enhanced
from .feats import extract_feats, extract_feats_enhanced
from .items import extract_items, extract_items_enhanced
from .monsters import extract_monsters
from .puzzles import extract_puzzles
from .races import extract_races, extract_races_enhanced
from .rules import Candidate, ExtractionRule, ScanContext, run_rules
from .spells import extract_spells
from .subclasses import extract_subclasses, extract_subclasses_enhanced
from .traps import extract_traps

Extractor = Callable[[str, str, ScanContext | None], list[ExtractedRecord]]

# Standard rules for every kind
PRIMARY_PASS: dict[ContentKind, Extractor] = {
    ContentKind.SPELL: extract_spells,
    ContentKind.ITEM: extract_items,
    ContentKind.MONSTER: extract_monsters,
    ContentKind.CLASS: extract_classes,
    ContentKind.SUBCLASS: extract_subclasses,
    ContentKind.RACE: extract_races,
    ContentKind.FEAT: extract_feats,
    ContentKind.TRAP: extract_traps,
    ContentKind.PUZZLE: extract_puzzles,
}

# Markdown-heading rules; merged under the primary pass
ENHANCED_PASS: dict[ContentKind, Extractor] = {
    ContentKind.ITEM: extract_items_enhanced,
    ContentKind.CLASS: extract_classes_enhanced,
    ContentKind.SUBCLASS: extract_subclasses_enhanced,
    ContentKind.RACE: extract_races_enhanced,
    ContentKind.FEAT: extract_feats_enhanced,
}


def extract_all(
    text: str,
    source: str,
    kinds: list[ContentKind] | None = None,
    context: ScanContext | None = None,
) -> tuple[dict[ContentKind, list[ExtractedRecord]], dict[ContentKind, list[ExtractedRecord]]]:
    """Run both passes over one text.

    Returns (primary, enhanced) record lists keyed by kind; kinds without an
    enhanced rule set are absent from the second mapping.
    """
    context = context or ScanContext()
    selected = kinds or list(ContentKind)

    primary = {kind: PRIMARY_PASS[kind](text, source, context) for kind in selected}
    enhanced = {
        kind: ENHANCED_PASS[kind](text, source, context)
        for kind in selected
        if kind in ENHANCED_PASS
    }
    return primary, enhanced


__all__ = [
    "ENHANCED_PASS",
    "PRIMARY_PASS",
    "Candidate",
    "ExtractionRule",
    "ScanContext",
    "extract_all",
    "extract_classes",
    "extract_classes_enhanced",
    "extract_feats",
    "extract_feats_enhanced",
    "extract_items",
    "extract_items_enhanced",
    "extract_monsters",
    "extract_puzzles",
    "extract_races",
    "extract_races_enhanced",
    "extract_spells",
    "extract_subclasses",
    "extract_subclasses_enhanced",
    "extract_traps",
    "run_rules",
]
