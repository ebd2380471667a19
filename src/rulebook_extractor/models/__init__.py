"""Data models for extracted records and source documents."""

from rulebook_extractor.models.document import SourceDocument
from rulebook_extractor.models.records import (
    RECORD_TYPES,
    AbilityScores,
    CharacterClass,
    ContentKind,
    CostBreakdown,
    ExtractedRecord,
    Feat,
    Item,
    LegendaryAction,
    LevelFeature,
    Monster,
    MonsterAction,
    NamedText,
    Proficiencies,
    Puzzle,
    Race,
    Spell,
    Spellcasting,
    Subclass,
    Trap,
)

__all__ = [
    "RECORD_TYPES",
    "AbilityScores",
    "CharacterClass",
    "ContentKind",
    "CostBreakdown",
    "ExtractedRecord",
    "Feat",
    "Item",
    "LegendaryAction",
    "LevelFeature",
    "Monster",
    "MonsterAction",
    "NamedText",
    "Proficiencies",
    "Puzzle",
    "Race",
    "SourceDocument",
    "Spell",
    "Spellcasting",
    "Subclass",
    "Trap",
]
