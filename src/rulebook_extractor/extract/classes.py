"""Character class extraction."""

import re

from ..models.records import CharacterClass, LevelFeature, Proficiencies, Spellcasting
from ..normalize.confidence import calculate_confidence
from .patterns import (
    CLASS_NAMES,
    LEVEL_FEATURE,
    LONG_NAME,
    canonical_name,
    denylist,
    label_value,
    split_list,
    truncate,
)
from .rules import Candidate, ExtractionRule, ScanContext, run_rules

CLASS_DENYLIST = denylist(
    "Class",
    "Classes",
    "Class Features",
    "Hit Points",
    "Hit Dice",
    "Proficiencies",
    "Equipment",
    "Quick Build",
    "Spellcasting",
    "Multiclassing",
)

PLAIN_CLASS = re.compile(
    rf"^({LONG_NAME})[ \t]*\n[ \t]*(?:Class\b|Hit[ \t]+Dice|Proficiencies)",
    re.MULTILINE,
)

HEADING_CLASS = re.compile(
    rf"^\#\#[ \t]+({LONG_NAME})[ \t]*\n[ \t]*(?:\#+[ \t]*)?[*_]{{0,2}}(?:Class\b|Hit[ \t]+Dice|Proficiencies)",
    re.MULTILINE,
)

CLASS_BOUNDARY = re.compile(r"\n\#\#[ \t]+[A-Z]")

_HIT_DIE = re.compile(r"(\d*d\d+)", re.IGNORECASE)


def canonical_class(name: str) -> str:
    """Known class spelling for ``name``; other names are kept, title-cased if shouted."""
    known = canonical_name(name, CLASS_NAMES)
    if known:
        return known
    return name.title() if name.isupper() else name


def level_features(block: str, min_level: int = 1, max_level: int = 20) -> list[LevelFeature]:
    """``**3rd Level: Name**`` features with a level in range."""
    features = []
    for match in LEVEL_FEATURE.finditer(block):
        level = int(match.group("level"))
        if not min_level <= level <= max_level:
            continue
        features.append(
            LevelFeature(
                level=level,
                name=match.group("name").strip().rstrip(":*").strip() or "Feature",
                description=truncate(" ".join(match.group("description").split()), 1000),
            )
        )
    return features


def parse_spellcasting(block: str) -> Spellcasting | None:
    if not re.search(r"^[ \t]*(?:\#+[ \t]*)?[*_]{0,2}Spellcasting\b", block, re.IGNORECASE | re.MULTILINE):
        return None

    ability = label_value(block, r"Spellcasting[ \t]+Ability")
    save_dc = re.search(r"Spell[ \t]+Save[ \t]+DC[*_]*[ \t]*[=:][*_]*[ \t]*([^\n]+)", block, re.IGNORECASE)
    attack = re.search(
        r"Spell[ \t]+Attack[ \t]+Modifier[*_]*[ \t]*[=:][*_]*[ \t]*([^\n]+)", block, re.IGNORECASE
    )
    return Spellcasting(
        ability=ability.lower() if ability else None,
        spell_save_dc=save_dc.group(1).strip() if save_dc else None,
        spell_attack_modifier=attack.group(1).strip() if attack else None,
    )


def build_class(candidate: Candidate) -> CharacterClass:
    block = candidate.block

    hit_dice_line = label_value(block, r"Hit[ \t]+Dice")
    hit_die = _HIT_DIE.search(hit_dice_line) if hit_dice_line else None

    proficiencies = Proficiencies(
        armor=split_list(label_value(block, "Armor")),
        weapons=split_list(label_value(block, "Weapons")),
        tools=split_list(label_value(block, "Tools")),
        saving_throws=[save.lower() for save in split_list(label_value(block, r"Saving[ \t]+Throws"))],
        skills=label_value(block, "Skills"),
    )
    features = level_features(block)
    hp_higher = label_value(block, r"Hit[ \t]+Points[ \t]+at[ \t]+Higher[ \t]+Levels")

    confidence = calculate_confidence(
        has_weight=False,
        has_cost=False,
        has_description=len(block) > 100,
        description_length=len(block),
        has_structured_data=bool(features) or hp_higher is not None,
        kind="class",
    )

    return CharacterClass(
        name=canonical_class(candidate.name),
        source=candidate.source,
        description=truncate(candidate.body),
        hit_dice=hit_die.group(1).lower() if hit_die else None,
        hit_points_at_1st_level=label_value(block, r"Hit[ \t]+Points[ \t]+at[ \t]+1st[ \t]+Level"),
        hit_points_at_higher_levels=hp_higher,
        proficiencies=proficiencies,
        class_features=features,
        spellcasting=parse_spellcasting(block),
        extraction_confidence_score=confidence,
    )


CLASS_GATES = [
    ("missing_hit_dice", lambda record: record.hit_dice is not None),
    ("missing_hit_points", lambda record: record.hit_points_at_1st_level is not None),
]

RULES = [
    ExtractionRule(
        name="class_plain",
        trigger=PLAIN_CLASS,
        build=build_class,
        boundary=CLASS_BOUNDARY,
        max_window=5000,
        denylist=CLASS_DENYLIST,
        gates=CLASS_GATES,
    ),
]

ENHANCED_RULES = [
    ExtractionRule(
        name="class_heading",
        trigger=HEADING_CLASS,
        build=build_class,
        boundary=CLASS_BOUNDARY,
        max_window=5000,
        denylist=CLASS_DENYLIST,
        gates=CLASS_GATES,
    ),
]


def extract_classes(text: str, source: str, context: ScanContext | None = None) -> list[CharacterClass]:
    return run_rules(RULES, text, source, context)


def extract_classes_enhanced(
    text: str, source: str, context: ScanContext | None = None
) -> list[CharacterClass]:
    """Classes under markdown ``## Name`` headings, with features and spellcasting."""
    return run_rules(ENHANCED_RULES, text, source, context)
