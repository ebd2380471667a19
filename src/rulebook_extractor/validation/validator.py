"""Record quality validation.

Each record starts at 100 points and loses points for every error or
warning found. Errors make a record invalid; warnings only lower its score.
Validators accept pydantic records or the plain dicts read back from a JSON
collection, so an existing output directory can be re-validated.
"""

import json
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Iterable, Mapping

from pydantic import BaseModel

from ..extract.patterns import (
    ABILITIES,
    CLASS_NAMES,
    CREATURE_SIZES,
    DIFFICULTIES,
    ITEM_KINDS,
    MONSTER_TYPES,
    RARITIES,
    SPELL_SCHOOLS,
    THREAT_LEVELS,
    canonical_name,
)
from ..models.records import ContentKind

_CASTING_TIME = re.compile(r"\b(action|bonus action|reaction|minute|hour|day)s?\b", re.IGNORECASE)
_RANGE = re.compile(r"\b(self|touch|sight|unlimited|feet|foot|miles?)\b", re.IGNORECASE)
_TRUNCATED = re.compile(r"\.\.\.$|\[truncated\]|\[cut off\]", re.IGNORECASE)
HIT_DICE = ("d6", "d8", "d10", "d12")


@dataclass
class ValidationResult:
    """Errors, warnings and score for one record."""
    record_type: str
    name: str
    source: str
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    score: int = 100

    @property
    def valid(self) -> bool:
        return not self.errors

    def error(self, message: str, points: int) -> None:
        self.errors.append(message)
        self.score -= points

    def warn(self, message: str, points: int) -> None:
        self.warnings.append(message)
        self.score -= points

    def to_dict(self) -> dict:
        return {
            "record_type": self.record_type,
            "name": self.name,
            "source": self.source,
            "valid": self.valid,
            "errors": self.errors,
            "warnings": self.warnings,
            "score": self.score,
        }


@dataclass
class ValidationStats:
    """Per-kind aggregate of validation results."""
    total: int = 0
    valid: int = 0
    invalid: int = 0
    warnings: int = 0
    results: list[ValidationResult] = field(default_factory=list)

    @property
    def average_score(self) -> float:
        if not self.total:
            return 0.0
        return round(sum(r.score for r in self.results) / self.total, 2)

    def add(self, result: ValidationResult) -> None:
        self.results.append(result)
        self.total += 1
        if result.valid:
            self.valid += 1
        else:
            self.invalid += 1
        if result.warnings:
            self.warnings += 1

    def to_dict(self) -> dict:
        return {
            "total": self.total,
            "valid": self.valid,
            "invalid": self.invalid,
            "warnings": self.warnings,
            "average_score": self.average_score,
            "results": [r.to_dict() for r in self.results],
        }


def _as_mapping(record: BaseModel | Mapping) -> Mapping:
    if isinstance(record, BaseModel):
        return record.model_dump(mode="json")
    return record


def _mapping(value: Any) -> Mapping:
    return value if isinstance(value, Mapping) else {}


def _list(value: Any) -> list:
    return value if isinstance(value, list) else []


def _text(value: Any) -> str:
    if value is None:
        return ""
    return value if isinstance(value, str) else str(value)


def _lower(value: Any) -> str:
    return str(value).strip().lower() if value else ""


def _number(value: Any) -> float | None:
    """Numeric value, or None when the field holds something that is not a number."""
    if isinstance(value, bool):
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


# ============================================================================
# Common checks
# ============================================================================

def _check_name(result: ValidationResult, name: str, min_length: int = 3, missing_below: int = 2) -> None:
    if len(name) < missing_below:
        result.error("Missing or invalid name", 50)
    if name and len(name) < min_length:
        result.error("Name too short (likely false positive)", 30)


def _check_truncated(result: ValidationResult, description: str) -> None:
    if _TRUNCATED.search(description):
        result.warn("Description appears truncated", 5)


def _check_assumed(result: ValidationResult, data: Mapping, skip_prefix: str | None = None) -> None:
    for assumed in map(str, _list(data.get("assumed_fields"))):
        if skip_prefix and assumed.startswith(skip_prefix):
            continue
        result.warn(f"Assumed value for {assumed}", 2)


# ============================================================================
# Per-kind validators
# ============================================================================

def validate_spell(data: Mapping, result: ValidationResult) -> None:
    _check_name(result, result.name)

    level = data.get("level")
    if level is None:
        result.error("Missing level", 20)
    elif isinstance(level, bool) or _number(level) not in range(10):
        result.error(f"Invalid level: {level} (must be 0-9)", 15)

    school = _lower(data.get("school"))
    if not school:
        result.error("Missing school", 20)
    elif school not in SPELL_SCHOOLS:
        result.warn(f"Unknown school: {school}", 5)

    for required in ("casting_time", "range", "components", "duration"):
        if not data.get(required):
            result.error(f"Missing {required}", 10)

    description = _text(data.get("description"))
    if len(description) < 20:
        result.error("Missing or too short description", 15)

    casting_time = _text(data.get("casting_time"))
    if casting_time and not _CASTING_TIME.search(casting_time):
        result.warn(f"Unusual casting time format: {casting_time}", 3)

    spell_range = _text(data.get("range"))
    if spell_range and not _RANGE.search(spell_range):
        result.warn(f"Unusual range format: {spell_range}", 3)

    components = data.get("components") or []
    if isinstance(components, str):
        components = [c.strip() for c in components.split(",")]
    elif not isinstance(components, list):
        components = [components]
    if components and not all(str(c).upper() in ("V", "S", "M") for c in components):
        result.warn(f"Unusual components format: {components}", 3)

    if len(description) < 50 and "cantrip" not in description.lower():
        result.warn("Description seems too short", 5)
    _check_truncated(result, description)
    _check_assumed(result, data)


def validate_item(data: Mapping, result: ValidationResult) -> None:
    _check_name(result, result.name)

    kind = _lower(data.get("kind"))
    if not kind:
        result.error("Missing kind", 20)
    elif kind not in ITEM_KINDS:
        result.warn(f"Unknown kind: {kind}", 5)

    rarity = _lower(data.get("rarity"))
    if kind == "magic_item" and not rarity:
        result.warn("Magic item missing rarity", 10)
    elif rarity and rarity not in RARITIES:
        result.warn(f"Unknown rarity: {rarity}", 3)

    for numeric in ("cost_gp", "weight_lb"):
        value = data.get(numeric)
        if value is None:
            continue
        number = _number(value)
        if number is None or number < 0:
            result.error(f"Invalid {numeric}: {value}", 10)

    description = _text(data.get("description"))
    if len(description) < 10:
        result.warn("Missing or very short description", 10)
    _check_truncated(result, description)
    _check_assumed(result, data)


def validate_monster(data: Mapping, result: ValidationResult) -> None:
    _check_name(result, result.name)

    for label, known in (("type", MONSTER_TYPES), ("size", CREATURE_SIZES)):
        value = _lower(data.get(label))
        if not value:
            result.error(f"Missing {label}", 20)
        elif value not in known:
            result.warn(f"Unknown {label}: {value}", 5)

    for label, low, high in (
        ("armor_class", 1, 30),
        ("hit_points", 1, 1000),
        ("challenge_rating", 0, 30),
    ):
        value = _number(data.get(label))
        if value is None:
            result.error(f"Missing {label}", 15)
        elif not low <= value <= high:
            result.warn(f"Unusual {label}: {data.get(label)} (expected {low}-{high})", 5)

    assumed = set(map(str, _list(data.get("assumed_fields"))))
    stats = _mapping(data.get("stats"))
    if all(f"stats.{ability}" in assumed for ability in ABILITIES):
        result.warn("Ability scores not found; all assumed", 10)
    else:
        for ability in ABILITIES:
            score = _number(stats.get(ability))
            if f"stats.{ability}" in assumed or score is None:
                result.warn(f"Missing stat: {ability}", 2)
            elif not 1 <= score <= 30:
                result.warn(f"Unusual {ability}: {stats.get(ability)} (expected 1-30)", 2)

    _check_assumed(result, data, skip_prefix="stats.")


def validate_class(data: Mapping, result: ValidationResult) -> None:
    _check_name(result, result.name)

    hit_dice = _lower(data.get("hit_dice"))
    if not hit_dice:
        result.error("Missing hit_dice", 20)
    elif not any(hit_dice.endswith(die) for die in HIT_DICE):
        result.warn(f"Unusual hit die: {hit_dice}", 3)

    if not data.get("hit_points_at_1st_level"):
        result.error("Missing hit_points_at_1st_level", 15)

    if not data.get("class_features"):
        result.warn("No class features found", 5)

    proficiencies = _mapping(data.get("proficiencies"))
    if not proficiencies.get("saving_throws"):
        result.warn("No saving throw proficiencies", 3)
    _check_assumed(result, data)


def validate_subclass(data: Mapping, result: ValidationResult) -> None:
    _check_name(result, result.name)

    parent = data.get("parent_class")
    if not parent:
        result.error("Missing parent_class", 20)
    elif canonical_name(str(parent), CLASS_NAMES) is None:
        result.warn(f"Unknown parent class: {parent}", 5)

    features = _list(data.get("features"))
    if not features:
        result.warn("No subclass features found", 10)
    for feature in map(_mapping, features):
        level = _number(feature.get("level"))
        if level is None or not 1 <= level <= 20:
            result.warn(f"Unusual feature level: {feature.get('level')} ({feature.get('name')})", 2)
    _check_assumed(result, data)


def validate_race(data: Mapping, result: ValidationResult) -> None:
    _check_name(result, result.name)

    size = _lower(data.get("size"))
    if not size:
        result.error("Missing size", 20)
    elif size not in CREATURE_SIZES:
        result.warn(f"Unknown size: {size}", 5)

    speed = _number(data.get("speed"))
    if speed is None or not 5 <= speed <= 120:
        result.warn(f"Unusual speed: {data.get('speed')} (expected 5-120)", 5)

    if not data.get("traits"):
        result.warn("No racial traits found", 5)
    _check_assumed(result, data)


def validate_feat(data: Mapping, result: ValidationResult) -> None:
    _check_name(result, result.name)

    description = _text(data.get("description"))
    if len(description) < 20:
        result.error("Missing or too short description", 15)
    _check_truncated(result, description)


def validate_trap(data: Mapping, result: ValidationResult) -> None:
    _check_name(result, result.name, min_length=5, missing_below=3)

    description = _text(data.get("description"))
    if len(description) < 30:
        result.error("Missing or too short description", 30)

    dc = data.get("difficulty_class")
    if dc is not None:
        number = _number(dc)
        if number is None or not 1 <= number <= 30:
            result.warn(f"Unusual DC: {dc} (expected 1-30)", 5)

    threat = _lower(data.get("threat_level"))
    if threat and threat not in THREAT_LEVELS:
        result.warn(f"Unknown threat level: {threat}", 5)

    difficulty = _lower(data.get("difficulty"))
    if difficulty and difficulty not in DIFFICULTIES:
        result.warn(f"Unknown difficulty: {difficulty}", 3)

    if not data.get("trigger") and not data.get("effect"):
        result.warn("Missing structured sections (trigger/effect)", 10)


def validate_puzzle(data: Mapping, result: ValidationResult) -> None:
    _check_name(result, result.name, min_length=5, missing_below=3)

    description = _text(data.get("description"))
    if len(description) < 50:
        result.error("Missing or too short description", 30)

    difficulty = _lower(data.get("difficulty"))
    if difficulty and difficulty not in DIFFICULTIES:
        result.warn(f"Unknown difficulty: {difficulty}", 3)

    if not data.get("solution") and not data.get("puzzle_features"):
        result.warn("Missing structured sections (solution/features)", 10)


VALIDATORS: dict[ContentKind, Callable[[Mapping, ValidationResult], None]] = {
    ContentKind.SPELL: validate_spell,
    ContentKind.ITEM: validate_item,
    ContentKind.MONSTER: validate_monster,
    ContentKind.CLASS: validate_class,
    ContentKind.SUBCLASS: validate_subclass,
    ContentKind.RACE: validate_race,
    ContentKind.FEAT: validate_feat,
    ContentKind.TRAP: validate_trap,
    ContentKind.PUZZLE: validate_puzzle,
}


def validate(record: BaseModel | Mapping, kind: ContentKind | None = None) -> ValidationResult:
    """Validate one record.

    ``kind`` may be omitted for pydantic records, which know their own kind.
    """
    if kind is None:
        kind = getattr(record, "content_kind", None)
    if kind is None:
        raise ValueError("kind is required when validating a plain mapping")

    data = _as_mapping(record)
    if not isinstance(data, Mapping):
        result = ValidationResult(record_type=kind.value, name="Unknown", source="unknown")
        result.error(f"Record is not an object: {type(data).__name__}", 100)
        return result

    result = ValidationResult(
        record_type=kind.value,
        name=str(data.get("name") or "").strip(),
        source=str(data.get("source") or "unknown"),
    )
    VALIDATORS[kind](data, result)
    result.score = max(0, result.score)
    if not result.name:
        result.name = "Unknown"
    return result


def validate_records(records: Iterable[BaseModel | Mapping], kind: ContentKind | None = None) -> ValidationStats:
    stats = ValidationStats()
    for record in records:
        stats.add(validate(record, kind))
    return stats


def write_report(stats: Mapping[ContentKind, ValidationStats], path: Path) -> Path:
    """Write per-kind stats as ``{collection: stats}`` JSON."""
    report = {kind.collection: kind_stats.to_dict() for kind, kind_stats in stats.items()}
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(report, f, indent=2, ensure_ascii=False)
        f.write("\n")
    return path
