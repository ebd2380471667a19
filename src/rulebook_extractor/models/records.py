"""Record models produced by the pattern extractors."""

import builtins
from enum import Enum
from typing import ClassVar

from pydantic import BaseModel, Field


class ContentKind(str, Enum):
    """The nine kinds of content the pipeline extracts."""

    SPELL = "spell"
    ITEM = "item"
    MONSTER = "monster"
    CLASS = "class"
    SUBCLASS = "subclass"
    RACE = "race"
    FEAT = "feat"
    TRAP = "trap"
    PUZZLE = "puzzle"

    @property
    def collection(self) -> str:
        """Plural name used for output files and report sections."""
        if self is ContentKind.CLASS:
            return "classes"
        return f"{self.value}s"

    @property
    def output_filename(self) -> str:
        return f"{self.collection}-extracted.json"


class ExtractedRecord(BaseModel):
    """Fields shared by every extracted record.

    ``assumed_fields`` lists the fields whose value is a documented fallback
    rather than something read from the source text. Nested fields use
    dotted names (``stats.str``).
    """

    content_kind: ClassVar[ContentKind]

    name: str = Field(min_length=1)
    source: str = Field(min_length=1)
    description: str = ""
    extraction_confidence_score: int = Field(default=0, ge=0, le=100)
    assumed_fields: list[str] = Field(default_factory=list)

    def to_dict(self) -> dict:
        return self.model_dump(mode="json")


# ============================================================================
# Spells
# ============================================================================

class Spell(ExtractedRecord):
    content_kind: ClassVar[ContentKind] = ContentKind.SPELL

    level: int
    school: str
    casting_time: str
    range: str
    components: list[str] = Field(default_factory=list)  # subset of V, S, M
    material_components: str | None = None
    duration: str
    higher_level: str | None = None
    ritual: bool = False
    concentration: bool = False


# ============================================================================
# Items
# ============================================================================

class CostBreakdown(BaseModel):
    cp: int = 0
    sp: int = 0
    gp: int = 0
    pp: int = 0

    def to_gp(self) -> float:
        return self.pp * 10 + self.gp + self.sp / 10 + self.cp / 100


class Item(ExtractedRecord):
    content_kind: ClassVar[ContentKind] = ContentKind.ITEM

    kind: str = "other"  # weapon, armor, tool, consumable, magic_item, other
    category: str | None = None  # potion, poison, spell_component, martial_melee...
    rarity: str | None = None
    cost_gp: float | None = None
    cost_breakdown: CostBreakdown | None = None
    weight_lb: float | None = None  # as printed; None when the source has no weight
    weight_kg: float | None = None
    estimated_real_weight_kg: float | None = None
    volume_category: str = "held"
    properties: dict[str, bool | str] = Field(default_factory=dict)
    attunement: bool = False
    attunement_requirements: str | None = None


# ============================================================================
# Monsters
# ============================================================================

class AbilityScores(BaseModel):
    # field names shadow builtins inside the class body
    str: builtins.int = 10
    dex: builtins.int = 10
    con: builtins.int = 10
    int: builtins.int = 10
    wis: builtins.int = 10
    cha: builtins.int = 10


class NamedText(BaseModel):
    """A named trait, reaction or lair action."""

    name: str
    description: str = ""


class MonsterAction(NamedText):
    attack_bonus: int | None = None
    damage: str | None = None


class LegendaryAction(NamedText):
    cost: int = 1


class Monster(ExtractedRecord):
    content_kind: ClassVar[ContentKind] = ContentKind.MONSTER

    size: str
    type: str
    alignment: str | None = None
    armor_class: int | None = None
    armor_class_type: str | None = None
    hit_points: int | None = None
    hit_dice: str | None = None
    speed: dict[str, int] = Field(default_factory=dict)
    stats: AbilityScores = Field(default_factory=AbilityScores)
    saving_throws: dict[str, int] = Field(default_factory=dict)
    skills: dict[str, int] = Field(default_factory=dict)
    damage_resistances: list[str] = Field(default_factory=list)
    damage_immunities: list[str] = Field(default_factory=list)
    condition_immunities: list[str] = Field(default_factory=list)
    senses: str | None = None
    languages: str | None = None
    challenge_rating: float | None = None
    xp: int | None = None
    traits: list[NamedText] = Field(default_factory=list)
    actions: list[MonsterAction] = Field(default_factory=list)
    legendary_actions: list[LegendaryAction] = Field(default_factory=list)
    reactions: list[NamedText] = Field(default_factory=list)
    lair_actions: list[NamedText] = Field(default_factory=list)


# ============================================================================
# Character options
# ============================================================================

class LevelFeature(BaseModel):
    level: int
    name: str
    description: str = ""


class Proficiencies(BaseModel):
    armor: list[str] = Field(default_factory=list)
    weapons: list[str] = Field(default_factory=list)
    tools: list[str] = Field(default_factory=list)
    saving_throws: list[str] = Field(default_factory=list)
    skills: str | None = None


class Spellcasting(BaseModel):
    ability: str | None = None
    spell_save_dc: str | None = None
    spell_attack_modifier: str | None = None


class CharacterClass(ExtractedRecord):
    content_kind: ClassVar[ContentKind] = ContentKind.CLASS

    hit_dice: str | None = None
    hit_points_at_1st_level: str | None = None
    hit_points_at_higher_levels: str | None = None
    proficiencies: Proficiencies = Field(default_factory=Proficiencies)
    class_features: list[LevelFeature] = Field(default_factory=list)
    spellcasting: Spellcasting | None = None


class Subclass(ExtractedRecord):
    content_kind: ClassVar[ContentKind] = ContentKind.SUBCLASS

    parent_class: str | None = None
    level_granted: int | None = None
    features: list[LevelFeature] = Field(default_factory=list)


class Race(ExtractedRecord):
    content_kind: ClassVar[ContentKind] = ContentKind.RACE

    size: str | None = None
    speed: int = 30
    ability_score_increases: dict[str, int] = Field(default_factory=dict)
    traits: list[NamedText] = Field(default_factory=list)
    languages: list[str] = Field(default_factory=list)


class Feat(ExtractedRecord):
    content_kind: ClassVar[ContentKind] = ContentKind.FEAT

    prerequisites: str | None = None
    benefits: list[str] = Field(default_factory=list)


# ============================================================================
# Adventure content
# ============================================================================

class Trap(ExtractedRecord):
    content_kind: ClassVar[ContentKind] = ContentKind.TRAP

    trigger: str | None = None
    effect: str | None = None
    countermeasures: str | None = None
    special: str | None = None
    difficulty_class: int | None = None
    damage: str | None = None
    level_range: str | None = None
    threat_level: str | None = None
    difficulty: str | None = None


class Puzzle(ExtractedRecord):
    content_kind: ClassVar[ContentKind] = ContentKind.PUZZLE

    difficulty: str | None = None
    puzzle_features: str | None = None
    solution: str | None = None
    hint_checks: str | None = None


RECORD_TYPES: dict[ContentKind, type[ExtractedRecord]] = {
    ContentKind.SPELL: Spell,
    ContentKind.ITEM: Item,
    ContentKind.MONSTER: Monster,
    ContentKind.CLASS: CharacterClass,
    ContentKind.SUBCLASS: Subclass,
    ContentKind.RACE: Race,
    ContentKind.FEAT: Feat,
    ContentKind.TRAP: Trap,
    ContentKind.PUZZLE: Puzzle,
}
