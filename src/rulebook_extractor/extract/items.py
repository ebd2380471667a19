"""Item extraction: equipment, consumables and magic items.

Every item goes through the cost and weight normalizers, so records always
carry a gold-piece cost and, where one can be estimated, a weight in kg.
Values that came from the estimation tables rather than the text are listed
in ``assumed_fields``.
"""

import re

from ..errors import CandidateRejected
from ..models.records import Item
from ..normalize.confidence import calculate_confidence
from ..normalize.cost import normalize_item_cost
from ..normalize.weight import process_item_weight_and_volume
from .patterns import NAME, first_float, label_value, tidy, truncate
from .rules import Candidate, ExtractionRule, ScanContext, run_rules

ITEM_DENYLIST = re.compile(
    r"^(?:Item|Items|Cost|Price|Weight|Description|Properties|Attunement)\b",
    re.IGNORECASE,
)

MAX_COST_GP = 1_000_000
MAX_WEIGHT_LB = 10_000

# ============================================================================
# Triggers
# ============================================================================

BOLD_COST_ITEM = re.compile(
    rf"^\*\*({NAME})\*\*[ \t]*\n[ \t]*(?:Cost|Price)[ \t]*:",
    re.MULTILINE,
)

PLAIN_COST_ITEM = re.compile(
    rf"^({NAME})[ \t]*\n[ \t]*(?i:cost|price)[ \t]*:",
    re.MULTILINE,
)

PLAIN_MAGIC_ITEM = re.compile(
    rf"^({NAME})[ \t]*\n[ \t]*(?i:rarity\b|requires[ \t]+attunement|[^\n]{{0,60}}\(requires[ \t]+attunement)",
    re.MULTILINE,
)

PLAIN_WEIGHT_ITEM = re.compile(
    rf"^({NAME})[ \t]*\n[ \t]*(?i:weight)[ \t]*:",
    re.MULTILINE,
)

HEADING_ITEM = re.compile(
    rf"^\#\#[ \t]+({NAME})[ \t]*(?:\((?P<detail>[^)\n]+)\))?[ \t]*$",
    re.MULTILINE,
)

MARKDOWN_BOUNDARY = re.compile(r"\n(?:\#{2,4}[ \t]*|\*\*)[A-Z]")
# A name line followed by any plain-item trigger line
PLAIN_BOUNDARY = re.compile(
    r"\n[A-Z][A-Za-z' \-]{2,50}[ \t]*\n[ \t]*"
    r"(?i:(?:cost|price|rarity)\b|weight[ \t]*:|requires[ \t]+attunement|[^\n]{0,60}\(requires[ \t]+attunement)"
)

# ============================================================================
# Field extraction
# ============================================================================

_RARITY_RE = re.compile(r"\b(very[ _]rare|uncommon|common|rare|legendary|artifact)\b", re.IGNORECASE)
_ITEM_TYPE_WORDS = re.compile(
    r"\b(wondrous[ \t]+item|weapon|armor|potion|ring|rod|staff|wand|scroll|ammunition|shield)\b", re.IGNORECASE
)
_ITEM_LINE_RE = re.compile(r"(?:Cost|Price|Weight|Rarity|Properties?)[ \t]*:[^\n]*\n?", re.IGNORECASE)

_WEAPON_NAMES = re.compile(
    r"\b(?:long|short|great|battle|war)?"
    r"(sword|axe|mace|dagger|spear|bow|crossbow|whip|flail|halberd|rapier|scimitar|hammer|weapon)s?\b"
)
_ARMOR_NAMES = re.compile(r"\b(armor|plate|mail|leather|shield|helmet|gauntlet)\b")
_TOOL_NAMES = re.compile(r"\b(tool|kit|set|pack|bag|pouch|backpack)s?\b")


def normalize_rarity(value: str | None) -> str | None:
    """``Very Rare`` -> ``very_rare``; None when no rarity word is present."""
    if not value:
        return None
    match = _RARITY_RE.search(value)
    if not match:
        return None
    return re.sub(r"[ _]+", "_", match.group(1).lower())


def infer_item_kind(name: str, block: str, rarity: str | None = None) -> tuple[str, str | None]:
    """Work out (kind, category) from the item name and its text."""
    lower_name = name.lower()
    lower_block = block.lower()

    if (
        "requires attunement" in lower_block
        or re.search(r"\brarity\s*:", lower_block)
        or re.search(r"\+\d\s+(weapon|armor)", lower_block)
        or rarity is not None
    ):
        return "magic_item", None
    if re.search(r"\b(potion|elixir|philter)\b", lower_name):
        return "consumable", "potion"
    if re.search(r"\b(poison|venom)\b", lower_name) or (
        "constitution saving throw" in lower_block and "poison" in lower_block
    ):
        return "consumable", "poison"
    if _WEAPON_NAMES.search(lower_name):
        category = None
        if re.search(r"\bmartial\b", lower_name):
            category = "martial_melee"
        elif re.search(r"\bsimple\b", lower_name):
            category = "simple_melee"
        return "weapon", category
    if _ARMOR_NAMES.search(lower_name):
        weight_class = re.search(r"\b(light|medium|heavy)\b", lower_name)
        return "armor", f"{weight_class.group(1)}_armor" if weight_class else None
    if _TOOL_NAMES.search(lower_name):
        return "tool", None
    if "spell component" in lower_block or "material component" in lower_block:
        return "consumable", "spell_component"
    return "other", None


def weapon_properties(text: str) -> dict[str, bool | str]:
    """Weapon properties named in ``text``."""
    properties: dict[str, bool | str] = {}
    versatile = re.search(r"versatile\s*\(?\s*(\d+d\d+)", text, re.IGNORECASE)
    if versatile:
        properties["versatile"] = versatile.group(1)
    for keyword, key in (
        ("finesse", "finesse"),
        ("two-handed", "two_handed"),
        ("light", "light"),
        ("heavy", "heavy"),
        ("reach", "reach"),
        ("thrown", "thrown"),
    ):
        if re.search(rf"\b{keyword}\b", text, re.IGNORECASE):
            properties[key] = True
    return properties


def build_item(candidate: Candidate) -> Item:
    block = candidate.block
    name = candidate.name
    detail = candidate.match.groupdict().get("detail") or ""

    rarity = normalize_rarity(label_value(block, "Rarity")) or normalize_rarity(detail)
    if rarity is None and re.search(r"requires\s+attunement", block, re.IGNORECASE):
        # Type line under a magic item heading: "Wondrous item, rare (requires attunement)"
        first_lines = "\n".join(candidate.body.strip().splitlines()[:2])
        rarity = normalize_rarity(first_lines)

    kind, category = infer_item_kind(name, f"{detail}\n{block}", rarity)

    # Everything under the name line; the trigger may have consumed a label
    body = block.split("\n", 1)[1] if "\n" in block else ""
    description = _ITEM_LINE_RE.sub("", body)
    description = truncate(tidy(description))

    assumed: list[str] = []

    raw_cost = label_value(block, "Cost|Price")
    cost = normalize_item_cost(name=name, kind=kind, rarity=rarity, cost=raw_cost)
    if cost.estimated:
        assumed.extend(["cost_gp", "cost_breakdown"])

    weight_lb = first_float(label_value(block, "Weight"))
    weight = process_item_weight_and_volume(
        name=name,
        kind=kind,
        description=description,
        weight_lb=weight_lb,
    )
    if weight_lb is None and weight.weight_kg is not None:
        assumed.append("weight_kg")

    properties_line = label_value(block, r"Properties?")
    properties: dict[str, bool | str] = {}
    if properties_line:
        properties = weapon_properties(properties_line)
    elif kind == "weapon":
        properties = weapon_properties(block)

    attunement = bool(re.search(r"\brequires?\s+attunement\b", block, re.IGNORECASE))
    requirement = re.search(r"requires?\s+attunement\s+by\s+([^\n.)]+)", block, re.IGNORECASE)

    confidence = calculate_confidence(
        has_weight=weight_lb is not None and weight_lb > 0,
        has_cost=not cost.estimated and bool(cost.cost_gp),
        has_description=bool(description),
        description_length=len(description),
        has_structured_data=bool(properties),
        kind=kind,
    )

    return Item(
        name=name,
        source=candidate.source,
        description=description,
        kind=kind,
        category=category,
        rarity=rarity,
        cost_gp=cost.cost_gp,
        cost_breakdown=cost.cost_breakdown,
        weight_lb=weight_lb,
        weight_kg=weight.weight_kg,
        estimated_real_weight_kg=weight.estimated_real_weight_kg,
        volume_category=weight.volume_category,
        properties=properties,
        attunement=attunement,
        attunement_requirements=requirement.group(1).strip() if requirement else None,
        extraction_confidence_score=confidence,
        assumed_fields=assumed,
    )


def build_heading_item(candidate: Candidate) -> Item:
    """Markdown ``## Name`` headings are items only when the block says so.

    The parenthesised detail, a cost/weight/rarity line or a type line
    ("Wondrous item, rare") must be present; other ``## Name (Parent)``
    headings belong to subclasses and the like.
    """
    detail = candidate.match.group("detail") or ""
    type_line = "\n".join(candidate.body.strip().splitlines()[:2])
    looks_like_item = (
        _ITEM_TYPE_WORDS.search(detail)
        or _RARITY_RE.search(detail)
        or label_value(candidate.block, "Cost|Price|Weight|Rarity")
        or (_ITEM_TYPE_WORDS.search(type_line) and _RARITY_RE.search(type_line))
    )
    if not looks_like_item:
        raise CandidateRejected("not_an_item")
    return build_item(candidate)


ITEM_GATES = [
    (
        "no_item_data",
        lambda item: "cost_gp" not in item.assumed_fields
        or item.weight_lb is not None
        or len(item.description) > 15,
    ),
    (
        "cost_out_of_range",
        lambda item: "cost_gp" in item.assumed_fields or 0 <= (item.cost_gp or 0) <= MAX_COST_GP,
    ),
    (
        "weight_out_of_range",
        lambda item: item.weight_lb is None or 0 <= item.weight_lb <= MAX_WEIGHT_LB,
    ),
]


RULES = [
    ExtractionRule(
        name="item_bold_cost",
        trigger=BOLD_COST_ITEM,
        build=build_item,
        boundary=MARKDOWN_BOUNDARY,
        max_window=500,
        denylist=ITEM_DENYLIST,
        gates=ITEM_GATES,
    ),
    ExtractionRule(
        name="item_cost",
        trigger=PLAIN_COST_ITEM,
        build=build_item,
        boundary=PLAIN_BOUNDARY,
        max_window=1000,
        min_name_length=2,
        denylist=ITEM_DENYLIST,
        gates=ITEM_GATES,
    ),
    ExtractionRule(
        name="item_magic",
        trigger=PLAIN_MAGIC_ITEM,
        build=build_item,
        boundary=PLAIN_BOUNDARY,
        max_window=1000,
        min_name_length=2,
        denylist=ITEM_DENYLIST,
        gates=ITEM_GATES,
    ),
    ExtractionRule(
        name="item_weight",
        trigger=PLAIN_WEIGHT_ITEM,
        build=build_item,
        boundary=PLAIN_BOUNDARY,
        max_window=1000,
        min_name_length=2,
        denylist=ITEM_DENYLIST,
        gates=ITEM_GATES,
    ),
]

ENHANCED_RULES = [
    ExtractionRule(
        name="item_heading",
        trigger=HEADING_ITEM,
        build=build_heading_item,
        boundary=MARKDOWN_BOUNDARY,
        max_window=1000,
        denylist=ITEM_DENYLIST,
        gates=ITEM_GATES,
    ),
]


def extract_items(text: str, source: str, context: ScanContext | None = None) -> list[Item]:
    """Extract items with the standard rules."""
    return run_rules(RULES, text, source, context)


def extract_items_enhanced(text: str, source: str, context: ScanContext | None = None) -> list[Item]:
    """Extract magic items from markdown ``## Name`` headings."""
    return run_rules(ENHANCED_RULES, text, source, context)
