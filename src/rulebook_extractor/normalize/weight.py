"""Weight and volume estimation for items.

Printed pound weights are converted to kilograms. Items without a weight
get a typical weight from an ordered list of name/description rules, or a
default for their kind. Each item is also put in a volume category
describing how it would be carried.
"""

import re
from dataclasses import dataclass

from .confidence import calculate_confidence

KG_PER_LB = 0.453592

VOLUME_CATEGORIES = (
    "pouch",
    "bag",
    "backpack",
    "sheath/quiver",
    "held",
    "wagon",
    "too big",
)


@dataclass(frozen=True)
class WeightRule:
    """A typical weight for items whose name or description matches."""
    pattern: re.Pattern
    weight_kg: float | None  # None: use the base item's weight
    volume_category: str
    confidence: int


def _rule(pattern: str, weight_kg: float | None, volume: str, confidence: int) -> WeightRule:
    return WeightRule(re.compile(pattern, re.IGNORECASE), weight_kg, volume, confidence)


# First match wins
WEIGHT_RULES = [
    # Weapons
    _rule(r"\b(dagger|knife|shortsword|rapier)\b", 0.5, "sheath/quiver", 90),
    _rule(r"\b(longsword|scimitar|battleaxe|warhammer)\b", 1.5, "sheath/quiver", 90),
    _rule(r"\b(greatsword|greataxe|maul|polearm)\b", 3.0, "held", 90),
    _rule(r"\b(bow|crossbow)\b", 1.0, "sheath/quiver", 90),
    _rule(r"\b(arrow|bolt|dart)\b", 0.05, "sheath/quiver", 90),
    _rule(r"\b(shield)\b", 3.0, "held", 90),
    # Armor
    _rule(r"\b(leather\s+armor|padded\s+armor)\b", 4.5, "backpack", 90),
    _rule(r"\b(chain\s+mail|scale\s+mail)\b", 20.0, "wagon", 90),
    _rule(r"\b(plate\s+armor|full\s+plate)\b", 27.0, "wagon", 90),
    _rule(r"\b(ring\s+mail|splint\s+armor)\b", 20.0, "wagon", 90),
    # Potions and consumables
    _rule(r"\b(potion|elixir|philter|vial)\b", 0.1, "pouch", 95),
    _rule(r"\b(poison|venom)\b", 0.05, "pouch", 95),
    _rule(r"\b(scroll)\b", 0.01, "pouch", 95),
    _rule(r"\b(ration|food)\b", 0.5, "bag", 85),
    # Tools and equipment
    _rule(r"\b(tool|kit|set)\b", 2.0, "bag", 70),
    _rule(r"\b(backpack|pack)\b", 2.0, "backpack", 90),
    _rule(r"\b(bag|pouch|sack)\b", 0.5, "bag", 85),
    _rule(r"\b(rope)\b", 2.3, "backpack", 90),
    _rule(r"\b(torch|lantern)\b", 0.5, "bag", 85),
    # Spell components
    _rule(r"\b(spell\s+component|material\s+component)\b", 0.01, "pouch", 80),
    _rule(r"\b(diamond|gem|jewel|pearl)\b", 0.01, "pouch", 85),
    # Magic items weigh what their base item weighs
    _rule(r"\b(magic|magical|enchanted)\b", None, "held", 50),
    # Large items
    _rule(r"\b(chest|barrel|crate)\b", 25.0, "wagon", 85),
    _rule(r"\b(wagon|cart|chariot)\b", 200.0, "too big", 95),
    _rule(r"\b(ship|boat)\b", 1000.0, "too big", 95),
]

_WEAPON_LIKE = re.compile(r"\b(sword|axe|bow|arrow|bolt|dagger|weapon)\b", re.IGNORECASE)


@dataclass
class WeightEstimate:
    """Weight, volume and confidence for one item."""
    weight_kg: float | None
    estimated_real_weight_kg: float | None  # set only when weight_kg was estimated
    volume_category: str
    confidence: int


def lb_to_kg(lb: float) -> float:
    return lb * KG_PER_LB


def kg_to_lb(kg: float) -> float:
    return kg / KG_PER_LB


def match_weight_rule(name: str, description: str = "") -> WeightRule | None:
    """Return the first rule matching the item's name and description."""
    combined = f"{name} {description}"
    for rule in WEIGHT_RULES:
        if rule.pattern.search(combined):
            return rule
    return None


def estimate_volume_category(weight_kg: float | None, description: str, name: str) -> str:
    """Choose a volume category, by rule first and then by weight."""
    rule = match_weight_rule(name, description)
    if rule:
        return rule.volume_category

    if not weight_kg:
        return "held"
    if weight_kg <= 2:
        return "pouch"
    if weight_kg <= 5:
        return "sheath/quiver" if _WEAPON_LIKE.search(name) else "held"
    if weight_kg <= 10:
        return "bag"
    if weight_kg <= 30:
        return "backpack"
    if weight_kg <= 500:
        return "wagon"
    return "too big"


def estimate_real_weight(description: str, name: str, kind: str) -> float | None:
    """Estimate a weight in kg for an item with no printed weight."""
    rule = match_weight_rule(name, description)
    if rule:
        return rule.weight_kg

    lower_name = name.lower()
    if kind == "weapon":
        if re.search(r"\b(dagger|knife|shortsword)\b", lower_name):
            return 0.5
        if re.search(r"\b(longsword|scimitar|axe|hammer)\b", lower_name):
            return 1.5
        if re.search(r"\b(great|polearm|two-handed)\b", lower_name):
            return 3.0
        return 1.0
    if kind == "armor":
        if re.search(r"\b(leather|padded)\b", lower_name):
            return 4.5
        if re.search(r"\b(chain|scale|ring|splint)\b", lower_name):
            return 20.0
        if re.search(r"\b(plate|full)\b", lower_name):
            return 27.0
        return 10.0
    if kind == "consumable":
        if re.search(r"\b(potion|elixir|vial)\b", lower_name):
            return 0.1
        if re.search(r"\b(poison|venom)\b", lower_name):
            return 0.05
        if re.search(r"\b(scroll)\b", lower_name):
            return 0.01
        return 0.2
    if kind == "tool":
        return 2.0
    if kind == "magic_item":
        return None
    return 0.5


def process_item_weight_and_volume(
    name: str = "",
    kind: str = "other",
    description: str = "",
    weight_lb: float | None = None,
) -> WeightEstimate:
    """Work out weight in kg, volume category and confidence for an item."""
    has_weight = weight_lb is not None and weight_lb > 0

    weight_kg = lb_to_kg(weight_lb) if has_weight else None
    estimated = None
    if weight_kg is None:
        estimated = estimate_real_weight(description, name, kind)
        weight_kg = estimated

    volume_category = estimate_volume_category(weight_kg, description, name)

    confidence = calculate_confidence(
        has_weight=has_weight,
        has_cost=False,
        has_description=bool(description),
        description_length=len(description),
        has_structured_data=False,
        kind=kind,
    )

    return WeightEstimate(
        weight_kg=round(weight_kg, 3) if weight_kg is not None else None,
        estimated_real_weight_kg=estimated,
        volume_category=volume_category,
        confidence=confidence,
    )
