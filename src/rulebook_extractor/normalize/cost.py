"""Cost normalization.

Converts printed prices to gold pieces and estimates a price when the
source gives none: first from a table of known item prices, then from the
item's rarity tier, then from its kind alone.
"""

import math
import re
from dataclasses import dataclass

from ..models.records import CostBreakdown


# Typical price per rarity tier, in gp
RARITY_TYPICAL_GP = {
    "common": 75,
    "uncommon": 300,
    "rare": 2500,
    "very_rare": 25000,
    "legendary": 250000,
    "artifact": 5000000,
}

RARITY_KIND_MULTIPLIER = {
    "armor": 1.2,
    "consumable": 0.5,
    "tool": 0.8,
}

KIND_DEFAULT_GP = {
    "weapon": 15,
    "armor": 50,
    "tool": 10,
    "consumable": 25,
}
DEFAULT_GP = 10

# Substring of the lower-cased item name -> price in gp. Checked in order.
KNOWN_COSTS = {
    # Potions
    "potion of healing": 50,
    "potion of greater healing": 150,
    "potion of superior healing": 450,
    "potion of supreme healing": 1350,
    "potion of invisibility": 180,
    "potion of speed": 480,
    "potion of flying": 500,
    "potion of fire breath": 150,
    "potion of resistance": 300,
    # Weapons
    "+1 weapon": 500,
    "+2 weapon": 4000,
    "+3 weapon": 32000,
    "flametongue": 5000,
    "flame tongue": 5000,
    "frost brand": 5000,
    "vorpal sword": 50000,
    "holy avenger": 50000,
    # Armor
    "+1 armor": 500,
    "+2 armor": 4000,
    "+3 armor": 32000,
    "adamantine armor": 500,
    "mithral armor": 1000,
    # Wondrous items
    "bag of holding": 500,
    "boots of elvenkind": 500,
    "cloak of elvenkind": 500,
    "ring of protection": 3500,
    "amulet of health": 8000,
    "belt of giant strength": 10000,
    "staff of power": 20000,
    "staff of the magi": 200000,
}

# Value of one unit in gp
UNIT_RATIOS = {
    "cp": 0.01,
    "copper": 0.01,
    "sp": 0.1,
    "silver": 0.1,
    "ep": 0.5,
    "electrum": 0.5,
    "gp": 1.0,
    "gold": 1.0,
    "piece": 1.0,
    "pieces": 1.0,
    "pp": 10.0,
    "platinum": 10.0,
}

_COST_RE = re.compile(
    r"(\d[\d,]*(?:\.\d+)?|\.\d+)\s*"
    r"(cp|sp|ep|gp|pp|copper|silver|electrum|gold|platinum|pieces?)?\b",
    re.IGNORECASE,
)


@dataclass
class CostEstimate:
    """Normalized cost of an item."""
    cost_gp: float | None
    cost_breakdown: CostBreakdown | None
    estimated: bool = False  # True when cost_gp came from a table, not the source


def known_cost(name: str | None) -> float | None:
    """Look an item name up in the known-price table."""
    if not name:
        return None
    lower = name.lower()
    for key, value in KNOWN_COSTS.items():
        if key in lower:
            return value
    return None


def normalize_cost_to_gp(raw: str | float | int | None, name: str | None = None) -> float | None:
    """Convert a printed cost to gold pieces.

    A bare number is taken as gp. When ``raw`` is None the known-price
    table is consulted by item name.
    """
    if raw is None:
        return known_cost(name)

    if isinstance(raw, (int, float)):
        return float(raw)

    match = _COST_RE.search(raw.strip())
    if not match:
        return None

    amount = float(match.group(1).replace(",", ""))
    unit = (match.group(2) or "gp").lower()
    return amount * UNIT_RATIOS.get(unit, 1.0)


def estimate_cost(rarity: str | None, kind: str, name: str | None = None) -> float:
    """Estimate a price from the known table, rarity tier, or kind."""
    price = known_cost(name)
    if price is not None:
        return price

    if not rarity or rarity not in RARITY_TYPICAL_GP:
        return KIND_DEFAULT_GP.get(kind, DEFAULT_GP)

    multiplier = RARITY_KIND_MULTIPLIER.get(kind, 1.0)
    return round(RARITY_TYPICAL_GP[rarity] * multiplier)


def gp_to_cost_breakdown(gp: float) -> CostBreakdown:
    """Split a gp amount into platinum, gold, silver and copper.

    Works in whole copper pieces so that ``breakdown.to_gp()`` gives the
    input back to the nearest copper.
    """
    total_cp = int(round(gp * 100))
    pp, rest = divmod(total_cp, 1000)
    whole_gp, rest = divmod(rest, 100)
    sp, cp = divmod(rest, 10)
    return CostBreakdown(cp=cp, sp=sp, gp=whole_gp, pp=pp)


def normalize_item_cost(
    name: str | None = None,
    kind: str = "other",
    rarity: str | None = None,
    cost: str | float | None = None,
) -> CostEstimate:
    """Normalize a printed cost, estimating one when absent or unreadable."""
    cost_gp = None
    if cost is not None:
        cost_gp = normalize_cost_to_gp(cost, name)
        if cost_gp is not None and (math.isnan(cost_gp) or cost_gp < 0):
            cost_gp = None

    if cost_gp is not None:
        return CostEstimate(cost_gp, gp_to_cost_breakdown(cost_gp))

    cost_gp = estimate_cost(rarity, kind, name)
    return CostEstimate(float(cost_gp), gp_to_cost_breakdown(cost_gp), estimated=True)
