"""Derived-value normalizers: cost, weight/volume, confidence."""

from rulebook_extractor.normalize.challenge import parse_challenge_rating, xp_for_challenge_rating
from rulebook_extractor.normalize.confidence import calculate_confidence
from rulebook_extractor.normalize.cost import (
    CostEstimate,
    estimate_cost,
    gp_to_cost_breakdown,
    normalize_cost_to_gp,
    normalize_item_cost,
)
from rulebook_extractor.normalize.weight import (
    WeightEstimate,
    estimate_volume_category,
    lb_to_kg,
    process_item_weight_and_volume,
)

__all__ = [
    "CostEstimate",
    "WeightEstimate",
    "calculate_confidence",
    "estimate_cost",
    "estimate_volume_category",
    "gp_to_cost_breakdown",
    "lb_to_kg",
    "normalize_cost_to_gp",
    "normalize_item_cost",
    "parse_challenge_rating",
    "process_item_weight_and_volume",
    "xp_for_challenge_rating",
]
