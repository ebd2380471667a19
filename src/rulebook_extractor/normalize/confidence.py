"""Extraction confidence scoring.

The score estimates how complete a record looks. It says nothing about
whether the values are correct; that is the validator's job.
"""


def calculate_confidence(
    has_weight: bool,
    has_cost: bool,
    has_description: bool,
    description_length: int,
    has_structured_data: bool,
    kind: str | None,
) -> int:
    """Additive completeness score in [0, 100].

    +20 weight, +20 cost, +20 any description (+10 over 50 characters,
    +10 more over 100), +10 structured sub-data, +10 a kind other than
    "other".
    """
    confidence = 0

    if has_weight:
        confidence += 20
    if has_cost:
        confidence += 20
    if has_description:
        confidence += 20
        if description_length > 50:
            confidence += 10
        if description_length > 100:
            confidence += 10
    if has_structured_data:
        confidence += 10
    if kind and kind != "other":
        confidence += 10

    return max(0, min(confidence, 100))
