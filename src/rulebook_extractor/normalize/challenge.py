"""Challenge rating parsing and experience points."""

import re

# CR -> XP for a single creature
XP_BY_CHALLENGE_RATING = {
    0: 0,
    0.125: 25,
    0.25: 50,
    0.5: 100,
    1: 200,
    2: 450,
    3: 700,
    4: 1100,
    5: 1800,
    6: 2300,
    7: 2900,
    8: 3900,
    9: 5000,
    10: 5900,
    11: 7200,
    12: 8400,
    13: 10000,
    14: 11500,
    15: 13000,
    16: 15000,
    17: 18000,
    18: 20000,
    19: 22000,
    20: 25000,
    21: 33000,
    22: 41000,
    23: 50000,
    24: 62000,
    25: 75000,
    26: 90000,
    27: 105000,
    28: 120000,
    29: 135000,
    30: 155000,
}

_CR_RE = re.compile(r"(\d+)\s*/\s*(\d+)|(\d+(?:\.\d+)?)")


def parse_challenge_rating(raw: str | float | int | None) -> float | None:
    """Parse "1/4", "0.5" or "10" into a float; None if unreadable."""
    if raw is None:
        return None
    if isinstance(raw, (int, float)):
        return float(raw)

    match = _CR_RE.search(raw)
    if not match:
        return None
    if match.group(1):
        denominator = int(match.group(2))
        if denominator == 0:
            return None
        return int(match.group(1)) / denominator
    return float(match.group(3))


def xp_for_challenge_rating(cr: float | None) -> int | None:
    """XP award for a challenge rating, using the nearest listed CR."""
    if cr is None or cr < 0:
        return None
    nearest = min(XP_BY_CHALLENGE_RATING, key=lambda listed: abs(listed - cr))
    return XP_BY_CHALLENGE_RATING[nearest]
