"""Shared fixtures: a small rulebook library on disk."""

import pytest

SPELLS_TEXT = """Fireball
3rd-level evocation
Casting Time: 1 action
Range: 150 feet
Components: V, S, M (a tiny ball of bat guano and sulfur)
Duration: Instantaneous
A bright streak flashes from your pointing finger to a point you choose within range and then blossoms with a low roar into an explosion of flame.
"""

EQUIPMENT_TEXT = """**Pit Trap**
A ten-foot pit hidden under a thin canvas sheet covered with dust.

**Longsword**
Cost: 15 gp
Weight: 3 lb.
A classic blade favoured by knights.
"""


@pytest.fixture
def library(tmp_path):
    """Input tree with two rulebooks, a stub and an unsupported file."""
    root = tmp_path / "books"
    (root / "Core").mkdir(parents=True)
    (root / "Core" / "Spells.txt").write_text(SPELLS_TEXT, encoding="utf-8")
    (root / "Core" / "Player Handbook.md").write_text(EQUIPMENT_TEXT, encoding="utf-8")
    (root / "stub.md").write_text("Coming soon.", encoding="utf-8")
    (root / "notes.docx").write_bytes(b"PK\x03\x04")
    return root
