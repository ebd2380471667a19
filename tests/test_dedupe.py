"""Tests for natural-key deduplication and pass merging."""

from rulebook_extractor.dedupe import dedupe, merge_passes, natural_key, sort_by_key
from rulebook_extractor.models.records import Item


class TestNaturalKey:
    """Tests for natural_key."""

    def test_case_and_whitespace_insensitive(self):
        """Test that keys ignore case and surrounding whitespace."""
        assert natural_key({"name": " Dagger ", "source": "PHB"}) == ("dagger", "phb")

    def test_missing_fields_are_empty(self):
        """Test that missing key fields count as empty strings."""
        assert natural_key({"name": "Dagger"}) == ("dagger", "")

    def test_separator_in_name_does_not_collide(self):
        """Test that a pipe inside a name or source cannot make two keys collide."""
        first = {"name": "Lever|Pull", "source": "adv"}
        second = {"name": "Lever", "source": "Pull|adv"}

        assert natural_key(first) != natural_key(second)
        assert dedupe([first, second]) == [first, second]

    def test_models_and_dicts_agree(self):
        """Test that a model and its dict form share a key."""
        item = Item(name="Dagger", source="phb")

        assert natural_key(item) == natural_key({"name": "dagger", "source": "PHB"})


class TestDedupe:
    """Tests for dedupe and merge_passes."""

    def test_first_record_wins(self):
        """Test that the first record with a key is kept."""
        records = [
            {"name": "Dagger", "source": "phb", "cost_gp": 2},
            {"name": "DAGGER", "source": "phb", "cost_gp": 99},
            {"name": "Dagger", "source": "dmg", "cost_gp": 3},
        ]

        result = dedupe(records)

        assert result == [records[0], records[2]]

    def test_keys_unique_after_dedupe(self):
        """Test that no key appears twice after deduplication."""
        records = [{"name": n, "source": "s"} for n in ("Rope", "rope", "Torch", "ROPE ", "torch")]

        keys = [natural_key(r) for r in dedupe(records)]

        assert len(keys) == len(set(keys)) == 2

    def test_primary_pass_wins(self):
        """Test that a primary record beats an enhanced duplicate."""
        primary = [{"name": "Dagger", "source": "phb", "cost_gp": 2}]
        secondary = [
            {"name": "Dagger", "source": "phb", "cost_gp": 2, "description": "A richer record."},
            {"name": "Shortbow", "source": "phb", "cost_gp": 25},
        ]

        merged = merge_passes(primary, secondary)

        assert merged == [primary[0], secondary[1]]

    def test_primary_pass_wins_for_models(self):
        """Test merging passes with pydantic records."""
        primary = [Item(name="Dagger", source="phb", cost_gp=2.0)]
        secondary = [Item(name="dagger", source="PHB", cost_gp=2.0, description="Enhanced.")]

        merged = merge_passes(primary, secondary)

        assert len(merged) == 1
        assert merged[0].description == ""

    def test_custom_key_fields(self):
        """Test deduplicating on other key fields."""
        records = [
            {"name": "Shield", "source": "phb", "level": 1},
            {"name": "Shield", "source": "phb", "level": 2},
        ]

        assert len(dedupe(records, key_fields=("name", "source", "level"))) == 2

    def test_sort_by_key(self):
        """Test sorting records by natural key."""
        records = [{"name": "b", "source": "x"}, {"name": "A", "source": "y"}, {"name": "a", "source": "x"}]

        assert [(r["name"], r["source"]) for r in sort_by_key(records)] == [("a", "x"), ("A", "y"), ("b", "x")]
