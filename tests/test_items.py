"""Tests for item extraction."""

from rulebook_extractor.extract.items import (
    extract_items,
    extract_items_enhanced,
    infer_item_kind,
    normalize_rarity,
    weapon_properties,
)
from rulebook_extractor.extract.rules import ScanContext


class TestItemExtraction:
    """Tests for the standard item rules."""

    def test_bold_item_with_cost_and_weight(self):
        """Test a bold item name followed by cost and weight lines."""
        text = (
            "**Longsword**\n"
            "Cost: 15 gp\n"
            "Weight: 3 lb.\n"
            "Properties: Versatile (1d10)\n"
            "A classic blade favoured by knights.\n"
        )

        items = extract_items(text, "Core/Player Handbook")

        assert len(items) == 1
        sword = items[0]
        assert sword.name == "Longsword"
        assert sword.kind == "weapon"
        assert sword.cost_gp == 15.0
        assert sword.cost_breakdown.gp == 15
        assert sword.weight_lb == 3.0
        assert sword.weight_kg == 1.361
        assert sword.properties == {"versatile": "1d10"}
        assert sword.description == "A classic blade favoured by knights."
        assert sword.assumed_fields == []

    def test_potion_without_cost_gets_known_price(self):
        """Test that a potion with no printed cost is priced from the table."""
        text = (
            "Potion of Healing\n"
            "Rarity: Common\n"
            "You regain 2d4 + 2 hit points when you drink this potion.\n"
        )

        items = extract_items(text, "srd")

        assert len(items) == 1
        potion = items[0]
        assert potion.kind == "magic_item"
        assert potion.rarity == "common"
        assert potion.cost_gp == 50.0
        assert "cost_gp" in potion.assumed_fields
        assert potion.weight_lb is None
        assert potion.weight_kg == 0.1
        assert "weight_kg" in potion.assumed_fields

    def test_weight_led_items_stop_at_the_next_item(self):
        """Test that an item block ends where the next weight- or attunement-led item starts."""
        text = (
            "Lantern\n"
            "Weight: 2 lb.\n"
            "A hooded lantern casts bright light.\n"
            "\n"
            "Amulet of Proof\n"
            "Weight: 1 lb.\n"
            "Wondrous item (requires attunement). This amulet hides you from divination magic.\n"
        )

        items = extract_items(text, "srd")

        assert [i.name for i in items] == ["Lantern", "Amulet of Proof"]
        lantern, amulet = items
        assert lantern.description == "A hooded lantern casts bright light."
        assert lantern.kind != "magic_item"
        assert not lantern.attunement
        assert amulet.kind == "magic_item"
        assert amulet.attunement

    def test_attunement_requirement(self):
        """Test reading the attunement requirement."""
        text = (
            "Holy Symbol of Ravenkind\n"
            "Requires attunement by a cleric or paladin of good alignment\n"
            "The holy symbol of ravenkind is a unique holy symbol sacred to the good-hearted faithful.\n"
        )

        items = extract_items(text, "curse")

        assert len(items) == 1
        assert items[0].attunement is True
        assert items[0].attunement_requirements == "a cleric or paladin of good alignment"

    def test_table_of_contents_is_not_an_item(self):
        """Test that table of contents lines are not items."""
        text = "Table of Contents\nCost: 5 gp\nWeight: 1 lb.\n"

        assert extract_items(text, "srd") == []

    def test_item_without_any_data_rejected(self):
        """Test that a name with no item data is rejected."""
        text = "Mystery Box\nCost: ?\n"
        context = ScanContext()

        assert extract_items(text, "srd", context) == []
        assert context.rejected["item_cost:no_item_data"] == 1


class TestEnhancedItems:
    """Tests for markdown heading items."""

    def test_heading_magic_item(self):
        """Test a magic item under a markdown heading."""
        text = (
            "## Cloak of Elvenkind (wondrous item, uncommon)\n"
            "*Requires attunement*\n"
            "While you wear this cloak with its hood up, Wisdom (Perception) checks made to see you "
            "have disadvantage.\n"
        )

        items = extract_items_enhanced(text, "dmg")

        assert len(items) == 1
        cloak = items[0]
        assert cloak.name == "Cloak of Elvenkind"
        assert cloak.kind == "magic_item"
        assert cloak.rarity == "uncommon"
        assert cloak.attunement is True
        assert cloak.cost_gp == 500.0
        assert cloak.weight_kg is None

    def test_subclass_heading_is_not_an_item(self):
        """Test that subclass headings are not read as items."""
        text = (
            "## Path of the Berserker (Barbarian)\n"
            "For some barbarians, rage is a means to an end, and that end is violence.\n"
        )
        context = ScanContext()

        assert extract_items_enhanced(text, "phb", context) == []
        assert context.rejected["item_heading:not_an_item"] == 1


class TestItemFields:
    """Tests for item field helpers."""

    def test_normalize_rarity(self):
        """Test rarity words to rarity keys."""
        assert normalize_rarity("Very Rare") == "very_rare"
        assert normalize_rarity("wondrous item, legendary") == "legendary"
        assert normalize_rarity("no rarity here") is None
        assert normalize_rarity(None) is None

    def test_infer_item_kind(self):
        """Test inferring the item kind from name and text."""
        assert infer_item_kind("Greataxe", "") == ("weapon", None)
        assert infer_item_kind("Potion of Climbing", "") == ("consumable", "potion")
        assert infer_item_kind("Studded Leather Armor", "") == ("armor", None)
        assert infer_item_kind("Heavy Plate", "") == ("armor", "heavy_armor")
        assert infer_item_kind("Thieves' Tools", "") == ("tool", None)
        assert infer_item_kind("Wand of Webs", "", rarity="uncommon") == ("magic_item", None)
        assert infer_item_kind("Lamp", "") == ("other", None)

    def test_weapon_properties(self):
        """Test reading weapon properties and damage."""
        properties = weapon_properties("Finesse, light, thrown (range 20/60)")

        assert properties == {"finesse": True, "light": True, "thrown": True}
