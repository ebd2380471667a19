"""Tests for monster stat block extraction."""

from rulebook_extractor.extract.monsters import extract_monsters, parse_speed, split_sections
from rulebook_extractor.extract.rules import ScanContext

GOBLIN = """## Goblin
Challenge 1/4 (50 XP)
Small humanoid (goblinoid), neutral evil
**AC **15 (leather armor, shield)
**HP **7 (2d6)
**Speed **30 ft.
| STR | DEX | CON | INT | WIS | CHA |
|---|---|---|---|---|---|
| 8 (-1) | 14 (+2) | 10 (+0) | 10 (+0) | 8 (-1) | 8 (-1) |
**Skills** Stealth +6
**Senses** darkvision 60 ft., passive Perception 9
**Languages** Common, Goblin

***Nimble Escape.*** The goblin can take the Disengage or Hide action as a bonus action on each of its turns.

### Actions
***Scimitar.*** *Melee Weapon Attack:* +4 to hit, reach 5 ft., one target. *Hit:* 5 (1d6 + 2) slashing damage.
"""

WOLF = """Wolf
Challenge 1/4
Medium beast, unaligned
Armor Class 13 (natural armor)
Hit Points 11 (2d8 + 2)
Speed 40 ft.
STR 12 DEX 15 CON 12 INT 3 WIS 12 CHA 6
Keen Hearing and Smell. The wolf has advantage on Wisdom (Perception) checks that rely on hearing or smell.
Actions
Bite. Melee Weapon Attack: +4 to hit, reach 5 ft., one target. Hit: 7 (2d4 + 2) piercing damage.
"""

STORM_DRAKE = """## Storm Drake
Challenge 10 (5,900 XP)
Large dragon, chaotic neutral
**AC **18 (natural armor)
**HP **150 (12d10 + 84)
**Speed **40 ft., fly 80 ft.
| STR | DEX | CON | INT | WIS | CHA |
|---|---|---|---|---|---|
| 21 (+5) | 10 (+0) | 19 (+4) | 12 (+1) | 13 (+1) | 15 (+2) |
**Senses** blindsight 30 ft., darkvision 120 ft., passive Perception 17

### Actions
***Bite.*** *Melee Weapon Attack:* +9 to hit, reach 10 ft., one target. *Hit:* 16 (2d10 + 5) piercing damage.

### Reactions
***Static Ward.*** When a creature hits the drake with a melee attack, the attacker takes 5 lightning damage.

### Legendary Actions
The drake can take 3 legendary actions, choosing from the options below.

**Detect.** The drake makes a Wisdom (Perception) check.

**Wing Attack (Costs 2 Actions).** The drake beats its wings. Each creature within 10 feet must succeed on a DC 17 Dexterity saving throw.
"""


class TestMonsterExtraction:
    """Tests for the monster rules."""

    def test_markdown_stat_block(self):
        """Test a full markdown stat block."""
        monsters = extract_monsters(GOBLIN, "Bestiary/Monster Manual")

        assert len(monsters) == 1
        goblin = monsters[0]
        assert goblin.name == "Goblin"
        assert goblin.size == "small"
        assert goblin.type == "humanoid"
        assert goblin.alignment == "neutral evil"
        assert goblin.armor_class == 15
        assert goblin.armor_class_type == "leather armor, shield"
        assert goblin.hit_points == 7
        assert goblin.hit_dice == "2d6"
        assert goblin.speed == {"walk": 30}
        assert goblin.stats.dex == 14
        assert goblin.stats.wis == 8
        assert goblin.challenge_rating == 0.25
        assert goblin.xp == 50
        assert goblin.skills == {"stealth": 6}
        assert goblin.senses == "darkvision 60 ft., passive Perception 9"
        assert goblin.languages == "Common, Goblin"
        assert [t.name for t in goblin.traits] == ["Nimble Escape"]
        assert [a.name for a in goblin.actions] == ["Scimitar"]
        assert goblin.actions[0].attack_bonus == 4
        assert goblin.actions[0].damage == "1d6+2"
        assert goblin.assumed_fields == []

    def test_plain_stat_block(self):
        """Test a plain-text stat block from PDF output."""
        monsters = extract_monsters(WOLF, "srd")

        assert len(monsters) == 1
        wolf = monsters[0]
        assert wolf.size == "medium"
        assert wolf.type == "beast"
        assert wolf.armor_class == 13
        assert wolf.hit_points == 11
        assert wolf.speed == {"walk": 40}
        assert (wolf.stats.str, wolf.stats.dex, wolf.stats.int, wolf.stats.cha) == (12, 15, 3, 6)
        assert [t.name for t in wolf.traits] == ["Keen Hearing and Smell"]
        assert wolf.actions[0].name == "Bite"
        assert wolf.actions[0].damage == "2d4+2"

    def test_reactions_and_legendary_actions(self):
        """Test that reaction and legendary action sub-blocks are parsed with their action costs."""
        monsters = extract_monsters(STORM_DRAKE, "Bestiary/Storm Drake")

        assert len(monsters) == 1
        drake = monsters[0]
        assert drake.xp == 5900
        assert [a.name for a in drake.actions] == ["Bite"]
        assert [r.name for r in drake.reactions] == ["Static Ward"]
        assert drake.reactions[0].description.startswith("When a creature hits the drake")
        assert [(a.name, a.cost) for a in drake.legendary_actions] == [("Detect", 1), ("Wing Attack", 2)]
        assert drake.legendary_actions[1].description.startswith("The drake beats its wings.")

    def test_xp_from_table_is_assumed(self):
        """Test that XP taken from the challenge table is marked assumed."""
        wolf = extract_monsters(WOLF, "srd")[0]

        assert wolf.xp == 50
        assert "xp" in wolf.assumed_fields

    def test_missing_abilities_are_assumed(self):
        """Test that missing ability scores default and are marked assumed."""
        text = "Shadow Thing\nChallenge 2\nMedium undead, chaotic evil\nArmor Class 12\nHit Points 16 (3d8 + 3)\n"

        monster = extract_monsters(text, "srd")[0]

        assert monster.stats.str == 10
        assert {f"stats.{a}" for a in ("str", "dex", "con", "int", "wis", "cha")} <= set(monster.assumed_fields)

    def test_challenge_rating_out_of_range_rejected(self):
        """Test that a challenge rating above 30 rejects the block."""
        text = "Elder Titan\nChallenge 31\nGargantuan monstrosity, unaligned\nArmor Class 25\n"
        context = ScanContext()

        assert extract_monsters(text, "srd", context) == []
        assert context.rejected["monster_plain:invalid_challenge_rating"] == 1

    def test_two_monsters_split_at_boundary(self):
        """Test that consecutive stat blocks are split at the next header."""
        monsters = extract_monsters(WOLF + "\n" + GOBLIN, "srd")

        assert sorted(m.name for m in monsters) == ["Goblin", "Wolf"]
        wolf = next(m for m in monsters if m.name == "Wolf")
        assert all(a.name != "Scimitar" for a in wolf.actions)


class TestMonsterFields:
    """Tests for stat block helpers."""

    def test_parse_speed(self):
        """Test parsing speed modes."""
        assert parse_speed("30 ft., fly 60 ft. (hover), swim 30 ft.") == {"walk": 30, "fly": 60, "swim": 30}
        assert parse_speed(None) == {}

    def test_split_sections(self):
        """Test splitting a stat block into sub-blocks."""
        block = "Preamble\nActions\nBite. Hit.\nLegendary Actions\nTail. Swipe.\n"

        sections = split_sections(block)

        assert sections["preamble"] == "Preamble\n"
        assert "Bite" in sections["actions"]
        assert "Tail" in sections["legendary_actions"]
