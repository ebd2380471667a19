"""Tests for the rule runner, shared pattern helpers and the two-pass driver."""

import re
import time

import pytest

from rulebook_extractor.errors import CandidateRejected, ExtractionTimeout
from rulebook_extractor.extract import ENHANCED_PASS, PRIMARY_PASS, extract_all
from rulebook_extractor.extract.patterns import (
    canonical_name,
    is_false_positive,
    label_value,
    near_heading,
    signed_values,
    split_list,
)
from rulebook_extractor.extract.rules import ExtractionRule, ScanContext, run_rules
from rulebook_extractor.models.records import ContentKind, Feat

NAME_LINE = re.compile(r"^([A-Z][a-z]+):", re.MULTILINE)


def build_feat(candidate):
    if candidate.name == "Broken":
        raise ValueError("malformed block")
    if candidate.name == "Skip":
        raise CandidateRejected("skipped")
    return Feat(name=candidate.name, source=candidate.source, description=candidate.body.strip())


def make_rule(**kwargs) -> ExtractionRule:
    return ExtractionRule(name="test", trigger=NAME_LINE, build=build_feat, **kwargs)


class TestRunRules:
    """Tests for run_rules and ExtractionRule."""

    def test_records_in_text_order(self):
        """Test that records come back in text order."""
        records = run_rules([make_rule()], "Alpha: one\nBravo: two\n", "src")

        assert [r.name for r in records] == ["Alpha", "Bravo"]
        assert records[0].source == "src"

    def test_block_stops_at_boundary(self):
        """Test that a block ends at the rule boundary."""
        rule = make_rule(boundary=re.compile(r"\n[A-Z][a-z]+:"))

        records = run_rules([rule], "Alpha: one\nmore\nBravo: two\n", "src")

        assert records[0].description == "one\nmore"

    def test_block_limited_by_window(self):
        """Test that a block is capped at the rule window."""
        rule = make_rule(max_window=12)

        records = run_rules([rule], "Alpha: one two three four", "src")

        assert records[0].description == "one t"

    def test_name_checks(self):
        """Test the name length and false positive checks."""
        context = ScanContext()
        rule = make_rule(min_name_length=4, denylist=re.compile(r"^Bravo$"))

        records = run_rules([rule], "Abc: x\nBravo: y\nTable: z\nDelta: w\n", "src", context)

        assert [r.name for r in records] == ["Delta"]
        assert context.rejected == {"test:name_too_short": 1, "test:false_positive": 2}

    def test_gates(self):
        """Test that failed gates reject with their reason."""
        context = ScanContext()
        rule = make_rule(
            boundary=re.compile(r"\n[A-Z][a-z]+:"),
            gates=[("too_short", lambda record: len(record.description) > 3)],
        )

        records = run_rules([rule], "Alpha: ok\nBravo: long enough\n", "src", context)

        assert [r.name for r in records] == ["Bravo"]
        assert context.rejected["test:too_short"] == 1

    def test_builder_errors_do_not_stop_scan(self):
        """Test that a failing builder is counted and the scan continues."""
        context = ScanContext()

        records = run_rules([make_rule()], "Broken: x\nSkip: y\nCharlie: z\n", "src", context)

        assert [r.name for r in records] == ["Charlie"]
        assert context.errors == 1
        assert context.rejected["test:error"] == 1
        assert context.rejected["test:skipped"] == 1

    def test_deadline(self):
        """Test that an expired deadline stops the scan."""
        context = ScanContext(deadline=time.monotonic() - 1)

        with pytest.raises(ExtractionTimeout):
            run_rules([make_rule()], "Alpha: one\n", "src", context)

    def test_no_timeout_without_budget(self):
        """Test that no budget means no deadline."""
        assert ScanContext.with_timeout(None).deadline is None
        assert ScanContext.with_timeout(0).deadline is None
        assert ScanContext.with_timeout(5).deadline > time.monotonic()


class TestPatternHelpers:
    """Tests for the shared text helpers."""

    def test_false_positives(self):
        """Test the false positive name list."""
        assert is_false_positive("Table of Contents")
        assert is_false_positive("Chapter 3")
        assert is_false_positive("the")
        assert is_false_positive("X")
        assert not is_false_positive("Fireball")

    def test_label_value_forms(self):
        """Test reading label and value pairs in their printed forms."""
        assert label_value("Range: 60 feet", "Range") == "60 feet"
        assert label_value("**Range:** 60 feet", "Range") == "60 feet"
        assert label_value("**Range**: 60 feet\\", "Range") == "60 feet"
        assert label_value("Arrange: no", "Range") is None

    def test_split_list(self):
        """Test splitting comma and semicolon separated lists."""
        assert split_list("Light armor, medium armor; shields") == ["Light armor", "medium armor", "shields"]
        assert split_list("None") == []
        assert split_list(None) == []

    def test_signed_values(self):
        """Test reading signed bonuses."""
        assert signed_values("Dex +5, Wis +3") == {"dex": 5, "wis": 3}
        assert signed_values("Perception −1") == {"perception": -1}

    def test_canonical_name(self):
        """Test fuzzy matching against known names."""
        assert canonical_name("fighter", ("Fighter", "Wizard")) == "Fighter"
        assert canonical_name("Figher", ("Fighter", "Wizard")) == "Fighter"
        assert canonical_name("Pilot", ("Fighter", "Wizard")) is None

    def test_near_heading(self):
        """Test the heading distance check."""
        text = "Intro\n## Feats\nAlert\n" + "x" * 200 + "\nLucky\n"

        assert near_heading(text, text.index("Alert"), "Feats?", 50)
        assert not near_heading(text, text.index("Lucky"), "Feats?", 50)

    def test_scan_context_caches_heading_offsets_per_text(self):
        """Test that heading offsets are computed once per text and dropped when the text changes."""
        context = ScanContext()
        text = "## Feats\nAlert\n"

        offsets = context.heading_offsets(text, "Feats?")

        assert offsets == (0,)
        assert context.heading_offsets(text, "Feats?") is offsets
        assert context.headings == {"Feats?": (0,)}

        assert context.heading_offsets("Intro\n## Feats\n", "Feats?") == (5,)
        assert context.headings == {"Feats?": (5,)}


class TestExtractAll:
    """Tests for the two-pass driver."""

    def test_every_kind_has_a_primary_extractor(self):
        """Test that every kind has a primary extractor."""
        assert set(PRIMARY_PASS) == set(ContentKind)
        assert set(ENHANCED_PASS) < set(ContentKind)

    def test_selected_kinds_only(self):
        """Test that only the selected kinds are extracted."""
        primary, enhanced = extract_all("Nothing to see here.", "src", [ContentKind.SPELL, ContentKind.ITEM])

        assert set(primary) == {ContentKind.SPELL, ContentKind.ITEM}
        assert set(enhanced) == {ContentKind.ITEM}

    def test_table_of_contents_never_extracted(self):
        """Test that no kind extracts from a table of contents."""
        text = (
            "Table of Contents\n"
            "3rd-level evocation\n"
            "Casting Time: 1 action\n"
            "Cost: 5 gp\n"
            "Weight: 1 lb.\n"
            "Hit Dice: 1d8 per level\n"
            "Hit Points at 1st Level: 8\n"
            "A list of chapters follows, with one line for each part of the book.\n"
        )

        primary, enhanced = extract_all(text, "src")

        names = [r.name for records in (*primary.values(), *enhanced.values()) for r in records]
        assert "Table of Contents" not in names
