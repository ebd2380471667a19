"""Tests for text loading and the directory walk."""

import pytest

from rulebook_extractor.errors import UnsupportedFormat
from rulebook_extractor.ingest.loader import extract_text, html_to_text, strip_bom
from rulebook_extractor.ingest.walker import iter_source_files, standardize_source


class TestLoader:
    """Tests for extract_text."""

    def test_markdown_read_as_is(self, tmp_path):
        """Test that markdown text is returned unchanged."""
        path = tmp_path / "spells.md"
        path.write_text("#### Shield\n_1st-level abjuration_\n", encoding="utf-8")

        assert extract_text(path) == "#### Shield\n_1st-level abjuration_\n"

    def test_bom_is_stripped(self, tmp_path):
        """Test that a leading byte order mark is removed."""
        path = tmp_path / "notes.txt"
        path.write_bytes("\ufeffFireball".encode("utf-8"))

        assert extract_text(path) == "Fireball"

    def test_cp1252_fallback(self, tmp_path):
        """Test that files that are not UTF-8 are decoded with cp1252."""
        path = tmp_path / "legacy.txt"
        path.write_bytes(b"Caf\xe9 menu")

        assert extract_text(path) == "Café menu"

    def test_unsupported_extension(self, tmp_path):
        """Test that unknown extensions raise UnsupportedFormat."""
        path = tmp_path / "map.jpg"
        path.write_bytes(b"\xff\xd8")

        with pytest.raises(UnsupportedFormat) as excinfo:
            extract_text(path)
        assert excinfo.value.suffix == ".jpg"

    def test_html_kept_unless_stripped(self, tmp_path):
        """Test that HTML markup is only removed on request."""
        path = tmp_path / "page.html"
        path.write_text("<html><body><h2>Alert</h2><p>Always on guard.</p></body></html>", encoding="utf-8")

        assert "<h2>" in extract_text(path)
        assert extract_text(path, strip_html=True) == "Alert\nAlways on guard."

    def test_unreadable_pdf_yields_empty_text(self, tmp_path):
        """Test that a corrupt PDF reads as empty text."""
        path = tmp_path / "broken.pdf"
        path.write_bytes(b"this is not a pdf")

        assert extract_text(path) == ""


class TestHtmlToText:
    """Tests for HTML conversion."""

    def test_scripts_and_styles_removed(self):
        """Test that script and style bodies are dropped with the tags."""
        html = "<style>p {}</style><p>Rope</p><script>alert(1)</script><p>50 feet</p>"

        assert html_to_text(html) == "Rope\n50 feet"

    def test_strip_bom_only_at_start(self):
        """Test that a BOM in the middle of the text is kept."""
        assert strip_bom("\ufeffa\ufeff") == "a\ufeff"
        assert strip_bom("plain") == "plain"


class TestWalker:
    """Tests for iter_source_files and standardize_source."""

    @pytest.fixture
    def tree(self, tmp_path):
        (tmp_path / "Core").mkdir()
        (tmp_path / "Core" / "Player Handbook.md").write_text("x", encoding="utf-8")
        (tmp_path / "Core" / "Character Sheet.pdf").write_bytes(b"")
        (tmp_path / "Processed").mkdir()
        (tmp_path / "Processed" / "old.md").write_text("x", encoding="utf-8")
        (tmp_path / "adventure.TXT").write_text("x", encoding="utf-8")
        (tmp_path / "cover.png").write_bytes(b"")
        return tmp_path

    def test_walk_filters_and_sorts(self, tree):
        """Test that the walker applies exclusions and sorts paths."""
        files = list(
            iter_source_files(
                tree,
                [".pdf", ".md", ".txt"],
                excluded_dirs="Processed",
                excluded_files="Character Sheet",
            )
        )

        names = [f.relative_to(tree).as_posix() for f in files]
        assert names == ["adventure.TXT", "Core/Player Handbook.md"]

    def test_walk_without_exclusions(self, tree):
        """Test walking with every directory included."""
        files = list(iter_source_files(tree, [".md"]))

        assert len(files) == 2

    def test_standardize_source(self, tree):
        """Test deriving a source label from a relative path."""
        assert standardize_source(tree / "Core" / "Player Handbook.md", tree) == "Core/Player Handbook"
        assert standardize_source(tree / "adventure.TXT", tree) == "adventure"
