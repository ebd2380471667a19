"""Tests for the batch pipeline: map, reduce, validate and write."""

import json

import pytest

from rulebook_extractor.config import Settings
from rulebook_extractor.errors import ExtractionFailure
from rulebook_extractor.models.records import ContentKind, Item
from rulebook_extractor.pipeline import batch
from rulebook_extractor.pipeline import (
    FileOptions,
    FileResult,
    map_files,
    process_file,
    read_collection,
    reduce_results,
    run_batch,
    write_collection,
)


def make_settings(library, output_dir, **overrides) -> Settings:
    values = {
        "input_dir": library,
        "output_dir": output_dir,
        "extensions": [".md", ".txt", ".docx"],
        "excluded_dirs": "",
        "excluded_files": "",
    }
    values.update(overrides)
    return Settings(**values)


class TestProcessFile:
    """Tests for the per-file map step."""

    def test_extracts_records(self, library):
        """Test extracting records from one file."""
        result = process_file(library / "Core" / "Spells.txt", library, FileOptions())

        assert result.ok
        assert result.source == "Core/Spells"
        assert [s.name for s in result.primary[ContentKind.SPELL]] == ["Fireball"]
        assert result.record_count == 1

    def test_short_text_skipped(self, library):
        """Test that a file with too little text is skipped."""
        result = process_file(library / "stub.md", library, FileOptions())

        assert result.skipped == "insufficient_text"
        assert result.record_count == 0

    def test_unsupported_format_skipped(self, library):
        """Test that unsupported formats are skipped without an error."""
        result = process_file(library / "notes.docx", library, FileOptions())

        assert result.skipped.startswith("Unsupported file format")
        assert result.error is None

    def test_timeout_drops_records(self, library):
        """Test that a timed out file keeps no records."""
        options = FileOptions(timeout_seconds=1e-9)

        result = process_file(library / "Core" / "Spells.txt", library, options)

        assert result.error is not None
        assert result.primary == {}

    def test_only_selected_kinds(self, library):
        """Test extracting only the selected kinds."""
        options = FileOptions(kinds=[ContentKind.ITEM])

        result = process_file(library / "Core" / "Player Handbook.md", library, options)

        assert set(result.primary) == {ContentKind.ITEM}


class TestMapReduce:
    """Tests for map_files and reduce_results."""

    def test_parallel_matches_sequential(self, library):
        """Test that the worker pool gives the same results as a sequential run."""
        files = [library / "Core" / "Player Handbook.md", library / "Core" / "Spells.txt", library / "stub.md"]

        sequential = map_files(files, library, FileOptions(), max_workers=1)
        parallel = map_files(files, library, FileOptions(), max_workers=2)

        assert [r.path for r in parallel] == [r.path for r in sequential]
        assert [r.record_count for r in parallel] == [r.record_count for r in sequential]

    def test_sequential_run_survives_a_crashing_file(self, library, monkeypatch):
        """Test that an unexpected error in one file does not stop the others in-process."""
        real_process_file = batch.process_file

        def crash_on_spells(path, root, options):
            if path.name == "Spells.txt":
                raise KeyError("boom")
            return real_process_file(path, root, options)

        monkeypatch.setattr(batch, "process_file", crash_on_spells)
        files = [library / "Core" / "Player Handbook.md", library / "Core" / "Spells.txt", library / "stub.md"]

        results = batch.map_files(files, library, FileOptions(), max_workers=1)

        assert [r.path for r in results] == [str(f) for f in files]
        assert "KeyError" in results[1].error
        assert results[0].ok
        assert results[2].skipped == "insufficient_text"

    def test_progress_callback(self, library):
        """Test that progress is reported after every file."""
        files = [library / "Core" / "Spells.txt", library / "stub.md"]
        calls = []

        map_files(files, library, FileOptions(), progress_callback=lambda done, total: calls.append((done, total)))

        assert calls == [(1, 2), (2, 2)]

    def test_reduce_dedupes_and_prefers_primary(self):
        """Test that reduce drops duplicates and keeps primary records."""
        first = FileResult(
            path="a.md",
            source="phb",
            primary={ContentKind.ITEM: [Item(name="Dagger", source="phb", cost_gp=2.0)]},
            enhanced={ContentKind.ITEM: [Item(name="Shortbow", source="phb", cost_gp=25.0)]},
        )
        second = FileResult(
            path="b.md",
            source="phb",
            primary={ContentKind.ITEM: [Item(name="dagger", source="PHB", cost_gp=99.0)]},
            enhanced={ContentKind.ITEM: [Item(name="Dagger", source="phb", description="Enhanced.")]},
        )

        merged = reduce_results([first, second], [ContentKind.ITEM])

        assert [(i.name, i.cost_gp) for i in merged[ContentKind.ITEM]] == [("Dagger", 2.0), ("Shortbow", 25.0)]


class TestRunBatch:
    """Tests for the full batch run."""

    def test_writes_every_collection(self, library, tmp_path):
        """Test that a run writes all collections and its reports."""
        settings = make_settings(library, tmp_path / "out")

        summary = run_batch(settings)

        for kind in ContentKind:
            assert (tmp_path / "out" / kind.output_filename).exists()
        assert (tmp_path / "out" / "validation-report.json").exists()
        assert (tmp_path / "out" / "run-summary.json").exists()

        assert summary.files_total == 4
        assert summary.files_processed == 2
        assert summary.files_skipped == 2
        assert summary.files_failed == 0

        spells = read_collection(tmp_path / "out" / "spells-extracted.json")
        assert [(s["name"], s["source"]) for s in spells] == [("Fireball", "Core/Spells")]
        items = read_collection(tmp_path / "out" / "items-extracted.json")
        assert [i["name"] for i in items] == ["Longsword"]
        assert read_collection(tmp_path / "out" / "monsters-extracted.json") == []

    def test_summary_and_report(self, library, tmp_path):
        """Test the contents of the run summary and validation report."""
        settings = make_settings(library, tmp_path / "out")

        run_batch(settings)

        summary = json.loads((tmp_path / "out" / "run-summary.json").read_text(encoding="utf-8"))
        assert summary["files"] == {"total": 4, "processed": 2, "skipped": 2, "failed": 0}
        assert summary["records"]["traps"]["invalid"] == 1
        assert {s["reason"] for s in summary["skipped"]} == {"insufficient_text", "Unsupported file format: .docx"}

        report = json.loads((tmp_path / "out" / "validation-report.json").read_text(encoding="utf-8"))
        assert set(report) == {kind.collection for kind in ContentKind}
        assert report["spells"]["valid"] == 1

    def test_invalid_records_kept_by_default(self, library, tmp_path):
        """Test that invalid records are written unless dropped."""
        run_batch(make_settings(library, tmp_path / "out"))

        traps = read_collection(tmp_path / "out" / "traps-extracted.json")
        assert [t["name"] for t in traps] == ["Pit"]

    def test_drop_invalid(self, library, tmp_path):
        """Test dropping invalid records from the output."""
        summary = run_batch(make_settings(library, tmp_path / "out", drop_invalid=True))

        assert read_collection(tmp_path / "out" / "traps-extracted.json") == []
        assert summary.totals[ContentKind.TRAP].invalid == 1
        assert summary.totals[ContentKind.TRAP].written == 0

    def test_rerun_is_byte_identical(self, library, tmp_path):
        """Test that running twice writes the same bytes."""
        settings = make_settings(library, tmp_path / "out")

        run_batch(settings)
        first = {kind: (tmp_path / "out" / kind.output_filename).read_bytes() for kind in ContentKind}
        first_report = (tmp_path / "out" / "validation-report.json").read_bytes()
        run_batch(settings)

        for kind in ContentKind:
            assert (tmp_path / "out" / kind.output_filename).read_bytes() == first[kind]
        assert (tmp_path / "out" / "validation-report.json").read_bytes() == first_report

    def test_reader_crash_fails_only_that_file(self, library, tmp_path, monkeypatch):
        """Test that a parser error of an unknown type is recorded and the batch carries on."""

        class CorruptStream(Exception):
            pass

        real_extract_text = batch.extract_text

        def corrupt_spells(path, strip_html=False):
            if path.name == "Spells.txt":
                raise CorruptStream("corrupt object stream")
            return real_extract_text(path, strip_html=strip_html)

        monkeypatch.setattr(batch, "extract_text", corrupt_spells)

        summary = run_batch(make_settings(library, tmp_path / "out", max_workers=1))

        assert summary.files_failed == 1
        assert summary.files_processed == 1
        assert "corrupt object stream" in summary.failures[0]["error"]
        assert read_collection(tmp_path / "out" / "spells-extracted.json") == []
        assert [i["name"] for i in read_collection(tmp_path / "out" / "items-extracted.json")] == ["Longsword"]
        assert (tmp_path / "out" / "run-summary.json").exists()

    def test_missing_input_dir(self, tmp_path):
        """Test that a missing input directory raises."""
        with pytest.raises(FileNotFoundError):
            run_batch(make_settings(tmp_path / "nowhere", tmp_path / "out"))


class TestCollectionIO:
    """Tests for reading and writing collections."""

    def test_round_trip_with_bom(self, tmp_path):
        """Test reading back a collection saved with a BOM."""
        path = write_collection([Item(name="Rope", source="phb")], tmp_path / "items.json")
        path.write_bytes(b"\xef\xbb\xbf" + path.read_bytes())

        records = read_collection(path)

        assert records[0]["name"] == "Rope"

    def test_rejects_non_array(self, tmp_path):
        """Test that a collection must be a JSON array."""
        path = tmp_path / "bad.json"
        path.write_text('{"name": "Rope"}', encoding="utf-8")

        with pytest.raises(ExtractionFailure):
            read_collection(path)

    def test_rejects_invalid_json(self, tmp_path):
        """Test that broken JSON raises ExtractionFailure."""
        path = tmp_path / "bad.json"
        path.write_text("[{", encoding="utf-8")

        with pytest.raises(ExtractionFailure):
            read_collection(path)
