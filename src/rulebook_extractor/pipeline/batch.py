"""Batch driver: map extraction over an input tree, then reduce and write.

The map step (process_file) is a pure function of one file, so it can run
in-process or in a worker process. Everything it produces travels back in
a FileResult; there is no shared state between files. The reduce step
dedupes each pass, merges the passes, validates and writes the
collections.
"""

import logging
import time
from collections import Counter
from concurrent.futures import ProcessPoolExecutor, as_completed
from dataclasses import dataclass, field
from itertools import chain
from pathlib import Path
from typing import Callable

from ..config import Settings
from ..dedupe import dedupe, merge_passes, sort_by_key
from ..errors import ExtractionFailure, ExtractionTimeout, UnsupportedFormat
from ..extract import ScanContext, extract_all
from ..ingest.loader import extract_text
from ..ingest.walker import iter_source_files, standardize_source
from ..models.document import SourceDocument
from ..models.records import ContentKind, ExtractedRecord
from ..validation.validator import ValidationStats, validate_records, write_report
from .io import write_collection, write_json

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, int], None]


@dataclass
class FileOptions:
    """The subset of settings a worker needs for one file."""
    kinds: list[ContentKind] = field(default_factory=lambda: list(ContentKind))
    strip_html: bool = False
    min_text_length: int = 100
    timeout_seconds: float | None = None

    @classmethod
    def from_settings(cls, settings: Settings, kinds: list[ContentKind] | None = None) -> "FileOptions":
        return cls(
            kinds=kinds or list(ContentKind),
            strip_html=settings.strip_html,
            min_text_length=settings.min_text_length,
            timeout_seconds=settings.file_timeout_seconds,
        )


@dataclass
class FileResult:
    """Everything extracted from one file, or why nothing was."""
    path: str
    source: str
    text_length: int = 0
    primary: dict[ContentKind, list[ExtractedRecord]] = field(default_factory=dict)
    enhanced: dict[ContentKind, list[ExtractedRecord]] = field(default_factory=dict)
    rejected: Counter = field(default_factory=Counter)
    skipped: str | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.skipped is None and self.error is None

    @property
    def record_count(self) -> int:
        return sum(len(records) for records in chain(self.primary.values(), self.enhanced.values()))


def process_file(path: Path, root: Path, options: FileOptions) -> FileResult:
    """Extract both passes from one file.

    Read failures, unsupported formats and timeouts are recorded on the
    result instead of raised; a timed-out file keeps none of its records.
    """
    result = FileResult(path=str(path), source=standardize_source(path, root))

    try:
        text = extract_text(path, strip_html=options.strip_html)
    except UnsupportedFormat as exc:
        logger.warning("Skipping %s: %s", path, exc)
        result.skipped = str(exc)
        return result
    except (ExtractionFailure, OSError) as exc:
        logger.error("Could not read %s: %s", path, exc)
        result.error = str(exc)
        return result
    except Exception as exc:
        # Parser libraries raise their own types (e.g. pymupdf.mupdf.FzErrorBase)
        logger.exception("Unexpected error reading %s", path)
        result.error = f"{type(exc).__name__}: {exc}"
        return result

    document = SourceDocument(path=str(path), source_id=result.source, raw_text=text)
    result.text_length = len(document.raw_text)
    if len(document.raw_text.strip()) < options.min_text_length:
        logger.info("Skipping %s: only %d characters of text", path, len(document.raw_text.strip()))
        result.skipped = "insufficient_text"
        return result

    context = ScanContext.with_timeout(options.timeout_seconds)
    try:
        primary, enhanced = extract_all(document.raw_text, document.source_id, options.kinds, context)
    except ExtractionTimeout as exc:
        logger.error("Timed out extracting %s: %s", path, exc)
        result.error = str(exc)
        result.rejected = context.rejected
        return result

    result.primary = primary
    result.enhanced = enhanced
    result.rejected = context.rejected
    logger.debug("Extracted %d records from %s", result.record_count, document.short_location())
    return result


def _failed(path: Path, root: Path, exc: BaseException) -> FileResult:
    return FileResult(
        path=str(path),
        source=standardize_source(path, root),
        error=f"processing failed: {type(exc).__name__}: {exc}",
    )


def map_files(
    files: list[Path],
    root: Path,
    options: FileOptions,
    max_workers: int = 1,
    progress_callback: ProgressCallback | None = None,
) -> list[FileResult]:
    """Run process_file over files; results come back in walk order."""
    total = len(files)

    if max_workers <= 1 or total <= 1:
        results = []
        for i, path in enumerate(files):
            try:
                results.append(process_file(path, root, options))
            except Exception as exc:
                logger.exception("Processing failed on %s", path)
                results.append(_failed(path, root, exc))
            if progress_callback:
                progress_callback(i + 1, total)
        return results

    ordered: list[FileResult | None] = [None] * total
    with ProcessPoolExecutor(max_workers=max_workers) as executor:
        future_to_index = {
            executor.submit(process_file, path, root, options): i
            for i, path in enumerate(files)
        }

        completed = 0
        for future in as_completed(future_to_index):
            index = future_to_index[future]
            completed += 1
            try:
                ordered[index] = future.result()
            except Exception as exc:
                # A crashed worker fails its file, not the batch
                logger.error("Worker failed on %s: %s", files[index], exc)
                ordered[index] = _failed(files[index], root, exc)
            if progress_callback:
                progress_callback(completed, total)

    return [r for r in ordered if r is not None]


def reduce_results(
    results: list[FileResult],
    kinds: list[ContentKind] | None = None,
) -> dict[ContentKind, list[ExtractedRecord]]:
    """Dedupe each pass, merge with the primary pass winning, sort by natural key."""
    merged: dict[ContentKind, list[ExtractedRecord]] = {}

    for kind in kinds or list(ContentKind):
        primary = dedupe(chain.from_iterable(r.primary.get(kind, []) for r in results))
        enhanced = dedupe(chain.from_iterable(r.enhanced.get(kind, []) for r in results))
        merged[kind] = sort_by_key(merge_passes(primary, enhanced))

    return merged


# ============================================================================
# Run summary
# ============================================================================

@dataclass
class KindTotals:
    primary: int = 0
    enhanced: int = 0
    merged: int = 0
    invalid: int = 0
    written: int = 0


@dataclass
class RunSummary:
    """Counts for one batch run, written as run-summary.json."""
    input_dir: str
    output_dir: str
    files_total: int = 0
    files_processed: int = 0
    files_skipped: int = 0
    files_failed: int = 0
    totals: dict[ContentKind, KindTotals] = field(default_factory=dict)
    rejections: Counter = field(default_factory=Counter)
    failures: list[dict[str, str]] = field(default_factory=list)
    skipped: list[dict[str, str]] = field(default_factory=list)
    validation: dict[ContentKind, ValidationStats] = field(default_factory=dict)
    output_files: list[str] = field(default_factory=list)
    duration_seconds: float = 0.0

    @property
    def records_written(self) -> int:
        return sum(t.written for t in self.totals.values())

    def to_dict(self) -> dict:
        return {
            "input_dir": self.input_dir,
            "output_dir": self.output_dir,
            "files": {
                "total": self.files_total,
                "processed": self.files_processed,
                "skipped": self.files_skipped,
                "failed": self.files_failed,
            },
            "records": {
                kind.collection: {
                    "primary": t.primary,
                    "enhanced": t.enhanced,
                    "merged": t.merged,
                    "invalid": t.invalid,
                    "written": t.written,
                }
                for kind, t in self.totals.items()
            },
            "rejections": dict(sorted(self.rejections.items())),
            "failures": self.failures,
            "skipped": self.skipped,
            "output_files": self.output_files,
            "duration_seconds": round(self.duration_seconds, 2),
        }


def run_batch(
    settings: Settings,
    kinds: list[ContentKind] | None = None,
    progress_callback: ProgressCallback | None = None,
    total_callback: Callable[[int], None] | None = None,
) -> RunSummary:
    """Extract every rulebook under settings.input_dir into settings.output_dir.

    Writes one collection per content kind (always, even when empty), the
    validation report and the run summary.
    """
    started = time.monotonic()
    root = Path(settings.input_dir)
    output_dir = Path(settings.output_dir)
    if not root.is_dir():
        raise FileNotFoundError(f"Input directory not found: {root}")

    kinds = kinds or list(ContentKind)
    files = list(iter_source_files(root, settings.extensions, settings.excluded_dirs, settings.excluded_files))
    logger.info("Found %d source files under %s", len(files), root)
    if total_callback:
        total_callback(len(files))

    options = FileOptions.from_settings(settings, kinds)
    results = map_files(files, root, options, settings.max_workers, progress_callback)

    summary = RunSummary(input_dir=str(root), output_dir=str(output_dir), files_total=len(files))
    for result in results:
        summary.rejections.update(result.rejected)
        if result.error:
            summary.files_failed += 1
            summary.failures.append({"path": result.path, "error": result.error})
        elif result.skipped:
            summary.files_skipped += 1
            summary.skipped.append({"path": result.path, "reason": result.skipped})
        else:
            summary.files_processed += 1

    merged = reduce_results(results, kinds)

    for kind in kinds:
        records = merged[kind]
        stats = validate_records(records)
        totals = KindTotals(
            primary=sum(len(r.primary.get(kind, [])) for r in results),
            enhanced=sum(len(r.enhanced.get(kind, [])) for r in results),
            merged=len(records),
            invalid=stats.invalid,
        )

        if settings.drop_invalid:
            records = [record for record, check in zip(records, stats.results) if check.valid]

        path = write_collection(records, output_dir / kind.output_filename)
        totals.written = len(records)
        summary.totals[kind] = totals
        summary.validation[kind] = stats
        summary.output_files.append(str(path))
        logger.info("Wrote %d %s to %s", len(records), kind.collection, path)

    write_report(summary.validation, settings.report_path)
    summary.output_files.append(str(settings.report_path))

    summary.duration_seconds = time.monotonic() - started
    summary.output_files.append(str(settings.summary_path))
    write_json(summary.to_dict(), settings.summary_path)

    return summary
