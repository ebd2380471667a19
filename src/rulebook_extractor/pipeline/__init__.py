"""Batch extraction pipeline."""

from rulebook_extractor.pipeline.batch import (
    FileOptions,
    FileResult,
    RunSummary,
    map_files,
    process_file,
    reduce_results,
    run_batch,
)
from rulebook_extractor.pipeline.io import read_collection, write_collection, write_json

__all__ = [
    "FileOptions",
    "FileResult",
    "RunSummary",
    "map_files",
    "process_file",
    "read_collection",
    "reduce_results",
    "run_batch",
    "write_collection",
    "write_json",
]
