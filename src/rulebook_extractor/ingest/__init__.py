"""Text acquisition for rulebook files."""

from rulebook_extractor.ingest.loader import extract_text, strip_bom
from rulebook_extractor.ingest.walker import iter_source_files, standardize_source

__all__ = ["extract_text", "strip_bom", "iter_source_files", "standardize_source"]
