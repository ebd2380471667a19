"""Read and write JSON record collections."""

import json
from pathlib import Path
from typing import Any, Iterable

from pydantic import BaseModel

from ..errors import ExtractionFailure
from ..ingest.loader import strip_bom


def read_collection(path: Path | str) -> list[dict[str, Any]]:
    """Load a JSON array of records, tolerating a leading byte-order mark."""
    path = Path(path)
    text = strip_bom(path.read_text(encoding="utf-8"))
    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        raise ExtractionFailure(f"Invalid JSON in {path}: {exc}") from exc

    if not isinstance(data, list):
        raise ExtractionFailure(f"Expected a JSON array in {path}, got {type(data).__name__}")
    return data


def write_json(data: Any, path: Path | str) -> Path:
    """Write UTF-8 JSON with two-space indent and a trailing newline."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(data, f, indent=2, ensure_ascii=False)
        f.write("\n")
    return path


def write_collection(records: Iterable[BaseModel | dict], path: Path | str) -> Path:
    """Write records as a JSON array, in the order given."""
    rows = [r.model_dump(mode="json") if isinstance(r, BaseModel) else r for r in records]
    return write_json(rows, path)
