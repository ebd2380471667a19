"""Walk an input tree and name sources."""

import re
from pathlib import Path
from typing import Iterator


def iter_source_files(
    root: Path,
    extensions: list[str],
    excluded_dirs: str = "",
    excluded_files: str = "",
) -> Iterator[Path]:
    """Yield rulebook files under root in a stable, sorted order.

    Directories whose name matches ``excluded_dirs`` are not descended into
    and files whose name matches ``excluded_files`` are skipped; both are
    case-insensitive regex searches.
    """
    suffixes = {ext.lower() for ext in extensions}
    dir_pattern = re.compile(excluded_dirs, re.IGNORECASE) if excluded_dirs else None
    file_pattern = re.compile(excluded_files, re.IGNORECASE) if excluded_files else None

    for entry in sorted(root.iterdir(), key=lambda p: p.name.lower()):
        if entry.is_dir():
            if dir_pattern and dir_pattern.search(entry.name):
                continue
            yield from iter_source_files(entry, extensions, excluded_dirs, excluded_files)
        elif entry.is_file() and entry.suffix.lower() in suffixes:
            if file_pattern and file_pattern.search(entry.name):
                continue
            yield entry


def standardize_source(path: Path, root: Path) -> str:
    """Build a readable source id: relative directory plus file stem.

    ``Core/Player Handbook.pdf`` under root becomes ``Core/Player Handbook``.
    """
    relative = path.relative_to(root)
    parent = relative.parent.as_posix()
    if parent in ("", "."):
        return relative.stem
    return f"{parent}/{relative.stem}"
