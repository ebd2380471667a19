"""Natural-key deduplication and pass merging."""

from typing import Any, Iterable, Mapping, TypeVar

from pydantic import BaseModel

KEY_FIELDS = ("name", "source")

T = TypeVar("T", BaseModel, Mapping)


def _field(record: Any, name: str) -> Any:
    if isinstance(record, Mapping):
        return record.get(name)
    return getattr(record, name, None)


def natural_key(record: Any, key_fields: tuple[str, ...] = KEY_FIELDS) -> tuple[str, ...]:
    """Lower-cased, stripped key field values; missing fields count as empty."""
    values = (_field(record, name) for name in key_fields)
    return tuple("" if value is None else str(value).strip().lower() for value in values)


def dedupe(records: Iterable[T], key_fields: tuple[str, ...] = KEY_FIELDS) -> list[T]:
    """Keep the first record seen for each natural key, in input order."""
    seen: dict[tuple[str, ...], T] = {}

    for record in records:
        key = natural_key(record, key_fields)
        if key not in seen:
            seen[key] = record

    return list(seen.values())


def merge_passes(
    primary: Iterable[T],
    secondary: Iterable[T],
    key_fields: tuple[str, ...] = KEY_FIELDS,
) -> list[T]:
    """Merge two extraction passes; the primary pass always wins.

    Secondary records are only added for keys the primary pass did not
    produce, even when the secondary record is richer.
    """
    merged = dedupe(primary, key_fields)
    keys = {natural_key(record, key_fields) for record in merged}

    for record in dedupe(secondary, key_fields):
        if natural_key(record, key_fields) not in keys:
            merged.append(record)

    return merged


def sort_by_key(records: Iterable[T], key_fields: tuple[str, ...] = KEY_FIELDS) -> list[T]:
    return sorted(records, key=lambda record: natural_key(record, key_fields))
