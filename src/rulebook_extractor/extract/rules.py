"""Declarative extraction rules and the runner that applies them.

An extractor is a list of ExtractionRule objects. Each rule pairs a
trigger pattern (the candidate header) with a builder that reads typed
fields out of the block window, and with quality gates the finished record
must pass. Rules are independent: each can be tested alone, and the runner
takes care of name checks, block windows, rejection counting and the
per-file deadline.
"""

import logging
import re
import time
from collections import Counter
from dataclasses import dataclass, field
from typing import Any, Callable

from ..errors import CandidateRejected, ExtractionTimeout
from ..models.records import ExtractedRecord
from .patterns import heading_offsets, is_false_positive, near_heading

logger = logging.getLogger(__name__)


@dataclass
class Candidate:
    """A header match and the block window that follows it."""
    name: str
    match: re.Match
    text: str
    block: str
    source: str
    context: "ScanContext | None" = None

    @property
    def start(self) -> int:
        return self.match.start()

    @property
    def header(self) -> str:
        return self.match.group(0)

    @property
    def body(self) -> str:
        """Block text after the header."""
        return self.block[len(self.header):]

    def context_before(self, size: int) -> str:
        """Up to ``size`` characters of text preceding the header."""
        return self.text[max(0, self.start - size):self.start]

    def context_around(self, before: int, after: int) -> str:
        return self.text[max(0, self.start - before):self.start + after]

    def near_heading(self, title: str, distance: int) -> bool:
        """True when a ``title`` heading lies within ``distance`` characters of the header."""
        offsets = self.context.heading_offsets(self.text, title) if self.context is not None else None
        return near_heading(self.text, self.start, title, distance, offsets)


# (reason, predicate) - the record is rejected with reason if predicate is False
Gate = tuple[str, Callable[[Any], bool]]


@dataclass
class ScanContext:
    """Per-file scan state: rejection counters and wall-clock deadline."""
    deadline: float | None = None
    rejected: Counter = field(default_factory=Counter)
    errors: int = 0
    # Section heading offsets by title for heading_text
    headings: dict[str, tuple[int, ...]] = field(default_factory=dict)
    heading_text: str | None = field(default=None, repr=False)

    @classmethod
    def with_timeout(cls, seconds: float | None) -> "ScanContext":
        if not seconds or seconds <= 0:
            return cls()
        return cls(deadline=time.monotonic() + seconds)

    def check_deadline(self) -> None:
        if self.deadline is not None and time.monotonic() > self.deadline:
            raise ExtractionTimeout("per-file extraction deadline exceeded")

    def reject(self, rule: str, reason: str) -> None:
        self.rejected[f"{rule}:{reason}"] += 1

    def heading_offsets(self, text: str, title: str) -> tuple[int, ...]:
        if text is not self.heading_text:
            self.heading_text = text
            self.headings = {}
        if title not in self.headings:
            self.headings[title] = heading_offsets(text, title)
        return self.headings[title]


@dataclass
class ExtractionRule:
    """One trigger pattern with its field extractors and quality gates."""
    name: str
    trigger: re.Pattern
    build: Callable[[Candidate], ExtractedRecord]
    boundary: re.Pattern | None = None  # next header of the same kind
    max_window: int = 2000
    min_name_length: int = 3
    denylist: re.Pattern | None = None
    gates: list[Gate] = field(default_factory=list)
    name_group: int | str = 1
    clean_name: Callable[[str], str] | None = None

    def candidate_name(self, match: re.Match) -> str:
        name = (match.group(self.name_group) or "").strip()
        name = re.sub(r"\s+", " ", name)
        if self.clean_name:
            name = self.clean_name(name)
        return name

    def block_window(self, text: str, match: re.Match) -> str:
        """Header plus text up to the next boundary or max_window, whichever is first."""
        start = match.start()
        limit = min(len(text), max(match.end(), start + self.max_window))
        end = limit
        if self.boundary is not None:
            found = self.boundary.search(text, match.end(), limit)
            if found:
                end = found.start()
        return text[start:end]

    def apply(
        self,
        match: re.Match,
        text: str,
        source: str,
        context: "ScanContext | None" = None,
    ) -> ExtractedRecord:
        """Turn one trigger match into a record or raise CandidateRejected."""
        name = self.candidate_name(match)
        if len(name) < self.min_name_length:
            raise CandidateRejected("name_too_short")
        if is_false_positive(name, self.denylist):
            raise CandidateRejected("false_positive")

        candidate = Candidate(
            name=name,
            match=match,
            text=text,
            block=self.block_window(text, match),
            source=source,
            context=context,
        )
        record = self.build(candidate)

        for reason, check in self.gates:
            if not check(record):
                raise CandidateRejected(reason)
        return record


def run_rules(
    rules: list[ExtractionRule],
    text: str,
    source: str,
    context: ScanContext | None = None,
) -> list[ExtractedRecord]:
    """Apply every rule to text, collecting records in rule then text order.

    A candidate that fails a gate is counted and dropped. A candidate whose
    builder raises anything else is skipped too, so one malformed block
    never stops the scan.
    """
    context = context or ScanContext()
    records: list[ExtractedRecord] = []

    for rule in rules:
        for match in rule.trigger.finditer(text):
            context.check_deadline()
            try:
                record = rule.apply(match, text, source, context)
            except CandidateRejected as exc:
                context.reject(rule.name, exc.reason)
                continue
            except Exception as exc:
                logger.debug("Rule %s failed at offset %d in %s: %s", rule.name, match.start(), source, exc)
                context.errors += 1
                context.reject(rule.name, "error")
                continue
            records.append(record)

    return records


# ============================================================================
# Common gates
# ============================================================================

def min_description(length: int) -> Gate:
    return ("description_too_short", lambda record: len(record.description) >= length)


def one_of(field_name: str, allowed: tuple[str, ...] | frozenset[str]) -> Gate:
    return (f"invalid_{field_name}", lambda record: getattr(record, field_name) in allowed)
