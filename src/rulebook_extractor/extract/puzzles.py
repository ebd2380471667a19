"""Puzzle and riddle extraction."""

import re

from ..models.records import Puzzle
from ..normalize.confidence import calculate_confidence
from .patterns import DIFFICULTIES, LONG_NAME, denylist, infer_difficulty, labelled_paragraph, tidy, truncate
from .rules import Candidate, ExtractionRule, ScanContext, min_description, one_of, run_rules

# ## The Sphinx's Door
# Difficulty. Medium
STRUCTURED_PUZZLE = re.compile(
    rf"^\#\#[ \t]+({LONG_NAME})[ \t]*\n[ \t]*[*_]{{0,2}}Difficulty\.[*_]{{0,2}}[ \t]*(?P<difficulty>[^\n]+)",
    re.MULTILINE,
)

GENERIC_PUZZLE = re.compile(
    r"(?:^\#\#[ \t]+|\*\*)([A-Z][^\n*]+?)(?:\*\*)?[ \t]*(?:Puzzle|Riddle|Challenge)\b",
    re.MULTILINE,
)

PUZZLE_BOUNDARY = re.compile(r"\n\#\#[ \t]+[A-Z]")
GENERIC_BOUNDARY = re.compile(r"\n(?:\#\#|\*\*)[A-Z]")

PUZZLE_DENYLIST = denylist("Puzzle", "Puzzles", "Difficulty", "Solution", "Features")

_SECTION_LABELS = r"Difficulty|Puzzle[ \t]+Features|Solution|Hint[ \t]+Checks|Customizing"
_SOLUTION = re.compile(r"\*\*Solution:\*\*[ \t]*([^\n]+)|Solution[ \t]*:[ \t]*([^\n]+)", re.IGNORECASE)


def extract_solution(description: str) -> str | None:
    """``**Solution:** ...`` or ``Solution: ...`` line."""
    match = _SOLUTION.search(description)
    if not match:
        return None
    return (match.group(1) or match.group(2)).strip()


def build_structured_puzzle(candidate: Candidate) -> Puzzle:
    description = tidy(candidate.block)
    printed = candidate.match.group("difficulty").strip(" .*_").lower().split()
    difficulty = printed[0] if printed and printed[0] in DIFFICULTIES else infer_difficulty(description)

    features = labelled_paragraph(description, r"Puzzle[ \t]+Features", _SECTION_LABELS)
    solution = labelled_paragraph(description, "Solution", _SECTION_LABELS) or extract_solution(description)
    hints = labelled_paragraph(description, r"Hint[ \t]+Checks", _SECTION_LABELS)

    return _puzzle(candidate, description, difficulty, features, solution, hints)


def build_generic_puzzle(candidate: Candidate) -> Puzzle:
    description = tidy(candidate.body.lstrip("*"))
    return _puzzle(
        candidate,
        description,
        infer_difficulty(description),
        None,
        extract_solution(candidate.body),
        None,
    )


def _puzzle(
    candidate: Candidate,
    description: str,
    difficulty: str,
    features: str | None,
    solution: str | None,
    hints: str | None,
) -> Puzzle:
    confidence = calculate_confidence(
        has_weight=False,
        has_cost=False,
        has_description=bool(description),
        description_length=len(description),
        has_structured_data=features is not None or solution is not None,
        kind="puzzle",
    )
    return Puzzle(
        name=candidate.name,
        source=candidate.source,
        description=truncate(description),
        difficulty=difficulty,
        puzzle_features=features,
        solution=solution,
        hint_checks=hints,
        extraction_confidence_score=confidence,
    )


RULES = [
    ExtractionRule(
        name="puzzle_structured",
        trigger=STRUCTURED_PUZZLE,
        build=build_structured_puzzle,
        boundary=PUZZLE_BOUNDARY,
        max_window=2000,
        min_name_length=5,
        denylist=PUZZLE_DENYLIST,
        gates=[min_description(60), one_of("difficulty", DIFFICULTIES)],
    ),
    ExtractionRule(
        name="puzzle_generic",
        trigger=GENERIC_PUZZLE,
        build=build_generic_puzzle,
        boundary=GENERIC_BOUNDARY,
        max_window=2000,
        denylist=PUZZLE_DENYLIST,
        gates=[min_description(31), one_of("difficulty", DIFFICULTIES)],
    ),
]


def extract_puzzles(text: str, source: str, context: ScanContext | None = None) -> list[Puzzle]:
    return run_rules(RULES, text, source, context)
