"""Shared vocabulary and text helpers for the pattern extractors."""

import re

from rapidfuzz import fuzz, process

# ============================================================================
# Known values
# ============================================================================

SPELL_SCHOOLS = (
    "abjuration",
    "conjuration",
    "divination",
    "enchantment",
    "evocation",
    "illusion",
    "necromancy",
    "transmutation",
)
SCHOOL_ALTERNATION = "|".join(SPELL_SCHOOLS)

CREATURE_SIZES = ("tiny", "small", "medium", "large", "huge", "gargantuan")

MONSTER_TYPES = (
    "aberration",
    "beast",
    "celestial",
    "construct",
    "dragon",
    "elemental",
    "fey",
    "fiend",
    "giant",
    "humanoid",
    "monstrosity",
    "ooze",
    "plant",
    "undead",
)

ITEM_KINDS = ("weapon", "armor", "tool", "consumable", "magic_item", "other")

RARITIES = ("common", "uncommon", "rare", "very_rare", "legendary", "artifact")

THREAT_LEVELS = ("setback", "dangerous", "deadly")

DIFFICULTIES = ("easy", "medium", "hard")

ABILITIES = ("str", "dex", "con", "int", "wis", "cha")

CLASS_NAMES = (
    "Barbarian",
    "Bard",
    "Cleric",
    "Druid",
    "Fighter",
    "Monk",
    "Paladin",
    "Ranger",
    "Rogue",
    "Sorcerer",
    "Warlock",
    "Wizard",
    "Artificer",
    "Blood Hunter",
)
CLASS_ALTERNATION = "|".join(CLASS_NAMES)

# Words a subclass heading uses, by parent class
SUBCLASS_KEYWORDS = {
    "Barbarian": ("Path",),
    "Bard": ("College",),
    "Cleric": ("Domain",),
    "Druid": ("Circle",),
    "Fighter": ("Martial", "Archetype"),
    "Monk": ("Way", "Tradition"),
    "Paladin": ("Oath",),
    "Ranger": ("Archetype", "Conclave"),
    "Rogue": ("Archetype", "Roguish"),
    "Sorcerer": ("Origin", "Bloodline"),
    "Warlock": ("Patron", "Otherworldly"),
    "Wizard": ("School", "Tradition"),
    "Artificer": ("Specialist",),
}

KNOWN_RACES = (
    "Dwarf", "Elf", "Halfling", "Human", "Dragonborn", "Gnome", "Half-Elf",
    "Half-Orc", "Tiefling", "Aasimar", "Genasi", "Goliath", "Firbolg", "Kenku",
    "Lizardfolk", "Tabaxi", "Triton", "Bugbear", "Goblin", "Hobgoblin",
    "Kobold", "Orc", "Yuan-ti", "Tortle", "Gith", "Changeling", "Kalashtar",
    "Shifter", "Warforged", "Centaur", "Loxodon", "Minotaur", "Simic Hybrid",
    "Vedalken", "Leonin", "Satyr", "Fairy", "Harengon", "Owlin", "Reborn",
    "Hexblood", "Dhampir", "Autognome", "Plasmoid", "Hadozee", "Giff",
    "Thri-kreen",
)

# ============================================================================
# Header building blocks
# ============================================================================

# A capitalised name on a single line
NAME = r"[A-Z][A-Za-z' \-]{2,50}?"
LONG_NAME = r"[A-Z][A-Za-z' \-]{3,50}?"

# Heading or bold markup in front of a name
MD_HEADING = r"^\#{2,4}[ \t]+"

# ============================================================================
# False positives
# ============================================================================

COMMON_FALSE_POSITIVES = re.compile(
    r"^(?:Table|Chapter|Section|Appendix|Index|Contents|Credits|Introduction)\b",
    re.IGNORECASE,
)

SHORT_WORDS = frozenset({
    "to", "or", "is", "not", "the", "and", "a", "an", "in", "on", "at", "for",
    "of", "with", "by", "it", "as", "be", "we", "he", "so", "if", "up", "do",
    "go", "my", "me", "no", "oh", "ok", "hi", "you", "your", "this", "that",
})


def is_false_positive(name: str, extra: re.Pattern | None = None) -> bool:
    """True for names that are document furniture rather than entities."""
    stripped = name.strip()
    if len(stripped) <= 1:
        return True
    if stripped.lower() in SHORT_WORDS:
        return True
    if COMMON_FALSE_POSITIVES.match(stripped):
        return True
    return bool(extra and extra.search(stripped))


def denylist(*words: str) -> re.Pattern:
    """Exact-name denylist (case-insensitive)."""
    return re.compile(r"^(?:%s)$" % "|".join(words), re.IGNORECASE)


# ============================================================================
# Field helpers
# ============================================================================

def label_value(block: str, label: str) -> str | None:
    """Value of a ``Label: value`` line, plain or ``**Label:** value``.

    ``label`` is a regex fragment. The label must start a line and be
    followed by a colon, inside or outside the emphasis. The value runs to
    the end of that line with markdown emphasis and trailing backslash line
    breaks removed.
    """
    pattern = re.compile(
        rf"^[ \t]*[*_]{{0,3}}(?:{label})[ \t]*(?::[ \t]*[*_]{{0,3}}|[*_]{{1,3}}[ \t]*:)[ \t]*(?P<value>[^\n]*)",
        re.IGNORECASE | re.MULTILINE,
    )
    for match in pattern.finditer(block):
        value = clean_inline(match.group("value"))
        if value:
            return value
    return None


def clean_inline(value: str) -> str:
    """Strip markdown emphasis markers and trailing line-break backslashes."""
    value = value.strip().rstrip("\\").strip()
    value = re.sub(r"[*_]{2,3}", "", value)
    return value.strip(" *_")


def first_int(value: str | None) -> int | None:
    if not value:
        return None
    match = re.search(r"-?\d+", value.replace(",", ""))
    return int(match.group(0)) if match else None


def first_float(value: str | None) -> float | None:
    if not value:
        return None
    match = re.search(r"\d+(?:\.\d+)?", value.replace(",", ""))
    return float(match.group(0)) if match else None


def split_list(value: str | None) -> list[str]:
    """Split a comma/semicolon list, dropping empty entries and "none"."""
    if not value:
        return []
    parts = (part.strip(" .") for part in re.split(r"[,;]", value))
    return [part for part in parts if part and part.lower() != "none"]


def signed_values(value: str | None) -> dict[str, int]:
    """Parse ``Dex +5, Wis +3`` into ``{"dex": 5, "wis": 3}``-style mappings."""
    result: dict[str, int] = {}
    if not value:
        return result
    for name, number in re.findall(r"([A-Za-z][A-Za-z ]*?)\s*([+\-−]\s*\d+)", value):
        number = number.replace("−", "-").replace(" ", "")
        result[name.strip().lower()] = int(number)
    return result


def ordinal(value: str) -> int | None:
    """``3rd`` -> 3."""
    match = re.match(r"(\d+)(?:st|nd|rd|th)?", value.strip(), re.IGNORECASE)
    return int(match.group(1)) if match else None


MAX_DESCRIPTION = 2000


def truncate(text: str, limit: int = MAX_DESCRIPTION) -> str:
    return text.strip()[:limit].strip()


def tidy(text: str) -> str:
    """Collapse runs of blank lines and strip emphasis markers."""
    text = re.sub(r"[*_]{2,3}", "", text)
    text = re.sub(r"\n[ \t]*\n\s*", "\n\n", text)
    return text.strip()


def section_after(block: str, heading: str, stops: str) -> str | None:
    """Text after a ``heading`` line up to the first ``stops`` line.

    Both arguments are regex fragments matched at the start of a line,
    with or without markdown emphasis or heading markers.
    """
    pattern = re.compile(
        rf"^[ \t]*(?:\#+[ \t]*)?[*_]{{0,3}}(?:{heading})[*_]{{0,3}}[ \t]*:?[ \t]*$\n(?P<body>.*?)"
        rf"(?=^[ \t]*(?:\#+[ \t]*)?[*_]{{0,3}}(?:{stops})[*_]{{0,3}}[ \t]*:?[ \t]*$|\Z)",
        re.IGNORECASE | re.MULTILINE | re.DOTALL,
    )
    match = pattern.search(block)
    if not match:
        return None
    return match.group("body").strip()


def labelled_paragraph(block: str, label: str, stops: str) -> str | None:
    """Text after ``Label.`` up to the next ``stops`` label (Trigger., Effect., ...)."""
    pattern = re.compile(
        rf"(?:^|\n)[ \t]*[*_]{{0,3}}(?:{label})\.?[*_]{{0,3}}[.:][ \t]*(?P<body>.*?)"
        rf"(?=\n[ \t]*[*_]{{0,3}}(?:{stops})\b|\Z)",
        re.IGNORECASE | re.DOTALL,
    )
    match = pattern.search(block)
    if not match:
        return None
    body = match.group("body").strip()
    return body or None


# **Name.** description / ***Name.*** description / **Name**\ndescription
NAMED_ENTRY = re.compile(
    r"^[ \t]*\*{2,3}(?P<name>[^\n*]+?)\.?\*{2,3}\.?[ \t]*\n?[ \t]*"
    r"(?P<description>[^\n]*(?:\n(?![ \t]*\*{2})(?![ \t]*\#)[^\n]+)*)",
    re.MULTILINE,
)


def named_entries(section: str | None) -> list[tuple[str, str]]:
    """``(name, description)`` pairs from a block of bold-named paragraphs."""
    if not section:
        return []
    entries = []
    for match in NAMED_ENTRY.finditer(section):
        name = clean_inline(match.group("name")).rstrip(".")
        description = " ".join(match.group("description").split())
        if name:
            entries.append((name, description))
    return entries


# **3rd Level: Feature Name** / 3rd Level: Feature Name
LEVEL_FEATURE = re.compile(
    r"^[ \t]*\*{0,2}(?P<level>\d+)(?:st|nd|rd|th)?[ \t]+Level[ \t]*[:.\-][ \t]*(?P<name>[^\n*]+?)\*{0,2}[ \t]*\n"
    r"(?P<description>[^\n]*(?:\n(?![ \t]*\*{0,2}\d+(?:st|nd|rd|th)?[ \t]+Level\b)(?![ \t]*\#)[^\n]+)*)",
    re.IGNORECASE | re.MULTILINE,
)


# ============================================================================
# Name canonicalisation
# ============================================================================

def canonical_name(name: str, choices: tuple[str, ...], threshold: int = 85) -> str | None:
    """Closest known name for ``name``, or None below ``threshold`` similarity."""
    lookup = {choice.lower(): choice for choice in choices}
    text_lower = name.strip().lower()
    if text_lower in lookup:
        return lookup[text_lower]

    result = process.extractOne(text_lower, lookup.keys(), scorer=fuzz.ratio)
    if result and result[1] >= threshold:
        return lookup[result[0]]
    return None


def infer_difficulty(text: str) -> str:
    """easy / medium / hard from the words a block uses."""
    lower = text.lower()
    if re.search(r"\b(easy|simple|basic)\b", lower):
        return "easy"
    if re.search(r"\b(hard|difficult|complex|deadly)\b", lower):
        return "hard"
    return "medium"


# Name. description (plain-text PDF output has no bold markers)
PLAIN_ENTRY = re.compile(r"^[ \t]*([A-Z][A-Za-z' ()/0-9\-]{2,50}?)\.[ \t]+(\S[^\n]*)", re.MULTILINE)


def plain_entries(section: str | None) -> list[tuple[str, str]]:
    if not section:
        return []
    return [(name.strip(), description.strip()) for name, description in PLAIN_ENTRY.findall(section)]


# ============================================================================
# Section headings
# ============================================================================

def heading_offsets(text: str, title: str) -> tuple[int, ...]:
    """Offsets of lines consisting only of ``title``, optionally as a markdown heading."""
    pattern = re.compile(
        rf"(?:^|\n)[ \t]*(?:\#+[ \t]+)?(?:{title})[ \t]*(?=\n|$)",
        re.IGNORECASE,
    )
    return tuple(match.start() for match in pattern.finditer(text))


def near_heading(
    text: str,
    position: int,
    title: str,
    distance: int,
    offsets: tuple[int, ...] | None = None,
) -> bool:
    """True when a ``title`` heading lies within ``distance`` characters of ``position``.

    Pass precomputed ``offsets`` to avoid rescanning the text.
    """
    if offsets is None:
        offsets = heading_offsets(text, title)
    return any(abs(position - offset) <= distance for offset in offsets)
