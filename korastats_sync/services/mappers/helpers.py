"""
Shared pure helpers for the Korastats mappers.

Nothing here performs I/O; every function is total over its input and
returns a documented default for missing or malformed values.
"""
import re
from collections.abc import Iterable, Sequence
from typing import Any

from korastats_sync.schemas.korastats import StatType

DEFAULT_FORMATION = "4-4-2"
UNKNOWN_NAME = "Unknown"

TEAM_NAME_SUFFIX_RE = re.compile(
    r"\s+(FC|SC|U19|U21|U23|Club|United|City|Town|Athletic|Sporting|Football|Soccer|KSA)\s*$",
    re.IGNORECASE,
)
GENERATIONAL_SUFFIX_RE = re.compile(r"\s+(Jr\.?|Sr\.?|III|II|I)\s*$")
CLUB_SUFFIX_RE = re.compile(
    r"\s+(FC|SC|Club|United|City|Town|Athletic|Sporting)\s*$", re.IGNORECASE
)
NAME_PARTICLES = frozenset(
    {"bin", "ibn", "al", "el", "da", "de", "del", "dos", "van", "von", "le", "la", "du", "des"}
)
YEAR_RE = re.compile(r"\d{4}")
LEADING_INT_RE = re.compile(r"\d+")


# ==================== Numbers ====================

def to_int(value: Any, default: int = 0) -> int:
    """Coerce a provider number (int, float or numeric string) to int."""
    if value is None or isinstance(value, bool):
        return default
    if isinstance(value, (int, float)):
        return int(value)
    if isinstance(value, str):
        match = LEADING_INT_RE.search(value)
        return int(match.group()) if match else default
    return default


def to_float(value: Any, default: float = 0.0) -> float:
    if value is None or isinstance(value, bool):
        return default
    try:
        return float(value)
    except (TypeError, ValueError):
        return default


def stat_value(stats: dict[str, Any] | None, *path: str, default: Any = 0) -> Any:
    """Walk a nested provider stats dict, returning ``default`` on any gap."""
    node: Any = stats or {}
    for key in path:
        if not isinstance(node, dict):
            return default
        node = node.get(key)
    return default if node is None else node


def season_year(season: str | None) -> int | None:
    """First 4-digit group of a season label ("2024/2025" -> 2024)."""
    if not season:
        return None
    match = YEAR_RE.search(season)
    return int(match.group()) if match else None


# ==================== Formation ====================

def formation_text(formation: str | None) -> str:
    """
    Normalize a provider formation string.

    Korastats encodes the goalkeeper as a leading ``1-`` followed by the
    outfield lines as digits ("1-433"). Zero and non-digit characters are
    dropped, so "1-0523" becomes "5-2-3" and "1-" becomes "".
    """
    if not formation:
        return ""
    _, sep, rest = formation.partition("1-")
    text = rest if sep else formation
    return "-".join(ch for ch in text if ch in "123456789")


# ==================== Stat types ====================

def find_stat_type(stat_types: Iterable[StatType], keywords: Sequence[str]) -> StatType | None:
    """
    Find the stat type matching any keyword.

    Exact case-insensitive substring match wins; otherwise the first three
    characters of each keyword are tried. Returns None when nothing matches.
    """
    types = list(stat_types)
    lowered = [(stat_type, stat_type.name.lower()) for stat_type in types]

    for keyword in keywords:
        needle = keyword.lower()
        for stat_type, name in lowered:
            if needle in name:
                return stat_type

    for keyword in keywords:
        prefix = keyword.lower()[:3]
        if not prefix:
            continue
        for stat_type, name in lowered:
            if prefix in name:
                return stat_type

    return None


# ==================== Names ====================

def clean_team_name(name: str | None) -> str:
    if not name:
        return ""
    return TEAM_NAME_SUFFIX_RE.sub("", name).strip()


def team_code(name: str | None) -> str:
    """Three-letter code: two letters of the first word and one of the second."""
    cleaned = clean_team_name(name)
    words = cleaned.split()
    if len(words) >= 2:
        return (words[0][:2] + words[1][:1]).upper()
    return cleaned[:3].upper()


def simplify_name(name: str) -> str:
    words = name.split()
    if len(words) <= 2:
        return name

    if len(words) > 4:
        last = words[-1]
        if len(last) > 3 and last[0].isupper():
            return f"{words[0]} {last}"
        return " ".join(words[:2])

    kept = [w for w in words if len(w) > 2 and w.lower() not in NAME_PARTICLES]
    if not kept:
        return " ".join(words[:2])
    return " ".join(kept)


def clean_person_name(name: str | None) -> str:
    """
    Display name for a player, coach or referee.

    Strips generational and club suffixes, reorders "Last, First" and
    shortens long multi-part names. Empty input becomes "Unknown".
    """
    if not name or not name.strip():
        return UNKNOWN_NAME

    text = " ".join(name.split())
    text = GENERATIONAL_SUFFIX_RE.sub("", text)
    text = CLUB_SUFFIX_RE.sub("", text).strip()

    parts = [part.strip() for part in text.split(",")]
    if len(parts) == 2 and all(parts):
        text = f"{parts[1]} {parts[0]}"

    text = " ".join(text.split())
    if not text:
        return UNKNOWN_NAME
    return simplify_name(text)


def split_name(name: str) -> tuple[str, str]:
    """Return (firstname, lastname) from a display name."""
    first, _, rest = name.partition(" ")
    return first, rest


def parse_age(age: str | int | None) -> int | None:
    """Korastats sends ages as "39 Y"; plain ints pass through."""
    if age is None:
        return None
    if isinstance(age, int):
        return age
    match = LEADING_INT_RE.search(age)
    return int(match.group()) if match else None


# ==================== Timeline ====================

def clock_minute(time_str: str | None) -> int | None:
    """Minute part of a "MM:SS" timeline clock, or None when unparseable."""
    if not time_str:
        return None
    head = time_str.split(":", 1)[0].strip()
    return int(head) if head.isdigit() else None


def half_offset(half: int, first_half_last_minute: int) -> int:
    if half <= 1:
        return 0
    if half == 2:
        return first_half_last_minute if first_half_last_minute > 45 else 45
    if half == 3:
        return 90
    return 105


def event_minute(time_str: str | None, half: int, first_half_last_minute: int = 0) -> int:
    """Match minute of a timeline event; 0 when the clock is missing."""
    minute = clock_minute(time_str)
    if minute is None:
        return 0
    return minute + half_offset(half, first_half_last_minute)
