"""
Merge-upsert reconciliation.

``reconcile`` is pure: given the stored document (or None) and a freshly
mapped one it returns the document to write. Season-keyed arrays are merged
element-wise so that history for other seasons and leagues survives a
re-sync, and derived aggregates are recomputed over the merged arrays.
"""
import copy
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from korastats_sync.services.mappers.entity import (
    count_referee_matches,
    summarize_coach_stats,
    summarize_player_stats,
)
from korastats_sync.services.mappers.team import summarize_team_stats
from korastats_sync.utils.timestamps import isoformat

SeasonKey = tuple[Any, Any]

SYNC_FIELDS = ("korastats_id", "sync_version", "last_synced", "created_at")


@dataclass(frozen=True)
class MergePolicy:
    """Which fields of a collection are season arrays and which are derived."""

    season_arrays: tuple[str, ...] = ()
    derived: dict[str, tuple[str, Callable[[list[dict[str, Any]]], Any]]] = field(
        default_factory=dict
    )


POLICIES: dict[str, MergePolicy] = {
    "tournaments": MergePolicy(season_arrays=("seasons",)),
    "teams": MergePolicy(
        season_arrays=("tournament_stats", "tournaments"),
        derived={"stats_summary": ("tournament_stats", summarize_team_stats)},
    ),
    "matches": MergePolicy(),
    "players": MergePolicy(
        season_arrays=("stats",),
        derived={"career_summary": ("stats", summarize_player_stats)},
    ),
    "coaches": MergePolicy(
        season_arrays=("stats", "career_history"),
        derived={"performance": ("stats", summarize_coach_stats)},
    ),
    "referees": MergePolicy(
        season_arrays=("career_stats",),
        derived={"matches": ("career_stats", count_referee_matches)},
    ),
    "standings": MergePolicy(season_arrays=("seasons",)),
}


def _first_present(*values: Any) -> Any:
    for value in values:
        if value is not None:
            return value
    return None


def season_key(element: Any) -> SeasonKey | None:
    """
    Composite ``(league_or_tournament_id, season)`` key of an array element.

    Accepts ``{league: {id, season}}``, ``{id, season}``,
    ``{tournament_id, season}`` and ``{year}`` shapes; returns None when no
    key can be derived.
    """
    if not isinstance(element, dict):
        return None
    league = element.get("league") if isinstance(element.get("league"), dict) else {}
    ident = _first_present(league.get("id"), element.get("id"), element.get("tournament_id"))
    season = _first_present(league.get("season"), element.get("season"), element.get("year"))
    if ident is None and season is None:
        return None
    return ident, season


def merge_season_array(
    existing: Sequence[Any] | None, incoming: Sequence[Any] | None
) -> list[Any]:
    """
    Merge two season-keyed arrays.

    Matching keys are replaced in place, new keys are appended in incoming
    order, and existing elements without a counterpart are kept unchanged.
    Duplicate incoming keys collapse to their last occurrence; keyless
    elements are appended only when not already present.
    """
    merged = [copy.deepcopy(e) for e in (existing or [])]
    positions: dict[SeasonKey, int] = {}
    for index, element in enumerate(merged):
        key = season_key(element)
        if key is not None and key not in positions:
            positions[key] = index

    latest: dict[SeasonKey, Any] = {}
    order: list[SeasonKey] = []
    keyless: list[Any] = []
    for element in incoming or []:
        key = season_key(element)
        if key is None:
            keyless.append(element)
            continue
        if key not in latest:
            order.append(key)
        latest[key] = element

    for key in order:
        element = copy.deepcopy(latest[key])
        if key in positions:
            merged[positions[key]] = element
        else:
            positions[key] = len(merged)
            merged.append(element)

    for element in keyless:
        if element not in merged:
            merged.append(copy.deepcopy(element))

    return merged


def reconcile(
    existing: dict[str, Any] | None,
    incoming: dict[str, Any],
    policy: MergePolicy,
    now: datetime,
) -> dict[str, Any]:
    """
    Document to persist after merging ``incoming`` into ``existing``.

    Scalar fields take the incoming value unless it is None. Season arrays
    follow ``merge_season_array``. Derived fields are recomputed from the
    merged arrays. ``sync_version`` is the stored version plus one (1 for a
    new document), ``last_synced`` is ``now`` and ``created_at`` is kept.
    """
    base = copy.deepcopy(existing) if existing else {}
    merged = dict(base)

    for key, value in incoming.items():
        if key in SYNC_FIELDS or key in policy.derived:
            continue
        if key in policy.season_arrays:
            merged[key] = merge_season_array(base.get(key), value)
        elif value is not None:
            merged[key] = copy.deepcopy(value)

    for key, (source, fold) in policy.derived.items():
        merged[key] = fold(merged.get(source) or [])

    timestamp = isoformat(now)
    merged["korastats_id"] = _first_present(incoming.get("korastats_id"), base.get("korastats_id"))
    merged["sync_version"] = int(base.get("sync_version") or 0) + 1
    merged["last_synced"] = timestamp
    merged["created_at"] = base.get("created_at") or timestamp
    return merged
