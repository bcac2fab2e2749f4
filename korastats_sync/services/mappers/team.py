"""
Team mapper.

A team document carries one ``tournament_stats`` entry per
(tournament, season). The entry built here covers the bundle's tournament
only; earlier seasons are kept by the merge step, which also recomputes
``stats_summary`` over the merged array via ``summarize_team_stats``.
"""
import re
from collections.abc import Iterable
from typing import Any

from korastats_sync.schemas.bundles import TeamBundle
from korastats_sync.schemas.korastats import Stadium, TeamInfo, TeamInfoMatch, TeamStat
from korastats_sync.services.korastats_client import image_url
from korastats_sync.services.mappers.helpers import (
    clean_team_name,
    season_year,
    team_code,
    to_int,
)

UNKNOWN_VENUE = {"id": 0, "name": "Unknown Stadium", "capacity": None, "surface": None, "city": None}
UNKNOWN_COACH = {"id": 0, "name": "Unknown Coach", "current": True}
FORM_LENGTH = 5

STAT_MATCHES_PLAYED = "Matches Played as Lineup"
STAT_WINS = "Win"
STAT_DRAWS = "Draw"
STAT_LOSSES = "Lost"
STAT_GOALS_FOR = "Goals Scored"
STAT_GOALS_AGAINST = "Goals Conceded"
STAT_CLEAN_SHEETS = "Clean Sheet"

_NON_WORD_RE = re.compile(r"[^a-z0-9]+")


def stat_key(name: str) -> str:
    """Snake-case key for a provider stat name ("Clean Sheet" -> "clean_sheet")."""
    return _NON_WORD_RE.sub("_", name.lower()).strip("_")


def stats_map(stats: Iterable[TeamStat]) -> dict[str, float]:
    return {stat.stat: stat.value for stat in stats}


# ==================== Match history ====================

def _completed(matches: Iterable[TeamInfoMatch]) -> list[TeamInfoMatch]:
    return [m for m in matches if m.home_score is not None and m.away_score is not None]


def _result(match: TeamInfoMatch, team_id: int) -> str | None:
    if match.home_team_id == team_id:
        scored, conceded = match.home_score, match.away_score
    elif match.away_team_id == team_id:
        scored, conceded = match.away_score, match.home_score
    else:
        return None
    if scored > conceded:
        return "W"
    if scored < conceded:
        return "L"
    return "D"


def recent_form(team_info: TeamInfo, team_id: int) -> str:
    """Results of the most recent completed matches, oldest first ("WDLWW")."""
    played = sorted(_completed(team_info.matches), key=lambda m: m.date_time or "")
    results = [r for r in (_result(m, team_id) for m in played) if r]
    return "".join(results[-FORM_LENGTH:])


def home_away_split(team_info: TeamInfo, team_id: int) -> dict[str, dict[str, int]]:
    """Per-venue counts from the TeamInfo match history."""
    split = {
        side: {"played": 0, "wins": 0, "draws": 0, "loses": 0, "for": 0, "against": 0, "clean": 0}
        for side in ("home", "away")
    }
    for match in _completed(team_info.matches):
        if match.home_team_id == team_id:
            side, scored, conceded = "home", match.home_score, match.away_score
        elif match.away_team_id == team_id:
            side, scored, conceded = "away", match.away_score, match.home_score
        else:
            continue
        counts = split[side]
        counts["played"] += 1
        counts["for"] += scored
        counts["against"] += conceded
        if scored > conceded:
            counts["wins"] += 1
        elif scored < conceded:
            counts["loses"] += 1
        else:
            counts["draws"] += 1
        if conceded == 0:
            counts["clean"] += 1
    return split


def _venue_split(total: int, home_hint: int) -> dict[str, int]:
    home = min(max(home_hint, 0), total)
    return {"home": home, "away": total - home, "total": total}


# ==================== Tournament stats entry ====================

def map_tournament_stats(bundle: TeamBundle) -> dict[str, Any]:
    """
    One ``tournament_stats`` element.

    Totals come from TournamentTeamStats. The home share of each total is
    taken from the TeamInfo match history (capped at the total); the away
    share is the remainder.
    """
    values = stats_map(bundle.team_stats.stats)
    split = home_away_split(bundle.team_info, bundle.team_id)

    def fixture(stat: str, key: str) -> dict[str, int]:
        return _venue_split(to_int(values.get(stat)), split["home"][key])

    return {
        "league": {
            "id": bundle.tournament_id,
            "name": bundle.tournament_name,
            "season": season_year(bundle.season) or bundle.season,
        },
        "team": {
            "id": bundle.team_id,
            "name": clean_team_name(bundle.team_stats.name) or bundle.team_stats.name,
            "logo": image_url("club", bundle.team_id),
        },
        "form": recent_form(bundle.team_info, bundle.team_id),
        "korastats_stats": {stat_key(name): value for name, value in values.items()},
        "fixtures": {
            "played": fixture(STAT_MATCHES_PLAYED, "played"),
            "wins": fixture(STAT_WINS, "wins"),
            "draws": fixture(STAT_DRAWS, "draws"),
            "loses": fixture(STAT_LOSSES, "loses"),
        },
        "goals": {
            "for_": {"total": fixture(STAT_GOALS_FOR, "for")},
            "against": {"total": fixture(STAT_GOALS_AGAINST, "against")},
        },
        "clean_sheet": fixture(STAT_CLEAN_SHEETS, "clean"),
    }


def summarize_team_stats(entries: Iterable[dict[str, Any]]) -> dict[str, Any]:
    """Fold every ``tournament_stats`` entry into ``stats_summary``."""
    totals = {
        key: {"home": 0, "away": 0}
        for key in ("gamesPlayed", "wins", "draws", "loses", "goalsScored", "goalsConceded")
    }
    clean_sheets = 0

    def add(target: str, counts: dict[str, Any] | None) -> None:
        counts = counts or {}
        totals[target]["home"] += to_int(counts.get("home"))
        totals[target]["away"] += to_int(counts.get("away"))

    for entry in entries:
        fixtures = entry.get("fixtures") or {}
        goals = entry.get("goals") or {}
        add("gamesPlayed", fixtures.get("played"))
        add("wins", fixtures.get("wins"))
        add("draws", fixtures.get("draws"))
        add("loses", fixtures.get("loses"))
        add("goalsScored", (goals.get("for_") or {}).get("total"))
        add("goalsConceded", (goals.get("against") or {}).get("total"))
        clean_sheets += to_int((entry.get("clean_sheet") or {}).get("total"))

    scored = totals["goalsScored"]["home"] + totals["goalsScored"]["away"]
    conceded = totals["goalsConceded"]["home"] + totals["goalsConceded"]["away"]
    return {
        **totals,
        "goalDifference": scored - conceded,
        "cleanSheetGames": clean_sheets,
    }


# ==================== Team document ====================

def map_venue(stadium: Stadium | None) -> dict[str, Any]:
    if stadium is None or not stadium.id:
        return dict(UNKNOWN_VENUE)
    return {
        "id": stadium.id,
        "name": stadium.name or UNKNOWN_VENUE["name"],
        "capacity": stadium.capacity,
        "surface": stadium.surface,
        "city": stadium.city,
    }


def map_coaches(team_info: TeamInfo, team_id: int) -> list[dict[str, Any]]:
    """Distinct coaches seen on this team's side in the match history."""
    coaches: dict[int, dict[str, Any]] = {}
    for match in team_info.matches:
        if match.home_team_id == team_id:
            coach = match.home_coach
        elif match.away_team_id == team_id:
            coach = match.away_coach
        else:
            continue
        if coach and coach.id and coach.id not in coaches:
            coaches[coach.id] = {
                "id": coach.id,
                "name": coach.name or f"Coach {coach.id}",
                "photo": image_url("coach", coach.id),
                "current": not coach.retired,
            }
    return list(coaches.values()) or [dict(UNKNOWN_COACH)]


def map_team(bundle: TeamBundle) -> dict[str, Any]:
    club, info = bundle.club, bundle.team_info
    raw_name = club.name or bundle.team_stats.name or info.name
    country = club.country or info.country
    entry = map_tournament_stats(bundle)

    return {
        "korastats_id": bundle.team_id,
        "name": clean_team_name(raw_name) or raw_name,
        "code": team_code(raw_name) or None,
        "logo": image_url("club", bundle.team_id),
        "country": country.name if country else None,
        "founded": club.founded or info.founded,
        "national": club.is_national_team or info.is_national_team,
        "venue": map_venue(club.stadium or info.stadium),
        "coaches": map_coaches(info, bundle.team_id),
        "tournament_stats": [entry],
        "stats_summary": summarize_team_stats([entry]),
        "tournaments": [{"id": bundle.tournament_id, "season": entry["league"]["season"]}],
    }
