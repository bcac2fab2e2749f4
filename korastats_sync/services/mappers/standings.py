"""Standings mapper."""
from typing import Any

from korastats_sync.schemas.bundles import StandingsBundle
from korastats_sync.schemas.korastats import Standing
from korastats_sync.services.korastats_client import image_url
from korastats_sync.services.mappers.helpers import clean_team_name, season_year

DEFAULT_GROUP = "Main"


def _venue_record(standing: Standing, venue: str) -> dict[str, Any]:
    return {
        "played": getattr(standing.played, venue),
        "win": getattr(standing.won, venue),
        "draw": getattr(standing.draw, venue),
        "lose": getattr(standing.lost, venue),
        "goals": {
            "for_": getattr(standing.scored, venue),
            "against": getattr(standing.conceded, venue),
        },
    }


def map_standing(standing: Standing, group: str) -> dict[str, Any]:
    return {
        "rank": standing.rank,
        "team": {
            "id": standing.team_id,
            "name": clean_team_name(standing.team) or standing.team,
            "logo": image_url("club", standing.team_id),
        },
        "points": standing.points,
        "goalsDiff": standing.scored.total - standing.conceded.total,
        "group": group,
        "all": _venue_record(standing, "total"),
        "home": _venue_record(standing, "home"),
        "away": _venue_record(standing, "away"),
    }


def map_standings(bundle: StandingsBundle) -> dict[str, Any]:
    """
    Standings document with a single season snapshot.

    Only the first group of the first stage is read; the merge step keeps
    snapshots of other seasons already stored under the same tournament.
    """
    structure = bundle.structure
    stage = bundle.standings.stages[0] if bundle.standings.stages else None
    group = stage.groups[0] if stage and stage.groups else None
    group_name = (group.group if group else None) or DEFAULT_GROUP
    rows = sorted(group.standings, key=lambda s: s.rank) if group else []
    country = structure.organizer.country if structure.organizer else None

    return {
        "korastats_id": bundle.tournament_id,
        "name": structure.tournament,
        "country": country.name if country else None,
        "seasons": [
            {
                "league": {
                    "id": bundle.tournament_id,
                    "name": structure.tournament,
                    "season": season_year(structure.season) or structure.season,
                },
                "standings": [map_standing(row, group_name) for row in rows],
            }
        ],
    }
