"""
Pure mappers from validated Korastats bundles to canonical documents.

- tournament: Tournament document (rounds, status, top players)
- team: Team document, tournament_stats entry and stats_summary fold
- match: Match document (events, lineups, statistics, momentum)
- entity: Player / Coach / Referee documents
- standings: Standings document with one season snapshot
"""
from korastats_sync.services.mappers.helpers import (
    clean_person_name,
    clean_team_name,
    event_minute,
    find_stat_type,
    formation_text,
    team_code,
)
from korastats_sync.services.mappers.tournament import map_tournament
from korastats_sync.services.mappers.team import map_team, summarize_team_stats
from korastats_sync.services.mappers.match import build_momentum, map_match, map_score_breakdown
from korastats_sync.services.mappers.entity import (
    PERSON_MAPPERS,
    map_coach,
    map_player,
    map_referee,
)
from korastats_sync.services.mappers.standings import map_standings

__all__ = [
    # Helpers
    "clean_person_name",
    "clean_team_name",
    "event_minute",
    "find_stat_type",
    "formation_text",
    "team_code",
    # Mappers
    "map_tournament",
    "map_team",
    "summarize_team_stats",
    "map_match",
    "map_score_breakdown",
    "build_momentum",
    "PERSON_MAPPERS",
    "map_player",
    "map_coach",
    "map_referee",
    "map_standings",
]
