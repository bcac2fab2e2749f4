"""
Complete, validated provider bundles.

A bundle is built by a collector only when every required sub-resource was
fetched and validated; mappers consume bundles and never see raw JSON.
"""
from dataclasses import dataclass

from korastats_sync.schemas.korastats import (
    EntityClub,
    EntityPerson,
    MatchFormation,
    MatchListItem,
    MatchPlayersStats,
    MatchPossessionTimeline,
    MatchSquad,
    MatchSummary,
    MatchTimeline,
    MatchVideo,
    StandingsData,
    StatType,
    TeamInfo,
    TopStatPlayer,
    TournamentCoach,
    TournamentListItem,
    TournamentPlayerStats,
    TournamentReferee,
    TournamentStructure,
    TournamentTeamStats,
)


@dataclass(frozen=True)
class TournamentBundle:
    tournament_id: int
    structure: TournamentStructure
    matches: tuple[MatchListItem, ...]
    stat_types: tuple[StatType, ...]
    listing: TournamentListItem | None = None
    top_scorers: tuple[TopStatPlayer, ...] = ()
    top_assisters: tuple[TopStatPlayer, ...] = ()


@dataclass(frozen=True)
class TeamBundle:
    team_id: int
    tournament_id: int
    team_stats: TournamentTeamStats
    team_info: TeamInfo
    club: EntityClub
    tournament_name: str | None = None
    season: str | None = None


@dataclass(frozen=True)
class MatchBundle:
    match_id: int
    tournament_id: int
    summary: MatchSummary
    squad: MatchSquad
    timeline: MatchTimeline
    formation_home: MatchFormation
    formation_away: MatchFormation
    players_stats: MatchPlayersStats
    possession: MatchPossessionTimeline
    video: MatchVideo


@dataclass(frozen=True)
class PersonBundle:
    """
    Bundle for players, coaches and referees.

    ``entity`` is the Entity* profile; ``tournament_stats`` is the person's
    entry for ``tournament`` (TournamentPlayerStats, or the coach or referee
    listing), labelled with ``season``.
    """
    entity_id: int
    kind: str
    entity: EntityPerson
    tournament: TournamentListItem | None = None
    season: str | None = None
    tournament_stats: TournamentPlayerStats | TournamentCoach | TournamentReferee | None = None


@dataclass(frozen=True)
class StandingsBundle:
    tournament_id: int
    structure: TournamentStructure
    standings: StandingsData
