"""
Typed Korastats payloads.

One model per endpoint response body (the ``data`` member of the envelope,
or ``root.object`` for the Entity* endpoints). Collectors validate raw JSON
into these models once; mappers only ever see validated instances.

Field names are snake_case; provider camelCase/Hungarian names are accepted
through aliases.
"""
from typing import Any

from pydantic import AliasChoices, BaseModel, Field


class KorastatsModel(BaseModel):
    model_config = {"populate_by_name": True, "extra": "ignore"}


# ==================== Shared references ====================

class IdName(KorastatsModel):
    id: int = 0
    name: str | None = Field(None, validation_alias=AliasChoices("name", "team"))


class PersonRef(KorastatsModel):
    id: int = 0
    name: str | None = None
    dob: str | None = None
    nationality: IdName | None = None


class Stadium(KorastatsModel):
    id: int = 0
    name: str | None = None
    capacity: int | None = None
    surface: str | None = None
    city: str | None = None


class Score(KorastatsModel):
    home: int = 0
    away: int = 0


class MatchStatusRef(KorastatsModel):
    id: int | None = None
    status: str | None = None


# ==================== Tournaments ====================

class AgeRange(KorastatsModel):
    min: int | None = None
    max: int | None = None


class AgeGroup(KorastatsModel):
    id: int = 0
    name: str | None = None
    age: AgeRange | None = None


class Organizer(KorastatsModel):
    id: int = 0
    name: str | None = None
    abbrev: str | None = None
    country: IdName | None = None


class TournamentListItem(KorastatsModel):
    id: int
    tournament: str
    season: str | None = None
    start_date: str | None = Field(None, alias="startDate")
    end_date: str | None = Field(None, alias="endDate")
    organizer: Organizer | None = None
    age_group: AgeGroup | None = Field(None, alias="ageGroup")


class StructureGroup(KorastatsModel):
    id: int = 0
    group: str | None = None
    teams: list[IdName] = []


class StructureStage(KorastatsModel):
    id: int
    stage: str | None = None
    order: int | None = None
    rounds: int | None = None
    type: str | None = None
    groups: list[StructureGroup] = []


class TournamentStructure(TournamentListItem):
    gender: str | None = None
    stages: list[StructureStage] = []


class MatchListItem(KorastatsModel):
    match_id: int = Field(validation_alias=AliasChoices("matchId", "match_id", "id"))
    status: MatchStatusRef | None = None
    tournament: str | None = None
    season: str | None = None
    round: int | str | None = None
    home: IdName
    away: IdName
    date_time: str | None = Field(None, alias="dateTime")
    stadium: IdName | None = None
    referee: PersonRef | None = None
    score: Score | None = None


class StatType(KorastatsModel):
    id: int = Field(validation_alias=AliasChoices("intID", "id"))
    name: str = Field(validation_alias=AliasChoices("strStatName", "stat", "name"))


class TopStatPlayer(KorastatsModel):
    id: int = Field(0, validation_alias=AliasChoices("intPlayerID", "id"))
    name: str | None = Field(
        None,
        validation_alias=AliasChoices("strNickNameEn", "nickname", "strPlayerNameEn", "name"),
    )
    team: IdName | None = None
    stat_value: float | None = None
    rank: int | None = None


# ==================== Teams ====================

class TeamStat(KorastatsModel):
    id: int = 0
    stat: str
    value: float = 0


class TournamentTeamStats(KorastatsModel):
    id: int
    name: str | None = None
    stats: list[TeamStat] = []


class TeamListItem(KorastatsModel):
    id: int
    name: str | None = Field(None, validation_alias=AliasChoices("name", "team"))
    country: IdName | None = None
    stadium: Stadium | None = None


class TournamentTeamList(KorastatsModel):
    id: int
    tournament: str | None = None
    season: str | None = None
    teams: list[TeamListItem] = []


class TeamInfoCoach(KorastatsModel):
    id: int = Field(0, alias="intID")
    name: str | None = Field(None, alias="strCoachNameEn")
    retired: bool = Field(False, alias="boolRetired")


class TeamInfoMatch(KorastatsModel):
    """One entry of the match history embedded in TeamInfo."""
    id: int = Field(0, alias="intID")
    home_team_id: int = Field(0, alias="intHomeTeamID")
    away_team_id: int = Field(0, alias="intAwayTeamID")
    home_score: int | None = Field(None, alias="intHomeTeamScore")
    away_score: int | None = Field(None, alias="intAwayTeamScore")
    date_time: str | None = Field(None, alias="dtDateTime")
    home_coach: TeamInfoCoach | None = Field(None, alias="objHomeCoach")
    away_coach: TeamInfoCoach | None = Field(None, alias="objAwayCoach")


class TeamInfo(KorastatsModel):
    id: int
    name: str | None = None
    short_name: str | None = None
    country: IdName | None = None
    city: str | None = None
    founded: int | None = None
    is_national_team: bool = False
    stadium: Stadium | None = None
    matches: list[TeamInfoMatch] = []


class EntityClub(TeamInfo):
    pass


class TeamPlayer(KorastatsModel):
    id: int
    name: str | None = None


class TeamWithPlayers(KorastatsModel):
    id: int
    team: str | None = None
    players: list[TeamPlayer] = []


class TournamentTeamPlayerList(KorastatsModel):
    id: int
    teams: list[TeamWithPlayers] = []


# ==================== Matches ====================

class CoachRef(KorastatsModel):
    id: int = 0
    name: str | None = None


class GoalIntervals(KorastatsModel):
    t_0_15: int = Field(0, alias="T_0_15")
    t_15_30: int = Field(0, alias="T_15_30")
    t_30_45: int = Field(0, alias="T_30_45")
    t_45_60: int = Field(0, alias="T_45_60")
    t_60_75: int = Field(0, alias="T_60_75")
    t_75_90: int = Field(0, alias="T_75_90")
    t_90_105: int = Field(0, alias="T_90_105")
    t_105_120: int = Field(0, alias="T_105_120")
    penalty_scored: int = Field(0, alias="PenaltyScored")
    total: int = Field(0, alias="Total")
    xg: float = Field(0, alias="XG")


class TeamMatchStats(KorastatsModel):
    goals_scored: GoalIntervals | None = Field(None, alias="GoalsScored")
    attempts: dict[str, Any] = Field({}, alias="Attempts")
    defensive: dict[str, Any] = Field({}, alias="Defensive")
    fouls: dict[str, Any] = Field({}, alias="Fouls")
    admin: dict[str, Any] = Field({}, alias="Admin")
    cards: dict[str, Any] = Field({}, alias="Cards")
    passes: dict[str, Any] = Field({}, alias="Pass")


class TeamSummary(KorastatsModel):
    team: IdName
    coach: CoachRef | None = None
    stats: TeamMatchStats | None = None


class MatchSummary(KorastatsModel):
    match_id: int = Field(validation_alias=AliasChoices("matchId", "match_id", "id"))
    tournament: str | None = None
    season: str | None = None
    round: int | str | None = None
    date_time: str | None = Field(None, alias="dateTime")
    stadium: IdName | None = None
    referee: PersonRef | None = None
    score: Score | None = None
    home: TeamSummary
    away: TeamSummary


class SquadPlayer(KorastatsModel):
    id: int = 0
    name: str | None = None
    nick_name: str | None = None
    shirt_number: int | None = None
    position: IdName | None = None
    lineup: bool = False
    bench: bool = False


class SquadSide(KorastatsModel):
    team: IdName | None = None
    squad: list[SquadPlayer] = []


class MatchSquad(KorastatsModel):
    match_id: int = Field(validation_alias=AliasChoices("matchId", "match_id", "id"))
    tournament_id: int | None = None
    tournament: str | None = None
    season_id: int | None = None
    season: str | None = None
    round: int | str | None = None
    date_time: str | None = Field(None, alias="dateTime")
    stadium: IdName | None = None
    referee: PersonRef | None = None
    status: MatchStatusRef | None = None
    home: SquadSide
    away: SquadSide


class EventPlayer(KorastatsModel):
    id: int = 0
    name: str | None = None
    nickname: str | None = None


class TimelineEvent(KorastatsModel):
    half: int = 1
    time: str | None = None
    event: str
    team: IdName | None = None
    player: EventPlayer | None = None
    player_in: EventPlayer | None = Field(None, alias="in")
    player_out: EventPlayer | None = Field(None, alias="out")


class MatchTimeline(KorastatsModel):
    match_id: int = Field(validation_alias=AliasChoices("matchId", "match_id", "id"))
    home: IdName
    away: IdName
    score: Score | None = None
    timeline: list[TimelineEvent] = []


class MatchFormation(KorastatsModel):
    match_id: int | None = Field(None, alias="matchId")
    team_id: int | None = Field(None, alias="teamId")
    team_name: str | None = Field(None, alias="teamName")
    lineup_formation_name: str | None = Field(None, alias="lineupFormationName")
    end_of_match_formation_name: str | None = Field(None, alias="endOfMatchFormationName")


class PlayerMatchStats(KorastatsModel):
    id: int = 0
    name: str | None = None
    nickname: str | None = None
    shirtnumber: int | None = None
    position: IdName | None = None
    team: IdName | None = None
    stats: dict[str, Any] = {}


class MatchPlayersStats(KorastatsModel):
    players: list[PlayerMatchStats] = []


class PossessionPeriod(KorastatsModel):
    period: str
    possession: float = 50


class PossessionSide(KorastatsModel):
    possession: list[PossessionPeriod] = []


class MatchPossessionTimeline(KorastatsModel):
    id: int | None = None
    home: PossessionSide
    away: PossessionSide | None = None


class VideoQuality(KorastatsModel):
    name: str | None = Field(None, alias="strName")
    link: str | None = Field(None, alias="strLink")


class VideoStream(KorastatsModel):
    name: str | None = Field(None, alias="strName")
    qualities: list[VideoQuality] = Field([], alias="arrQualities")


class VideoHalf(KorastatsModel):
    half: int | None = Field(None, alias="intHalf")
    streams: list[VideoStream] = Field([], alias="arrStreams")


class VideoMatch(KorastatsModel):
    name: str | None = Field(None, alias="strMatchName")
    halves: list[VideoHalf] = Field([], alias="arrHalves")


class MatchVideo(KorastatsModel):
    match_id: int | None = Field(None, alias="intMatchID")
    match: VideoMatch | None = Field(None, alias="objMatch")


# ==================== Players, coaches, referees ====================

class EntityPositions(KorastatsModel):
    primary: IdName | None = None
    secondary: IdName | None = None


class EntityPerson(KorastatsModel):
    id: int
    fullname: str | None = None
    nickname: str | None = None
    dob: str | None = None
    age: str | int | None = None
    nationality: IdName | None = None
    retired: bool = False
    gender: str | None = None


class EntityPlayer(EntityPerson):
    positions: EntityPositions | None = None
    current_team: IdName | None = None


class EntityCoach(EntityPerson):
    pass


class EntityReferee(EntityPerson):
    pass


class TournamentPlayerStats(KorastatsModel):
    """One player's totals for a tournament, grouped by stat category."""
    id: int
    name: str | None = None
    nickname: str | None = None
    shirtnumber: int | str | None = None
    position: IdName | None = None
    team: IdName | None = None
    stats: dict[str, Any] = {}


class TournamentCoach(KorastatsModel):
    id: int
    name: str | None = None
    retired: bool = False
    stats: dict[str, Any] = {}


class TournamentReferee(KorastatsModel):
    id: int
    name: str | None = None
    stats: dict[str, Any] = {}


class TournamentRefereeList(KorastatsModel):
    id: int
    referees: list[TournamentReferee] = []


# ==================== Standings ====================

class StandingCount(KorastatsModel):
    total: int = 0
    home: int = 0
    away: int = 0


class Standing(KorastatsModel):
    team_id: int = Field(alias="teamID")
    team: str | None = None
    rank: int = 0
    points: int = 0
    played: StandingCount = StandingCount()
    won: StandingCount = StandingCount()
    draw: StandingCount = StandingCount()
    lost: StandingCount = StandingCount()
    scored: StandingCount = StandingCount()
    conceded: StandingCount = StandingCount()


class StandingsGroup(KorastatsModel):
    group: str | None = None
    standings: list[Standing] = []


class StandingsStage(KorastatsModel):
    groups: list[StandingsGroup] = []


class StandingsData(KorastatsModel):
    id: int
    stages: list[StandingsStage] = []
