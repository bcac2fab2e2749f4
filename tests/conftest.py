import copy
from types import SimpleNamespace
from unittest.mock import AsyncMock

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

import korastats_sync.models  # noqa: F401
from korastats_sync.database import Base
from korastats_sync.schemas.bundles import (
    MatchBundle,
    PersonBundle,
    StandingsBundle,
    TeamBundle,
    TournamentBundle,
)
from korastats_sync.schemas.korastats import (
    EntityClub,
    EntityCoach,
    EntityPlayer,
    EntityReferee,
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
from korastats_sync.services.sync.repository import DocumentRepository
from korastats_sync.services.sync.sync_log import SyncLogService


TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

TOURNAMENT_ID = 840
HOME_ID = 10
AWAY_ID = 20
MATCH_ID = 5001


@pytest.fixture(scope="function")
async def test_engine():
    """Create test database engine."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest.fixture(scope="function")
def session_factory(test_engine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autocommit=False,
        autoflush=False,
    )


@pytest.fixture
def repository(session_factory) -> DocumentRepository:
    return DocumentRepository(session_factory)


@pytest.fixture
def sync_log(session_factory) -> SyncLogService:
    return SyncLogService(session_factory, stale_minutes=60)


# --- Provider payloads (the unwrapped ``data`` / ``root.object`` members) ---

@pytest.fixture
def tournament_payloads() -> dict:
    header = {
        "id": TOURNAMENT_ID,
        "tournament": "Saudi Pro League",
        "season": "2024/2025",
        "startDate": "2024-08-22",
        "endDate": "2025-05-29",
        "organizer": {
            "id": 5,
            "name": "Saudi Arabian Football Federation",
            "abbrev": "SAFF",
            "country": {"id": 191, "name": "Saudi Arabia"},
        },
        "ageGroup": {"id": 1, "name": "Senior", "age": {"min": 18, "max": None}},
    }
    return {
        "tournament_list": [
            header,
            {"id": 999, "tournament": "Kings Cup", "season": "2024/2025"},
        ],
        "structure": {
            **header,
            "gender": "Men",
            "stages": [
                {
                    "id": 7001,
                    "stage": "Regular Season",
                    "order": 1,
                    "rounds": 34,
                    "type": "league",
                    "groups": [{"id": 1, "group": "Main", "teams": []}],
                }
            ],
        },
        "match_list": [
            {
                "matchId": MATCH_ID,
                "round": 3,
                "home": {"id": HOME_ID, "name": "Al Hilal FC"},
                "away": {"id": AWAY_ID, "name": "Al Nassr"},
                "status": {"id": 1, "status": "Approved"},
            },
            {
                "matchId": 5002,
                "round": "Round 12",
                "home": {"id": AWAY_ID, "name": "Al Nassr"},
                "away": {"id": HOME_ID, "name": "Al Hilal FC"},
            },
            {
                "matchId": 5003,
                "round": 1,
                "home": {"id": 30, "name": "Al Ahli"},
                "away": {"id": HOME_ID, "name": "Al Hilal FC"},
            },
            {
                "matchId": MATCH_ID,
                "round": 3,
                "home": {"id": HOME_ID, "name": "Al Hilal FC"},
                "away": {"id": AWAY_ID, "name": "Al Nassr"},
            },
        ],
        "stat_types": [
            {"intID": 11, "strStatName": "Goals Scored"},
            {"intID": 12, "strStatName": "Assists"},
            {"intID": 13, "strStatName": "Yellow Cards"},
        ],
        "top_scorers": [
            {"intPlayerID": 2001 + i, "strNickNameEn": f"Scorer {i}", "stat_value": 20 - i}
            for i in range(7)
        ],
        "top_assisters": [
            {"intPlayerID": 1002, "strNickNameEn": "Mitrovic", "stat_value": 8},
        ],
    }


@pytest.fixture
def team_payloads() -> dict:
    stadium = {"id": 7, "name": "Kingdom Arena", "capacity": 26000, "city": "Riyadh"}
    return {
        "team_list": {
            "id": TOURNAMENT_ID,
            "tournament": "Saudi Pro League",
            "season": "2024/2025",
            "teams": [
                {"id": HOME_ID, "team": "Al Hilal FC"},
                {"id": AWAY_ID, "team": "Al Nassr"},
            ],
        },
        "team_stats": {
            "id": HOME_ID,
            "name": "Al Hilal FC",
            "stats": [
                {"id": 1, "stat": "Matches Played as Lineup", "value": 10},
                {"id": 2, "stat": "Win", "value": 7},
                {"id": 3, "stat": "Draw", "value": 2},
                {"id": 4, "stat": "Lost", "value": 1},
                {"id": 5, "stat": "Goals Scored", "value": 22},
                {"id": 6, "stat": "Goals Conceded", "value": 8},
                {"id": 7, "stat": "Clean Sheet", "value": 4},
            ],
        },
        "team_info": {
            "id": HOME_ID,
            "name": "Al Hilal",
            "country": {"id": 191, "name": "Saudi Arabia"},
            "founded": 1957,
            "stadium": stadium,
            "matches": [
                {
                    "intID": 1,
                    "intHomeTeamID": HOME_ID,
                    "intAwayTeamID": AWAY_ID,
                    "intHomeTeamScore": 2,
                    "intAwayTeamScore": 1,
                    "dtDateTime": "2024-09-14 18:00:00",
                    "objHomeCoach": {"intID": 401, "strCoachNameEn": "Jorge Jesus", "boolRetired": False},
                },
                {
                    "intID": 2,
                    "intHomeTeamID": 30,
                    "intAwayTeamID": HOME_ID,
                    "intHomeTeamScore": 0,
                    "intAwayTeamScore": 0,
                    "dtDateTime": "2024-09-21 18:00:00",
                    "objAwayCoach": {"intID": 401, "strCoachNameEn": "Jorge Jesus"},
                },
                {
                    "intID": 3,
                    "intHomeTeamID": HOME_ID,
                    "intAwayTeamID": 40,
                    "intHomeTeamScore": 3,
                    "intAwayTeamScore": 0,
                    "dtDateTime": "2024-08-30 18:00:00",
                },
                {
                    "intID": 4,
                    "intHomeTeamID": 50,
                    "intAwayTeamID": HOME_ID,
                    "intHomeTeamScore": 2,
                    "intAwayTeamScore": 1,
                    "dtDateTime": "2024-10-01 18:00:00",
                },
                {
                    "intID": 5,
                    "intHomeTeamID": HOME_ID,
                    "intAwayTeamID": 60,
                    "dtDateTime": "2024-10-20 18:00:00",
                },
            ],
        },
        "club": {
            "id": HOME_ID,
            "name": "Al Hilal Saudi FC",
            "country": {"id": 191, "name": "Saudi Arabia"},
            "founded": 1957,
            "is_national_team": False,
            "stadium": stadium,
        },
    }


@pytest.fixture
def match_payloads() -> dict:
    home = {"id": HOME_ID, "name": "Al Hilal FC"}
    away = {"id": AWAY_ID, "name": "Al Nassr"}
    return {
        "summary": {
            "matchId": MATCH_ID,
            "tournament": "Saudi Pro League",
            "season": "2024/2025",
            "round": 3,
            "dateTime": "2024-09-14 18:00:00",
            "stadium": {"id": 7, "name": "Kingdom Arena"},
            "referee": {"id": 301, "name": "Mohammed Al Hoaish"},
            "score": {"home": 2, "away": 1},
            "home": {
                "team": home,
                "coach": {"id": 401, "name": "Jorge Jesus"},
                "stats": {
                    "GoalsScored": {
                        "T_0_15": 1,
                        "T_45_60": 1,
                        "PenaltyScored": 0,
                        "Total": 2,
                        "XG": 1.8,
                    },
                    "Attempts": {"Total": 12, "Success": 5},
                    "Defensive": {"Blocks": 3, "OpportunitySaved": 2},
                    "Fouls": {"Awarded": 9},
                    "Admin": {"Corners": 6, "Offside": 1},
                    "Cards": {"Yellow": 2, "Red": 0},
                    "Pass": {"Total": 480, "Success": 410, "Accuracy": 85.4},
                },
            },
            "away": {
                "team": away,
                "coach": {"id": 0, "name": None},
                "stats": {
                    "GoalsScored": {"T_30_45": 1, "Total": 1, "XG": 0.9},
                    "Attempts": {"Total": 8, "Success": 3},
                },
            },
        },
        "squad": {
            "matchId": MATCH_ID,
            "tournament_id": TOURNAMENT_ID,
            "season": "2024/2025",
            "round": 3,
            "dateTime": "2024-09-14 18:00:00",
            "status": {"id": 1, "status": "Approved"},
            "home": {
                "team": home,
                "squad": [
                    {
                        "id": 1001,
                        "name": "Yassine Bounou",
                        "nick_name": "Bounou",
                        "shirt_number": 37,
                        "position": {"id": 1, "name": "GK"},
                        "lineup": True,
                    },
                    {
                        "id": 1002,
                        "name": "Aleksandar Mitrovic",
                        "shirt_number": 9,
                        "position": {"id": 2, "name": "CF"},
                        "lineup": True,
                    },
                    {
                        "id": 1003,
                        "name": "Salem Al Dawsari",
                        "shirt_number": 29,
                        "position": {"id": 3, "name": "LW"},
                        "bench": True,
                    },
                ],
            },
            "away": {
                "team": away,
                "squad": [
                    {
                        "id": 2001,
                        "name": "Cristiano Ronaldo",
                        "shirt_number": 7,
                        "position": {"id": 2, "name": "CF"},
                        "lineup": True,
                    },
                ],
            },
        },
        "timeline": {
            "matchId": MATCH_ID,
            "home": home,
            "away": away,
            "score": {"home": 2, "away": 1},
            "timeline": [
                {
                    "half": 1,
                    "time": "12:30",
                    "event": "Goal Scored",
                    "team": home,
                    "player": {"id": 1002, "name": "Aleksandar Mitrovic", "nickname": "Mitrovic"},
                },
                {
                    "half": 1,
                    "time": "38:10",
                    "event": "Goal Scored",
                    "team": away,
                    "player": {"id": 2001, "nickname": "Ronaldo"},
                },
                {
                    "half": 1,
                    "time": "47:05",
                    "event": "Yellow Card",
                    "team": away,
                    "player": {"id": 2001, "nickname": "Ronaldo"},
                },
                {
                    "half": 2,
                    "time": "10:00",
                    "event": "Goal Scored",
                    "team": home,
                    "player": {"id": 1002, "nickname": "Mitrovic"},
                },
                {
                    "half": 2,
                    "time": "30:00",
                    "event": "Substitution",
                    "team": home,
                    "in": {"id": 1003, "nickname": "Al Dawsari"},
                    "out": {"id": 1002, "nickname": "Mitrovic"},
                },
            ],
        },
        "formation_home": {"matchId": MATCH_ID, "teamId": HOME_ID, "lineupFormationName": "1-433"},
        "formation_away": {"matchId": MATCH_ID, "teamId": AWAY_ID, "lineupFormationName": "1-4231"},
        "players_stats": {
            "players": [
                {
                    "id": 1002,
                    "nickname": "Mitrovic",
                    "shirtnumber": 9,
                    "position": {"id": 2, "name": "CF"},
                    "team": home,
                    "stats": {
                        "Admin": {"MinutesPlayed": 77},
                        "GoalsScored": {"Total": 2},
                        "Pass": {"Total": 30, "Accuracy": "71.6"},
                    },
                },
                {
                    "id": 2001,
                    "nickname": "Ronaldo",
                    "shirtnumber": 7,
                    "team": away,
                    "stats": {"GoalsScored": {"Total": 1}},
                },
            ]
        },
        "possession": {
            "id": MATCH_ID,
            "home": {
                "possession": [
                    {"period": "0-15", "possession": 55.7},
                    {"period": "15-30", "possession": 48},
                    {"period": "30-45", "possession": 60},
                    {"period": "45-90", "possession": 52},
                ]
            },
            "away": {"possession": []},
        },
        "video": {
            "intMatchID": MATCH_ID,
            "objMatch": {
                "strMatchName": "Al Hilal vs Al Nassr",
                "arrHalves": [
                    {
                        "intHalf": 1,
                        "arrStreams": [
                            {
                                "strName": "main",
                                "arrQualities": [
                                    {"strName": "720p", "strLink": "https://video.example/5001-720.mp4"}
                                ],
                            }
                        ],
                    }
                ],
            },
        },
    }


@pytest.fixture
def person_payloads() -> dict:
    return {
        "player": {
            "id": 1002,
            "fullname": "Aleksandar Mitrovic",
            "nickname": "Mitrovic",
            "dob": "1994-09-16",
            "age": "30 Y",
            "nationality": {"id": 150, "name": "Serbia"},
            "retired": False,
            "gender": "male",
            "positions": {"primary": {"id": 2, "name": "CF"}, "secondary": None},
            "current_team": {"id": HOME_ID, "name": "Al Hilal FC"},
        },
        "coach": {
            "id": 401,
            "fullname": "Jesus, Jorge",
            "nickname": "Jorge Jesus",
            "dob": "1954-07-24",
            "age": 70,
            "nationality": {"id": 160, "name": "Portugal"},
        },
        "referee": {"id": 301, "fullname": "Mohammed Al Hoaish", "age": "38 Y"},
        "team_player_list": {
            "id": TOURNAMENT_ID,
            "teams": [
                {"id": HOME_ID, "team": "Al Hilal FC", "players": [{"id": 1001}, {"id": 1002}]},
                {"id": AWAY_ID, "team": "Al Nassr", "players": [{"id": 2001}, {"id": 1002}]},
            ],
        },
        "player_stats": {
            1002: {
                "id": 1002,
                "name": "Aleksandar Mitrovic",
                "nickname": "Mitrovic",
                "shirtnumber": 9,
                "position": {"id": 2, "name": "CF"},
                "team": {"id": HOME_ID, "name": "Al Hilal FC"},
                "stats": {
                    "Admin": {
                        "MatchesPlayed": 12,
                        "MinutesPlayed": 980,
                        "MatchesPlayedasSub": 2,
                        "MatchesPlayerSubstitutedIn": 3,
                    },
                    "Attempts": {"Total": 40, "Success": 18, "PenaltyMissed": 1},
                    "Chances": {"KeyPasses": 9, "Assists": 3},
                    "Cards": {"Yellow": 2, "SecondYellow": 0, "Red": 1},
                    "Dribble": {"Total": 15, "Success": 7},
                    "BallWon": {"Total": 30, "TackleWon": 6, "InterceptionWon": 4},
                    "Defensive": {"Blocks": 2},
                    "Fouls": {"Committed": 11, "Awarded": 14},
                    "GoalsScored": {"Total": 10, "PenaltyScored": 2},
                    "GoalsConceded": {"Total": 0},
                    "Pass": {"Success": 150, "Total": 200},
                    "Penalty": {"Committed": 0, "Awarded": 3},
                },
            },
            1001: {"id": 1001, "team": {"id": HOME_ID}, "stats": {"Admin": {"MatchesPlayed": 5}}},
            2001: {"id": 2001, "team": {"id": AWAY_ID}, "stats": {"Admin": {"MatchesPlayed": 7}}},
        },
        "coach_list": [
            {
                "id": 401,
                "name": "Jorge Jesus",
                "stats": {"Admin": {"MatchesPlayed": 10, "Win": 7, "Draw": 2, "Lost": 1}},
            },
            {"id": 402, "name": "Stefano Pioli", "stats": {"Admin": {"MatchesPlayed": 10, "Win": 6}}},
        ],
        "referee_list": {
            "id": TOURNAMENT_ID,
            "referees": [
                {
                    "id": 301,
                    "stats": {
                        "MatchesPlayed": 8,
                        "Yellow Card": 31,
                        "2nd Yellow Card": 1,
                        "Direct Red Card": 2,
                        "Penalties": 3,
                    },
                },
                {"id": 0},
                {"id": 302, "stats": {"MatchesPlayed": 4}},
            ],
        },
    }


@pytest.fixture
def standings_payloads(tournament_payloads) -> dict:
    def row(team_id, name, rank, points, scored, conceded):
        return {
            "teamID": team_id,
            "team": name,
            "rank": rank,
            "points": points,
            "played": {"total": 10, "home": 5, "away": 5},
            "won": {"total": points // 3, "home": 3, "away": points // 3 - 3},
            "draw": {"total": points % 3, "home": 1, "away": points % 3 - 1},
            "lost": {"total": 10 - points // 3 - points % 3, "home": 1, "away": 0},
            "scored": {"total": scored, "home": scored // 2, "away": scored - scored // 2},
            "conceded": {"total": conceded, "home": conceded // 2, "away": conceded - conceded // 2},
        }

    return {
        "structure": tournament_payloads["structure"],
        "standings": {
            "id": TOURNAMENT_ID,
            "stages": [
                {
                    "groups": [
                        {
                            "group": "Main",
                            "standings": [
                                row(AWAY_ID, "Al Nassr", 2, 20, 18, 9),
                                row(HOME_ID, "Al Hilal FC", 1, 23, 22, 8),
                            ],
                        }
                    ]
                }
            ],
        },
    }


# --- Validated bundles ---

@pytest.fixture
def match_bundle(match_payloads) -> MatchBundle:
    return MatchBundle(
        match_id=MATCH_ID,
        tournament_id=TOURNAMENT_ID,
        summary=MatchSummary.model_validate(match_payloads["summary"]),
        squad=MatchSquad.model_validate(match_payloads["squad"]),
        timeline=MatchTimeline.model_validate(match_payloads["timeline"]),
        formation_home=MatchFormation.model_validate(match_payloads["formation_home"]),
        formation_away=MatchFormation.model_validate(match_payloads["formation_away"]),
        players_stats=MatchPlayersStats.model_validate(match_payloads["players_stats"]),
        possession=MatchPossessionTimeline.model_validate(match_payloads["possession"]),
        video=MatchVideo.model_validate(match_payloads["video"]),
    )


@pytest.fixture
def team_bundle(team_payloads) -> TeamBundle:
    return TeamBundle(
        team_id=HOME_ID,
        tournament_id=TOURNAMENT_ID,
        team_stats=TournamentTeamStats.model_validate(team_payloads["team_stats"]),
        team_info=TeamInfo.model_validate(team_payloads["team_info"]),
        club=EntityClub.model_validate(team_payloads["club"]),
        tournament_name="Saudi Pro League",
        season="2024/2025",
    )


@pytest.fixture
def tournament_bundle(tournament_payloads) -> TournamentBundle:
    return TournamentBundle(
        tournament_id=TOURNAMENT_ID,
        structure=TournamentStructure.model_validate(tournament_payloads["structure"]),
        matches=tuple(MatchListItem.model_validate(m) for m in tournament_payloads["match_list"]),
        stat_types=tuple(StatType.model_validate(s) for s in tournament_payloads["stat_types"]),
        listing=TournamentListItem.model_validate(tournament_payloads["tournament_list"][0]),
        top_scorers=tuple(
            TopStatPlayer.model_validate(p) for p in tournament_payloads["top_scorers"]
        ),
        top_assisters=tuple(
            TopStatPlayer.model_validate(p) for p in tournament_payloads["top_assisters"]
        ),
    )


@pytest.fixture
def standings_bundle(standings_payloads) -> StandingsBundle:
    return StandingsBundle(
        tournament_id=TOURNAMENT_ID,
        structure=TournamentStructure.model_validate(standings_payloads["structure"]),
        standings=StandingsData.model_validate(standings_payloads["standings"]),
    )


@pytest.fixture
def person_tournament(tournament_payloads) -> TournamentStructure:
    return TournamentStructure.model_validate(tournament_payloads["structure"])


@pytest.fixture
def player_bundle(person_payloads, person_tournament) -> PersonBundle:
    return PersonBundle(
        entity_id=1002,
        kind="player",
        entity=EntityPlayer.model_validate(person_payloads["player"]),
        tournament=person_tournament,
        season="2024/2025",
        tournament_stats=TournamentPlayerStats.model_validate(person_payloads["player_stats"][1002]),
    )


@pytest.fixture
def coach_bundle(person_payloads, person_tournament) -> PersonBundle:
    return PersonBundle(
        entity_id=401,
        kind="coach",
        entity=EntityCoach.model_validate(person_payloads["coach"]),
        tournament=person_tournament,
        season="2024/2025",
        tournament_stats=TournamentCoach.model_validate(person_payloads["coach_list"][0]),
    )


@pytest.fixture
def referee_bundle(person_payloads, person_tournament) -> PersonBundle:
    return PersonBundle(
        entity_id=301,
        kind="referee",
        entity=EntityReferee.model_validate(person_payloads["referee"]),
        tournament=person_tournament,
        season="2024/2025",
        tournament_stats=TournamentReferee.model_validate(
            person_payloads["referee_list"]["referees"][0]
        ),
    )


# --- Mock provider client ---

@pytest.fixture
def korastats_client(
    tournament_payloads, team_payloads, match_payloads, person_payloads, standings_payloads
) -> SimpleNamespace:
    """Client double answering every endpoint with the payload fixtures."""

    def returns(payload):
        return AsyncMock(side_effect=lambda *args, **kwargs: copy.deepcopy(payload))

    def top_stats(season_id, stat_type_id, sort="desc"):
        if stat_type_id == 11:
            return copy.deepcopy(tournament_payloads["top_scorers"])
        return copy.deepcopy(tournament_payloads["top_assisters"])

    client = SimpleNamespace()
    client.get_tournament_list = returns(tournament_payloads["tournament_list"])
    client.get_tournament_structure = returns(tournament_payloads["structure"])
    client.get_tournament_match_list = returns(tournament_payloads["match_list"])
    client.get_list_stat_types = returns(tournament_payloads["stat_types"])
    client.get_season_player_top_stats = AsyncMock(side_effect=top_stats)
    client.get_tournament_group_standings = returns(standings_payloads["standings"])

    client.get_tournament_team_list = returns(team_payloads["team_list"])
    client.get_tournament_team_stats = returns(team_payloads["team_stats"])
    client.get_team_info = returns(team_payloads["team_info"])
    client.get_entity_club = returns(team_payloads["club"])

    client.get_match_summary = returns(match_payloads["summary"])
    client.get_match_squad = returns(match_payloads["squad"])
    client.get_match_timeline = returns(match_payloads["timeline"])
    client.get_match_formation = AsyncMock(
        side_effect=lambda match_id, side: copy.deepcopy(match_payloads[f"formation_{side}"])
    )
    client.get_match_players_stats = returns(match_payloads["players_stats"])
    client.get_match_possession_timeline = returns(match_payloads["possession"])
    client.get_match_video = returns(match_payloads["video"])

    client.get_tournament_team_player_list = returns(person_payloads["team_player_list"])
    client.get_entity_player = returns(person_payloads["player"])
    client.get_tournament_player_stats = AsyncMock(
        side_effect=lambda tournament_id, player_id: [
            copy.deepcopy(entry)
            for entry in person_payloads["player_stats"].values()
            if entry["id"] == player_id
        ]
    )
    client.get_tournament_coach_list = returns(person_payloads["coach_list"])
    client.get_entity_coach = returns(person_payloads["coach"])
    client.get_tournament_referee_list = returns(person_payloads["referee_list"])
    client.get_entity_referee = returns(person_payloads["referee"])
    return client
