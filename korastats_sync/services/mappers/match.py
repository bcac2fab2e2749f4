"""
Match mapper.

Builds the canonical match document from a complete MatchBundle: fixture
header, score breakdown, event timeline, lineups, team and player
statistics, the momentum series and highlights.
"""
import re
from typing import Any

from korastats_sync.schemas.bundles import MatchBundle
from korastats_sync.schemas.korastats import (
    GoalIntervals,
    MatchFormation,
    MatchPlayersStats,
    MatchPossessionTimeline,
    MatchSquad,
    MatchSummary,
    MatchTimeline,
    MatchVideo,
    PlayerMatchStats,
    SquadPlayer,
    SquadSide,
    TeamSummary,
)
from korastats_sync.services.errors import MappingError
from korastats_sync.services.korastats_client import image_url
from korastats_sync.services.mappers.helpers import (
    DEFAULT_FORMATION,
    clean_team_name,
    clock_minute,
    event_minute,
    formation_text,
    stat_value,
    to_float,
    to_int,
)

UNKNOWN_COACH = {"id": 0, "name": "Unknown Coach"}
UNKNOWN_POSITION = "Unknown"
UNKNOWN_PLAYER = "Unknown Player"

# Korastats status -> (short code, description)
MATCH_STATUS = {
    "approved": ("FT", "Match Finished"),
    "live": ("LIVE", "Match In Progress"),
    "pending": ("NS", "Match Not Started"),
    "halftime": ("HT", "Match Halftime"),
    "cancelled": ("CANC", "Match Cancelled"),
    "postponed": ("POST", "Match Postponed"),
}
STATUS_ELAPSED = {"FT": 90, "HT": 45}

EVENT_TYPES = {
    "Goal": "Goal",
    "Goal Scored": "Goal",
    "Own Goal": "Goal",
    "Penalty": "Goal",
    "Yellow Card": "Card",
    "Red Card": "Card",
    "Second Yellow Card": "Card",
    "Substitution": "Substitution",
}
MOMENTUM_GOAL_EVENTS = {"Goal", "Goal Scored"}
MOMENTUM_BUCKETS = range(0, 100, 10)
MOMENTUM_WINDOW = 10

POSITION_GRID = {
    "GK": "1:1",
    "CB": "2:1",
    "LB": "2:2",
    "RB": "2:3",
    "DM": "3:1",
    "CM": "3:2",
    "AM": "3:3",
    "RM": "3:5",
    "LW": "4:1",
    "RW": "4:2",
    "CF": "4:3",
}
DEFAULT_GRID = "3:2"

PERIOD_RE = re.compile(r"^\s*(\d+)\s*-\s*(\d+)\s*$")


# ==================== Header ====================

def map_status(status: str | None) -> dict[str, Any]:
    short, long = MATCH_STATUS.get((status or "").strip().lower(), MATCH_STATUS["pending"])
    return {"long": long, "short": short, "elapsed": STATUS_ELAPSED.get(short)}


def team_ref(team_id: int, name: str | None, winner: bool | None = None) -> dict[str, Any]:
    return {
        "id": team_id,
        "name": clean_team_name(name) or name,
        "logo": image_url("club", team_id),
        "winner": winner,
    }


def winners(home_goals: int | None, away_goals: int | None) -> tuple[bool | None, bool | None]:
    if home_goals is None or away_goals is None:
        return None, None
    if home_goals == away_goals:
        return False, False
    return home_goals > away_goals, away_goals > home_goals


# ==================== Score ====================

def _intervals(side: TeamSummary) -> GoalIntervals:
    if side.stats and side.stats.goals_scored:
        return side.stats.goals_scored
    return GoalIntervals()


def map_score_breakdown(summary: MatchSummary) -> dict[str, dict[str, int]]:
    """
    Bucket goals into halftime, fulltime, extratime and penalty.

    Sums the provider's per-15-minute interval counts; a side without
    interval data contributes zeros.
    """
    home = _intervals(summary.home)
    away = _intervals(summary.away)

    def bucket(intervals: GoalIntervals) -> dict[str, int]:
        return {
            "halftime": intervals.t_0_15 + intervals.t_15_30 + intervals.t_30_45,
            "fulltime": intervals.t_45_60 + intervals.t_60_75 + intervals.t_75_90,
            "extratime": intervals.t_90_105 + intervals.t_105_120,
            "penalty": intervals.penalty_scored,
        }

    home_buckets, away_buckets = bucket(home), bucket(away)
    return {
        key: {"home": home_buckets[key], "away": away_buckets[key]}
        for key in ("halftime", "fulltime", "extratime", "penalty")
    }


# ==================== Events ====================

def first_half_last_minute(timeline: MatchTimeline) -> int:
    minutes = [
        clock_minute(event.time)
        for event in timeline.timeline
        if event.half == 1
    ]
    return max((m for m in minutes if m is not None), default=0)


def map_events(timeline: MatchTimeline) -> list[dict[str, Any]]:
    last_first_half = first_half_last_minute(timeline)
    events = []
    for event in timeline.timeline:
        elapsed = event_minute(event.time, event.half, last_first_half)
        scorer = event.player_in or event.player
        team_id = event.team.id if event.team else 0
        events.append({
            "time": {
                "elapsed": elapsed,
                "extra": elapsed - 90 if event.half > 2 else None,
            },
            "team": {
                "id": team_id,
                "name": event.team.name if event.team else None,
                "logo": image_url("club", team_id),
            },
            "player": {
                "id": scorer.id if scorer else 0,
                "name": (scorer.nickname or scorer.name) if scorer else UNKNOWN_PLAYER,
            },
            "assist": (
                {"id": event.player_out.id, "name": event.player_out.nickname or event.player_out.name}
                if event.player_out
                else None
            ),
            "type": EVENT_TYPES.get(event.event, event.event),
            "detail": event.event,
            "comments": None,
        })
    return sorted(events, key=lambda e: e["time"]["elapsed"])


# ==================== Lineups ====================

def map_lineup_player(player: SquadPlayer) -> dict[str, Any]:
    position = (player.position.name if player.position else None) or UNKNOWN_POSITION
    return {
        "player": {
            "id": player.id,
            "name": player.nick_name or player.name or UNKNOWN_PLAYER,
            "photo": image_url("player", player.id),
            "number": player.shirt_number,
            "pos": position,
            "grid": POSITION_GRID.get(position.strip().upper(), DEFAULT_GRID),
        }
    }


def map_lineup_side(
    side: SquadSide,
    team_summary: TeamSummary,
    formation: MatchFormation,
    match_id: int,
) -> dict[str, Any]:
    if side.team is None or not side.team.id:
        raise MappingError("squad side has no team reference", "match", match_id)

    coach = team_summary.coach
    if coach and coach.id:
        coach_doc = {"id": coach.id, "name": coach.name or UNKNOWN_COACH["name"]}
    else:
        coach_doc = dict(UNKNOWN_COACH)
    coach_doc["photo"] = image_url("coach", coach_doc["id"])

    return {
        "team": {
            "id": side.team.id,
            "name": side.team.name,
            "logo": image_url("club", side.team.id),
        },
        "formation": formation_text(formation.lineup_formation_name) or DEFAULT_FORMATION,
        "coach": coach_doc,
        "startXI": [map_lineup_player(p) for p in side.squad if p.lineup],
        "substitutes": [map_lineup_player(p) for p in side.squad if p.bench],
    }


def map_lineups(
    squad: MatchSquad,
    summary: MatchSummary,
    formation_home: MatchFormation,
    formation_away: MatchFormation,
) -> list[dict[str, Any]]:
    return [
        map_lineup_side(squad.home, summary.home, formation_home, squad.match_id),
        map_lineup_side(squad.away, summary.away, formation_away, squad.match_id),
    ]


# ==================== Statistics ====================

def map_team_statistics(side: TeamSummary) -> dict[str, Any]:
    stats = side.stats
    attempts = stats.attempts if stats else {}
    defensive = stats.defensive if stats else {}
    fouls = stats.fouls if stats else {}
    admin = stats.admin if stats else {}
    cards = stats.cards if stats else {}
    passes = stats.passes if stats else {}
    xg = stats.goals_scored.xg if stats and stats.goals_scored else 0

    total_shots = to_int(attempts.get("Total"))
    on_target = to_int(attempts.get("Success"))
    blocked = to_int(defensive.get("Blocks"))
    accuracy = passes.get("Accuracy")

    return {
        "team": {
            "id": side.team.id,
            "name": side.team.name,
            "logo": image_url("club", side.team.id),
        },
        "statistics": [
            {"type": "Shots on Goal", "value": on_target},
            {"type": "Shots off Goal", "value": max(total_shots - on_target - blocked, 0)},
            {"type": "Total Shots", "value": total_shots},
            {"type": "Blocked Shots", "value": blocked},
            {"type": "Fouls", "value": to_int(fouls.get("Awarded"))},
            {"type": "Corner Kicks", "value": to_int(admin.get("Corners"))},
            {"type": "Offsides", "value": to_int(admin.get("Offside"))},
            {"type": "Yellow Cards", "value": to_int(cards.get("Yellow"))},
            {"type": "Red Cards", "value": to_int(cards.get("Red"))},
            {"type": "Goalkeeper Saves", "value": to_int(defensive.get("OpportunitySaved"))},
            {"type": "Total passes", "value": to_int(passes.get("Total"))},
            {"type": "Passes accurate", "value": to_int(passes.get("Success"))},
            {"type": "Passes %", "value": f"{round(to_float(accuracy))}%" if accuracy is not None else None},
            {"type": "expected_goals", "value": xg},
        ],
    }


def map_player_detailed_stats(player: PlayerMatchStats) -> dict[str, Any]:
    stats = player.stats
    return {
        "games": {
            "position": (player.position.name if player.position else None) or UNKNOWN_POSITION,
            "number": player.shirtnumber or 0,
            "minutes": to_int(stat_value(stats, "Admin", "MinutesPlayed")),
            "substitute": to_int(stat_value(stats, "Admin", "MatchesPlayedasSub")) > 0,
            "captain": False,
        },
        "offsides": to_int(stat_value(stats, "Admin", "Offside")),
        "shots": {
            "total": to_int(stat_value(stats, "Attempts", "Total")),
            "on": to_int(stat_value(stats, "Attempts", "Success")),
        },
        "goals": {
            "total": to_int(stat_value(stats, "GoalsScored", "Total")),
            "assists": to_int(stat_value(stats, "Chances", "Assists")),
            "conceded": to_int(stat_value(stats, "GoalsConceded", "Total")),
            "saves": to_int(stat_value(stats, "Defensive", "OpportunitySaved")),
        },
        "passes": {
            "total": to_int(stat_value(stats, "Pass", "Total")),
            "key": to_int(stat_value(stats, "Chances", "KeyPasses")),
            "accuracy": f"{round(to_float(stat_value(stats, 'Pass', 'Accuracy')))}%",
        },
        "tackles": {
            "total": to_int(stat_value(stats, "BallWon", "TackleWon")),
            "blocks": to_int(stat_value(stats, "Defensive", "Blocks")),
            "interceptions": to_int(stat_value(stats, "BallWon", "InterceptionWon")),
        },
        "duels": {
            "total": to_int(stat_value(stats, "BallWon", "Total")),
            "won": to_int(stat_value(stats, "BallWon", "Total")),
        },
        "dribbles": {
            "attempts": to_int(stat_value(stats, "Dribble", "Total")),
            "success": to_int(stat_value(stats, "Dribble", "Success")),
        },
        "fouls": {
            "drawn": to_int(stat_value(stats, "Fouls", "Awarded")),
            "committed": to_int(stat_value(stats, "Fouls", "Committed")),
        },
        "cards": {
            "yellow": to_int(stat_value(stats, "Cards", "Yellow")),
            "red": to_int(stat_value(stats, "Cards", "Red")),
            "yellowred": to_int(stat_value(stats, "Cards", "SecondYellow")),
        },
        "penalty": {
            "won": to_int(stat_value(stats, "Penalty", "Awarded")),
            "committed": to_int(stat_value(stats, "Penalty", "Committed")),
            "scored": to_int(stat_value(stats, "GoalsScored", "PenaltyScored")),
            "missed": to_int(stat_value(stats, "Attempts", "PenaltyMissed")),
        },
    }


def map_players_stats(
    players_stats: MatchPlayersStats, summary: MatchSummary
) -> list[dict[str, Any]]:
    """Group per-player statistics under the home and away teams."""
    sides = []
    for team_summary in (summary.home, summary.away):
        team = team_summary.team
        players = [
            {
                "player": {
                    "id": p.id,
                    "name": p.nickname or p.name or UNKNOWN_PLAYER,
                    "photo": image_url("player", p.id),
                },
                "statistics": [map_player_detailed_stats(p)],
            }
            for p in players_stats.players
            if p.team is not None and p.team.id == team.id
        ]
        sides.append({
            "team": {"id": team.id, "name": team.name, "logo": image_url("club", team.id)},
            "players": players,
        })
    return sides


# ==================== Momentum ====================

def parse_periods(possession: MatchPossessionTimeline) -> list[tuple[int, int, float]]:
    periods = []
    for period in possession.home.possession:
        match = PERIOD_RE.match(period.period)
        if match:
            periods.append((int(match.group(1)), int(match.group(2)), period.possession))
    return sorted(periods, key=lambda p: p[0])


def possession_at(periods: list[tuple[int, int, float]], minute: int) -> int:
    """
    Home possession share at ``minute``.

    Uses the period covering the minute, else the last period starting at or
    before it, else 50. Values are truncated, never rounded.
    """
    for start, end, value in periods:
        if start <= minute < end:
            return int(value)
    earlier = [value for start, _, value in periods if start <= minute]
    if earlier:
        return int(earlier[-1])
    return 50


def build_momentum(
    timeline: MatchTimeline, possession: MatchPossessionTimeline
) -> dict[str, Any]:
    periods = parse_periods(possession)
    last_first_half = first_half_last_minute(timeline)
    goals = [
        (event_minute(e.time, e.half, last_first_half), e)
        for e in timeline.timeline
        if e.event in MOMENTUM_GOAL_EVENTS
    ]

    data = []
    for start in MOMENTUM_BUCKETS:
        home_event = away_event = None
        for minute, event in goals:
            if not start <= minute < start + MOMENTUM_WINDOW:
                continue
            entry = {"type": event.event, "minute": minute}
            scoring_team = event.team.id if event.team else None
            if scoring_team == timeline.home.id and home_event is None:
                home_event = entry
            elif scoring_team == timeline.away.id and away_event is None:
                away_event = entry

        home_share = possession_at(periods, start)
        data.append({
            "time": start,
            "homeEvent": home_event,
            "awayEvent": away_event,
            "homeMomentum": home_share,
            "awayMomentum": 100 - home_share,
        })

    score = timeline.score
    home_win, away_win = winners(score.home, score.away) if score else (None, None)
    return {
        "data": data,
        "home": team_ref(timeline.home.id, timeline.home.name, home_win),
        "away": team_ref(timeline.away.id, timeline.away.name, away_win),
    }


# ==================== Highlights / availability ====================

def first_video_link(video: MatchVideo) -> str | None:
    if not video.match:
        return None
    for half in video.match.halves:
        for stream in half.streams:
            for quality in stream.qualities:
                if quality.link:
                    return quality.link
    return None


def map_highlights(video: MatchVideo) -> dict[str, Any]:
    return {"host": "S3", "url": first_video_link(video) or ""}


def data_available(bundle: MatchBundle) -> dict[str, bool]:
    summary = bundle.summary
    return {
        "events": bool(bundle.timeline.timeline),
        "stats": summary.home.stats is not None and summary.away.stats is not None,
        "formations": bool(
            bundle.formation_home.lineup_formation_name
            and bundle.formation_away.lineup_formation_name
        ),
        "playerStats": bool(bundle.players_stats.players),
        "video": first_video_link(bundle.video) is not None,
    }


# ==================== Document ====================

def map_match(bundle: MatchBundle) -> dict[str, Any]:
    """Canonical match document for one complete bundle."""
    summary, squad = bundle.summary, bundle.squad
    score = summary.score or bundle.timeline.score
    home_goals = score.home if score else None
    away_goals = score.away if score else None
    home_win, away_win = winners(home_goals, away_goals)

    status = map_status(squad.status.status if squad.status else None)
    venue = summary.stadium or squad.stadium
    referee = summary.referee or squad.referee

    home_team = team_ref(summary.home.team.id, summary.home.team.name, home_win)
    away_team = team_ref(summary.away.team.id, summary.away.team.name, away_win)
    lineups = map_lineups(squad, summary, bundle.formation_home, bundle.formation_away)
    home_team["coach"] = lineups[0]["coach"]
    away_team["coach"] = lineups[1]["coach"]

    return {
        "korastats_id": bundle.match_id,
        "tournament_id": squad.tournament_id or bundle.tournament_id,
        "season": summary.season or squad.season,
        "round": str(summary.round if summary.round is not None else squad.round or ""),
        "date": summary.date_time or squad.date_time,
        "status": status,
        "venue": {"id": venue.id, "name": venue.name} if venue else {"id": 0, "name": None},
        "referee": {"id": referee.id, "name": referee.name} if referee else None,
        "teams": {"home": home_team, "away": away_team},
        "goals": {"home": home_goals, "away": away_goals},
        "score": map_score_breakdown(summary),
        "events": map_events(bundle.timeline),
        "lineups": lineups,
        "statistics": [map_team_statistics(summary.home), map_team_statistics(summary.away)],
        "playersStats": map_players_stats(bundle.players_stats, summary),
        "momentum": build_momentum(bundle.timeline, bundle.possession),
        "highlights": map_highlights(bundle.video),
        "dataAvailable": data_available(bundle),
    }
