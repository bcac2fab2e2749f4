"""
Player, coach and referee mappers.

Each document carries one season-keyed entry for the bundle's tournament
(player and coach ``stats``, coach ``career_history``, referee
``career_stats``). Earlier seasons are kept by the merge step, which also
recomputes the career totals.
"""
from collections.abc import Iterable
from typing import Any

from korastats_sync.schemas.bundles import PersonBundle
from korastats_sync.schemas.korastats import EntityPerson, EntityPlayer, IdName
from korastats_sync.services.korastats_client import image_url
from korastats_sync.services.mappers.helpers import (
    clean_person_name,
    parse_age,
    season_year,
    split_name,
    stat_value,
    to_int,
)

UNKNOWN_POSITION = "Unknown"

POSITION_CATEGORIES = (
    (("GK", "GOALKEEPER"), "Goalkeeper"),
    (("CB", "LB", "RB", "WB", "BACK", "DEFENDER"), "Defender"),
    (("DM", "CM", "AM", "LM", "RM", "MIDFIELD"), "Midfielder"),
    (("CF", "ST", "LW", "RW", "FORWARD", "STRIKER", "WINGER"), "Attacker"),
)


def position_category(position: str | None) -> str:
    if not position:
        return UNKNOWN_POSITION
    upper = position.upper()
    for markers, category in POSITION_CATEGORIES:
        if any(marker in upper for marker in markers):
            return category
    return UNKNOWN_POSITION


def map_position(position: IdName | None) -> dict[str, Any]:
    name = (position.name if position else None) or UNKNOWN_POSITION
    return {
        "id": position.id if position else 0,
        "name": name,
        "category": position_category(name if position else None),
    }


def map_person(entity: EntityPerson, kind: str) -> dict[str, Any]:
    """Fields shared by every person document."""
    name = clean_person_name(entity.nickname or entity.fullname)
    firstname, lastname = split_name(clean_person_name(entity.fullname or entity.nickname))
    nationality = entity.nationality.name if entity.nationality else None
    return {
        "korastats_id": entity.id,
        "name": name,
        "firstname": firstname,
        "lastname": lastname,
        "age": parse_age(entity.age),
        "birth": {"date": entity.dob, "country": nationality},
        "nationality": nationality,
        "gender": entity.gender,
        "retired": entity.retired,
        "photo": image_url(kind, entity.id),
    }


def map_player(bundle: PersonBundle) -> dict[str, Any]:
    document = map_person(bundle.entity, "player")
    entity = bundle.entity
    if isinstance(entity, EntityPlayer):
        positions = entity.positions
        document["positions"] = {
            "primary": map_position(positions.primary if positions else None),
            "secondary": map_position(positions.secondary if positions else None),
        }
        team = entity.current_team
        document["team"] = (
            {"id": team.id, "name": team.name, "logo": image_url("club", team.id)}
            if team and team.id
            else None
        )
    if bundle.tournament_stats is not None:
        document["stats"] = [map_player_stats(bundle)]
    return document


def map_coach(bundle: PersonBundle) -> dict[str, Any]:
    document = map_person(bundle.entity, "coach")
    if bundle.tournament_stats is not None:
        document["stats"] = [map_coach_stats(bundle)]
        document["career_history"] = [map_coach_career(bundle)]
    return document


def map_referee(bundle: PersonBundle) -> dict[str, Any]:
    document = map_person(bundle.entity, "referee")
    if bundle.tournament_stats is not None:
        document["career_stats"] = [map_referee_stats(bundle)]
    return document


# ==================== Season history ====================

def league_ref(bundle: PersonBundle) -> dict[str, Any]:
    """``league`` key of a person's season entry."""
    tournament = bundle.tournament
    return {
        "id": tournament.id if tournament else None,
        "name": tournament.tournament if tournament else None,
        "season": season_year(bundle.season) or bundle.season,
    }


def map_player_stats(bundle: PersonBundle) -> dict[str, Any]:
    """One ``stats`` element: the player's totals for the bundle's tournament."""
    entry = bundle.tournament_stats
    stats = entry.stats

    def value(*path: str) -> int:
        return to_int(stat_value(stats, *path))

    matches = value("Admin", "MatchesPlayed")
    as_sub = value("Admin", "MatchesPlayedasSub")
    passes = value("Pass", "Total")
    team = entry.team
    return {
        "league": league_ref(bundle),
        "team": {
            "id": team.id if team else 0,
            "name": team.name if team else None,
            "logo": image_url("club", team.id) if team else "",
        },
        "games": {
            "appearences": matches,
            "lineups": max(matches - as_sub, 0),
            "minutes": value("Admin", "MinutesPlayed"),
            "number": to_int(entry.shirtnumber),
            "position": entry.position.name if entry.position else None,
        },
        "substitutes": {"in": as_sub, "out": value("Admin", "MatchesPlayerSubstitutedIn")},
        "shots": {"total": value("Attempts", "Total"), "on": value("Attempts", "Success")},
        "goals": {
            "total": value("GoalsScored", "Total"),
            "assists": value("Chances", "Assists"),
            "conceded": value("GoalsConceded", "Total"),
        },
        "passes": {
            "total": passes,
            "key": value("Chances", "KeyPasses"),
            "accuracy": round(value("Pass", "Success") / passes * 100, 1) if passes else 0,
        },
        "tackles": {
            "total": value("BallWon", "TackleWon"),
            "blocks": value("Defensive", "Blocks"),
            "interceptions": value("BallWon", "InterceptionWon"),
        },
        "duels": {"won": value("BallWon", "Total")},
        "dribbles": {"attempts": value("Dribble", "Total"), "success": value("Dribble", "Success")},
        "fouls": {"drawn": value("Fouls", "Awarded"), "committed": value("Fouls", "Committed")},
        "cards": {
            "yellow": value("Cards", "Yellow"),
            "yellowred": value("Cards", "SecondYellow"),
            "red": value("Cards", "Red"),
        },
        "penalty": {
            "won": value("Penalty", "Awarded"),
            "commited": value("Penalty", "Committed"),
            "scored": value("GoalsScored", "PenaltyScored"),
            "missed": value("Attempts", "PenaltyMissed"),
        },
    }


def summarize_player_stats(entries: Iterable[dict[str, Any]]) -> dict[str, Any]:
    """``career_summary`` over every season entry of a player."""
    total = 0
    career: dict[tuple[Any, Any], dict[str, Any]] = {}
    for entry in entries:
        total += to_int(stat_value(entry, "games", "appearences"))
        team = entry.get("team") or {}
        season = stat_value(entry, "league", "season", default=None)
        key = (team.get("id"), season)
        if team.get("id") and key not in career:
            career[key] = {"team": team, "season": season}
    return {"total_matches": total, "careerData": list(career.values())}


def map_coach_stats(bundle: PersonBundle) -> dict[str, Any]:
    """One ``stats`` element: the coach's record in the bundle's tournament."""
    admin = stat_value(bundle.tournament_stats.stats, "Admin", default={})
    matches = to_int(stat_value(admin, "MatchesPlayed"))
    wins = to_int(stat_value(admin, "Win"))
    draws = to_int(stat_value(admin, "Draw"))
    points = wins * 3 + draws
    return {
        "league": league_ref(bundle),
        "matches": matches,
        "wins": wins,
        "draws": draws,
        "loses": to_int(stat_value(admin, "Lost")),
        "points": points,
        "points_per_game": round(points / matches, 2) if matches else 0,
    }


def map_coach_career(bundle: PersonBundle) -> dict[str, Any]:
    """One ``career_history`` element: a tournament season the coach worked."""
    tournament = bundle.tournament
    return {
        "league": league_ref(bundle),
        "start_date": tournament.start_date if tournament else None,
        "end_date": tournament.end_date if tournament else None,
    }


def summarize_coach_stats(entries: Iterable[dict[str, Any]]) -> dict[str, Any]:
    """Win, draw and loss percentages over every season of a coach."""
    matches = wins = draws = loses = 0
    for entry in entries:
        matches += to_int(entry.get("matches"))
        wins += to_int(entry.get("wins"))
        draws += to_int(entry.get("draws"))
        loses += to_int(entry.get("loses"))

    def share(count: int) -> float:
        return round(count / matches * 100, 2) if matches else 0

    return {
        "matches": matches,
        "win_percentage": share(wins),
        "draw_percentage": share(draws),
        "lose_percentage": share(loses),
    }


def map_referee_stats(bundle: PersonBundle) -> dict[str, Any]:
    """One ``career_stats`` element; red cards count second yellows."""
    stats = bundle.tournament_stats.stats
    return {
        "league": league_ref(bundle),
        "appearances": to_int(stats.get("MatchesPlayed")),
        "yellow_cards": to_int(stats.get("Yellow Card")),
        "red_cards": to_int(stats.get("2nd Yellow Card")) + to_int(stats.get("Direct Red Card")),
        "penalties": to_int(stats.get("Penalties")),
    }


def count_referee_matches(entries: Iterable[dict[str, Any]]) -> int:
    return sum(to_int(entry.get("appearances")) for entry in entries)


PERSON_MAPPERS = {
    "player": map_player,
    "coach": map_coach,
    "referee": map_referee,
}
