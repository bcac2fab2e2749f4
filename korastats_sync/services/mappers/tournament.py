"""Tournament mapper."""
from collections.abc import Iterable
from datetime import datetime
from typing import Any

from korastats_sync.schemas.bundles import TournamentBundle
from korastats_sync.schemas.korastats import MatchListItem, TopStatPlayer, TournamentListItem
from korastats_sync.services.mappers.helpers import LEADING_INT_RE, season_year
from korastats_sync.utils.timestamps import parse_provider_datetime, utcnow

DEFAULT_ROUNDS = ["Round 1"]
DEFAULT_GENDER = "male"
TOP_PLAYERS_LIMIT = 5

GENDERS = {
    "male": "male",
    "men": "male",
    "m": "male",
    "female": "female",
    "women": "female",
    "f": "female",
    "mixed": "mixed",
    "both": "mixed",
    "co-ed": "mixed",
}


def round_label(round_value: int | str) -> str:
    if isinstance(round_value, int):
        return f"Round {round_value}"
    match = LEADING_INT_RE.search(round_value)
    return f"Round {int(match.group())}" if match else f"Round {round_value.strip()}"


def _round_sort_key(label: str) -> tuple[int, str]:
    match = LEADING_INT_RE.search(label)
    return (int(match.group()) if match else 0, label)


def rounds_from_matches(matches: Iterable[MatchListItem]) -> list[str]:
    """Unique "Round N" labels sorted numerically; ["Round 1"] when none."""
    labels = {round_label(m.round) for m in matches if m.round not in (None, "", 0)}
    if not labels:
        return list(DEFAULT_ROUNDS)
    return sorted(labels, key=_round_sort_key)


def normalize_gender(gender: str | None) -> str:
    return GENDERS.get((gender or "").strip().lower(), DEFAULT_GENDER)


def tournament_status(start: Any, end: Any, now: datetime) -> str:
    """upcoming before start, completed after end, active otherwise."""
    start_at = parse_provider_datetime(start)
    end_at = parse_provider_datetime(end)
    if start_at and now < start_at:
        return "upcoming"
    if end_at and now > end_at:
        return "completed"
    return "active"


def map_top_players(players: Iterable[TopStatPlayer]) -> list[dict[str, Any]]:
    return [
        {"player": {"id": p.id, "name": p.name}}
        for p in list(players)[:TOP_PLAYERS_LIMIT]
    ]


def map_tournament(bundle: TournamentBundle, now: datetime | None = None) -> dict[str, Any]:
    now = now or utcnow()
    structure = bundle.structure
    # The structure endpoint repeats the listing header; prefer the listing when present
    header: TournamentListItem = bundle.listing or structure

    rounds = rounds_from_matches(bundle.matches)
    status = tournament_status(header.start_date, header.end_date, now)
    organizer = header.organizer
    age_group = header.age_group
    country = organizer.country if organizer else None

    return {
        "korastats_id": bundle.tournament_id,
        "name": header.tournament,
        "season": header.season,
        "seasons": [
            {
                "id": bundle.tournament_id,
                "year": season_year(header.season),
                "start": header.start_date,
                "end": header.end_date,
                "current": status == "active",
                "rounds": rounds,
                "rounds_count": len(rounds),
            }
        ],
        "country": {"id": country.id, "name": country.name} if country else None,
        "organizer": {
            "id": organizer.id if organizer else 0,
            "name": (organizer.name if organizer else None) or "",
            "abbrev": (organizer.abbrev if organizer else None) or "",
        },
        "age_group": {
            "id": age_group.id if age_group else 0,
            "name": (age_group.name if age_group else None) or "Senior",
            "min_age": age_group.age.min if age_group and age_group.age else None,
            "max_age": age_group.age.max if age_group and age_group.age else None,
        },
        "gender": normalize_gender(structure.gender),
        "rounds": rounds,
        "rounds_count": len(rounds),
        "status": status,
        "top_scorers": map_top_players(bundle.top_scorers),
        "top_assisters": map_top_players(bundle.top_assisters),
    }
