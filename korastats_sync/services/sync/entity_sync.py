"""
Player, coach and referee phases.

The three families share one collector shape: the Entity* profile plus the
person's per-tournament stats entry, labelled with the tournament season.
They differ in the listing endpoint and in where that entry comes from.
"""
import asyncio
import logging
from abc import abstractmethod
from typing import Any

from korastats_sync.schemas.bundles import PersonBundle
from korastats_sync.schemas.korastats import (
    EntityCoach,
    EntityPerson,
    EntityPlayer,
    EntityReferee,
    KorastatsModel,
    TournamentCoach,
    TournamentPlayerStats,
    TournamentReferee,
    TournamentRefereeList,
    TournamentStructure,
    TournamentTeamPlayerList,
)
from korastats_sync.services.mappers.entity import PERSON_MAPPERS
from korastats_sync.services.sync.base import (
    PhaseStrategy,
    collect_required,
    list_parser,
    unique_ids,
)

logger = logging.getLogger(__name__)

parse_coach_list = list_parser(TournamentCoach)


def _same(value: Any) -> Any:
    return value


class PersonSync(PhaseStrategy):
    """Shared collect/map for the person families."""

    kind: str
    payload_model: type[EntityPerson] = EntityPerson
    stats_model: type[KorastatsModel]

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self._tournament: TournamentStructure | None = None
        self._tournament_lock = asyncio.Lock()
        self._listing: list[Any] | None = None
        self._listing_lock = asyncio.Lock()

    async def tournament(self) -> TournamentStructure:
        """Tournament name, dates and season, fetched once per phase."""
        async with self._tournament_lock:
            if self._tournament is None:
                payload = await self.client.get_tournament_structure(self.tournament_id)
                self._tournament = TournamentStructure.model_validate(payload)
            return self._tournament

    async def listing(self) -> list[Any]:
        """Validated listing entries, fetched once per phase."""
        async with self._listing_lock:
            if self._listing is None:
                self._listing = await self.fetch_listing()
            return self._listing

    async def list_ids(self) -> list[int]:
        return unique_ids(entry.id for entry in await self.listing())

    @abstractmethod
    async def fetch_listing(self) -> list[Any]:
        """Listing entries of this tournament, each with an ``id``."""

    @abstractmethod
    async def fetch_entity(self, entity_id: int) -> dict[str, Any]:
        """Raw Entity* payload for one ID."""

    @abstractmethod
    async def fetch_tournament_stats(self, entity_id: int) -> Any:
        """This person's stats entry for the tournament, or None when absent."""

    async def listed_entry(self, entity_id: int) -> Any:
        for entry in await self.listing():
            if entry.id == entity_id:
                return entry
        return None

    async def collect(self, entity_id: int) -> PersonBundle:
        parts = await collect_required(self.entity, entity_id, {
            "entity": (self.fetch_entity(entity_id), self.payload_model.model_validate),
            "tournament_stats": (
                self.fetch_tournament_stats(entity_id),
                self.stats_model.model_validate,
            ),
            "tournament": (self.tournament(), _same),
        })
        tournament = parts["tournament"]
        return PersonBundle(
            entity_id=entity_id,
            kind=self.kind,
            entity=parts["entity"],
            tournament=tournament,
            season=self.options.season or tournament.season,
            tournament_stats=parts["tournament_stats"],
        )

    def map(self, bundle: PersonBundle) -> dict[str, Any]:
        return PERSON_MAPPERS[bundle.kind](bundle)


class PlayerSync(PersonSync):
    name = "players"
    collection = "players"
    entity = "player"
    kind = "player"
    payload_model = EntityPlayer
    stats_model = TournamentPlayerStats

    async def fetch_listing(self) -> list[Any]:
        payload = await self.client.get_tournament_team_player_list(self.tournament_id)
        roster = TournamentTeamPlayerList.model_validate(payload)
        return [player for team in roster.teams for player in team.players]

    async def fetch_entity(self, entity_id: int) -> dict[str, Any]:
        return await self.client.get_entity_player(entity_id)

    async def fetch_tournament_stats(self, entity_id: int) -> dict[str, Any] | None:
        payload = await self.client.get_tournament_player_stats(self.tournament_id, entity_id)
        entries = payload if isinstance(payload, list) else [payload]
        for entry in entries:
            if isinstance(entry, dict) and entry.get("id") == entity_id:
                return entry
        return None


class CoachSync(PersonSync):
    name = "coaches"
    collection = "coaches"
    entity = "coach"
    kind = "coach"
    payload_model = EntityCoach
    stats_model = TournamentCoach

    async def fetch_listing(self) -> list[Any]:
        return parse_coach_list(
            await self.client.get_tournament_coach_list(self.tournament_id) or []
        )

    async def fetch_entity(self, entity_id: int) -> dict[str, Any]:
        return await self.client.get_entity_coach(entity_id)

    async def fetch_tournament_stats(self, entity_id: int) -> TournamentCoach | None:
        return await self.listed_entry(entity_id)


class RefereeSync(PersonSync):
    name = "referees"
    collection = "referees"
    entity = "referee"
    kind = "referee"
    payload_model = EntityReferee
    stats_model = TournamentReferee

    async def fetch_listing(self) -> list[Any]:
        payload = await self.client.get_tournament_referee_list(self.tournament_id)
        return TournamentRefereeList.model_validate(payload).referees

    async def fetch_entity(self, entity_id: int) -> dict[str, Any]:
        return await self.client.get_entity_referee(entity_id)

    async def fetch_tournament_stats(self, entity_id: int) -> TournamentReferee | None:
        return await self.listed_entry(entity_id)
