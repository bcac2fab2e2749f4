"""Team phase: one document per team of a tournament."""
import asyncio
import logging
from typing import Any

from korastats_sync.schemas.bundles import TeamBundle
from korastats_sync.schemas.korastats import (
    EntityClub,
    TeamInfo,
    TournamentTeamList,
    TournamentTeamStats,
)
from korastats_sync.services.mappers.team import map_team
from korastats_sync.services.sync.base import PhaseStrategy, collect_required

logger = logging.getLogger(__name__)


class TeamSync(PhaseStrategy):
    name = "teams"
    collection = "teams"
    entity = "team"

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self._team_list: TournamentTeamList | None = None
        self._team_list_lock = asyncio.Lock()

    async def team_list(self) -> TournamentTeamList:
        """Tournament team list, fetched once per phase."""
        async with self._team_list_lock:
            if self._team_list is None:
                payload = await self.client.get_tournament_team_list(self.tournament_id)
                self._team_list = TournamentTeamList.model_validate(payload)
            return self._team_list

    async def list_ids(self) -> list[int]:
        team_list = await self.team_list()
        return [team.id for team in team_list.teams]

    async def collect(self, entity_id: int) -> TeamBundle:
        team_list = await self.team_list()
        parts = await collect_required(self.entity, entity_id, {
            "team_stats": (
                self.client.get_tournament_team_stats(self.tournament_id, entity_id),
                TournamentTeamStats.model_validate,
            ),
            "team_info": (self.client.get_team_info(entity_id), TeamInfo.model_validate),
            "club": (self.client.get_entity_club(entity_id), EntityClub.model_validate),
        })
        return TeamBundle(
            team_id=entity_id,
            tournament_id=self.tournament_id,
            team_stats=parts["team_stats"],
            team_info=parts["team_info"],
            club=parts["club"],
            tournament_name=team_list.tournament,
            season=self.options.season or team_list.season,
        )

    def map(self, bundle: TeamBundle) -> dict[str, Any]:
        return map_team(bundle)
