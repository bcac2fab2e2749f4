"""
Standings phase.

Standings need two dependent steps: the tournament structure supplies the
stage ID that TournamentGroupStandings is queried with.
"""
import logging
from typing import Any

from korastats_sync.schemas.bundles import StandingsBundle
from korastats_sync.schemas.korastats import StandingsData, TournamentStructure
from korastats_sync.services.errors import IncompleteBundleError
from korastats_sync.services.mappers.standings import map_standings
from korastats_sync.services.sync.base import PhaseStrategy, collect_required

logger = logging.getLogger(__name__)


class StandingsSync(PhaseStrategy):
    name = "standings"
    collection = "standings"
    entity = "standings"

    async def list_ids(self) -> list[int]:
        return [self.tournament_id]

    async def collect(self, entity_id: int) -> StandingsBundle:
        try:
            first = await collect_required(self.entity, entity_id, {
                "structure": (
                    self.client.get_tournament_structure(entity_id),
                    TournamentStructure.model_validate,
                ),
            })
        except IncompleteBundleError as e:
            raise IncompleteBundleError(self.entity, entity_id, ("structure", "standings")) from e

        structure: TournamentStructure = first["structure"]
        if not structure.stages:
            raise IncompleteBundleError(self.entity, entity_id, ("standings",))

        stage_id = structure.stages[0].id
        second = await collect_required(self.entity, entity_id, {
            "standings": (
                self.client.get_tournament_group_standings(entity_id, stage_id),
                StandingsData.model_validate,
            ),
        })
        return StandingsBundle(
            tournament_id=entity_id,
            structure=structure,
            standings=second["standings"],
        )

    def map(self, bundle: StandingsBundle) -> dict[str, Any]:
        return map_standings(bundle)
