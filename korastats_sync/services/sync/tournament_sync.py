"""
Tournament phase.

Lists the configured tournaments, then collects structure, match list and
stat types for each. Top scorers and assisters are an optional enrichment,
fetched only when a matching stat type exists.
"""
import logging
from typing import Any

from korastats_sync.schemas.bundles import TournamentBundle
from korastats_sync.schemas.korastats import (
    MatchListItem,
    StatType,
    TopStatPlayer,
    TournamentListItem,
    TournamentStructure,
)
from korastats_sync.services.errors import SyncError
from korastats_sync.services.mappers.helpers import find_stat_type
from korastats_sync.services.mappers.tournament import map_tournament
from korastats_sync.services.sync.base import PhaseStrategy, collect_required, list_parser

logger = logging.getLogger(__name__)

GOAL_KEYWORDS = ("Goals Scored", "goal")
ASSIST_KEYWORDS = ("Assists", "assist")

parse_tournament_list = list_parser(TournamentListItem)
parse_match_list = list_parser(MatchListItem)
parse_stat_types = list_parser(StatType)
parse_top_players = list_parser(TopStatPlayer)


class TournamentSync(PhaseStrategy):
    name = "tournaments"
    collection = "tournaments"
    entity = "tournament"
    per_tournament = False

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self._listing: dict[int, TournamentListItem] = {}

    async def list_ids(self) -> list[int]:
        """Configured tournament IDs that the provider lists."""
        listing = parse_tournament_list(await self.client.get_tournament_list() or [])
        self._listing = {item.id: item for item in listing}

        wanted = self.options.resolved_tournament_ids()
        unknown = [tid for tid in wanted if tid not in self._listing]
        if unknown:
            logger.warning(f"Tournaments not listed by provider: {unknown}")
        return [tid for tid in wanted if tid in self._listing]

    async def _top_players(
        self, tournament_id: int, stat_type: StatType | None
    ) -> tuple[TopStatPlayer, ...]:
        if stat_type is None:
            return ()
        try:
            payload = await self.client.get_season_player_top_stats(tournament_id, stat_type.id)
            return tuple(parse_top_players(payload or []))
        except (SyncError, ValueError) as e:
            logger.warning(
                f"Top players ({stat_type.name}) unavailable for tournament {tournament_id}: {e}"
            )
            return ()

    async def collect(self, entity_id: int) -> TournamentBundle:
        parts = await collect_required(self.entity, entity_id, {
            "structure": (
                self.client.get_tournament_structure(entity_id),
                TournamentStructure.model_validate,
            ),
            "match_list": (self.client.get_tournament_match_list(entity_id), parse_match_list),
            "stat_types": (self.client.get_list_stat_types(), parse_stat_types),
        })

        stat_types = parts["stat_types"]
        return TournamentBundle(
            tournament_id=entity_id,
            structure=parts["structure"],
            matches=tuple(parts["match_list"]),
            stat_types=tuple(stat_types),
            listing=self._listing.get(entity_id),
            top_scorers=await self._top_players(
                entity_id, find_stat_type(stat_types, GOAL_KEYWORDS)
            ),
            top_assisters=await self._top_players(
                entity_id, find_stat_type(stat_types, ASSIST_KEYWORDS)
            ),
        )

    def map(self, bundle: TournamentBundle) -> dict[str, Any]:
        return map_tournament(bundle)
