"""Match phase: every match of a tournament, eight sub-resources each."""
import logging
from typing import Any

from korastats_sync.schemas.bundles import MatchBundle
from korastats_sync.schemas.korastats import (
    MatchFormation,
    MatchListItem,
    MatchPlayersStats,
    MatchPossessionTimeline,
    MatchSquad,
    MatchSummary,
    MatchTimeline,
    MatchVideo,
)
from korastats_sync.services.mappers.match import map_match
from korastats_sync.services.sync.base import PhaseStrategy, collect_required, list_parser

logger = logging.getLogger(__name__)

parse_match_list = list_parser(MatchListItem)

MATCH_SUB_RESOURCES = (
    "summary",
    "squad",
    "timeline",
    "formation_home",
    "formation_away",
    "players_stats",
    "possession",
    "video",
)


class MatchSync(PhaseStrategy):
    name = "matches"
    collection = "matches"
    entity = "match"

    async def list_ids(self) -> list[int]:
        matches = parse_match_list(
            await self.client.get_tournament_match_list(self.tournament_id) or []
        )
        return [m.match_id for m in matches]

    async def collect(self, entity_id: int) -> MatchBundle:
        client = self.client
        parts = await collect_required(self.entity, entity_id, {
            "summary": (client.get_match_summary(entity_id), MatchSummary.model_validate),
            "squad": (client.get_match_squad(entity_id), MatchSquad.model_validate),
            "timeline": (client.get_match_timeline(entity_id), MatchTimeline.model_validate),
            "formation_home": (
                client.get_match_formation(entity_id, "home"),
                MatchFormation.model_validate,
            ),
            "formation_away": (
                client.get_match_formation(entity_id, "away"),
                MatchFormation.model_validate,
            ),
            "players_stats": (
                client.get_match_players_stats(entity_id),
                MatchPlayersStats.model_validate,
            ),
            "possession": (
                client.get_match_possession_timeline(entity_id),
                MatchPossessionTimeline.model_validate,
            ),
            "video": (client.get_match_video(entity_id), MatchVideo.model_validate),
        })
        return MatchBundle(match_id=entity_id, tournament_id=self.tournament_id, **parts)

    def map(self, bundle: MatchBundle) -> dict[str, Any]:
        return map_match(bundle)
