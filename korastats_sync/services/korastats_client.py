import asyncio
import httpx
import logging
from typing import Any

from tenacity import (
    retry,
    stop_after_attempt,
    wait_exponential,
    retry_if_exception_type,
    before_sleep_log,
)

from korastats_sync.config import get_settings
from korastats_sync.services.errors import ProviderEnvelopeError, ProviderRequestError

settings = get_settings()
logger = logging.getLogger(__name__)

# Exceptions to retry on
RETRYABLE_EXCEPTIONS = (
    httpx.ConnectTimeout,
    httpx.ReadTimeout,
    httpx.ConnectError,
    httpx.RemoteProtocolError,
)

SUCCESS_RESULT = "Success"

IMAGE_PATHS = {
    "player": "players",
    "coach": "coaches",
    "referee": "referees",
    "club": "club",
}


def image_url(kind: str, entity_id: int | None) -> str:
    """Build the Korastats CDN image URL for an entity (no request is made)."""
    if not entity_id:
        return ""
    path = IMAGE_PATHS.get(kind, kind)
    return f"{settings.korastats_image_base_url}/{path}/{entity_id}.png"


def unwrap_envelope(endpoint: str, payload: Any) -> Any:
    """
    Return ``data`` from a ``{result, message, data}`` envelope.

    Raises:
        ProviderEnvelopeError: result is not "Success" or data is absent
    """
    if not isinstance(payload, dict):
        raise ProviderEnvelopeError(f"{endpoint}: response is not an envelope", endpoint=endpoint)
    result = payload.get("result")
    if result != SUCCESS_RESULT:
        message = payload.get("message") or "no message"
        raise ProviderEnvelopeError(f"{endpoint}: result={result!r} ({message})", endpoint=endpoint)
    data = payload.get("data")
    if data is None:
        raise ProviderEnvelopeError(f"{endpoint}: envelope has no data", endpoint=endpoint)
    return data


def unwrap_entity(endpoint: str, payload: Any) -> dict[str, Any]:
    """Return ``root.object`` from an Entity* response."""
    root = payload.get("root") if isinstance(payload, dict) else None
    obj = root.get("object") if isinstance(root, dict) else None
    if not obj:
        raise ProviderEnvelopeError(f"{endpoint}: response has no root.object", endpoint=endpoint)
    return obj


class KorastatsClient:
    """Client for Korastats API (https://korastats.pro/pro/api.php)"""

    def __init__(
        self,
        api_key: str | None = None,
        base_url: str | None = None,
        timeout: float | None = None,
        max_concurrency: int | None = None,
    ):
        self.api_key = api_key if api_key is not None else settings.korastats_api_key
        self.base_url = base_url or settings.korastats_api_url
        self.timeout = timeout or settings.korastats_timeout_seconds
        self._semaphore = asyncio.Semaphore(max_concurrency or settings.korastats_max_concurrency)

    def base_params(self) -> dict[str, str]:
        return {
            "key": self.api_key,
            "module": "api",
            "version": settings.korastats_api_version,
            "response": "json",
            "lang": settings.korastats_language,
        }

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=30),
        retry=retry_if_exception_type(RETRYABLE_EXCEPTIONS),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        reraise=True,
    )
    async def _make_request(self, params: dict[str, Any], timeout: float) -> httpx.Response:
        """
        Make a GET request with automatic retry on transient failures.

        Retries up to 3 times with exponential backoff (2s, 4s, 8s...)
        on connection timeouts, read timeouts, and connection errors.
        """
        async with httpx.AsyncClient(follow_redirects=True) as client:
            response = await client.get(self.base_url, params=params, timeout=timeout)
            response.raise_for_status()
            return response

    async def _get_json(self, endpoint: str, params: dict[str, Any]) -> Any:
        query = {**self.base_params(), "api": endpoint}
        query.update({key: value for key, value in params.items() if value is not None})

        async with self._semaphore:
            logger.debug(f"Korastats request {endpoint} {params}")
            try:
                response = await self._make_request(query, self.timeout)
            except httpx.HTTPError as e:
                raise ProviderRequestError(
                    f"{endpoint} request failed: {e!r}", endpoint=endpoint
                ) from e

        try:
            return response.json()
        except ValueError as e:
            raise ProviderEnvelopeError(f"{endpoint}: invalid JSON", endpoint=endpoint) from e

    async def request(self, endpoint: str, **params: Any) -> Any:
        """Call an endpoint and return the unwrapped ``data`` member."""
        payload = await self._get_json(endpoint, params)
        return unwrap_envelope(endpoint, payload)

    async def request_entity(self, endpoint: str, **params: Any) -> dict[str, Any]:
        """Call an Entity* endpoint and return ``root.object``."""
        payload = await self._get_json(endpoint, params)
        return unwrap_entity(endpoint, payload)

    # ==================== Tournaments ====================

    async def get_tournament_list(self, country_id: int | None = None) -> list[dict[str, Any]]:
        return await self.request("TournamentList", country_id=country_id)

    async def get_tournament_structure(self, tournament_id: int) -> dict[str, Any]:
        return await self.request("TournamentStructure", tournament_id=tournament_id)

    async def get_tournament_group_standings(
        self, tournament_id: int, stage_id: int
    ) -> dict[str, Any]:
        return await self.request(
            "TournamentGroupStandings", tournament_id=tournament_id, stage_id=stage_id
        )

    async def get_tournament_match_list(self, tournament_id: int) -> list[dict[str, Any]]:
        return await self.request("TournamentMatchList", tournament_id=tournament_id)

    async def get_list_stat_types(self) -> list[dict[str, Any]]:
        return await self.request("ListStatTypes")

    async def get_season_player_top_stats(
        self, season_id: int, stat_type_id: int, sort: str = "desc"
    ) -> list[dict[str, Any]]:
        return await self.request(
            "SeasonPlayerTopStats", season_id=season_id, stat_type_id=stat_type_id, sort=sort
        )

    # ==================== Matches ====================

    async def get_match_summary(self, match_id: int) -> dict[str, Any]:
        return await self.request("MatchSummary", match_id=match_id)

    async def get_match_squad(self, match_id: int) -> dict[str, Any]:
        return await self.request("MatchSquad", match_id=match_id)

    async def get_match_timeline(self, match_id: int) -> dict[str, Any]:
        return await self.request("MatchTimeline", match_id=match_id)

    async def get_match_formation(self, match_id: int, side: str) -> dict[str, Any]:
        """Get formation for one side ("home" or "away")."""
        return await self.request("MatchFormation", match_id=match_id, side=side)

    async def get_match_players_stats(self, match_id: int) -> dict[str, Any]:
        return await self.request("MatchPlayersStats", match_id=match_id)

    async def get_match_possession_timeline(self, match_id: int) -> dict[str, Any]:
        return await self.request("MatchPossessionTimeline", match_id=match_id)

    async def get_match_video(self, match_id: int) -> dict[str, Any]:
        return await self.request("MatchVideo", match_id=match_id)

    # ==================== Teams ====================

    async def get_tournament_team_list(self, tournament_id: int) -> dict[str, Any]:
        return await self.request("TournamentTeamList", tournament_id=tournament_id)

    async def get_tournament_team_stats(self, tournament_id: int, team_id: int) -> dict[str, Any]:
        return await self.request(
            "TournamentTeamStats", tournament_id=tournament_id, team_id=team_id
        )

    async def get_team_info(self, team_id: int) -> dict[str, Any]:
        return await self.request("TeamInfo", team_id=team_id)

    async def get_entity_club(self, club_id: int) -> dict[str, Any]:
        return await self.request_entity("EntityClub", club_id=club_id)

    async def get_tournament_team_player_list(self, tournament_id: int) -> dict[str, Any]:
        return await self.request("TournamentTeamPlayerList", tournament_id=tournament_id)

    # ==================== Players, coaches, referees ====================

    async def get_entity_player(self, player_id: int) -> dict[str, Any]:
        return await self.request_entity("EntityPlayer", player_id=player_id)

    async def get_tournament_player_stats(
        self, tournament_id: int, player_id: int
    ) -> list[dict[str, Any]]:
        return await self.request(
            "TournamentPlayerStats", tournament_id=tournament_id, player_id=player_id
        )

    async def get_tournament_coach_list(self, tournament_id: int) -> list[dict[str, Any]]:
        return await self.request("TournamentCoachList", tournament_id=tournament_id)

    async def get_entity_coach(self, coach_id: int) -> dict[str, Any]:
        return await self.request_entity("EntityCoach", coach_id=coach_id)

    async def get_tournament_referee_list(self, tournament_id: int) -> dict[str, Any]:
        return await self.request("TournamentRefereeList", tournament_id=tournament_id)

    async def get_entity_referee(self, referee_id: int) -> dict[str, Any]:
        return await self.request_entity("EntityReferee", referee_id=referee_id)


# Singleton instance
_korastats_client: KorastatsClient | None = None


def get_korastats_client() -> KorastatsClient:
    global _korastats_client
    if _korastats_client is None:
        _korastats_client = KorastatsClient()
    return _korastats_client
