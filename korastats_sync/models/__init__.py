from korastats_sync.models.tournament import Tournament
from korastats_sync.models.team import Team
from korastats_sync.models.match import Match
from korastats_sync.models.player import Player
from korastats_sync.models.coach import Coach
from korastats_sync.models.referee import Referee
from korastats_sync.models.standings import Standings
from korastats_sync.models.sync_log import SyncLog, SyncLogStatus, SyncType

# Collection name -> document model, used by the repository and purge tooling
DOCUMENT_MODELS = {
    "tournaments": Tournament,
    "teams": Team,
    "matches": Match,
    "players": Player,
    "coaches": Coach,
    "referees": Referee,
    "standings": Standings,
}

__all__ = [
    "Tournament",
    "Team",
    "Match",
    "Player",
    "Coach",
    "Referee",
    "Standings",
    "SyncLog",
    "SyncLogStatus",
    "SyncType",
    "DOCUMENT_MODELS",
]
