from korastats_sync.schemas.bundles import (
    MatchBundle,
    PersonBundle,
    StandingsBundle,
    TeamBundle,
    TournamentBundle,
)
from korastats_sync.schemas.sync import (
    ItemOutcome,
    ItemStatus,
    PhaseResult,
    PhaseState,
    ProgressSnapshot,
    SyncOptions,
)

__all__ = [
    # Bundles
    "TournamentBundle",
    "TeamBundle",
    "MatchBundle",
    "PersonBundle",
    "StandingsBundle",
    # Sync
    "SyncOptions",
    "PhaseState",
    "ItemStatus",
    "ItemOutcome",
    "ProgressSnapshot",
    "PhaseResult",
]
