"""
Sync pipeline.

Phases:
- TournamentSync: configured tournaments
- TeamSync: teams of a tournament, with per-tournament stats
- MatchSync: matches of a tournament (eight sub-resources each)
- PlayerSync / CoachSync / RefereeSync: people of a tournament
- StandingsSync: standings snapshot of a tournament
- SyncOrchestrator: batches phases and tracks their progress
"""
from korastats_sync.services.sync.base import PhaseStrategy, chunked, collect_required, unique_ids
from korastats_sync.services.sync.progress import ProgressTracker
from korastats_sync.services.sync.reconcile import POLICIES, MergePolicy, reconcile
from korastats_sync.services.sync.repository import DocumentRepository, UpsertResult
from korastats_sync.services.sync.sync_log import SyncLogService
from korastats_sync.services.sync.tournament_sync import TournamentSync
from korastats_sync.services.sync.team_sync import TeamSync
from korastats_sync.services.sync.match_sync import MatchSync
from korastats_sync.services.sync.entity_sync import CoachSync, PlayerSync, RefereeSync
from korastats_sync.services.sync.standings_sync import StandingsSync
from korastats_sync.services.sync.orchestrator import PHASES, SyncOrchestrator

__all__ = [
    # Base
    "PhaseStrategy",
    "chunked",
    "collect_required",
    "unique_ids",
    # Progress and persistence
    "ProgressTracker",
    "MergePolicy",
    "POLICIES",
    "reconcile",
    "DocumentRepository",
    "UpsertResult",
    "SyncLogService",
    # Phases
    "TournamentSync",
    "TeamSync",
    "MatchSync",
    "PlayerSync",
    "CoachSync",
    "RefereeSync",
    "StandingsSync",
    # Orchestrator
    "PHASES",
    "SyncOrchestrator",
]
