"""
Sync error taxonomy.

Item-level errors (``ItemSyncError`` subclasses) are recovered by the
orchestrator into the phase progress; ``PhaseFatalError`` and
``SyncLockError`` propagate to the caller.
"""
from collections.abc import Iterable


class SyncError(Exception):
    """Base class for every error raised by the sync pipeline."""

    def __init__(self, message: str, entity: str | None = None, entity_id: int | None = None):
        super().__init__(message)
        self.message = message
        self.entity = entity
        self.entity_id = entity_id

    @property
    def kind(self) -> str:
        return type(self).__name__

    def describe(self) -> str:
        """Human-readable line stored in the progress error list."""
        return f"{self.kind} {self.entity or '?'} {self.entity_id}: {self.message}"


# ==================== Item-level (recovered) ====================

class ItemSyncError(SyncError):
    """Failure of a single entity; recorded and skipped."""


class TransientProviderError(ItemSyncError):
    """Network, timeout or non-success envelope from one provider sub-fetch."""

    def __init__(
        self,
        message: str,
        endpoint: str | None = None,
        entity: str | None = None,
        entity_id: int | None = None,
    ):
        super().__init__(message, entity, entity_id)
        self.endpoint = endpoint


class ProviderRequestError(TransientProviderError):
    """The HTTP request failed after transport retries were exhausted."""


class ProviderEnvelopeError(TransientProviderError):
    """The envelope reported ``result != "Success"`` or carried no data."""


class IncompleteBundleError(ItemSyncError):
    """One or more required sub-resources were missing for an entity."""

    def __init__(self, entity: str, entity_id: int, missing: Iterable[str]):
        self.missing = tuple(missing)
        super().__init__(
            f"missing sub-resources: {', '.join(self.missing)}",
            entity,
            entity_id,
        )


class MappingError(ItemSyncError):
    """A validated bundle was structurally impossible to map."""


class PersistenceError(ItemSyncError):
    """The merge-upsert write failed."""


# ==================== Propagated ====================

class PhaseFatalError(SyncError):
    """A phase could not enumerate its work items."""

    def __init__(self, phase: str, message: str):
        super().__init__(message, entity=phase)
        self.phase = phase

    def describe(self) -> str:
        return f"{self.kind} {self.phase}: {self.message}"


class SyncLockError(SyncError):
    """Another full sync already holds the lock."""
