"""
Base class and utilities for phase strategies.

A phase strategy supplies the three entity-specific steps the orchestrator
needs: enumerate the IDs of a phase, collect a complete bundle for one ID,
and map that bundle to a canonical document.
"""
import asyncio
import logging
from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable, Iterable, Iterator, Mapping, Sequence
from typing import Any, TypeVar

from pydantic import TypeAdapter, ValidationError

from korastats_sync.schemas.sync import SyncOptions
from korastats_sync.services.errors import IncompleteBundleError
from korastats_sync.services.korastats_client import KorastatsClient, get_korastats_client

logger = logging.getLogger(__name__)

T = TypeVar("T")

# name -> (pending provider call, parser of the raw payload)
SubFetches = Mapping[str, tuple[Awaitable[Any], Callable[[Any], Any]]]


# ==================== Helpers ====================

def chunked(items: Sequence[T], size: int) -> Iterator[list[T]]:
    """Split ``items`` into contiguous batches of at most ``size``."""
    if size < 1:
        raise ValueError("batch size must be >= 1")
    for start in range(0, len(items), size):
        yield list(items[start:start + size])


def unique_ids(ids: Iterable[int]) -> list[int]:
    """Drop duplicate and non-positive IDs, keeping first-seen order."""
    seen: set[int] = set()
    result = []
    for entity_id in ids:
        if entity_id and entity_id > 0 and entity_id not in seen:
            seen.add(entity_id)
            result.append(entity_id)
    return result


def list_parser(model: type[T]) -> Callable[[Any], list[T]]:
    """Parser validating a JSON array into ``list[model]``."""
    adapter = TypeAdapter(list[model])
    return adapter.validate_python


def is_empty(payload: Any) -> bool:
    return payload is None or (isinstance(payload, (dict, list, tuple, str)) and not payload)


async def collect_required(entity: str, entity_id: int, fetches: SubFetches) -> dict[str, Any]:
    """
    Run every required sub-fetch concurrently and validate the payloads.

    A sub-resource is missing when its call raised, returned an empty
    payload, or failed validation. Nothing is returned unless every
    sub-resource is present.

    Raises:
        IncompleteBundleError: naming every missing sub-resource
    """
    names = list(fetches)
    results = await asyncio.gather(
        *(fetches[name][0] for name in names), return_exceptions=True
    )

    parsed: dict[str, Any] = {}
    missing: list[str] = []
    for name, result in zip(names, results):
        if isinstance(result, BaseException):
            if not isinstance(result, Exception):
                raise result
            logger.debug(
                f"{entity} {entity_id}: {name} failed: {result}",
                extra={"entity": entity, "item_id": entity_id},
            )
            missing.append(name)
            continue
        if is_empty(result):
            logger.debug(f"{entity} {entity_id}: {name} is empty")
            missing.append(name)
            continue
        try:
            parsed[name] = fetches[name][1](result)
        except ValidationError as e:
            logger.debug(f"{entity} {entity_id}: {name} failed validation: {e}")
            missing.append(name)

    if missing:
        raise IncompleteBundleError(entity, entity_id, missing)
    return parsed


# ==================== Phase strategy ====================

class PhaseStrategy(ABC):
    """
    Entity-specific steps of one sync phase.

    Subclasses set ``name`` (registry key), ``collection`` (document table)
    and ``entity`` (label used in error strings).
    """

    name: str
    collection: str
    entity: str
    per_tournament: bool = True

    def __init__(
        self,
        client: KorastatsClient | None = None,
        options: SyncOptions | None = None,
        tournament_id: int | None = None,
    ):
        self.client = client or get_korastats_client()
        self.options = options or SyncOptions()
        self.tournament_id = tournament_id

    @property
    def key(self) -> str:
        """Phase key used in results and sync logs ("matches:840")."""
        if self.tournament_id is None:
            return self.name
        return f"{self.name}:{self.tournament_id}"

    def describe(self) -> str:
        if self.tournament_id is None:
            return f"Syncing {self.name}"
        return f"Syncing {self.name} for tournament {self.tournament_id}"

    @abstractmethod
    async def list_ids(self) -> list[int]:
        """Enumerate the phase's entity IDs; any exception aborts the phase."""

    @abstractmethod
    async def collect(self, entity_id: int) -> Any:
        """Return a complete bundle or raise IncompleteBundleError."""

    @abstractmethod
    def map(self, bundle: Any) -> dict[str, Any]:
        """Pure transform from a bundle to a canonical document."""
