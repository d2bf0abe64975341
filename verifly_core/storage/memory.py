"""
In-Memory Repository
====================
Dict-backed repositories for development and testing.

For development and testing only. Use the SQLAlchemy store in production.
"""

import asyncio
import copy
from dataclasses import dataclass
from typing import Any, Callable, Dict, Generic, List, Optional, Tuple, TypeVar

from ..models import RequestState
from .base import (
    UQ_ACTIVE_REQUEST,
    UQ_ACTIVE_SERVICE,
    UQ_APPLICATION_NAME,
    StaleWrite,
    Store,
    UniqueViolation,
)

T = TypeVar("T")


@dataclass(frozen=True)
class UniqueConstraint:
    """Uniqueness over ``fields`` among rows accepted by ``where``."""
    name: str
    fields: Tuple[str, ...]
    where: Optional[Callable[[Any], bool]] = None

    def applies_to(self, row: Any) -> bool:
        return self.where is None or self.where(row)

    def key(self, row: Any) -> Tuple[Any, ...]:
        return tuple(getattr(row, f) for f in self.fields)


class InMemoryRepository(Generic[T]):
    """
    Repository storing deep copies of dataclass entities keyed by ``id``.

    Writes are serialized by a lock so a uniqueness or version check and
    the write that follows it cannot interleave with another writer.
    """

    def __init__(
        self,
        entity: str,
        constraints: Tuple[UniqueConstraint, ...] = (),
        versioned: bool = False,
    ):
        self.entity = entity
        self.constraints = constraints
        self.versioned = versioned
        self._rows: Dict[str, T] = {}
        self._lock = asyncio.Lock()

    @staticmethod
    def _matches(row: Any, criteria: Dict[str, Any]) -> bool:
        return all(getattr(row, k) == v for k, v in criteria.items())

    def _check_constraints(self, entity: T) -> None:
        for constraint in self.constraints:
            if not constraint.applies_to(entity):
                continue
            key = constraint.key(entity)
            for row_id, row in self._rows.items():
                if row_id == entity.id:
                    continue
                if constraint.applies_to(row) and constraint.key(row) == key:
                    raise UniqueViolation(constraint.name, self.entity)

    async def find_one(self, **criteria: Any) -> Optional[T]:
        for row in self._rows.values():
            if self._matches(row, criteria):
                return copy.deepcopy(row)
        return None

    async def find_all(self, **criteria: Any) -> List[T]:
        return [
            copy.deepcopy(row)
            for row in self._rows.values()
            if self._matches(row, criteria)
        ]

    async def create(self, entity: T) -> T:
        async with self._lock:
            if entity.id in self._rows:
                raise UniqueViolation(f"pk_{self.entity}", self.entity)
            self._check_constraints(entity)
            self._rows[entity.id] = copy.deepcopy(entity)
        return entity

    async def save(self, entity: T) -> T:
        async with self._lock:
            self._check_constraints(entity)
            if self.versioned:
                stored = self._rows.get(entity.id)
                if stored is None or stored.version != entity.version:
                    raise StaleWrite(self.entity, entity.id, entity.version)
                entity.version += 1
            self._rows[entity.id] = copy.deepcopy(entity)
        return entity

    def __len__(self) -> int:
        return len(self._rows)


def create_memory_store() -> Store:
    """Build a Store of in-memory repositories with the standard constraints."""
    return Store(
        applications=InMemoryRepository(
            "application",
            (UniqueConstraint(UQ_APPLICATION_NAME, ("name",)),),
        ),
        services=InMemoryRepository(
            "service",
            (
                UniqueConstraint(
                    UQ_ACTIVE_SERVICE,
                    ("application_id", "service_type"),
                    where=lambda row: row.is_active,
                ),
            ),
        ),
        requests=InMemoryRepository(
            "verification_request",
            (
                UniqueConstraint(
                    UQ_ACTIVE_REQUEST,
                    ("application_id", "service_id", "user_identity"),
                    where=lambda row: row.state is RequestState.ACTIVE,
                ),
            ),
            versioned=True,
        ),
    )
