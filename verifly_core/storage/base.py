"""
Repository Contract
===================
Storage interface consumed by the core components.
"""

from dataclasses import dataclass
from typing import Any, List, Optional, Protocol, TypeVar

from ..models import Application, ServiceSubscription, VerificationRequest

T = TypeVar("T")

# Constraint names shared by every backend
UQ_APPLICATION_NAME = "uq_application_name"
UQ_ACTIVE_SERVICE = "uq_active_service_type"
UQ_ACTIVE_REQUEST = "uq_active_request_identity"


class UniqueViolation(Exception):
    """Raised by a repository when a write breaks a uniqueness constraint."""

    def __init__(self, constraint: str, entity: str):
        self.constraint = constraint
        self.entity = entity
        super().__init__(f"{entity} violates unique constraint {constraint}")


class StaleWrite(Exception):
    """Raised by ``save`` when the stored row changed since the entity was read."""

    def __init__(self, entity: str, entity_id: str, version: int):
        self.entity = entity
        self.entity_id = entity_id
        self.version = version
        super().__init__(f"{entity} {entity_id} was modified after version {version} was read")


class Repository(Protocol[T]):
    """
    Async repository for one entity type.

    Criteria are attribute equality matches; ``find_one`` returns None
    when nothing matches. Entities returned are detached copies, so
    changes only persist through ``save``.

    Repositories of versioned entities (verification requests) make
    ``save`` conditional: it succeeds only while the stored version
    equals the entity's, bumps ``version`` on the entity, and otherwise
    raises StaleWrite.
    """

    async def find_one(self, **criteria: Any) -> Optional[T]:
        ...

    async def find_all(self, **criteria: Any) -> List[T]:
        ...

    async def create(self, entity: T) -> T:
        ...

    async def save(self, entity: T) -> T:
        ...


@dataclass
class Store:
    """The three repositories the core depends on."""
    applications: Repository[Application]
    services: Repository[ServiceSubscription]
    requests: Repository[VerificationRequest]
