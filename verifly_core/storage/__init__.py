"""
Storage Module
==============
Repository contract plus in-memory and SQLAlchemy implementations.
"""

from .base import (
    Repository,
    StaleWrite,
    Store,
    UniqueViolation,
    UQ_APPLICATION_NAME,
    UQ_ACTIVE_SERVICE,
    UQ_ACTIVE_REQUEST,
)
from .memory import InMemoryRepository, UniqueConstraint, create_memory_store
from .database import (
    Base,
    SqlAlchemyRepository,
    create_engine,
    create_schema,
    create_sql_store,
)

__all__ = [
    # Contract
    "Repository",
    "StaleWrite",
    "Store",
    "UniqueViolation",
    "UQ_APPLICATION_NAME",
    "UQ_ACTIVE_SERVICE",
    "UQ_ACTIVE_REQUEST",
    # In-memory
    "InMemoryRepository",
    "UniqueConstraint",
    "create_memory_store",
    # SQLAlchemy
    "Base",
    "SqlAlchemyRepository",
    "create_engine",
    "create_schema",
    "create_sql_store",
]
