"""Declarative table specifications and live schema reconciliation."""

from __future__ import annotations

from .columns import ColumnDescriptor, is_lossy_change, merge_descriptors
from .introspection import InformationSchemaIntrospector
from .locking import (
    DEFAULT_LOCK_TIMEOUT,
    InMemorySchemaLock,
    ISchemaLock,
    MySQLAdvisoryLock,
)
from .plan import (
    AddColumn,
    AddFulltext,
    AlterEngine,
    DropColumn,
    DropFulltext,
    ModifyColumn,
    SyncIntent,
    SyncPlan,
    compute_sync_plan,
)
from .synchronizer import SchemaSynchronizer, SyncReport
from .table import AUTO_FIELDS, DEFAULT_ENGINE, TableSpec

__all__ = [
    "AUTO_FIELDS",
    "AddColumn",
    "AddFulltext",
    "AlterEngine",
    "ColumnDescriptor",
    "DEFAULT_ENGINE",
    "DEFAULT_LOCK_TIMEOUT",
    "DropColumn",
    "DropFulltext",
    "ISchemaLock",
    "InMemorySchemaLock",
    "InformationSchemaIntrospector",
    "ModifyColumn",
    "MySQLAdvisoryLock",
    "SchemaSynchronizer",
    "SyncIntent",
    "SyncPlan",
    "SyncReport",
    "TableSpec",
    "compute_sync_plan",
    "is_lossy_change",
    "merge_descriptors",
]
