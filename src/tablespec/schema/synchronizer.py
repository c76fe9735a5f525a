"""
SchemaSynchronizer — reconcile live tables with their specifications.

``sync`` runs under a per-table :class:`ISchemaLock`, introspects the
live columns and engine, computes a :class:`SyncPlan` and applies it in
order.  The first failing statement aborts the rest of the plan with a
:class:`SchemaSyncError`.  A failure caused by a concurrent writer having
already applied the change (duplicate column, missing column on drop,
...) is retried once against a freshly introspected plan; nothing else
is retried.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from ..exceptions import SchemaSyncError, TableSpecError
from . import ddl
from .introspection import InformationSchemaIntrospector
from .locking import DEFAULT_LOCK_TIMEOUT, InMemorySchemaLock
from .plan import SyncIntent, SyncPlan, compute_sync_plan

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from ..execution.ports import IQueryExecutor, ISchemaIntrospector
    from .locking import ISchemaLock
    from .table import TableSpec

    SeedFn = Callable[[dict[str, Any]], Awaitable[Any]]

logger = logging.getLogger("tablespec.sync")

# MySQL errors raised when another writer already applied the same DDL.
_LOST_RACE_ERRNOS = frozenset({1054, 1060, 1061, 1091})
_LOST_RACE_RE = re.compile(
    r"Duplicate column name|Duplicate key name|Unknown column|check that .* exists",
    re.IGNORECASE,
)


@dataclass
class SyncReport:
    """What a synchronisation pass did."""

    table: str
    executed: list[SyncIntent] = field(default_factory=list)
    seeded: int = 0
    retried: bool = False

    @property
    def changed(self) -> bool:
        return bool(self.executed)


def _is_lost_race(error: SchemaSyncError) -> bool:
    cause: BaseException | None = error.cause
    while cause is not None:
        orig = getattr(cause, "orig", None)
        args = getattr(orig, "args", None) or getattr(cause, "args", ())
        if args and isinstance(args[0], int) and args[0] in _LOST_RACE_ERRNOS:
            return True
        if _LOST_RACE_RE.search(str(cause)):
            return True
        cause = cause.__cause__ or getattr(cause, "cause", None)
    return False


class SchemaSynchronizer:
    """
    Creates and reconciles tables described by :class:`TableSpec`.

    Args:
        executor: Runs DDL and introspection statements.
        introspector: Live structure source; defaults to an
            :class:`InformationSchemaIntrospector` over ``executor``.
        lock: Single-writer lock; defaults to a per-process
            :class:`InMemorySchemaLock`.  Use :class:`MySQLAdvisoryLock`
            when several processes may synchronise the same table.
        allow_lossy: Apply column changes that can lose data instead of
            raising :class:`SchemaAmbiguityError`.
        lock_timeout: Seconds to wait for the lock.
    """

    def __init__(
        self,
        executor: IQueryExecutor,
        introspector: ISchemaIntrospector | None = None,
        *,
        lock: ISchemaLock | None = None,
        allow_lossy: bool = False,
        lock_timeout: float = DEFAULT_LOCK_TIMEOUT,
    ) -> None:
        self._executor = executor
        self._introspector = introspector or InformationSchemaIntrospector(executor)
        self._lock = lock or InMemorySchemaLock()
        self.allow_lossy = allow_lossy
        self.lock_timeout = lock_timeout

    async def create(self, spec: TableSpec) -> None:
        """``CREATE TABLE IF NOT EXISTS``; a no-op when the table exists."""
        statement = ddl.create_table(spec)
        logger.info("Ensuring table %s exists", spec.table)
        await self._executor.execute(statement)

    async def plan(self, spec: TableSpec) -> SyncPlan:
        """Introspect the live table and compute the plan without applying it."""
        columns = await self._introspector.columns(spec.database, spec.table)
        engine = await self._introspector.engine(spec.database, spec.table)
        return compute_sync_plan(spec, columns, engine, allow_lossy=self.allow_lossy)

    async def sync(
        self,
        spec: TableSpec,
        *,
        seed: SeedFn | None = None,
    ) -> SyncReport:
        """
        Reconcile the live table with ``spec``, then apply seed rows.

        Args:
            spec: The table specification.
            seed: Upsert callable used for ``spec.prefill`` rows; defaults to
                :meth:`Table.save` on a table bound to this synchronizer.

        Raises:
            SchemaSyncError: A DDL statement failed; later intents were not run.
            SchemaAmbiguityError: The plan contains a lossy column change.
            SchemaLockError: The schema lock could not be acquired.
        """
        report = SyncReport(spec.table)
        async with self._lock.hold(spec.table, timeout=self.lock_timeout):
            plan = await self.plan(spec)
            try:
                await self._apply(plan, report)
            except SchemaSyncError as err:
                if not _is_lost_race(err):
                    raise
                logger.warning(
                    "Concurrent schema change on %s (%s); re-introspecting once",
                    spec.table,
                    err.intent.describe(),
                )
                report.retried = True
                await self._apply(await self.plan(spec), report)

        if spec.prefill:
            report.seeded = await self._seed(spec, seed)

        if report.changed:
            logger.info(
                "Synchronised %s: %d change(s)", spec.table, len(report.executed)
            )
        else:
            logger.debug("Table %s already up to date", spec.table)
        return report

    async def ensure(
        self,
        spec: TableSpec,
        *,
        seed: SeedFn | None = None,
    ) -> SyncReport:
        """Create the table if needed, then synchronise it."""
        await self.create(spec)
        return await self.sync(spec, seed=seed)

    async def _apply(self, plan: SyncPlan, report: SyncReport) -> None:
        for intent in plan:
            statement = intent.statement()
            logger.info("Applying %s: %s", intent.describe(), statement)
            try:
                await self._executor.execute(statement)
            except TableSpecError as err:
                logger.error("Aborting schema sync at %s", intent.describe())
                raise SchemaSyncError(intent, statement, err) from err
            report.executed.append(intent)

    async def _seed(self, spec: TableSpec, seed: SeedFn | None) -> int:
        if seed is None:
            from ..table import Table

            seed = Table(spec, self._executor, synchronizer=self).save
        for row in spec.prefill:
            await seed(dict(row))
        logger.debug("Applied %d seed row(s) to %s", len(spec.prefill), spec.table)
        return len(spec.prefill)
