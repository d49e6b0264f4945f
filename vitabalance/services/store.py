"""
VitaBalance API - Row Store.

Table-oriented access to the relational store: keyed reads, unique-key
upserts (INSERT ... ON CONFLICT), inserts and filtered updates. Rows go in
and come out as plain dicts so callers never hold ORM state across awaits.
Async callers use the ``a``-prefixed methods, which run the blocking call
(retry sleeps included) in a worker thread.

Concurrent writers coordinate only through the unique keys; nothing here
reads before writing to decide whether to insert.
"""

import asyncio
import logging
import time
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Optional

from sqlalchemy import and_, select, update as sa_update
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import DBAPIError, IntegrityError, OperationalError, SQLAlchemyError

from vitabalance.database import Database
from vitabalance.models import (
    MealSelection,
    NutritionalPlan,
    Payment,
    PlanObjective,
    Profile,
    Registration,
    Subscription,
)
from vitabalance.utils.errors import StoreError
from vitabalance.utils.retry import retry_sync

logger = logging.getLogger(__name__)

TABLES = {
    "profiles": Profile,
    "registrations": Registration,
    "meal_selections": MealSelection,
    "payments": Payment,
    "subscriptions": Subscription,
    "nutritional_plans": NutritionalPlan,
    "plan_objectives": PlanObjective,
}

_INSERT_BY_DIALECT = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


def to_store_error(exc: SQLAlchemyError, operation: str) -> StoreError:
    """
    Map a driver exception onto StoreError.

    Connection-level failures are retryable; constraint violations and
    anything else are not.
    """
    orig = getattr(exc, "orig", None)
    code = (
        getattr(orig, "pgcode", None)
        or getattr(orig, "sqlstate", None)
        or type(orig or exc).__name__
    )
    retryable = isinstance(exc, OperationalError) or (
        isinstance(exc, DBAPIError) and exc.connection_invalidated
    )
    if isinstance(exc, IntegrityError):
        retryable = False
    return StoreError(
        message=f"Store {operation} failed",
        code=str(code),
        retryable=retryable,
        detail=str(exc),
    )


class Store:
    """
    Store client used by the reconciler, the poller and the HTTP routes.

    Attributes:
        database: Connection manager.
        retry_attempts: Attempts for transient failures.
        retry_base_delay: First backoff delay in seconds.
    """

    def __init__(
        self,
        database: Database,
        retry_attempts: int = 3,
        retry_base_delay: float = 0.5,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.database = database
        self.retry_attempts = retry_attempts
        self.retry_base_delay = retry_base_delay
        self._sleep = sleep

    @staticmethod
    def _model(table: str):
        try:
            return TABLES[table]
        except KeyError:
            raise ValueError(f"Unknown table: {table}")

    @staticmethod
    def _as_dict(obj) -> Dict[str, Any]:
        return {column.name: getattr(obj, column.name) for column in obj.__table__.columns}

    def _run(self, operation: str, func: Callable[[], Any]) -> Any:
        def attempt():
            try:
                return func()
            except SQLAlchemyError as e:
                error = to_store_error(e, operation)
                logger.error(f"Store {operation} failed: code={error.code} retryable={error.retryable}")
                raise error from e

        return retry_sync(
            attempt,
            attempts=self.retry_attempts,
            base_delay=self.retry_base_delay,
            should_retry=lambda e: isinstance(e, StoreError) and e.retryable,
            operation=f"store {operation}",
            sleep=self._sleep,
        )

    def _select_one(self, db, model, filters: Dict[str, Any], order_by: Optional[str] = None):
        query = select(model).filter_by(**filters)
        if order_by:
            descending = order_by.startswith("-")
            column = getattr(model, order_by.lstrip("-"))
            query = query.order_by(column.desc() if descending else column.asc())
        obj = db.execute(query.limit(1)).scalars().first()
        return self._as_dict(obj) if obj is not None else None

    def get(
        self,
        table: str,
        filters: Dict[str, Any],
        order_by: Optional[str] = None,
    ) -> Optional[Dict[str, Any]]:
        """
        Fetch one row.

        Args:
            table: Table name.
            filters: Column equality filters.
            order_by: Column to order by; prefix with "-" for descending.

        Returns:
            Row dict, or None when nothing matches.
        """
        model = self._model(table)

        def run():
            with self.database.session() as db:
                return self._select_one(db, model, filters, order_by)

        return self._run(f"get {table}", run)

    def upsert(
        self,
        table: str,
        row: Dict[str, Any],
        conflict_key: str,
        *,
        ignore_duplicates: bool = False,
        update_where: Optional[Dict[str, Any]] = None,
    ) -> Optional[Dict[str, Any]]:
        """
        Insert a row or update the one holding the same unique key.

        Args:
            table: Table name.
            row: Column values; must include ``conflict_key``.
            conflict_key: Unique column the conflict is detected on.
            ignore_duplicates: Leave an existing row untouched.
            update_where: Column equality conditions the existing row must
                meet for the update to apply (e.g. ``{"status": "pending"}``).

        Returns:
            The stored row after the statement, whichever writer won.
        """
        model = self._model(table)
        columns = model.__table__.c

        def run():
            with self.database.session() as db:
                insert = _INSERT_BY_DIALECT[db.get_bind().dialect.name]
                stmt = insert(model.__table__).values(**row)
                values = {key: stmt.excluded[key] for key in row if key != conflict_key}
                if ignore_duplicates or not values:
                    stmt = stmt.on_conflict_do_nothing(index_elements=[conflict_key])
                else:
                    if "updated_at" in columns and "updated_at" not in values:
                        values["updated_at"] = datetime.now(timezone.utc)
                    where = None
                    if update_where:
                        conditions = [columns[key] == value for key, value in update_where.items()]
                        where = and_(*conditions)
                    stmt = stmt.on_conflict_do_update(
                        index_elements=[conflict_key],
                        set_=values,
                        where=where,
                    )
                db.execute(stmt)
                db.commit()
                return self._select_one(db, model, {conflict_key: row[conflict_key]})

        return self._run(f"upsert {table}", run)

    def insert(self, table: str, row: Dict[str, Any]) -> Dict[str, Any]:
        """Insert a new row and return it with generated columns filled in."""
        model = self._model(table)

        def run():
            with self.database.session() as db:
                obj = model(**row)
                db.add(obj)
                db.commit()
                return self._as_dict(obj)

        return self._run(f"insert {table}", run)

    def update(self, table: str, values: Dict[str, Any], filters: Dict[str, Any]) -> int:
        """
        Update every row matching ``filters``.

        Returns:
            int: Number of rows changed.
        """
        model = self._model(table)

        def run():
            with self.database.session() as db:
                stmt = sa_update(model).filter_by(**filters).values(**values)
                result = db.execute(stmt)
                db.commit()
                return result.rowcount

        return self._run(f"update {table}", run)

    def ping(self) -> bool:
        return self.database.ping()

    async def aget(
        self,
        table: str,
        filters: Dict[str, Any],
        order_by: Optional[str] = None,
    ) -> Optional[Dict[str, Any]]:
        return await asyncio.to_thread(self.get, table, filters, order_by)

    async def aupsert(
        self,
        table: str,
        row: Dict[str, Any],
        conflict_key: str,
        *,
        ignore_duplicates: bool = False,
        update_where: Optional[Dict[str, Any]] = None,
    ) -> Optional[Dict[str, Any]]:
        return await asyncio.to_thread(
            self.upsert,
            table,
            row,
            conflict_key,
            ignore_duplicates=ignore_duplicates,
            update_where=update_where,
        )

    async def ainsert(self, table: str, row: Dict[str, Any]) -> Dict[str, Any]:
        return await asyncio.to_thread(self.insert, table, row)

    async def aupdate(self, table: str, values: Dict[str, Any], filters: Dict[str, Any]) -> int:
        return await asyncio.to_thread(self.update, table, values, filters)

    async def aping(self) -> bool:
        return await asyncio.to_thread(self.ping)
