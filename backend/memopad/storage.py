"""Generic table-query client over a SQLAlchemy engine.

Queries are built fluently and run with ``execute()``, which never raises:
the outcome is a :class:`StorageResponse` carrying either ``data`` or an
``error``. Single-row queries that match nothing report ``NO_ROWS`` so callers
can tell "not found" apart from a failing backend.
"""

import logging
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import MetaData, Table, delete, insert, select, update
from sqlalchemy.engine import Connection, Engine
from sqlalchemy.exc import SQLAlchemyError

from .database import Base

logger = logging.getLogger(__name__)

NO_ROWS = "NO_ROWS"
MULTIPLE_ROWS = "MULTIPLE_ROWS"
INVALID_QUERY = "INVALID_QUERY"
QUERY_FAILED = "QUERY_FAILED"


class StorageError(Exception):
    def __init__(self, message: str, code: str = QUERY_FAILED):
        super().__init__(message)
        self.message = message
        self.code = code

    def __repr__(self) -> str:
        return f"StorageError(code={self.code!r}, message={self.message!r})"


class StorageResponse:
    def __init__(self, data: Any = None, error: Optional[StorageError] = None):
        self.data = data
        self.error = error

    @property
    def ok(self) -> bool:
        return self.error is None


class TableClient:
    def __init__(self, engine: Engine, metadata: Optional[MetaData] = None):
        self.engine = engine
        self.metadata = metadata if metadata is not None else Base.metadata

    def table(self, name: str) -> "TableQuery":
        return TableQuery(self, name)

    def create_tables(self) -> None:
        self.metadata.create_all(bind=self.engine)


class TableQuery:
    def __init__(self, client: TableClient, name: str):
        self._client = client
        self._name = name
        self._action = "select"
        self._values: Dict[str, Any] = {}
        self._returning = False
        self._filters: List[Tuple[str, Any]] = []
        self._order: List[Tuple[str, bool]] = []
        self._single = False

    def select(self) -> "TableQuery":
        # After insert/update, select() asks for the affected rows back.
        if self._action == "select":
            return self
        self._returning = True
        return self

    def insert(self, values: Dict[str, Any]) -> "TableQuery":
        self._action = "insert"
        self._values = dict(values)
        return self

    def update(self, values: Dict[str, Any]) -> "TableQuery":
        self._action = "update"
        self._values = dict(values)
        return self

    def delete(self) -> "TableQuery":
        self._action = "delete"
        return self

    def eq(self, column: str, value: Any) -> "TableQuery":
        self._filters.append((column, value))
        return self

    def order(self, column: str, ascending: bool = True) -> "TableQuery":
        self._order.append((column, ascending))
        return self

    def single(self) -> "TableQuery":
        self._single = True
        return self

    def execute(self) -> StorageResponse:
        try:
            with self._client.engine.begin() as connection:
                rows = self._run(connection)
            return StorageResponse(data=self._shape(rows))
        except StorageError as exc:
            return StorageResponse(error=exc)
        except SQLAlchemyError as exc:
            logger.warning("Storage query on %s failed: %s", self._name, exc)
            return StorageResponse(error=StorageError(str(exc)))

    def _table(self) -> Table:
        table = self._client.metadata.tables.get(self._name)
        if table is None:
            raise StorageError(f"Unknown table: {self._name}", INVALID_QUERY)
        return table

    def _column(self, table: Table, name: str):
        if name not in table.c:
            raise StorageError(f"Unknown column {name} on {table.name}", INVALID_QUERY)
        return table.c[name]

    def _where(self, table: Table, statement):
        for column, value in self._filters:
            statement = statement.where(self._column(table, column) == value)
        return statement

    def _select_rows(self, connection: Connection, table: Table, filters=None) -> List[Dict[str, Any]]:
        statement = select(table)
        if filters is None:
            statement = self._where(table, statement)
        else:
            for column, value in filters:
                statement = statement.where(self._column(table, column) == value)
        for column, ascending in self._order:
            target = self._column(table, column)
            statement = statement.order_by(target.asc() if ascending else target.desc())
        return [dict(row) for row in connection.execute(statement).mappings().all()]

    def _run(self, connection: Connection) -> Optional[List[Dict[str, Any]]]:
        table = self._table()
        if self._action == "select":
            return self._select_rows(connection, table)

        for column in self._values:
            self._column(table, column)

        if self._action == "insert":
            connection.execute(insert(table).values(**self._values))
            if not self._returning:
                return None
            keys = [(column.name, self._values.get(column.name)) for column in table.primary_key]
            return self._select_rows(connection, table, filters=keys)

        if not self._filters:
            raise StorageError(f"{self._action} on {self._name} requires a filter", INVALID_QUERY)

        if self._action == "update":
            connection.execute(self._where(table, update(table)).values(**self._values))
            if not self._returning:
                return None
            return self._select_rows(connection, table)

        if self._action == "delete":
            connection.execute(self._where(table, delete(table)))
            return None

        raise StorageError(f"Unsupported action: {self._action}", INVALID_QUERY)

    def _shape(self, rows: Optional[List[Dict[str, Any]]]) -> Any:
        if not self._single:
            return rows
        rows = rows or []
        if not rows:
            raise StorageError("The result contains 0 rows", NO_ROWS)
        if len(rows) > 1:
            raise StorageError(f"The result contains {len(rows)} rows", MULTIPLE_ROWS)
        return rows[0]
