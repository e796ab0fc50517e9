"""
MySQL source inspection.

Builds the authoritative SourceSnapshot from information_schema: columns, primary
keys, row counts and a best-effort DDL timestamp per base table.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from datawatch.logging_utils import log_operation, log_source_inspected
from datawatch.models import Column, SourceSnapshot, TableInfo

from .database_utils import execute_query, get_database_connection, get_database_engine, get_row_count

logger = logging.getLogger(__name__)

TABLES_QUERY = """
    SELECT TABLE_NAME AS table_name, CREATE_TIME AS create_time
    FROM information_schema.TABLES
    WHERE TABLE_SCHEMA = :schema AND TABLE_TYPE = 'BASE TABLE'
    ORDER BY TABLE_NAME
"""

COLUMNS_QUERY = """
    SELECT TABLE_NAME AS table_name, COLUMN_NAME AS column_name,
           COLUMN_TYPE AS column_type, IS_NULLABLE AS is_nullable
    FROM information_schema.COLUMNS
    WHERE TABLE_SCHEMA = :schema
    ORDER BY TABLE_NAME, ORDINAL_POSITION
"""

PRIMARY_KEY_QUERY = """
    SELECT TABLE_NAME AS table_name, COLUMN_NAME AS column_name
    FROM information_schema.KEY_COLUMN_USAGE
    WHERE TABLE_SCHEMA = :schema AND CONSTRAINT_NAME = 'PRIMARY'
    ORDER BY TABLE_NAME, ORDINAL_POSITION
"""


def select_tables(available: List[str], wanted: Optional[List[str]] = None) -> List[str]:
    """
    Restrict the source's tables to the configured ones, keeping source order.

    Configured tables the source does not have are logged and ignored.
    """
    if wanted is None:
        return list(available)

    missing = [name for name in wanted if name not in available]
    if missing:
        logger.warning(f"Configured table(s) not found in source: {', '.join(missing)}")

    wanted_set = set(wanted)
    return [name for name in available if name in wanted_set]


def _ddl_time(value: Any) -> Optional[datetime]:
    # The session runs in UTC, so naive values from the driver are UTC.
    if not isinstance(value, datetime):
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def build_snapshot(
    table_rows: List[Dict[str, Any]],
    column_rows: List[Dict[str, Any]],
    primary_key_rows: List[Dict[str, Any]],
    row_counts: Optional[Dict[str, int]] = None,
    tables: Optional[List[str]] = None
) -> SourceSnapshot:
    """
    Assemble a SourceSnapshot from information_schema rows.

    Args:
        table_rows: Rows with table_name and create_time
        column_rows: Rows with table_name, column_name, column_type and is_nullable
        primary_key_rows: Rows with table_name and column_name, in key order
        row_counts: Row count per table name
        tables: Restrict the snapshot to these tables (None keeps all)

    Returns:
        SourceSnapshot: One TableInfo per selected table, ordered by name
    """
    row_counts = row_counts or {}
    create_times = {row['table_name']: row.get('create_time') for row in table_rows}
    selected = select_tables(list(create_times), tables)

    columns: Dict[str, List[Column]] = {}
    for row in column_rows:
        columns.setdefault(row['table_name'], []).append(Column(
            name=row['column_name'],
            type=row['column_type'],
            nullable=str(row['is_nullable']).upper() == 'YES',
        ))

    primary_keys: Dict[str, List[str]] = {}
    for row in primary_key_rows:
        primary_keys.setdefault(row['table_name'], []).append(row['column_name'])

    snapshot = SourceSnapshot()
    for table_name in selected:
        snapshot.tables.append(TableInfo(
            name=table_name,
            columns=columns.get(table_name, []),
            primary_key=primary_keys.get(table_name, []),
            row_count=row_counts.get(table_name, 0),
            ddl_time=_ddl_time(create_times[table_name]),
        ))
    return snapshot


class MySQLInspector:
    """
    Read-only inspector for one MySQL schema.
    """

    def __init__(self, dsn: str, schema: str, tables: Optional[List[str]] = None):
        """
        Args:
            dsn: SQLAlchemy URL of the source database
            schema: Schema (database) to inspect
            tables: Restrict inspection to these tables
        """
        self.dsn = dsn
        self.schema = schema
        self.tables = list(tables) if tables else None

    def inspect(self) -> SourceSnapshot:
        """
        Returns:
            SourceSnapshot: Current schema of the selected tables

        Raises:
            DatabaseConnectionError: The database could not be reached
            DatabaseOperationError: An introspection query failed
        """
        with log_operation(logger, 'source_inspection', schema=self.schema):
            engine = get_database_engine(self.dsn)
            try:
                with get_database_connection(engine) as conn:
                    execute_query(conn, "SET time_zone = '+00:00'")

                    params = {'schema': self.schema}
                    table_rows = execute_query(conn, TABLES_QUERY, params)
                    column_rows = execute_query(conn, COLUMNS_QUERY, params)
                    primary_key_rows = execute_query(conn, PRIMARY_KEY_QUERY, params)

                    selected = select_tables([row['table_name'] for row in table_rows], self.tables)
                    row_counts = {
                        table_name: get_row_count(conn, table_name, self.schema)
                        for table_name in selected
                    }
            finally:
                engine.dispose()

            # select_tables already reported missing tables
            snapshot = build_snapshot(table_rows, column_rows, primary_key_rows, row_counts, selected)

        log_source_inspected(self.schema, len(snapshot.tables))
        return snapshot
