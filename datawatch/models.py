"""
Schema snapshots exchanged between the inspectors and the drift engine.

Two independent views of "the schema" meet here:
- SourceSnapshot: what the relational source actually looks like (authoritative)
- CDCResult / ConnectorResult: what the CDC platform believes it is capturing

Optional fields on ConnectorResult use None for "unknown" (the piece could not be
fetched or mined) so that it stays distinguishable from a known-empty value.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Optional


@dataclass
class Column:
    """A source column. Types use the source vocabulary and compare case-insensitively."""
    name: str
    type: str
    nullable: bool = False


@dataclass
class TableInfo:
    """
    A source table as seen by the source inspector.

    Attributes:
        name: Table name (unique within a snapshot)
        columns: Column definitions, order irrelevant
        primary_key: Primary key column names (empty means the table is unsafe for CDC)
        row_count: Row count at inspection time
        ddl_time: Best-effort timestamp of the last CREATE/ALTER, None when unknown
    """
    name: str
    columns: List[Column] = field(default_factory=list)
    primary_key: List[str] = field(default_factory=list)
    row_count: int = 0
    ddl_time: Optional[datetime] = None

    def column_map(self) -> Dict[str, Column]:
        return {column.name: column for column in self.columns}


@dataclass
class SourceSnapshot:
    tables: List[TableInfo] = field(default_factory=list)

    def table_map(self) -> Dict[str, TableInfo]:
        return {table.name: table for table in self.tables}


@dataclass
class ColumnSchema:
    """Column as recorded by the CDC layer."""
    type: str
    nullable: bool = False


@dataclass
class TableSchema:
    columns: Dict[str, ColumnSchema] = field(default_factory=dict)


@dataclass
class ConnectorResult:
    """
    Inspection outcome for one CDC connector.

    An empty name denotes an unnamed connector (e.g. the single entry produced when
    the management endpoint could not be reached at all).

    Attributes:
        name: Connector name
        reachable: Whether the connector could be inspected
        captured_tables: Bare table names the connector captures (may include tables
            absent from the source)
        table_schemas: Column schema per table, None when unknown
        schema_timestamps: Last observed schema change per table, None when unknown
        warnings: Free-text health/config warnings, in the order they were raised
        unavailable: Pieces that could not be fetched ('config', 'status', 'schema_history')
    """
    name: str = ""
    reachable: bool = False
    captured_tables: List[str] = field(default_factory=list)
    table_schemas: Optional[Dict[str, TableSchema]] = None
    schema_timestamps: Optional[Dict[str, datetime]] = None
    warnings: List[str] = field(default_factory=list)
    unavailable: List[str] = field(default_factory=list)

    def add_captured_table(self, table_name: str):
        if table_name and table_name not in self.captured_tables:
            self.captured_tables.append(table_name)


@dataclass
class CDCResult:
    """
    Combined view over one or more connectors.

    Built by datawatch.cdc.inspector.aggregate_results; `connectors` keeps the
    per-connector results the union was computed from.
    """
    reachable: bool = False
    captured_tables: List[str] = field(default_factory=list)
    table_schemas: Optional[Dict[str, TableSchema]] = None
    schema_timestamps: Optional[Dict[str, datetime]] = None
    warnings: List[str] = field(default_factory=list)
    connectors: List[ConnectorResult] = field(default_factory=list)
