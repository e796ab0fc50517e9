"""
Drift engine: compares a source snapshot with what the CDC layer captures.

Pure function of its two inputs. No I/O, no state kept between calls.
"""

import logging
from datetime import datetime, timezone
from typing import Dict, List, Optional

from datawatch.models import CDCResult, Column, ColumnSchema, SourceSnapshot, TableInfo, TableSchema

from .report import Issue, Report
from .severity import ChangeKind, message_for_change, severity_for_change

logger = logging.getLogger(__name__)

SNAPSHOT_WARNING_MARKER = 'snapshot.mode'


def _issue(kind: ChangeKind, table: Optional[str] = None, column: Optional[str] = None,
           message: Optional[str] = None, **extra) -> Issue:
    return Issue(
        severity=severity_for_change(kind),
        message=message if message is not None else message_for_change(kind),
        table=table,
        column=column,
        kind=kind,
        **extra
    )


def _as_utc(value: Optional[datetime]) -> Optional[datetime]:
    # Naive timestamps are taken to be UTC.
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _format_time(value: Optional[datetime]) -> str:
    return value.isoformat() if value is not None else 'none'


def diff_columns(table_name: str, source_columns: Dict[str, Column],
                 cdc_columns: Dict[str, ColumnSchema]) -> List[Issue]:
    """
    Column-level diff between the source table and the CDC-recorded schema.

    Names compare exactly, types case-insensitively, nullability exactly.
    """
    issues = []

    for name in source_columns:
        if name not in cdc_columns:
            issues.append(_issue(ChangeKind.COLUMN_ADDED, table_name, name))

    for name, cdc_column in cdc_columns.items():
        source_column = source_columns.get(name)
        if source_column is None:
            issues.append(_issue(ChangeKind.COLUMN_REMOVED, table_name, name))
            continue

        # Source allows NULLs that the CDC-recorded schema declares impossible.
        if source_column.nullable and not cdc_column.nullable:
            issues.append(_issue(ChangeKind.NULLABLE_TO_NOTNULL, table_name, name))

        if source_column.type.lower() != cdc_column.type.lower():
            issues.append(_issue(
                ChangeKind.TYPE_CHANGED,
                table_name,
                name,
                from_type=source_column.type,
                to_type=cdc_column.type,
            ))

    return issues


def check_staleness(table: TableInfo, schema_timestamps: Optional[Dict[str, datetime]]) -> Optional[Issue]:
    """
    Flag a CDC schema whose last observed change predates the source's last DDL.

    Only meaningful once a mismatch was found; callers decide that.
    """
    ddl_time = _as_utc(table.ddl_time)
    if ddl_time is None:
        return None

    cdc_time = _as_utc((schema_timestamps or {}).get(table.name))
    if cdc_time is not None and not cdc_time < ddl_time:
        return None

    message = (
        f"{message_for_change(ChangeKind.CDC_SCHEMA_STALE)} "
        f"(source DDL at {_format_time(ddl_time)}, CDC last seen: {_format_time(cdc_time)})"
    )
    return _issue(ChangeKind.CDC_SCHEMA_STALE, table.name, message=message)


def classify_warning(warning: str) -> ChangeKind:
    if SNAPSHOT_WARNING_MARKER in warning:
        return ChangeKind.CDC_SNAPSHOT_ISSUE
    return ChangeKind.CDC_CONNECTOR_UNHEALTHY


def _validate_captured_table(table_name: str, source_tables: Dict[str, TableInfo],
                             cdc_result: CDCResult) -> List[Issue]:
    table = source_tables.get(table_name)
    if table is None:
        return [_issue(ChangeKind.TABLE_MISSING_IN_SOURCE, table_name)]

    issues = []
    if not table.primary_key:
        issues.append(_issue(ChangeKind.MISSING_PRIMARY_KEY, table_name))

    cdc_table: Optional[TableSchema] = (cdc_result.table_schemas or {}).get(table_name)
    if cdc_table is None:
        return issues

    column_issues = diff_columns(table_name, table.column_map(), cdc_table.columns)
    issues.extend(column_issues)

    if column_issues:
        stale = check_staleness(table, cdc_result.schema_timestamps)
        if stale is not None:
            issues.append(stale)

    return issues


def validate(source: SourceSnapshot, cdc_result: Optional[CDCResult]) -> Report:
    """
    Compare a source snapshot against a CDC result.

    Args:
        source: Authoritative source schema
        cdc_result: Aggregated (or single-connector) CDC view; None when no CDC
            inspection was performed

    Returns:
        Report: Fresh report with the classified issues
    """
    report = Report()

    if cdc_result is None:
        logger.debug("No CDC result supplied, nothing is known to be captured")
        return report

    source_tables = source.table_map()

    for table_name in dict.fromkeys(cdc_result.captured_tables):
        report.extend(_validate_captured_table(table_name, source_tables, cdc_result))

    for warning in cdc_result.warnings:
        report.add(_issue(classify_warning(warning), message=warning))

    captured = set(cdc_result.captured_tables)
    for table in source.tables:
        if table.name not in captured:
            report.add(_issue(
                ChangeKind.TABLE_NOT_CAPTURED,
                table.name,
                message=f"{table.name} {message_for_change(ChangeKind.TABLE_NOT_CAPTURED)}",
            ))

    logger.info(f"Drift validation produced {len(report.issues)} issue(s)")
    return report
