"""
Centralized severity and message lookup for schema changes.

Rules:
- BLOCK for irreversible changes
- WARN for risky but reversible changes
- INFO for safe changes

The lookup is total: kinds that are not enumerated (e.g. strings produced by a newer
inspector) classify as INFO with an empty message rather than failing.
"""

import logging
from enum import Enum
from typing import Dict, Tuple, Union

logger = logging.getLogger(__name__)


class Severity(str, Enum):
    """Issue severities, ordered INFO < WARN < BLOCK."""
    INFO = 'INFO'
    WARN = 'WARN'
    BLOCK = 'BLOCK'

    @property
    def rank(self) -> int:
        return SEVERITY_RANKS[self]


# INFO shares rank 0 with "no issues at all": informational findings never fail a run.
RANK_NONE = 0

SEVERITY_RANKS: Dict[Severity, int] = {
    Severity.INFO: 0,
    Severity.WARN: 1,
    Severity.BLOCK: 2,
}


class ChangeKind(str, Enum):
    """Kinds of drift the engine can report."""
    COLUMN_ADDED = 'column_added'
    COLUMN_REMOVED = 'column_removed'
    NULLABLE_TO_NOTNULL = 'nullable_to_notnull'
    TYPE_CHANGED = 'type_changed'
    CDC_SCHEMA_STALE = 'cdc_schema_stale'
    CDC_SNAPSHOT_ISSUE = 'cdc_snapshot_issue'
    CDC_CONNECTOR_UNHEALTHY = 'cdc_connector_unhealthy'
    TABLE_MISSING_IN_SOURCE = 'table_missing_in_source'
    MISSING_PRIMARY_KEY = 'missing_primary_key'
    TABLE_NOT_CAPTURED = 'table_not_captured'


CHANGE_CLASSIFICATION: Dict[ChangeKind, Tuple[Severity, str]] = {
    ChangeKind.COLUMN_ADDED: (Severity.INFO, 'added'),
    ChangeKind.COLUMN_REMOVED: (Severity.BLOCK, 'present in CDC but missing in source'),
    ChangeKind.NULLABLE_TO_NOTNULL: (Severity.BLOCK, 'nullable -> NOT NULL'),
    ChangeKind.TYPE_CHANGED: (Severity.WARN, 'type mismatch'),
    ChangeKind.CDC_SCHEMA_STALE: (Severity.WARN, 'CDC schema appears stale'),
    ChangeKind.CDC_SNAPSHOT_ISSUE: (Severity.WARN, 'connector snapshot configuration is risky'),
    ChangeKind.CDC_CONNECTOR_UNHEALTHY: (Severity.WARN, 'connector is unhealthy'),
    ChangeKind.TABLE_MISSING_IN_SOURCE: (Severity.BLOCK, 'Table captured by CDC but missing in source'),
    ChangeKind.MISSING_PRIMARY_KEY: (Severity.BLOCK, 'Table has no primary key (unsafe for CDC)'),
    ChangeKind.TABLE_NOT_CAPTURED: (Severity.INFO, 'exists in source but not captured by CDC'),
}


def _as_kind(kind: Union[ChangeKind, str]):
    if isinstance(kind, ChangeKind):
        return kind
    try:
        return ChangeKind(kind)
    except ValueError:
        logger.debug(f"Unknown change kind: {kind!r}")
        return None


def severity_for_change(kind: Union[ChangeKind, str]) -> Severity:
    """Severity for a change kind; unknown kinds fail open as INFO."""
    change_kind = _as_kind(kind)
    if change_kind is None:
        return Severity.INFO
    return CHANGE_CLASSIFICATION[change_kind][0]


def message_for_change(kind: Union[ChangeKind, str]) -> str:
    """Canonical message for a change kind; empty for unknown kinds."""
    change_kind = _as_kind(kind)
    if change_kind is None:
        return ''
    return CHANGE_CLASSIFICATION[change_kind][1]
