"""
Unit tests for the severity classifier
"""

import pytest

from datawatch.drift.severity import (
    CHANGE_CLASSIFICATION,
    ChangeKind,
    Severity,
    message_for_change,
    severity_for_change,
)


class TestSeverityForChange:
    """Test change kind -> severity lookup"""

    @pytest.mark.parametrize("kind, expected", [
        (ChangeKind.COLUMN_ADDED, Severity.INFO),
        (ChangeKind.COLUMN_REMOVED, Severity.BLOCK),
        (ChangeKind.NULLABLE_TO_NOTNULL, Severity.BLOCK),
        (ChangeKind.TYPE_CHANGED, Severity.WARN),
        (ChangeKind.CDC_SCHEMA_STALE, Severity.WARN),
        (ChangeKind.CDC_SNAPSHOT_ISSUE, Severity.WARN),
        (ChangeKind.CDC_CONNECTOR_UNHEALTHY, Severity.WARN),
        (ChangeKind.TABLE_MISSING_IN_SOURCE, Severity.BLOCK),
        (ChangeKind.MISSING_PRIMARY_KEY, Severity.BLOCK),
        (ChangeKind.TABLE_NOT_CAPTURED, Severity.INFO),
    ])
    def test_known_kinds(self, kind, expected):
        assert severity_for_change(kind) == expected

    def test_accepts_string_kinds(self):
        assert severity_for_change("column_removed") == Severity.BLOCK
        assert message_for_change("type_changed") == "type mismatch"

    def test_unknown_kind_is_info_with_empty_message(self):
        assert severity_for_change("column_renamed") == Severity.INFO
        assert message_for_change("column_renamed") == ""

    def test_every_kind_is_classified(self):
        assert set(CHANGE_CLASSIFICATION) == set(ChangeKind)

    def test_classification_is_stable(self):
        first = [severity_for_change(kind) for kind in ChangeKind]
        second = [severity_for_change(kind) for kind in ChangeKind]
        assert first == second


class TestSeverityRank:
    """Test severity ordering"""

    def test_ranks(self):
        assert Severity.INFO.rank == 0
        assert Severity.WARN.rank == 1
        assert Severity.BLOCK.rank == 2

    def test_messages(self):
        assert message_for_change(ChangeKind.COLUMN_ADDED) == "added"
        assert message_for_change(ChangeKind.COLUMN_REMOVED) == "present in CDC but missing in source"
        assert message_for_change(ChangeKind.NULLABLE_TO_NOTNULL) == "nullable -> NOT NULL"
