"""
Drift detection between a source schema and what the CDC layer captures.

Modules:
    severity: ChangeKind / Severity lookup table
    validator: the comparison engine
    report: Issue/Report types and pass/fail folds
"""

from .severity import ChangeKind, Severity, severity_for_change, message_for_change
from .report import (
    Issue,
    Report,
    blocking_count,
    highest_severity,
    severity_counts,
    should_fail,
    fail_on_rank,
)
from .validator import validate

__all__ = [
    'ChangeKind',
    'Severity',
    'severity_for_change',
    'message_for_change',
    'Issue',
    'Report',
    'blocking_count',
    'highest_severity',
    'severity_counts',
    'should_fail',
    'fail_on_rank',
    'validate',
]
