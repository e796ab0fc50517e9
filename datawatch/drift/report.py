"""
Drift report and the folds used to turn it into a pass/fail decision.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from .severity import ChangeKind, Severity, RANK_NONE, SEVERITY_RANKS

logger = logging.getLogger(__name__)

FAIL_ON_CHOICES = ('info', 'warn', 'block')


@dataclass
class Issue:
    """
    A single drift finding.

    Attributes:
        severity: INFO, WARN or BLOCK
        message: Human-readable message
        table: Table name, None for connector-global issues
        column: Column name for column-level issues
        from_type: Source type for type changes
        to_type: CDC-recorded type for type changes
        kind: Change kind the issue was classified as
    """
    severity: Severity
    message: str
    table: Optional[str] = None
    column: Optional[str] = None
    from_type: Optional[str] = None
    to_type: Optional[str] = None
    kind: Optional[ChangeKind] = None


@dataclass
class Report:
    """Issues in discovery order; renderers sort by table then column."""
    issues: List[Issue] = field(default_factory=list)

    def add(self, issue: Issue):
        self.issues.append(issue)

    def extend(self, issues: List[Issue]):
        self.issues.extend(issues)


def blocking_count(report: Report) -> int:
    return sum(1 for issue in report.issues if issue.severity == Severity.BLOCK)


def highest_severity(report: Report) -> int:
    """
    Highest severity rank in the report.

    Returns:
        int: 0 for an empty report or INFO-only report, 1 for WARN, 2 for BLOCK
    """
    return max((SEVERITY_RANKS[issue.severity] for issue in report.issues), default=RANK_NONE)


def severity_counts(report: Report) -> Dict[str, int]:
    counts = {severity.value: 0 for severity in Severity}
    for issue in report.issues:
        counts[issue.severity.value] += 1
    return counts


def fail_on_rank(fail_on: str) -> int:
    """Rank for a fail-on threshold name; unrecognized names fall back to 'block'."""
    value = (fail_on or '').strip().upper()
    try:
        return SEVERITY_RANKS[Severity(value)]
    except ValueError:
        logger.warning(f"Unknown fail-on threshold {fail_on!r}, using 'block'")
        return SEVERITY_RANKS[Severity.BLOCK]


def should_fail(report: Report, fail_on: str = 'block') -> bool:
    """A run fails iff its highest rank reaches the threshold and is above NONE."""
    highest = highest_severity(report)
    return highest > RANK_NONE and highest >= fail_on_rank(fail_on)
