"""
Report rendering: human-readable text and JSON.
"""

import json
from dataclasses import asdict
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from datawatch.drift.report import Issue, Report, highest_severity, severity_counts
from datawatch.drift.severity import ChangeKind, Severity
from datawatch.models import CDCResult, SourceSnapshot

GLOBAL_ISSUES_HEADING = '(connectors)'


def _json_default(value: Any):
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, Enum):
        return value.value
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def _issue_line(issue: Issue) -> str:
    if not issue.column:
        return f"      - [{issue.severity.value}] {issue.message}"

    message = issue.message
    if issue.from_type or issue.to_type:
        message = f"{message} ({issue.from_type or ''} -> {issue.to_type or ''})"
    return f"      - [{issue.severity.value}] {issue.table}.{issue.column} {message}"


def _group_by_table(issues: List[Issue]) -> Dict[str, List[Issue]]:
    groups: Dict[str, List[Issue]] = {}
    for issue in issues:
        groups.setdefault(issue.table or GLOBAL_ISSUES_HEADING, []).append(issue)
    return groups


def render_drift(report: Report) -> List[str]:
    """Drift section of the human output."""
    lines = ['Drift Check:']
    if not report.issues:
        lines.append('    No drift detected')
        return lines

    if not any(issue.kind == ChangeKind.MISSING_PRIMARY_KEY for issue in report.issues):
        lines.append('    Primary Keys match')

    groups = _group_by_table(report.issues)
    for table_name in sorted(groups):
        lines.append(f"    Table: {table_name}")
        table_issues = groups[table_name]

        # Table-level issues in discovery order, then column issues by column name
        for issue in table_issues:
            if not issue.column:
                lines.append(_issue_line(issue))
        column_issues = [issue for issue in table_issues if issue.column]
        for issue in sorted(column_issues, key=lambda item: item.column):
            lines.append(_issue_line(issue))

    counts = severity_counts(report)
    lines.append('')
    lines.append(
        f"Summary: {counts[Severity.INFO.value]} INFO / {counts[Severity.WARN.value]} WARN / "
        f"{counts[Severity.BLOCK.value]} BLOCK"
    )
    blocking = counts[Severity.BLOCK.value]
    if blocking:
        suffix = '' if blocking == 1 else 's'
        lines.append(f"Result: FAILED ({blocking} blocking issue{suffix})")
    return lines


def render_human(source: SourceSnapshot, cdc_name: str, cdc_result: Optional[CDCResult], report: Report) -> str:
    lines = [f"Found {len(source.tables)} table(s) in source"]
    for table in source.tables:
        lines.append(f"Table: {table.name}")
        lines.append(f"  Columns: {len(table.columns)}")
        lines.append(f"  Row count: {table.row_count}")

    if cdc_result is not None:
        lines.append('')
        lines.append(f"CDC: {cdc_name}")
        lines.append(f"  Connector reachable: {str(cdc_result.reachable).lower()}")
        if cdc_result.captured_tables:
            lines.append(f"  CDC Tables: {', '.join(cdc_result.captured_tables)}")
        if cdc_result.warnings:
            lines.append('  Warnings:')
            for warning in cdc_result.warnings:
                lines.append(f"    - {warning}")

    lines.append('')
    lines.extend(render_drift(report))
    return '\n'.join(lines)


def _issue_dict(issue: Issue) -> Dict[str, Any]:
    return {
        'severity': issue.severity.value,
        'kind': issue.kind.value if issue.kind is not None else None,
        'table': issue.table,
        'column': issue.column,
        'message': issue.message,
        'from_type': issue.from_type,
        'to_type': issue.to_type,
    }


def build_document(source: SourceSnapshot, cdc_name: str, cdc_result: Optional[CDCResult], report: Report) -> Dict[str, Any]:
    """JSON-ready document for a check run."""
    counts = severity_counts(report)
    cdc_document = None
    if cdc_result is not None:
        cdc_document = asdict(cdc_result)
        cdc_document['type'] = cdc_name

    return {
        'source': asdict(source),
        'cdc': cdc_document,
        'drift': {'issues': [_issue_dict(issue) for issue in report.issues]},
        'summary': {
            'info': counts[Severity.INFO.value],
            'warn': counts[Severity.WARN.value],
            'block': counts[Severity.BLOCK.value],
            'highest': highest_severity(report),
        },
    }


def render_json(source: SourceSnapshot, cdc_name: str, cdc_result: Optional[CDCResult], report: Report) -> str:
    return json.dumps(build_document(source, cdc_name, cdc_result, report), indent=2, default=_json_default)
