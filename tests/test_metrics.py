"""
Unit tests for run metrics
"""

from datawatch.drift.report import Issue, Report
from datawatch.drift.severity import Severity
from datawatch.metrics import CheckMetrics
from datawatch.models import CDCResult, ConnectorResult


def sample(metrics, name, labels=None):
    return metrics.registry.get_sample_value(name, labels or {})


class TestCheckMetrics:
    """Test gauge values recorded for a run"""

    def test_record(self):
        metrics = CheckMetrics()
        cdc = CDCResult(connectors=[
            ConnectorResult(name="a", reachable=True),
            ConnectorResult(name="b", reachable=False),
        ])
        report = Report(issues=[
            Issue(Severity.WARN, "w"),
            Issue(Severity.BLOCK, "b"),
            Issue(Severity.BLOCK, "b2"),
        ])

        metrics.record(cdc, report, duration=1.5)

        assert sample(metrics, "datawatch_connectors_inspected") == 2
        assert sample(metrics, "datawatch_connectors_reachable") == 1
        assert sample(metrics, "datawatch_drift_issues", {"severity": "BLOCK"}) == 2
        assert sample(metrics, "datawatch_drift_issues", {"severity": "INFO"}) == 0
        assert sample(metrics, "datawatch_highest_severity") == 2
        assert sample(metrics, "datawatch_check_duration_seconds") == 1.5
        assert sample(metrics, "datawatch_last_run_timestamp_seconds") > 0

    def test_registries_are_independent(self):
        first = CheckMetrics()
        second = CheckMetrics()
        first.record(None, Report(issues=[Issue(Severity.WARN, "w")]), duration=0)

        assert sample(second, "datawatch_highest_severity") == 0

    def test_export_writes_textfile(self, tmp_path):
        metrics = CheckMetrics()
        metrics.record(None, Report(), duration=0.1)
        path = tmp_path / "datawatch.prom"

        assert metrics.export(str(path)) is True
        assert "datawatch_highest_severity 0.0" in path.read_text()

    def test_export_without_textfile(self):
        assert CheckMetrics().export(None) is False

    def test_export_failure_is_not_raised(self, tmp_path):
        metrics = CheckMetrics()

        assert metrics.export(str(tmp_path / "missing-dir" / "datawatch.prom")) is False
