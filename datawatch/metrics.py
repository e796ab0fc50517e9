"""
Prometheus metrics for a single drift check

Each run builds its own registry; when a node-exporter textfile is configured the
registry is written there after the check.
"""
import logging
import time
from typing import Optional

from prometheus_client import CollectorRegistry, Gauge, write_to_textfile

from datawatch.drift.report import Report, highest_severity, severity_counts
from datawatch.models import CDCResult

logger = logging.getLogger(__name__)


class CheckMetrics:
    """Gauges describing the outcome of one check run."""

    def __init__(self, registry: Optional[CollectorRegistry] = None):
        self.registry = registry or CollectorRegistry()

        # ====================================
        # CONNECTOR METRICS
        # ====================================
        self.connectors_inspected = Gauge(
            'datawatch_connectors_inspected',
            'Number of CDC connectors inspected in the last run',
            registry=self.registry
        )

        self.connectors_reachable = Gauge(
            'datawatch_connectors_reachable',
            'Number of CDC connectors that could be inspected in the last run',
            registry=self.registry
        )

        # ====================================
        # DRIFT METRICS
        # ====================================
        self.drift_issues = Gauge(
            'datawatch_drift_issues',
            'Number of drift issues found in the last run',
            ['severity'],  # severity: INFO/WARN/BLOCK
            registry=self.registry
        )

        self.highest_severity = Gauge(
            'datawatch_highest_severity',
            'Highest severity rank in the last run (0 none/info, 1 warn, 2 block)',
            registry=self.registry
        )

        # ====================================
        # RUN METRICS
        # ====================================
        self.check_duration = Gauge(
            'datawatch_check_duration_seconds',
            'Duration of the last drift check',
            registry=self.registry
        )

        self.last_run_timestamp = Gauge(
            'datawatch_last_run_timestamp_seconds',
            'Unix time the last drift check finished',
            registry=self.registry
        )

    def record(self, cdc_result: Optional[CDCResult], report: Report, duration: float):
        connectors = cdc_result.connectors if cdc_result is not None else []
        self.connectors_inspected.set(len(connectors))
        self.connectors_reachable.set(sum(1 for connector in connectors if connector.reachable))

        for severity, count in severity_counts(report).items():
            self.drift_issues.labels(severity=severity).set(count)
        self.highest_severity.set(highest_severity(report))

        self.check_duration.set(duration)
        self.last_run_timestamp.set(time.time())

    def export(self, textfile: Optional[str]) -> bool:
        """
        Write the registry to a node-exporter textfile.

        Returns:
            bool: True when the file was written; failures are logged, never raised
        """
        if not textfile:
            return False
        try:
            write_to_textfile(textfile, self.registry)
        except OSError as e:
            logger.warning(f"Failed to write metrics to {textfile}: {e}")
            return False
        logger.debug(f"Wrote metrics to {textfile}")
        return True
