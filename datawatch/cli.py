"""
Command-line interface for datawatch

Usage:
    datawatch check --config config.yaml [--fail-on block] [--format human]
"""

import logging
import sys
import time
from typing import Optional

import click

from datawatch import __version__
from datawatch.cdc.debezium.connector_manager import DebeziumException
from datawatch.cdc.debezium.inspector import DebeziumInspector
from datawatch.cdc.inspector import CDCInspector
from datawatch.drift.report import FAIL_ON_CHOICES, highest_severity, severity_counts, should_fail
from datawatch.drift.validator import validate
from datawatch.logging_utils import log_drift_summary, setup_logging
from datawatch.metrics import CheckMetrics
from datawatch.render import render_human, render_json
from datawatch.settings import LOG_LEVELS, Config, ConfigError, load_config
from datawatch.source.database_utils import DatabaseConnectionError, DatabaseOperationError
from datawatch.source.mysql_inspector import MySQLInspector

logger = logging.getLogger(__name__)

FATAL_ERRORS = (ConfigError, DatabaseConnectionError, DatabaseOperationError, DebeziumException)


def build_source_inspector(config: Config) -> MySQLInspector:
    return MySQLInspector(config.source.dsn, config.source.schema_name, tables=config.table_names or None)


def build_cdc_inspector(config: Config) -> CDCInspector:
    return DebeziumInspector(
        config.cdc.connect_url,
        brokers=config.cdc.brokers,
        request_timeout=config.cdc.request_timeout,
    )


def run_check(config: Config, fail_on: str = 'block', output_format: str = 'human') -> int:
    """
    Run one drift check and print the report to stdout.

    Returns:
        int: Process exit code (0, or the highest severity rank when the run fails)

    Raises:
        DatabaseConnectionError, DatabaseOperationError: Source inspection failed
        DebeziumException: CDC inspection failed beyond degradation
    """
    started = time.monotonic()

    source = build_source_inspector(config).inspect()

    cdc_inspector = build_cdc_inspector(config)
    cdc_result = cdc_inspector.inspect()

    report = validate(source, cdc_result)
    highest = highest_severity(report)
    log_drift_summary(severity_counts(report), highest)

    if output_format == 'json':
        click.echo(render_json(source, cdc_inspector.name, cdc_result, report))
    else:
        click.echo(render_human(source, cdc_inspector.name, cdc_result, report))

    metrics = CheckMetrics()
    metrics.record(cdc_result, report, time.monotonic() - started)
    metrics.export(config.metrics_textfile)

    if should_fail(report, fail_on):
        return highest
    return 0


@click.group()
@click.version_option(__version__, prog_name='datawatch')
def cli():
    """DataWatch - CDC validation tool

    Audits whether a CDC pipeline's view of a relational source schema matches reality.
    """
    pass


@cli.command(name='check')
@click.option('--config', 'config_path', required=True, type=click.Path(dir_okay=False),
              help='Path to config.yaml')
@click.option('--fail-on', type=click.Choice(FAIL_ON_CHOICES, case_sensitive=False), default='block',
              show_default=True, help='Severity level that causes a non-zero exit')
@click.option('--format', 'output_format', type=click.Choice(('human', 'json'), case_sensitive=False),
              default='human', show_default=True, help='Output format')
@click.option('--log-level', type=click.Choice(LOG_LEVELS, case_sensitive=False), default=None,
              help='Override the log level from the config file')
def check(config_path: str, fail_on: str, output_format: str, log_level: Optional[str]):
    """Run validation checks

    Examples:
        datawatch check --config config.yaml
        datawatch check --config config.yaml --fail-on warn --format json
    """
    try:
        config = load_config(config_path)
        setup_logging(log_level or config.log_level)
        exit_code = run_check(config, fail_on=fail_on.lower(), output_format=output_format.lower())
    except FATAL_ERRORS as e:
        logger.debug(f"Check aborted: {type(e).__name__}")
        click.echo(f"datawatch error: {e}", err=True)
        sys.exit(1)

    sys.exit(exit_code)


def main():
    cli()


if __name__ == '__main__':
    main()
