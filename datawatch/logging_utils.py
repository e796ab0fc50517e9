"""
Logging utility functions for structured logging
"""
import logging
import sys
import time
from contextlib import contextmanager

LOG_FORMAT = '%(asctime)s | %(levelname)-8s | %(name)s | %(message)s'

# Third-party loggers that are too chatty at INFO
NOISY_LOGGERS = ('urllib3', 'sqlalchemy.engine')

# Get loggers for different parts of the application
cdc_logger = logging.getLogger('datawatch.cdc')
db_logger = logging.getLogger('datawatch.source')
drift_logger = logging.getLogger('datawatch.drift')


def setup_logging(level='INFO'):
    """
    Configure root logging for a command-line run.

    Records go to stderr so that report output on stdout stays machine-readable.

    Args:
        level: Log level name (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """
    logging.basicConfig(
        level=getattr(logging, str(level).upper(), logging.INFO),
        format=LOG_FORMAT,
        stream=sys.stderr,
        force=True,
    )
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def log_with_context(logger, level, message, **context):
    """
    Log a message with additional context fields

    Args:
        logger: The logger instance to use
        level: Log level (INFO, ERROR, WARNING, etc.)
        message: The log message
        **context: Additional context fields (connector, table_name, etc.)

    Example:
        log_with_context(
            cdc_logger,
            'INFO',
            'Connector inspected',
            connector='inventory-connector',
            warnings_count=2
        )
    """
    extra = {k: v for k, v in context.items() if v is not None}
    logger.log(getattr(logging, level.upper()), message, extra=extra)


@contextmanager
def log_operation(logger, operation_name, **context):
    """
    Context manager to log the start, end, and duration of an operation

    Example:
        with log_operation(db_logger, 'source_inspection', schema='inventory'):
            snapshot = inspector.inspect()
    """
    start_time = time.time()

    log_with_context(
        logger,
        'INFO',
        f'{operation_name} started',
        operation=operation_name,
        **context
    )

    try:
        yield

        duration = time.time() - start_time
        log_with_context(
            logger,
            'INFO',
            f'{operation_name} completed successfully in {duration:.2f}s',
            operation=operation_name,
            duration=duration,
            status='success',
            **context
        )

    except Exception as e:
        duration = time.time() - start_time
        log_with_context(
            logger,
            'ERROR',
            f'{operation_name} failed: {str(e)}',
            operation=operation_name,
            duration=duration,
            status='failed',
            error_type=type(e).__name__,
            error_message=str(e),
            **context
        )
        raise


# ====================================
# CHECK-SPECIFIC LOGGING FUNCTIONS
# ====================================

def log_connector_inspected(connector_name, captured_count, warnings_count, unavailable=None):
    """Log the outcome of one connector inspection"""
    level = 'WARNING' if unavailable else 'INFO'
    message = f'Connector {connector_name or "<unnamed>"} inspected: {captured_count} table(s), {warnings_count} warning(s)'
    if unavailable:
        message += f' (unavailable: {", ".join(unavailable)})'
    log_with_context(
        cdc_logger,
        level,
        message,
        connector=connector_name,
        operation='connector_inspect',
        tables_count=captured_count,
        warnings_count=warnings_count,
        unavailable=','.join(unavailable) if unavailable else None
    )


def log_source_inspected(schema, tables_count, duration=None):
    """Log source schema inspection"""
    log_with_context(
        db_logger,
        'INFO',
        f'Inspected {tables_count} source table(s) in {schema}',
        schema=schema,
        operation='source_inspect',
        tables_count=tables_count,
        duration=duration
    )


def log_drift_summary(counts, highest):
    """Log the drift summary of a finished check"""
    level = 'WARNING' if highest > 0 else 'INFO'
    log_with_context(
        drift_logger,
        level,
        f'Drift summary: {counts.get("INFO", 0)} INFO / {counts.get("WARN", 0)} WARN / {counts.get("BLOCK", 0)} BLOCK',
        operation='drift_check',
        highest=highest
    )
