"""
CDC inspection capabilities.

Every inspector implements the multi-connector operation. Inspectors that can only
produce one combined result are wrapped with SingleResultAdapter, so callers never
probe for capabilities at runtime.
"""

import logging
from abc import ABC, abstractmethod
from typing import Iterable, List

from datawatch.models import CDCResult, ConnectorResult

logger = logging.getLogger(__name__)


class CDCInspector(ABC):
    """Inspect a CDC platform and report one result per connector."""

    @property
    @abstractmethod
    def name(self) -> str:
        pass

    @abstractmethod
    def inspect_connectors(self) -> List[ConnectorResult]:
        """
        Inspect every connector.

        Returns:
            List[ConnectorResult]: One entry per connector, in listing order
        """
        pass

    def inspect(self) -> CDCResult:
        """Inspect every connector and union the results."""
        return aggregate_results(self.inspect_connectors())


class SingleResultInspector(ABC):
    """Legacy inspector shape: one result for the whole platform."""

    @property
    @abstractmethod
    def name(self) -> str:
        pass

    @abstractmethod
    def inspect(self) -> ConnectorResult:
        pass


class SingleResultAdapter(CDCInspector):
    """Expose a SingleResultInspector as a one-connector CDCInspector."""

    def __init__(self, inspector: SingleResultInspector):
        self.inspector = inspector

    @property
    def name(self) -> str:
        return self.inspector.name

    def inspect_connectors(self) -> List[ConnectorResult]:
        return [self.inspector.inspect()]


def aggregate_results(results: Iterable[ConnectorResult]) -> CDCResult:
    """
    Union connector results.

    - reachable: OR
    - captured tables: set union, first-seen order
    - table schemas / schema timestamps: per-table union, later connectors win
    - warnings: concatenated in connector order

    Schemas and timestamps stay None when no connector knows any.
    """
    aggregated = CDCResult()

    for result in results:
        aggregated.connectors.append(result)
        aggregated.reachable = aggregated.reachable or result.reachable

        for table_name in result.captured_tables:
            if table_name not in aggregated.captured_tables:
                aggregated.captured_tables.append(table_name)

        if result.table_schemas is not None:
            if aggregated.table_schemas is None:
                aggregated.table_schemas = {}
            aggregated.table_schemas.update(result.table_schemas)

        if result.schema_timestamps is not None:
            if aggregated.schema_timestamps is None:
                aggregated.schema_timestamps = {}
            aggregated.schema_timestamps.update(result.schema_timestamps)

        aggregated.warnings.extend(result.warnings)

    logger.debug(
        f"Aggregated {len(aggregated.connectors)} connector result(s): "
        f"{len(aggregated.captured_tables)} captured table(s), {len(aggregated.warnings)} warning(s)"
    )
    return aggregated
