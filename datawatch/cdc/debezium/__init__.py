from .connector_manager import (
    ConnectorListingError,
    DebeziumConnectorManager,
    DebeziumException,
    KafkaConnectUnavailable,
)
from .inspector import DebeziumInspector

__all__ = [
    'ConnectorListingError',
    'DebeziumConnectorManager',
    'DebeziumException',
    'DebeziumInspector',
    'KafkaConnectUnavailable',
]
