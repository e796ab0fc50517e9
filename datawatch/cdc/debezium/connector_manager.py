"""
Debezium Connector Manager - Reads CDC connector state via the Kafka Connect REST API

Read-only: connectors are listed and inspected, never created, changed or restarted.
"""

import json
import logging
from typing import Any, List, NamedTuple, Optional
from urllib.parse import quote

import requests

logger = logging.getLogger(__name__)

DEFAULT_REQUEST_TIMEOUT = 5


class DebeziumException(Exception):
    """Base exception for Debezium operations"""
    pass


class KafkaConnectUnavailable(DebeziumException):
    """Raised when the Kafka Connect REST endpoint cannot be reached at all"""
    pass


class ConnectorListingError(DebeziumException):
    """Raised when the connector listing returns an unexpected response"""
    pass


class FetchResult(NamedTuple):
    """Outcome of a single REST call: (success, data, error)"""
    success: bool
    data: Optional[Any] = None
    error: Optional[str] = None


def _is_status_document(data: Any) -> bool:
    """True when `data` has the shape of a Kafka Connect status response."""
    if not isinstance(data, dict):
        return False
    connector = data.get('connector')
    if connector is not None and not isinstance(connector, dict):
        return False
    tasks = data.get('tasks')
    if tasks is None:
        return True
    return isinstance(tasks, list) and all(isinstance(task, dict) for task in tasks)


class DebeziumConnectorManager:
    """
    Read-only client for Kafka Connect

    Handles:
    - Listing connectors
    - Fetching connector configuration
    - Fetching connector and task status
    """

    def __init__(self, kafka_connect_url: str, timeout: float = DEFAULT_REQUEST_TIMEOUT):
        """
        Args:
            kafka_connect_url: Base URL of the Kafka Connect REST API
            timeout: Per-request timeout in seconds
        """
        self.kafka_connect_url = kafka_connect_url.rstrip('/')
        self.timeout = timeout

        # API endpoints
        self.connectors_url = f"{self.kafka_connect_url}/connectors"

        logger.debug(f"DebeziumConnectorManager initialized with URL: {self.kafka_connect_url}")

    def _connector_url(self, connector_name: str, suffix: str = '') -> str:
        return f"{self.connectors_url}/{quote(connector_name, safe='')}{suffix}"

    def _make_request(self, method: str, url: str) -> FetchResult:
        """
        Make HTTP request to Kafka Connect API

        Args:
            method: HTTP method
            url: Full URL

        Returns:
            FetchResult: (success, response_data, error_message)
        """
        try:
            headers = {'Accept': 'application/json'}
            response = requests.request(method, url, headers=headers, timeout=self.timeout)
            logger.debug(f"method: {method}, url: {url}, status: {response.status_code}")

            if response.status_code == 200:
                try:
                    return FetchResult(True, response.json(), None)
                except (json.JSONDecodeError, ValueError):
                    return FetchResult(False, None, f"Invalid JSON from {url}")

            error_data = response.text
            try:
                error_message = response.json().get('message', error_data)
            except (json.JSONDecodeError, ValueError, AttributeError):
                error_message = error_data

            # 404 is expected for connectors deleted between listing and inspection
            if response.status_code == 404:
                logger.debug(f"Resource not found: {method} {url}")
            else:
                logger.warning(f"Request failed: {method} {url} - Status: {response.status_code} - {error_message}")

            return FetchResult(False, None, f"HTTP {response.status_code}: {error_message}")

        except requests.exceptions.Timeout:
            error_msg = f"Request timeout after {self.timeout} seconds"
            logger.warning(f"{error_msg}: {method} {url}")
            return FetchResult(False, None, error_msg)
        except requests.exceptions.ConnectionError as e:
            error_msg = f"Connection error: {str(e)}"
            logger.warning(error_msg)
            return FetchResult(False, None, error_msg)
        except requests.exceptions.RequestException as e:
            error_msg = f"Request failed: {str(e)}"
            logger.warning(error_msg)
            return FetchResult(False, None, error_msg)

    def list_connectors(self) -> List[str]:
        """
        List all existing connectors

        Returns:
            List[str]: Connector names

        Raises:
            KafkaConnectUnavailable: Kafka Connect could not be reached
            ConnectorListingError: Kafka Connect answered with a non-success status or
                an unreadable body
        """
        try:
            response = requests.request(
                'GET',
                self.connectors_url,
                headers={'Accept': 'application/json'},
                timeout=self.timeout
            )
        except requests.exceptions.RequestException as e:
            logger.error(f"Kafka Connect unreachable at {self.kafka_connect_url}: {e}")
            raise KafkaConnectUnavailable(str(e)) from e

        if response.status_code != 200:
            raise ConnectorListingError(f"Debezium returned status: {response.status_code}")

        try:
            connectors = response.json()
        except (json.JSONDecodeError, ValueError) as e:
            raise ConnectorListingError(f"Invalid connector listing from {self.connectors_url}: {e}") from e

        if not isinstance(connectors, list):
            raise ConnectorListingError(
                f"Unexpected connector listing from {self.connectors_url}: {type(connectors).__name__}"
            )

        logger.info(f"Found {len(connectors)} connectors")
        return [str(name) for name in connectors]

    def get_connector_config(self, connector_name: str) -> FetchResult:
        """
        Get connector configuration

        Args:
            connector_name: Name of the connector

        Returns:
            FetchResult: data is the connector's config map on success
        """
        success, data, error = self._make_request('GET', self._connector_url(connector_name))

        if not success:
            logger.warning(f"Failed to get connector config for {connector_name}: {error}")
            return FetchResult(False, None, error)

        config = data.get('config', {}) if isinstance(data, dict) else None
        if not isinstance(config, dict):
            return FetchResult(False, None, f"Unexpected config payload for connector {connector_name}")

        logger.debug(f"Retrieved config for connector: {connector_name}")
        return FetchResult(True, config, None)

    def get_connector_status(self, connector_name: str) -> FetchResult:
        """
        Get connector status

        Args:
            connector_name: Name of the connector

        Returns:
            FetchResult: data is the status document
                ({"connector": {"state": ...}, "tasks": [{"id": ..., "state": ...}]})
        """
        success, data, error = self._make_request('GET', self._connector_url(connector_name, '/status'))

        if not success:
            logger.warning(f"Failed to get connector status for {connector_name}: {error}")
            return FetchResult(False, None, error)

        if not _is_status_document(data):
            logger.warning(f"Unexpected status payload for connector {connector_name}: {data!r}")
            return FetchResult(False, None, f"Unexpected status payload for connector {connector_name}")

        logger.debug(f"Connector {connector_name} status: {(data.get('connector') or {}).get('state', 'UNKNOWN')}")
        return FetchResult(True, data, None)
