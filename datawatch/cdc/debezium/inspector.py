"""
Debezium connector inspection.

For every connector registered in Kafka Connect:
1. Read its configuration (captured tables, snapshot mode)
2. Read its runtime status (connector and task states)
3. Mine its schema history topic for column schemas (best effort)

A failed fetch degrades only the piece it was meant to provide. One connector's
failure never stops the inspection of the others.
"""

import logging
from typing import Any, Dict, List, Optional, Tuple

from datawatch.cdc.ddl.schema_miner import RegexDDLSchemaMiner, SchemaMiner
from datawatch.cdc.inspector import CDCInspector
from datawatch.cdc.kafka.history_reader import HistoryReadError, SchemaHistoryReader, parse_brokers
from datawatch.logging_utils import log_connector_inspected, log_operation
from datawatch.models import ConnectorResult

from .connector_manager import DEFAULT_REQUEST_TIMEOUT, DebeziumConnectorManager, KafkaConnectUnavailable

logger = logging.getLogger(__name__)

TABLE_LIST_KEYS = ('table.include.list', 'table.whitelist')

SNAPSHOT_MODE_KEY = 'snapshot.mode'

# Snapshot modes that skip or limit the initial data copy
RISKY_SNAPSHOT_MODES = frozenset({
    'never',
    'none',
    'schema_only',
    'schema_only_recovery',
    'no_data',
    'off',
})

# (topic key, bootstrap servers key), newest Debezium naming first
HISTORY_TOPIC_KEYS = (
    ('schema.history.internal.kafka.topic', 'schema.history.internal.kafka.bootstrap.servers'),
    ('database.history.kafka.topic', 'database.history.kafka.bootstrap.servers'),
)

RUNNING = 'RUNNING'


def parse_table_list(table_list: str) -> List[str]:
    """
    Bare table names from a comma-separated "schema.table" / "table" list.

    Example:
        "inventory.orders, inventory.customers" -> ["orders", "customers"]
    """
    tables = []
    for entry in table_list.split(','):
        entry = entry.strip()
        if not entry:
            continue
        table_name = entry.rsplit('.', 1)[-1].strip('`"')
        if table_name and table_name not in tables:
            tables.append(table_name)
    return tables


class DebeziumInspector(CDCInspector):
    """
    Inspect Debezium connectors through Kafka Connect and their schema history topics.
    """

    def __init__(
        self,
        connect_url: str,
        brokers: Optional[List[str]] = None,
        request_timeout: float = DEFAULT_REQUEST_TIMEOUT,
        manager: Optional[DebeziumConnectorManager] = None,
        history_reader: Optional[SchemaHistoryReader] = None,
        schema_miner: Optional[SchemaMiner] = None
    ):
        """
        Args:
            connect_url: Kafka Connect REST URL
            brokers: Fallback brokers for history topics whose connector config has none
            request_timeout: Timeout for each REST call, in seconds
            manager: REST client (built from connect_url when omitted)
            history_reader: Bounded history topic reader
            schema_miner: Schema miner applied to history records
        """
        self.connect_url = connect_url
        self.brokers = list(brokers or [])
        self.manager = manager or DebeziumConnectorManager(connect_url, timeout=request_timeout)
        self.history_reader = history_reader or SchemaHistoryReader()
        self.schema_miner = schema_miner or RegexDDLSchemaMiner()

    @property
    def name(self) -> str:
        return 'debezium'

    def inspect_connectors(self) -> List[ConnectorResult]:
        """
        Inspect every connector.

        Returns:
            List[ConnectorResult]: One result per connector, or a single unreachable
                result when Kafka Connect cannot be reached

        Raises:
            ConnectorListingError: Kafka Connect answered the listing with a non-success status
        """
        try:
            connectors = self.manager.list_connectors()
        except KafkaConnectUnavailable as e:
            return [ConnectorResult(name='', reachable=False, warnings=[str(e)])]

        results = []
        with log_operation(logger, 'connector_inspection', connect_url=self.connect_url):
            for connector_name in connectors:
                results.append(self.inspect_connector(connector_name))
        return results

    def inspect_connector(self, connector_name: str) -> ConnectorResult:
        result = ConnectorResult(name=connector_name, reachable=True)

        success, config, error = self.manager.get_connector_config(connector_name)
        if success:
            self._apply_table_list(result, config)
            self._check_snapshot_mode(result, config)
        else:
            logger.warning(f"[{connector_name}] Config unavailable: {error}")
            result.unavailable.append('config')
            config = None

        success, status, error = self.manager.get_connector_status(connector_name)
        if success:
            self._check_health(result, status)
        else:
            logger.warning(f"[{connector_name}] Status unavailable: {error}")
            result.unavailable.append('status')

        if config is not None:
            self._mine_schema_history(result, config)

        log_connector_inspected(connector_name, len(result.captured_tables), len(result.warnings), result.unavailable)
        return result

    def _declared_table_list(self, config: Dict[str, Any]) -> Optional[str]:
        for key in TABLE_LIST_KEYS:
            value = config.get(key)
            if isinstance(value, str):
                return value
        return None

    def _apply_table_list(self, result: ConnectorResult, config: Dict[str, Any]):
        table_list = self._declared_table_list(config)
        if table_list is None:
            return
        for table_name in parse_table_list(table_list):
            result.add_captured_table(table_name)

    def _check_snapshot_mode(self, result: ConnectorResult, config: Dict[str, Any]):
        snapshot_mode = config.get(SNAPSHOT_MODE_KEY)
        if not isinstance(snapshot_mode, str):
            return

        mode = snapshot_mode.strip().lower()
        if mode in RISKY_SNAPSHOT_MODES:
            result.warnings.append(
                f"Connector {result.name} has snapshot.mode={mode}; snapshots disabled or schema-only "
                f"(CDC may miss initial data). This check will not attempt to trigger snapshots."
            )

    def _check_health(self, result: ConnectorResult, status: Dict[str, Any]):
        connector_state = str((status.get('connector') or {}).get('state', 'UNKNOWN'))
        tasks = status.get('tasks') or []

        task_summaries = []
        failed_tasks = []
        for task in tasks:
            task_id = task.get('id')
            task_state = str(task.get('state', 'UNKNOWN'))
            task_summaries.append(f"{task_id}:{task_state}")
            if task_state.upper() != RUNNING:
                failed_tasks.append(str(task_id))

        result.warnings.append(
            f"Connector {result.name} health: connector={connector_state} tasks=[{','.join(task_summaries)}]"
        )

        connector_running = connector_state.upper() == RUNNING
        if not connector_running:
            result.warnings.append(f"Connector {result.name} state={connector_state}")

        if failed_tasks:
            result.warnings.append(
                f"Connector {result.name} has failed task(s): [{', '.join(failed_tasks)}]"
            )
            # Heuristic: the connector claims to be healthy while its tasks disagree.
            if connector_running:
                result.warnings.append(
                    f"Connector {result.name} may be in restart loop: connector RUNNING but tasks failing"
                )

    def _history_location(self, config: Dict[str, Any]) -> Tuple[Optional[str], List[str]]:
        for topic_key, brokers_key in HISTORY_TOPIC_KEYS:
            topic = config.get(topic_key)
            if isinstance(topic, str) and topic.strip():
                brokers = parse_brokers(config.get(brokers_key) or '') or self.brokers
                return topic.strip(), brokers
        return None, []

    def _mine_schema_history(self, result: ConnectorResult, config: Dict[str, Any]):
        topic, brokers = self._history_location(config)
        if topic is None:
            return
        if not brokers:
            logger.debug(f"[{result.name}] History topic {topic} has no brokers configured")
            return

        try:
            mined = self.schema_miner.mine(self.history_reader.read(brokers, topic))
        except HistoryReadError as e:
            logger.warning(f"[{result.name}] Schema history unavailable from {topic}: {e}")
            result.unavailable.append('schema_history')
            return

        if mined is None:
            logger.info(f"[{result.name}] No schemas found in history topic {topic}")
            return

        # Without an include list the connector captures every table it has seen.
        extend_captured = self._declared_table_list(config) is None

        if result.table_schemas is None:
            result.table_schemas = {}
        if result.schema_timestamps is None:
            result.schema_timestamps = {}

        for table_name, table_schema in mined.tables.items():
            result.table_schemas[table_name] = table_schema
            if table_name in mined.timestamps:
                result.schema_timestamps[table_name] = mined.timestamps[table_name]
            if extend_captured:
                result.add_captured_table(table_name)
