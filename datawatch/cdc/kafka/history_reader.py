"""
Bounded reads from a Debezium schema history topic.

A history topic is a live log: tailing it never "finishes". Reads are therefore capped
by message count and by wall-clock time, whichever comes first.
"""

import logging
import time
import uuid
from datetime import datetime, timezone
from typing import Callable, Dict, Iterator, List, NamedTuple, Optional

from confluent_kafka import (
    OFFSET_BEGINNING,
    TIMESTAMP_NOT_AVAILABLE,
    Consumer,
    KafkaError,
    KafkaException,
    TopicPartition,
)

logger = logging.getLogger(__name__)

HISTORY_MAX_MESSAGES = 500
HISTORY_TIMEOUT_SECONDS = 3.0
POLL_INTERVAL_SECONDS = 0.5

# Debezium requires schema history topics to have a single partition
HISTORY_PARTITION = 0


class HistoryReadError(Exception):
    """Raised when the history topic cannot be read"""
    pass


class HistoryMessage(NamedTuple):
    """One schema history record: raw payload plus its log timestamp (if any)."""
    value: bytes
    timestamp: Optional[datetime] = None


def parse_brokers(brokers_csv: str) -> List[str]:
    return [broker.strip() for broker in (brokers_csv or '').split(',') if broker.strip()]


class SchemaHistoryReader:
    """
    Reads the head of a schema history topic.

    The history partition is assigned directly from its first offset. No consumer
    group is joined, so the read starts without waiting for a group rebalance, and
    offsets are never committed.
    """

    def __init__(
        self,
        max_messages: int = HISTORY_MAX_MESSAGES,
        timeout_seconds: float = HISTORY_TIMEOUT_SECONDS,
        consumer_factory: Callable[[Dict], Consumer] = Consumer
    ):
        """
        Args:
            max_messages: Maximum number of records to read
            timeout_seconds: Wall-clock budget for the whole read
            consumer_factory: Builds the Kafka consumer from its config dict
        """
        self.max_messages = max_messages
        self.timeout_seconds = timeout_seconds
        self.consumer_factory = consumer_factory

    def _consumer_config(self, brokers: List[str]) -> Dict:
        return {
            'bootstrap.servers': ','.join(brokers),
            # The client wants a group id even though assign() never joins the group
            'group.id': f'datawatch-history-{uuid.uuid4().hex}',
            'auto.offset.reset': 'earliest',
            'enable.auto.commit': False,
            'enable.partition.eof': True,
        }

    @staticmethod
    def _message_timestamp(msg) -> Optional[datetime]:
        timestamp_type, timestamp_ms = msg.timestamp()
        if timestamp_type == TIMESTAMP_NOT_AVAILABLE or timestamp_ms is None or timestamp_ms < 0:
            return None
        return datetime.fromtimestamp(timestamp_ms / 1000.0, tz=timezone.utc)

    def read(self, brokers: List[str], topic: str) -> Iterator[HistoryMessage]:
        """
        Yield history records lazily, oldest first.

        Args:
            brokers: Kafka bootstrap servers
            topic: Schema history topic name

        Raises:
            HistoryReadError: No brokers given, or the consumer could not be created
        """
        if not brokers:
            raise HistoryReadError("no kafka brokers provided")

        try:
            consumer = self.consumer_factory(self._consumer_config(brokers))
        except KafkaException as e:
            raise HistoryReadError(f"Failed to create history consumer: {e}") from e

        try:
            consumer.assign([TopicPartition(topic, HISTORY_PARTITION, OFFSET_BEGINNING)])
        except KafkaException as e:
            consumer.close()
            raise HistoryReadError(f"Failed to assign {topic}: {e}") from e

        deadline = time.monotonic() + self.timeout_seconds
        count = 0

        try:
            while count < self.max_messages:
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    logger.debug(f"History read of {topic} hit the {self.timeout_seconds}s time limit")
                    break

                msg = consumer.poll(timeout=min(remaining, POLL_INTERVAL_SECONDS))
                if msg is None:
                    continue

                if msg.error():
                    if msg.error().code() == KafkaError._PARTITION_EOF:
                        logger.debug(f"Reached end of history topic {topic}")
                        break
                    logger.warning(f"Kafka error while reading {topic}: {msg.error()}")
                    break

                count += 1
                value = msg.value()
                if value is None:
                    continue
                yield HistoryMessage(value=value, timestamp=self._message_timestamp(msg))
        finally:
            logger.debug(f"Read {count} message(s) from {topic}")
            try:
                consumer.close()
            except KafkaException as e:
                logger.warning(f"Error while closing history consumer: {e}")
