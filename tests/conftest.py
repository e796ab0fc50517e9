"""
Pytest configuration and fixtures
"""

from datetime import datetime, timezone

import pytest

from datawatch.models import CDCResult, Column, ColumnSchema, SourceSnapshot, TableInfo, TableSchema


@pytest.fixture
def users_table():
    """Source table matching the CDC schema in `matching_cdc_result`"""
    return TableInfo(
        name="users",
        columns=[
            Column(name="id", type="int", nullable=False),
            Column(name="email", type="varchar(255)", nullable=False),
        ],
        primary_key=["id"],
        row_count=42,
    )


@pytest.fixture
def source_snapshot(users_table):
    return SourceSnapshot(tables=[users_table])


@pytest.fixture
def matching_cdc_result():
    """CDC view that agrees with `source_snapshot`"""
    return CDCResult(
        reachable=True,
        captured_tables=["users"],
        table_schemas={
            "users": TableSchema(columns={
                "id": ColumnSchema(type="INT", nullable=False),
                "email": ColumnSchema(type="VARCHAR(255)", nullable=False),
            })
        },
        schema_timestamps={"users": datetime(2024, 1, 2, tzinfo=timezone.utc)},
    )


@pytest.fixture
def connector_config():
    """Kafka Connect config payload for a MySQL Debezium connector"""
    return {
        "connector.class": "io.debezium.connector.mysql.MySqlConnector",
        "database.hostname": "mysql",
        "table.include.list": "inventory.users,inventory.orders",
        "snapshot.mode": "initial",
        "schema.history.internal.kafka.topic": "schema-changes.inventory",
        "schema.history.internal.kafka.bootstrap.servers": "kafka:9092",
    }


@pytest.fixture
def running_status():
    return {
        "name": "inventory-connector",
        "connector": {"state": "RUNNING", "worker_id": "connect:8083"},
        "tasks": [{"id": 0, "state": "RUNNING", "worker_id": "connect:8083"}],
    }
