"""
Unit tests for best-effort schema mining
"""

import json
from datetime import datetime, timezone

from datawatch.cdc.ddl.schema_miner import (
    RegexDDLSchemaMiner,
    parse_column,
    parse_create_tables,
    split_definitions,
)
from datawatch.cdc.kafka.history_reader import HistoryMessage
from datawatch.drift.validator import validate
from datawatch.models import CDCResult, Column, ColumnSchema, SourceSnapshot, TableInfo

T1 = datetime(2024, 1, 1, tzinfo=timezone.utc)
T2 = datetime(2024, 2, 1, tzinfo=timezone.utc)

ORDERS_DDL = (
    "CREATE TABLE `orders` (\n"
    "  `id` int NOT NULL AUTO_INCREMENT,\n"
    "  `customer_email` varchar(255) DEFAULT NULL,\n"
    "  `total` decimal(10,2) NOT NULL,\n"
    "  `note` text,\n"
    "  PRIMARY KEY (`id`),\n"
    "  KEY `idx_email` (`customer_email`)\n"
    ") ENGINE=InnoDB"
)


def history_record(ddl, timestamp=None):
    payload = {
        "source": {"server": "inventory"},
        "databaseName": "inventory",
        "ddl": ddl,
        "tableChanges": [],
    }
    return HistoryMessage(json.dumps(payload).encode("utf-8"), timestamp)


class TestParsing:
    """Test DDL parsing helpers"""

    def test_split_keeps_parenthesised_types(self):
        parts = split_definitions("`a` decimal(10,2) NOT NULL, `b` int, PRIMARY KEY (`a`,`b`)")
        assert parts == ["`a` decimal(10,2) NOT NULL", "`b` int", "PRIMARY KEY (`a`,`b`)"]

    def test_parse_column_with_markers(self):
        assert parse_column("`id` int NOT NULL AUTO_INCREMENT")[1].nullable is False
        name, column = parse_column("`email` varchar(255) DEFAULT NULL")
        assert name == "email"
        assert column.type == "VARCHAR(255)"
        assert column.nullable is True

    def test_unmarked_column_defaults_to_not_null(self):
        name, column = parse_column("note text")
        assert name == "note"
        assert column.type == "TEXT"
        assert column.nullable is False

    def test_constraint_lines_are_skipped(self):
        assert parse_column("PRIMARY KEY (`id`)") is None
        assert parse_column("KEY `idx` (`a`)") is None
        assert parse_column("UNIQUE KEY `uq` (`a`)") is None
        assert parse_column("CONSTRAINT `fk` FOREIGN KEY (`a`) REFERENCES b (`id`)") is None

    def test_parse_create_tables(self):
        tables = parse_create_tables(ORDERS_DDL)

        assert len(tables) == 1
        name, columns = tables[0]
        assert name == "orders"
        assert list(columns) == ["id", "customer_email", "total", "note"]
        assert columns["total"].type == "DECIMAL(10,2)"
        assert columns["customer_email"].nullable is True

    def test_qualified_and_if_not_exists(self):
        tables = parse_create_tables("create table if not exists `inventory`.`items` (`sku` varchar(32) NOT NULL)")
        assert tables[0][0] == "items"
        assert tables[0][1]["sku"].type == "VARCHAR(32)"

    def test_unsigned_and_zerofill_stay_in_type(self):
        name, column = parse_column("`id` bigint unsigned NOT NULL AUTO_INCREMENT")
        assert name == "id"
        assert column == ColumnSchema(type="BIGINT UNSIGNED", nullable=False)
        assert parse_column("`qty` int(10) unsigned zerofill DEFAULT NULL")[1].type == "INT(10) UNSIGNED ZEROFILL"

    def test_unsigned_column_matches_source_type(self):
        source = SourceSnapshot(tables=[TableInfo(
            name="orders",
            columns=[Column("id", "bigint unsigned", False)],
            primary_key=["id"],
        )])
        mined = RegexDDLSchemaMiner().mine([history_record(
            "CREATE TABLE `orders` (`id` bigint unsigned NOT NULL AUTO_INCREMENT, PRIMARY KEY (`id`))", T1
        )])
        cdc = CDCResult(reachable=True, captured_tables=["orders"], table_schemas=mined.tables)

        assert validate(source, cdc).issues == []


class TestRegexDDLSchemaMiner:
    """Test mining over history records"""

    def test_mines_ddl_field(self):
        mined = RegexDDLSchemaMiner().mine([history_record(ORDERS_DDL, T1)])

        assert set(mined.tables) == {"orders"}
        assert set(mined.tables["orders"].columns) == {"id", "customer_email", "total", "note"}
        assert mined.timestamps == {"orders": T1}

    def test_keeps_latest_timestamp(self):
        messages = [
            history_record("CREATE TABLE users (id int NOT NULL)", T2),
            history_record("CREATE TABLE users (id bigint NOT NULL)", T1),
        ]

        mined = RegexDDLSchemaMiner().mine(messages)

        assert mined.timestamps["users"] == T2

    def test_later_definition_replaces_columns(self):
        messages = [
            history_record("CREATE TABLE users (id int NOT NULL)", T1),
            history_record("CREATE TABLE users (id int NOT NULL, email varchar(64) NULL)", T2),
        ]

        mined = RegexDDLSchemaMiner().mine(messages)

        assert set(mined.tables["users"].columns) == {"id", "email"}

    def test_create_table_split_across_lines(self):
        mined = RegexDDLSchemaMiner().mine([history_record("CREATE\n  TABLE users (id int NOT NULL)", T1)])

        assert set(mined.tables) == {"users"}

    def test_non_json_messages_are_skipped(self):
        messages = [
            HistoryMessage(b"CREATE TABLE users (id int)", T1),
            HistoryMessage(b"\xff\xfe", T1),
        ]
        assert RegexDDLSchemaMiner().mine(messages) is None

    def test_no_tables_is_a_miss(self):
        messages = [history_record("ALTER TABLE users ADD COLUMN x int", T1)]
        assert RegexDDLSchemaMiner().mine(messages) is None

    def test_missing_timestamp_leaves_table_untimed(self):
        mined = RegexDDLSchemaMiner().mine([history_record("CREATE TABLE users (id int)")])

        assert "users" in mined.tables
        assert mined.timestamps == {}

    def test_raw_json_payload_without_ddl_field(self):
        payload = json.dumps({"statement": "CREATE TABLE logs (\n  msg text NULL\n)"}).encode("utf-8")

        mined = RegexDDLSchemaMiner().mine([HistoryMessage(payload, T1)])

        assert mined.tables["logs"].columns["msg"].nullable is True
