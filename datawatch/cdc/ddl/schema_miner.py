"""
Best-effort schema recovery from schema history records.

SchemaMiner is the narrow seam between the inspector and whatever understands DDL.
RegexDDLSchemaMiner is the heuristic implementation: it scans CREATE TABLE statements
with pattern matching, not a grammar, and may under-report. Its output is a staleness
and coverage signal only.
"""

import json
import logging
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, Iterable, List, Optional, Tuple

from datawatch.cdc.kafka.history_reader import HistoryMessage
from datawatch.models import ColumnSchema, TableSchema

logger = logging.getLogger(__name__)


@dataclass
class MinedSchemas:
    """
    Attributes:
        tables: Column schema per table name
        timestamps: Latest history timestamp seen per table
    """
    tables: Dict[str, TableSchema] = field(default_factory=dict)
    timestamps: Dict[str, datetime] = field(default_factory=dict)


class SchemaMiner(ABC):
    """Recover table schemas from a sequence of history records."""

    @abstractmethod
    def mine(self, messages: Iterable[HistoryMessage]) -> Optional[MinedSchemas]:
        """
        Returns:
            Optional[MinedSchemas]: None when no table schema could be recovered
        """
        pass


CREATE_TABLE_RE = re.compile(
    r'CREATE\s+TABLE\s+(?:IF\s+NOT\s+EXISTS\s+)?'
    r'(?:[`"]?[\w$]+[`"]?\s*\.\s*)?'
    r'[`"]?([\w$]+)[`"]?\s*\(',
    re.IGNORECASE
)

COLUMN_RE = re.compile(
    r'^\s*(?:`([^`]+)`|"([^"]+)"|([A-Za-z_][\w$]*))\s+'
    r'([A-Za-z][\w ]*?(?:\s*\([^)]*\))?(?:\s+(?i:UNSIGNED|SIGNED|ZEROFILL))*)(?=\s|$)(.*)$',
    re.DOTALL
)

NOT_NULL_RE = re.compile(r'\bNOT\s+NULL\b', re.IGNORECASE)
NULL_RE = re.compile(r'\bNULL\b', re.IGNORECASE)

CONSTRAINT_KEYWORDS = frozenset({
    'PRIMARY', 'KEY', 'INDEX', 'UNIQUE', 'CONSTRAINT', 'FOREIGN',
    'CHECK', 'FULLTEXT', 'SPATIAL',
})


def _payload_text(value: bytes) -> Optional[str]:
    """
    Text to scan for DDL, or None for records that are not structured data.

    Debezium history records carry the statement in a 'ddl' field; anything else is
    scanned as raw payload text.
    """
    try:
        text = value.decode('utf-8')
        payload = json.loads(text)
    except (UnicodeDecodeError, ValueError):
        return None

    if isinstance(payload, dict) and isinstance(payload.get('ddl'), str):
        return payload['ddl']

    # Raw JSON text keeps escapes; undo the ones that break column matching.
    return text.replace('\\n', ' ').replace('\\t', ' ').replace('\\"', '"')


def _closing_paren(text: str, start: int) -> int:
    """Index of the parenthesis closing the one opened just before `start`, or -1."""
    depth = 1
    for index in range(start, len(text)):
        char = text[index]
        if char == '(':
            depth += 1
        elif char == ')':
            depth -= 1
            if depth == 0:
                return index
    return -1


def split_definitions(body: str) -> List[str]:
    """Split a CREATE TABLE body on commas that are not inside parentheses."""
    parts = []
    depth = 0
    current = []
    for char in body:
        if char == '(':
            depth += 1
        elif char == ')':
            depth -= 1
        if char == ',' and depth == 0:
            parts.append(''.join(current))
            current = []
        else:
            current.append(char)
    parts.append(''.join(current))
    return [part.strip() for part in parts if part.strip()]


def parse_column(definition: str) -> Optional[Tuple[str, ColumnSchema]]:
    """
    Parse one column definition such as "`email` varchar(255) DEFAULT NULL".

    Nullability defaults to NOT NULL when the definition carries no marker.
    """
    match = COLUMN_RE.match(definition)
    if not match:
        return None

    quoted_name = match.group(1) or match.group(2)
    bare_name = match.group(3)
    if bare_name and bare_name.upper() in CONSTRAINT_KEYWORDS:
        return None

    name = quoted_name or bare_name
    column_type = re.sub(r'\s+', ' ', match.group(4)).strip()
    column_type = re.sub(r'\s*\(\s*', '(', column_type).upper()
    rest = match.group(5)

    if NOT_NULL_RE.search(rest):
        nullable = False
    elif NULL_RE.search(rest):
        nullable = True
    else:
        nullable = False

    return name, ColumnSchema(type=column_type, nullable=nullable)


def parse_create_tables(text: str) -> List[Tuple[str, Dict[str, ColumnSchema]]]:
    """Every CREATE TABLE statement found in `text`, as (table, columns) pairs."""
    tables = []
    for match in CREATE_TABLE_RE.finditer(text):
        close = _closing_paren(text, match.end())
        if close < 0:
            logger.debug(f"Unterminated CREATE TABLE for {match.group(1)}")
            continue

        columns = {}
        for definition in split_definitions(text[match.end():close]):
            parsed = parse_column(definition)
            if parsed is not None:
                columns[parsed[0]] = parsed[1]

        tables.append((match.group(1), columns))
    return tables


class RegexDDLSchemaMiner(SchemaMiner):
    """Pattern-matching CREATE TABLE miner for MySQL-flavoured DDL."""

    def mine(self, messages: Iterable[HistoryMessage]) -> Optional[MinedSchemas]:
        mined = MinedSchemas()
        scanned = 0

        for message in messages:
            scanned += 1
            text = _payload_text(message.value)
            if text is None:
                continue
            if not CREATE_TABLE_RE.search(text):
                continue

            for table_name, columns in parse_create_tables(text):
                if not columns:
                    continue
                mined.tables[table_name] = TableSchema(columns=columns)
                if message.timestamp is not None:
                    seen = mined.timestamps.get(table_name)
                    if seen is None or message.timestamp > seen:
                        mined.timestamps[table_name] = message.timestamp

        if not mined.tables:
            logger.info(f"No table schemas found in {scanned} history message(s)")
            return None

        logger.info(f"Recovered {len(mined.tables)} table schema(s) from {scanned} history message(s)")
        return mined
