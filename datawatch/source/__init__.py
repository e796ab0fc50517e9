from .database_utils import DatabaseConnectionError, DatabaseOperationError
from .mysql_inspector import MySQLInspector

__all__ = ['DatabaseConnectionError', 'DatabaseOperationError', 'MySQLInspector']
