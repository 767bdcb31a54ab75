from .client import PhoenixClient
from .materializer import build_columns, convert_value, materialize, resolve_type
from .session import SessionManager, SessionState
from .statement import ExecuteOutcome, StatementExecutor, normalize_sql
from .table import ColumnDescriptor, ColumnType, ResultTable
from .transport import AvaticaTransport

__all__ = [
    "AvaticaTransport",
    "ColumnDescriptor",
    "ColumnType",
    "ExecuteOutcome",
    "PhoenixClient",
    "ResultTable",
    "SessionManager",
    "SessionState",
    "StatementExecutor",
    "build_columns",
    "convert_value",
    "materialize",
    "normalize_sql",
    "resolve_type",
]
