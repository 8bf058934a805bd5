"""
kdb+ datasource client

Client-side integration layer for the kdb+ backend datasource of a Grafana
host: connection settings, panel queries and variable query resolution.
"""

from .exceptions import (KdbClientError, ConfigurationError, ConnectionError, ValidationError,
                         QueryExecutionError, ResponseShapeError, ResolutionError)
from .client import KdbDataSourceClient
from .core.datasource import KdbDataSource
from .core.models import DataSourceIdentity, KdbQuery, VariableQuery, VariableValue
from .core.variable_query import VariableQueryResolver, resolve_variable_query

__version__ = "1.0.0"
__all__ = [
    "KdbDataSourceClient", "KdbDataSource", "VariableQueryResolver", "resolve_variable_query",
    "DataSourceIdentity", "KdbQuery", "VariableQuery", "VariableValue",
    "KdbClientError", "ConfigurationError", "ConnectionError", "ValidationError",
    "QueryExecutionError", "ResponseShapeError", "ResolutionError",
]
