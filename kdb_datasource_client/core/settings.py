"""
Settings and configuration constants for the kdb+ datasource client.

This module contains global configuration constants used throughout the client.
"""

# Plugin id of the kdb+ backend datasource registered in the host
PLUGIN_TYPE = 'kdb-backend-datasource'

# Host endpoint that executes datasource queries through the plugin backend
QUERY_ENDPOINT = '/api/ds/query'

# Default variable query timeout in milliseconds, enforced by the backend
DEFAULT_VARIABLE_TIMEOUT_MS = 10000

# Text of the single entry returned when a variable query cannot be resolved
ERROR_SENTINEL_TEXT = 'ERROR'

# Timeout in seconds for host management calls (health, datasource settings).
# Query execution is not bounded client-side, the backend applies timeOut.
EXTERNAL_CALL_TIMEOUT = 20
