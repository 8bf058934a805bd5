from .dispatcher import BackendDispatcher
from .grafana_api_processor import GrafanaApiProcessor

__all__ = ["BackendDispatcher", "GrafanaApiProcessor"]
