import asyncio
import logging
from typing import Any, Dict

from .grafana_api_processor import GrafanaApiProcessor
from ..models import QueryExecutionRequest

logger = logging.getLogger(__name__)


class BackendDispatcher:
    """
    Sends a query batch to the host's query endpoint without blocking the event loop.

    One POST per call. No retries, and the request is never aborted client-side:
    the backend enforces the timeOut carried in each query.
    """

    def __init__(self, processor: GrafanaApiProcessor):
        self.processor = processor

    async def dispatch(self, request: QueryExecutionRequest) -> Dict[str, Any]:
        payload = request.to_dict()
        logger.debug(f"Dispatching query batch: {payload}")
        return await asyncio.to_thread(self.processor.query_datasource, payload)
