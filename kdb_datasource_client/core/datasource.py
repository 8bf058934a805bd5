"""
kdb+ datasource as seen from the dashboard host
"""

import logging
from dataclasses import replace
from typing import Any, Dict, List, Optional, Tuple

from .config import KdbDataSourceSettings
from .integrations.dispatcher import BackendDispatcher
from .integrations.grafana_api_processor import GrafanaApiProcessor
from .models import KdbQuery, VariableQuery, VariableValue
from .settings import PLUGIN_TYPE
from .template_service import IdentityTemplateService, TemplateService
from .variable_query.resolver import VariableQueryResolver
from ..exceptions import ConnectionError, QueryExecutionError, ValidationError

logger = logging.getLogger(__name__)


class KdbDataSource:

    def __init__(self, processor: GrafanaApiProcessor, settings: KdbDataSourceSettings,
                 template_service: Optional[TemplateService] = None):
        self.processor = processor
        self.settings = settings
        self.template_service = template_service or IdentityTemplateService()
        self.resolver = VariableQueryResolver(BackendDispatcher(processor), settings.identity,
                                              self.template_service)

    @property
    def id(self) -> int:
        return self.settings.identity.id

    def apply_template_variables(self, query: KdbQuery) -> KdbQuery:
        query_text = self.template_service.replace(query.query_text) if query.query_text else ''
        return replace(query, query_text=query_text)

    def _datasource_ref(self) -> Dict[str, Any]:
        ref = {'type': PLUGIN_TYPE}
        if self.settings.identity.uid:
            ref['uid'] = self.settings.identity.uid
        return ref

    def query(self, queries: List[KdbQuery], time_from: Optional[str] = None,
              time_to: Optional[str] = None) -> Dict[str, Any]:
        """
        Execute panel queries through the plugin backend.

        Args:
            queries: Panel queries; template variables are applied before sending
            time_from: Range start as understood by the host (e.g. 'now-1h' or epoch ms)
            time_to: Range end

        Returns:
            The raw response, results keyed by refId
        """
        if not queries:
            raise ValidationError("No queries provided.")
        ref_ids = [q.ref_id for q in queries]
        if len(set(ref_ids)) != len(ref_ids):
            raise ValidationError(f"Duplicate refIds in query batch: {ref_ids}")

        payload_queries = []
        for query in queries:
            body = self.apply_template_variables(query).to_dict()
            body['datasource'] = self._datasource_ref()
            body['datasourceId'] = self.id
            payload_queries.append(body)

        payload = {'queries': payload_queries}
        if time_from is not None:
            payload['from'] = str(time_from)
        if time_to is not None:
            payload['to'] = str(time_to)

        try:
            return self.processor.query_datasource(payload)
        except Exception as e:
            raise QueryExecutionError(f"Panel query execution failed: {e}") from e

    async def metric_find_query(self, query: VariableQuery) -> List[VariableValue]:
        return await self.resolver.resolve(query)

    def test_datasource(self) -> Tuple[bool, str]:
        uid = self.settings.identity.uid
        if not uid:
            raise ConnectionError("Datasource uid is required for a health check")
        try:
            result = self.processor.check_data_source_health(uid)
        except Exception as e:
            raise ConnectionError(f"Health check failed for datasource {uid}: {e}")
        status = str(result.get('status', '')).upper()
        message = result.get('message', '')
        logger.info(f"Health check for datasource {uid}: {status} {message}")
        return status == 'OK', message
