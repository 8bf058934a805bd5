"""
kdb+ datasource client - entry point wiring the host API, settings and resolver
"""

import asyncio
import logging
import os
from dataclasses import replace
from typing import Any, Dict, List, Optional, Union

import yaml

from .exceptions import ConfigurationError, ConnectionError
from .core.config import KdbDataSourceSettings
from .core.datasource import KdbDataSource
from .core.integrations.grafana_api_processor import GrafanaApiProcessor
from .core.models import VariableQuery, VariableValue
from .core.template_service import DashboardTemplateService, TemplateService

logger = logging.getLogger(__name__)


class KdbDataSourceClient:
    """
    Client for a kdb+ datasource registered in a Grafana host.

    The credentials file has a `grafana` section (grafana_host, grafana_api_key,
    ssl_verify), a `kdb` section (id, uid, optional org_id, connection options
    and secrets) and an optional `variables` section with template variable values.
    """

    def __init__(self, credentials_file_path: str, template_service: Optional[TemplateService] = None):
        """
        Initialize the client with credentials file path

        Args:
            credentials_file_path: Path to the YAML credentials file
            template_service: Overrides the variables section of the file
        """
        self.credentials_file_path = credentials_file_path
        self.credentials = self._load_credentials()
        self.processor = self._create_processor()
        self.settings = KdbDataSourceSettings.from_dict(self.credentials.get('kdb'))
        if template_service is None:
            template_service = DashboardTemplateService(self.credentials.get('variables') or {})
        self.datasource = KdbDataSource(self.processor, self.settings, template_service)

    def _load_credentials(self) -> Dict[str, Any]:
        """Load credentials from YAML file"""
        if not os.path.exists(self.credentials_file_path):
            raise ConfigurationError(f"Credentials file not found: {self.credentials_file_path}")
        try:
            with open(self.credentials_file_path, 'r') as f:
                credentials = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML in credentials file: {e}")
        except OSError as e:
            raise ConfigurationError(f"Error loading credentials: {e}")

        if not credentials or not isinstance(credentials, dict):
            raise ConfigurationError("Credentials file is empty or invalid")
        for section in ('grafana', 'kdb'):
            if section not in credentials:
                raise ConfigurationError(f"Missing '{section}' section in credentials file")
        return credentials

    def _create_processor(self) -> GrafanaApiProcessor:
        grafana = self.credentials['grafana'] or {}
        host = grafana.get('grafana_host')
        api_key = grafana.get('grafana_api_key')
        if not host or not api_key:
            raise ConfigurationError("grafana_host and grafana_api_key are required")
        return GrafanaApiProcessor(host, api_key, str(grafana.get('ssl_verify', 'true')))

    def test_connection(self) -> bool:
        """
        Test the host API and, when a uid is configured, the datasource backend

        Raises:
            ConnectionError: If either check fails
        """
        try:
            self.processor.test_connection()
        except Exception as e:
            raise ConnectionError(f"Connection test failed for grafana: {e}")
        if not self.settings.identity.uid:
            logger.info("No datasource uid configured, skipping datasource health check")
            return True
        ok, message = self.datasource.test_datasource()
        if not ok:
            raise ConnectionError(f"Datasource health check failed: {message}")
        return True

    def sync_org_id(self) -> Optional[int]:
        """Replace the configured org id with the one the host reports for this datasource"""
        uid = self.settings.identity.uid
        if not uid:
            raise ConfigurationError("Datasource uid is required to look up its organisation")
        remote = KdbDataSourceSettings.from_grafana(self.processor.fetch_data_source(uid))
        if remote.identity.id != self.settings.identity.id:
            logger.warning(f"Configured datasource id {self.settings.identity.id} differs from host id "
                           f"{remote.identity.id} for uid {uid}")
        self.settings.identity = replace(self.settings.identity, org_id=remote.identity.org_id)
        self.settings.secure_json_fields = remote.secure_json_fields
        self.datasource.resolver.identity = self.settings.identity
        return self.settings.identity.org_id

    def save_settings(self) -> Dict[str, Any]:
        """Push the configured connection options and supplied secrets to the host"""
        uid = self.settings.identity.uid
        if not uid:
            raise ConfigurationError("Datasource uid is required to save its settings")
        return self.processor.update_data_source(uid, self.settings.to_grafana_payload())

    def resolve_variable_query(self, query_text: str, time_out: Union[str, int, None] = '') -> List[VariableValue]:
        """Blocking wrapper around the async variable query resolver"""
        query = VariableQuery(query_text=query_text, time_out=time_out)
        return asyncio.run(self.datasource.metric_find_query(query))
