import logging
from typing import Union

from ..models import DataSourceIdentity, QueryDescriptor, QueryExecutionRequest, TIMEOUT_INPUT_RE, VariableQuery
from ..settings import DEFAULT_VARIABLE_TIMEOUT_MS
from ..template_service import TemplateService

logger = logging.getLogger(__name__)


def parse_timeout(value: Union[str, int, None], default: int = DEFAULT_VARIABLE_TIMEOUT_MS) -> int:
    """Base-10 millisecond count; empty, negative or non-numeric input gives the default."""
    if isinstance(value, bool):
        return default
    if isinstance(value, int):
        return value if value >= 0 else default
    if isinstance(value, str) and TIMEOUT_INPUT_RE.fullmatch(value.strip()):
        try:
            return int(value.strip(), 10)
        except ValueError as e:
            logger.debug(f"Unable to convert variable query timeout, using {default}ms: {e}")
            return default
    if value not in (None, ''):
        logger.debug(f"Ignoring invalid variable query timeout {value!r}, using {default}ms")
    return default


def build(query: VariableQuery, identity: DataSourceIdentity,
          template_service: TemplateService) -> QueryExecutionRequest:
    """
    Build the single-query batch for a variable query.

    orgId falls back to the datasource id when the identity carries no
    organisation, which is what deployed dashboards already send.
    """
    query_text = query.query_text or ''
    if query_text:
        query_text = template_service.replace(query_text)

    org_id = identity.org_id if identity.org_id is not None else identity.id
    descriptor = QueryDescriptor(
        datasource_id=identity.id,
        org_id=org_id,
        query_text=query_text,
        time_out=parse_timeout(query.time_out),
    )
    return QueryExecutionRequest(queries=[descriptor])
