import logging
from dataclasses import dataclass, field
from typing import List, Optional

from .request_builder import build
from .response_flattener import flatten
from ..integrations.dispatcher import BackendDispatcher
from ..models import DataSourceIdentity, VariableQuery, VariableValue
from ..settings import ERROR_SENTINEL_TEXT
from ..template_service import IdentityTemplateService, TemplateService
from ...exceptions import ResolutionError

logger = logging.getLogger(__name__)


def error_sentinel() -> List[VariableValue]:
    return [VariableValue(text=ERROR_SENTINEL_TEXT)]


@dataclass
class ResolutionOutcome:
    values: List[VariableValue] = field(default_factory=list)
    error: Optional[ResolutionError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def public_values(self) -> List[VariableValue]:
        return self.values if self.ok else error_sentinel()


class VariableQueryResolver:
    """
    Resolves a variable query into the ordered list of values shown in a dropdown.

    Failures of any kind never propagate: they are logged and reported to the
    caller as a single `ERROR` entry. Each call also takes a generation number
    so callers driving an editor can drop results overtaken by a newer edit.
    """

    def __init__(self, dispatcher: BackendDispatcher, identity: DataSourceIdentity,
                 template_service: Optional[TemplateService] = None):
        self.dispatcher = dispatcher
        self.identity = identity
        self.template_service = template_service or IdentityTemplateService()
        self._generation = 0

    @property
    def generation(self) -> int:
        return self._generation

    async def resolve_outcome(self, query: VariableQuery) -> ResolutionOutcome:
        try:
            request = build(query, self.identity, self.template_service)
        except Exception as e:
            error = ResolutionError(f"Failed to build variable query request: {e}", cause=e)
            logger.error(str(error))
            return ResolutionOutcome(error=error)

        try:
            response = await self.dispatcher.dispatch(request)
            values = flatten(response)
        except Exception as e:
            error = ResolutionError(f"Failed to resolve variable query '{query.query_text}': {e}", cause=e)
            logger.error(str(error))
            return ResolutionOutcome(error=error)

        logger.info(f"Resolved variable query '{query.query_text}' to {len(values)} values")
        return ResolutionOutcome(values=values)

    async def resolve(self, query: VariableQuery) -> List[VariableValue]:
        self._generation += 1
        outcome = await self.resolve_outcome(query)
        return outcome.public_values()

    async def resolve_if_current(self, query: VariableQuery) -> Optional[List[VariableValue]]:
        """Like resolve(), but returns None when a newer resolution started while this one was in flight."""
        self._generation += 1
        token = self._generation
        outcome = await self.resolve_outcome(query)
        if token != self._generation:
            logger.debug(f"Dropping stale variable values for generation {token}, current is {self._generation}")
            return None
        return outcome.public_values()


async def resolve_variable_query(query: VariableQuery, identity: DataSourceIdentity,
                                 dispatcher: BackendDispatcher,
                                 template_service: Optional[TemplateService] = None) -> List[VariableValue]:
    resolver = VariableQueryResolver(dispatcher, identity, template_service)
    return await resolver.resolve(query)
