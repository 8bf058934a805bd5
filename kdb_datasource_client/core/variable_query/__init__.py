from .request_builder import build, parse_timeout
from .resolver import ResolutionOutcome, VariableQueryResolver, resolve_variable_query
from .response_flattener import flatten

__all__ = ["build", "parse_timeout", "flatten", "ResolutionOutcome", "VariableQueryResolver",
           "resolve_variable_query"]
