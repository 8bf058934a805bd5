import json
import logging
import re
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)

# ${var}, ${var:format}, [[var]], [[var:format]] or $var
VARIABLE_REF_RE = re.compile(
    r"\$\{(?P<braced>\w+)(?::(?P<braced_fmt>\w+))?\}"
    r"|\[\[(?P<bracket>\w+)(?::(?P<bracket_fmt>\w+))?\]\]"
    r"|\$(?P<plain>\w+)\b"
)


class TemplateService(ABC):
    """Host service that interpolates template variables into query text"""

    @abstractmethod
    def replace(self, text: str) -> str:
        pass


class IdentityTemplateService(TemplateService):
    def replace(self, text: str) -> str:
        return text


class DashboardTemplateService(TemplateService):
    """
    Resolves dashboard template variables from a static mapping of current values.

    Supports $var, ${var}, ${var:format} and the deprecated [[var]] syntax.
    Multi-value variables are joined according to the format
    (csv, pipe, json, regex), with csv as the default.
    """

    def __init__(self, variables: Optional[Dict[str, Any]] = None):
        self.variables = dict(variables or {})

    def replace(self, text: str) -> str:
        if not text or not isinstance(text, str):
            return text

        def _substitute(match: re.Match) -> str:
            name = match.group('braced') or match.group('bracket') or match.group('plain')
            fmt = match.group('braced_fmt') or match.group('bracket_fmt')
            if name not in self.variables:
                logger.warning(f"Template variable '${name}' referenced but not found in available variables: "
                               f"{list(self.variables.keys())}")
                return match.group(0)
            return self._format_value(self.variables[name], fmt)

        resolved = VARIABLE_REF_RE.sub(_substitute, text)
        if resolved != text:
            logger.debug(f"Template variable resolution: '{text}' -> '{resolved}'")
        return resolved

    @staticmethod
    def _format_value(value: Any, fmt: Optional[str]) -> str:
        if value is None:
            return ''
        if not isinstance(value, (list, tuple)):
            return str(value)
        items = [str(v) for v in value]
        if fmt == 'pipe':
            return '|'.join(items)
        if fmt == 'json':
            return json.dumps(items)
        if fmt == 'regex':
            return '(' + '|'.join(re.escape(v) for v in items) + ')'
        if fmt not in (None, 'csv'):
            logger.warning(f"Unsupported variable format '{fmt}', falling back to csv")
        return ','.join(items)
