"""
Value objects exchanged between the datasource, the host and the backend.

All of them are built fresh per call and never shared between invocations.
"""

import re
from dataclasses import dataclass, field as dataclass_field
from typing import Any, Dict, List, Optional, Union

TIMEOUT_INPUT_RE = re.compile(r'[0-9]+')


def is_valid_timeout_input(value: str) -> bool:
    """Input gate of the variable editor: digits only, or empty."""
    return value == '' or bool(TIMEOUT_INPUT_RE.fullmatch(value))


@dataclass
class VariableQuery:
    """Query whose result populates the choices of a template variable"""

    query_text: Optional[str] = ''
    time_out: Union[str, int, None] = ''

    @property
    def definition(self) -> str:
        """Label stored by the host next to the variable, e.g. `select sym from t (5000)`"""
        return f"{self.query_text or ''} ({'' if self.time_out is None else self.time_out})"

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'VariableQuery':
        return cls(query_text=data.get('queryText', ''), time_out=data.get('timeOut', ''))


@dataclass(frozen=True)
class DataSourceIdentity:
    """Identity of the datasource instance as registered in the host"""

    id: int
    uid: Optional[str] = None
    org_id: Optional[int] = None


@dataclass(frozen=True)
class QueryDescriptor:
    datasource_id: int
    org_id: int
    query_text: str
    time_out: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            'datasourceId': self.datasource_id,
            'orgId': self.org_id,
            'queryText': self.query_text,
            'timeOut': self.time_out,
        }


@dataclass(frozen=True)
class QueryExecutionRequest:
    """Body of a POST to the query endpoint"""

    queries: List[QueryDescriptor]

    def to_dict(self) -> Dict[str, Any]:
        return {'queries': [q.to_dict() for q in self.queries]}


@dataclass(frozen=True)
class VariableValue:
    text: str

    def to_dict(self) -> Dict[str, str]:
        return {'text': self.text}


@dataclass
class KdbQuery:
    """Panel query authored in the query editor"""

    ref_id: str = 'A'
    query_text: Optional[str] = None
    field: Optional[str] = None
    constant: float = 6.5
    with_streaming: bool = False
    extra: Dict[str, Any] = dataclass_field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        data = dict(self.extra)
        data.update({
            'refId': self.ref_id,
            'queryText': self.query_text or '',
            'constant': self.constant,
            'withStreaming': self.with_streaming,
        })
        if self.field is not None:
            data['field'] = self.field
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'KdbQuery':
        known = {'refId', 'queryText', 'field', 'constant', 'withStreaming'}
        return cls(
            ref_id=data.get('refId', 'A'),
            query_text=data.get('queryText'),
            field=data.get('field'),
            constant=data.get('constant', 6.5),
            with_streaming=data.get('withStreaming', False),
            extra={k: v for k, v in data.items() if k not in known},
        )
