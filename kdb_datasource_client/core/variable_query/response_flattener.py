"""
Flattens a query endpoint response into template variable choices.

Walk order is result key, then frame, then the rows of the first column
(`data.values[0]`). Other columns are ignored: by convention the variable
query returns its display values first. Ordering is preserved exactly,
nothing is sorted or de-duplicated.
"""

import json
import logging
import math
from decimal import Decimal
from typing import Any, Dict, List

from ..models import VariableValue
from ...exceptions import ResponseShapeError

logger = logging.getLogger(__name__)


def to_text(value: Any) -> str:
    if isinstance(value, str):
        return value
    if value is None or isinstance(value, bool):
        return json.dumps(value)
    if isinstance(value, float):
        return _float_text(value)
    return str(value)


def _float_text(value: float) -> str:
    """Renders a float the way the dashboard renders a JSON number."""
    if math.isnan(value):
        return 'NaN'
    if math.isinf(value):
        return 'Infinity' if value > 0 else '-Infinity'
    if value == 0:
        return '0'
    if 1e-6 <= abs(value) < 1e21:
        text = format(Decimal(repr(value)), 'f')
        return text.rstrip('0').rstrip('.') if '.' in text else text
    mantissa, exponent = repr(value).split('e')
    exponent = int(exponent)
    return f"{mantissa}e{'+' if exponent > 0 else '-'}{abs(exponent)}"


def _first_column(frame: Any, ref_id: str, frame_idx: int) -> List[Any]:
    if not isinstance(frame, dict):
        raise ResponseShapeError(f"Frame {frame_idx} of result '{ref_id}' is not an object")
    data = frame.get('data')
    if data is None:
        return []
    if not isinstance(data, dict):
        raise ResponseShapeError(f"data of frame {frame_idx} in result '{ref_id}' is not an object")
    values = data.get('values')
    if values is None:
        return []
    if not isinstance(values, list):
        raise ResponseShapeError(f"data.values of frame {frame_idx} in result '{ref_id}' is not a list")
    if not values:
        return []
    column = values[0]
    if not isinstance(column, list):
        raise ResponseShapeError(f"First column of frame {frame_idx} in result '{ref_id}' is not a list")
    return column


def flatten(response: Dict[str, Any]) -> List[VariableValue]:
    if not isinstance(response, dict) or 'results' not in response:
        raise ResponseShapeError("No 'results' found in query response")
    results = response['results']
    if not isinstance(results, dict):
        raise ResponseShapeError("'results' in query response is not an object")

    values = []
    for ref_id, result_data in results.items():
        if not isinstance(result_data, dict):
            raise ResponseShapeError(f"Result '{ref_id}' is not an object")
        if 'frames' not in result_data:
            logger.warning(f"No 'frames' found in result for ref_id {ref_id}. "
                           f"Status: {result_data.get('status', 'unknown')}, "
                           f"Error: {result_data.get('error', 'No error message provided')}")
            continue
        frames = result_data['frames'] or []
        if not isinstance(frames, list):
            raise ResponseShapeError(f"'frames' of result '{ref_id}' is not a list")
        for frame_idx, frame in enumerate(frames):
            values.extend(VariableValue(text=to_text(v)) for v in _first_column(frame, ref_id, frame_idx))
    return values
