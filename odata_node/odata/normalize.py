"""
odata_node.odata.normalize - Response normalization
====================================================

Coerces single-entity and collection responses into a flat list of
OutputRecords.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, List
import logging

logger = logging.getLogger("odata_node.odata")

_SCALARS = (str, int, float, bool)


@dataclass(frozen=True)
class OutputRecord:
    """One output item: a JSON payload and the index of the input it came from."""
    payload: Any
    source_index: int


def _coerce(value: Any, source_index: int) -> Any:
    if value is None or isinstance(value, (dict, list, *_SCALARS)):
        return value
    # sessions other than ODataSession may hand back arbitrary objects
    logger.warning(
        "item %d: unexpected response type %s, emitting its string form",
        source_index, type(value).__name__,
    )
    return {"value": str(value)}


def normalize(raw: Any, source_index: int) -> List[OutputRecord]:
    """
    Turn a raw response into output records.

    Never fails: a value that is not JSON-shaped is emitted as
    ``{"value": str(value)}`` and a warning is logged.

    Parameters
    ----------
    raw : Any
        Parsed JSON response
    source_index : int
        Index of the input record that produced the response

    Returns
    -------
    list of OutputRecord
        One record per element for a list, exactly one otherwise

    Examples
    --------
    >>> normalize({"Id": 1}, 0)
    [OutputRecord(payload={'Id': 1}, source_index=0)]
    >>> len(normalize([{"Id": 1}, {"Id": 2}], 3))
    2
    """
    if isinstance(raw, (list, tuple)):
        return [
            OutputRecord(payload=_coerce(element, source_index), source_index=source_index)
            for element in raw
        ]

    payload = _coerce(raw, source_index)
    if payload is None or isinstance(payload, _SCALARS):
        # e.g. plain-text /$count responses
        return [OutputRecord(payload={"value": payload}, source_index=source_index)]
    return [OutputRecord(payload=payload, source_index=source_index)]
