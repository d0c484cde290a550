"""
odata_node.odata.query - OData query descriptor construction
=============================================================

Builds the ``$``-parameter mapping sent with every request, either from a
raw JSON override or from discrete query options.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional, Union
from urllib.parse import quote, urlencode
import json

from odata_node.core.errors import ConfigurationError

QueryDescriptor = Dict[str, Union[str, int, float, bool]]

_MISSING = object()


def parse_json_text(text: Optional[str], field: str, default: Any = _MISSING) -> Any:
    """
    Parse a configured JSON input.

    Parameters
    ----------
    text : str, optional
        JSON text; empty or whitespace-only text yields ``default``
    field : str
        Input name reported in the ConfigurationError
    default : Any
        Value for empty text (an empty dict unless given)

    Raises
    ------
    ConfigurationError
        If the text is not valid JSON
    """
    if text is None or not str(text).strip():
        return {} if default is _MISSING else default
    try:
        return json.loads(text)
    except ValueError as e:
        raise ConfigurationError(field, f"not valid JSON ({e})") from e


def _strip_ws(value: str) -> str:
    """Remove all whitespace, e.g. from a $select list."""
    return "".join(value.split())


@dataclass(frozen=True)
class QueryOptions:
    """
    Discrete OData query options.

    ``None`` means the option was not set. For ``top``/``skip`` a value of
    ``0`` counts as set; for the string options an empty string does not.
    """
    select: str = ""
    filter: str = ""
    orderby: str = ""
    expand: str = ""
    top: Optional[int] = None
    skip: Optional[int] = None
    count: Optional[bool] = None


def _defined(value: Any) -> bool:
    return value is not None and value != ""


def compose_query(options: QueryOptions) -> QueryDescriptor:
    """Build a descriptor from discrete options only."""
    params: QueryDescriptor = {}
    if options.select:
        params["$select"] = _strip_ws(options.select)
    if options.filter:
        params["$filter"] = options.filter
    if options.orderby:
        params["$orderby"] = options.orderby
    if options.expand:
        params["$expand"] = _strip_ws(options.expand)
    if _defined(options.top):
        params["$top"] = options.top
    if _defined(options.skip):
        params["$skip"] = options.skip
    if options.count is not None:
        params["$count"] = bool(options.count)
    return params


def build_query(
    raw_query: Union[str, Mapping[str, Any], None],
    options: Optional[QueryOptions] = None,
) -> QueryDescriptor:
    """
    Build the query descriptor for one request.

    A non-empty raw query replaces the discrete options entirely; the
    two are never merged. An empty or ``null`` raw query composes from
    the discrete options.

    Parameters
    ----------
    raw_query : str or dict, optional
        Raw OData query as JSON text (or an already parsed mapping)
    options : QueryOptions, optional
        Discrete options used when the raw query is empty

    Returns
    -------
    dict
        Mapping of ``$``-parameter name to value

    Examples
    --------
    >>> build_query('{"$top": 5}', QueryOptions(filter="Age gt 3"))
    {'$top': 5}
    >>> build_query("", QueryOptions(select="FirstName, LastName"))
    {'$select': 'FirstName,LastName'}
    """
    parsed = raw_query if isinstance(raw_query, Mapping) else parse_json_text(raw_query, "query")
    if parsed is None or (isinstance(parsed, (Mapping, list)) and not parsed):
        # "", "null", "{}" and "[]" all fall back to the discrete options
        return compose_query(options or QueryOptions())
    if not isinstance(parsed, Mapping):
        raise ConfigurationError("query", "raw query must be a JSON object")
    return dict(parsed)


def _stringify(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def encode_query(query: Mapping[str, Any]) -> str:
    """
    URL-encode a descriptor. Keys are emitted verbatim, spaces become ``%20``.

    >>> encode_query({"$filter": "FirstName eq 'Scott'"})
    '$filter=FirstName%20eq%20%27Scott%27'
    """
    pairs = [(k, _stringify(v)) for k, v in query.items()]
    return urlencode(pairs, quote_via=quote, safe="$,")
