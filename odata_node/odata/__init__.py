"""
odata_node.odata - OData request construction and execution
============================================================

- QueryOptions / build_query: canonical $-parameter descriptors
- Verb / RequestSpec / RequestDispatcher: one HTTP exchange per request
- OutputRecord / normalize: flat record output

"""

from odata_node.odata.query import QueryOptions, build_query, encode_query, parse_json_text
from odata_node.odata.dispatch import RequestDispatcher, RequestSpec, Verb, normalize_base_url
from odata_node.odata.normalize import OutputRecord, normalize

__all__ = [
    "QueryOptions",
    "build_query",
    "encode_query",
    "parse_json_text",
    "RequestDispatcher",
    "RequestSpec",
    "Verb",
    "normalize_base_url",
    "OutputRecord",
    "normalize",
]
