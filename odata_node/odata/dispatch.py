"""
odata_node.odata.dispatch - HTTP verb dispatch
===============================================

Maps a RequestSpec onto exactly one HTTP exchange.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict
import logging

from odata_node.core.errors import ConfigurationError
from odata_node.core.session import ODataSession
from odata_node.odata.query import QueryDescriptor, encode_query

logger = logging.getLogger("odata_node.http")


class Verb(str, Enum):
    GET = "GET"
    POST = "POST"
    PATCH = "PATCH"
    DELETE = "DELETE"

    @property
    def has_body(self) -> bool:
        return self in (Verb.POST, Verb.PATCH)

    @classmethod
    def parse(cls, value: "str | Verb") -> "Verb":
        if isinstance(value, Verb):
            return value
        try:
            return cls((value or "GET").upper())
        except ValueError:
            raise ConfigurationError("method", f"unsupported HTTP method {value!r}") from None


def normalize_base_url(url: str) -> str:
    """Ensure ``url`` ends with exactly one ``/``. Idempotent."""
    return url.rstrip("/") + "/"


def normalize_resource(resource: str) -> str:
    """Strip leading slashes and turn double quotes into OData single quotes."""
    return (resource or "").replace('"', "'").lstrip("/")


@dataclass(frozen=True)
class RequestSpec:
    """
    A fully resolved OData request.

    Attributes
    ----------
    verb : Verb
        HTTP verb
    base_url : str
        Service root (normalized to end with ``/``)
    resource_path : str
        Resource relative to the service root, e.g. "People('scottketchum')"
    query : dict
        Query descriptor
    body : Any, optional
        JSON body; only allowed for POST and PATCH
    headers : dict
        Lower-cased request headers
    """
    verb: Verb
    base_url: str
    resource_path: str
    query: QueryDescriptor = field(default_factory=dict)
    body: Any = None
    headers: Dict[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "verb", Verb.parse(self.verb))
        object.__setattr__(self, "base_url", normalize_base_url(self.base_url))
        object.__setattr__(self, "resource_path", normalize_resource(self.resource_path))
        if self.body is not None and not self.verb.has_body:
            raise ConfigurationError("data", f"{self.verb.value} requests cannot carry a body")

    @property
    def url(self) -> str:
        qs = encode_query(self.query)
        return f"{self.base_url}{self.resource_path}" + (f"?{qs}" if qs else "")


def _unwrap_collection(payload: Any) -> Any:
    """Return the entity list of a v4 ``value`` or v2 ``d.results`` envelope."""
    if not isinstance(payload, dict):
        return payload
    d = payload.get("d")
    if isinstance(d, dict) and isinstance(d.get("results"), list):
        return d["results"]
    if isinstance(payload.get("value"), list):
        rest = [k for k in payload if k != "value" and not k.startswith(("@", "odata."))]
        if not rest:
            return payload["value"]
    return payload


class RequestDispatcher:
    """
    Executes RequestSpecs against an ODataSession.

    Parameters
    ----------
    sess : ODataSession
        Active session
    direct_count : bool
        Route GET requests carrying ``$count`` through the direct-fetch
        path instead of the verb table

    Examples
    --------
    >>> with ODataSession(cfg) as sess:
    ...     dispatcher = RequestDispatcher(sess)
    ...     people = dispatcher.execute(RequestSpec(Verb.GET, cfg.base_url, "People"))
    """

    def __init__(self, sess: ODataSession, *, direct_count: bool = False) -> None:
        self.sess = sess
        self.direct_count = direct_count
        self._handlers: Dict[Verb, Callable[[RequestSpec], Any]] = {
            Verb.GET: self._read,
            Verb.POST: self._write,
            Verb.PATCH: self._write,
            Verb.DELETE: self._remove,
        }

    def execute(self, spec: RequestSpec) -> Any:
        """Perform one exchange and return the raw (unwrapped) JSON payload."""
        if spec.verb is Verb.GET and self.direct_count and "$count" in spec.query:
            return self._direct_fetch(spec)

        payload = self._handlers[spec.verb](spec)
        if "$count" in spec.query:
            return payload
        return _unwrap_collection(payload)

    # ---------------- verb handlers ----------------

    def _read(self, spec: RequestSpec) -> Any:
        return self.sess.send("GET", spec.url, headers=spec.headers)

    def _write(self, spec: RequestSpec) -> Any:
        body = {} if spec.body is None else spec.body
        return self.sess.send(spec.verb.value, spec.url, headers=spec.headers, body=body)

    def _remove(self, spec: RequestSpec) -> Any:
        return self.sess.send("DELETE", spec.url, headers=spec.headers)

    def _direct_fetch(self, spec: RequestSpec) -> Any:
        headers = {"accept": "application/json", "content-type": "application/json"}
        headers.update({k.lower(): v for k, v in spec.headers.items()})
        logger.debug("direct count fetch %s", spec.url)
        return self.sess.send("GET", spec.url, headers=headers)
