"""
odata_node.batch.executor - Per-record request execution
=========================================================

Runs one OData request per input record, strictly in input order, and
collects either output records or an error report for each record.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Iterable, List, Mapping, Optional, Sequence, Tuple, Union
import logging

from odata_node.batch.classify import ErrorReport, classify
from odata_node.core.auth import (
    AuthResolver,
    CredentialLookup,
    HeaderOverrides,
    RecordContext,
    merge_headers,
)
from odata_node.core.errors import NodeOperationError
from odata_node.core.session import ODataConfig, ODataSession
from odata_node.odata.dispatch import RequestDispatcher, RequestSpec, Verb
from odata_node.odata.normalize import OutputRecord, normalize
from odata_node.odata.query import QueryOptions, build_query, parse_json_text


@dataclass(frozen=True)
class NodeParameters:
    """
    Request parameters for one input record.

    Attributes
    ----------
    method : str
        GET, POST, PATCH or DELETE
    resource : str
        Resource path, e.g. "People('scottketchum')"
    data : str
        JSON body text for POST/PATCH (empty means ``{}``)
    query : str
        Raw OData query as JSON text; overrides ``options`` when non-empty
    options : QueryOptions
        Discrete query options
    headers : str, dict or list, optional
        Header overrides (JSON text, mapping or name/value pairs)
    """
    method: str = "GET"
    resource: str = ""
    data: str = ""
    query: str = ""
    options: QueryOptions = field(default_factory=QueryOptions)
    headers: HeaderOverrides = None


ParameterSource = Union[NodeParameters, Callable[[RecordContext], NodeParameters]]


@dataclass(frozen=True)
class RecordResult:
    """Outcome of one input record: its output records or its error."""
    index: int
    records: Tuple[OutputRecord, ...] = ()
    error: Optional[ErrorReport] = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass
class RunReport:
    """Ordered per-record results of a batch run."""
    results: List[RecordResult] = field(default_factory=list)

    @property
    def outputs(self) -> List[Union[OutputRecord, ErrorReport]]:
        """Flat output in input order: records, or the error in their place."""
        out: List[Union[OutputRecord, ErrorReport]] = []
        for r in self.results:
            if r.error is not None:
                out.append(r.error)
            else:
                out.extend(r.records)
        return out

    @property
    def records(self) -> List[OutputRecord]:
        return [rec for r in self.results for rec in r.records]

    @property
    def errors(self) -> List[ErrorReport]:
        return [r.error for r in self.results if r.error is not None]


class BatchExecutor:
    """
    Executes one request per input record.

    Auth mode and sub-type are parsed once at construction; credentials,
    headers, query and body are built fresh for every record.

    Parameters
    ----------
    cfg : ODataConfig
        Run configuration (base URL, auth selection, continue-on-fail)
    session : ODataSession, optional
        Session to use; one is created from ``cfg`` if omitted
    credentials : callable, optional
        Credential lookup ``(kind, context) -> material``
    logger : logging.Logger, optional
        Diagnostics sink

    Examples
    --------
    >>> cfg = ODataConfig(base_url="https://services.odata.org/TripPinRESTierService/")
    >>> with BatchExecutor(cfg) as ex:
    ...     report = ex.run([{}], NodeParameters(resource="People"))
    """

    def __init__(
        self,
        cfg: ODataConfig,
        session: Optional[ODataSession] = None,
        *,
        credentials: Optional[CredentialLookup] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.cfg = cfg
        self.auth = AuthResolver.from_settings(cfg.auth_mode, cfg.auth_type)
        self._owns_session = session is None
        self.session = session or ODataSession(cfg)
        self.credentials = credentials
        self.logger = logger or logging.getLogger("odata_node.batch")
        self.dispatcher = RequestDispatcher(self.session, direct_count=cfg.direct_count)

    def close(self) -> None:
        if self._owns_session:
            self.session.close()

    def __enter__(self) -> "BatchExecutor":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    # ---------------- per record ----------------

    def _parameters_for(self, source: ParameterSource, ctx: RecordContext) -> NodeParameters:
        return source(ctx) if callable(source) else source

    def build_request(self, params: NodeParameters, ctx: RecordContext) -> RequestSpec:
        """Resolve auth, query and body for one record. Sends nothing."""
        headers = self.auth.resolve(self.credentials, ctx)
        headers = merge_headers(headers, params.headers)
        query = build_query(params.query, params.options)
        verb = Verb.parse(params.method)
        body = parse_json_text(params.data, "data") if verb.has_body else None
        return RequestSpec(
            verb=verb,
            base_url=self.cfg.base_url,
            resource_path=params.resource,
            query=query,
            body=body,
            headers=headers,
        )

    def process(self, index: int, item: Mapping[str, Any], source: ParameterSource) -> List[OutputRecord]:
        ctx = RecordContext(index, item)
        spec = self.build_request(self._parameters_for(source, ctx), ctx)
        self.logger.debug("item %d: %s %s", index, spec.verb.value, spec.url)
        raw = self.dispatcher.execute(spec)
        return normalize(raw, index)

    # ---------------- batch ----------------

    def run(
        self,
        items: Iterable[Mapping[str, Any]],
        parameters: ParameterSource,
        *,
        continue_on_fail: Optional[bool] = None,
    ) -> RunReport:
        """
        Process ``items`` in order.

        Parameters
        ----------
        items : iterable of dict
            Input records
        parameters : NodeParameters or callable
            Fixed parameters, or a callable evaluated per record
        continue_on_fail : bool, optional
            Overrides ``cfg.continue_on_fail``

        Returns
        -------
        RunReport
            One RecordResult per input record

        Raises
        ------
        NodeOperationError
            In fail-fast mode, on the first failing record
        """
        keep_going = self.cfg.continue_on_fail if continue_on_fail is None else continue_on_fail
        report = RunReport()

        for index, item in enumerate(items):
            try:
                records = self.process(index, item, parameters)
            except Exception as e:
                error = classify(e, index, item)
                if not keep_going:
                    if isinstance(e, NodeOperationError):
                        raise
                    raise NodeOperationError(error) from e
                self.logger.warning("item %d failed: %s", index, error.message)
                report.results.append(RecordResult(index, error=error))
                continue
            report.results.append(RecordResult(index, records=tuple(records)))

        self.logger.info(
            "processed %d items: %d records, %d errors",
            len(report.results), len(report.records), len(report.errors),
        )
        return report


def run_batch(
    items: Sequence[Mapping[str, Any]],
    cfg: ODataConfig,
    parameters: ParameterSource,
    *,
    credentials: Optional[CredentialLookup] = None,
) -> List[Union[OutputRecord, ErrorReport]]:
    """Run a batch with a throwaway session and return the flat output."""
    with BatchExecutor(cfg, credentials=credentials) as ex:
        return ex.run(items, parameters).outputs
