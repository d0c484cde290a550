"""
OData Node Python SDK (odata_node)
==================================

Builds and executes one OData request per input record and normalizes the
responses into a flat list of output records.

Usage
-----
>>> from odata_node import ConnectionContext, NodeParameters, QueryOptions
>>>
>>> with ConnectionContext("https://services.odata.org/TripPinRESTierService/") as conn:
...     report = conn.executor().run(
...         [{}],
...         NodeParameters(resource="People", options=QueryOptions(top=5)),
...     )
...     people = [r.payload for r in report.records]

Subpackages
-----------
- odata_node.core: Session, authentication, configuration and errors
- odata_node.odata: Query building, verb dispatch and response normalization
- odata_node.batch: Per-record execution and error classification
- odata_node.api: Optional FastAPI REST gateway

"""

__version__ = "0.1.0"

# Core exports - available at package root
from odata_node.core import (
    ODataNodeError,
    ConfigurationError,
    AuthResolutionError,
    DispatchError,
    NormalizationError,
    NodeOperationError,
    ODataConfig,
    ODataSession,
    AuthResolver,
    StaticCredentialStore,
    EnvCredentialStore,
    ConnectionContext,
)

from odata_node.odata import (
    QueryOptions,
    build_query,
    RequestDispatcher,
    RequestSpec,
    Verb,
    OutputRecord,
    normalize,
)

from odata_node.batch import (
    ErrorReport,
    classify,
    BatchExecutor,
    NodeParameters,
    RunReport,
    run_batch,
)

__all__ = [
    "__version__",
    # Core
    "ODataNodeError",
    "ConfigurationError",
    "AuthResolutionError",
    "DispatchError",
    "NormalizationError",
    "NodeOperationError",
    "ODataConfig",
    "ODataSession",
    "AuthResolver",
    "StaticCredentialStore",
    "EnvCredentialStore",
    "ConnectionContext",
    # OData
    "QueryOptions",
    "build_query",
    "RequestDispatcher",
    "RequestSpec",
    "Verb",
    "OutputRecord",
    "normalize",
    # Batch
    "ErrorReport",
    "classify",
    "BatchExecutor",
    "NodeParameters",
    "RunReport",
    "run_batch",
]
