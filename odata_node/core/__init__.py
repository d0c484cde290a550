"""
odata_node.core - Core connectivity, authentication and errors
===============================================================

This module provides the foundational pieces for talking to an OData service:

- ODataConfig / ODataSession: run configuration and low-level HTTP session
- AuthResolver: authentication selection and header resolution
- ConnectionContext: env-driven connection manager
- Error taxonomy: ConfigurationError, AuthResolutionError, DispatchError, ...

"""

from odata_node.core.errors import (
    ODataNodeError,
    ConfigurationError,
    AuthResolutionError,
    DispatchError,
    NormalizationError,
    NodeOperationError,
)

from odata_node.core.session import ODataConfig, ODataSession

from odata_node.core.auth import (
    AuthResolver,
    CredentialKind,
    RecordContext,
    StaticCredentialStore,
    EnvCredentialStore,
    merge_headers,
    resolve_auth,
)

from odata_node.core.connection import ConnectionContext

__all__ = [
    "ODataNodeError",
    "ConfigurationError",
    "AuthResolutionError",
    "DispatchError",
    "NormalizationError",
    "NodeOperationError",
    "ODataConfig",
    "ODataSession",
    "AuthResolver",
    "CredentialKind",
    "RecordContext",
    "StaticCredentialStore",
    "EnvCredentialStore",
    "merge_headers",
    "resolve_auth",
    "ConnectionContext",
]
