"""
odata_node.core.errors - Error taxonomy
========================================

Every failure raised while building or executing a request derives from
``ODataNodeError``. The batch executor classifies these into
``ErrorReport`` values (see ``odata_node.batch.classify``).
"""

from __future__ import annotations

from dataclasses import replace
from typing import TYPE_CHECKING, Any, Dict, Optional

if TYPE_CHECKING:
    from odata_node.batch.classify import ErrorReport


class ODataNodeError(RuntimeError):
    """
    Base class for all odata_node errors.

    Attributes
    ----------
    message : str
        Human-readable summary
    description : str, optional
        Additional detail, usually the underlying cause
    context : dict
        Structured context (e.g. ``item_index``)
    """

    def __init__(
        self,
        message: str,
        *,
        description: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.description = description
        self.context: Dict[str, Any] = dict(context or {})


class ConfigurationError(ODataNodeError):
    """
    Raised when a configured input is invalid, e.g. malformed JSON in the
    raw query, the request body or the header overrides.

    Always raised before any request is sent.
    """

    def __init__(self, field: str, detail: str, **kwargs: Any) -> None:
        super().__init__(f"Invalid {field}: {detail}", **kwargs)
        self.field = field


class AuthResolutionError(ODataNodeError):
    """Raised when credential lookup fails or the credential has the wrong shape."""


class DispatchError(ODataNodeError):
    """
    Raised when the HTTP exchange fails.

    Attributes
    ----------
    status : int, optional
        HTTP status code, ``None`` for transport failures
    status_text : str, optional
        HTTP reason phrase
    body : Any
        Parsed JSON body when the response was JSON, raw text otherwise
    url : str
        The URL that was called
    headers : dict
        Response headers
    """

    def __init__(
        self,
        message: str,
        *,
        url: str,
        status: Optional[int] = None,
        status_text: Optional[str] = None,
        body: Any = None,
        headers: Optional[Dict[str, str]] = None,
        description: Optional[str] = None,
    ) -> None:
        super().__init__(message, description=description)
        self.url = url
        self.status = status
        self.status_text = status_text
        self.body = body
        self.headers = headers or {}


class NormalizationError(ODataNodeError):
    """Raised when a response payload cannot be turned into output records."""


class NodeOperationError(ODataNodeError):
    """
    Terminal failure of a batch run in fail-fast mode.

    Carries the ``ErrorReport`` of the failing record. When a nested run
    raises one of these, the outer run only restamps the item index.
    """

    def __init__(self, report: "ErrorReport") -> None:
        super().__init__(
            report.message,
            description=report.underlying_description,
            context={"item_index": report.source_index},
        )
        self.report = report

    def stamp(self, source_index: int) -> "NodeOperationError":
        """Overwrite the item index on the carried report."""
        self.report = replace(self.report, source_index=source_index)
        self.context["item_index"] = source_index
        return self
