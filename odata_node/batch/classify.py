"""
odata_node.batch.classify - Failure classification
===================================================

Turns any exception raised while processing one input record into an
``ErrorReport`` with a readable message and structured HTTP context.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, Mapping, Optional, Tuple
import json

from odata_node.core.errors import (
    AuthResolutionError,
    ConfigurationError,
    DispatchError,
    NodeOperationError,
    NormalizationError,
)

GENERIC_MESSAGE = "Request failed"


class ErrorCategory(str, Enum):
    CONFIGURATION = "configuration"
    AUTH = "auth"
    DISPATCH = "dispatch"
    NORMALIZATION = "normalization"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class ErrorReport:
    """
    A classified per-record failure.

    Attributes
    ----------
    message : str
        Readable message, prefixed with ``HTTP <status> <text>:`` for HTTP failures
    source_index : int
        Index of the failing input record
    category : ErrorCategory
        Failure class
    http_status : int, optional
    http_status_text : str, optional
    response_body : str, optional
        Serialized response body
    underlying_description : str, optional
        Detail of the underlying cause
    input_json : dict, optional
        The failing input record, echoed back in continue-on-failure output
    """
    message: str
    source_index: int
    category: ErrorCategory = ErrorCategory.UNKNOWN
    http_status: Optional[int] = None
    http_status_text: Optional[str] = None
    response_body: Optional[str] = None
    underlying_description: Optional[str] = None
    input_json: Optional[Mapping[str, Any]] = None

    def to_dict(self) -> dict:
        return {
            "message": self.message,
            "item_index": self.source_index,
            "category": self.category.value,
            "http_status": self.http_status,
            "http_status_text": self.http_status_text,
            "response_body": self.response_body,
            "description": self.underlying_description,
        }


_CATEGORIES = (
    (ConfigurationError, ErrorCategory.CONFIGURATION),
    (AuthResolutionError, ErrorCategory.AUTH),
    (DispatchError, ErrorCategory.DISPATCH),
    (NormalizationError, ErrorCategory.NORMALIZATION),
)


def _category(exc: BaseException) -> ErrorCategory:
    for cls, category in _CATEGORIES:
        if isinstance(exc, cls):
            return category
    if _http_context(exc)[0] is not None:
        return ErrorCategory.DISPATCH
    return ErrorCategory.UNKNOWN


def _message(exc: BaseException) -> str:
    explicit = getattr(exc, "message", None)
    if isinstance(explicit, str) and explicit:
        return explicit
    return str(exc) or GENERIC_MESSAGE


def _http_context(exc: BaseException) -> Tuple[Optional[int], Optional[str], Any]:
    """Return (status, status_text, body) for HTTP-bearing failures."""
    if isinstance(exc, DispatchError):
        return exc.status, exc.status_text, exc.body
    response = getattr(exc, "response", None)
    status = getattr(response, "status_code", None)
    if response is None or not isinstance(status, int):
        return None, None, None
    body = None
    to_json = getattr(response, "json", None)
    if callable(to_json):
        try:
            body = to_json()
        except Exception:
            body = None
    if body is None:
        body = getattr(response, "text", None)
    return status, getattr(response, "reason", None), body


def _serialize_body(body: Any) -> Optional[str]:
    if body is None or body == "":
        return None
    if isinstance(body, str):
        return body
    try:
        return json.dumps(body, indent=2, ensure_ascii=False)
    except (TypeError, ValueError):
        return None


def _description(exc: BaseException) -> Optional[str]:
    description = getattr(exc, "description", None)
    if description:
        return str(description)
    cause = exc.__cause__
    return str(cause) if cause is not None else None


def classify(
    exc: BaseException,
    source_index: int,
    item: Optional[Mapping[str, Any]] = None,
) -> ErrorReport:
    """
    Classify ``exc`` raised while processing input record ``source_index``.

    A ``NodeOperationError`` raised by a nested run keeps its report; only
    the index is overwritten.

    Examples
    --------
    >>> err = DispatchError("GET x failed", url="x", status=404,
    ...                     status_text="Not Found", body={"error": "missing"})
    >>> classify(err, 2).message.startswith("HTTP 404 Not Found:")
    True
    """
    if isinstance(exc, NodeOperationError):
        return exc.stamp(source_index).report

    message = _message(exc)
    status, status_text, body = _http_context(exc)
    serialized = _serialize_body(body)
    if status is not None:
        message = f"HTTP {status} {status_text or ''}".rstrip() + f": {message}"
    if serialized:
        message = f"{message}\n{serialized}"

    return ErrorReport(
        message=message,
        source_index=source_index,
        category=_category(exc),
        http_status=status,
        http_status_text=status_text,
        response_body=serialized,
        underlying_description=_description(exc),
        input_json=item,
    )
