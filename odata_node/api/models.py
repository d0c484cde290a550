"""
odata_node.api.models - Pydantic models for API requests/responses
===================================================================
"""

from typing import Any, Dict, List, Literal, Optional, Union
from pydantic import BaseModel, Field

from odata_node.batch.executor import NodeParameters
from odata_node.odata.query import QueryOptions


# ---------------------------------------------------------------------------
# Example defaults for the public TripPin service
# ---------------------------------------------------------------------------

EXAMPLE_URL = "https://services.odata.org/TripPinRESTierService/"
EXAMPLE_RESOURCE = "People('scottketchum')"
EXAMPLE_FILTER = "FirstName eq 'Scott'"


class HeaderPair(BaseModel):
    """A single header override."""

    name: str
    value: str = ""


class ExecuteRequest(BaseModel):
    """Node parameters plus the input items to run them over."""

    url: Optional[str] = Field(
        default=None,
        description="OData service URL; defaults to the gateway's ODATA_URL",
        json_schema_extra={"example": EXAMPLE_URL}
    )
    method: Literal["GET", "POST", "PATCH", "DELETE"] = Field(default="GET")
    resource: str = Field(
        default="",
        description="The OData resource, e.g. People('scottketchum')",
        json_schema_extra={"example": EXAMPLE_RESOURCE}
    )
    data: str = Field(
        default="",
        description="JSON body for POST/PATCH",
        json_schema_extra={"example": '{"UserName": "newuser", "FirstName": "New", "LastName": "User"}'}
    )
    query: str = Field(
        default="",
        description="Raw OData query as JSON. Overrides the discrete options.",
        json_schema_extra={"example": '{"$filter": "FirstName eq \'John\'", "$select": "FirstName,LastName"}'}
    )
    select: str = Field(default="", description="Fields for $select, comma separated")
    filter: str = Field(
        default="",
        description="Raw $filter expression",
        json_schema_extra={"example": EXAMPLE_FILTER}
    )
    orderby: str = Field(default="", description="Raw $orderby")
    expand: str = Field(default="", description="Raw $expand, comma separated")
    top: Optional[int] = Field(default=None, ge=0, description="$top")
    skip: Optional[int] = Field(default=None, ge=0, description="$skip")
    count: Optional[bool] = Field(default=None, description="$count")
    headers: Optional[Union[str, List[HeaderPair]]] = Field(
        default=None,
        description="Header overrides, as JSON text or name/value pairs"
    )
    authentication: Literal["", "none", "genericCredentialType"] = Field(
        default="none",
        description="Empty or \"none\" sends no credentials",
    )
    generic_auth_type: Optional[str] = Field(
        default=None,
        description="httpBasicAuth, oAuth2Api or httpCustomAuth",
    )
    continue_on_fail: bool = Field(default=False)
    items: List[Dict[str, Any]] = Field(
        default_factory=lambda: [{}],
        description="Input items; one request is sent per item",
    )

    def to_parameters(self) -> NodeParameters:
        headers: Any = self.headers
        if isinstance(headers, list):
            headers = [h.model_dump() for h in headers]
        return NodeParameters(
            method=self.method,
            resource=self.resource,
            data=self.data,
            query=self.query,
            options=QueryOptions(
                select=self.select,
                filter=self.filter,
                orderby=self.orderby,
                expand=self.expand,
                top=self.top,
                skip=self.skip,
                count=self.count,
            ),
            headers=headers,
        )


class ItemError(BaseModel):
    message: str
    category: str
    http_status: Optional[int] = None
    http_status_text: Optional[str] = None
    response_body: Optional[str] = None
    description: Optional[str] = None


class OutputItem(BaseModel):
    """One output item; ``error`` is set for failed items in continue-on-fail mode."""

    json_: Any = Field(alias="json")
    paired_item: int
    error: Optional[ItemError] = None

    model_config = {"populate_by_name": True}


class ExecuteResponse(BaseModel):
    count: int
    errors: int
    items: List[OutputItem]
