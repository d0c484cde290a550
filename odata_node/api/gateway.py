"""
odata_node.api.gateway - FastAPI OData Gateway
===============================================

Optional REST API gateway running node batches over HTTP.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any, Dict, List, Optional

from dotenv import load_dotenv
from fastapi import Depends, FastAPI, Header, HTTPException
from fastapi.middleware.cors import CORSMiddleware

from odata_node import __version__
from odata_node.batch.classify import ErrorReport
from odata_node.batch.executor import BatchExecutor, RunReport
from odata_node.core.auth import CredentialLookup, EnvCredentialStore
from odata_node.core.errors import ConfigurationError, NodeOperationError
from odata_node.core.session import ODataConfig
from odata_node.api.models import ExecuteRequest, ExecuteResponse, ItemError, OutputItem

logger = logging.getLogger("odata_node.api")


def load_env() -> None:
    """Load .env from the working directory or the repository root."""
    env_path = Path.cwd() / ".env"
    if not env_path.exists():
        env_path = Path(__file__).resolve().parent.parent.parent / ".env"
    if env_path.exists():
        load_dotenv(env_path)
        logger.info("Loaded .env from: %s", env_path)


class ODataGateway:
    """
    Configuration and executor factory for the API gateway.

    Reads configuration from environment variables by default.
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        api_key: Optional[str] = None,
        verify_tls: Optional[bool] = None,
        timeout: Optional[float] = None,
        credentials: Optional[CredentialLookup] = None,
    ):
        self.base_url = base_url or os.environ.get("ODATA_URL", "")
        self.api_key = api_key if api_key is not None else os.environ.get("ODATA_API_KEY", "")

        if verify_tls is not None:
            self.verify_tls = verify_tls
        else:
            self.verify_tls = os.environ.get("ODATA_VERIFY_TLS", "true").lower() != "false"

        self.timeout = timeout if timeout is not None else float(os.environ.get("ODATA_TIMEOUT", "60"))
        self.credentials = credentials or EnvCredentialStore()

    def validate(self) -> None:
        """Validate configuration. Raises RuntimeError if invalid."""
        if not self.api_key:
            raise RuntimeError("Missing ODATA_API_KEY - required for security")

    def build_executor(self, req: ExecuteRequest) -> BatchExecutor:
        """Create an executor for one request."""
        url = req.url or self.base_url
        if not url:
            raise ConfigurationError("url", "no service URL given and ODATA_URL is not set")
        cfg = ODataConfig(
            base_url=url,
            auth_mode=req.authentication,
            auth_type=req.generic_auth_type,
            continue_on_fail=req.continue_on_fail,
            timeout=self.timeout,
            verify=self.verify_tls,
        )
        return BatchExecutor(cfg, credentials=self.credentials)


# Global gateway instance (lazy init)
_gateway: Optional[ODataGateway] = None


def get_gateway() -> ODataGateway:
    """Get or create the global gateway instance."""
    global _gateway
    if _gateway is None:
        _gateway = ODataGateway()
    return _gateway


def _error_item(err: ErrorReport) -> ItemError:
    d = err.to_dict()
    d.pop("item_index")
    return ItemError(**d)


def to_response(report: RunReport) -> ExecuteResponse:
    """Convert a run report into the API response shape."""
    items: List[OutputItem] = []
    for r in report.results:
        if r.error is not None:
            items.append(OutputItem(
                json=dict(r.error.input_json or {}),
                paired_item=r.index,
                error=_error_item(r.error),
            ))
            continue
        for rec in r.records:
            items.append(OutputItem(json=rec.payload, paired_item=rec.source_index))
    return ExecuteResponse(count=len(items), errors=len(report.errors), items=items)


def create_app(
    gateway: Optional[ODataGateway] = None,
    validate_on_startup: bool = True,
) -> FastAPI:
    """
    Create the FastAPI application.

    Parameters
    ----------
    gateway : ODataGateway, optional
        Custom gateway configuration. If None, reads from environment.
    validate_on_startup : bool
        If True, validate configuration on startup.

    Returns
    -------
    FastAPI
        Configured FastAPI application
    """
    global _gateway

    _gateway = gateway or ODataGateway()

    if validate_on_startup:
        try:
            _gateway.validate()
        except RuntimeError as e:
            logger.warning("Gateway configuration incomplete: %s", e)

    app = FastAPI(
        title="OData Node Gateway",
        description="Executes one OData request per input item and returns the normalized items.",
        version=__version__,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    def require_api_key(x_api_key: str = Header(...)) -> None:
        gw = get_gateway()
        if not gw.api_key or x_api_key != gw.api_key:
            raise HTTPException(status_code=401, detail="Invalid API key")

    @app.get("/health")
    def health() -> Dict[str, Any]:
        """Health check endpoint."""
        return {"ok": True, "version": __version__}

    @app.post(
        "/execute",
        response_model=ExecuteResponse,
        response_model_by_alias=True,
        summary="Execute OData requests",
    )
    def execute(
        req: ExecuteRequest,
        _: None = Depends(require_api_key),
    ) -> ExecuteResponse:
        """Run one OData request per input item."""
        gw = get_gateway()
        try:
            with gw.build_executor(req) as ex:
                report = ex.run(req.items, req.to_parameters())
        except NodeOperationError as e:
            raise HTTPException(status_code=502, detail=e.report.to_dict())
        except ConfigurationError as e:
            raise HTTPException(status_code=400, detail={"message": e.message, "field": e.field})
        return to_response(report)

    return app
