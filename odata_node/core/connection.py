"""
odata_node.core.connection - High-level connection management
==============================================================

Provides a ConnectionContext that resolves configuration from arguments or
environment variables and hands out sessions and batch executors.
"""

from __future__ import annotations

import os
from typing import TYPE_CHECKING, Optional

from odata_node.core.auth import CredentialLookup, EnvCredentialStore
from odata_node.core.errors import ConfigurationError
from odata_node.core.session import ODataConfig, ODataSession

if TYPE_CHECKING:
    from odata_node.batch.executor import BatchExecutor


def _env_flag(name: str, default: str = "false") -> bool:
    return os.environ.get(name, default).lower() in ("1", "true", "yes")


class ConnectionContext:
    """
    High-level connection manager for an OData service.

    Parameters
    ----------
    base_url : str, optional
        OData service root. Falls back to ODATA_URL env var.
    auth_mode : str, optional
        "none" or "genericCredentialType". Falls back to ODATA_AUTH_MODE.
    auth_type : str, optional
        Credential sub-type. Falls back to ODATA_AUTH_TYPE.
    continue_on_fail : bool, optional
        Falls back to ODATA_CONTINUE_ON_FAIL.
    verify : bool, optional
        SSL verification. Falls back to ODATA_VERIFY_TLS env var.
    timeout : float, optional
        Request timeout in seconds. Falls back to ODATA_TIMEOUT (default 60).
    direct_count : bool, optional
        Falls back to ODATA_DIRECT_COUNT.
    credentials : callable, optional
        Credential lookup; defaults to EnvCredentialStore.

    Examples
    --------
    >>> with ConnectionContext("https://services.odata.org/TripPinRESTierService/") as conn:
    ...     report = conn.executor().run([{}], NodeParameters(resource="People"))
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        auth_mode: Optional[str] = None,
        auth_type: Optional[str] = None,
        continue_on_fail: Optional[bool] = None,
        verify: Optional[bool] = None,
        timeout: Optional[float] = None,
        direct_count: Optional[bool] = None,
        credentials: Optional[CredentialLookup] = None,
    ) -> None:
        url = base_url or os.environ.get("ODATA_URL", "")
        if not url.strip("/"):
            raise ConfigurationError(
                "url",
                "missing service URL. Set ODATA_URL environment variable or pass base_url.",
            )

        self.cfg = ODataConfig(
            base_url=url.rstrip("/") + "/",
            auth_mode=auth_mode or os.environ.get("ODATA_AUTH_MODE", "none"),
            auth_type=auth_type or os.environ.get("ODATA_AUTH_TYPE") or None,
            continue_on_fail=(
                continue_on_fail if continue_on_fail is not None
                else _env_flag("ODATA_CONTINUE_ON_FAIL")
            ),
            timeout=timeout if timeout is not None else float(os.environ.get("ODATA_TIMEOUT", "60")),
            verify=verify if verify is not None else _env_flag("ODATA_VERIFY_TLS", "true"),
            direct_count=direct_count if direct_count is not None else _env_flag("ODATA_DIRECT_COUNT"),
        )
        self.credentials = credentials or EnvCredentialStore()
        self._session: Optional[ODataSession] = None

    @property
    def session(self) -> ODataSession:
        """Get or create the underlying session."""
        if self._session is None:
            self._session = ODataSession(self.cfg)
        return self._session

    def executor(self) -> "BatchExecutor":
        """Create a BatchExecutor sharing this context's session."""
        from odata_node.batch.executor import BatchExecutor
        return BatchExecutor(self.cfg, self.session, credentials=self.credentials)

    def close(self) -> None:
        """Close the connection."""
        if self._session is not None:
            self._session.close()
            self._session = None

    def __enter__(self) -> "ConnectionContext":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    @property
    def base_url(self) -> str:
        """The configured service root."""
        return self.cfg.base_url
