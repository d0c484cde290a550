"""
odata_node.core.session - OData HTTP Session Management
========================================================

Low-level session handling for OData REST services with:
- Default JSON headers and User-Agent
- Bounded request timeout and TLS verification
- One exchange per call (no retries, no response caching)
- Error extraction from non-2xx responses
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional, Union
import json
import logging
import time

import requests
from requests import Response, Session
from requests.structures import CaseInsensitiveDict

from odata_node.core.errors import DispatchError


@dataclass
class ODataConfig:
    """
    Run-level configuration for an OData service.

    Parameters
    ----------
    base_url : str
        Service root, e.g. "https://services.odata.org/TripPinRESTierService/"
    auth_mode : str
        "none" or "genericCredentialType" (empty means "none")
    auth_type : str, optional
        Credential sub-type when auth_mode is "genericCredentialType",
        e.g. "httpBasicAuth", "oAuth2Api", "httpCustomAuth"
    continue_on_fail : bool
        Record per-item failures instead of aborting the run
    timeout : float
        Request timeout in seconds (default: 60.0)
    verify : bool or str
        SSL verification (True, False, or path to CA bundle)
    user_agent : str
        User-Agent header value
    direct_count : bool
        Send GET requests carrying $count through the direct-fetch path

    Examples
    --------
    >>> cfg = ODataConfig(
    ...     base_url="https://services.odata.org/TripPinRESTierService/",
    ...     auth_mode="genericCredentialType",
    ...     auth_type="httpBasicAuth",
    ... )
    """
    base_url: str
    auth_mode: str = "none"
    auth_type: Optional[str] = None
    continue_on_fail: bool = False
    timeout: float = 60.0
    verify: Union[bool, str] = True
    user_agent: str = "odata-node/0.1"
    direct_count: bool = False


class ODataSession:
    """
    Low-level HTTP session for OData v2/v4 services.

    Performs exactly one HTTP exchange per ``send`` and parses the JSON
    response. Use as a context manager for automatic cleanup.

    Parameters
    ----------
    cfg : ODataConfig
        Run configuration

    Examples
    --------
    >>> with ODataSession(cfg) as sess:
    ...     people = sess.send("GET", sess.base + "People")
    """

    def __init__(self, cfg: ODataConfig) -> None:
        self.cfg = cfg
        self.base = cfg.base_url.rstrip("/") + "/"
        self.timeout = float(cfg.timeout)
        self.verify = cfg.verify
        self.logger = logging.getLogger("odata_node.http")

        self.session = self._build_session()

    def close(self) -> None:
        """Close the underlying HTTP session."""
        self.session.close()

    def __enter__(self) -> "ODataSession":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def _build_session(self) -> Session:
        sess = requests.Session()
        sess.headers.update({
            "Accept": "application/json",
            "User-Agent": self.cfg.user_agent,
        })
        return sess

    # ---------------- helpers ----------------

    def _body_of(self, r: Response) -> Any:
        try:
            return r.json()
        except ValueError:
            return r.text

    def _raise_for_error(self, r: Response, method: str, url: str) -> None:
        if not 200 <= r.status_code < 300:
            raise DispatchError(
                f"{method} {url} failed",
                url=url,
                status=r.status_code,
                status_text=r.reason,
                body=self._body_of(r),
                headers=dict(r.headers),
            )

    def _json(self, r: Response, method: str, url: str) -> Any:
        if not r.content or not r.content.strip():
            return {}
        try:
            return r.json()
        except ValueError as e:
            raise DispatchError(
                f"{method} {url} returned a non-JSON response",
                url=url,
                status=r.status_code,
                status_text=r.reason,
                body=r.text,
                headers=dict(r.headers),
                description=str(e),
            ) from e

    # ---------------- public ops ----------------

    def send(
        self,
        method: str,
        url: str,
        *,
        headers: Optional[Dict[str, str]] = None,
        body: Any = None,
    ) -> Any:
        """
        Execute one HTTP request and return the parsed JSON response.

        Parameters
        ----------
        method : str
            HTTP verb
        url : str
            Absolute URL including the encoded query string
        headers : dict, optional
            Headers merged over the session defaults
        body : Any, optional
            JSON-serializable request body

        Returns
        -------
        Any
            Parsed JSON payload; ``{}`` for an empty response body

        Raises
        ------
        DispatchError
            On transport failure, non-2xx status or non-JSON body
        """
        merged = CaseInsensitiveDict(self.session.headers)
        if headers:
            merged.update(headers)

        data = None
        if body is not None:
            data = json.dumps(body, separators=(",", ":"))
            merged.setdefault("Content-Type", "application/json")

        t0 = time.perf_counter()
        try:
            r = self.session.request(
                method=method,
                url=url,
                headers=merged,
                data=data,
                timeout=self.timeout,
                verify=self.verify,
            )
        except requests.RequestException as e:
            raise DispatchError(
                f"{method} {url} failed: {e}",
                url=url,
                description=type(e).__name__,
            ) from e

        dt = (time.perf_counter() - t0) * 1000.0
        self.logger.debug("%s %s %s %sms", method.upper(), url, r.status_code, round(dt, 1))

        self._raise_for_error(r, method, url)
        return self._json(r, method, url)
