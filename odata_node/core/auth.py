"""
odata_node.core.auth - Authentication and header resolution
============================================================

Turns the configured authentication mode into request headers:

- AuthResolver: parses mode/sub-type once per run, resolves credentials per record
- Credential stores: static mapping or environment-backed lookups
- Header overrides: user-supplied headers merged over the auth contribution
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, Iterable, Mapping, Optional, Union
import base64
import json
import os

from odata_node.core.errors import (
    AuthResolutionError,
    ConfigurationError,
    ODataNodeError,
)

HeaderContribution = Dict[str, str]
HeaderOverrides = Union[str, Mapping[str, Any], Iterable[Mapping[str, Any]], None]


class AuthMode(str, Enum):
    NONE = "none"
    GENERIC = "genericCredentialType"


class CredentialKind(str, Enum):
    """Credential sub-types understood under ``genericCredentialType``."""
    BEARER = "oAuth2Api"
    BASIC = "httpBasicAuth"
    CUSTOM = "httpCustomAuth"


_KIND_ALIASES = {
    "oAuth2Api": CredentialKind.BEARER,
    "httpBearerAuth": CredentialKind.BEARER,
    "httpBasicAuth": CredentialKind.BASIC,
    "httpCustomAuth": CredentialKind.CUSTOM,
}

_TOKEN_FIELDS = ("access_token", "accessToken", "token")


@dataclass(frozen=True)
class RecordContext:
    """Position and content of the input record being processed."""
    index: int
    item: Mapping[str, Any]


CredentialLookup = Callable[[CredentialKind, RecordContext], Any]


def _load_json(value: Any, error: Callable[[str], ODataNodeError]) -> Any:
    if not isinstance(value, str):
        return value
    try:
        return json.loads(value)
    except ValueError as e:
        raise error(str(e)) from e


def _bearer_header(material: Any) -> HeaderContribution:
    data = _load_json(
        material,
        lambda d: AuthResolutionError("Bearer credential is not valid JSON", description=d),
    )
    if not isinstance(data, Mapping):
        raise AuthResolutionError("Bearer credential must be a JSON object")

    token_data = data.get("oauthTokenData", data)
    token_data = _load_json(
        token_data,
        lambda d: AuthResolutionError("oauthTokenData is not valid JSON", description=d),
    )
    token = None
    if isinstance(token_data, Mapping):
        token = next((token_data[f] for f in _TOKEN_FIELDS if token_data.get(f)), None)
    if not token:
        raise AuthResolutionError("Bearer credential has no access token")
    return {"authorization": f"Bearer {token}"}


def _basic_header(material: Any) -> HeaderContribution:
    if not isinstance(material, Mapping) or "user" not in material:
        raise AuthResolutionError("Basic credential must provide 'user' and 'password'")
    raw = f"{material['user']}:{material.get('password') or ''}".encode("utf-8")
    return {"authorization": "Basic " + base64.b64encode(raw).decode("ascii")}


def _custom_headers(material: Any) -> HeaderContribution:
    blob = material.get("json", material) if isinstance(material, Mapping) else material
    options = _load_json(blob, lambda d: ConfigurationError("custom auth JSON", d))
    if not isinstance(options, Mapping):
        raise ConfigurationError("custom auth JSON", "expected a JSON object")
    headers = options.get("headers") or {}
    if not isinstance(headers, Mapping):
        raise ConfigurationError("custom auth JSON", "'headers' must be an object")
    return {str(k).lower(): str(v) for k, v in headers.items()}


_BUILDERS: Dict[CredentialKind, Callable[[Any], HeaderContribution]] = {
    CredentialKind.BEARER: _bearer_header,
    CredentialKind.BASIC: _basic_header,
    CredentialKind.CUSTOM: _custom_headers,
}


class AuthResolver:
    """
    Resolves the active authentication selection into request headers.

    The selection is fixed at construction; ``resolve`` looks up the
    credential for every record since stored credentials may depend on
    the record being processed.

    Parameters
    ----------
    kind : CredentialKind, optional
        Active credential sub-type, ``None`` for no authentication

    Examples
    --------
    >>> resolver = AuthResolver.from_settings("genericCredentialType", "httpBasicAuth")
    >>> resolver.resolve(StaticCredentialStore({"httpBasicAuth": {"user": "u", "password": "p"}}))
    {'authorization': 'Basic dTpw'}
    """

    def __init__(self, kind: Optional[CredentialKind] = None) -> None:
        self.kind = kind

    @classmethod
    def from_settings(cls, mode: Optional[str], sub_type: Optional[str]) -> "AuthResolver":
        if not mode or mode == AuthMode.NONE.value:
            return cls(None)
        if mode != AuthMode.GENERIC.value:
            raise ConfigurationError("authentication", f"unknown mode {mode!r}")
        kind = _KIND_ALIASES.get(sub_type or "")
        if kind is None:
            raise ConfigurationError("genericAuthType", f"unsupported credential type {sub_type!r}")
        return cls(kind)

    def resolve(
        self,
        lookup: Optional[CredentialLookup],
        context: Optional[RecordContext] = None,
    ) -> HeaderContribution:
        if self.kind is None:
            return {}
        if lookup is None:
            raise AuthResolutionError(f"No credential store configured for {self.kind.value}")

        ctx = context or RecordContext(0, {})
        try:
            material = lookup(self.kind, ctx)
        except ODataNodeError:
            raise
        except Exception as e:
            raise AuthResolutionError(
                f"Could not fetch {self.kind.value} credential",
                description=str(e),
            ) from e
        if material is None:
            raise AuthResolutionError(f"No {self.kind.value} credential found")
        return _BUILDERS[self.kind](material)


def resolve_auth(
    mode: Optional[str],
    sub_type: Optional[str],
    lookup: Optional[CredentialLookup],
    context: Optional[RecordContext] = None,
) -> HeaderContribution:
    """One-shot helper: parse the selection and resolve it."""
    return AuthResolver.from_settings(mode, sub_type).resolve(lookup, context)


# ---------------- header overrides ----------------

def parse_header_overrides(overrides: HeaderOverrides) -> HeaderContribution:
    """
    Normalize user-configured headers to a lower-cased mapping.

    Accepts a raw JSON object text, a mapping, or a list of
    ``{"name": ..., "value": ...}`` pairs. Later duplicates win.
    """
    if overrides is None or (isinstance(overrides, str) and not overrides.strip()):
        return {}
    if isinstance(overrides, str):
        overrides = _load_json(overrides, lambda d: ConfigurationError("headers", d))
        if not isinstance(overrides, Mapping):
            raise ConfigurationError("headers", "expected a JSON object")
    if isinstance(overrides, Mapping):
        pairs = list(overrides.items())
    else:
        pairs = []
        for p in overrides:
            if not isinstance(p, Mapping) or not p.get("name"):
                raise ConfigurationError("headers", "each header needs a 'name'")
            pairs.append((p["name"], p.get("value", "")))

    out: HeaderContribution = {}
    for k, v in pairs:
        out[str(k).lower()] = "" if v is None else str(v)
    return out


def merge_headers(base: Mapping[str, str], overrides: HeaderOverrides) -> HeaderContribution:
    """Merge header overrides over ``base``; keys compared case-insensitively."""
    merged = {k.lower(): v for k, v in base.items()}
    merged.update(parse_header_overrides(overrides))
    return merged


# ---------------- credential stores ----------------

class StaticCredentialStore:
    """Credential lookup backed by a fixed mapping keyed by credential type."""

    def __init__(self, credentials: Mapping[str, Any]) -> None:
        self._credentials = dict(credentials)

    def __call__(self, kind: CredentialKind, context: RecordContext) -> Any:
        try:
            return self._credentials[kind.value]
        except KeyError:
            raise AuthResolutionError(f"No {kind.value} credential stored") from None


class EnvCredentialStore:
    """
    Credential lookup reading environment variables.

    - oAuth2Api: ODATA_BEARER_TOKEN
    - httpBasicAuth: ODATA_USER / ODATA_PASSWORD
    - httpCustomAuth: ODATA_CUSTOM_AUTH (JSON text)
    """

    def __call__(self, kind: CredentialKind, context: RecordContext) -> Any:
        if kind is CredentialKind.BEARER:
            token = os.environ.get("ODATA_BEARER_TOKEN", "")
            return {"access_token": token} if token else None
        if kind is CredentialKind.BASIC:
            user = os.environ.get("ODATA_USER", "")
            if not user:
                return None
            return {"user": user, "password": os.environ.get("ODATA_PASSWORD", "")}
        return os.environ.get("ODATA_CUSTOM_AUTH") or None
