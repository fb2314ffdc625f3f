# SPDX-FileCopyrightText: 2025-2026 Jiri Vyskocil <jiri@vyskocil.com>
#
# SPDX-License-Identifier: Apache-2.0

"""Conversion between the configuration model and the persisted document.

The document is YAML (JSON is accepted on read since it is a YAML subset).
Names below ``server`` and ``authorization`` use snake_case to stay
compatible with OAuth 2.0 / RFC 8414 metadata.  Empty values are omitted
on write.
"""

from __future__ import annotations

from datetime import UTC, datetime
from pathlib import Path
from typing import Any

import yaml
from jose import jwt
from jose.exceptions import JWTError

from .errors import MalformedDocumentError, UnknownCredentialError
from .model import (
    APIServer,
    ApplicationServer,
    Authorization,
    AuthorizationServer,
    ClientCredential,
    Cluster,
    Config,
    Context,
    Controller,
    ControllerEnvVar,
    Credential,
    Named,
    Server,
    TokenCredential,
)

# Expiry written for tokens that never expire
NO_EXPIRY = "0"

# (document key, attribute) pairs; document order is write order
_API_KEYS = [
    ("applications_endpoint", "applications_endpoint"),
    ("experiments_endpoint", "experiments_endpoint"),
    ("accounts_endpoint", "accounts_endpoint"),
    ("performance_token_endpoint", "performance_token_endpoint"),
    ("registry_registration_endpoint", "registry_registration_endpoint"),
]
_AUTHORIZATION_SERVER_KEYS = [
    ("issuer", "issuer"),
    ("authorization_endpoint", "authorization_endpoint"),
    ("token_endpoint", "token_endpoint"),
    ("revocation_endpoint", "revocation_endpoint"),
    ("registration_endpoint", "registration_endpoint"),
    ("device_authorization_endpoint", "device_authorization_endpoint"),
    ("jwks_uri", "jwks_uri"),
]
_APPLICATION_KEYS = [
    ("base_url", "base_url"),
    ("auth_success_endpoint", "auth_success_endpoint"),
]
_CLUSTER_KEYS = [
    ("kubeconfig", "kubeconfig"),
    ("context", "context"),
    ("namespace", "namespace"),
    ("bin", "bin"),
    ("controller", "controller"),
]
_CONTROLLER_KEYS = [
    ("deploymentName", "deployment_name"),
    ("namespace", "namespace"),
    ("registration_client_uri", "registration_client_uri"),
    ("registration_access_token", "registration_access_token"),
]
_CONTEXT_KEYS = [
    ("server", "server"),
    ("authorization", "authorization"),
    ("cluster", "cluster"),
]


# ---------- Helpers ----------


def _str(value: Any) -> str:
    if value is None:
        return ""
    return str(value)


def _mapping(value: Any, key: str) -> dict:
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise MalformedDocumentError(f"expected a mapping for '{key}'", key=key)
    return value


def _sequence(value: Any, key: str) -> list:
    if value is None:
        return []
    if not isinstance(value, list):
        raise MalformedDocumentError(f"expected a sequence for '{key}'", key=key)
    return value


def _encode_fields(obj: Any, keys: list[tuple[str, str]]) -> dict[str, Any]:
    out: dict[str, Any] = {}
    for key, attr in keys:
        value = getattr(obj, attr)
        if value:
            out[key] = value
    return out


def _decode_fields(cls: type, data: dict, keys: list[tuple[str, str]]) -> Any:
    return cls(**{attr: _str(data.get(key)) for key, attr in keys})


# ---------- Credentials ----------


def format_expiry(expiry: datetime | None) -> str:
    """Return *expiry* as an RFC 3339 UTC timestamp, or ``"0"`` for no expiry."""
    if expiry is None:
        return NO_EXPIRY
    if expiry.tzinfo is None:
        expiry = expiry.replace(tzinfo=UTC)
    expiry = expiry.astimezone(UTC)
    if expiry.microsecond:
        return expiry.strftime("%Y-%m-%dT%H:%M:%S.%fZ")
    return expiry.strftime("%Y-%m-%dT%H:%M:%SZ")


def parse_expiry(value: Any) -> datetime | None:
    """Inverse of :func:`format_expiry`; also accepts timestamps already parsed by YAML."""
    if value in (None, "", 0, NO_EXPIRY):
        return None
    if isinstance(value, datetime):
        dt = value
    else:
        try:
            dt = datetime.fromisoformat(str(value))
        except ValueError as e:
            raise MalformedDocumentError(f"invalid token expiry: {value}", key="expiry") from e
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=UTC)
    return dt.astimezone(UTC)


def _render_access_token(token: str, decode_jwt: bool) -> Any:
    if not decode_jwt:
        return token
    try:
        return jwt.get_unverified_claims(token)
    except JWTError:
        return token


def encode_credential(credential: Credential, *, decode_jwt: bool = False) -> dict[str, Any]:
    """Encode a credential.

    With *decode_jwt* the access token is replaced by its unverified claim
    set.  That output cannot be read back and is only meant for display.

    A token without an access token or a client without a client id is
    written as the empty credential.
    """
    match credential:
        case TokenCredential(access_token=token) if token:
            out: dict[str, Any] = {"access_token": _render_access_token(token, decode_jwt)}
            if credential.token_type:
                out["token_type"] = credential.token_type
            if credential.refresh_token:
                out["refresh_token"] = credential.refresh_token
            out["expiry"] = format_expiry(credential.expiry)
            return out
        case ClientCredential(client_id=client_id) if client_id:
            return {
                "client_id": credential.client_id,
                "client_secret": credential.client_secret,
                "scope": credential.scope,
            }
        case TokenCredential() | ClientCredential() | None:
            return {}


def decode_credential(data: Any) -> Credential:
    """Select the credential variant from the keys present in *data*."""
    data = _mapping(data, "credential")
    if not data:
        return None
    access_token = data.get("access_token")
    if access_token:
        if not isinstance(access_token, str):
            raise UnknownCredentialError(list(data))
        return TokenCredential(
            access_token=access_token,
            token_type=_str(data.get("token_type")),
            refresh_token=_str(data.get("refresh_token")),
            expiry=parse_expiry(data.get("expiry")),
        )
    if data.get("client_id"):
        return ClientCredential(
            client_id=_str(data.get("client_id")),
            client_secret=_str(data.get("client_secret")),
            scope=_str(data.get("scope")),
        )
    raise UnknownCredentialError(list(data))


# ---------- Bodies ----------


def encode_server(srv: Server) -> dict[str, Any]:
    out: dict[str, Any] = {}
    if srv.identifier:
        out["identifier"] = srv.identifier
    for key, section, keys in (
        ("api", srv.api, _API_KEYS),
        ("authorization", srv.authorization, _AUTHORIZATION_SERVER_KEYS),
        ("application", srv.application, _APPLICATION_KEYS),
    ):
        encoded = _encode_fields(section, keys)
        if encoded:
            out[key] = encoded
    return out


def decode_server(data: Any) -> Server:
    data = _mapping(data, "server")
    return Server(
        identifier=_str(data.get("identifier")),
        api=_decode_fields(APIServer, _mapping(data.get("api"), "api"), _API_KEYS),
        authorization=_decode_fields(
            AuthorizationServer,
            _mapping(data.get("authorization"), "authorization"),
            _AUTHORIZATION_SERVER_KEYS,
        ),
        application=_decode_fields(
            ApplicationServer,
            _mapping(data.get("application"), "application"),
            _APPLICATION_KEYS,
        ),
    )


def encode_authorization(az: Authorization, *, decode_jwt: bool = False) -> dict[str, Any]:
    credential = encode_credential(az.credential, decode_jwt=decode_jwt)
    return {"credential": credential} if credential else {}


def decode_authorization(data: Any) -> Authorization:
    data = _mapping(data, "authorization")
    return Authorization(credential=decode_credential(data.get("credential")))


def encode_controller(ctrl: Controller) -> dict[str, Any]:
    out = _encode_fields(ctrl, _CONTROLLER_KEYS)
    if ctrl.env:
        out["env"] = [{"name": v.name, "value": v.value} for v in ctrl.env]
    return out


def decode_controller(data: Any) -> Controller:
    data = _mapping(data, "controller")
    ctrl = _decode_fields(Controller, data, _CONTROLLER_KEYS)
    for item in _sequence(data.get("env"), "env"):
        item = _mapping(item, "env")
        ctrl.env.append(
            ControllerEnvVar(name=_str(item.get("name")), value=_str(item.get("value")))
        )
    return ctrl


# ---------- Aggregate ----------


def _encode_named(entries: list[Named], key: str, encode: Any) -> list[dict[str, Any]]:
    return [{"name": e.name, key: encode(e.body)} for e in entries]


def _decode_named(data: dict, collection: str, key: str, decode: Any) -> list[Named]:
    out: list[Named] = []
    for item in _sequence(data.get(collection), collection):
        item = _mapping(item, collection)
        out.append(Named(name=_str(item.get("name")), body=decode(item.get(key))))
    return out


def encode_config(cfg: Config, *, decode_jwt: bool = False) -> dict[str, Any]:
    """Return the document for *cfg*, omitting empty collections and scalars."""
    out: dict[str, Any] = {}
    sections = [
        ("servers", "server", cfg.servers, encode_server),
        (
            "authorizations",
            "authorization",
            cfg.authorizations,
            lambda az: encode_authorization(az, decode_jwt=decode_jwt),
        ),
        ("clusters", "cluster", cfg.clusters, lambda c: _encode_fields(c, _CLUSTER_KEYS)),
        ("controllers", "controller", cfg.controllers, encode_controller),
        ("contexts", "context", cfg.contexts, lambda c: _encode_fields(c, _CONTEXT_KEYS)),
    ]
    for collection, key, entries, encode in sections:
        if entries:
            out[collection] = _encode_named(entries, key, encode)
    if cfg.current_context:
        out["current-context"] = cfg.current_context
    if cfg.environment:
        out["env"] = cfg.environment
    return out


def decode_config(data: Any) -> Config:
    """Build a :class:`Config` from a parsed document (``None`` is an empty document)."""
    data = _mapping(data, "config")
    return Config(
        servers=_decode_named(data, "servers", "server", decode_server),
        authorizations=_decode_named(data, "authorizations", "authorization", decode_authorization),
        clusters=_decode_named(
            data,
            "clusters",
            "cluster",
            lambda d: _decode_fields(Cluster, _mapping(d, "cluster"), _CLUSTER_KEYS),
        ),
        controllers=_decode_named(data, "controllers", "controller", decode_controller),
        contexts=_decode_named(
            data,
            "contexts",
            "context",
            lambda d: _decode_fields(Context, _mapping(d, "context"), _CONTEXT_KEYS),
        ),
        current_context=_str(data.get("current-context")),
        environment=_str(data.get("env")),
    )


def load_document(text: str, source: Path | None = None) -> Config:
    """Parse YAML or JSON *text* into a :class:`Config`."""
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise MalformedDocumentError(
            f"invalid configuration document: {e}", config_file=source
        ) from e
    try:
        return decode_config(data)
    except MalformedDocumentError as e:
        if source is not None and e.config_file is None:
            raise MalformedDocumentError(e.message, config_file=source, key=e.key) from e
        raise


def dump_document(cfg: Config, *, decode_jwt: bool = False) -> str:
    """Serialize *cfg* as YAML."""
    data = encode_config(cfg, decode_jwt=decode_jwt)
    if not data:
        return "{}\n"
    return yaml.safe_dump(data, sort_keys=False, default_flow_style=False)
