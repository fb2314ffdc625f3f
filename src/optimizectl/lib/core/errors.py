# SPDX-FileCopyrightText: 2025-2026 Jiri Vyskocil <jiri@vyskocil.com>
#
# SPDX-License-Identifier: Apache-2.0

"""Exceptions raised by the configuration engine.

Every failure while loading, merging, defaulting, changing or writing the
configuration is reported with one of these.  None of them are retried or
downgraded to warnings; callers are expected to print them and stop.

Exception hierarchy:
    ConfigError (base)
    ├── UnresolvableEnvironmentError
    ├── InvalidEnvironmentError
    ├── InvalidServerIdentifierError
    ├── AmbiguousReferenceError
    ├── UnknownReferenceError
    ├── UnknownPropertyError
    ├── MalformedDocumentError
    └── UnknownCredentialError
"""

from pathlib import Path
from typing import Any


class ConfigError(Exception):
    """Base exception for all configuration errors.

    Attributes:
        message: Human-readable error description.
        details: Optional dictionary with additional context.
    """

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            detail_str = ", ".join(f"{k}={v}" for k, v in self.details.items())
            return f"{self.message} ({detail_str})"
        return self.message


class UnresolvableEnvironmentError(ConfigError):
    """Raised when server roots are requested for an environment outside the fixed table."""

    def __init__(self, environment: str):
        super().__init__(f"unknown environment: '{environment}'")
        self.environment = environment


class InvalidEnvironmentError(ConfigError):
    """Raised when an execution environment alias cannot be normalized."""

    def __init__(self, value: str):
        super().__init__(f"unknown environment: {value}")
        self.value = value


class InvalidServerIdentifierError(ConfigError):
    """Raised when a server identifier or issuer cannot be used as a base URL."""

    def __init__(self, value: str, reason: str):
        super().__init__(f"invalid server identifier: {value}", {"reason": reason})
        self.value = value


class AmbiguousReferenceError(ConfigError):
    """Raised when a reference field could not be implied from its target collection.

    Attributes:
        kind: The kind of reference (``server``, ``authorization``, ...).
        owner: Description of the entity owning the field, e.g. ``context: foo``.
    """

    def __init__(self, kind: str, owner: str):
        super().__init__(f"could not imply default {kind} name for {owner}")
        self.kind = kind
        self.owner = owner


class UnknownReferenceError(ConfigError):
    """Raised when a name does not exist in the collection it refers to."""

    def __init__(self, kind: str, name: str):
        super().__init__(f"unknown {kind} reference: {name}")
        self.kind = kind
        self.name = name


class UnknownPropertyError(ConfigError):
    """Raised by the property setter for paths outside its grammar."""

    def __init__(self, name: str):
        super().__init__(f"unknown config property: {name}")
        self.name = name


class MalformedDocumentError(ConfigError):
    """Raised when a persisted document is not valid YAML/JSON or has the wrong shape."""

    def __init__(self, message: str, config_file: Path | None = None, key: str | None = None):
        details = {}
        if config_file:
            details["config_file"] = str(config_file)
        if key:
            details["key"] = key
        super().__init__(message, details)
        self.config_file = config_file
        self.key = key


class UnknownCredentialError(ConfigError):
    """Raised when a non-empty credential matches neither the token nor the client shape."""

    def __init__(self, keys: list[str]):
        super().__init__("unknown credential", {"keys": ",".join(sorted(keys))})
        self.keys = keys
