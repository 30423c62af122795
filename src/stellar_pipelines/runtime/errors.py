"""
Stellar Pipelines Error Model

This module provides the error handling framework shared by every layer of the
library: processes, pipelines, plugins, signers and the RPC client.

Each layer owns a closed set of error codes. Errors are matched on their
``code`` attribute; the exception class only identifies the family.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional, Tuple


class ErrorDomain(str, Enum):
    """Layer an error originates from."""

    CORE = "core"
    PROCESSES = "processes"
    PIPELINES = "pipelines"
    PLUGINS = "plugins"
    SIGNERS = "signers"
    RPC = "rpc"


@dataclass(frozen=True)
class Diagnostic:
    """Hint attached to an error explaining the likely cause and a fix."""

    root_cause: str
    suggestion: str
    materials: Tuple[str, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {
            "rootCause": self.root_cause,
            "suggestion": self.suggestion,
        }
        if self.materials:
            result["materials"] = list(self.materials)
        return result


@dataclass(frozen=True)
class ErrorTemplate:
    """Static message and diagnostic registered for an error code."""

    message: str
    details: Optional[str] = None
    diagnostic: Optional[Diagnostic] = None


class StellarPipelinesError(Exception):
    """
    Base class for all library errors.

    Provides structured error information: a code from the owning layer's
    closed code set, a human readable message, optional details, an optional
    diagnostic hint, the underlying cause and a free-form data payload.
    """

    domain: ErrorDomain = ErrorDomain.CORE
    source: str = "stellar_pipelines"

    def __init__(
        self,
        message: str,
        code: Enum,
        details: Optional[str] = None,
        cause: Optional[BaseException] = None,
        diagnostic: Optional[Diagnostic] = None,
        data: Optional[Dict[str, Any]] = None,
    ):
        """
        Initialize an error.

        Args:
            message: Error message
            code: Error code from the owning layer's code enum
            details: Additional error details
            cause: Underlying exception that caused this error
            diagnostic: Root cause and suggested fix
            data: Domain-specific payload (offending input, responses, ...)
        """
        super().__init__(message)
        self.message = message
        self.code = code
        self.details = details or message
        self.cause = cause
        self.diagnostic = diagnostic
        self.data: Dict[str, Any] = data or {}

    def __str__(self) -> str:
        """String representation of the error."""
        parts = [f"[{self.code.value}] {self.message}"]
        if self.details and self.details != self.message:
            parts.append(f"Details: {self.details}")
        if self.cause:
            parts.append(f"Caused by: {self.cause!r}")
        return " | ".join(parts)

    def to_dict(self) -> Dict[str, Any]:
        """Convert error to dictionary representation."""
        result: Dict[str, Any] = {
            "domain": self.domain.value,
            "source": self.source,
            "code": self.code.value,
            "message": self.message,
            "details": self.details,
        }
        if self.diagnostic:
            result["diagnostic"] = self.diagnostic.to_dict()
        if self.cause:
            result["cause"] = repr(self.cause)
        return result


class TemplatedError(StellarPipelinesError):
    """
    Error whose message and diagnostic are looked up by code.

    Subclasses declare ``templates``, a mapping of every code in their code
    enum to an :class:`ErrorTemplate`.
    """

    templates: Dict[Enum, ErrorTemplate] = {}

    def __init__(
        self,
        code: Enum,
        details: Optional[str] = None,
        cause: Optional[BaseException] = None,
        data: Optional[Dict[str, Any]] = None,
    ):
        template = self.templates.get(code) or ErrorTemplate(message=code.name)
        super().__init__(
            template.message,
            code,
            details=details or template.details,
            cause=cause,
            diagnostic=template.diagnostic,
            data=data,
        )


class CoreErrorCode(str, Enum):
    """Codes for configuration and generic library errors."""

    UNEXPECTED_ERROR = "GEN_000"
    INVALID_CONFIG = "GEN_001"
    INVALID_ADDRESS = "GEN_002"


class ConfigError(TemplatedError):
    """Invalid library configuration."""

    templates = {
        CoreErrorCode.UNEXPECTED_ERROR: ErrorTemplate("An unexpected error occurred!"),
        CoreErrorCode.INVALID_CONFIG: ErrorTemplate(
            "Invalid configuration!",
            diagnostic=Diagnostic(
                root_cause="A configuration value is missing or could not be parsed.",
                suggestion="Check the network passphrase and RPC url provided to the pipeline.",
            ),
        ),
        CoreErrorCode.INVALID_ADDRESS: ErrorTemplate(
            "Invalid address!",
            diagnostic=Diagnostic(
                root_cause="The value does not have the shape of a ledger address.",
                suggestion="Provide a G... account address or a decoded MuxedAccount.",
            ),
        ),
    }


__all__ = [
    "ErrorDomain",
    "Diagnostic",
    "ErrorTemplate",
    "StellarPipelinesError",
    "TemplatedError",
    "CoreErrorCode",
    "ConfigError",
]
