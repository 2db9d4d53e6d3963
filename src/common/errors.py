"""Error taxonomy for catalog resolution and install orchestration."""

from __future__ import annotations

from typing import Optional


class InstallError(Exception):
    """Base class for every error raised by this package."""


class ValidationError(InstallError, ValueError):
    """A request field is missing or malformed."""

    def __init__(self, field: str, message: str):
        super().__init__(f"{field}: {message}")
        self.field = field
        self.message = message


class NotFoundError(InstallError):
    """A package, version or installed app could not be found."""


class ConflictError(InstallError):
    """The request matches more than one target, or the target already exists."""


class UpstreamError(InstallError):
    """A key-value, scheduler, resource-manager or coordination-service call failed.

    Template and schema parse failures are reported as upstream errors too,
    since the offending artifacts come from the key-value store.
    """

    def __init__(
        self,
        message: str,
        *,
        operation: Optional[str] = None,
        target: Optional[str] = None,
        status_code: Optional[int] = None,
    ):
        super().__init__(message)
        self.operation = operation
        self.target = target
        self.status_code = status_code


class SchemaError(UpstreamError):
    """A package configuration schema or options document could not be parsed."""


class TemplateError(UpstreamError):
    """A package template could not be parsed."""
