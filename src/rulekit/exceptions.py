"""Custom exceptions for RuleKit."""

from typing import Any


class RuleKitError(Exception):
    """Base exception for all RuleKit errors."""

    def __init__(
        self,
        message: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.details = details or {}


class ConfigError(RuleKitError):
    """Raised when kit-config.json cannot be read or is invalid."""


class TemplateNotFoundError(RuleKitError):
    """Raised when a rule template file is missing."""


class InstallError(RuleKitError):
    """Raised when installing rules into an IDE target fails."""


class UnknownTargetError(InstallError):
    """Raised when the requested install target is not defined."""


class NoSourceRulesError(InstallError):
    """Raised when the install source directory holds no rule files."""
