"""
Structured error types for the extraction pipeline.

Every failure the pipeline knows how to classify is raised as a subclass of
DashQueryError so callers can decide, per item, whether to skip or abort.
"""

from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional, Union
from dataclasses import dataclass, field


class ErrorSeverity(str, Enum):
    """Error severity levels for categorization and response."""
    CRITICAL = "critical"    # Run cannot continue
    HIGH = "high"            # Item lost, run continues
    MEDIUM = "medium"
    LOW = "low"
    INFO = "info"


class ErrorCategory(str, Enum):
    """Error categories for systematic handling."""
    CONFIGURATION = "configuration"   # Missing or invalid settings
    REQUEST = "request"               # Request could not be built
    NETWORK = "network"               # Connectivity and HTTP status failures
    DECODE = "decode"                 # Response body did not match the expected shape
    FILESYSTEM = "filesystem"         # Artifact directory and file operations
    UPSTREAM = "upstream"             # Upstream answered but with nothing usable


class RecoveryStrategy(str, Enum):
    """What the pipeline does when the error reaches its handler."""
    SKIP = "skip"                     # Drop the item and continue the batch
    ABORT = "abort"                   # Stop the run


@dataclass
class ErrorContext:
    """Where in the pipeline an error was raised."""
    component: str
    operation: str
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    dashboard_id: Optional[str] = None
    cell_link: Optional[str] = None
    url: Optional[str] = None
    parameters: Dict[str, Any] = field(default_factory=dict)


class DashQueryError(Exception):
    """
    Base exception class with structured error handling.

    Carries severity, category and a recovery strategy so the worker pool and
    the CLI can decide between skipping an item and aborting the run.
    """

    def __init__(
        self,
        message: str,
        severity: ErrorSeverity = ErrorSeverity.MEDIUM,
        category: ErrorCategory = ErrorCategory.UPSTREAM,
        recovery_strategy: RecoveryStrategy = RecoveryStrategy.SKIP,
        context: Optional[ErrorContext] = None,
        cause: Optional[Exception] = None,
        details: Optional[Dict[str, Any]] = None,
        suggestions: Optional[List[str]] = None
    ):
        super().__init__(message)
        self.message = message
        self.severity = severity
        self.category = category
        self.recovery_strategy = recovery_strategy
        self.context = context or ErrorContext(component="unknown", operation="unknown")
        self.cause = cause
        self.details = details or {}
        self.suggestions = suggestions or []
        self.timestamp = datetime.now(timezone.utc)
        if cause is not None:
            self.__cause__ = cause

    @property
    def fatal(self) -> bool:
        return self.recovery_strategy == RecoveryStrategy.ABORT

    def to_dict(self) -> Dict[str, Any]:
        """Convert error to structured dictionary for logging."""
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "severity": self.severity.value,
            "category": self.category.value,
            "recovery_strategy": self.recovery_strategy.value,
            "timestamp": self.timestamp.isoformat(),
            "context": {
                "component": self.context.component,
                "operation": self.context.operation,
                "timestamp": self.context.timestamp.isoformat(),
                "dashboard_id": self.context.dashboard_id,
                "cell_link": self.context.cell_link,
                "url": self.context.url,
                "parameters": self.context.parameters,
            },
            "details": self.details,
            "suggestions": self.suggestions,
            "cause": str(self.cause) if self.cause else None,
        }

    def __str__(self) -> str:
        """Human-readable error representation."""
        return f"[{self.severity.value.upper()}] {self.category.value}: {self.message}"


class ConfigurationError(DashQueryError):
    """Configuration and setup errors."""

    def __init__(self, config_key: str, message: str, **kwargs):
        super().__init__(
            message,
            severity=ErrorSeverity.CRITICAL,
            category=ErrorCategory.CONFIGURATION,
            recovery_strategy=RecoveryStrategy.ABORT,
            **kwargs
        )
        self.details["config_key"] = config_key


class RequestError(DashQueryError):
    """The HTTP request could not be constructed or sent."""

    def __init__(self, url: str, message: str, **kwargs):
        super().__init__(
            f"failed to create request for '{url}': {message}",
            severity=ErrorSeverity.HIGH,
            category=ErrorCategory.REQUEST,
            recovery_strategy=RecoveryStrategy.SKIP,
            **kwargs
        )
        self.details["url"] = url


class TransportError(DashQueryError):
    """Network failure or a non-success HTTP status."""

    def __init__(self, url: str, message: str, status: Optional[int] = None, **kwargs):
        super().__init__(
            f"request to '{url}' failed: {message}",
            severity=ErrorSeverity.HIGH,
            category=ErrorCategory.NETWORK,
            recovery_strategy=RecoveryStrategy.SKIP,
            **kwargs
        )
        self.details["url"] = url
        self.status = status
        if status is not None:
            self.details["status"] = status


class DecodeError(DashQueryError):
    """Response body is not JSON or does not match the expected shape."""

    def __init__(self, url: str, message: str, **kwargs):
        super().__init__(
            f"failed to decode response from '{url}': {message}",
            severity=ErrorSeverity.HIGH,
            category=ErrorCategory.DECODE,
            recovery_strategy=RecoveryStrategy.SKIP,
            **kwargs
        )
        self.details["url"] = url


class FileSystemError(DashQueryError):
    """File system operation errors."""

    def __init__(self, path: Union[str, Path], operation: str, message: str, **kwargs):
        kwargs.setdefault("recovery_strategy", RecoveryStrategy.SKIP)
        super().__init__(
            f"File operation '{operation}' failed on '{path}': {message}",
            severity=ErrorSeverity.HIGH,
            category=ErrorCategory.FILESYSTEM,
            **kwargs
        )
        self.details["path"] = str(path)
        self.details["operation"] = operation


class NoDashboardsError(DashQueryError):
    """Upstream returned an empty dashboard list."""

    def __init__(self, url: str, **kwargs):
        super().__init__(
            "no dashboards returned",
            severity=ErrorSeverity.CRITICAL,
            category=ErrorCategory.UPSTREAM,
            recovery_strategy=RecoveryStrategy.ABORT,
            **kwargs
        )
        self.details["url"] = url


def create_error_context(component: str, operation: str, **kwargs) -> ErrorContext:
    """Create error context for a pipeline component operation."""
    return ErrorContext(component=component, operation=operation, **kwargs)
