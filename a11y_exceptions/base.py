import json
import time
from enum import Enum
from typing import Dict, Any, Optional, List
from dataclasses import dataclass, field


class ErrorClassification(Enum):
    # Classification of audit outcomes that are not plain results
    ABSTENTION = "abstention"        # Check could not be evaluated, recorded and skipped
    ENGINE_FAULT = "engine_fault"    # Invocation cannot proceed, fail fast
    CONFIGURATION = "configuration"  # Environment/config related
    PROBE = "probe"                  # Focus probe could not be acquired


@dataclass
class ErrorContext:
    # Preserves error context for debugging a failed audit
    correlation_id: str
    timestamp: float = field(default_factory=time.time)
    component: str = ""
    operation: str = ""
    selector: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)
    stack_trace: Optional[str] = None
    recovery_suggestions: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        # Convert to dictionary for JSON logging
        return {
            "correlation_id": self.correlation_id,
            "timestamp": self.timestamp,
            "component": self.component,
            "operation": self.operation,
            "selector": self.selector,
            "metadata": self.metadata,
            "stack_trace": self.stack_trace,
            "recovery_suggestions": self.recovery_suggestions,
        }

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), default=str, indent=2)


class A11yAuditError(Exception):
    # Base exception for all audit engine errors
    # Provides structured error information and recovery guidance

    def __init__(
        self,
        message: str,
        error_context: Optional[ErrorContext] = None,
        classification: ErrorClassification = ErrorClassification.ENGINE_FAULT,
        cause: Optional[Exception] = None,
        recovery_suggestions: Optional[List[str]] = None
    ):
        super().__init__(message)
        self.message = message
        self.error_context = error_context or ErrorContext(correlation_id="unknown")
        self.classification = classification
        self.cause = cause
        self.recovery_suggestions = recovery_suggestions or []

        if recovery_suggestions:
            self.error_context.recovery_suggestions.extend(recovery_suggestions)

    def is_fatal(self) -> bool:
        # Abstentions are recorded, everything else aborts the invocation
        return self.classification != ErrorClassification.ABSTENTION

    def get_actionable_message(self) -> str:
        base_message = f"{self.message}"

        if self.recovery_suggestions:
            suggestions = "\n".join(f"  - {suggestion}" for suggestion in self.recovery_suggestions)
            base_message += f"\n\nRecovery suggestions:\n{suggestions}"

        if self.error_context.selector:
            base_message += f"\n\nElement: {self.error_context.selector}"

        if self.error_context.correlation_id != "unknown":
            base_message += f"\nCorrelation ID: {self.error_context.correlation_id}"

        return base_message

    def __str__(self) -> str:
        return self.get_actionable_message()


class StyleUnavailableError(A11yAuditError):
    # Raised by a style resolver when one element's style cannot be read
    # The accessor turns it into "unknown" and the analyzers abstain

    def __init__(
        self,
        message: str,
        selector: Optional[str] = None,
        error_context: Optional[ErrorContext] = None,
        cause: Optional[Exception] = None
    ):
        self.selector = selector

        if error_context:
            error_context.component = "Style Resolver"
            error_context.selector = selector

        super().__init__(
            message=f"Style unavailable: {message}",
            error_context=error_context,
            classification=ErrorClassification.ABSTENTION,
            cause=cause
        )


class EngineFaultError(A11yAuditError):
    # Invocation-level failure, the audit produces no report

    def __init__(
        self,
        message: str,
        operation: str = "audit",
        error_context: Optional[ErrorContext] = None,
        cause: Optional[Exception] = None,
        recovery_suggestions: Optional[List[str]] = None
    ):
        self.operation = operation

        if error_context:
            error_context.component = error_context.component or "Audit Engine"
            error_context.operation = error_context.operation or operation

        super().__init__(
            message=f"Engine Fault ({operation}): {message}",
            error_context=error_context,
            classification=ErrorClassification.ENGINE_FAULT,
            cause=cause,
            recovery_suggestions=recovery_suggestions or [
                "Re-snapshot the page and run the audit again",
                "Check the host adapter for the failing capability",
            ]
        )


class DetachedRootError(EngineFaultError):
    # Audit root is no longer part of the rendered tree

    def __init__(
        self,
        selector: Optional[str] = None,
        error_context: Optional[ErrorContext] = None,
        cause: Optional[Exception] = None
    ):
        self.selector = selector

        if error_context:
            error_context.selector = selector

        super().__init__(
            message=f"Audit root {selector or '<root>'} is detached from the rendered tree",
            operation="resolve_root",
            error_context=error_context,
            cause=cause,
            recovery_suggestions=[
                "Wait for the page to settle before auditing",
                "Take a fresh snapshot after client-side navigation",
            ]
        )


class StyleSourceError(EngineFaultError):
    # Style resolution is unavailable for the whole tree

    def __init__(
        self,
        message: str,
        error_context: Optional[ErrorContext] = None,
        cause: Optional[Exception] = None
    ):
        super().__init__(
            message=message,
            operation="resolve_styles",
            error_context=error_context,
            cause=cause,
            recovery_suggestions=[
                "Verify the page finished loading its stylesheets",
                "Check that the style resolver is bound to the same document as the root",
            ]
        )


class TraversalUnavailableError(EngineFaultError):
    # A capability required by an enabled rule family was not supplied

    def __init__(
        self,
        capability: str,
        error_context: Optional[ErrorContext] = None,
        cause: Optional[Exception] = None
    ):
        self.capability = capability

        if error_context:
            error_context.metadata["capability"] = capability

        super().__init__(
            message=f"Required capability '{capability}' is not available",
            operation="capability_check",
            error_context=error_context,
            cause=cause,
            recovery_suggestions=[
                f"Supply a {capability} implementation to the engine",
                "Disable the rule family that needs it in the audit configuration",
            ]
        )


class FocusProbeError(A11yAuditError):
    # Focus probe could not acquire exclusive focus in time

    def __init__(
        self,
        message: str,
        selector: Optional[str] = None,
        timeout: Optional[float] = None,
        error_context: Optional[ErrorContext] = None,
        cause: Optional[Exception] = None
    ):
        self.selector = selector
        self.timeout = timeout

        recovery_suggestions = [
            "Make sure no other audit is probing focus on the same page",
            "Increase A11Y_FOCUS_PROBE_TIMEOUT",
        ]

        if error_context:
            error_context.component = "Focus Controller"
            error_context.selector = selector
            if timeout is not None:
                error_context.metadata["timeout"] = timeout

        super().__init__(
            message=f"Focus Probe Error: {message}",
            error_context=error_context,
            classification=ErrorClassification.PROBE,
            cause=cause,
            recovery_suggestions=recovery_suggestions
        )


class ConfigurationError(A11yAuditError):
    # Exception for configuration issues - should fail fast

    def __init__(
        self,
        message: str,
        config_key: Optional[str] = None,
        config_file: Optional[str] = None,
        expected_format: Optional[str] = None,
        error_context: Optional[ErrorContext] = None,
        cause: Optional[Exception] = None
    ):
        self.config_key = config_key
        self.config_file = config_file
        self.expected_format = expected_format

        recovery_suggestions = [
            "Review environment variables and configuration files",
            "Check .env file exists and contains valid values",
        ]

        if config_key:
            recovery_suggestions.insert(0, f"Fix configuration value: {config_key}")

        if config_file:
            recovery_suggestions.insert(0, f"Check configuration file: {config_file}")

        if expected_format:
            recovery_suggestions.insert(0, f"Expected format: {expected_format}")

        if error_context:
            error_context.component = "Configuration"
            if config_key:
                error_context.metadata["config_key"] = config_key
            if config_file:
                error_context.metadata["config_file"] = config_file

        super().__init__(
            message=f"Configuration Error: {message}",
            error_context=error_context,
            classification=ErrorClassification.CONFIGURATION,
            cause=cause,
            recovery_suggestions=recovery_suggestions
        )
