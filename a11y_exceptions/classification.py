import traceback
import uuid
from typing import Dict, Any, Optional
from enum import Enum

from .base import (
    A11yAuditError,
    ConfigurationError,
    DetachedRootError,
    EngineFaultError,
    ErrorClassification,
    ErrorContext,
    StyleUnavailableError,
)


class RecoveryStrategy(Enum):
    # What the caller should do with an error
    RECORD_ABSTENTION = "record_abstention"
    RESNAPSHOT = "resnapshot"
    FIX_CONFIGURATION = "fix_configuration"
    SERIALIZE_PROBES = "serialize_probes"
    FAIL_FAST = "fail_fast"


def create_error_context(
    correlation_id: Optional[str] = None,
    component: str = "",
    operation: str = "",
    selector: Optional[str] = None,
    **metadata
) -> ErrorContext:
    # Factory function to create error context with correlation ID
    if correlation_id is None:
        correlation_id = str(uuid.uuid4())[:8]

    stack = traceback.format_exc()
    return ErrorContext(
        correlation_id=correlation_id,
        component=component,
        operation=operation,
        selector=selector,
        metadata=metadata,
        stack_trace=stack if stack.strip() != "NoneType: None" else None
    )


def classify_error(
    exception: Exception,
    context: Optional[Dict[str, Any]] = None
) -> ErrorClassification:
    # Classification based on exception type, then on host error text
    if isinstance(exception, A11yAuditError):
        return exception.classification

    if _is_configuration_error(exception):
        return ErrorClassification.CONFIGURATION

    return ErrorClassification.ENGINE_FAULT


def get_recovery_strategy(
    exception: Exception,
    context: Optional[Dict[str, Any]] = None
) -> RecoveryStrategy:
    classification = classify_error(exception, context)

    if classification == ErrorClassification.ABSTENTION:
        return RecoveryStrategy.RECORD_ABSTENTION
    if classification == ErrorClassification.CONFIGURATION:
        return RecoveryStrategy.FIX_CONFIGURATION
    if classification == ErrorClassification.PROBE:
        return RecoveryStrategy.SERIALIZE_PROBES
    if isinstance(exception, DetachedRootError) or _is_detached_error(exception):
        return RecoveryStrategy.RESNAPSHOT

    return RecoveryStrategy.FAIL_FAST


def convert_to_engine_fault(
    exception: Exception,
    context: Optional[ErrorContext] = None,
    component: str = "Audit Engine",
    operation: str = "audit"
) -> A11yAuditError:
    # Wrap host or analyzer exceptions so callers only see audit errors
    if isinstance(exception, A11yAuditError) and exception.is_fatal():
        return exception

    if context is None:
        context = create_error_context(component=component, operation=operation)

    if isinstance(exception, StyleUnavailableError):
        # An abstention that escaped its analyzer means the style source itself is broken
        return EngineFaultError(
            message=exception.message,
            operation="resolve_styles",
            error_context=context,
            cause=exception
        )

    if _is_detached_error(exception):
        return DetachedRootError(error_context=context, cause=exception)

    if _is_configuration_error(exception):
        return ConfigurationError(
            message=str(exception),
            error_context=context,
            cause=exception
        )

    return EngineFaultError(
        message=f"{type(exception).__name__}: {exception}",
        operation=operation,
        error_context=context,
        cause=exception
    )


# Private helper functions for error classification

def _is_detached_error(exception: Exception) -> bool:
    error_str = str(exception).lower()
    detached_indicators = [
        "detached", "not attached", "target closed", "execution context was destroyed",
        "node is not", "frame was detached"
    ]
    return any(indicator in error_str for indicator in detached_indicators)


def _is_configuration_error(exception: Exception) -> bool:
    error_str = str(exception).lower()
    config_indicators = ["a11y_", ".env", "environment variable", "viewport profile"]
    return any(indicator in error_str for indicator in config_indicators)
