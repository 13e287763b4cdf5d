# Audit engine exception hierarchy
# Separates abstentions (recorded) from engine faults (raised) and carries structured context

from .base import (
    A11yAuditError,
    StyleUnavailableError,
    EngineFaultError,
    DetachedRootError,
    StyleSourceError,
    TraversalUnavailableError,
    FocusProbeError,
    ConfigurationError,
    ErrorClassification,
    ErrorContext,
)

from .classification import (
    classify_error,
    get_recovery_strategy,
    convert_to_engine_fault,
    create_error_context,
    RecoveryStrategy,
)

from .logging import (
    StructuredErrorLogger,
    AuditJSONFormatter,
    log_error_with_context,
    log_audit_event,
    get_error_correlation_id,
    configure_error_logging,
)

from .graceful_degradation import (
    Abstention,
    AbstentionTracker,
)

__all__ = [
    # Base exceptions
    "A11yAuditError",
    "StyleUnavailableError",
    "EngineFaultError",
    "DetachedRootError",
    "StyleSourceError",
    "TraversalUnavailableError",
    "FocusProbeError",
    "ConfigurationError",

    # Error classification
    "ErrorClassification",
    "ErrorContext",
    "classify_error",
    "get_recovery_strategy",
    "convert_to_engine_fault",
    "create_error_context",
    "RecoveryStrategy",

    # Structured logging
    "StructuredErrorLogger",
    "AuditJSONFormatter",
    "log_error_with_context",
    "log_audit_event",
    "get_error_correlation_id",
    "configure_error_logging",

    # Abstentions
    "Abstention",
    "AbstentionTracker",
]
