import json
import logging
import time
import uuid
from typing import Dict, Any, Optional

from .base import A11yAuditError, ErrorContext
from .classification import classify_error, get_recovery_strategy


AUDIT_LOGGER_NAME = "a11y_audit"
ERROR_LOGGER_NAME = "a11y_audit.errors"
ABSTENTION_LOGGER_NAME = "a11y_audit.abstentions"

# Record attributes copied into JSON lines when a caller passes them as ``extra``
AUDIT_FIELDS = ("correlation_id", "audit_id", "context", "selector", "check")

TEXT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


class StructuredErrorLogger:
    # Engine faults and lifecycle events as JSON entries keyed by correlation id
    # Handlers live on the package logger set up by configure_error_logging

    def __init__(self, logger_name: str = ERROR_LOGGER_NAME):
        self.logger = logging.getLogger(logger_name)

    def log_error(
        self,
        exception: Exception,
        context: Optional[ErrorContext] = None,
        level: str = "error",
        additional_fields: Optional[Dict[str, Any]] = None
    ) -> str:
        # Log an engine fault and return its correlation id
        correlation_id = get_error_correlation_id()

        if context is None:
            from .classification import create_error_context
            context = create_error_context(correlation_id=correlation_id)

        if not context.correlation_id or context.correlation_id == "unknown":
            context.correlation_id = correlation_id

        if not isinstance(exception, A11yAuditError):
            from .classification import convert_to_engine_fault
            fault = convert_to_engine_fault(exception, context)
        else:
            fault = exception

        selector = getattr(fault, "selector", None) or context.selector
        log_entry = {
            "timestamp": time.time(),
            "level": level.upper(),
            "correlation_id": context.correlation_id,
            "fault": {
                "type": type(fault).__name__,
                "raised": type(exception).__name__,
                "message": str(exception),
                "selector": selector,
                "classification": classify_error(fault).value,
                "is_fatal": fault.is_fatal(),
                "recovery_strategy": get_recovery_strategy(fault).value,
                "recovery_suggestions": fault.recovery_suggestions,
                "actionable_message": fault.get_actionable_message(),
            },
            "context": context.to_dict(),
        }

        if additional_fields:
            log_entry.update(additional_fields)

        if exception.__cause__:
            log_entry["fault"]["cause"] = {
                "type": type(exception.__cause__).__name__,
                "message": str(exception.__cause__)
            }

        log_method = getattr(self.logger, level.lower(), self.logger.error)
        log_method(
            json.dumps(log_entry, default=str),
            extra={"correlation_id": context.correlation_id, "selector": selector},
        )

        return context.correlation_id

    def log_audit_event(
        self,
        correlation_id: str,
        event_type: str,
        details: Optional[Dict[str, Any]] = None,
        level: str = "info"
    ):
        # Log a non-error audit lifecycle event (run completed, abstention counts)
        details = details or {}
        log_entry = {
            "timestamp": time.time(),
            "level": level.upper(),
            "correlation_id": correlation_id,
            "event_type": event_type,
            "details": details
        }

        log_method = getattr(self.logger, level.lower(), self.logger.info)
        log_method(
            json.dumps(log_entry, default=str),
            extra={"correlation_id": correlation_id, "audit_id": details.get("audit_id")},
        )


class AuditJSONFormatter(logging.Formatter):
    # One JSON object per line; entries already serialized by the error logger pass through

    def format(self, record: logging.LogRecord) -> str:
        try:
            message = json.loads(record.getMessage())
            if isinstance(message, dict):
                return json.dumps(message, default=str)
        except (json.JSONDecodeError, TypeError):
            pass

        log_entry = {
            "timestamp": record.created,
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for name in AUDIT_FIELDS:
            value = getattr(record, name, None)
            if value is not None:
                log_entry[name] = value

        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_entry, default=str)


_structured_logger = StructuredErrorLogger()


def log_error_with_context(
    exception: Exception,
    context: Optional[ErrorContext] = None,
    level: str = "error",
    **additional_fields
) -> str:
    return _structured_logger.log_error(
        exception=exception,
        context=context,
        level=level,
        additional_fields=additional_fields
    )


def log_audit_event(
    correlation_id: str,
    event_type: str,
    level: str = "info",
    **details
):
    _structured_logger.log_audit_event(
        correlation_id=correlation_id,
        event_type=event_type,
        details=details,
        level=level
    )


def get_error_correlation_id() -> str:
    # Generate unique correlation ID for error tracking
    return str(uuid.uuid4())[:8]


def configure_error_logging(level: str = "INFO", format_type: str = "json") -> logging.Logger:
    # Single console handler on the package logger; analyzer, abstention and fault loggers propagate to it
    logger = logging.getLogger(AUDIT_LOGGER_NAME)
    logger.setLevel(getattr(logging, level.upper()))
    logger.handlers.clear()

    handler = logging.StreamHandler()
    if format_type.lower() == "json":
        handler.setFormatter(AuditJSONFormatter())
    else:
        handler.setFormatter(logging.Formatter(TEXT_FORMAT))
    logger.addHandler(handler)
    return logger
