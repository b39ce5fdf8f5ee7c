"""
Logging configuration for SafeStake.

Provides structured JSON logging for the compliance audit trail.
Identities are always logged as IdentityKey hex, never as raw account identifiers.
"""

import json
import logging
import sys
import time
import uuid
from contextvars import ContextVar
from typing import Optional

# Context variable for request ID tracking
request_id_var: ContextVar[str] = ContextVar('request_id', default='')


class StructuredFormatter(logging.Formatter):
    """
    JSON formatter for structured logging.

    Outputs one JSON object per line, suitable for log aggregation.
    """

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": time.strftime('%Y-%m-%dT%H:%M:%SZ', time.gmtime(record.created)),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        request_id = request_id_var.get()
        if request_id:
            log_data["request_id"] = request_id

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        if hasattr(record, 'extra_fields'):
            log_data.update(record.extra_fields)

        return json.dumps(log_data, default=str)


class AuditLogger:
    """
    Specialized logger for compliance audit events.

    One event per registration, limit change, self-exclusion, recorded or
    rejected transaction and eligibility decision.
    """

    def __init__(self, name: str = "safestake.audit"):
        self._logger = logging.getLogger(name)

    def _log(self, level: int, event_type: str, **kwargs) -> None:
        """Internal logging method with extra fields."""
        if not self._logger.isEnabledFor(level):
            return

        extra = {
            "event_type": event_type,
            "request_id": request_id_var.get(),
            **kwargs
        }

        record = self._logger.makeRecord(
            self._logger.name,
            level,
            "",
            0,
            f"{event_type}: {kwargs.get('message', '')}",
            (),
            None
        )
        record.extra_fields = extra
        self._logger.handle(record)

    def registration(
        self,
        identity: str,
        outcome: str,
        error: Optional[str] = None
    ) -> None:
        """Log a registration attempt."""
        level = logging.INFO if outcome == "SUCCESS" else logging.WARNING
        self._log(
            level,
            "REGISTRATION",
            identity=identity,
            outcome=outcome,
            error=error,
            message=f"Registration {outcome.lower()}"
        )

    def limits_set(
        self,
        identity: str,
        daily_limit: int,
        monthly_limit: int,
        created: bool
    ) -> None:
        """Log a limit change."""
        self._log(
            logging.INFO,
            "LIMITS_SET",
            identity=identity,
            daily_limit=daily_limit,
            monthly_limit=monthly_limit,
            created=created,
            message=f"Limits set to {daily_limit}/{monthly_limit}"
        )

    def self_exclusion(
        self,
        identity: str,
        duration_days: int,
        cooldown_until: int,
        has_record: bool
    ) -> None:
        """Log a self-exclusion."""
        self._log(
            logging.INFO,
            "SELF_EXCLUSION",
            identity=identity,
            duration_days=duration_days,
            cooldown_until=cooldown_until,
            has_record=has_record,
            message=f"Self-excluded for {duration_days} days"
        )

    def transaction_recorded(
        self,
        identity: str,
        amount: int,
        platform_id: str,
        daily_spent: int,
        monthly_spent: int
    ) -> None:
        """Log a committed spend."""
        self._log(
            logging.INFO,
            "TRANSACTION_RECORDED",
            identity=identity,
            amount=amount,
            platform_id=platform_id,
            daily_spent=daily_spent,
            monthly_spent=monthly_spent,
            message=f"Recorded {amount} on {platform_id}"
        )

    def transaction_rejected(
        self,
        identity: str,
        amount: int,
        platform_id: str,
        reason: str
    ) -> None:
        """Log a rejected spend."""
        self._log(
            logging.WARNING,
            "TRANSACTION_REJECTED",
            identity=identity,
            amount=amount,
            platform_id=platform_id,
            reason=reason,
            message=f"Transaction rejected: {reason}"
        )

    def eligibility_check(
        self,
        identity: str,
        proposed_amount: int,
        status: str
    ) -> None:
        """Log an eligibility decision."""
        self._log(
            logging.DEBUG,
            "ELIGIBILITY_CHECK",
            identity=identity,
            proposed_amount=proposed_amount,
            status=status,
            message=f"Eligibility: {status}"
        )

    def security_event(
        self,
        event: str,
        severity: str = "medium",
        **details
    ) -> None:
        """Log a security-relevant event."""
        level = {
            "low": logging.INFO,
            "medium": logging.WARNING,
            "high": logging.ERROR,
            "critical": logging.CRITICAL
        }.get(severity, logging.WARNING)

        self._log(
            level,
            "SECURITY_EVENT",
            security_event=event,
            severity=severity,
            **details,
            message=f"Security event: {event}"
        )


def configure_logging(level: str = "INFO", json_format: bool = True) -> None:
    """
    Configure logging for the application.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        json_format: Use JSON formatting (recommended for production)
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, level.upper()))

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    if json_format:
        formatter = StructuredFormatter()
    else:
        formatter = logging.Formatter(
            '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
        )

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)


def set_request_id(request_id: Optional[str] = None) -> str:
    """
    Set the request ID for the current context.

    Returns:
        The request ID that was set
    """
    if request_id is None:
        request_id = str(uuid.uuid4())
    request_id_var.set(request_id)
    return request_id


# Global audit logger instance
audit_log = AuditLogger()
