"""
Logging configuration for the TACo client.

Provides structured JSON logging and an audit logger for the
condition-context lifecycle (parameter discovery, provider binding,
resolution, submission).
"""

import json
import logging
import sys
import time
import uuid
from contextvars import ContextVar
from typing import Iterable, List, Optional

from . import config

# Context variable for correlating one decryption attempt
attempt_id_var: ContextVar[str] = ContextVar('attempt_id', default='')


class StructuredFormatter(logging.Formatter):
    """
    JSON formatter for structured logging.
    
    One JSON object per line, suitable for log aggregation.
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
        
        attempt_id = attempt_id_var.get()
        if attempt_id:
            log_data["attempt_id"] = attempt_id
        
        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)
        
        if hasattr(record, 'extra_fields'):
            log_data.update(record.extra_fields)
        
        return json.dumps(log_data, default=str)


class AuditLogger:
    """
    Specialized logger for condition and context events.
    
    Parameter values are never logged, only parameter names.
    """
    
    def __init__(self, name: str = "taco.audit"):
        self._logger = logging.getLogger(name)
    
    def _log(self, level: int, event_type: str, **kwargs) -> None:
        if not self._logger.isEnabledFor(level):
            return
        extra = {
            "event_type": event_type,
            "attempt_id": attempt_id_var.get(),
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
    
    def condition_rejected(self, condition_type: Optional[str], issues: int) -> None:
        self._log(
            logging.WARNING,
            "CONDITION_REJECTED",
            condition_type=condition_type,
            issues=issues,
            message=f"Condition of type {condition_type} rejected with {issues} issue(s)"
        )
    
    def context_parameters_requested(self, parameters: Iterable[str]) -> None:
        names = sorted(parameters)
        self._log(
            logging.INFO,
            "CONTEXT_PARAMETERS_REQUESTED",
            parameters=names,
            message=f"{len(names)} context parameter(s) requested"
        )
    
    def auth_provider_bound(self, parameter: str, provider: str) -> None:
        self._log(
            logging.INFO,
            "AUTH_PROVIDER_BOUND",
            parameter=parameter,
            provider=provider,
            message=f"{provider} bound to {parameter}"
        )
    
    def context_resolved(self, parameters: Iterable[str], providers: int) -> None:
        names = sorted(parameters)
        self._log(
            logging.INFO,
            "CONTEXT_RESOLVED",
            parameters=names,
            providers=providers,
            message=f"Resolved {len(names)} context parameter(s)"
        )
    
    def context_unresolved(self, missing: Iterable[str]) -> None:
        names = sorted(missing)
        self._log(
            logging.WARNING,
            "CONTEXT_UNRESOLVED",
            missing=names,
            message=f"Unresolved context parameters: {', '.join(names)}"
        )
    
    def decryption_submitted(self, condition_hash: str, endpoint: str) -> None:
        self._log(
            logging.INFO,
            "DECRYPTION_SUBMITTED",
            condition_hash=condition_hash,
            endpoint=endpoint,
            message=f"Decryption request submitted to {endpoint}"
        )


def configure_logging(
    level: Optional[str] = None,
    json_format: Optional[bool] = None,
    log_file: Optional[str] = None,
    logger_name: str = "taco",
) -> logging.Logger:
    """
    Attach handlers to the package logger.
    
    Only the ``taco`` logger tree is configured; an application embedding
    this package keeps control of the root logger.
    
    Args:
        level: Log level, defaults to DEBUG when TACO_DEBUG is set,
            otherwise TACO_LOG_LEVEL
        json_format: JSON lines output, defaults to TACO_LOG_JSON
        log_file: Optional file path for log output
        logger_name: Logger to configure
    """
    if not level:
        level = "DEBUG" if config.is_debug() else config.LOG_LEVEL
    json_format = config.LOG_JSON if json_format is None else json_format
    
    logger = logging.getLogger(logger_name)
    logger.setLevel(getattr(logging, level.upper()))
    for handler in logger.handlers[:]:
        logger.removeHandler(handler)
    
    if json_format:
        formatter = StructuredFormatter()
    else:
        formatter = logging.Formatter(
            "%(asctime)s %(levelname)s [%(name)s] %(message)s"
        )
    
    handlers: List[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    if log_file:
        handlers.append(logging.FileHandler(log_file))
    for handler in handlers:
        handler.setFormatter(formatter)
        logger.addHandler(handler)
    
    logger.propagate = False
    return logger


def set_attempt_id(attempt_id: Optional[str] = None) -> str:
    """
    Set the decryption attempt ID for the current context.
    
    Returns:
        The attempt ID that was set
    """
    if attempt_id is None:
        attempt_id = str(uuid.uuid4())
    attempt_id_var.set(attempt_id)
    return attempt_id


def get_attempt_id() -> str:
    return attempt_id_var.get()


# Global audit logger instance
audit_log = AuditLogger()
