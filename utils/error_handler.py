"""
Error handling module for the payroll engine.
Provides the exception hierarchy, error logging and logging setup.
"""

from __future__ import annotations
import logging
from datetime import datetime
from functools import wraps
from typing import Optional

import psycopg2

logger = logging.getLogger(__name__)

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


def configure_logging(level: str | int = logging.INFO, log_file: Optional[str] = None) -> None:
    """
    Configure root logging for scripts and services that embed the engine.

    Args:
        level: Logging level name or number
        log_file: Optional path for a UTF-8 log file in addition to stderr
    """
    if isinstance(level, str):
        level = getattr(logging, level.upper(), logging.INFO)

    handlers: list[logging.Handler] = [logging.StreamHandler()]
    if log_file:
        handlers.append(logging.FileHandler(log_file, encoding='utf-8'))

    logging.basicConfig(level=level, format=LOG_FORMAT, handlers=handlers)


class PayrollError(Exception):
    """Base exception for all payroll engine errors"""
    def __init__(self, message: str, details: Optional[dict] = None, user_message: Optional[str] = None):
        self.message = message
        self.details = details or {}
        self.user_message = user_message or message
        super().__init__(self.message)


class ConfigurationError(PayrollError):
    """Missing or unusable organisation configuration (fatal for a calculation)"""
    pass


class CalculationError(PayrollError):
    """A single record could not be calculated"""
    def __init__(self, message: str, reason=None, details: Optional[dict] = None,
                 user_message: Optional[str] = None):
        super().__init__(message, details=details, user_message=user_message)
        self.reason = reason


class IncompleteShiftError(CalculationError):
    """Shift is still open (no end time)"""
    pass


class ValidationError(PayrollError):
    """Input validation errors"""
    pass


class DatabaseError(PayrollError):
    """Database-related errors"""
    pass


def log_error(error: Exception, context: Optional[dict] = None) -> str:
    """
    Log an error with full context and return error ID.

    Args:
        error: The exception that occurred
        context: Additional context (employee, period, shift)

    Returns:
        Error ID for tracking
    """
    error_id = f"{datetime.now().timestamp():.0f}"

    error_details = {
        'error_id': error_id,
        'error_type': type(error).__name__,
        'error_message': str(error),
        'timestamp': datetime.now().isoformat(),
        'context': context or {}
    }

    if isinstance(error, PayrollError):
        error_details['details'] = error.details
        logger.error(f"Application error {error_id}: {error_details}")
    else:
        logger.error(f"Unexpected error {error_id}: {error_details}", exc_info=True)

    return error_id


def safe_database_operation(operation_name: str):
    """
    Decorator for database reads with automatic rollback.

    Usage:
        @safe_database_operation("load_work_rule")
        def load_work_rule(conn, organization_id):
            ...
    """
    def decorator(func):
        @wraps(func)
        def wrapper(*args, **kwargs):
            conn = kwargs.get('conn')
            if conn is None and args:
                conn = args[0]

            try:
                return func(*args, **kwargs)
            except psycopg2.Error as e:
                if conn is not None and hasattr(conn, 'rollback'):
                    try:
                        conn.rollback()
                        logger.info(f"Rolled back transaction for {operation_name}")
                    except psycopg2.Error as rollback_error:
                        logger.error(f"Rollback failed for {operation_name}: {rollback_error}")

                raise DatabaseError(
                    f"Database operation failed: {operation_name}",
                    details={'original_error': str(e)},
                    user_message="אירעה שגיאה בגישה לבסיס הנתונים. נסה שנית."
                ) from e

        return wrapper
    return decorator
