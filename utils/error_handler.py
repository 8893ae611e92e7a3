"""
Error handling module for the shift payroll engine.
Provides the exception hierarchy, logging setup, caller-side input
validation and a database operation wrapper.

The computation engine itself never raises for structurally valid input;
the checks here run before it is called.
"""

from __future__ import annotations
import logging
from datetime import datetime
from functools import wraps
from typing import Any, Optional

import psycopg2

from core.constants import BonusType
from core.time_utils import to_utc_datetime

logger = logging.getLogger(__name__)

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


def configure_logging(level: str = "INFO", log_file: Optional[str] = None) -> None:
    """Configure root logging: console always, UTF-8 file when log_file is set."""
    handlers: list[logging.Handler] = [logging.StreamHandler()]
    if log_file:
        handlers.append(logging.FileHandler(log_file, encoding='utf-8'))
    logging.basicConfig(level=level, format=LOG_FORMAT, handlers=handlers, force=True)


class PayrollError(Exception):
    """Base exception for all payroll errors"""
    def __init__(self, message: str, details: Optional[dict] = None, user_message: Optional[str] = None):
        self.message = message
        self.details = details or {}
        self.user_message = user_message or message
        super().__init__(self.message)


class DatabaseError(PayrollError):
    """Database-related errors"""
    pass


class CalculationError(PayrollError):
    """Calculation-related errors"""
    pass


class ValidationError(PayrollError):
    """Input validation errors"""
    pass


def log_error(error: Exception, context: Optional[dict] = None) -> str:
    """
    Log an error with full context and return error ID.

    Args:
        error: The exception that occurred
        context: Additional context (employee, shift, operation)

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
        logger.error(f"Application error {error_id}: {error_details}")
    else:
        logger.error(f"Unexpected error {error_id}: {error_details}", exc_info=True)

    return error_id


def safe_database_operation(operation_name: str):
    """
    Decorator for safe database operations with automatic rollback.
    The connection is the first positional argument or the 'conn' keyword.

    Usage:
        @safe_database_operation("get_work_rules")
        def get_work_rules(conn, rules_id):
            ...
    """
    def decorator(func):
        @wraps(func)
        def wrapper(*args, **kwargs):
            conn = kwargs.get('conn') or (args[0] if args else None)
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


# =============================================================================
# Caller-side validation
# =============================================================================

def validate_shift_input(start_time: Any, end_time: Any, hourly_rate: Any) -> None:
    """
    Reject inputs the payroll engine has no meaning for.

    Raises:
        ValidationError: open shift (no end time), missing start, or a
            negative / non-integer hourly rate
    """
    if start_time is None:
        raise ValidationError(
            "Shift has no start time",
            user_message="למשמרת אין שעת התחלה"
        )
    if end_time is None:
        raise ValidationError(
            "Cannot calculate pay for an open shift",
            details={'start_time': str(start_time)},
            user_message="לא ניתן לחשב שכר למשמרת פתוחה"
        )
    if not isinstance(hourly_rate, int) or isinstance(hourly_rate, bool):
        raise ValidationError(
            "Hourly rate must be an integer amount in agorot",
            details={'got': type(hourly_rate).__name__},
            user_message="תעריף שעתי לא תקין"
        )
    if hourly_rate < 0:
        raise ValidationError(
            "Hourly rate cannot be negative",
            details={'hourly_rate': hourly_rate},
            user_message="תעריף שעתי לא יכול להיות שלילי"
        )


def validate_bonus(bonus) -> None:
    """
    Validate a bonus entitlement before it is stored.

    Raises:
        ValidationError: HOURLY without a positive hourly amount, ONE_TIME
            without a positive fixed amount, or a validity window ending
            before it starts
    """
    if bonus.bonus_type == BonusType.HOURLY and not (bonus.amount_per_hour and bonus.amount_per_hour > 0):
        raise ValidationError(
            "Hourly bonus requires a positive amount per hour",
            details={'bonus_id': bonus.id},
            user_message="יש להזין סכום לשעה"
        )
    if bonus.bonus_type == BonusType.ONE_TIME and not (bonus.amount_fixed and bonus.amount_fixed > 0):
        raise ValidationError(
            "One-time bonus requires a positive fixed amount",
            details={'bonus_id': bonus.id},
            user_message="יש להזין סכום קבוע"
        )
    if (
        bonus.valid_from is not None
        and bonus.valid_to is not None
        and to_utc_datetime(bonus.valid_to) < to_utc_datetime(bonus.valid_from)
    ):
        raise ValidationError(
            "Bonus validity ends before it starts",
            details={'bonus_id': bonus.id},
            user_message="תאריך סיום חייב להיות אחרי תאריך התחלה"
        )
