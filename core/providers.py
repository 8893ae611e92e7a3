"""
Data providers for payroll calculation.
Load work rules, hourly rates, bonuses and shifts from PostgreSQL and hand
them to the engine as plain values.

Expected tables:
- work_rules(id, weekly_standard_hours, overtime_first_rate, overtime_second_rate,
  overtime_first_hours_per_day, max_daily_hours)
- employees(id, full_name, base_hourly_rate)
- employee_work_rates(employee_id, work_type_id, hourly_rate)
- employee_bonuses(id, employee_id, bonus_type, amount_per_hour, amount_fixed,
  valid_from, valid_to, description)
- work_types(id, name)
- shifts(id, employee_id, work_type_id, start_time, end_time)

Money columns hold agorot.
"""
from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from core.config import config
from core.constants import BonusType
from core.wage_calculator import BonusInfo
from core.work_rules import WorkRulesConfig, DEFAULT_WORK_RULES
from utils.error_handler import safe_database_operation

logger = logging.getLogger(__name__)


@safe_database_operation("get_work_rules")
def get_work_rules(conn, rules_id: Optional[int] = None) -> WorkRulesConfig:
    """
    Load the work rules row. Fields the table does not store keep their
    statutory defaults; a missing row gives DEFAULT_WORK_RULES.
    """
    if rules_id is None:
        rules_id = config.WORK_RULES_ID

    row = conn.execute(
        """
        SELECT weekly_standard_hours, overtime_first_rate, overtime_second_rate,
               overtime_first_hours_per_day AS overtime_first_hours, max_daily_hours
        FROM work_rules
        WHERE id = %s
        """,
        (rules_id,)
    ).fetchone()

    if not row:
        logger.info(f"No work rules row {rules_id}, using default work rules")
        return DEFAULT_WORK_RULES

    return WorkRulesConfig.from_mapping(row)


@safe_database_operation("get_hourly_rate")
def get_hourly_rate(conn, employee_id: Any, work_type_id: Any = None) -> int:
    """
    Hourly rate in agorot: the employee's rate for the work type if one is
    set, otherwise the employee's base rate, otherwise 0.
    """
    if work_type_id is not None:
        row = conn.execute(
            """
            SELECT hourly_rate
            FROM employee_work_rates
            WHERE employee_id = %s AND work_type_id = %s
            """,
            (employee_id, work_type_id)
        ).fetchone()
        if row and row["hourly_rate"] is not None:
            return int(row["hourly_rate"])

    row = conn.execute(
        "SELECT base_hourly_rate FROM employees WHERE id = %s",
        (employee_id,)
    ).fetchone()

    if not row or row["base_hourly_rate"] is None:
        logger.warning(f"No hourly rate for employee {employee_id}, using 0")
        return 0
    return int(row["base_hourly_rate"])


def _row_to_bonus(row: Dict[str, Any]) -> BonusInfo:
    return BonusInfo(
        id=str(row["id"]),
        bonus_type=BonusType(row["bonus_type"]),
        amount_per_hour=row["amount_per_hour"],
        amount_fixed=row["amount_fixed"],
        valid_from=row["valid_from"],
        valid_to=row["valid_to"],
        description=row.get("description"),
    )


@safe_database_operation("get_employee_bonuses")
def get_employee_bonuses(conn, employee_id: Any) -> List[BonusInfo]:
    """All of the employee's bonuses, unfiltered (the engine filters by date)."""
    rows = conn.execute(
        """
        SELECT id, bonus_type, amount_per_hour, amount_fixed,
               valid_from, valid_to, description
        FROM employee_bonuses
        WHERE employee_id = %s
        """,
        (employee_id,)
    ).fetchall()
    return [_row_to_bonus(row) for row in rows]


_SHIFT_COLUMNS = """
    s.id, s.employee_id, s.work_type_id, s.start_time, s.end_time,
    e.full_name AS employee_name, wt.name AS work_type_name
"""


@safe_database_operation("get_shift")
def get_shift(conn, shift_id: Any) -> Optional[Dict[str, Any]]:
    """Load a shift with its employee name and work type name."""
    row = conn.execute(
        f"""
        SELECT {_SHIFT_COLUMNS}
        FROM shifts s
        JOIN employees e ON e.id = s.employee_id
        LEFT JOIN work_types wt ON wt.id = s.work_type_id
        WHERE s.id = %s
        """,
        (shift_id,)
    ).fetchone()
    return dict(row) if row else None


@safe_database_operation("get_employee_shifts")
def get_employee_shifts(
    conn,
    employee_id: Any,
    start: datetime,
    end: datetime,
    closed_only: bool = False
) -> List[Dict[str, Any]]:
    """
    Shifts of an employee ordered by start time.

    By default every shift starting in [start, end), open ones included.
    With closed_only, only shifts that started at or after start and ended
    at or before end.
    """
    if closed_only:
        window = "s.start_time >= %s AND s.end_time IS NOT NULL AND s.end_time <= %s"
    else:
        window = "s.start_time >= %s AND s.start_time < %s"

    rows = conn.execute(
        f"""
        SELECT {_SHIFT_COLUMNS}
        FROM shifts s
        JOIN employees e ON e.id = s.employee_id
        LEFT JOIN work_types wt ON wt.id = s.work_type_id
        WHERE s.employee_id = %s AND {window}
        ORDER BY s.start_time
        """,
        (employee_id, start, end)
    ).fetchall()
    return [dict(row) for row in rows]
