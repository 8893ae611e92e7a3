"""
Unit tests for the database providers, the logic layer and error handling.
The database connection is mocked.
"""

import unittest
from datetime import date, datetime, timedelta
from decimal import Decimal
from unittest.mock import Mock, MagicMock, patch
import sys
import os

# Add parent directory to path for imports
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

import psycopg2
import psycopg2.extras

from core.constants import BonusType
from core.database import PostgresConnection, get_conn
from core.logic import calculate_period_pay, calculate_shift_pay_details, calculate_weekly_pay
from core.providers import (
    get_employee_bonuses,
    get_employee_shifts,
    get_hourly_rate,
    get_shift,
    get_work_rules,
)
from core.time_utils import LOCAL_TZ
from core.wage_calculator import BonusInfo
from core.work_rules import DEFAULT_WORK_RULES
from utils.error_handler import (
    DatabaseError,
    PayrollError,
    ValidationError,
    log_error,
    validate_bonus,
    validate_shift_input,
)


def make_conn(fetchone=None, fetchall=None):
    """Mock connection whose execute() returns a cursor with the given results."""
    conn = Mock()
    cursor = Mock()
    if isinstance(fetchone, list):
        cursor.fetchone.side_effect = fetchone
    else:
        cursor.fetchone.return_value = fetchone
    cursor.fetchall.return_value = fetchall or []
    conn.execute.return_value = cursor
    return conn


class TestWorkRulesProvider(unittest.TestCase):
    """Test loading work rules."""

    def test_missing_row_gives_defaults(self):
        conn = make_conn(fetchone=None)
        self.assertIs(get_work_rules(conn, 1), DEFAULT_WORK_RULES)

    def test_numeric_columns(self):
        conn = make_conn(fetchone={
            "weekly_standard_hours": Decimal("40.00"),
            "overtime_first_rate": Decimal("1.25"),
            "overtime_second_rate": Decimal("1.50"),
            "overtime_first_hours": Decimal("2"),
            "max_daily_hours": None,
        })
        rules = get_work_rules(conn, 1)
        self.assertEqual(rules.weekly_standard_hours, 40.0)
        self.assertEqual(rules.overtime_second_rate, 1.5)
        self.assertEqual(rules.max_daily_hours, DEFAULT_WORK_RULES.max_daily_hours)
        # Fields the table does not store keep their defaults
        self.assertEqual(rules.daily_standard_hours_5_days, 8.6)

    def test_database_error_rolls_back(self):
        conn = Mock()
        conn.execute.side_effect = psycopg2.OperationalError("connection lost")
        with self.assertRaises(DatabaseError) as ctx:
            get_work_rules(conn, 1)
        conn.rollback.assert_called_once()
        self.assertIsInstance(ctx.exception.__cause__, psycopg2.OperationalError)
        self.assertIn("connection lost", ctx.exception.details["original_error"])


class TestHourlyRateProvider(unittest.TestCase):
    """Test hourly rate resolution."""

    def test_work_type_rate(self):
        conn = make_conn(fetchone={"hourly_rate": 6000})
        self.assertEqual(get_hourly_rate(conn, 1, 3), 6000)
        self.assertEqual(conn.execute.call_count, 1)

    def test_falls_back_to_base_rate(self):
        conn = make_conn(fetchone=[None, {"base_hourly_rate": Decimal("5000")}])
        rate = get_hourly_rate(conn, 1, 3)
        self.assertEqual(rate, 5000)
        self.assertIsInstance(rate, int)

    def test_base_rate_without_work_type(self):
        conn = make_conn(fetchone={"base_hourly_rate": 4500})
        self.assertEqual(get_hourly_rate(conn, 1), 4500)
        self.assertEqual(conn.execute.call_count, 1)

    def test_no_rate(self):
        conn = make_conn(fetchone=[None, None])
        with self.assertLogs('core.providers', level='WARNING'):
            self.assertEqual(get_hourly_rate(conn, 1, 3), 0)


class TestBonusAndShiftProviders(unittest.TestCase):
    """Test bonus and shift loading."""

    def test_bonus_rows(self):
        valid_from = datetime(2025, 1, 1, tzinfo=LOCAL_TZ)
        conn = make_conn(fetchall=[
            {"id": 11, "bonus_type": "HOURLY", "amount_per_hour": 500, "amount_fixed": None,
             "valid_from": valid_from, "valid_to": None, "description": "night"},
            {"id": 12, "bonus_type": "ONE_TIME", "amount_per_hour": None, "amount_fixed": 10000,
             "valid_from": valid_from, "valid_to": valid_from + timedelta(days=30),
             "description": None},
        ])
        bonuses = get_employee_bonuses(conn, 1)
        self.assertEqual(len(bonuses), 2)
        self.assertEqual(bonuses[0].id, "11")
        self.assertEqual(bonuses[0].bonus_type, BonusType.HOURLY)
        self.assertIsNone(bonuses[0].valid_to)
        self.assertEqual(bonuses[1].bonus_type, BonusType.ONE_TIME)
        self.assertEqual(bonuses[1].amount_fixed, 10000)

    def test_missing_shift(self):
        self.assertIsNone(get_shift(make_conn(fetchone=None), 99))

    def test_employee_shifts_query_params(self):
        start = datetime(2025, 3, 2, tzinfo=LOCAL_TZ)
        end = start + timedelta(days=7)
        conn = make_conn(fetchall=[{"id": 1}, {"id": 2}])
        self.assertEqual(get_employee_shifts(conn, 5, start, end), [{"id": 1}, {"id": 2}])
        args = conn.execute.call_args[0]
        self.assertEqual(args[1], (5, start, end))
        self.assertIn("s.start_time < %s", args[0])

    def test_closed_shifts_within_period(self):
        start = datetime(2025, 3, 1, tzinfo=LOCAL_TZ)
        end = datetime(2025, 4, 1, tzinfo=LOCAL_TZ)
        conn = make_conn(fetchall=[])
        get_employee_shifts(conn, 5, start, end, closed_only=True)
        query, params = conn.execute.call_args[0]
        self.assertEqual(params, (5, start, end))
        self.assertIn("s.end_time IS NOT NULL AND s.end_time <= %s", query)
        self.assertNotIn("s.start_time < %s", query)


def stored_shift(shift_id, day, start_hour, minutes, end=True):
    start_time = datetime(day.year, day.month, day.day, start_hour, 0, tzinfo=LOCAL_TZ)
    return {
        "id": shift_id,
        "employee_id": 1,
        "work_type_id": 3,
        "start_time": start_time,
        "end_time": start_time + timedelta(minutes=minutes) if end else None,
        "employee_name": "ישראל ישראלי",
        "work_type_name": "מדריך",
    }


class TestShiftPayDetails(unittest.TestCase):
    """Test calculate_shift_pay_details with mocked providers."""

    def setUp(self):
        self.conn = MagicMock()

    @patch('core.logic.get_work_rules', return_value=DEFAULT_WORK_RULES)
    @patch('core.logic.get_employee_bonuses', return_value=[])
    @patch('core.logic.get_hourly_rate', return_value=5000)
    @patch('core.logic.get_shift')
    def test_regular_day_with_overtime(self, mock_shift, mock_rate, mock_bonuses, mock_rules):
        # Sunday 08:00-18:36: 8:36 regular + 2:00 at 125%
        mock_shift.return_value = stored_shift(7, date(2025, 3, 2), 8, 636)

        details = calculate_shift_pay_details(self.conn, 7)

        mock_rate.assert_called_once_with(self.conn, 1, 3)
        self.assertEqual(details["shift_id"], 7)
        self.assertEqual(details["shift_type"], "REGULAR")
        self.assertEqual(details["start_time"], "02/03/2025 08:00")
        self.assertEqual(details["end_time"], "02/03/2025 18:36")
        self.assertEqual(details["total_time"], "10:36")
        self.assertEqual(details["regular_time"], "8:36")
        self.assertEqual(details["overtime_125_time"], "2:00")
        self.assertEqual(details["regular_pay"], "₪430.00")
        self.assertEqual(details["overtime_125_pay"], "₪125.00")
        self.assertEqual(details["raw_total_pay"], 55500)
        self.assertEqual(details["raw_bonus_pay"], 0)

    @patch('core.logic.get_work_rules', return_value=DEFAULT_WORK_RULES)
    @patch('core.logic.get_employee_bonuses')
    @patch('core.logic.get_hourly_rate', return_value=5000)
    @patch('core.logic.get_shift')
    def test_bonuses_are_included(self, mock_shift, mock_rate, mock_bonuses, mock_rules):
        shift = stored_shift(8, date(2025, 3, 2), 8, 480)
        mock_shift.return_value = shift
        mock_bonuses.return_value = [BonusInfo(
            id="b1",
            bonus_type=BonusType.HOURLY,
            amount_per_hour=500,
            valid_from=shift["start_time"] - timedelta(days=1),
            valid_to=shift["start_time"] + timedelta(days=1),
        )]

        details = calculate_shift_pay_details(self.conn, 8)

        self.assertEqual(details["raw_base_pay"], 40000)
        self.assertEqual(details["raw_bonus_pay"], 4000)
        self.assertEqual(details["total_pay"], "₪440.00")

    @patch('core.logic.get_shift', return_value=None)
    def test_missing_shift_returns_none(self, mock_shift):
        self.assertIsNone(calculate_shift_pay_details(self.conn, 99))

    @patch('core.logic.get_hourly_rate', return_value=5000)
    @patch('core.logic.get_shift')
    def test_open_shift_is_rejected(self, mock_shift, mock_rate):
        mock_shift.return_value = stored_shift(9, date(2025, 3, 2), 8, 0, end=False)
        with self.assertRaises(ValidationError):
            calculate_shift_pay_details(self.conn, 9)

    @patch('core.logic.get_work_rules', return_value=DEFAULT_WORK_RULES)
    @patch('core.logic.get_employee_bonuses', return_value=[])
    @patch('core.logic.get_hourly_rate', return_value=5000)
    @patch('core.logic.get_shift')
    def test_holiday_from_calendar(self, mock_shift, mock_rate, mock_bonuses, mock_rules):
        # Shavuot 2025, a Monday
        mock_shift.return_value = stored_shift(10, date(2025, 6, 2), 8, 480)
        details = calculate_shift_pay_details(self.conn, 10)
        self.assertEqual(details["shift_type"], "HOLIDAY")
        self.assertEqual(details["regular_time"], "0:00")
        self.assertEqual(details["shabbat_time"], "8:00")


class TestWeeklyPay(unittest.TestCase):
    """Test calculate_weekly_pay with mocked providers."""

    @patch('core.logic.get_work_rules', return_value=DEFAULT_WORK_RULES)
    @patch('core.logic.get_employee_bonuses', return_value=[])
    @patch('core.logic.get_hourly_rate', return_value=5000)
    @patch('core.logic.get_employee_shifts')
    def test_week_with_weekly_overtime(self, mock_shifts, mock_rate, mock_bonuses, mock_rules):
        sunday = date(2025, 3, 2)
        shifts = [stored_shift(i, sunday + timedelta(days=i), 8, 516) for i in range(5)]
        shifts.append(stored_shift(99, sunday + timedelta(days=5), 8, 0, end=False))
        mock_shifts.return_value = shifts
        conn = MagicMock()

        result = calculate_weekly_pay(conn, 1, date(2025, 3, 5))

        self.assertEqual(result["week_start"], sunday)
        self.assertEqual(result["week_end"], date(2025, 3, 8))
        self.assertEqual(result["skipped_open_shifts"], 1)
        self.assertEqual(len(result["shifts"]), 5)

        # The week is queried from Sunday midnight to the next Sunday
        _, employee_id, start, end = mock_shifts.call_args[0]
        self.assertEqual(employee_id, 1)
        self.assertEqual(start, datetime(2025, 3, 2, tzinfo=LOCAL_TZ))
        self.assertEqual(end - start, timedelta(days=7))

        # 5 x 8:36 = 43 regular hours, one hour above the weekly quota
        weekly = result["weekly"]
        self.assertEqual(weekly.total_daily_pay, 5 * 43000)
        self.assertEqual(weekly.total_regular_minutes, 2580)
        self.assertEqual(weekly.weekly_overtime_125_minutes, 60)
        self.assertEqual(weekly.weekly_overtime_150_minutes, 0)
        self.assertEqual(weekly.weekly_overtime_pay, 1250)
        self.assertEqual(weekly.total_weekly_pay, 216250)

        self.assertEqual(result["summary"].total_shifts, 5)
        self.assertEqual(result["summary"].total_pay, 215000)

        # Base rate once, work-type rate once (cached for the rest of the week)
        self.assertEqual(mock_rate.call_count, 2)

    @patch('core.logic.get_work_rules', return_value=DEFAULT_WORK_RULES)
    @patch('core.logic.get_employee_bonuses', return_value=[])
    @patch('core.logic.get_hourly_rate', return_value=5000)
    @patch('core.logic.get_employee_shifts', return_value=[])
    def test_empty_week(self, mock_shifts, mock_rate, mock_bonuses, mock_rules):
        result = calculate_weekly_pay(MagicMock(), 1, date(2025, 3, 2))
        self.assertEqual(result["weekly"].total_weekly_pay, 0)
        self.assertEqual(result["summary"].total_shifts, 0)
        self.assertEqual(result["shifts"], [])


class TestPeriodPay(unittest.TestCase):
    """Test calculate_period_pay with mocked providers."""

    def setUp(self):
        self.start = datetime(2025, 3, 1, tzinfo=LOCAL_TZ)
        self.end = datetime(2025, 4, 1, tzinfo=LOCAL_TZ)

    @patch('core.logic.get_work_rules', return_value=DEFAULT_WORK_RULES)
    @patch('core.logic.get_employee_bonuses', return_value=[])
    @patch('core.logic.get_hourly_rate')
    @patch('core.logic.get_employee_shifts')
    def test_month_at_work_type_rates(self, mock_shifts, mock_rate, mock_bonuses, mock_rules):
        first = stored_shift(1, date(2025, 3, 2), 8, 636)   # 8:36 + 2:00 at 125%
        second = stored_shift(2, date(2025, 3, 3), 8, 480)
        second["work_type_id"] = 4
        third = stored_shift(3, date(2025, 3, 4), 8, 516)
        mock_shifts.return_value = [first, second, third]
        mock_rate.side_effect = lambda conn, employee_id, work_type_id=None: {3: 5000, 4: 6000}[work_type_id]
        conn = MagicMock()

        result = calculate_period_pay(conn, 1, self.start, self.end)

        mock_shifts.assert_called_once_with(conn, 1, self.start, self.end, closed_only=True)
        # One lookup per work type
        self.assertEqual(mock_rate.call_count, 2)

        self.assertEqual(len(result["shifts"]), 3)
        self.assertEqual(result["shifts"][1]["hourly_rate"], "₪60.00")

        totals = result["totals"]
        self.assertEqual(totals.total_shifts, 3)
        self.assertEqual(totals.total_minutes, 636 + 480 + 516)
        self.assertEqual(totals.overtime_125_minutes, 120)
        self.assertEqual(totals.total_pay, 55500 + 48000 + 43000)

        summary = result["summary"]
        self.assertEqual(summary["total_shifts"], 3)
        self.assertEqual(summary["total_time"], "27:12")
        self.assertEqual(summary["regular_time"], "25:12")
        self.assertEqual(summary["overtime_125_time"], "2:00")
        self.assertEqual(summary["overtime_150_time"], "0:00")
        self.assertEqual(summary["bonus_pay"], "₪0.00")
        self.assertEqual(summary["total_pay"], "₪1465.00")

    @patch('core.logic.get_work_rules', return_value=DEFAULT_WORK_RULES)
    @patch('core.logic.get_employee_bonuses', return_value=[])
    @patch('core.logic.get_hourly_rate', return_value=5000)
    @patch('core.logic.get_employee_shifts', return_value=[])
    def test_empty_period(self, mock_shifts, mock_rate, mock_bonuses, mock_rules):
        result = calculate_period_pay(MagicMock(), 1, self.start, self.end)
        self.assertEqual(result["shifts"], [])
        self.assertEqual(result["summary"]["total_time"], "0:00")
        self.assertEqual(result["summary"]["total_pay"], "₪0.00")


class TestPostgresConnection(unittest.TestCase):
    """Test the pooled connection wrapper."""

    def setUp(self):
        self.raw = MagicMock()
        self.raw.closed = 0

    def test_execute_uses_dict_cursor(self):
        conn = PostgresConnection(self.raw, use_pool=False)
        cursor = conn.execute("SELECT 1 WHERE id = %s", (5,))
        self.raw.cursor.assert_called_once_with(cursor_factory=psycopg2.extras.RealDictCursor)
        cursor.execute.assert_called_once_with("SELECT 1 WHERE id = %s", (5,))

    def test_context_manager_commits(self):
        with PostgresConnection(self.raw, use_pool=False):
            pass
        self.raw.commit.assert_called_once()
        self.raw.rollback.assert_not_called()
        self.raw.close.assert_called_once()

    def test_context_manager_rolls_back_on_error(self):
        with self.assertRaises(ValueError):
            with PostgresConnection(self.raw, use_pool=False):
                raise ValueError("boom")
        self.raw.rollback.assert_called_once()
        self.raw.commit.assert_not_called()

    @patch('core.database.return_connection')
    def test_pooled_connection_is_returned(self, mock_return):
        PostgresConnection(self.raw, use_pool=True).close()
        mock_return.assert_called_once_with(self.raw)
        self.raw.close.assert_not_called()

    @patch('core.database.config')
    def test_pool_requires_database_url(self, mock_config):
        mock_config.DATABASE_URL = ""
        with patch('core.database._connection_pool', None):
            with self.assertRaises(RuntimeError):
                get_conn()


class TestValidation(unittest.TestCase):
    """Test caller-side validation."""

    def setUp(self):
        self.start = datetime(2025, 3, 2, 8, 0)
        self.end = datetime(2025, 3, 2, 16, 0)

    def test_valid_input(self):
        validate_shift_input(self.start, self.end, 5000)
        validate_shift_input(self.start, self.end, 0)

    def test_open_shift(self):
        with self.assertRaises(ValidationError) as ctx:
            validate_shift_input(self.start, None, 5000)
        self.assertEqual(ctx.exception.user_message, "לא ניתן לחשב שכר למשמרת פתוחה")

    def test_missing_start(self):
        with self.assertRaises(ValidationError):
            validate_shift_input(None, self.end, 5000)

    def test_bad_rates(self):
        for rate in (-1, 50.5, "5000", None, True):
            with self.subTest(rate=rate):
                with self.assertRaises(ValidationError):
                    validate_shift_input(self.start, self.end, rate)

    def test_bonus_validation(self):
        validate_bonus(BonusInfo(id="ok", bonus_type=BonusType.HOURLY, amount_per_hour=500))
        validate_bonus(BonusInfo(id="ok", bonus_type=BonusType.ONE_TIME, amount_fixed=10000))
        invalid = [
            BonusInfo(id="a", bonus_type=BonusType.HOURLY),
            BonusInfo(id="b", bonus_type=BonusType.HOURLY, amount_per_hour=-5),
            BonusInfo(id="c", bonus_type=BonusType.ONE_TIME, amount_fixed=0),
            BonusInfo(id="d", bonus_type=BonusType.ONE_TIME, amount_fixed=100,
                      valid_from=self.end, valid_to=self.start),
        ]
        for bonus in invalid:
            with self.subTest(bonus=bonus.id):
                with self.assertRaises(ValidationError):
                    validate_bonus(bonus)


class TestErrorLogging(unittest.TestCase):
    """Test error logging."""

    def test_payroll_error_defaults(self):
        error = PayrollError("boom")
        self.assertEqual(error.user_message, "boom")
        self.assertEqual(error.details, {})
        self.assertEqual(str(error), "boom")

    def test_log_error_returns_id(self):
        with self.assertLogs('utils.error_handler', level='ERROR') as logs:
            error_id = log_error(ValidationError("bad"), context={"shift_id": 1})
        self.assertTrue(error_id)
        self.assertIn(error_id, logs.output[0])
        self.assertIn("ValidationError", logs.output[0])


if __name__ == '__main__':
    unittest.main()
