"""
Unit tests for the shift_pay command-line script.
"""

import io
import unittest
from contextlib import redirect_stderr, redirect_stdout
from unittest.mock import MagicMock, patch
import sys
import os

# Add parent and scripts directories to path for imports
ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), '..'))
sys.path.insert(0, ROOT)
sys.path.insert(0, os.path.join(ROOT, 'scripts'))

import shift_pay


def run(argv):
    """Run main() and return (exit code, stdout)."""
    out = io.StringIO()
    with redirect_stdout(out):
        code = shift_pay.main(argv)
    return code, out.getvalue()


@patch('shift_pay.configure_logging')
class TestManualShift(unittest.TestCase):
    """Shift given on the command line."""

    def test_regular_day_with_overtime(self, mock_logging):
        code, output = run(["--date", "2025-03-02", "--start", "08:00", "--end", "18:36", "--rate", "50"])
        self.assertEqual(code, 0)
        self.assertIn("(REGULAR)", output)
        self.assertIn("10:36", output)
        self.assertIn("₪430.00", output)
        self.assertIn("₪125.00", output)
        self.assertIn("₪555.00", output)
        self.assertNotIn("WARNING", output)

    def test_shabbat_with_hourly_bonus(self, mock_logging):
        # 13 hours on Saturday: 2h at 175% + 11h at 200% + 5 per hour bonus
        code, output = run([
            "--date", "2025-03-08", "--start", "07:00", "--end", "20:00",
            "--rate", "50", "--bonus-per-hour", "5",
        ])
        self.assertEqual(code, 0)
        self.assertIn("(SHABBAT)", output)
        self.assertIn("₪175.00", output)
        self.assertIn("₪1100.00", output)
        self.assertIn("₪65.00", output)
        self.assertIn("₪1340.00", output)
        self.assertIn("WARNING: shift is longer than 12 hours", output)

    def test_holiday_from_calendar(self, mock_logging):
        code, output = run(["--date", "2025-06-02", "--start", "08:00", "--end", "12:00", "--rate", "50"])
        self.assertEqual(code, 0)
        self.assertIn("(HOLIDAY)", output)
        self.assertIn("שבועות", output)

    def test_negative_rate_is_reported(self, mock_logging):
        with self.assertLogs('utils.error_handler', level='ERROR'):
            code, output = run(["--date", "2025-03-02", "--start", "08:00", "--end", "16:00", "--rate", "-1"])
        self.assertEqual(code, 1)
        self.assertIn("תעריף שעתי לא יכול להיות שלילי", output)

    def test_missing_arguments(self, mock_logging):
        with redirect_stderr(io.StringIO()):
            with self.assertRaises(SystemExit) as ctx:
                shift_pay.main(["--date", "2025-03-02", "--start", "08:00"])
        self.assertEqual(ctx.exception.code, 2)


@patch('shift_pay.configure_logging')
class TestStoredShift(unittest.TestCase):
    """Shift loaded with --shift-id."""

    @patch('core.database.close_pool')
    @patch('core.database.get_conn')
    @patch('core.logic.calculate_shift_pay_details')
    def test_prints_details(self, mock_details, mock_get_conn, mock_close, mock_logging):
        mock_get_conn.return_value = MagicMock()
        mock_details.return_value = {"shift_id": 42, "total_pay": "₪555.00"}

        code, output = run(["--shift-id", "42"])

        self.assertEqual(code, 0)
        mock_details.assert_called_once()
        self.assertEqual(mock_details.call_args[0][1], "42")
        self.assertIn("₪555.00", output)
        mock_close.assert_called_once()

    @patch('core.database.close_pool')
    @patch('core.database.get_conn')
    @patch('core.logic.calculate_shift_pay_details', return_value=None)
    def test_missing_shift(self, mock_details, mock_get_conn, mock_close, mock_logging):
        mock_get_conn.return_value = MagicMock()
        code, output = run(["--shift-id", "99"])
        self.assertEqual(code, 1)
        self.assertIn("Shift 99 not found", output)


if __name__ == '__main__':
    unittest.main()
