"""
Unit tests for currency conversion, formatting and amount validation.
"""

import unittest
from decimal import Decimal
import sys
import os

# Add parent directory to path for imports
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from payroll.currency import (
    format_agorot,
    format_agorot_plain,
    format_shekel,
    to_major_units,
    to_minor_units,
    to_minor_units_safe,
    validate_minor_amount,
    validate_monetary_amount,
)


class TestConversion(unittest.TestCase):
    """Shekels <-> agorot."""

    def test_float_noise_is_removed(self):
        self.assertEqual(to_minor_units(0.1 + 0.2), 30)

    def test_half_rounds_away_from_zero(self):
        self.assertEqual(to_minor_units(12.345), 1235)
        self.assertEqual(to_minor_units(0.005), 1)
        self.assertEqual(to_minor_units(-0.005), -1)

    def test_int_and_decimal_inputs(self):
        self.assertEqual(to_minor_units(40), 4000)
        self.assertEqual(to_minor_units(Decimal("45.50")), 4550)

    def test_to_major_units(self):
        self.assertEqual(to_major_units(1235), 12.35)
        self.assertEqual(to_major_units(0), 0)

    def test_round_trip_within_half_agora(self):
        for amount in (0.0, 0.01, 1.999, 33.333, 1234.5678, 99999.99):
            self.assertAlmostEqual(to_major_units(to_minor_units(amount)), amount, delta=0.005)

    def test_non_finite_and_bool_rejected(self):
        with self.assertRaises(ValueError):
            to_minor_units(float("nan"))
        with self.assertRaises(ValueError):
            to_minor_units(float("inf"))
        with self.assertRaises(TypeError):
            to_minor_units(True)
        with self.assertRaises(TypeError):
            to_minor_units("12")

    def test_safe_variant_passes_none(self):
        self.assertIsNone(to_minor_units_safe(None))
        self.assertEqual(to_minor_units_safe(1.5), 150)


class TestFormatting(unittest.TestCase):

    def test_whole_amount_has_no_decimals(self):
        self.assertEqual(format_shekel(1000), "1,000 ₪")

    def test_fractional_amount_has_two_decimals(self):
        self.assertEqual(format_shekel(1.5), "1.50 ₪")
        self.assertEqual(format_shekel(1234.5), "1,234.50 ₪")

    def test_format_agorot(self):
        self.assertEqual(format_agorot(8000), "80 ₪")
        self.assertEqual(format_agorot(4550), "45.50 ₪")
        self.assertEqual(format_agorot_plain(8000), "80.00")


class TestValidation(unittest.TestCase):

    def test_valid_amount(self):
        result = validate_monetary_amount(50.5)
        self.assertTrue(result.valid)
        self.assertEqual(result.minor_units, 5050)
        self.assertIsNone(result.error)

    def test_below_minimum(self):
        result = validate_monetary_amount(-1)
        self.assertFalse(result.valid)
        self.assertEqual(result.error, 'הסכום חייב להיות לפחות 0 ש"ח')

    def test_above_maximum(self):
        result = validate_monetary_amount(100001)
        self.assertFalse(result.valid)
        self.assertEqual(result.error, 'הסכום לא יכול לעלות על 100,000 ש"ח')

    def test_bounds_are_inclusive(self):
        self.assertTrue(validate_monetary_amount(0).valid)
        self.assertTrue(validate_monetary_amount(100000).valid)

    def test_non_numeric(self):
        for value in (None, "10", float("nan"), True):
            self.assertFalse(validate_monetary_amount(value).valid, value)

    def test_huge_and_signaling_values_do_not_raise(self):
        huge = validate_monetary_amount(10 ** 400)
        self.assertFalse(huge.valid)
        self.assertEqual(huge.error, 'הסכום לא יכול לעלות על 100,000 ש"ח')
        for value in (Decimal("sNaN"), Decimal("NaN"), Decimal("Infinity"), float("-inf")):
            result = validate_monetary_amount(value)
            self.assertFalse(result.valid, value)
            self.assertEqual(result.error, "סכום לא תקין")

    def test_decimal_amount(self):
        self.assertEqual(validate_monetary_amount(Decimal("12.345")).minor_units, 1235)

    def test_minor_amount(self):
        self.assertEqual(validate_minor_amount(4000).minor_units, 4000)
        self.assertFalse(validate_minor_amount(-100).valid)
        self.assertFalse(validate_minor_amount(40.5).valid)
        self.assertFalse(validate_minor_amount(10 ** 400).valid)


if __name__ == '__main__':
    unittest.main()
