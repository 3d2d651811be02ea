"""
Field validators and the diff-before-write helpers.
Run from project root: python -m pytest tests/test_validation.py -v
"""
import unittest
from datetime import date
from types import SimpleNamespace

from models.enums import FundingPurpose
from services.validation import age_on, is_adult, is_valid_uk_phone, normalize_phone
from utils.case import dict_keys_to_camel
from utils.diff import diff_fields, present


class TestUkPhone(unittest.TestCase):
    def test_national_mobile_with_spaces(self):
        self.assertTrue(is_valid_uk_phone("07700 900000"))

    def test_international_form(self):
        self.assertTrue(is_valid_uk_phone("+447700900000"))

    def test_landline(self):
        self.assertTrue(is_valid_uk_phone("020 7946 0958"))

    def test_too_short(self):
        self.assertFalse(is_valid_uk_phone("12345"))

    def test_leading_zero_after_prefix_rejected(self):
        self.assertFalse(is_valid_uk_phone("+4407700900000"))

    def test_empty(self):
        self.assertFalse(is_valid_uk_phone(""))
        self.assertFalse(is_valid_uk_phone(None))

    def test_normalize_strips_all_whitespace(self):
        self.assertEqual(normalize_phone(" 07700\t900 000 "), "07700900000")


class TestAgeGate(unittest.TestCase):
    def test_exactly_eighteen_passes(self):
        """Born exactly 18 years before today -> adult."""
        self.assertTrue(is_adult(date(2006, 6, 15), today=date(2024, 6, 15)))

    def test_one_day_short_fails(self):
        self.assertFalse(is_adult(date(2006, 6, 16), today=date(2024, 6, 15)))

    def test_month_boundary(self):
        self.assertEqual(age_on(date(2000, 7, 1), date(2024, 6, 30)), 23)
        self.assertEqual(age_on(date(2000, 6, 30), date(2024, 6, 30)), 24)

    def test_missing_date(self):
        self.assertFalse(is_adult(None, today=date(2024, 6, 15)))


class TestDiffFields(unittest.TestCase):
    def test_unchanged_values_are_skipped(self):
        row = SimpleNamespace(name="Acme Ltd", requested_amount=50000.0, purpose="working_capital")
        changes = diff_fields(row, {"name": " Acme Ltd ", "requested_amount": 50000, "purpose": FundingPurpose.WORKING_CAPITAL})
        self.assertEqual(changes, {})

    def test_changed_values_are_returned_normalized(self):
        row = SimpleNamespace(name="Acme Ltd", purpose=None)
        changes = diff_fields(row, {"name": "Acme Trading Ltd", "purpose": FundingPurpose.EQUIPMENT})
        self.assertEqual(changes, {"name": "Acme Trading Ltd", "purpose": "equipment"})

    def test_empty_string_clears_column(self):
        row = SimpleNamespace(website="https://acme.example")
        self.assertEqual(diff_fields(row, {"website": "  "}), {"website": None})

    def test_bool_is_not_compared_as_number(self):
        row = SimpleNamespace(is_hidden=1)
        self.assertEqual(diff_fields(row, {"is_hidden": True}), {})
        row = SimpleNamespace(is_hidden=False)
        self.assertEqual(diff_fields(row, {"is_hidden": True}), {"is_hidden": True})

    def test_present_drops_missing_values(self):
        self.assertEqual(present({"a": None, "b": "", "c": " x ", "d": 0}), {"c": " x ", "d": 0})


class TestResponseCasing(unittest.TestCase):
    def test_nested_keys_and_enums(self):
        data = {"address_line_1": "1 High St", "stage": {"value": "in_credit"}, "items": [{"lender_id": "l1"}],
                "purpose": FundingPurpose.EQUIPMENT, "companyId": "co-1"}
        self.assertEqual(dict_keys_to_camel(data), {
            "addressLine1": "1 High St",
            "stage": {"value": "in_credit"},
            "items": [{"lenderId": "l1"}],
            "purpose": "equipment",
            "companyId": "co-1",
        })


if __name__ == "__main__":
    unittest.main()
