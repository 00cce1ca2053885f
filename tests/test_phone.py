"""
Tests for gads_caller/utils/phone.py - E.164 normalization and log masking.
"""
import phonenumbers
import pytest

from gads_caller.utils.phone import mask_phone, normalize_phone_e164


class TestNormalizePhoneE164:
    @pytest.mark.parametrize("raw", [
        "5551234567",
        "555-123-4567",
        "(555) 123-4567",
        "555.123.4567",
        " 555 123 4567 ",
    ])
    def test_ten_digit_us_formats(self, raw):
        assert normalize_phone_e164(raw) == "+15551234567"

    @pytest.mark.parametrize("raw", ["15551234567", "1-555-123-4567", "+1 (555) 123-4567"])
    def test_eleven_digit_with_country_code(self, raw):
        assert normalize_phone_e164(raw) == "+15551234567"

    def test_valid_us_number(self):
        assert normalize_phone_e164("(650) 253-0000") == "+16502530000"
        assert normalize_phone_e164("+1 650 253 0000") == "+16502530000"

    def test_international_number_kept(self):
        example = phonenumbers.example_number("GB")
        international = phonenumbers.format_number(example, phonenumbers.PhoneNumberFormat.INTERNATIONAL)
        expected = phonenumbers.format_number(example, phonenumbers.PhoneNumberFormat.E164)
        assert normalize_phone_e164(international) == expected

    def test_national_number_uses_default_region(self):
        example = phonenumbers.example_number("GB")
        national = phonenumbers.format_number(example, phonenumbers.PhoneNumberFormat.NATIONAL)
        expected = phonenumbers.format_number(example, phonenumbers.PhoneNumberFormat.E164)
        assert normalize_phone_e164(national, default_region="GB") == expected

    @pytest.mark.parametrize("raw", [None, "", "   ", "12345", "not a phone", "25551234567", "555123456789"])
    def test_unrecoverable_returns_none(self, raw):
        assert normalize_phone_e164(raw) is None

    def test_result_is_e164_shaped(self):
        result = normalize_phone_e164("555-123-4567")
        assert result.startswith("+")
        assert result[1:].isdigit()


class TestMaskPhone:
    def test_masks_after_six_characters(self):
        assert mask_phone("+15551234567") == "+15551***"

    def test_short_value_fully_masked(self):
        assert mask_phone("12345") == "***"
        assert mask_phone("123456") == "***"

    def test_empty(self):
        assert mask_phone("") == ""
        assert mask_phone(None) == ""
