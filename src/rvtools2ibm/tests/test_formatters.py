"""Tests for rvtools2ibm.utils.formatters."""

from datetime import datetime

import pytest


class TestRounding:
    @pytest.mark.parametrize("value,expected", [(0.5, 1), (2.5, 3), (2.4, 2), (0, 0)])
    def test_round_half_up(self, value, expected):
        from rvtools2ibm.utils.formatters import round_half_up
        assert round_half_up(value) == expected

    def test_unit_conversion(self):
        from rvtools2ibm.utils.formatters import mib_to_gib, mib_to_tib
        assert mib_to_gib(2048) == 2
        assert mib_to_tib(1024 * 1024) == 1


class TestSizes:
    def test_format_bytes(self):
        from rvtools2ibm.utils.formatters import format_bytes
        assert format_bytes(0) == "0 Bytes"
        assert format_bytes(1536) == "1.5 KiB"
        assert format_bytes(1024 ** 3) == "1 GiB"

    def test_format_mib(self):
        from rvtools2ibm.utils.formatters import format_mib
        assert format_mib(512) == "512.00 MiB"
        assert format_mib(2048) == "2.00 GiB"
        assert format_mib(3 * 1024 * 1024, 1) == "3.0 TiB"

    def test_format_number(self):
        from rvtools2ibm.utils.formatters import format_number
        assert format_number(1234567) == "1,234,567"
        assert format_number(1.5) == "1.5"
        assert format_number(2, 2) == "2.00"


class TestLabels:
    def test_hardware_version(self):
        from rvtools2ibm.utils.formatters import format_hardware_version, get_hardware_version_number
        assert format_hardware_version("vmx-19") == "v19"
        assert format_hardware_version("unknown") == "unknown"
        assert get_hardware_version_number("vmx-08") == 8
        assert get_hardware_version_number("") == 0

    def test_power_state(self):
        from rvtools2ibm.utils.formatters import format_power_state
        assert format_power_state("poweredOn") == "Powered On"
        assert format_power_state("weird") == "weird"

    def test_duration(self):
        from rvtools2ibm.utils.formatters import format_duration
        assert format_duration(0.5) == "12 hours"
        assert format_duration(1) == "1 day"
        assert format_duration(90) == "3 months"
        assert format_duration(730) == "2.0 years"

    def test_dates(self):
        from rvtools2ibm.utils.formatters import format_date, format_datetime
        stamp = datetime(2026, 3, 5, 14, 30)
        assert format_date(stamp) == "Mar 5, 2026"
        assert format_datetime(stamp) == "Mar 5, 2026, 02:30 PM"
        assert format_date(None) == "N/A"

    def test_currency(self):
        from rvtools2ibm.utils.formatters import format_currency, format_currency_precise
        assert format_currency(1234.56) == "$1,235"
        assert format_currency(-10) == "-$10"
        assert format_currency_precise(1234.5) == "$1,234.50"

    def test_truncate(self):
        from rvtools2ibm.utils.formatters import truncate
        assert truncate("short", 10) == "short"
        assert truncate("a-very-long-vm-name", 10) == "a-very-..."
