"""Number, size and label formatting shared by the CLI and report writers."""

from __future__ import annotations

import math
import re
from datetime import datetime
from typing import Optional

_BYTE_UNITS = ["Bytes", "KiB", "MiB", "GiB", "TiB", "PiB"]


def round_half_up(value: float) -> int:
    """Round .5 away from zero for positives (0.5 -> 1, 2.5 -> 3)."""
    return int(math.floor(value + 0.5))


def mib_to_gib(mib: float) -> float:
    return mib / 1024


def mib_to_tib(mib: float) -> float:
    return mib / (1024 * 1024)


def _strip_zeros(value: float, decimals: int) -> str:
    text = f"{value:.{decimals}f}"
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return text


def format_bytes(num_bytes: float, decimals: int = 2) -> str:
    """Human readable binary size, e.g. 1536 -> '1.5 KiB'."""
    if num_bytes == 0:
        return "0 Bytes"
    dm = max(decimals, 0)
    i = min(int(math.floor(math.log(num_bytes) / math.log(1024))), len(_BYTE_UNITS) - 1)
    return f"{_strip_zeros(num_bytes / 1024 ** i, dm)} {_BYTE_UNITS[i]}"


def format_mib(mib: float, decimals: int = 2) -> str:
    if mib < 1024:
        return f"{mib:.{decimals}f} MiB"
    if mib < 1024 * 1024:
        return f"{mib / 1024:.{decimals}f} GiB"
    return f"{mib / (1024 * 1024):.{decimals}f} TiB"


def format_number(num: float, decimals: Optional[int] = None) -> str:
    if decimals is not None:
        return f"{num:,.{decimals}f}"
    if float(num).is_integer():
        return f"{int(num):,}"
    return f"{num:,.3f}".rstrip("0").rstrip(".")


def format_percent(value: float, decimals: int = 1) -> str:
    return f"{value:.{decimals}f}%"


def format_date(value: Optional[datetime]) -> str:
    if not value:
        return "N/A"
    return f"{value:%b} {value.day}, {value.year}"


def format_datetime(value: Optional[datetime]) -> str:
    if not value:
        return "N/A"
    return f"{format_date(value)}, {value:%I:%M %p}"


def format_duration(days: float) -> str:
    """Render an age in days as hours, days, months or years."""
    if days < 1:
        hours = round_half_up(days * 24)
        return f"{hours} hour{'s' if hours != 1 else ''}"
    if days < 30:
        whole = round_half_up(days)
        return f"{whole} day{'s' if whole != 1 else ''}"
    if days < 365:
        months = round_half_up(days / 30)
        return f"{months} month{'s' if months != 1 else ''}"
    years = f"{days / 365:.1f}"
    return f"{years} year{'s' if float(years) != 1 else ''}"


def truncate(text: str, max_length: int) -> str:
    if len(text) <= max_length:
        return text
    return f"{text[:max_length - 3]}..."


_POWER_STATES = {
    "poweredon": "Powered On",
    "poweredoff": "Powered Off",
    "suspended": "Suspended",
}


def format_power_state(state: str) -> str:
    return _POWER_STATES.get(state.lower(), state)


def format_hardware_version(version: str) -> str:
    """'vmx-19' -> 'v19'. Strings without digits are returned unchanged."""
    match = re.search(r"(\d+)", version or "")
    return f"v{match.group(1)}" if match else version


def get_hardware_version_number(version: str) -> int:
    match = re.search(r"(\d+)", version or "")
    return int(match.group(1)) if match else 0


def format_currency(amount: float) -> str:
    """Whole-dollar currency, e.g. 1234.56 -> '$1,235'."""
    sign = "-" if amount < 0 else ""
    return f"{sign}${round_half_up(abs(amount)):,}"


def format_currency_precise(amount: float) -> str:
    sign = "-" if amount < 0 else ""
    return f"{sign}${abs(amount):,.2f}"
