"""
Vitals input parsing utilities.

Users type vitals free-form ("120/80 mmHg", "72 bpm", "98.6"). These helpers
strip units and split blood pressure into its two readings before the values
are sent for analysis.
"""

import re
from typing import Optional, Tuple


def clean_numeric(value: Optional[str]) -> str:
    """
    Strip everything except digits and decimal points.

    Args:
        value: Raw user input (may be None)

    Returns:
        Cleaned numeric string, or "" if nothing numeric remains
    """
    if not value:
        return ""
    return re.sub(r'[^\d.]', '', value).strip()


def parse_blood_pressure(value: Optional[str]) -> Tuple[str, str]:
    """
    Split a blood pressure reading into systolic and diastolic parts.

    Args:
        value: Reading such as "120/80" or "120 / 80 mmHg"

    Returns:
        (systolic, diastolic); both empty when the reading has no "/"
    """
    if not value or "/" not in value:
        return "", ""
    systolic, diastolic = value.split("/", 1)
    return clean_numeric(systolic), clean_numeric(diastolic)
