# integrations/cuit.py

"""
CUIT helpers: 11 digits, the last one a mod-11 check digit.
"""

from __future__ import annotations

import re

from integrations.exceptions import InvalidTaxIdError

CHECK_WEIGHTS = (5, 4, 3, 2, 7, 6, 5, 4, 3, 2)

COMPANY_PREFIXES = {"30", "33", "34"}
PERSON_PREFIXES = {"20", "23", "24", "27"}


def normalize_cuit(value) -> str:
    return re.sub(r"[\s\-.]", "", str(value or ""))


def check_digit(first_ten: str) -> int | None:
    total = sum(int(d) * w for d, w in zip(first_ten, CHECK_WEIGHTS))
    digit = 11 - total % 11
    if digit == 11:
        return 0
    if digit == 10:
        return None
    return digit


def is_valid_cuit(value) -> bool:
    digits = normalize_cuit(value)
    if len(digits) != 11 or not digits.isdigit():
        return False
    return check_digit(digits[:10]) == int(digits[10])


def validate_cuit(value) -> str:
    digits = normalize_cuit(value)
    if len(digits) != 11 or not digits.isdigit():
        raise InvalidTaxIdError(f"CUIT must have 11 digits: {value!r}")
    if check_digit(digits[:10]) != int(digits[10]):
        raise InvalidTaxIdError(f"CUIT check digit does not match: {value!r}")
    return digits


def format_cuit(value) -> str:
    """20123456786 -> 20-12345678-6; anything that is not 11 digits is returned as given."""
    digits = normalize_cuit(value)
    if len(digits) != 11 or not digits.isdigit():
        return str(value or "")
    return f"{digits[:2]}-{digits[2:10]}-{digits[10]}"


def person_type(value) -> str:
    prefix = normalize_cuit(value)[:2]
    if prefix in COMPANY_PREFIXES:
        return "JURIDICA"
    return "FISICA"
