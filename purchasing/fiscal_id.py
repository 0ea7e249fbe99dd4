"""
Fiscal identifier validation and formatting.

Two identifier formats are accepted:
  Personal (cédula)  11 digits, weights 1-2-1-2..., digit-sum of products, mod 10
  Business (RNC)      9 digits, first digit 1/4/5, weights 7-9-8-6-5-4-3-2, mod 11

Display formats:
  Personal  DDD-DDDDDDD-D
  Business  DDD-DDDDD-D

All functions are pure and safe to call with arbitrary untrusted strings.
"""
import re
from typing import Literal, Optional

PERSONAL_LENGTH = 11
BUSINESS_LENGTH = 9

PERSONAL_WEIGHTS = (1, 2, 1, 2, 1, 2, 1, 2, 1, 2, 1)
BUSINESS_WEIGHTS = (7, 9, 8, 6, 5, 4, 3, 2)
BUSINESS_LEADING_DIGITS = frozenset("145")

FiscalIdKind = Literal["personal", "business"]

_SEPARATORS = re.compile(r"[-\s]")
_NON_DIGITS = re.compile(r"[^0-9]")


def _strip_separators(raw: str) -> str:
    return _SEPARATORS.sub("", raw)


def normalise_fiscal_id(raw: Optional[str]) -> str:
    """Return only the digits of an identifier ("" for None)."""
    if not raw:
        return ""
    return _NON_DIGITS.sub("", raw)


def fiscal_id_kind(raw: Optional[str]) -> Optional[FiscalIdKind]:
    """Classify by length after stripping separators; None if neither."""
    if not isinstance(raw, str) or not raw:
        return None
    cleaned = _strip_separators(raw)
    if len(cleaned) == PERSONAL_LENGTH:
        return "personal"
    if len(cleaned) == BUSINESS_LENGTH:
        return "business"
    return None


def _valid_personal(digits: str) -> bool:
    total = 0
    for char, weight in zip(digits, PERSONAL_WEIGHTS):
        product = int(char) * weight
        # Two-digit products contribute the sum of their digits
        total += product if product < 10 else product // 10 + product % 10
    return total % 10 == 0


def _valid_business(digits: str) -> bool:
    if digits[0] not in BUSINESS_LEADING_DIGITS:
        return False
    total = sum(int(char) * weight for char, weight in zip(digits, BUSINESS_WEIGHTS))
    remainder = total % 11
    check = int(digits[8])
    if remainder in (0, 1):
        return check == 1
    return check == 11 - remainder


def validate_fiscal_id(raw: Optional[str]) -> bool:
    """
    Return True if ``raw`` is a checksum-valid personal or business identifier.

    Hyphens and whitespace are ignored; any other non-digit makes it invalid.
    """
    if not isinstance(raw, str) or not raw:
        return False
    cleaned = _strip_separators(raw)
    # str.isdigit() accepts superscripts and other Unicode digits
    if not cleaned.isascii() or not cleaned.isdigit():
        return False
    if len(cleaned) == PERSONAL_LENGTH:
        return _valid_personal(cleaned)
    if len(cleaned) == BUSINESS_LENGTH:
        return _valid_business(cleaned)
    return False


def format_fiscal_id(raw):
    """
    Return the canonical display form of an identifier.

    Input that does not reduce to 9 or 11 digits is returned unchanged.
    Formatting is advisory: it never raises and never checks the checksum.
    """
    if not isinstance(raw, str):
        return raw
    digits = normalise_fiscal_id(raw)
    if len(digits) == PERSONAL_LENGTH:
        return f"{digits[:3]}-{digits[3:10]}-{digits[10:]}"
    if len(digits) == BUSINESS_LENGTH:
        return f"{digits[:3]}-{digits[3:8]}-{digits[8:]}"
    return raw
