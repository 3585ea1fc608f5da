"""
domain/postal_code.py
──────────────────────────────────────────────────────────────────────────────
CEP normalisation.  Pure functions, no I/O.

  normalize("01310-100")  → "01310100"
  validate("01310100")    → "01310100"
  validate("0131010")     → CustomerRegistryError(INVALID_POSTAL_CODE)
"""
from __future__ import annotations

import re
from typing import Optional

from cep_registry.domain.exceptions import CustomerRegistryError, ErrorKind

POSTAL_CODE_LENGTH = 8

_NON_DIGITS = re.compile(r"[^0-9]")
_EIGHT_DIGITS = re.compile(r"[0-9]{%d}" % POSTAL_CODE_LENGTH)


def normalize(raw: Optional[str]) -> str:
    """Strip every non-digit character.  Blank input normalises to ""."""
    if not raw:
        return ""
    return _NON_DIGITS.sub("", raw)


def is_valid(normalized: str) -> bool:
    return _EIGHT_DIGITS.fullmatch(normalized) is not None


def validate(normalized: str) -> str:
    """Return ``normalized`` unchanged if it is exactly 8 digits.

    Raises:
        CustomerRegistryError: kind INVALID_POSTAL_CODE otherwise.
    """
    if not is_valid(normalized):
        raise CustomerRegistryError(
            ErrorKind.INVALID_POSTAL_CODE,
            f"Postal code must contain exactly {POSTAL_CODE_LENGTH} digits.",
        )
    return normalized


def normalize_and_validate(raw: Optional[str]) -> str:
    return validate(normalize(raw))
