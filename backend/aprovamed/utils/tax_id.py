from __future__ import annotations

import re

CPF_LENGTH = 11
CNPJ_LENGTH = 14

_NON_DIGITS = re.compile(r"[^0-9]")


def normalize_tax_id(value: str | None) -> str:
    """Keep only the ASCII digits of a CPF/CNPJ typed with or without punctuation."""
    return _NON_DIGITS.sub("", value or "")


def is_valid_length(digits: str) -> bool:
    return len(digits) in (CPF_LENGTH, CNPJ_LENGTH)


def mask_tax_id(digits: str) -> str:
    """Hide all but the last four digits, for logs."""
    if len(digits) <= 4:
        return "*" * len(digits)
    return "*" * (len(digits) - 4) + digits[-4:]
