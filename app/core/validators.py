"""Shared input normalisation for term / academic-year keys used across the fee ledger."""

import re

from app.core.enums import Term
from app.core.exceptions import ValidationError

ACADEMIC_YEAR_PATTERN = r"^\d{4}/\d{4}$"
_ACADEMIC_YEAR_RE = re.compile(ACADEMIC_YEAR_PATTERN)


def normalize_term(term) -> str:
    try:
        return Term(term).value
    except ValueError:
        raise ValidationError(f"Invalid term: {term!r}")


def normalize_academic_year(academic_year) -> str:
    """Academic years are written as consecutive years, e.g. 2024/2025."""
    value = (academic_year or "").strip() if isinstance(academic_year, str) else ""
    if not _ACADEMIC_YEAR_RE.match(value):
        raise ValidationError(f"Invalid academic year: {academic_year!r}")
    start, end = (int(part) for part in value.split("/"))
    if end != start + 1:
        raise ValidationError(f"Invalid academic year: {academic_year!r}")
    return value
