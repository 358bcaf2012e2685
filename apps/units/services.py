"""
Unit services.

Reference code generation for new units. Codes are suggestions shown
in the create form; uniqueness is still enforced by the database.
"""

import re
from typing import Optional

from django.db.models.functions import Length

from .models import Unit


UNIT_CODE_PATTERN = re.compile(r'UNT-(\d+)')
TRAILING_NUMBER_PATTERN = re.compile(r'(\d+)$')


def increment_trailing_number(code: str) -> Optional[str]:
    """
    Bump the number at the end of a code, keeping its width.

    ``'BDG-009'`` becomes ``'BDG-010'`` and ``'CAR7'`` becomes ``'CAR8'``.
    Returns None when the code does not end in a number.
    """
    match = TRAILING_NUMBER_PATTERN.search(code)
    if not match:
        return None
    digits = match.group(1)
    prefix = code[:-len(digits)]
    return f"{prefix}{int(digits) + 1:0{len(digits)}d}"


def unit_code_after(latest_code: Optional[str]) -> str:
    if not latest_code:
        return 'UNT-001'

    match = UNIT_CODE_PATTERN.search(latest_code)
    if match:
        return f"UNT-{int(match.group(1)) + 1:03d}"

    return increment_trailing_number(latest_code) or 'UNT-001'


def _latest_code(queryset) -> Optional[str]:
    # Longer codes first so UNT-1000 sorts above UNT-999
    return (
        queryset
        .order_by(Length('code').desc(), '-code')
        .values_list('code', flat=True)
        .first()
    )


def next_unit_code() -> str:
    """Suggest a free code for the next unit, continuing the UNT sequence."""
    latest_code = _latest_code(Unit.objects.filter(code__startswith='UNT-'))
    if latest_code is None:
        latest_code = _latest_code(Unit.objects.all())

    code = unit_code_after(latest_code)
    while Unit.objects.filter(code=code).exists():
        code = unit_code_after(code)
    return code
