"""
Transaction code generation.

Codes follow ``TRX-<year>-<sequence>``. The sequence restarts at 001
every calendar year; codes in any other format that end in a number
are incremented in place.
"""

import re
from datetime import date
from typing import Optional

from django.db.models.functions import Length
from django.utils import timezone

from apps.transactions.models import Transaction
from apps.units.services import increment_trailing_number


TRANSACTION_CODE_PATTERN = re.compile(r'TRX-(\d{4})-(\d+)')


def transaction_code_after(latest_code: Optional[str], year: int) -> str:
    first_of_year = f"TRX-{year}-001"
    if not latest_code:
        return first_of_year

    match = TRANSACTION_CODE_PATTERN.search(latest_code)
    if match:
        if int(match.group(1)) == year:
            return f"TRX-{year}-{int(match.group(2)) + 1:03d}"
        return first_of_year

    return increment_trailing_number(latest_code) or first_of_year


def _latest_code(queryset) -> Optional[str]:
    # Longer codes first so TRX-2024-1000 sorts above TRX-2024-999
    return (
        queryset
        .order_by(Length('transaction_code').desc(), '-transaction_code')
        .values_list('transaction_code', flat=True)
        .first()
    )


def next_transaction_code(today: Optional[date] = None) -> str:
    """Suggest a free code for the next transaction, continuing this year's sequence."""
    if today is None:
        today = timezone.localdate()

    latest_code = _latest_code(
        Transaction.objects.filter(transaction_code__startswith=f"TRX-{today.year}-")
    )
    if latest_code is None:
        latest_code = _latest_code(Transaction.objects.all())

    code = transaction_code_after(latest_code, today.year)
    while Transaction.objects.filter(transaction_code=code).exists():
        code = transaction_code_after(code, today.year)
    return code
