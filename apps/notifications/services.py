"""
Notification services.

Sends "unit sold" and "payment recorded" messages to an investor. The
investor's ``contact_info`` decides the channel: phone numbers go to
WhatsApp through Fonnte, e-mail addresses go to Resend. When
``contact_info`` is empty the linked user account's e-mail is used
instead. A contact that is neither a phone number nor an e-mail address
is not delivered.

Nothing in this module raises to the caller. Missing credentials, HTTP
errors and timeouts are logged and reported through ``DeliveryResult``.
"""

import logging
import re
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Optional

import requests
from django.conf import settings
from django.db import transaction
from django.utils.html import escape

from apps.investors.models import Investor
from apps.transactions.models import Transaction

logger = logging.getLogger(__name__)

EMAIL_RE = re.compile(r'^[^\s@]+@[^\s@]+\.[^\s@]+$')
PHONE_RE = re.compile(r'^(\+62|62|08)[0-9]{8,15}$')


@dataclass(frozen=True)
class DeliveryResult:
    success: bool
    channel: Optional[str] = None
    error: Optional[str] = None
    data: Any = field(default=None, compare=False)


def is_email(value: str) -> bool:
    return bool(EMAIL_RE.match(value.strip()))


def is_phone_number(value: str) -> bool:
    return bool(PHONE_RE.match(re.sub(r'[\s-]', '', value)))


def format_amount(amount) -> str:
    """Format an amount the way investors read it, e.g. ``Rp 9.200.000``."""
    rounded = Decimal(amount).quantize(Decimal('1'))
    return 'Rp ' + f'{rounded:,}'.replace(',', '.')


def send_whatsapp(to: str, message: str) -> DeliveryResult:
    token = settings.FONNTE_TOKEN
    if not token:
        logger.warning("FONNTE_TOKEN not set, skipping WhatsApp notification")
        return DeliveryResult(success=False, channel='whatsapp', error='Token not set')

    try:
        response = requests.post(
            settings.FONNTE_API_URL,
            headers={'Authorization': token},
            data={'target': to, 'message': message},
            timeout=settings.NOTIFICATIONS_TIMEOUT,
        )
        data = response.json()
    except (requests.RequestException, ValueError) as e:
        logger.warning("Error sending WhatsApp to %s: %s", to, e)
        return DeliveryResult(success=False, channel='whatsapp', error=str(e))

    return DeliveryResult(success=data.get('status') is True, channel='whatsapp', data=data)


def send_email(to: str, subject: str, html: str) -> DeliveryResult:
    api_key = settings.RESEND_API_KEY
    if not api_key:
        logger.warning("RESEND_API_KEY not set, skipping email notification")
        return DeliveryResult(success=False, channel='email', error='API key not set')

    try:
        response = requests.post(
            settings.RESEND_API_URL,
            headers={'Authorization': f'Bearer {api_key}'},
            json={
                'from': settings.EMAIL_FROM,
                'to': [to],
                'subject': subject,
                'html': html,
            },
            timeout=settings.NOTIFICATIONS_TIMEOUT,
        )
        data = response.json()
    except (requests.RequestException, ValueError) as e:
        logger.warning("Error sending email to %s: %s", to, e)
        return DeliveryResult(success=False, channel='email', error=str(e))

    return DeliveryResult(success=response.ok, channel='email', data=data)


def _load(investor_id, transaction_id):
    investor = Investor.objects.select_related('user').filter(id=investor_id).first()
    trx = Transaction.objects.select_related('unit').filter(id=transaction_id).first()
    return investor, trx


def _contact_for(investor: Investor) -> str:
    if investor.contact_info:
        return investor.contact_info.strip()
    if investor.user is not None:
        return investor.user.email
    return ''


def _deliver(contact, message, subject, html) -> DeliveryResult:
    if is_phone_number(contact):
        return send_whatsapp(contact, message)
    if is_email(contact):
        return send_email(contact, subject, html)
    logger.info("Contact %r is neither a phone number nor an e-mail", contact)
    return DeliveryResult(success=False, error='Unusable contact')


def notify_unit_sold(investor_id, transaction_id) -> DeliveryResult:
    """Tell the investor that the unit of ``transaction_id`` has been sold."""
    investor, trx = _load(investor_id, transaction_id)
    if investor is None or trx is None:
        return DeliveryResult(success=False, error='Investor or transaction not found')

    contact = _contact_for(investor)
    if not contact:
        return DeliveryResult(success=False, error='No contact')

    unit = trx.unit
    plate = unit.plate_number or '-'
    message = (
        f"Hello {investor.name}, good news! Unit {unit.name} ({plate}) with code "
        f"{unit.code} has been SOLD. The profit sharing details are on your dashboard. Thank you!"
    )
    html = (
        f"<p>Hello <strong>{escape(investor.name)}</strong>,</p>"
        f"<p>Good news! Unit <strong>{escape(unit.name)}</strong> ({escape(plate)}) with code "
        f"<strong>{escape(unit.code)}</strong> has been <strong>SOLD</strong>.</p>"
        f"<p>The profit sharing details are on your dashboard.</p>"
        f"<p>Thank you!</p>"
    )
    return _deliver(contact, message, f"Unit sold: {unit.name}", html)


def notify_payment_recorded(investor_id, transaction_id, amount, proof_url=None) -> DeliveryResult:
    """Tell the investor that a payout of ``amount`` has been sent."""
    investor, trx = _load(investor_id, transaction_id)
    if investor is None or trx is None:
        return DeliveryResult(success=False, error='Investor or transaction not found')

    contact = _contact_for(investor)
    if not contact:
        return DeliveryResult(success=False, error='No contact')

    unit = trx.unit
    formatted = format_amount(amount)
    message = (
        f"Hello {investor.name}, the profit share for unit {unit.name} "
        f"of {formatted} has been transferred. Thank you!"
    )
    if proof_url:
        message += f"\nTransfer proof: {proof_url}"

    proof_html = ''
    if proof_url:
        proof_html = f'<p>Transfer proof: <a href="{escape(proof_url)}">{escape(proof_url)}</a></p>'
    html = (
        f"<p>Hello <strong>{escape(investor.name)}</strong>,</p>"
        f"<p>The profit share for unit <strong>{escape(unit.name)}</strong> of "
        f"<strong>{formatted}</strong> has been transferred.</p>"
        f"{proof_html}"
        f"<p>Thank you!</p>"
    )
    return _deliver(contact, message, f"Profit share transfer: {unit.name}", html)


def _safe_call(func, *args):
    try:
        func(*args)
    except Exception:
        logger.exception("Notification %s failed", func.__name__)


def notify_unit_sold_on_commit(investor_id, transaction_id):
    """Schedule notify_unit_sold after commit; never raises."""
    transaction.on_commit(lambda: _safe_call(notify_unit_sold, investor_id, transaction_id))


def notify_payment_recorded_on_commit(investor_id, transaction_id, amount, proof_url=None):
    """Schedule notify_payment_recorded after commit; never raises."""
    transaction.on_commit(
        lambda: _safe_call(notify_payment_recorded, investor_id, transaction_id, amount, proof_url)
    )
