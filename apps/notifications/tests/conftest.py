import pytest
from datetime import date
from decimal import Decimal

from apps.accounts.models import User, UserRole
from apps.investors.models import Investor
from apps.units.models import Unit
from apps.transactions.models import Transaction


@pytest.fixture
def notification_settings(settings):
    """Credentials for both delivery channels."""
    settings.FONNTE_TOKEN = 'fonnte-token'
    settings.RESEND_API_KEY = 're_test_key'
    settings.EMAIL_FROM = 'notifications@example.com'
    settings.NOTIFICATIONS_TIMEOUT = 5
    return settings


@pytest.fixture
def phone_investor(db):
    return Investor.objects.create(name='Budi Santoso', contact_info='0812-3456-7890')


@pytest.fixture
def email_investor(db):
    return Investor.objects.create(name='Sari <Dewi>', contact_info='sari@example.com')


@pytest.fixture
def account_only_investor(db):
    """Investor without contact info but with a login account."""
    user = User.objects.create_user(
        email='andi@example.com',
        password='TestPass123!',
        role=UserRole.INVESTOR,
    )
    return Investor.objects.create(name='Andi', user=user)


@pytest.fixture
def make_transaction(db):
    counter = {'n': 0}

    def _make(investor):
        counter['n'] += 1
        unit = Unit.objects.create(
            code=f'UNT-{counter["n"]:03d}',
            name='Toyota Avanza 2019',
            plate_number='B 1234 CD',
            investor=investor,
        )
        return Transaction.objects.create(
            transaction_code=f'TRX-2024-{counter["n"]:03d}',
            unit=unit,
            buy_date=date(2024, 1, 10),
            buy_price=Decimal('150000000'),
        )

    return _make
