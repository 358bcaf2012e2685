import pytest
from datetime import date
from decimal import Decimal
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import RefreshToken

from apps.accounts.models import User, UserRole
from apps.investors.models import Investor
from apps.units.models import Unit, UnitStatus
from apps.transactions.models import (
    Transaction,
    TransactionStatus,
    ProfitSharing,
    PaymentHistory,
    PaymentMethod,
)


def client_for(user):
    """Return an API client authenticated as ``user``."""
    client = APIClient()
    refresh = RefreshToken.for_user(user)
    client.credentials(HTTP_AUTHORIZATION=f'Bearer {refresh.access_token}')
    return client


@pytest.fixture
def api_client():
    """Return an unauthenticated API client."""
    return APIClient()


@pytest.fixture
def admin_user(db):
    return User.objects.create_user(
        email='admin@example.com',
        password='TestPass123!',
        display_name='Admin',
        role=UserRole.ADMIN,
    )


@pytest.fixture
def investor_user(db):
    return User.objects.create_user(
        email='budi@example.com',
        password='TestPass123!',
        role=UserRole.INVESTOR,
    )


@pytest.fixture
def free_investor_user(db):
    """Investor login account not linked to any profile yet."""
    return User.objects.create_user(
        email='new@example.com',
        password='TestPass123!',
        role=UserRole.INVESTOR,
    )


@pytest.fixture
def admin_client(admin_user):
    return client_for(admin_user)


@pytest.fixture
def investor_client(investor_user, investor):
    return client_for(investor_user)


@pytest.fixture
def investor(db, investor_user):
    return Investor.objects.create(
        name='Budi Santoso',
        contact_info='081234567890',
        margin_percentage=Decimal('40'),
        user=investor_user,
    )


@pytest.fixture
def other_investor(db):
    return Investor.objects.create(
        name='Sari Dewi',
        contact_info='sari@example.com',
        margin_percentage=Decimal('60'),
    )


@pytest.fixture
def sold_unit(db, investor):
    """A sold unit with a completed transaction and one payout."""
    unit = Unit.objects.create(
        code='UNT-001',
        name='Toyota Avanza 2019',
        plate_number='B 1234 CD',
        investor=investor,
        status=UnitStatus.SOLD,
    )
    trx = Transaction.objects.create(
        transaction_code='TRX-2024-001',
        unit=unit,
        buy_date=date(2024, 1, 10),
        buy_price=Decimal('150000000'),
        sell_date=date(2024, 3, 5),
        sell_price=Decimal('180000000'),
        status=TransactionStatus.COMPLETED,
    )
    ProfitSharing.objects.create(
        transaction=trx,
        total_capital_investor=Decimal('152000000'),
        total_capital_manager=Decimal('5000000'),
        total_capital=Decimal('157000000'),
        net_margin=Decimal('23000000'),
        investor_share_percentage=Decimal('40'),
        manager_share_percentage=Decimal('60'),
        investor_profit_amount=Decimal('9200000'),
        manager_profit_amount=Decimal('13800000'),
    )
    PaymentHistory.objects.create(
        transaction=trx,
        investor=investor,
        amount=Decimal('4000000'),
        payment_date=date(2024, 3, 10),
        method=PaymentMethod.TRANSFER,
    )
    return unit
