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
    ProfitStatus,
    PaymentHistory,
    PaymentStatus,
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


# =============================================================================
# Users
# =============================================================================

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
def unlinked_user(db):
    """Investor account that no investor profile points to."""
    return User.objects.create_user(
        email='nobody@example.com',
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
def unlinked_client(unlinked_user):
    return client_for(unlinked_user)


# =============================================================================
# Business data
# =============================================================================

@pytest.fixture
def investor(db, investor_user):
    return Investor.objects.create(
        name='Budi Santoso',
        margin_percentage=Decimal('40'),
        user=investor_user,
    )


@pytest.fixture
def other_investor(db):
    return Investor.objects.create(name='Sari Dewi', margin_percentage=Decimal('60'))


@pytest.fixture
def portfolio(db, investor, other_investor):
    """
    Budi: one sold unit with a settled-in-part profit and one unit on process.
    Sari: one available unit without any transaction.
    """
    sold_unit = Unit.objects.create(
        code='UNT-001',
        name='Toyota Avanza 2019',
        plate_number='B 1234 CD',
        investor=investor,
        status=UnitStatus.SOLD,
        tax_due_date=date(2024, 6, 10),
    )
    active_unit = Unit.objects.create(
        code='UNT-002',
        name='Honda Brio 2020',
        plate_number='B 2222 KL',
        investor=investor,
        tax_due_date=date(2024, 6, 20),
    )
    idle_unit = Unit.objects.create(
        code='UNT-003',
        name='Daihatsu Xenia 2017',
        plate_number='D 5678 EF',
        investor=other_investor,
        tax_due_date=date(2024, 6, 5),
    )

    sold = Transaction.objects.create(
        transaction_code='TRX-2024-001',
        unit=sold_unit,
        buy_date=date(2024, 1, 10),
        buy_price=Decimal('150000000'),
        sell_date=date(2024, 3, 5),
        sell_price=Decimal('180000000'),
        status=TransactionStatus.COMPLETED,
        profit_status=ProfitStatus.PROFIT,
        payment_status=PaymentStatus.PARTIAL,
    )
    ProfitSharing.objects.create(
        transaction=sold,
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
        transaction=sold,
        investor=investor,
        amount=Decimal('4000000'),
        payment_date=date(2024, 3, 10),
        method=PaymentMethod.TRANSFER,
    )
    PaymentHistory.objects.create(
        transaction=sold,
        investor=investor,
        amount=Decimal('2000000'),
        payment_date=date(2024, 5, 2),
        method=PaymentMethod.CASH,
    )

    active = Transaction.objects.create(
        transaction_code='TRX-2024-002',
        unit=active_unit,
        buy_date=date(2024, 4, 2),
        buy_price=Decimal('100000000'),
        initial_investor_capital=Decimal('90000000'),
    )

    return {
        'sold_unit': sold_unit,
        'active_unit': active_unit,
        'idle_unit': idle_unit,
        'sold': sold,
        'active': active,
    }
