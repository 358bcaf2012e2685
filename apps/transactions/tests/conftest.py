import pytest
from datetime import date
from decimal import Decimal
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import RefreshToken

from apps.accounts.models import User, UserRole
from apps.investors.models import Investor
from apps.units.models import Unit
from apps.transactions.models import Transaction, Cost, Payer, CostType


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
    """Create and return an admin user."""
    return User.objects.create_user(
        email='admin@example.com',
        password='TestPass123!',
        display_name='Admin',
        role=UserRole.ADMIN,
    )


@pytest.fixture
def investor_user(db):
    """Create and return an investor login account."""
    return User.objects.create_user(
        email='budi@example.com',
        password='TestPass123!',
        display_name='Budi',
        role=UserRole.INVESTOR,
    )


@pytest.fixture
def other_investor_user(db):
    """Create and return an investor account with no access to `unit`."""
    return User.objects.create_user(
        email='sari@example.com',
        password='TestPass123!',
        display_name='Sari',
        role=UserRole.INVESTOR,
    )


@pytest.fixture
def admin_client(admin_user):
    """Return API client authenticated as admin."""
    return client_for(admin_user)


@pytest.fixture
def investor_client(investor_user, investor):
    """Return API client authenticated as the unit's investor."""
    return client_for(investor_user)


@pytest.fixture
def other_investor_client(other_investor_user, other_investor):
    """Return API client authenticated as a different investor."""
    return client_for(other_investor_user)


@pytest.fixture
def investor(db, investor_user):
    """Investor with a 40% default share, linked to investor_user."""
    return Investor.objects.create(
        name='Budi Santoso',
        contact_info='081234567890',
        margin_percentage=Decimal('40.00'),
        user=investor_user,
    )


@pytest.fixture
def other_investor(db, other_investor_user):
    return Investor.objects.create(
        name='Sari Dewi',
        contact_info='sari@example.com',
        user=other_investor_user,
    )


@pytest.fixture
def unit(db, investor):
    """Create and return an available unit."""
    return Unit.objects.create(
        code='UNT-001',
        name='Toyota Avanza 2019',
        plate_number='B 1234 CD',
        investor=investor,
    )


@pytest.fixture
def second_unit(db, investor):
    return Unit.objects.create(
        code='UNT-002',
        name='Honda Jazz 2018',
        plate_number='B 5678 EF',
        investor=investor,
    )


@pytest.fixture
def on_process_transaction(db, unit):
    """Transaction bought for 150,000,000 and not yet sold."""
    return Transaction.objects.create(
        transaction_code='TRX-2024-001',
        unit=unit,
        buy_date=date(2024, 1, 10),
        buy_price=Decimal('150000000.00'),
    )


@pytest.fixture
def transaction_with_costs(on_process_transaction):
    """Transaction with 2,000,000 of investor costs and 5,000,000 of manager costs."""
    Cost.objects.create(
        transaction=on_process_transaction,
        cost_type=CostType.INSPECTION,
        payer=Payer.INVESTOR,
        amount=Decimal('2000000.00'),
    )
    Cost.objects.create(
        transaction=on_process_transaction,
        cost_type=CostType.REPAIR,
        payer=Payer.MANAGER,
        amount=Decimal('3500000.00'),
    )
    Cost.objects.create(
        transaction=on_process_transaction,
        cost_type=CostType.ADS,
        payer=Payer.MANAGER,
        amount=Decimal('1500000.00'),
    )
    return on_process_transaction
