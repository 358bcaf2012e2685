import pytest
from datetime import date
from decimal import Decimal
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import RefreshToken

from apps.accounts.models import User, UserRole
from apps.investors.models import Investor
from apps.units.models import Unit


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
        role=UserRole.INVESTOR,
    )


@pytest.fixture
def admin_client(admin_user):
    """Return API client authenticated as admin."""
    client = APIClient()
    refresh = RefreshToken.for_user(admin_user)
    client.credentials(HTTP_AUTHORIZATION=f'Bearer {refresh.access_token}')
    return client


@pytest.fixture
def investor_client(investor_user, investor):
    """Return API client authenticated as the investor."""
    client = APIClient()
    refresh = RefreshToken.for_user(investor_user)
    client.credentials(HTTP_AUTHORIZATION=f'Bearer {refresh.access_token}')
    return client


@pytest.fixture
def investor(db, investor_user):
    return Investor.objects.create(
        name='Budi Santoso',
        contact_info='081234567890',
        user=investor_user,
    )


@pytest.fixture
def other_investor(db):
    return Investor.objects.create(name='Sari Dewi', margin_percentage=Decimal('60'))


@pytest.fixture
def unit(db, investor):
    """Create and return an available unit."""
    return Unit.objects.create(
        code='UNT-001',
        name='Toyota Avanza 2019',
        plate_number='B 1234 CD',
        investor=investor,
        tax_due_date=date(2024, 8, 17),
    )


@pytest.fixture
def other_unit(db, other_investor):
    return Unit.objects.create(
        code='UNT-002',
        name='Honda Jazz 2018',
        plate_number='D 5678 EF',
        investor=other_investor,
    )
