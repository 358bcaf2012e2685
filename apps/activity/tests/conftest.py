import pytest
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import RefreshToken

from apps.accounts.models import User, UserRole


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
def admin_client(admin_user):
    """Return API client authenticated as admin."""
    client = APIClient()
    refresh = RefreshToken.for_user(admin_user)
    client.credentials(HTTP_AUTHORIZATION=f'Bearer {refresh.access_token}')
    return client


@pytest.fixture
def investor_client(investor_user):
    """Return API client authenticated as an investor."""
    client = APIClient()
    refresh = RefreshToken.for_user(investor_user)
    client.credentials(HTTP_AUTHORIZATION=f'Bearer {refresh.access_token}')
    return client
