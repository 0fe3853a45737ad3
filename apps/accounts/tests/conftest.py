import pytest
from apps.accounts.models import User


@pytest.fixture
def inactive_user(db):
    """Create and return a deactivated user."""
    return User.objects.create_user(
        email='inactive@example.com',
        password='TestPass123!',
        full_name='Inactive User',
        is_active=False,
    )
