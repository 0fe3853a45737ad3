import pytest
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import RefreshToken
from apps.accounts.models import User


@pytest.fixture
def api_client():
    """Return an unauthenticated API client."""
    return APIClient()


@pytest.fixture
def make_client():
    """Return a factory building a JWT-authenticated client for a user."""
    def _make_client(user):
        client = APIClient()
        refresh = RefreshToken.for_user(user)
        client.credentials(HTTP_AUTHORIZATION=f'Bearer {refresh.access_token}')
        return client
    return _make_client


@pytest.fixture
def alice(db):
    """Create and return the usual payer."""
    return User.objects.create_user(
        email='alice@example.com',
        password='TestPass123!',
        full_name='Alice Payer',
    )


@pytest.fixture
def bob(db):
    """Create and return a participant."""
    return User.objects.create_user(
        email='bob@example.com',
        password='TestPass123!',
        full_name='Bob Debtor',
    )


@pytest.fixture
def carol(db):
    """Create and return another participant."""
    return User.objects.create_user(
        email='carol@example.com',
        password='TestPass123!',
        full_name='Carol Debtor',
    )


@pytest.fixture
def outsider(db):
    """Create and return a user not involved in anything."""
    return User.objects.create_user(
        email='outsider@example.com',
        password='TestPass123!',
        full_name='Outsider User',
    )


@pytest.fixture
def alice_client(make_client, alice):
    return make_client(alice)


@pytest.fixture
def bob_client(make_client, bob):
    return make_client(bob)


@pytest.fixture
def outsider_client(make_client, outsider):
    return make_client(outsider)


@pytest.fixture
def trip_group(db, alice, bob, carol):
    """Group created by alice with bob and carol as members."""
    from apps.groups.models import Group, GroupMembership, GroupRole

    group = Group.objects.create(
        name='Goa Trip',
        description='Beach week',
        created_by=alice,
    )
    GroupMembership.objects.create(user=alice, group=group, role=GroupRole.OWNER)
    GroupMembership.objects.create(user=bob, group=group, role=GroupRole.MEMBER)
    GroupMembership.objects.create(user=carol, group=group, role=GroupRole.MEMBER)
    return group


@pytest.fixture
def carol_client(make_client, carol):
    return make_client(carol)
