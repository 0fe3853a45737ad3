import pytest
from decimal import Decimal
from django.urls import reverse
from rest_framework import status

from apps.expenses.gateways import SimulatedPaymentGateway
from apps.expenses.models import PaymentMode, SplitMethod, TransactionStatus
from apps.expenses.services import create_expense, settle_transaction
from apps.groups.models import Group


@pytest.mark.django_db
class TestGroupList:
    """Tests for GET /api/groups/"""

    def test_list_groups_returns_user_groups(self, bob_client, trip_group):
        url = reverse('groups:group-list')
        response = bob_client.get(url)

        assert response.status_code == status.HTTP_200_OK
        ids = [g['id'] for g in response.data['results']]
        assert str(trip_group.id) in ids

    def test_list_groups_excludes_non_member_groups(self, outsider_client, trip_group):
        url = reverse('groups:group-list')
        response = outsider_client.get(url)

        assert response.status_code == status.HTTP_200_OK
        assert response.data['results'] == []

    def test_list_groups_unauthenticated(self, api_client):
        url = reverse('groups:group-list')
        response = api_client.get(url)

        assert response.status_code == status.HTTP_401_UNAUTHORIZED
        assert 'message' in response.data


@pytest.mark.django_db
class TestGroupCreate:
    """Tests for POST /api/groups/"""

    def test_create_group(self, alice_client, bob):
        url = reverse('groups:group-list')
        response = alice_client.post(
            url,
            {'name': 'Office Lunch', 'member_ids': [str(bob.id)]},
            format='json',
        )

        assert response.status_code == status.HTTP_201_CREATED
        assert response.data['member_count'] == 2
        assert response.data['user_role'] == 'owner'

    def test_create_group_missing_name(self, alice_client):
        url = reverse('groups:group-list')
        response = alice_client.post(url, {}, format='json')

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert 'name' in response.data['errors']


@pytest.mark.django_db
class TestGroupDetail:

    def test_retrieve_group_as_non_member(self, outsider_client, trip_group):
        url = reverse('groups:group-detail', args=[trip_group.id])
        response = outsider_client.get(url)

        assert response.status_code == status.HTTP_404_NOT_FOUND

    def test_archive_group_as_creator(self, alice_client, trip_group):
        url = reverse('groups:group-detail', args=[trip_group.id])
        response = alice_client.patch(url, {'is_archived': True}, format='json')

        assert response.status_code == status.HTTP_200_OK
        assert response.data['is_archived'] is True

    def test_update_group_as_member_forbidden(self, bob_client, trip_group):
        url = reverse('groups:group-detail', args=[trip_group.id])
        response = bob_client.patch(url, {'name': 'Renamed'}, format='json')

        assert response.status_code == status.HTTP_403_FORBIDDEN
        assert 'message' in response.data

    def test_delete_group_as_creator(self, alice_client, trip_group):
        url = reverse('groups:group-detail', args=[trip_group.id])
        response = alice_client.delete(url)

        assert response.status_code == status.HTTP_204_NO_CONTENT
        assert not Group.objects.filter(id=trip_group.id).exists()


@pytest.mark.django_db
class TestGroupMembers:

    def test_list_members(self, bob_client, trip_group):
        url = reverse('groups:group-members', args=[trip_group.id])
        response = bob_client.get(url)

        assert response.status_code == status.HTTP_200_OK
        assert len(response.data) == 3

    def test_add_members(self, bob_client, trip_group, outsider):
        url = reverse('groups:group-add-members', args=[trip_group.id])
        response = bob_client.post(url, {'user_ids': [str(outsider.id)]}, format='json')

        assert response.status_code == status.HTTP_201_CREATED
        assert trip_group.has_member(outsider)

    def test_cannot_remove_creator(self, alice_client, trip_group, alice):
        url = reverse('groups:group-remove-member', args=[trip_group.id])
        response = alice_client.post(url, {'user_id': str(alice.id)}, format='json')

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert trip_group.has_member(alice)

    def test_member_can_leave(self, bob_client, trip_group, bob):
        url = reverse('groups:group-remove-member', args=[trip_group.id])
        response = bob_client.post(url, {'user_id': str(bob.id)}, format='json')

        assert response.status_code == status.HTTP_204_NO_CONTENT
        assert not trip_group.has_member(bob)


@pytest.fixture
def group_dinner(alice, bob, carol, trip_group):
    expense, _ = create_expense(
        payer=alice,
        total_amount=Decimal('300.00'),
        description='Dinner',
        participant_ids=[alice.id, bob.id, carol.id],
        split_method=SplitMethod.EQUAL,
        group_id=trip_group.id,
    )
    return expense


@pytest.mark.django_db
class TestGroupBalances:
    """Tests for the owes, stats and transactions actions."""

    def test_owes(self, bob_client, trip_group, group_dinner, alice, bob):
        url = reverse('groups:group-owes', args=[trip_group.id])
        response = bob_client.get(url)

        assert response.status_code == status.HTTP_200_OK
        assert len(response.data) == 2
        first = response.data[0]
        assert first['to_user']['id'] == str(alice.id)
        assert first['amount'] == '100.00'
        assert first['currency'] == 'INR'

    def test_stats(self, alice_client, trip_group, group_dinner, alice):
        url = reverse('groups:group-stats', args=[trip_group.id])
        response = alice_client.get(url)

        assert response.status_code == status.HTTP_200_OK
        assert response.data['member_count'] == 3
        assert response.data['expense_count'] == 1
        assert response.data['totals'][0]['pending_amount'] == '200.00'
        assert response.data['contributions'][0]['user']['id'] == str(alice.id)

    def test_transactions(self, carol_client, trip_group, group_dinner, bob):
        txn = group_dinner.transactions.get(sender=bob)
        settle_transaction(
            token=txn.settlement_token,
            status=TransactionStatus.SUCCESS,
            mode=PaymentMode.UPI,
            user=bob,
            gateway=SimulatedPaymentGateway(),
        )

        url = reverse('groups:group-transactions', args=[trip_group.id])
        response = carol_client.get(url)

        assert response.status_code == status.HTTP_200_OK
        assert [t['token'] for t in response.data['completed']] == [txn.settlement_token]
        assert len(response.data['pending']) == 1
        assert response.data['failed'] == []

    @pytest.mark.parametrize('action', ['owes', 'stats', 'transactions'])
    def test_hidden_from_outsider(self, outsider_client, trip_group, action):
        url = reverse(f'groups:group-{action}', args=[trip_group.id])
        response = outsider_client.get(url)

        assert response.status_code == status.HTTP_404_NOT_FOUND
