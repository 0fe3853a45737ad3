import pytest
from unittest.mock import patch

from apps.expenses.gateways import GatewayResult, PaymentGateway, SimulatedPaymentGateway
from apps.expenses.models import Expense, PaymentMode, SplitDetail, Transaction, TransactionStatus
from apps.expenses.services import (
    InvalidSettlementError,
    NotTransactionSenderError,
    TransactionAlreadySettledError,
    TransactionNotFoundError,
    get_recent_transactions,
    get_user_transactions,
    settle_transaction,
)


def settle(txn, user, status=TransactionStatus.SUCCESS, mode=PaymentMode.UPI, **kwargs):
    return settle_transaction(
        token=txn.settlement_token,
        status=status,
        mode=mode,
        user=user,
        **kwargs,
    )


class RecordingGateway(PaymentGateway):
    """Approves every payment and remembers what it charged."""

    def __init__(self):
        self.charged = []

    def charge(self, *, transaction, mode):
        self.charged.append((transaction.pk, mode))
        return GatewayResult(approved=True, reference=f'REC-{len(self.charged)}')


@pytest.mark.django_db
class TestSettleSuccess:

    def test_success_updates_transaction(self, bob_transaction, bob):
        result = settle(bob_transaction, bob)

        bob_transaction.refresh_from_db()
        assert result.committed is True
        assert result.status == TransactionStatus.SUCCESS
        assert bob_transaction.status == TransactionStatus.SUCCESS
        assert bob_transaction.mode == PaymentMode.UPI

    def test_success_references_split_detail(self, bob_transaction, bob):
        settle(bob_transaction, bob)

        detail = SplitDetail.objects.get(id=bob_transaction.split_detail_id)
        assert detail.transaction_ref_id == bob_transaction.id

    def test_expense_settled_once_every_slot_referenced(self, dinner, bob, carol,
                                                        bob_transaction, carol_transaction):
        first = settle(bob_transaction, bob)
        dinner.refresh_from_db()
        assert first.expense_settled is False
        assert dinner.is_settled is False

        second = settle(carol_transaction, carol, mode=PaymentMode.PAYPAL)
        dinner.refresh_from_db()
        assert second.expense_settled is True
        assert dinner.is_settled is True

    def test_same_debtor_and_amount_settle_their_own_slots(self, make_expense, alice, bob):
        first_expense, (first_txn,) = make_expense(alice, [bob], total='50.00', description='Lunch')
        second_expense, (second_txn,) = make_expense(alice, [bob], total='50.00', description='Snacks')

        settle(second_txn, bob)

        assert first_expense.split_details.get().transaction_ref_id is None
        assert second_expense.split_details.get().transaction_ref_id == second_txn.id

    def test_token_is_stable(self, bob_transaction):
        token = bob_transaction.settlement_token

        bob_transaction.save()

        assert len(token) == 64
        assert Transaction.objects.get(id=bob_transaction.id).settlement_token == token

    def test_events_emitted_after_commit(self, dinner, alice, bob, carol, bob_transaction,
                                         carol_transaction, django_capture_on_commit_callbacks):
        with patch('apps.expenses.notifications.publish') as publish:
            with django_capture_on_commit_callbacks(execute=True):
                settle(bob_transaction, bob)
            with django_capture_on_commit_callbacks(execute=True):
                settle(carol_transaction, carol)

        events = [
            (notification.event, notification.recipient_id)
            for call in publish.call_args_list
            for notification in call.args[0]
        ]
        assert events == [
            ('transaction_settled', str(alice.id)),
            ('transaction_settled', str(alice.id)),
            ('expense_settled', str(alice.id)),
        ]


@pytest.mark.django_db
class TestSettleRejections:

    def test_second_settle_conflicts(self, bob_transaction, bob):
        settle(bob_transaction, bob, mode=PaymentMode.UPI)

        with pytest.raises(TransactionAlreadySettledError) as exc_info:
            settle(bob_transaction, bob, mode=PaymentMode.STRIPE)

        bob_transaction.refresh_from_db()
        assert exc_info.value.status_code == 409
        assert bob_transaction.status == TransactionStatus.SUCCESS
        assert bob_transaction.mode == PaymentMode.UPI

    def test_only_sender_can_settle(self, bob_transaction, alice, carol):
        for user in (alice, carol):
            with pytest.raises(NotTransactionSenderError):
                settle(bob_transaction, user)

        bob_transaction.refresh_from_db()
        assert bob_transaction.status == TransactionStatus.PENDING
        assert bob_transaction.mode is None

    def test_unknown_token(self, bob):
        with pytest.raises(TransactionNotFoundError):
            settle_transaction(token='0' * 64, status=TransactionStatus.SUCCESS, mode=PaymentMode.UPI, user=bob)

    @pytest.mark.parametrize('status,mode', [
        (TransactionStatus.PENDING, PaymentMode.UPI),
        ('Refunded', PaymentMode.UPI),
        (TransactionStatus.SUCCESS, 'Cash'),
        (TransactionStatus.SUCCESS, None),
    ])
    def test_invalid_request(self, bob_transaction, bob, status, mode):
        with pytest.raises(InvalidSettlementError):
            settle(bob_transaction, bob, status=status, mode=mode)

        bob_transaction.refresh_from_db()
        assert bob_transaction.status == TransactionStatus.PENDING

    def test_each_settle_charges_once(self, bob_transaction, bob):
        gateway = RecordingGateway()

        result = settle(bob_transaction, bob, gateway=gateway)
        with pytest.raises(TransactionAlreadySettledError):
            settle(bob_transaction, bob, mode=PaymentMode.STRIPE, gateway=gateway)

        assert gateway.charged == [(bob_transaction.pk, PaymentMode.UPI)]
        assert result.gateway_reference == 'REC-1'

    def test_request_racing_a_completed_settle_is_not_charged(self, bob_transaction, bob):
        settle(bob_transaction, bob, mode=PaymentMode.STRIPE)
        # What a competing request read before the first one committed
        stale = Transaction.objects.get(pk=bob_transaction.pk)
        stale.status = TransactionStatus.PENDING
        gateway = RecordingGateway()

        with patch('apps.expenses.services.settlement.get_transaction_by_token', return_value=stale):
            with pytest.raises(TransactionAlreadySettledError):
                settle(bob_transaction, bob, mode=PaymentMode.UPI, gateway=gateway)

        bob_transaction.refresh_from_db()
        assert gateway.charged == []
        assert bob_transaction.status == TransactionStatus.SUCCESS
        assert bob_transaction.mode == PaymentMode.STRIPE


@pytest.mark.django_db
class TestSettleFailures:

    def test_failure_after_transition_rolls_back(self, dinner, bob_transaction, bob):
        with patch.object(Expense, 'refresh_settled_status', side_effect=RuntimeError('db gone')):
            with pytest.raises(RuntimeError):
                settle(bob_transaction, bob)

        bob_transaction.refresh_from_db()
        dinner.refresh_from_db()
        assert bob_transaction.status == TransactionStatus.PENDING
        assert bob_transaction.mode is None
        assert SplitDetail.objects.get(id=bob_transaction.split_detail_id).transaction_ref_id is None
        assert dinner.is_settled is False

        assert settle(bob_transaction, bob).status == TransactionStatus.SUCCESS

    def test_gateway_decline_commits_nothing(self, bob_transaction, bob):
        result = settle(
            bob_transaction, bob,
            gateway=SimulatedPaymentGateway(approve=False, message='Card declined'),
        )

        bob_transaction.refresh_from_db()
        assert result.status == TransactionStatus.FAILED
        assert result.committed is False
        assert result.message == 'Card declined'
        assert bob_transaction.status == TransactionStatus.PENDING
        assert SplitDetail.objects.get(id=bob_transaction.split_detail_id).transaction_ref_id is None

    def test_declined_payment_can_be_retried(self, bob_transaction, bob):
        settle(bob_transaction, bob, gateway=SimulatedPaymentGateway(approve=False))

        result = settle(bob_transaction, bob)

        assert result.status == TransactionStatus.SUCCESS

    def test_sender_marks_failed(self, dinner, bob_transaction, bob):
        result = settle(bob_transaction, bob, status=TransactionStatus.FAILED, mode=None)

        bob_transaction.refresh_from_db()
        dinner.refresh_from_db()
        assert result.committed is True
        assert bob_transaction.status == TransactionStatus.FAILED
        assert SplitDetail.objects.get(id=bob_transaction.split_detail_id).transaction_ref_id is None
        assert dinner.is_settled is False

    def test_failed_is_terminal(self, bob_transaction, bob):
        assert bob_transaction.is_terminal is False
        settle(bob_transaction, bob, status=TransactionStatus.FAILED, mode=None)

        bob_transaction.refresh_from_db()
        assert bob_transaction.is_terminal is True
        with pytest.raises(TransactionAlreadySettledError):
            settle(bob_transaction, bob)


@pytest.mark.django_db
class TestTransactionQueries:

    def test_history_as_sender_and_receiver(self, dinner, alice, bob, outsider):
        assert get_user_transactions(user=alice).count() == 2
        assert get_user_transactions(user=bob).count() == 1
        assert get_user_transactions(user=outsider).count() == 0

    def test_history_filtered_by_status(self, bob_transaction, alice, bob):
        settle(bob_transaction, bob)

        settled = get_user_transactions(user=alice, status=TransactionStatus.SUCCESS)
        assert list(settled) == [bob_transaction]

    def test_recent_transactions_limit(self, make_expense, alice, bob):
        for i in range(12):
            make_expense(alice, [bob], total='10.00', description=f'Chai {i}')

        assert len(get_recent_transactions(user=bob)) == 10
        assert len(get_recent_transactions(user=bob, limit=3)) == 3
