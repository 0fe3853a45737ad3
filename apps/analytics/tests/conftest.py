import pytest
from decimal import Decimal

from apps.analytics.aggregator import BalanceAggregator
from apps.currency.services import CurrencyConverter, RateSnapshot
from apps.expenses.gateways import SimulatedPaymentGateway
from apps.expenses.models import ExpenseCategory, PaymentMode, SplitMethod, TransactionStatus
from apps.expenses.services import create_expense, settle_transaction


@pytest.fixture
def converter():
    """INR reporting converter: 1 INR = 0.0125 USD."""
    snapshot = RateSnapshot(
        base_currency='INR',
        rates={'INR': Decimal('1'), 'USD': Decimal('0.0125')},
        fetched_at=None,
        snapshot_id='test',
    )
    return CurrencyConverter(snapshot=snapshot, reporting_currency='INR')


@pytest.fixture
def aggregator(converter):
    return BalanceAggregator(converter=converter)


@pytest.fixture
def make_expense(db):
    def _make_expense(payer, participants, total, **kwargs):
        kwargs.setdefault('description', 'Dinner')
        kwargs.setdefault('split_method', SplitMethod.EQUAL)
        kwargs.setdefault('category', ExpenseCategory.FOOD)
        expense, _ = create_expense(
            payer=payer,
            total_amount=Decimal(total),
            participant_ids=[user.id for user in participants],
            **kwargs,
        )
        return expense
    return _make_expense


@pytest.fixture
def settle():
    """Settle a debtor's transaction on an expense."""
    def _settle(expense, debtor, mode=PaymentMode.UPI):
        txn = expense.transactions.get(sender=debtor)
        return settle_transaction(
            token=txn.settlement_token,
            status=TransactionStatus.SUCCESS,
            mode=mode,
            user=debtor,
            gateway=SimulatedPaymentGateway(),
        )
    return _settle


@pytest.fixture
def dinner(make_expense, alice, bob, carol, trip_group):
    """300.00 INR split equally between alice (payer), bob and carol."""
    return make_expense(alice, [alice, bob, carol], '300.00', group_id=trip_group.id)
