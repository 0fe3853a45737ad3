import pytest
from decimal import Decimal

from apps.expenses.models import ExpenseCategory, SplitMethod
from apps.expenses.services import create_expense


@pytest.fixture
def make_expense(db):
    """Return a factory creating expenses through the ledger service."""
    def _make_expense(payer, participants, total='300.00', **kwargs):
        kwargs.setdefault('description', 'Dinner')
        kwargs.setdefault('split_method', SplitMethod.EQUAL)
        kwargs.setdefault('category', ExpenseCategory.FOOD)
        return create_expense(
            payer=payer,
            total_amount=Decimal(total),
            participant_ids=[user.id for user in participants],
            **kwargs,
        )
    return _make_expense


@pytest.fixture
def dinner(make_expense, alice, bob, carol, trip_group):
    """300.00 split equally between alice (payer), bob and carol."""
    expense, _ = make_expense(alice, [alice, bob, carol], group_id=trip_group.id)
    return expense


@pytest.fixture
def bob_transaction(dinner, bob):
    return dinner.transactions.get(sender=bob)


@pytest.fixture
def carol_transaction(dinner, carol):
    return dinner.transactions.get(sender=carol)
