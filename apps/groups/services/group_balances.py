"""
Group balance service.

Read-only views over a group's ledger: who still owes whom, headline
totals and the transaction history. Only members may read them.
"""

from collections import defaultdict
from dataclasses import dataclass
from decimal import Decimal
from typing import Dict, List
from uuid import UUID

from django.db.models import Count, Q, Sum

from apps.accounts.models import User
from apps.expenses.models import Expense, SplitDetail, Transaction, TransactionStatus
from apps.groups.models import Group

from .exceptions import NotMemberError
from .group_management import get_group_by_id


ZERO = Decimal('0.00')


@dataclass(frozen=True)
class GroupOwe:
    """Net amount ``from_user`` still owes ``to_user`` in one currency."""

    from_user: User
    to_user: User
    amount: Decimal
    currency: str


def _member_group(group_id: UUID, user: User) -> Group:
    group = get_group_by_id(group_id=group_id)
    if not group.has_member(user):
        raise NotMemberError("You are not a member of this group")
    return group


def calculate_group_owes(*, group_id: UUID, user: User) -> List[GroupOwe]:
    """
    Net the group's open obligations into one debt per pair of people.

    An obligation is open while its split detail has no transaction
    reference and its transaction is still Pending. Debts in opposite
    directions cancel out; pairs that net to zero are dropped. Amounts in
    different currencies are never netted against each other.

    Returns:
        Debts ordered by amount, largest first.

    Raises:
        GroupNotFoundError: If group doesn't exist
        NotMemberError: If user is not a member
    """
    group = _member_group(group_id, user)

    open_splits = SplitDetail.objects.filter(
        expense__group=group,
        transaction_ref__isnull=True,
        transaction__status=TransactionStatus.PENDING,
    ).select_related('user', 'expense__payer')

    users: Dict[UUID, User] = {}
    # Keyed by (currency, low id, high id); positive means low owes high
    balances: Dict[tuple, Decimal] = defaultdict(lambda: ZERO)

    for split in open_splits:
        debtor, creditor = split.user, split.expense.payer
        users[debtor.id] = debtor
        users[creditor.id] = creditor

        low, high = sorted([debtor.id, creditor.id], key=str)
        signed = split.amount_owed if debtor.id == low else -split.amount_owed
        balances[(split.expense.currency, low, high)] += signed

    owes = []
    for (currency, low, high), amount in balances.items():
        if amount > 0:
            owes.append(GroupOwe(users[low], users[high], amount, currency))
        elif amount < 0:
            owes.append(GroupOwe(users[high], users[low], -amount, currency))

    owes.sort(key=lambda owe: (-owe.amount, owe.currency, owe.from_user.email))
    return owes


def get_group_stats(*, group_id: UUID, user: User) -> dict:
    """
    Headline numbers for a group.

    Totals are reported per currency: everything spent, the part of it on
    fully settled expenses, and what is still pending between members.
    Contributions list how much each payer has fronted.

    Raises:
        GroupNotFoundError: If group doesn't exist
        NotMemberError: If user is not a member
    """
    group = _member_group(group_id, user)
    expenses = Expense.objects.filter(group=group)

    spent = expenses.values('currency').annotate(
        total_amount=Sum('total_amount'),
        settled_amount=Sum('total_amount', filter=Q(is_settled=True)),
        expense_count=Count('id'),
    )
    pending = dict(
        Transaction.objects.filter(expense__group=group, status=TransactionStatus.PENDING)
        .values('currency')
        .annotate(total=Sum('amount'))
        .order_by()
        .values_list('currency', 'total')
    )

    totals = [
        {
            'currency': row['currency'],
            'total_amount': row['total_amount'],
            'settled_amount': row['settled_amount'] or ZERO,
            'pending_amount': pending.get(row['currency']) or ZERO,
            'expense_count': row['expense_count'],
        }
        for row in spent.order_by('currency')
    ]

    fronted = list(
        expenses.values('payer_id', 'currency')
        .annotate(amount=Sum('total_amount'))
        .order_by('-amount', 'currency')
    )
    # Former members keep their contributions
    payers = User.objects.in_bulk({row['payer_id'] for row in fronted})
    contributions = [
        {'user': payers[row['payer_id']], 'currency': row['currency'], 'amount': row['amount']}
        for row in fronted
    ]

    return {
        'member_count': group.memberships.count(),
        'expense_count': expenses.count(),
        'settled_expense_count': expenses.filter(is_settled=True).count(),
        'totals': totals,
        'contributions': contributions,
    }


def get_group_transactions(*, group_id: UUID, user: User) -> Dict[str, List[Transaction]]:
    """
    Transactions of the group's expenses grouped by status, newest first.

    Raises:
        GroupNotFoundError: If group doesn't exist
        NotMemberError: If user is not a member
    """
    group = _member_group(group_id, user)

    transactions = Transaction.objects.filter(
        expense__group=group
    ).select_related('sender', 'receiver', 'expense').order_by('-created_at')

    grouped = {'completed': [], 'pending': [], 'failed': []}
    keys = {
        TransactionStatus.SUCCESS: 'completed',
        TransactionStatus.PENDING: 'pending',
        TransactionStatus.FAILED: 'failed',
    }
    for txn in transactions:
        grouped[keys[txn.status]].append(txn)
    return grouped
