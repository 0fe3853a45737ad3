"""
Balance Aggregator
==================

Read-only computations of a user's financial position across expenses,
transactions and groups. Nothing here writes to the database.

Classes:
    BalanceAggregator: Dashboard, summary, breakdown and recent activity.

Exposure:
    A user's exposure to an expense is the part of it that belongs to
    them, never the full total:

    - participant: their own split detail amount
    - payer who also took a share: ``payer_share``
    - payer who did not take a share: what debtors still owe them

Example:
    Dashboard figures in the reporting currency::

        from apps.analytics.aggregator import BalanceAggregator

        stats = BalanceAggregator().compute_dashboard(user)
        print(f"Pending: {stats['pending_payments']} {stats['currency']}")

Note:
    One CurrencyConverter (one rate snapshot) is used per aggregator, so
    every figure of a response is converted with the same rates.
"""

from collections import defaultdict
from decimal import Decimal, ROUND_HALF_UP

from django.db.models import Prefetch, Q
from django.utils import timezone

from apps.currency.services import get_rate_service, normalize_currency_code
from apps.expenses.models import (
    Expense,
    ExpenseCategory,
    SplitDetail,
    Transaction,
    TransactionStatus,
)
from apps.groups.models import GroupMembership


ZERO = Decimal('0.00')
CENTS = Decimal('0.01')

STATUS_LABELS = {
    TransactionStatus.PENDING: 'Pending',
    TransactionStatus.SUCCESS: 'Settled',
    TransactionStatus.FAILED: 'Failed',
}


def _money(value) -> Decimal:
    return Decimal(value).quantize(CENTS, rounding=ROUND_HALF_UP)


def _category_buckets():
    return {category: ZERO for category in ExpenseCategory.values}


def _rounded(buckets):
    return {key: _money(value) for key, value in buckets.items()}


class BalanceAggregator:
    """
    Aggregate a user's expenses and transactions.

    Args:
        converter (CurrencyConverter, optional): Converter to normalize
            amounts. Defaults to one built from the current rate snapshot.
    """

    def __init__(self, converter=None):
        self.converter = converter or get_rate_service().converter()

    @property
    def reporting_currency(self):
        return self.converter.reporting_currency

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    @staticmethod
    def _user_expenses(user):
        return (
            Expense.objects
            .filter(Q(payer=user) | Q(split_details__user=user))
            .distinct()
            .prefetch_related(
                Prefetch('split_details', queryset=SplitDetail.objects.order_by('position'))
            )
        )

    @staticmethod
    def _exposure(expense, user):
        """
        Return ``(settled, pending)`` parts of the user's exposure.

        Amounts are in the expense currency.
        """
        details = list(expense.split_details.all())

        if expense.payer_id == user.id:
            if expense.payer_share > 0:
                return expense.payer_share, ZERO
            outstanding = sum(
                (detail.amount_owed for detail in details if detail.transaction_ref_id is None),
                ZERO,
            )
            return ZERO, outstanding

        for detail in details:
            if detail.user_id == user.id:
                if detail.transaction_ref_id is not None:
                    return detail.amount_owed, ZERO
                return ZERO, detail.amount_owed
        return ZERO, ZERO

    def _transaction_totals(self, user):
        pending = ZERO
        settled = ZERO
        sent = Transaction.objects.filter(
            sender=user,
            status__in=[TransactionStatus.PENDING, TransactionStatus.SUCCESS],
        ).only('amount', 'currency', 'status')
        for txn in sent:
            amount = self.converter.to_reporting_currency(txn.amount, txn.currency)
            if txn.status == TransactionStatus.PENDING:
                pending += amount
            else:
                settled += amount
        return pending, settled

    # -------------------------------------------------------------------------
    # Public API
    # -------------------------------------------------------------------------

    def compute_dashboard(self, user):
        """
        Headline figures for a user, in the reporting currency.

        Returns:
            dict: A dictionary containing:
                - total_expenses (Decimal): Sum of the user's exposure.
                - pending_payments (Decimal): Unpaid transactions the user owes.
                - settled_payments (Decimal): Transactions the user has paid.
                - total_groups (int): Groups the user belongs to.
                - total_members (int): Distinct other people in those groups.
                - group_expenses (Decimal): Full totals of expenses in those groups.
                - currency (str): The reporting currency.
        """
        total_expenses = ZERO
        for expense in self._user_expenses(user):
            settled, pending = self._exposure(expense, user)
            total_expenses += self.converter.to_reporting_currency(settled + pending, expense.currency)

        pending_payments, settled_payments = self._transaction_totals(user)

        group_ids = list(
            GroupMembership.objects.filter(user=user).values_list('group_id', flat=True)
        )
        total_members = (
            GroupMembership.objects
            .filter(group_id__in=group_ids)
            .exclude(user=user)
            .values('user_id')
            .distinct()
            .count()
        )

        group_expenses = ZERO
        for amount, currency in Expense.objects.filter(group_id__in=group_ids).values_list('total_amount', 'currency'):
            group_expenses += self.converter.to_reporting_currency(amount, currency)

        return {
            'total_expenses': _money(total_expenses),
            'pending_payments': _money(pending_payments),
            'settled_payments': _money(settled_payments),
            'total_groups': len(group_ids),
            'total_members': total_members,
            'group_expenses': _money(group_expenses),
            'currency': self.reporting_currency,
        }

    def compute_summary(self, user):
        """
        Per-currency totals without conversion.

        Returns:
            dict: currency code -> {total_expenses, total_pending,
            total_settled}. The reporting currency is always present.
        """
        summary = defaultdict(lambda: {
            'total_expenses': ZERO,
            'total_pending': ZERO,
            'total_settled': ZERO,
        })
        summary[self.reporting_currency]  # always reported

        for expense in self._user_expenses(user):
            settled, pending = self._exposure(expense, user)
            summary[expense.currency]['total_expenses'] += settled + pending

        sent = Transaction.objects.filter(
            sender=user,
            status__in=[TransactionStatus.PENDING, TransactionStatus.SUCCESS],
        ).values_list('amount', 'currency', 'status')
        for amount, currency, status in sent:
            key = 'total_pending' if status == TransactionStatus.PENDING else 'total_settled'
            summary[currency][key] += amount

        return {currency: _rounded(totals) for currency, totals in summary.items()}

    def compute_breakdown(self, user, target_currency=None):
        """
        Exposure bucketed by category and by calendar month.

        Settled and pending parts are also reported separately, so
        ``by_category == pending_by_category + settled_by_category`` per key.

        Args:
            user (User): The user to analyze.
            target_currency (str, optional): Currency of the output.
                Defaults to the user's preferred currency.

        Returns:
            dict: by_category, by_month, pending_by_category,
            settled_by_category, pending_by_month, settled_by_month and
            currency. Months are ``YYYY-MM`` keys.

        Raises:
            InvalidCurrencyError: If target_currency is not an ISO code.
        """
        target = normalize_currency_code(
            target_currency,
            default=getattr(user, 'preferred_currency', None) or self.reporting_currency,
        )

        by_category = _category_buckets()
        pending_by_category = _category_buckets()
        settled_by_category = _category_buckets()
        by_month = defaultdict(lambda: ZERO)
        pending_by_month = defaultdict(lambda: ZERO)
        settled_by_month = defaultdict(lambda: ZERO)

        for expense in self._user_expenses(user):
            settled, pending = self._exposure(expense, user)
            if not settled and not pending:
                continue
            if settled:
                settled = self.converter.convert(settled, expense.currency, target)
            if pending:
                pending = self.converter.convert(pending, expense.currency, target)
            month = timezone.localtime(expense.created_at).strftime('%Y-%m')

            by_category[expense.category] += settled + pending
            pending_by_category[expense.category] += pending
            settled_by_category[expense.category] += settled
            by_month[month] += settled + pending
            pending_by_month[month] += pending
            settled_by_month[month] += settled

        return {
            'currency': target,
            'by_category': _rounded(by_category),
            'by_month': _rounded(dict(sorted(by_month.items()))),
            'pending_by_category': _rounded(pending_by_category),
            'settled_by_category': _rounded(settled_by_category),
            'pending_by_month': _rounded(dict(sorted(pending_by_month.items()))),
            'settled_by_month': _rounded(dict(sorted(settled_by_month.items()))),
        }

    def recent_transactions(self, user, limit=10):
        """
        Latest transactions the user sent or received.

        Amounts are converted to the reporting currency; the payment mode
        is only shown once a transaction is settled.
        """
        transactions = (
            Transaction.objects
            .filter(Q(sender=user) | Q(receiver=user))
            .select_related('sender', 'receiver', 'expense')
            .order_by('-created_at')[:limit]
        )

        results = []
        for txn in transactions:
            outgoing = txn.sender_id == user.id
            counterparty = txn.receiver if outgoing else txn.sender
            results.append({
                'token': txn.settlement_token,
                'description': txn.expense.description,
                'direction': 'sent' if outgoing else 'received',
                'counterparty': counterparty.get_display_name(),
                'amount': _money(self.converter.to_reporting_currency(txn.amount, txn.currency)),
                'original_amount': txn.amount,
                'original_currency': txn.currency,
                'status': STATUS_LABELS[txn.status],
                'mode': txn.mode if txn.status == TransactionStatus.SUCCESS else None,
                'created_at': txn.created_at,
            })
        return results
