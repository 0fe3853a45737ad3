"""
Transaction settlement service.

A transaction moves from Pending to Success or Failed exactly once. A
Success request first claims the Pending row with ``select_for_update``
and only then charges the payment gateway, so a transaction that is
already settled, or being settled, is never charged again. Marking
Success also records the transaction on its split detail slot and, once
every slot of the expense is referenced, marks the expense settled; all
three writes share one database transaction.
"""

import logging
from dataclasses import dataclass
from typing import List, Optional

from django.db import transaction
from django.db.models import Q, QuerySet
from django.utils import timezone

from apps.accounts.models import User
from apps.expenses.gateways import PaymentGateway, get_payment_gateway
from apps.expenses.models import (
    Expense,
    PaymentMode,
    SplitDetail,
    Transaction,
    TransactionStatus,
)
from apps.expenses.signals import expense_settled, transaction_settled

from .exceptions import (
    InvalidSettlementError,
    NotTransactionSenderError,
    TransactionAlreadySettledError,
    TransactionNotFoundError,
)


logger = logging.getLogger(__name__)

TERMINAL_STATUSES = (TransactionStatus.SUCCESS, TransactionStatus.FAILED)


@dataclass(frozen=True)
class SettlementResult:
    """
    Outcome of a settle request.

    ``committed`` is False when the payment gateway declined: the
    transaction is still Pending and ``status`` reports Failed.
    """

    transaction: Transaction
    status: str
    committed: bool
    expense_settled: bool = False
    message: str = ''
    gateway_reference: str = ''


def get_transaction_by_token(*, token: str) -> Transaction:
    """
    Resolve a transaction by its settlement token.

    Raises:
        TransactionNotFoundError: If no transaction has this token
    """
    try:
        return (
            Transaction.objects
            .select_related('sender', 'receiver', 'expense')
            .get(settlement_token=token)
        )
    except Transaction.DoesNotExist:
        raise TransactionNotFoundError()


def _validate_request(status, mode):
    if status not in TERMINAL_STATUSES:
        raise InvalidSettlementError(
            f"Status must be one of {', '.join(TERMINAL_STATUSES)}, got {status!r}"
        )
    if status == TransactionStatus.SUCCESS and not mode:
        raise InvalidSettlementError('Payment mode is required to settle a transaction')
    if mode and mode not in PaymentMode.values:
        raise InvalidSettlementError(
            f"Payment mode must be one of {', '.join(PaymentMode.values)}, got {mode!r}"
        )


def _claim_pending(txn: Transaction) -> Transaction:
    """Lock the transaction row, provided it is still Pending."""
    try:
        return (
            Transaction.objects
            .select_for_update()
            .get(pk=txn.pk, status=TransactionStatus.PENDING)
        )
    except Transaction.DoesNotExist:
        raise TransactionAlreadySettledError()


def _transition(txn: Transaction, status: str, mode: Optional[str]) -> None:
    updated = Transaction.objects.filter(
        pk=txn.pk,
        status=TransactionStatus.PENDING,
    ).update(status=status, mode=mode or None, updated_at=timezone.now())
    if not updated:
        raise TransactionAlreadySettledError()


def settle_transaction(
    *,
    token: str,
    status: str,
    mode: Optional[str],
    user: User,
    gateway: Optional[PaymentGateway] = None,
) -> SettlementResult:
    """
    Settle a transaction as its sender.

    Args:
        token: Settlement token of the transaction
        status: Requested terminal status (Success or Failed)
        mode: PaymentMode value; required for Success
        user: Requesting user, must be the sender
        gateway: Payment gateway; defaults to PAYMENT_GATEWAY_BACKEND

    Returns:
        SettlementResult

    Raises:
        InvalidSettlementError: If status or mode is not allowed
        TransactionNotFoundError: If the token is unknown
        NotTransactionSenderError: If user is not the sender
        TransactionAlreadySettledError: If the transaction is terminal,
            including when a concurrent request settled it first
    """
    _validate_request(status, mode)

    txn = get_transaction_by_token(token=token)
    if txn.sender_id != user.id:
        raise NotTransactionSenderError()
    if txn.is_terminal:
        raise TransactionAlreadySettledError(f"Transaction is already {txn.status}")

    if status == TransactionStatus.FAILED:
        with transaction.atomic():
            _transition(txn, TransactionStatus.FAILED, mode)
        txn.refresh_from_db()
        logger.info("Transaction %s marked Failed by sender %s", txn.id, user.id)
        return SettlementResult(transaction=txn, status=TransactionStatus.FAILED, committed=True)

    gateway = gateway or get_payment_gateway()
    with transaction.atomic():
        expense = Expense.objects.select_for_update().get(pk=txn.expense_id)
        claimed = _claim_pending(txn)

        # The row stays locked until the charge outcome is recorded
        outcome = gateway.charge(transaction=claimed, mode=mode)
        if not outcome.approved:
            logger.info("Payment for transaction %s declined: %s", txn.id, outcome.message)
            return SettlementResult(
                transaction=txn,
                status=TransactionStatus.FAILED,
                committed=False,
                message=outcome.message,
                gateway_reference=outcome.reference,
            )

        _transition(claimed, TransactionStatus.SUCCESS, mode)

        SplitDetail.objects.filter(
            pk=txn.split_detail_id,
            transaction_ref__isnull=True,
        ).update(transaction_ref=txn.pk)

        became_settled = not expense.is_settled and expense.refresh_settled_status()

        txn.refresh_from_db()
        transaction.on_commit(
            lambda: transaction_settled.send(sender=Transaction, transaction=txn, expense=expense)
        )
        if became_settled:
            transaction.on_commit(
                lambda: expense_settled.send(sender=Expense, expense=expense)
            )

    logger.info(
        "Transaction %s settled via %s (gateway ref %s)%s",
        txn.id, mode, outcome.reference,
        '; expense fully settled' if became_settled else '',
    )
    return SettlementResult(
        transaction=txn,
        status=TransactionStatus.SUCCESS,
        committed=True,
        expense_settled=became_settled,
        gateway_reference=outcome.reference,
    )


def get_user_transactions(*, user: User, status: Optional[str] = None) -> QuerySet:
    """Transactions where the user is sender or receiver, newest first."""
    queryset = (
        Transaction.objects
        .filter(Q(sender=user) | Q(receiver=user))
        .select_related('sender', 'receiver', 'expense')
        .order_by('-created_at')
    )
    if status:
        queryset = queryset.filter(status=status)
    return queryset


def get_recent_transactions(*, user: User, limit: int = 10) -> List[Transaction]:
    return list(get_user_transactions(user=user)[:limit])
