"""
Expense ledger service.

Creates expenses together with their split details and one Pending
transaction per debtor, all inside a single database transaction, and
handles expense reads and deletion.
"""

import logging
from decimal import Decimal, InvalidOperation
from typing import List, Optional, Sequence, Tuple
from uuid import UUID

from django.conf import settings
from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import transaction
from django.db.models import Prefetch, Q, QuerySet

from apps.accounts.models import User
from apps.accounts.services import resolve_users
from apps.currency.services import normalize_currency_code
from apps.expenses.models import (
    DESCRIPTION_MAX_LENGTH,
    Expense,
    ExpenseCategory,
    SplitDetail,
    SplitMethod,
    Transaction,
    TransactionStatus,
)
from apps.expenses.signals import expense_created
from apps.groups.services import get_group_by_id, touch_group_activity, NotMemberError

from .exceptions import (
    DuplicateExpenseError,
    ExpenseHasSettlementsError,
    ExpenseNotFoundError,
    InvalidExpenseError,
    InvalidSplitError,
    NotExpensePayerError,
)
from .split_calculator import CENTS, compute_split


logger = logging.getLogger(__name__)


def _expense_queryset() -> QuerySet:
    return (
        Expense.objects
        .select_related('payer', 'group')
        .prefetch_related(
            'participants',
            Prefetch(
                'split_details',
                queryset=SplitDetail.objects.select_related('user').order_by('position')
            ),
        )
    )


def _clean_amount(total_amount) -> Decimal:
    try:
        amount = Decimal(str(total_amount))
    except (InvalidOperation, TypeError, ValueError):
        raise InvalidExpenseError(f"Invalid amount: {total_amount}")
    if not amount.is_finite() or amount <= 0:
        raise InvalidExpenseError('Amount must be greater than zero')
    if amount != amount.quantize(CENTS):
        raise InvalidExpenseError('Amount cannot have more than 2 decimal places')
    return amount


def _clean_description(description) -> str:
    description = (description or '').strip()
    if not description:
        raise InvalidExpenseError('Description is required')
    if len(description) > DESCRIPTION_MAX_LENGTH:
        raise InvalidExpenseError(
            f"Description cannot be longer than {DESCRIPTION_MAX_LENGTH} characters"
        )
    return description


def _normalize_split_inputs(split_inputs) -> Optional[List[dict]]:
    if not split_inputs:
        return None
    normalized = []
    for entry in split_inputs:
        try:
            user_id = UUID(str(entry['user_id']))
        except (KeyError, TypeError, ValueError):
            raise InvalidSplitError(f"Invalid user ID in split inputs: {entry.get('user_id')}")
        normalized.append({**entry, 'user_id': user_id})
    return normalized


def _find_duplicate(*, payer, total, description, split_method, group, debtor_ids) -> Optional[Expense]:
    candidates = (
        Expense.objects
        .filter(
            payer=payer,
            total_amount=total,
            description=description,
            split_method=split_method,
            group=group,
        )
        .prefetch_related('participants')
    )
    for candidate in candidates:
        if {user.id for user in candidate.participants.all()} == debtor_ids:
            return candidate
    return None


@transaction.atomic
def create_expense(
    *,
    payer: User,
    total_amount,
    description: str,
    participant_ids: Sequence,
    split_method: str,
    category: str = ExpenseCategory.MISCELLANEOUS,
    currency: Optional[str] = None,
    split_inputs: Optional[Sequence[dict]] = None,
    group_id: Optional[UUID] = None,
) -> Tuple[Expense, List[Transaction]]:
    """
    Create an expense and its obligations.

    The split is computed over the participants exactly as listed; when
    the payer is one of them their share is kept as ``payer_share`` and no
    obligation is created for it. Every other participant gets a split
    detail and a Pending transaction towards the payer.

    Args:
        payer: User who paid
        total_amount: Positive amount with cent precision
        description: Short label (1..30 chars)
        participant_ids: Ordered user IDs to split among; may include the payer
        split_method: SplitMethod value
        category: ExpenseCategory value
        currency: ISO code, defaults to the reporting currency
        split_inputs: Percentages or amounts per participant
        group_id: Optional group the expense belongs to

    Returns:
        Tuple of (Expense, list of Transactions)

    Raises:
        InvalidExpenseError: On bad amount, description, category or people
        InvalidSplitError: If the split inputs do not add up
        UserNotFoundError: If a participant does not exist
        GroupNotFoundError: If the group does not exist
        DuplicateExpenseError: If the same expense was already recorded
    """
    total = _clean_amount(total_amount)
    description = _clean_description(description)
    currency = normalize_currency_code(currency, default=settings.REPORTING_CURRENCY)

    if category not in ExpenseCategory.values:
        raise InvalidExpenseError(f"Unsupported category: {category}")
    if split_method not in SplitMethod.values:
        raise InvalidSplitError(f"Unsupported split method: {split_method}")

    participants = resolve_users(user_ids=participant_ids or [])
    debtors = [user for user in participants if user.id != payer.id]
    if not debtors:
        raise InvalidExpenseError('An expense needs at least two distinct people, including the payer')

    group = None
    if group_id is not None:
        group = get_group_by_id(group_id=group_id)
        if not group.has_member(payer):
            raise InvalidExpenseError('The payer must be a member of the group')

    shares = compute_split(
        split_method,
        total,
        [user.id for user in participants],
        _normalize_split_inputs(split_inputs),
    )
    payer_share = sum(
        (share.amount_owed for share in shares if share.user_id == payer.id),
        Decimal('0.00'),
    )
    debtor_shares = [share for share in shares if share.user_id != payer.id]
    for share in debtor_shares:
        if share.amount_owed <= 0:
            raise InvalidSplitError('Every participant other than the payer must owe a positive amount')

    # Serializes concurrent submissions by the same payer
    User.objects.select_for_update().get(pk=payer.pk)

    debtor_ids = {user.id for user in debtors}
    duplicate = _find_duplicate(
        payer=payer,
        total=total,
        description=description,
        split_method=split_method,
        group=group,
        debtor_ids=debtor_ids,
    )
    if duplicate is not None:
        raise DuplicateExpenseError(
            f"An identical expense already exists (id {duplicate.id})"
        )

    expense = Expense.objects.create(
        payer=payer,
        group=group,
        total_amount=total,
        currency=currency,
        description=description,
        category=category,
        split_method=split_method,
        payer_share=payer_share,
    )
    expense.participants.set(debtors)

    users_by_id = {user.id: user for user in debtors}
    transactions = []
    for position, share in enumerate(debtor_shares):
        detail = SplitDetail.objects.create(
            expense=expense,
            position=position,
            user=users_by_id[share.user_id],
            amount_owed=share.amount_owed,
            percentage=share.percentage,
        )
        transactions.append(Transaction.objects.create(
            expense=expense,
            split_detail=detail,
            sender=detail.user,
            receiver=payer,
            amount=share.amount_owed,
            currency=currency,
            status=TransactionStatus.PENDING,
        ))

    if group is not None:
        touch_group_activity(group_id=group.id)

    logger.info(
        "Expense %s created by %s: %s %s split %s among %d debtor(s)",
        expense.id, payer.id, total, currency, split_method, len(transactions),
    )

    transaction.on_commit(
        lambda: expense_created.send(sender=Expense, expense=expense, transactions=transactions)
    )
    return expense, transactions


@transaction.atomic
def delete_expense(*, expense_id: UUID, user: User) -> None:
    """
    Delete an expense and its transactions (payer only).

    Raises:
        ExpenseNotFoundError: If expense doesn't exist
        NotExpensePayerError: If user is not the payer
        ExpenseHasSettlementsError: If any obligation was already paid
    """
    try:
        expense = Expense.objects.select_for_update().get(id=expense_id)
    except (Expense.DoesNotExist, ValueError, DjangoValidationError):
        raise ExpenseNotFoundError(f"Expense with ID {expense_id} not found")

    if expense.payer_id != user.id:
        raise NotExpensePayerError('Only the payer can delete this expense')

    settled = (
        expense.split_details.filter(transaction_ref__isnull=False).exists()
        or expense.transactions.filter(status=TransactionStatus.SUCCESS).exists()
    )
    if settled:
        raise ExpenseHasSettlementsError()

    expense.delete()
    logger.info("Expense %s deleted by %s", expense_id, user.id)


def _can_view(expense: Expense, user: User) -> bool:
    if expense.payer_id == user.id:
        return True
    if any(participant.id == user.id for participant in expense.participants.all()):
        return True
    return expense.group is not None and expense.group.has_member(user)


def get_expense_by_id(*, expense_id: UUID, user: Optional[User] = None) -> Expense:
    """
    Get an expense with payer, participants and split details loaded.

    When ``user`` is given the expense must involve them (as payer,
    participant or fellow group member).

    Raises:
        ExpenseNotFoundError: If missing or not visible to the user
    """
    try:
        expense = _expense_queryset().get(id=expense_id)
    except (Expense.DoesNotExist, ValueError, DjangoValidationError):
        raise ExpenseNotFoundError(f"Expense with ID {expense_id} not found")

    if user is not None and not _can_view(expense, user):
        raise ExpenseNotFoundError(f"Expense with ID {expense_id} not found")
    return expense


def get_user_expenses(*, user: User) -> QuerySet:
    """Expenses the user paid for or participates in, newest first."""
    return (
        _expense_queryset()
        .filter(Q(payer=user) | Q(participants=user))
        .distinct()
        .order_by('-created_at')
    )


def get_group_expenses(*, group_id: UUID, user: User) -> QuerySet:
    """
    Expenses recorded in a group, newest first.

    Raises:
        GroupNotFoundError: If group doesn't exist
        NotMemberError: If user is not a member
    """
    group = get_group_by_id(group_id=group_id)
    if not group.has_member(user):
        raise NotMemberError()
    return _expense_queryset().filter(group=group).order_by('-created_at')


def get_recent_expenses(*, user: User, limit: int = 5) -> List[Expense]:
    return list(get_user_expenses(user=user)[:limit])
