"""
Split calculator.

Turns an amount, a split method and an ordered participant list into
per-participant obligations. Pure: no database access.

All money math happens in integer minor units (cents) so the computed
shares always add up to the total exactly. Remainder cents go one each
to the shares with the largest fractional part, so equal shares favour
the first participants in the given order:

    >>> compute_split(SplitMethod.EQUAL, Decimal('100.00'), [a, b, c])
    [SplitShare(a, Decimal('33.34'), Decimal('33.33')),
     SplitShare(b, Decimal('33.33'), Decimal('33.33')),
     SplitShare(c, Decimal('33.33'), Decimal('33.33'))]
"""

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Dict, Hashable, List, Optional, Sequence

from apps.expenses.models import SplitMethod

from .exceptions import InvalidSplitError


CENTS = Decimal('0.01')
HUNDRED = Decimal('100')

# Accepted deviation of user-supplied percentages/amounts from their target
PERCENTAGE_TOLERANCE = Decimal('0.01')
AMOUNT_TOLERANCE = Decimal('0.01')


@dataclass(frozen=True)
class SplitShare:
    user_id: Hashable
    amount_owed: Decimal
    percentage: Decimal


def _to_decimal(value, label) -> Decimal:
    if isinstance(value, float):
        value = str(value)
    try:
        result = Decimal(value)
    except (InvalidOperation, TypeError, ValueError):
        raise InvalidSplitError(f"{label} must be a number, got {value!r}")
    if not result.is_finite():
        raise InvalidSplitError(f"{label} must be a finite number")
    return result


def _to_cents(amount: Decimal) -> int:
    return int((amount * 100).to_integral_value(rounding=ROUND_HALF_UP))


def _from_cents(cents: int) -> Decimal:
    return (Decimal(cents) / 100).quantize(CENTS)


def _display_percentage(part_cents: int, total_cents: int) -> Decimal:
    return (Decimal(part_cents) * HUNDRED / Decimal(total_cents)).quantize(CENTS, rounding=ROUND_HALF_UP)


def _distribute(total_cents: int, weights: Sequence[Decimal]) -> List[int]:
    """
    Split ``total_cents`` proportionally to ``weights``.

    Each share is floored; leftover cents go one each to the shares with
    the largest fractional part, earlier participants first on ties. A
    zero weight never receives a cent.
    """
    weight_sum = sum(weights)
    exact = [Decimal(total_cents) * weight / weight_sum for weight in weights]
    shares = [int(value) for value in exact]
    remainder = total_cents - sum(shares)
    by_fraction = sorted(
        range(len(shares)),
        key=lambda i: (-(exact[i] - shares[i]), i),
    )
    for i in by_fraction[:remainder]:
        shares[i] += 1
    return shares


def _inputs_by_user(participant_ids, split_inputs, key) -> Dict[Hashable, Decimal]:
    if not split_inputs:
        raise InvalidSplitError(f"Split inputs with '{key}' are required for this split method")

    values = {}
    for entry in split_inputs:
        user_id = entry.get('user_id')
        if user_id in values:
            raise InvalidSplitError(f"Duplicate split input for user {user_id}")
        if key not in entry or entry[key] is None:
            raise InvalidSplitError(f"Split input for user {user_id} is missing '{key}'")
        values[user_id] = _to_decimal(entry[key], key.capitalize())

    expected = set(participant_ids)
    provided = set(values)
    if provided != expected:
        missing = expected - provided
        extra = provided - expected
        parts = []
        if missing:
            parts.append(f"missing {', '.join(sorted(map(str, missing)))}")
        if extra:
            parts.append(f"unexpected {', '.join(sorted(map(str, extra)))}")
        raise InvalidSplitError(
            f"Split inputs must cover exactly the participants ({'; '.join(parts)})"
        )

    for user_id, value in values.items():
        if value < 0:
            raise InvalidSplitError(f"{key.capitalize()} for user {user_id} cannot be negative")
    return values


def compute_split(
    method: str,
    total_amount,
    participant_ids: Sequence[Hashable],
    split_inputs: Optional[Sequence[dict]] = None,
) -> List[SplitShare]:
    """
    Divide ``total_amount`` among ``participant_ids``.

    Args:
        method: One of SplitMethod values
        total_amount: Positive amount with at most cent precision
        participant_ids: Ordered, distinct participant identifiers
        split_inputs: For Percentage, ``[{'user_id', 'percentage'}]``;
            for Custom, ``[{'user_id', 'amount'}]``. Must cover exactly
            the participants.

    Returns:
        One SplitShare per participant, in participant order

    Raises:
        InvalidSplitError: On a non-positive total, empty or duplicate
            participants, unknown method, or inputs that do not add up
    """
    total = _to_decimal(total_amount, 'Total amount')
    if total <= 0:
        raise InvalidSplitError('Total amount must be greater than zero')
    if total != total.quantize(CENTS):
        raise InvalidSplitError('Total amount cannot have more than 2 decimal places')

    participant_ids = list(participant_ids)
    if not participant_ids:
        raise InvalidSplitError('At least one participant is required')
    if len(set(participant_ids)) != len(participant_ids):
        raise InvalidSplitError('Participants must be distinct')

    total_cents = _to_cents(total)

    if method == SplitMethod.EQUAL:
        cents = _distribute(total_cents, [Decimal(1)] * len(participant_ids))
        percentage = (HUNDRED / len(participant_ids)).quantize(CENTS, rounding=ROUND_HALF_UP)
        return [
            SplitShare(user_id, _from_cents(share), percentage)
            for user_id, share in zip(participant_ids, cents)
        ]

    if method == SplitMethod.PERCENTAGE:
        percentages = _inputs_by_user(participant_ids, split_inputs, 'percentage')
        percentage_sum = sum(percentages.values())
        if abs(percentage_sum - HUNDRED) > PERCENTAGE_TOLERANCE:
            raise InvalidSplitError(f"Percentages must add up to 100, got {percentage_sum}")
        weights = [percentages[user_id] for user_id in participant_ids]
        if not any(weights):
            raise InvalidSplitError('At least one percentage must be greater than zero')
        cents = _distribute(total_cents, weights)
        return [
            SplitShare(user_id, _from_cents(share), percentages[user_id].quantize(CENTS, rounding=ROUND_HALF_UP))
            for user_id, share in zip(participant_ids, cents)
        ]

    if method == SplitMethod.CUSTOM:
        amounts = _inputs_by_user(participant_ids, split_inputs, 'amount')
        amount_sum = sum(amounts.values())
        if abs(amount_sum - total) > AMOUNT_TOLERANCE:
            raise InvalidSplitError(
                f"Custom amounts must add up to the total {total}, got {amount_sum}"
            )
        cents = [_to_cents(amounts[user_id]) for user_id in participant_ids]
        # Absorb rounding drift into the first non-zero share
        drift = total_cents - sum(cents)
        if drift:
            index = next((i for i, share in enumerate(cents) if share), 0)
            cents[index] += drift
        return [
            SplitShare(user_id, _from_cents(share), _display_percentage(share, total_cents))
            for user_id, share in zip(participant_ids, cents)
        ]

    raise InvalidSplitError(f"Unsupported split method: {method}")
