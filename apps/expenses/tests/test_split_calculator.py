import pytest
from decimal import Decimal

from apps.expenses.models import SplitMethod
from apps.expenses.services import InvalidSplitError, compute_split


def amounts(shares):
    return [share.amount_owed for share in shares]


class TestEqualSplit:

    def test_even_split(self):
        shares = compute_split(SplitMethod.EQUAL, Decimal('300.00'), ['a', 'b', 'c'])

        assert amounts(shares) == [Decimal('100.00')] * 3
        assert [share.user_id for share in shares] == ['a', 'b', 'c']
        assert shares[0].percentage == Decimal('33.33')

    def test_remainder_cents_go_to_first_participants(self):
        shares = compute_split(SplitMethod.EQUAL, Decimal('100.00'), ['a', 'b', 'c'])

        assert amounts(shares) == [Decimal('33.34'), Decimal('33.33'), Decimal('33.33')]
        assert sum(amounts(shares)) == Decimal('100.00')

    @pytest.mark.parametrize('total,count', [
        ('0.01', 2),
        ('10.00', 3),
        ('999.99', 7),
        ('1234.56', 11),
    ])
    def test_shares_add_up_to_total(self, total, count):
        participants = [f'user-{i}' for i in range(count)]
        shares = compute_split(SplitMethod.EQUAL, Decimal(total), participants)

        assert sum(amounts(shares)) == Decimal(total)

    def test_single_participant_owes_everything(self):
        shares = compute_split(SplitMethod.EQUAL, Decimal('42.50'), ['a'])

        assert amounts(shares) == [Decimal('42.50')]
        assert shares[0].percentage == Decimal('100.00')


class TestPercentageSplit:

    def test_percentage_split(self):
        shares = compute_split(
            SplitMethod.PERCENTAGE,
            Decimal('500.00'),
            ['a', 'b'],
            [{'user_id': 'a', 'percentage': 60}, {'user_id': 'b', 'percentage': 40}],
        )

        assert amounts(shares) == [Decimal('300.00'), Decimal('200.00')]
        assert [share.percentage for share in shares] == [Decimal('60.00'), Decimal('40.00')]

    def test_percentages_not_adding_to_100_rejected(self):
        with pytest.raises(InvalidSplitError, match='add up to 100'):
            compute_split(
                SplitMethod.PERCENTAGE,
                Decimal('500.00'),
                ['a', 'b'],
                [{'user_id': 'a', 'percentage': 60}, {'user_id': 'b', 'percentage': 30}],
            )

    def test_thirds_within_tolerance_keep_exact_total(self):
        shares = compute_split(
            SplitMethod.PERCENTAGE,
            Decimal('100.00'),
            ['a', 'b', 'c'],
            [
                {'user_id': 'a', 'percentage': Decimal('33.33')},
                {'user_id': 'b', 'percentage': Decimal('33.33')},
                {'user_id': 'c', 'percentage': Decimal('33.33')},
            ],
        )

        assert sum(amounts(shares)) == Decimal('100.00')

    @pytest.mark.parametrize('total', ['0.05', '100.01'])
    def test_zero_percentage_never_receives_remainder_cents(self, total):
        shares = compute_split(
            SplitMethod.PERCENTAGE,
            Decimal(total),
            ['a', 'b', 'c', 'd'],
            [
                {'user_id': 'a', 'percentage': 0},
                {'user_id': 'b', 'percentage': Decimal('33.33')},
                {'user_id': 'c', 'percentage': Decimal('33.33')},
                {'user_id': 'd', 'percentage': Decimal('33.34')},
            ],
        )

        assert shares[0].amount_owed == Decimal('0.00')
        assert sum(amounts(shares)) == Decimal(total)

    def test_remainder_cents_follow_largest_fraction(self):
        shares = compute_split(
            SplitMethod.PERCENTAGE,
            Decimal('0.10'),
            ['a', 'b'],
            [{'user_id': 'a', 'percentage': 14}, {'user_id': 'b', 'percentage': 86}],
        )

        # 1.4 and 8.6 cents: the spare cent goes to b
        assert amounts(shares) == [Decimal('0.01'), Decimal('0.09')]

    def test_float_percentages_accepted(self):
        shares = compute_split(
            SplitMethod.PERCENTAGE,
            Decimal('10.00'),
            ['a', 'b'],
            [{'user_id': 'a', 'percentage': 70.1}, {'user_id': 'b', 'percentage': 29.9}],
        )

        assert amounts(shares) == [Decimal('7.01'), Decimal('2.99')]

    def test_inputs_must_cover_participants(self):
        with pytest.raises(InvalidSplitError, match='missing b'):
            compute_split(
                SplitMethod.PERCENTAGE,
                Decimal('100.00'),
                ['a', 'b'],
                [{'user_id': 'a', 'percentage': 100}],
            )

    def test_inputs_for_strangers_rejected(self):
        with pytest.raises(InvalidSplitError, match='unexpected z'):
            compute_split(
                SplitMethod.PERCENTAGE,
                Decimal('100.00'),
                ['a'],
                [{'user_id': 'a', 'percentage': 50}, {'user_id': 'z', 'percentage': 50}],
            )

    def test_missing_inputs_rejected(self):
        with pytest.raises(InvalidSplitError):
            compute_split(SplitMethod.PERCENTAGE, Decimal('100.00'), ['a', 'b'])


class TestCustomSplit:

    def test_custom_amounts(self):
        shares = compute_split(
            SplitMethod.CUSTOM,
            Decimal('100.00'),
            ['a', 'b'],
            [{'user_id': 'a', 'amount': '75.50'}, {'user_id': 'b', 'amount': '24.50'}],
        )

        assert amounts(shares) == [Decimal('75.50'), Decimal('24.50')]
        assert [share.percentage for share in shares] == [Decimal('75.50'), Decimal('24.50')]

    def test_amounts_not_matching_total_rejected(self):
        with pytest.raises(InvalidSplitError, match='add up to the total'):
            compute_split(
                SplitMethod.CUSTOM,
                Decimal('100.00'),
                ['a', 'b'],
                [{'user_id': 'a', 'amount': 50}, {'user_id': 'b', 'amount': 40}],
            )

    def test_negative_amount_rejected(self):
        with pytest.raises(InvalidSplitError, match='negative'):
            compute_split(
                SplitMethod.CUSTOM,
                Decimal('100.00'),
                ['a', 'b'],
                [{'user_id': 'a', 'amount': 150}, {'user_id': 'b', 'amount': -50}],
            )


class TestPreconditions:

    @pytest.mark.parametrize('total', ['0', '-5.00'])
    def test_non_positive_total_rejected(self, total):
        with pytest.raises(InvalidSplitError, match='greater than zero'):
            compute_split(SplitMethod.EQUAL, Decimal(total), ['a', 'b'])

    def test_sub_cent_total_rejected(self):
        with pytest.raises(InvalidSplitError, match='2 decimal places'):
            compute_split(SplitMethod.EQUAL, Decimal('10.005'), ['a', 'b'])

    def test_no_participants_rejected(self):
        with pytest.raises(InvalidSplitError, match='At least one participant'):
            compute_split(SplitMethod.EQUAL, Decimal('10.00'), [])

    def test_duplicate_participants_rejected(self):
        with pytest.raises(InvalidSplitError, match='distinct'):
            compute_split(SplitMethod.EQUAL, Decimal('10.00'), ['a', 'a'])

    def test_unknown_method_rejected(self):
        with pytest.raises(InvalidSplitError, match='Unsupported split method'):
            compute_split('Shares', Decimal('10.00'), ['a', 'b'])
