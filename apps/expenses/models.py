from django.db import models
from django.core.validators import MinValueValidator
from decimal import Decimal
import hashlib
import secrets
import uuid


class ExpenseCategory(models.TextChoices):
    FOOD = 'Food', 'Food'
    TRANSPORTATION = 'Transportation', 'Transportation'
    ACCOMMODATION = 'Accommodation', 'Accommodation'
    UTILITIES = 'Utilities', 'Utilities'
    ENTERTAINMENT = 'Entertainment', 'Entertainment'
    MISCELLANEOUS = 'Miscellaneous', 'Miscellaneous'


class SplitMethod(models.TextChoices):
    EQUAL = 'Equal', 'Equal'
    PERCENTAGE = 'Percentage', 'Percentage'
    CUSTOM = 'Custom', 'Custom'


class TransactionStatus(models.TextChoices):
    PENDING = 'Pending', 'Pending'
    SUCCESS = 'Success', 'Success'
    FAILED = 'Failed', 'Failed'


class PaymentMode(models.TextChoices):
    UPI = 'UPI', 'UPI'
    PAYPAL = 'PayPal', 'PayPal'
    STRIPE = 'Stripe', 'Stripe'


DESCRIPTION_MAX_LENGTH = 30


class Expense(models.Model):
    """Shared expense paid by one user and split among participants."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    payer = models.ForeignKey(
        'accounts.User',
        on_delete=models.CASCADE,
        related_name='expenses_paid'
    )
    # Group context (nullable for ad-hoc expenses)
    group = models.ForeignKey(
        'groups.Group',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='expenses'
    )

    # Financial details
    total_amount = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        validators=[MinValueValidator(Decimal('0.01'))]
    )
    currency = models.CharField(max_length=3, default='INR')
    description = models.CharField(max_length=DESCRIPTION_MAX_LENGTH)
    category = models.CharField(
        max_length=20,
        choices=ExpenseCategory.choices,
        default=ExpenseCategory.MISCELLANEOUS
    )
    split_method = models.CharField(max_length=20, choices=SplitMethod.choices)

    # Debtors only; the payer is never a participant
    participants = models.ManyToManyField(
        'accounts.User',
        related_name='expenses_participated',
        blank=True
    )
    # Part of the total the payer covered for themselves
    payer_share = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        default=Decimal('0.00')
    )

    is_settled = models.BooleanField(default=False)

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'expenses'
        indexes = [
            models.Index(fields=['payer', 'created_at'], name='expenses_payer_i_2b7c10_idx'),
            models.Index(fields=['group', 'created_at'], name='expenses_group_i_8f3e55_idx'),
            models.Index(fields=['is_settled'], name='expenses_is_sett_41d9a2_idx'),
        ]
        ordering = ['-created_at']

    def __str__(self):
        return f"{self.description} - {self.total_amount} {self.currency}"

    def refresh_settled_status(self):
        """Flip ``is_settled`` once every split detail references a transaction."""
        settled = not self.split_details.filter(transaction_ref__isnull=True).exists()
        if settled != self.is_settled:
            self.is_settled = settled
            self.save(update_fields=['is_settled'])
        return settled


class SplitDetail(models.Model):
    """One participant's obligation within an expense."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    expense = models.ForeignKey(
        Expense,
        on_delete=models.CASCADE,
        related_name='split_details'
    )
    position = models.PositiveSmallIntegerField()
    user = models.ForeignKey(
        'accounts.User',
        on_delete=models.CASCADE,
        related_name='split_details'
    )
    amount_owed = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        validators=[MinValueValidator(Decimal('0.00'))]
    )
    percentage = models.DecimalField(max_digits=5, decimal_places=2)

    # Set exactly once, when the obligation is settled
    transaction_ref = models.ForeignKey(
        'expenses.Transaction',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='+'
    )

    class Meta:
        db_table = 'expense_split_details'
        unique_together = [['expense', 'position'], ['expense', 'user']]
        ordering = ['expense', 'position']

    def __str__(self):
        state = 'settled' if self.transaction_ref_id else 'pending'
        return f"{self.user.get_display_name()} owes {self.amount_owed} ({state})"

    @property
    def is_settled(self):
        return self.transaction_ref_id is not None


class Transaction(models.Model):
    """Payment from a debtor to the payer of an expense."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    # External identifier, generated once
    settlement_token = models.CharField(
        max_length=64,
        unique=True,
        db_index=True,
        editable=False
    )

    expense = models.ForeignKey(
        Expense,
        on_delete=models.CASCADE,
        related_name='transactions'
    )
    split_detail = models.OneToOneField(
        SplitDetail,
        on_delete=models.CASCADE,
        related_name='transaction'
    )
    sender = models.ForeignKey(
        'accounts.User',
        on_delete=models.CASCADE,
        related_name='transactions_sent'
    )
    receiver = models.ForeignKey(
        'accounts.User',
        on_delete=models.CASCADE,
        related_name='transactions_received'
    )

    amount = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        validators=[MinValueValidator(Decimal('0.01'))]
    )
    currency = models.CharField(max_length=3, default='INR')

    mode = models.CharField(
        max_length=20,
        choices=PaymentMode.choices,
        null=True,
        blank=True
    )
    status = models.CharField(
        max_length=20,
        choices=TransactionStatus.choices,
        default=TransactionStatus.PENDING
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'transactions'
        indexes = [
            models.Index(fields=['sender', 'status'], name='transaction_sender__7a2f31_idx'),
            models.Index(fields=['receiver', 'status'], name='transaction_receive_c5e812_idx'),
            models.Index(fields=['status', 'created_at'], name='transaction_status_9d0b4e_idx'),
        ]
        constraints = [
            models.CheckConstraint(
                condition=~models.Q(sender=models.F('receiver')),
                name='transaction_sender_not_receiver',
            ),
        ]
        ordering = ['-created_at']

    def __str__(self):
        return f"{self.sender.get_display_name()} -> {self.receiver.get_display_name()}: {self.amount} {self.currency} ({self.status})"

    def save(self, *args, **kwargs):
        """Generate settlement token if not set."""
        if not self.settlement_token:
            self.settlement_token = self._generate_settlement_token()
        super().save(*args, **kwargs)

    def _generate_settlement_token(self):
        """Hash of random bytes and the row id; never derived from amounts."""
        seed = secrets.token_bytes(32) + str(self.id).encode()
        return hashlib.sha256(seed).hexdigest()

    @property
    def is_terminal(self):
        return self.status != TransactionStatus.PENDING
