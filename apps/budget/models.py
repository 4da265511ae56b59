from django.db import models
from django.db.models import Q
from decimal import Decimal
import uuid


def money_field(**kwargs):
    kwargs.setdefault('max_digits', 12)
    kwargs.setdefault('decimal_places', 2)
    return models.DecimalField(**kwargs)


class AccountType(models.TextChoices):
    CHECKING = 'checking', 'Checking'
    SAVINGS = 'savings', 'Savings'
    TRANSACTION = 'transaction', 'Transaction'
    CASH = 'cash', 'Cash'
    CREDIT_CARD = 'credit_card', 'Credit card'
    DEBT = 'debt', 'Debt'


# Accounts that hold the money envelopes are funded from
BANK_ACCOUNT_TYPES = (
    AccountType.CHECKING,
    AccountType.SAVINGS,
    AccountType.TRANSACTION,
    AccountType.CASH,
)

DEBT_ACCOUNT_TYPES = (
    AccountType.CREDIT_CARD,
    AccountType.DEBT,
)


class PayCycle(models.TextChoices):
    WEEKLY = 'weekly', 'Weekly'
    FORTNIGHTLY = 'fortnightly', 'Fortnightly'
    MONTHLY = 'monthly', 'Monthly'


class EnvelopePriority(models.TextChoices):
    ESSENTIAL = 'essential', 'Essential'
    IMPORTANT = 'important', 'Important'
    DISCRETIONARY = 'discretionary', 'Discretionary'


class TransactionType(models.TextChoices):
    INCOME = 'income', 'Income'
    EXPENSE = 'expense', 'Expense'
    TRANSFER = 'transfer', 'Transfer'


class PlanStatus(models.TextChoices):
    PENDING = 'pending', 'Pending'
    APPROVED = 'approved', 'Approved'


class BankAccount(models.Model):
    """A real-world account: where money physically sits (or is owed)."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    user = models.ForeignKey(
        'accounts.User',
        on_delete=models.CASCADE,
        related_name='bank_accounts'
    )

    name = models.CharField(max_length=100)
    nickname = models.CharField(max_length=100, blank=True)
    institution = models.CharField(max_length=100, blank=True)
    account_type = models.CharField(
        max_length=20,
        choices=AccountType.choices,
        default=AccountType.CHECKING
    )
    current_balance = money_field(default=Decimal('0.00'))

    # Credit card / loan terms (ignored for bank accounts)
    apr = models.DecimalField(
        max_digits=5,
        decimal_places=2,
        default=Decimal('0.00'),
        help_text='Annual percentage rate, e.g. 19.95'
    )
    minimum_payment = money_field(null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'accounts'
        indexes = [
            models.Index(fields=['user', 'account_type'], name='accounts_user_type_idx'),
        ]
        ordering = ['name']

    def __str__(self):
        return f"{self.display_name} ({self.current_balance})"

    @property
    def display_name(self):
        return self.nickname or self.name

    @property
    def is_bank_account(self):
        return self.account_type in BANK_ACCOUNT_TYPES


class IncomeSource(models.Model):
    """A recurring inflow such as a salary."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    user = models.ForeignKey(
        'accounts.User',
        on_delete=models.CASCADE,
        related_name='income_sources'
    )

    name = models.CharField(max_length=100)
    amount = money_field(default=Decimal('0.00'), help_text='Typical amount per pay')
    pay_cycle = models.CharField(
        max_length=20,
        choices=PayCycle.choices,
        default=PayCycle.FORTNIGHTLY
    )
    is_active = models.BooleanField(default=True)

    next_pay_date = models.DateField(null=True, blank=True)
    last_reconciled_date = models.DateField(null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'income_sources'
        indexes = [
            models.Index(fields=['user', 'is_active'], name='income_user_active_idx'),
        ]
        ordering = ['created_at']

    def __str__(self):
        return f"{self.name} ({self.amount} {self.pay_cycle})"


class Envelope(models.Model):
    """A budget category: a planned target plus the money it actually holds."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    user = models.ForeignKey(
        'accounts.User',
        on_delete=models.CASCADE,
        related_name='envelopes'
    )

    name = models.CharField(max_length=100)
    priority = models.CharField(
        max_length=20,
        choices=EnvelopePriority.choices,
        default=EnvelopePriority.IMPORTANT
    )

    target_amount = money_field(default=Decimal('0.00'))
    current_amount = money_field(default=Decimal('0.00'))
    pay_cycle_amount = money_field(
        default=Decimal('0.00'),
        help_text='Planned commitment per pay'
    )

    is_surplus_envelope = models.BooleanField(default=False)
    is_cc_holding = models.BooleanField(default=False)

    # Suggested envelopes the user has not accepted yet
    is_suggested = models.BooleanField(default=False)
    suggestion_type = models.CharField(max_length=50, blank=True)
    is_dismissed = models.BooleanField(default=False)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'envelopes'
        indexes = [
            models.Index(fields=['user', 'is_dismissed'], name='envelopes_user_dismissed_idx'),
        ]
        ordering = ['name']

    def __str__(self):
        return f"{self.name} ({self.current_amount}/{self.target_amount})"

    @property
    def deficit(self):
        return max(Decimal('0.00'), self.target_amount - self.current_amount)


class EnvelopeIncomeAllocation(models.Model):
    """Planned amount one income source commits to one envelope every pay."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    user = models.ForeignKey(
        'accounts.User',
        on_delete=models.CASCADE,
        related_name='income_allocations'
    )
    income_source = models.ForeignKey(
        IncomeSource,
        on_delete=models.CASCADE,
        related_name='allocations'
    )
    envelope = models.ForeignKey(
        Envelope,
        on_delete=models.CASCADE,
        related_name='income_allocations'
    )

    amount = money_field()
    priority = models.PositiveIntegerField(default=1)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'envelope_income_allocations'
        constraints = [
            models.UniqueConstraint(
                fields=['income_source', 'envelope'],
                name='unique_income_source_envelope',
            ),
        ]
        ordering = ['priority', 'created_at']

    def __str__(self):
        return f"{self.income_source.name} -> {self.envelope.name}: {self.amount}"


class TransactionQuerySet(models.QuerySet):

    def for_user(self, user):
        return self.filter(user=user)

    def unlinked(self):
        return self.filter(linked_transaction__isnull=True)

    def pending_transfers(self):
        return self.filter(transfer_pending=True, linked_transaction__isnull=True)

    def linked_transfers(self):
        return self.filter(linked_transaction__isnull=False)

    def counting_toward_envelopes(self):
        """Rows that may move envelope totals: assigned, and not part of a transfer."""
        return self.filter(
            envelope__isnull=False,
            transfer_pending=False,
            linked_transaction__isnull=True,
        ).exclude(transaction_type=TransactionType.TRANSFER)


class Transaction(models.Model):
    """
    One line from a bank feed or manual entry.

    ``amount`` is signed (positive = inflow) and is never re-signed after
    creation; only classification and linking fields change.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    user = models.ForeignKey(
        'accounts.User',
        on_delete=models.CASCADE,
        related_name='transactions'
    )
    account = models.ForeignKey(
        BankAccount,
        on_delete=models.CASCADE,
        related_name='transactions'
    )

    amount = money_field()
    occurred_at = models.DateField()
    merchant_name = models.CharField(max_length=200, blank=True)
    description = models.TextField(blank=True)

    envelope = models.ForeignKey(
        Envelope,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='transactions'
    )
    income_source = models.ForeignKey(
        IncomeSource,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='transactions'
    )

    transaction_type = models.CharField(
        max_length=20,
        choices=TransactionType.choices,
        default=TransactionType.EXPENSE
    )

    # Transfer state
    linked_transaction = models.OneToOneField(
        'self',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='+'
    )
    transfer_pending = models.BooleanField(default=False)
    pre_transfer_type = models.CharField(
        max_length=20,
        choices=[(TransactionType.INCOME, 'Income'), (TransactionType.EXPENSE, 'Expense')],
        blank=True
    )
    type_needs_review = models.BooleanField(default=False)

    # Set once the pay event has been allocated to envelopes
    is_reconciled = models.BooleanField(default=False)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = TransactionQuerySet.as_manager()

    class Meta:
        db_table = 'transactions'
        indexes = [
            models.Index(fields=['user', 'occurred_at'], name='tx_user_occurred_idx'),
            models.Index(fields=['user', 'transfer_pending'], name='tx_user_pending_idx'),
            models.Index(fields=['account', 'occurred_at'], name='tx_account_occurred_idx'),
        ]
        constraints = [
            models.CheckConstraint(
                condition=Q(transfer_pending=False) | Q(envelope__isnull=True),
                name='pending_transfer_has_no_envelope',
            ),
        ]
        ordering = ['-occurred_at', '-created_at']

    def __str__(self):
        return f"{self.occurred_at} {self.merchant_name or self.description} {self.amount}"

    @property
    def is_linked(self):
        return self.linked_transaction_id is not None


class AllocationPlan(models.Model):
    """Approved split of one actual pay event across envelopes."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    user = models.ForeignKey(
        'accounts.User',
        on_delete=models.CASCADE,
        related_name='allocation_plans'
    )
    source_transaction = models.OneToOneField(
        Transaction,
        on_delete=models.CASCADE,
        related_name='allocation_plan'
    )
    income_source = models.ForeignKey(
        IncomeSource,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='allocation_plans'
    )

    amount = money_field()
    regular_total = money_field(default=Decimal('0.00'))
    surplus_total = money_field(default=Decimal('0.00'))
    envelope_count = models.PositiveIntegerField(default=0)
    status = models.CharField(
        max_length=20,
        choices=PlanStatus.choices,
        default=PlanStatus.PENDING
    )

    created_at = models.DateTimeField(auto_now_add=True)
    applied_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        db_table = 'allocation_plans'
        ordering = ['-created_at']

    def __str__(self):
        return f"Plan {self.amount} ({self.status})"


class AllocationPlanItem(models.Model):

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    plan = models.ForeignKey(
        AllocationPlan,
        on_delete=models.CASCADE,
        related_name='items'
    )
    envelope = models.ForeignKey(
        Envelope,
        on_delete=models.CASCADE,
        related_name='plan_items'
    )
    amount = money_field()
    priority = models.PositiveIntegerField(default=1)

    class Meta:
        db_table = 'allocation_plan_items'
        ordering = ['priority']


class TransactionSplit(models.Model):
    """Part of a transaction credited to one envelope, or left as surplus."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    transaction = models.ForeignKey(
        Transaction,
        on_delete=models.CASCADE,
        related_name='splits'
    )
    envelope = models.ForeignKey(
        Envelope,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='splits'
    )
    amount = money_field()
    is_surplus = models.BooleanField(default=False)

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'transaction_splits'
        ordering = ['is_surplus', 'created_at']

    def __str__(self):
        target = 'surplus' if self.is_surplus else (self.envelope.name if self.envelope else '?')
        return f"{self.amount} -> {target}"
