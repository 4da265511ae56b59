# ==========================================
# apps/budget/admin.py
# ==========================================

from django.contrib import admin
from django.utils.html import format_html
from .models import (
    BankAccount,
    IncomeSource,
    Envelope,
    EnvelopeIncomeAllocation,
    AllocationPlan,
    AllocationPlanItem,
    Transaction,
    TransactionSplit,
    TransactionType,
)


def _badge(label, bg, fg='white'):
    return format_html(
        '<span style="background: {}; color: {}; padding: 3px 8px; '
        'border-radius: 10px; font-size: 11px;">{}</span>',
        bg, fg, label
    )


@admin.register(BankAccount)
class BankAccountAdmin(admin.ModelAdmin):
    list_display = ['name', 'nickname', 'user', 'account_type', 'current_balance', 'apr']
    list_filter = ['account_type']
    search_fields = ['name', 'nickname', 'user__email']


@admin.register(IncomeSource)
class IncomeSourceAdmin(admin.ModelAdmin):
    list_display = ['name', 'user', 'amount', 'pay_cycle', 'is_active', 'next_pay_date']
    list_filter = ['pay_cycle', 'is_active']
    search_fields = ['name', 'user__email']


class EnvelopeIncomeAllocationInline(admin.TabularInline):
    model = EnvelopeIncomeAllocation
    extra = 0
    fields = ['income_source', 'amount', 'priority']


@admin.register(Envelope)
class EnvelopeAdmin(admin.ModelAdmin):
    """Envelopes with their planned income allocations inline."""

    list_display = [
        'name',
        'user',
        'priority',
        'target_amount',
        'current_amount',
        'pay_cycle_amount',
        'kind_badge',
    ]
    list_filter = ['priority', 'is_surplus_envelope', 'is_cc_holding', 'is_dismissed']
    search_fields = ['name', 'user__email']
    inlines = [EnvelopeIncomeAllocationInline]

    def kind_badge(self, obj):
        """Flag the special-purpose envelopes."""
        if obj.is_surplus_envelope:
            return _badge('Surplus', '#6B8E5E')
        if obj.is_cc_holding:
            return _badge('CC holding', '#A47449')
        if obj.is_dismissed:
            return _badge('Dismissed', '#ccc', '#666')
        return ''
    kind_badge.short_description = 'Kind'


class AllocationPlanItemInline(admin.TabularInline):
    model = AllocationPlanItem
    extra = 0
    fields = ['envelope', 'amount', 'priority']

    def has_add_permission(self, request, obj=None):
        """Plan items are written by the approval service only."""
        return False


@admin.register(AllocationPlan)
class AllocationPlanAdmin(admin.ModelAdmin):
    list_display = ['source_transaction', 'user', 'amount', 'regular_total', 'surplus_total', 'status', 'applied_at']
    list_filter = ['status']
    readonly_fields = ['created_at', 'applied_at']
    inlines = [AllocationPlanItemInline]


class TransactionSplitInline(admin.TabularInline):
    model = TransactionSplit
    extra = 0
    fields = ['envelope', 'amount', 'is_surplus']

    def has_add_permission(self, request, obj=None):
        return False


@admin.register(Transaction)
class TransactionAdmin(admin.ModelAdmin):
    """Transactions with transfer state at a glance."""

    list_display = [
        'occurred_at',
        'account',
        'merchant_name',
        'amount',
        'transaction_type',
        'envelope',
        'transfer_badge',
        'is_reconciled',
    ]
    list_filter = ['transaction_type', 'transfer_pending', 'is_reconciled', 'type_needs_review']
    search_fields = ['merchant_name', 'description', 'user__email']
    date_hierarchy = 'occurred_at'
    readonly_fields = ['amount', 'linked_transaction', 'pre_transfer_type', 'created_at', 'updated_at']
    inlines = [TransactionSplitInline]

    def transfer_badge(self, obj):
        """Display transfer state as colored badge."""
        if obj.linked_transaction_id:
            return _badge('Linked', '#6B8E5E')
        if obj.transfer_pending:
            return _badge('Pending', '#E5C49A', '#2C1810')
        if obj.transaction_type == TransactionType.TRANSFER:
            return _badge('Transfer', '#A47449')
        return ''
    transfer_badge.short_description = 'Transfer'
