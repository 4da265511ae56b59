"""
Serializers for reconciliation app.

This module contains:
1. Input serializers - Query parameter validation
2. Response serializers - API documentation and output formatting
"""

from rest_framework import serializers


def money(**kwargs):
    return serializers.DecimalField(max_digits=12, decimal_places=2, **kwargs)


# =============================================================================
# Input Serializers
# =============================================================================

class ReconciliationQuerySerializer(serializers.Serializer):
    """Optional surplus the caller expects to be unallocated."""
    expected_surplus = money(required=False)


# =============================================================================
# Response Serializers
# =============================================================================

class AccountSummarySerializer(serializers.Serializer):
    account_id = serializers.UUIDField()
    display_name = serializers.CharField()
    account_name = serializers.CharField()
    account_type = serializers.CharField()
    institution = serializers.CharField(allow_blank=True)
    current_balance = money()
    transaction_count = serializers.IntegerField()
    last_transaction_date = serializers.DateField(allow_null=True)


class EnvelopeSummarySerializer(serializers.Serializer):
    envelope_id = serializers.UUIDField()
    name = serializers.CharField()
    current_amount = money()
    target_amount = money()
    is_cc_holding = serializers.BooleanField()
    is_surplus_envelope = serializers.BooleanField()
    activity = money()


class ReconciliationReportSerializer(serializers.Serializer):
    accounts = AccountSummarySerializer(many=True)
    envelopes = EnvelopeSummarySerializer(many=True)
    total_bank_balance = money()
    total_envelope_balance = money()
    cc_holding_balance = money()
    surplus = money()
    expected_bank_balance = money()
    discrepancy = money()
    is_balanced = serializers.BooleanField()
    status = serializers.ChoiceField(choices=['balanced', 'warning', 'error'])
    explanation = serializers.CharField()
    available_cash = money()
    credit_card_debt = money()
    cc_holding_covers_debt = serializers.BooleanField()
    cc_holding_shortfall = money()
    net_worth = money()
    pending_transfer_count = serializers.IntegerField()
    linked_transfer_count = serializers.IntegerField()
