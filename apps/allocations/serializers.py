"""
Serializers for allocations app.

This module contains:
1. Input serializers - Request body / query parameter validation
2. Response serializers - API documentation and output formatting
"""

from decimal import Decimal
from rest_framework import serializers
from apps.budget.models import AllocationPlan, AllocationPlanItem, EnvelopeIncomeAllocation


def money(**kwargs):
    return serializers.DecimalField(max_digits=12, decimal_places=2, **kwargs)


# =============================================================================
# Input Serializers
# =============================================================================

class SourceAmountSerializer(serializers.Serializer):
    """One row of an envelope's plan: income source and amount per pay."""
    income_source_id = serializers.UUIDField()
    amount = money()


class EnvelopeAllocationsReplaceSerializer(serializers.Serializer):
    """
    Validate a bulk replace of an envelope's plan.

    Body:
        {"allocations": [{"income_source_id": "...", "amount": "250.00"}, ...]}
    """

    allocations = SourceAmountSerializer(many=True, allow_empty=True)

    def validate_allocations(self, value):
        ids = [row['income_source_id'] for row in value]
        if len(ids) != len(set(ids)):
            raise serializers.ValidationError('Each income source may appear only once')
        for row in value:
            if row['amount'] < 0:
                raise serializers.ValidationError('Amounts cannot be negative')
        return value


class EnvelopeAllocationUpsertSerializer(serializers.Serializer):
    """Set (or with amount <= 0, remove) one plan row."""
    income_source_id = serializers.UUIDField()
    amount = money()


class EnvelopeAmountSerializer(serializers.Serializer):
    envelope_id = serializers.UUIDField()
    amount = money()


class ApprovePayEventSerializer(serializers.Serializer):
    """
    Validate an approval request.

    Body:
        transaction_id (UUID): The incoming pay
        allocations (list): [{"envelope_id": "...", "amount": "600.00"}, ...]
        surplus_amount (decimal): Part of the pay left unallocated
        income_source_id (UUID): Optional income source of the pay
        update_plan (bool): Save these amounts as the source's plan
    """

    transaction_id = serializers.UUIDField()
    allocations = EnvelopeAmountSerializer(many=True, allow_empty=True)
    surplus_amount = money(default=Decimal('0.00'))
    income_source_id = serializers.UUIDField(required=False, allow_null=True, default=None)
    update_plan = serializers.BooleanField(default=False)

    def validate(self, attrs):
        if attrs['update_plan'] and attrs['income_source_id'] is None:
            raise serializers.ValidationError({
                'update_plan': 'An income source is required to update its plan'
            })
        return attrs


class SurplusAmountQuerySerializer(serializers.Serializer):
    """Optional amount to allocate; defaults to the allocatable surplus."""
    amount = money(required=False, min_value=0)


class IncomeDetectionSerializer(serializers.Serializer):
    transaction_id = serializers.UUIDField()


# =============================================================================
# Response Serializers
# =============================================================================

class IncomeSourceRealitySerializer(serializers.Serializer):
    income_source_id = serializers.UUIDField()
    name = serializers.CharField()
    pay_cycle = serializers.CharField()
    income_amount = money()
    total_committed_per_pay = money()
    surplus_amount = money()
    over_committed = money()


class IncomeRealitySerializer(serializers.Serializer):
    sources = IncomeSourceRealitySerializer(many=True)
    total_income = money()
    total_committed = money()
    total_allocated = money()
    unfunded_commitment = money()
    total_surplus = money()
    cc_holding_balance = money()
    allocatable_surplus = money()


class EnvelopeIncomeAllocationSerializer(serializers.ModelSerializer):

    income_source_name = serializers.CharField(source='income_source.name', read_only=True)

    class Meta:
        model = EnvelopeIncomeAllocation
        fields = ['id', 'income_source', 'income_source_name', 'envelope', 'amount', 'priority']
        read_only_fields = fields


class AllocationPlanItemSerializer(serializers.ModelSerializer):

    envelope_name = serializers.CharField(source='envelope.name', read_only=True)

    class Meta:
        model = AllocationPlanItem
        fields = ['envelope', 'envelope_name', 'amount', 'priority']
        read_only_fields = fields


class AllocationPlanSerializer(serializers.ModelSerializer):

    items = AllocationPlanItemSerializer(many=True, read_only=True)

    class Meta:
        model = AllocationPlan
        fields = [
            'id',
            'source_transaction',
            'income_source',
            'amount',
            'regular_total',
            'surplus_total',
            'envelope_count',
            'status',
            'items',
            'created_at',
            'applied_at',
        ]
        read_only_fields = fields


class SurplusAllocationRowSerializer(serializers.Serializer):
    envelope_id = serializers.UUIDField()
    name = serializers.CharField()
    deficit = money()
    amount = money()


class SurplusAllocationSerializer(serializers.Serializer):
    surplus = money()
    allocated = money()
    remaining = money()
    allocations = SurplusAllocationRowSerializer(many=True)
    source_envelope_id = serializers.UUIDField(required=False)


class SuggestedAllocationSerializer(serializers.Serializer):
    envelope_id = serializers.UUIDField()
    name = serializers.CharField()
    amount = money()


class IncomeDetectionResultSerializer(serializers.Serializer):
    transaction_id = serializers.UUIDField()
    matched = serializers.BooleanField()
    income_source_id = serializers.UUIDField(allow_null=True)
    name = serializers.CharField(allow_null=True)
    confidence = serializers.DecimalField(max_digits=4, decimal_places=2)
    suggested_allocations = SuggestedAllocationSerializer(many=True)
    suggested_surplus = money()
    plan_shortfall = money()


class ErrorSerializer(serializers.Serializer):
    """Standard error response serializer."""
    error = serializers.CharField()
