"""
Serializers for debts app.

This module contains:
1. Input serializers - Request body / query parameter validation
2. Response serializers - API documentation and output formatting
"""

from decimal import Decimal
from rest_framework import serializers


def money(**kwargs):
    return serializers.DecimalField(max_digits=12, decimal_places=2, **kwargs)


# =============================================================================
# Input Serializers
# =============================================================================

class PayoffQuerySerializer(serializers.Serializer):
    """Monthly amount above the combined minimums."""
    extra_budget = money(required=False, default=Decimal('0.00'), min_value=Decimal('0.00'))


class CardDebtInputSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=100)
    balance = money(min_value=Decimal('0.00'))
    apr = serializers.DecimalField(
        max_digits=5,
        decimal_places=2,
        min_value=Decimal('0.00'),
        max_value=Decimal('100.00'),
    )
    minimum_payment = money(required=False, allow_null=True, min_value=Decimal('0.00'))


class PayoffScenarioSerializer(serializers.Serializer):
    """
    Validate an explicit what-if scenario.

    Body:
        {"extra_budget": "100.00",
         "debts": [{"name": "Visa", "balance": "1000.00", "apr": "24.00", "minimum_payment": "30.00"}]}
    """

    extra_budget = money(required=False, default=Decimal('0.00'), min_value=Decimal('0.00'))
    debts = CardDebtInputSerializer(many=True, allow_empty=False)


# =============================================================================
# Response Serializers
# =============================================================================

class CardDebtSerializer(serializers.Serializer):
    account_id = serializers.UUIDField(allow_null=True)
    name = serializers.CharField()
    balance = money()
    apr = serializers.DecimalField(max_digits=5, decimal_places=2)
    minimum_payment = money()


class PayoffEventSerializer(serializers.Serializer):
    account_id = serializers.UUIDField(allow_null=True)
    name = serializers.CharField()
    month = serializers.IntegerField()


class StrategyResultSerializer(serializers.Serializer):
    strategy = serializers.ChoiceField(choices=['avalanche', 'snowball'])
    feasible = serializers.BooleanField()
    monthly_budget = money()
    months_to_payoff = serializers.IntegerField(allow_null=True)
    total_interest = money(allow_null=True)
    total_paid = money(allow_null=True)
    payoff_order = PayoffEventSerializer(many=True)


class PayoffComparisonSerializer(serializers.Serializer):
    debts = CardDebtSerializer(many=True)
    extra_budget = money()
    avalanche = StrategyResultSerializer()
    snowball = StrategyResultSerializer()
    interest_difference = money(allow_null=True)
    months_difference = serializers.IntegerField(allow_null=True)
    recommended = serializers.ChoiceField(choices=['avalanche', 'snowball'])
    reason = serializers.CharField()
