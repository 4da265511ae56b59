"""
Serializers for transfers app.

Input serializers validate request bodies / query parameters; response
serializers document the plain dicts the services return.
"""

from rest_framework import serializers


# =============================================================================
# Input Serializers
# =============================================================================

class ScanQuerySerializer(serializers.Serializer):
    """Look-back window for a transfer scan (defaults to the configured window)."""
    window_days = serializers.IntegerField(required=False, min_value=1, max_value=365)


class TransactionIdSerializer(serializers.Serializer):
    transaction_id = serializers.UUIDField()


class LinkTransferSerializer(serializers.Serializer):
    first_id = serializers.UUIDField()
    second_id = serializers.UUIDField()

    def validate(self, attrs):
        if attrs['first_id'] == attrs['second_id']:
            raise serializers.ValidationError('A transaction cannot be linked to itself')
        return attrs


# =============================================================================
# Response Serializers
# =============================================================================

class TransferCandidateSerializer(serializers.Serializer):
    transaction_id = serializers.UUIDField()
    account_id = serializers.UUIDField()
    account_name = serializers.CharField()
    amount = serializers.DecimalField(max_digits=12, decimal_places=2)
    occurred_at = serializers.DateField()
    merchant_name = serializers.CharField(allow_blank=True)
    score = serializers.IntegerField()
    confidence = serializers.ChoiceField(choices=['high', 'medium', 'low'])
    days_apart = serializers.IntegerField()


class TransferDetectionSerializer(serializers.Serializer):
    transaction_id = serializers.UUIDField()
    is_linked = serializers.BooleanField()
    is_likely_transfer = serializers.BooleanField()
    highest_confidence = serializers.IntegerField()
    suggested_action = serializers.ChoiceField(
        choices=['auto_link', 'prompt_user', 'mark_pending', 'treat_as_expense']
    )
    candidates = TransferCandidateSerializer(many=True)


class TransferPairSerializer(serializers.Serializer):
    outgoing_id = serializers.UUIDField()
    incoming_id = serializers.UUIDField()
    outgoing_account = serializers.CharField()
    incoming_account = serializers.CharField()
    amount = serializers.DecimalField(max_digits=12, decimal_places=2)
    score = serializers.IntegerField()
    confidence = serializers.CharField()
    days_apart = serializers.IntegerField()


class ErrorSerializer(serializers.Serializer):
    """Standard error response serializer."""
    error = serializers.CharField()
