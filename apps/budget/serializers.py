from rest_framework import serializers
from .models import (
    BankAccount,
    IncomeSource,
    Envelope,
    Transaction,
    TransactionSplit,
)


class OwnedRelatedField(serializers.PrimaryKeyRelatedField):
    """Primary-key field that only accepts rows owned by the requesting user."""

    def get_queryset(self):
        request = self.context.get('request')
        queryset = super().get_queryset()
        if request is None:
            return queryset.none()
        return queryset.filter(user=request.user)


class BankAccountSerializer(serializers.ModelSerializer):

    display_name = serializers.CharField(read_only=True)

    class Meta:
        model = BankAccount
        fields = [
            'id',
            'name',
            'nickname',
            'display_name',
            'institution',
            'account_type',
            'current_balance',
            'apr',
            'minimum_payment',
            'created_at',
            'updated_at',
        ]
        read_only_fields = ['id', 'created_at', 'updated_at']


class IncomeSourceSerializer(serializers.ModelSerializer):

    class Meta:
        model = IncomeSource
        fields = [
            'id',
            'name',
            'amount',
            'pay_cycle',
            'is_active',
            'next_pay_date',
            'last_reconciled_date',
            'created_at',
        ]
        read_only_fields = ['id', 'last_reconciled_date', 'created_at']

    def validate_amount(self, value):
        if value < 0:
            raise serializers.ValidationError('Income amount cannot be negative')
        return value


class EnvelopeSerializer(serializers.ModelSerializer):

    deficit = serializers.DecimalField(max_digits=12, decimal_places=2, read_only=True)

    class Meta:
        model = Envelope
        fields = [
            'id',
            'name',
            'priority',
            'target_amount',
            'current_amount',
            'pay_cycle_amount',
            'deficit',
            'is_surplus_envelope',
            'is_cc_holding',
            'is_suggested',
            'suggestion_type',
            'is_dismissed',
            'created_at',
        ]
        read_only_fields = ['id', 'created_at']

    def validate(self, attrs):
        """An envelope cannot be both the surplus and the CC holding envelope."""
        is_surplus = attrs.get(
            'is_surplus_envelope',
            self.instance.is_surplus_envelope if self.instance else False
        )
        is_cc = attrs.get(
            'is_cc_holding',
            self.instance.is_cc_holding if self.instance else False
        )
        if is_surplus and is_cc:
            raise serializers.ValidationError(
                'An envelope cannot be both the surplus and the credit card holding envelope'
            )
        return attrs


class TransactionSplitSerializer(serializers.ModelSerializer):

    envelope_name = serializers.CharField(source='envelope.name', read_only=True, default=None)

    class Meta:
        model = TransactionSplit
        fields = ['id', 'envelope', 'envelope_name', 'amount', 'is_surplus']
        read_only_fields = fields


class TransactionSerializer(serializers.ModelSerializer):
    """
    Transaction create/update serializer.

    The amount and account are fixed once the row exists; updates may only
    change classification fields. Linking state is owned by the transfer
    endpoints and is read-only here.
    """

    account = OwnedRelatedField(queryset=BankAccount.objects.all())
    envelope = OwnedRelatedField(queryset=Envelope.objects.all(), required=False, allow_null=True)
    income_source = OwnedRelatedField(queryset=IncomeSource.objects.all(), required=False, allow_null=True)
    splits = TransactionSplitSerializer(many=True, read_only=True)

    class Meta:
        model = Transaction
        fields = [
            'id',
            'account',
            'amount',
            'occurred_at',
            'merchant_name',
            'description',
            'envelope',
            'income_source',
            'transaction_type',
            'linked_transaction',
            'transfer_pending',
            'type_needs_review',
            'is_reconciled',
            'splits',
            'created_at',
        ]
        read_only_fields = [
            'id',
            'linked_transaction',
            'transfer_pending',
            'is_reconciled',
            'created_at',
        ]

    def validate(self, attrs):
        if self.instance is not None:
            for field in ('amount', 'account'):
                if field in attrs and attrs[field] != getattr(self.instance, field):
                    raise serializers.ValidationError({
                        field: 'Cannot be changed once the transaction exists'
                    })

            if attrs.get('envelope') and (self.instance.transfer_pending or self.instance.is_linked):
                raise serializers.ValidationError({
                    'envelope': 'Transfers cannot be assigned to an envelope'
                })

            if self.instance.is_linked and 'transaction_type' in attrs \
                    and attrs['transaction_type'] != self.instance.transaction_type:
                raise serializers.ValidationError({
                    'transaction_type': 'Unlink the transfer before changing its type'
                })

        return attrs


class TransactionListSerializer(serializers.ModelSerializer):

    account_name = serializers.CharField(source='account.display_name', read_only=True)
    envelope_name = serializers.CharField(source='envelope.name', read_only=True, default=None)

    class Meta:
        model = Transaction
        fields = [
            'id',
            'account',
            'account_name',
            'amount',
            'occurred_at',
            'merchant_name',
            'envelope',
            'envelope_name',
            'transaction_type',
            'linked_transaction',
            'transfer_pending',
            'is_reconciled',
        ]
        read_only_fields = fields


class TransactionFilterSerializer(serializers.Serializer):
    """
    Validate query parameters for transaction filtering.

    Query Parameters:
        account (UUID): Filter by account
        envelope (UUID): Filter by envelope
        date_from (date): Transactions on or after this date
        date_to (date): Transactions on or before this date
        transfer_pending (bool): Only pending / non-pending transfers
    """

    account = serializers.UUIDField(required=False)
    envelope = serializers.UUIDField(required=False)
    date_from = serializers.DateField(required=False)
    date_to = serializers.DateField(required=False)
    transfer_pending = serializers.BooleanField(required=False, allow_null=True, default=None)

    def validate(self, attrs):
        """Validate date range."""
        date_from = attrs.get('date_from')
        date_to = attrs.get('date_to')

        if date_from and date_to and date_from > date_to:
            raise serializers.ValidationError({
                'date_to': 'End date must be after start date'
            })

        return attrs
