from rest_framework import serializers
from .models import User


class UserSerializer(serializers.ModelSerializer):
    """Budget owner profile with a count of what they have set up."""

    name = serializers.CharField(source='get_display_name', read_only=True)
    account_count = serializers.IntegerField(source='bank_accounts.count', read_only=True)
    envelope_count = serializers.IntegerField(source='envelopes.count', read_only=True)
    income_source_count = serializers.IntegerField(source='income_sources.count', read_only=True)

    class Meta:
        model = User
        fields = [
            'id', 'email', 'display_name', 'name', 'currency',
            'account_count', 'envelope_count', 'income_source_count',
            'created_at', 'last_login',
        ]
        read_only_fields = ['id', 'email', 'created_at', 'last_login']

    def validate_currency(self, value):
        value = value.upper()
        if len(value) != 3 or not value.isalpha():
            raise serializers.ValidationError("Use a three-letter ISO 4217 code, e.g. NZD")
        return value
