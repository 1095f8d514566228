from rest_framework import serializers

from .paypal import SUPPORTED_INTENTS


class PayPalOrderRequestSerializer(serializers.Serializer):
    amount = serializers.DecimalField(max_digits=10, decimal_places=2, min_value=0)
    currency = serializers.RegexField(r'^[A-Za-z]{3}$')
    intent = serializers.ChoiceField(choices=[intent.lower() for intent in SUPPORTED_INTENTS] + list(SUPPORTED_INTENTS))

    def validate_amount(self, value):
        if value <= 0:
            raise serializers.ValidationError('Invalid amount. Amount must be a positive number.')
        return value
