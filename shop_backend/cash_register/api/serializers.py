# cash_register/api/serializers.py

from rest_framework import serializers

from cash_register.models import CashRegisterSession


class CashRegisterSessionSerializer(serializers.ModelSerializer):
    """
    Output serializer (DB truth).
    """

    opened_by_email = serializers.EmailField(source="opened_by.email", read_only=True, default=None)
    closed_by_email = serializers.EmailField(source="closed_by.email", read_only=True, default=None)

    class Meta:
        model = CashRegisterSession
        fields = [
            "id",
            "status",
            "opened_at",
            "opening_amount",
            "opened_by_email",
            "closed_at",
            "closing_amount",
            "expected_amount",
            "difference",
            "closed_by_email",
            "notes",
        ]
        read_only_fields = fields


class OpenSessionSerializer(serializers.Serializer):
    opening_amount = serializers.DecimalField(max_digits=14, decimal_places=2)
    notes = serializers.CharField(required=False, allow_blank=True, default="")

    def validate_opening_amount(self, value):
        if value < 0:
            raise serializers.ValidationError("opening_amount cannot be negative")
        return value


class CloseSessionSerializer(serializers.Serializer):
    counted_amount = serializers.DecimalField(max_digits=14, decimal_places=2)
    notes = serializers.CharField(required=False, allow_blank=True, allow_null=True)

    def validate_counted_amount(self, value):
        if value < 0:
            raise serializers.ValidationError("counted_amount cannot be negative")
        return value


class CurrentSessionSerializer(serializers.Serializer):
    is_open = serializers.BooleanField()
    session = CashRegisterSessionSerializer(allow_null=True)
    expected_amount = serializers.DecimalField(max_digits=14, decimal_places=2)
