# finance/api/serializers/accounts.py

from decimal import Decimal

from rest_framework import serializers

from finance.models.account import Account
from finance.services.config import is_protected_account_name


class AccountSerializer(serializers.ModelSerializer):
    """
    Output serializer (DB truth). balance is read-only everywhere: only the
    ledger moves it.
    """

    is_protected = serializers.SerializerMethodField()

    class Meta:
        model = Account
        fields = [
            "id",
            "name",
            "bank_ref",
            "balance",
            "is_active",
            "is_protected",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields

    def get_is_protected(self, obj) -> bool:
        return is_protected_account_name(obj.name)


class AccountCreateSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=120)
    bank_ref = serializers.CharField(max_length=64, required=False, allow_blank=True, default="")
    opening_balance = serializers.DecimalField(
        max_digits=14,
        decimal_places=2,
        required=False,
        default=Decimal("0.00"),
    )

    def validate_opening_balance(self, value):
        if value < 0:
            raise serializers.ValidationError("opening_balance cannot be negative")
        return value


class AccountUpdateSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=120, required=False)
    bank_ref = serializers.CharField(max_length=64, required=False, allow_blank=True)

    def validate(self, attrs):
        if not attrs:
            raise serializers.ValidationError("Provide name and/or bank_ref")
        return attrs
