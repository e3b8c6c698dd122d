# finance/api/serializers/transfers.py

from rest_framework import serializers


class TransferCreateSerializer(serializers.Serializer):
    """
    Input serializer (Swagger-visible).
    """

    source_account_id = serializers.IntegerField()
    destination_account_id = serializers.IntegerField()
    amount = serializers.DecimalField(max_digits=14, decimal_places=2)
    description = serializers.CharField(max_length=255, required=False, allow_blank=True, default="")
    payment_method = serializers.CharField(max_length=50, required=False, allow_blank=True, default="")
    date = serializers.DateField(required=False, allow_null=True)

    def validate_amount(self, value):
        if value <= 0:
            raise serializers.ValidationError("amount must be > 0")
        return value

    def validate(self, attrs):
        if attrs["source_account_id"] == attrs["destination_account_id"]:
            raise serializers.ValidationError(
                {"destination_account_id": "Source and destination accounts must differ"}
            )
        return attrs
