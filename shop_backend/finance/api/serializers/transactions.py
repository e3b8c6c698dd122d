# finance/api/serializers/transactions.py

from rest_framework import serializers

from finance.models.transaction import FinancialTransaction

MANUAL_KINDS = [
    (FinancialTransaction.TYPE_INCOME, "Income"),
    (FinancialTransaction.TYPE_EXPENSE, "Expense"),
]


class TransactionSerializer(serializers.ModelSerializer):
    """
    Output serializer.

    amount is the positive magnitude (the type says which way it moved);
    signed_amount is the stored ledger value. running_balance is filled only
    when the view passes a {transaction_id: balance} map in context.
    """

    amount = serializers.DecimalField(source="magnitude", max_digits=14, decimal_places=2, read_only=True)
    signed_amount = serializers.DecimalField(source="amount", max_digits=14, decimal_places=2, read_only=True)
    source_account_name = serializers.CharField(source="source_account.name", read_only=True, default=None)
    destination_account_name = serializers.CharField(
        source="destination_account.name", read_only=True, default=None
    )
    created_by_email = serializers.EmailField(source="created_by.email", read_only=True, default=None)
    is_manual = serializers.BooleanField(read_only=True)
    running_balance = serializers.SerializerMethodField()

    class Meta:
        model = FinancialTransaction
        fields = [
            "id",
            "type",
            "amount",
            "signed_amount",
            "description",
            "category",
            "reference_type",
            "reference_id",
            "reference_number",
            "payment_method",
            "date",
            "source_account_id",
            "source_account_name",
            "destination_account_id",
            "destination_account_name",
            "reversal_of_id",
            "is_manual",
            "created_by_email",
            "created_at",
            "updated_at",
            "running_balance",
        ]
        read_only_fields = fields

    def get_running_balance(self, obj):
        balances = self.context.get("running_balances")
        if not balances or obj.id not in balances:
            return None
        return str(balances[obj.id])


class ManualTransactionCreateSerializer(serializers.Serializer):
    """
    Operator-entered income/expense. account_id is the account credited
    (income) or debited (expense).
    """

    type = serializers.ChoiceField(choices=MANUAL_KINDS)
    amount = serializers.DecimalField(max_digits=14, decimal_places=2)
    account_id = serializers.IntegerField()
    description = serializers.CharField(max_length=255)
    category = serializers.CharField(max_length=100, required=False, allow_blank=True, default="")
    payment_method = serializers.CharField(max_length=50, required=False, allow_blank=True, default="")
    reference_number = serializers.CharField(max_length=64, required=False, allow_blank=True, default="")
    date = serializers.DateField(required=False, allow_null=True)

    def validate_amount(self, value):
        if value <= 0:
            raise serializers.ValidationError("amount must be > 0")
        return value


class ManualTransactionUpdateSerializer(serializers.Serializer):
    type = serializers.ChoiceField(choices=MANUAL_KINDS, required=False)
    amount = serializers.DecimalField(max_digits=14, decimal_places=2, required=False)
    account_id = serializers.IntegerField(required=False)
    description = serializers.CharField(max_length=255, required=False)
    category = serializers.CharField(max_length=100, required=False, allow_blank=True)
    payment_method = serializers.CharField(max_length=50, required=False, allow_blank=True)
    reference_number = serializers.CharField(max_length=64, required=False, allow_blank=True)
    date = serializers.DateField(required=False)

    def validate_amount(self, value):
        if value <= 0:
            raise serializers.ValidationError("amount must be > 0")
        return value

    def validate(self, attrs):
        if not attrs:
            raise serializers.ValidationError("Nothing to update")
        return attrs


class ReverseTransactionSerializer(serializers.Serializer):
    description = serializers.CharField(max_length=255, required=False, allow_blank=True)
