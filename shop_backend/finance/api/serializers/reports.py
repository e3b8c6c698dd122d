# finance/api/serializers/reports.py

"""
Response shapes for the read-only report endpoints (schema documentation).
"""

from rest_framework import serializers

MONEY = {"max_digits": 14, "decimal_places": 2}


class DailyCashFlowSerializer(serializers.Serializer):
    date = serializers.DateField()
    income = serializers.DecimalField(**MONEY)
    expenses = serializers.DecimalField(**MONEY)
    balance = serializers.DecimalField(**MONEY)


class CashFlowRowSerializer(DailyCashFlowSerializer):
    running_balance = serializers.DecimalField(**MONEY)


class CategorySummaryRowSerializer(serializers.Serializer):
    category = serializers.CharField(allow_blank=True)
    amount = serializers.DecimalField(**MONEY)
    kind = serializers.CharField()


class FinancialSummarySerializer(serializers.Serializer):
    total_income = serializers.DecimalField(**MONEY)
    total_expenses = serializers.DecimalField(**MONEY)
    net_balance = serializers.DecimalField(**MONEY)
    period_start = serializers.DateField()
    period_end = serializers.DateField()


class AccountBalanceRowSerializer(serializers.Serializer):
    id = serializers.IntegerField()
    name = serializers.CharField()
    balance = serializers.DecimalField(**MONEY)


class BalanceOverviewSerializer(serializers.Serializer):
    total = serializers.DecimalField(**MONEY)
    cash = serializers.DecimalField(**MONEY)
    accounts = AccountBalanceRowSerializer(many=True)
