# finance/api/filters.py

"""
Query-string filters for the transaction listing.

The FilterSet only validates and coerces the query params; the narrowing
itself is ledger_service.filter_transactions().
"""

import django_filters

from finance.models.transaction import FinancialTransaction
from finance.services import ledger_service


class TransactionFilter(django_filters.FilterSet):
    start = django_filters.DateFilter()
    end = django_filters.DateFilter()
    type = django_filters.ChoiceFilter(choices=FinancialTransaction.TYPE_CHOICES)
    payment_method = django_filters.CharFilter()
    category = django_filters.CharFilter()
    source = django_filters.ChoiceFilter(choices=[(s, s) for s in sorted(ledger_service.SOURCES)])

    class Meta:
        model = FinancialTransaction
        fields = ["start", "end", "type", "payment_method", "category", "source"]

    def filter_queryset(self, queryset):
        data = self.form.cleaned_data
        return ledger_service.filter_transactions(
            start=data.get("start"),
            end=data.get("end"),
            kind=data.get("type") or None,
            payment_method=data.get("payment_method") or None,
            category=data.get("category") or None,
            source=data.get("source") or None,
            queryset=queryset,
        )
