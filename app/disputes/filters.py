import django_filters as filters

from disputes.models import Dispute


class DisputeFilter(filters.FilterSet):
    class Meta:
        model = Dispute
        fields = ["status", "reason", "priority"]
