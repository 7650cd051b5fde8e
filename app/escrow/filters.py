import django_filters as filters

from escrow.models import Escrow


class EscrowFilter(filters.FilterSet):
    funded_after = filters.IsoDateTimeFilter(field_name="funded_at", lookup_expr="gte")
    funded_before = filters.IsoDateTimeFilter(field_name="funded_at", lookup_expr="lte")

    class Meta:
        model = Escrow
        fields = ["status", "currency", "funded_after", "funded_before"]
