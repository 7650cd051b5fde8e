import django_filters as filters

from notifications.models import Notification


class NotificationFilter(filters.FilterSet):
    # Settlement notifications carry the order id in their data payload
    order = filters.UUIDFilter(field_name="data__order_id", method="filter_order")

    class Meta:
        model = Notification
        fields = ["is_read", "category", "order"]

    def filter_order(self, queryset, name, value):
        return queryset.filter(**{name: str(value)})
