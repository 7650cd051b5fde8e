"""
URL configuration for the dispute API.

Routes:
    /               - List (GET) / open (POST)
    /stats/         - Counts per status (GET, admin)
    /{id}/          - Detail (GET)
    /{id}/respond/  - Counterparty answer (POST)
    /{id}/escalate/ - Escalate (POST, admin)
    /{id}/review/   - Take under review (POST, admin)
    /{id}/resolve/  - Resolve (POST, admin)
    /{id}/close/    - Close (POST, admin)
"""

from rest_framework.routers import SimpleRouter

from disputes.views import DisputeViewSet

router = SimpleRouter()
router.register(r"", DisputeViewSet, basename="dispute")

app_name = "disputes"
urlpatterns = router.urls
