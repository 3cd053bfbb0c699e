from django.urls import include, path
from rest_framework.routers import SimpleRouter

from .views import RiderViewSet

app_name = "riders"

router = SimpleRouter()
router.register(r"", RiderViewSet, basename="rider")

urlpatterns = [
    path("", include(router.urls)),
]
