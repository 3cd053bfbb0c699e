from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import APIView

from infrastructure.cache import CacheError, check_cache_connection
from infrastructure.database import check_database_connection


class HealthCheckView(APIView):
    """Liveness: the process answers."""

    permission_classes = []

    def get(self, request):
        return Response({"status": "healthy", "service": "order-dispatch"}, status=status.HTTP_200_OK)


class ReadinessCheckView(APIView):
    """Readiness check - verifies the database and the cache"""

    permission_classes = []

    def get(self, request):
        checks = {
            "database": check_database_connection(),
            "cache": self._check_cache(),
        }
        all_healthy = all(checks.values())

        return Response(
            {"status": "ready" if all_healthy else "not_ready", "checks": checks},
            status=status.HTTP_200_OK if all_healthy else status.HTTP_503_SERVICE_UNAVAILABLE,
        )

    def _check_cache(self):
        try:
            return check_cache_connection()
        except CacheError:
            return False
