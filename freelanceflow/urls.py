from django.contrib import admin
from django.urls import path, include
from drf_spectacular.views import SpectacularAPIView

from billing import health

urlpatterns = [
    path("admin/", admin.site.urls),
    path("health/live/", health.liveness_check, name="liveness_check"),
    path("health/ready/", health.readiness_check, name="readiness_check"),
    path("api/v1/schema/", SpectacularAPIView.as_view(), name="api-schema"),
    path("api/v1/", include("billing.api.urls")),
]
