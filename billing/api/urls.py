"""API URL routing for FreelanceFlow."""
from rest_framework.routers import DefaultRouter

from .views import ClientViewSet, InvoiceViewSet, ProjectViewSet, WorkdayViewSet

router = DefaultRouter()
router.register(r'clients', ClientViewSet, basename='api-clients')
router.register(r'projects', ProjectViewSet, basename='api-projects')
router.register(r'workdays', WorkdayViewSet, basename='api-workdays')
router.register(r'invoices', InvoiceViewSet, basename='api-invoices')

urlpatterns = router.urls
