"""
Main API URL configuration for the Chakravyuh backend.
Consolidates all app API endpoints.
"""
from django.urls import path, include
from rest_framework.routers import DefaultRouter

# Import ViewSets from all apps
from apps.core.views import AdminAuthViewSet
from apps.registrations.views import AdminRegistrationViewSet, RegistrationViewSet

# Create main router
router = DefaultRouter()

# Register all ViewSets
router.register(r'registrations', RegistrationViewSet, basename='registration')
router.register(r'admin/registrations', AdminRegistrationViewSet,
                basename='admin-registration')
router.register(r'admin', AdminAuthViewSet, basename='admin')

# API URL patterns
urlpatterns = [
    # Router URLs
    path('', include(router.urls)),

    # Gateway payment endpoints
    path('payments/', include('apps.payments.urls')),
]
