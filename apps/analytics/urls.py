"""URL routing for analytics endpoints."""

from django.urls import path  # type: ignore

from .views import AdminDashboardView

urlpatterns = [
    path('dashboard/', AdminDashboardView.as_view(), name='admin-dashboard'),
]
