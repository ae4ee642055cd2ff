"""
URL patterns for the core app.
"""
from django.urls import path, include
from rest_framework.routers import DefaultRouter
from . import views

router = DefaultRouter()
router.register(r'drivers', views.DriverViewSet, basename='driver')
router.register(r'vehicles', views.VehicleViewSet, basename='vehicle')

app_name = 'core'

urlpatterns = [
    path('', include(router.urls)),
]
