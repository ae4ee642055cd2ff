"""
URL patterns for the compliance app.
"""
from django.urls import path, include
from rest_framework.routers import DefaultRouter
from . import views

router = DefaultRouter()
router.register(r'time-cards', views.TimeCardViewSet, basename='time-card')
router.register(r'violations', views.ComplianceViolationViewSet, basename='violation')

app_name = 'compliance'

urlpatterns = [
    path('clock-in/', views.clock_in, name='clock_in'),
    path('waypoints/', views.record_waypoint, name='record_waypoint'),
    path('clock-out/', views.clock_out, name='clock_out'),
    path('drivers/<int:driver_id>/status/', views.driver_status, name='driver_status'),
    path('drivers/<int:driver_id>/actual-hours/', views.actual_hours, name='actual_hours'),
    path('', include(router.urls)),
]
