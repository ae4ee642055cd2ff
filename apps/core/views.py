"""
Core views: health check, read-only roster browsing and JSON error handlers.
"""
from django.db import connection, DatabaseError
from django.http import JsonResponse
from django.utils import timezone
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework.viewsets import ReadOnlyModelViewSet
from rest_framework import status
from .models import Driver, Vehicle
from .serializers import DriverSerializer, DriverSummarySerializer, VehicleSerializer
import logging

logger = logging.getLogger(__name__)


@api_view(['GET'])
@permission_classes([AllowAny])
def health_check(request):
    """
    Health check endpoint to verify the API and its database are reachable.
    """
    try:
        with connection.cursor() as cursor:
            cursor.execute("SELECT 1")
    except DatabaseError as e:
        logger.error(f"Health check database probe failed: {str(e)}")
        return Response({
            'status': 'unhealthy',
            'database': 'unavailable',
            'timestamp': timezone.now().isoformat(),
        }, status=status.HTTP_503_SERVICE_UNAVAILABLE)

    return Response({
        'status': 'healthy',
        'message': 'Tour compliance API is running',
        'database': 'ok',
        'timestamp': timezone.now().isoformat(),
    })


class DriverViewSet(ReadOnlyModelViewSet):
    """
    Read-only roster of drivers.
    """
    queryset = Driver.objects.all()

    def get_serializer_class(self):
        if self.action == 'list':
            return DriverSummarySerializer
        return DriverSerializer

    def get_queryset(self):
        queryset = super().get_queryset()

        is_active = self.request.query_params.get('is_active')
        if is_active is not None:
            queryset = queryset.filter(is_active=is_active.lower() == 'true')

        return queryset.order_by('name')


class VehicleViewSet(ReadOnlyModelViewSet):
    """
    Read-only roster of vehicles.
    """
    queryset = Vehicle.objects.all()
    serializer_class = VehicleSerializer

    def get_queryset(self):
        queryset = super().get_queryset()

        is_active = self.request.query_params.get('is_active')
        if is_active is not None:
            queryset = queryset.filter(is_active=is_active.lower() == 'true')

        vehicle_type = self.request.query_params.get('vehicle_type')
        if vehicle_type:
            queryset = queryset.filter(vehicle_type=vehicle_type)

        return queryset.order_by('vehicle_number')


def bad_request(request, exception):
    """400 Bad Request error handler"""
    return JsonResponse(
        {'error': 'bad_request', 'message': 'Bad request', 'status': 400},
        status=400
    )


def permission_denied(request, exception):
    """403 Permission Denied error handler"""
    return JsonResponse(
        {'error': 'permission_denied', 'message': 'Permission denied', 'status': 403},
        status=403
    )


def page_not_found(request, exception):
    """404 Not Found error handler"""
    return JsonResponse(
        {'error': 'not_found', 'message': 'Resource not found', 'status': 404},
        status=404
    )


def server_error(request):
    """500 Internal Server Error handler"""
    return JsonResponse(
        {'error': 'server_error', 'message': 'Internal server error', 'status': 500},
        status=500
    )
