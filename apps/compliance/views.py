"""
Views for the compliance app.
"""
from django.utils import timezone
from django.utils.dateparse import parse_date
from rest_framework import viewsets, status
from rest_framework.decorators import api_view, action
from rest_framework.response import Response
from mapping.utils import Coordinate, InvalidCoordinate
from .exceptions import (
    ComplianceError, ConflictError, ComplianceValidationError,
    RosterLookupError, StorageUnavailable
)
from .models import TimeCard, ComplianceViolation
from .serializers import (
    TimeCardSerializer, ComplianceViolationSerializer, TimeCardAuditLogSerializer,
    DailyTripSerializer, MonthlyExemptionStatusSerializer, WeeklyHOSSerializer,
    ClockInSerializer, WaypointSerializer, ClockOutSerializer,
    TimeCardCorrectionSerializer, HistoricalEntrySerializer, GpsWaypointSerializer
)
from .services import TimeCardLedger, ComplianceStatusService
import logging

logger = logging.getLogger(__name__)

ERROR_STATUSES = [
    (ConflictError, status.HTTP_409_CONFLICT),
    (ComplianceValidationError, status.HTTP_400_BAD_REQUEST),
    (InvalidCoordinate, status.HTTP_400_BAD_REQUEST),
    (RosterLookupError, status.HTTP_404_NOT_FOUND),
    (StorageUnavailable, status.HTTP_503_SERVICE_UNAVAILABLE),
]


def _error_response(error):
    http_status = status.HTTP_500_INTERNAL_SERVER_ERROR
    for error_class, mapped_status in ERROR_STATUSES:
        if isinstance(error, error_class):
            http_status = mapped_status
            break

    if http_status >= 500:
        logger.error(f"Compliance request failed: {str(error)}")
    return Response(
        {'error': getattr(error, 'code', 'error'), 'message': str(error)},
        status=http_status
    )


def _coordinate(location):
    if not location:
        return None
    return Coordinate(location['latitude'], location['longitude'], location.get('accuracy'))


def _clock_out_payload(result):
    return {
        'time_card': TimeCardSerializer(result.time_card).data,
        'hours_worked': result.hours_worked,
        'violations': ComplianceViolationSerializer(result.violations, many=True).data,
        'warnings': result.warnings,
        'daily_trip': DailyTripSerializer(result.daily_trip).data if result.daily_trip else None,
        'exemption': MonthlyExemptionStatusSerializer(result.exemption).data if result.exemption else None,
        'weekly': WeeklyHOSSerializer(result.weekly).data if result.weekly else None,
    }


@api_view(['POST'])
def clock_in(request):
    """
    Clock a driver in with a vehicle.
    """
    serializer = ClockInSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    data = serializer.validated_data

    try:
        time_card = TimeCardLedger().clock_in(
            driver_id=data['driver_id'],
            vehicle_id=data['vehicle_id'],
            timestamp=data.get('timestamp') or timezone.now(),
            location=_coordinate(data.get('location')),
            notes=data.get('notes', ''),
            start_odometer=data.get('start_odometer'),
            force_close_previous=data.get('force_close_previous', False),
        )
    except (ComplianceError, InvalidCoordinate) as e:
        return _error_response(e)

    return Response(TimeCardSerializer(time_card).data, status=status.HTTP_201_CREATED)


@api_view(['POST'])
def record_waypoint(request):
    """
    Record a GPS sample for an on-duty driver. Samples outside a duty period are discarded.
    """
    serializer = WaypointSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    data = serializer.validated_data

    try:
        waypoint = TimeCardLedger().record_waypoint(
            driver_id=data['driver_id'],
            timestamp=data.get('timestamp') or timezone.now(),
            location=_coordinate(data['location']),
        )
    except (ComplianceError, InvalidCoordinate) as e:
        return _error_response(e)

    return Response({
        'recorded': waypoint is not None,
        'waypoint': GpsWaypointSerializer(waypoint).data if waypoint else None,
    }, status=status.HTTP_202_ACCEPTED)


@api_view(['POST'])
def clock_out(request):
    """
    Clock a driver out, returning the closed time card and any violations.
    """
    serializer = ClockOutSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    data = serializer.validated_data

    try:
        result = TimeCardLedger().clock_out(
            driver_id=data['driver_id'],
            timestamp=data.get('timestamp') or timezone.now(),
            location=_coordinate(data.get('location')),
            signature=data.get('signature', ''),
            notes=data.get('notes', ''),
            end_odometer=data.get('end_odometer'),
        )
    except (ComplianceError, InvalidCoordinate) as e:
        return _error_response(e)

    return Response(_clock_out_payload(result))


@api_view(['GET'])
def driver_status(request, driver_id):
    """
    Today's compliance status for a driver: hours, distance, exemption and alerts.
    """
    try:
        status_view = ComplianceStatusService().today_status(driver_id)
    except ComplianceError as e:
        return _error_response(e)

    return Response(status_view.as_dict())


@api_view(['GET'])
def actual_hours(request, driver_id):
    """
    Actual worked hours for a driver on a date, used by invoicing.
    """
    work_date = parse_date(request.query_params.get('date', '') or '')
    if work_date is None:
        return Response(
            {'error': 'invalid_date', 'message': 'A date query parameter (YYYY-MM-DD) is required'},
            status=status.HTTP_400_BAD_REQUEST
        )

    try:
        hours = TimeCardLedger().actual_hours(driver_id, work_date)
    except ComplianceError as e:
        return _error_response(e)

    return Response({
        'driver_id': driver_id,
        'date': work_date,
        'actual_hours': hours,
        'has_time_card': hours is not None,
    })


class TimeCardViewSet(viewsets.ReadOnlyModelViewSet):
    """
    Browse the time-card ledger; corrections and backfills are explicit actions.
    """
    queryset = TimeCard.objects.all().select_related('driver', 'vehicle')
    serializer_class = TimeCardSerializer

    def get_queryset(self):
        queryset = super().get_queryset()

        driver_id = self.request.query_params.get('driver_id')
        if driver_id:
            queryset = queryset.filter(driver_id=driver_id)

        start_date = self.request.query_params.get('start_date')
        end_date = self.request.query_params.get('end_date')
        if start_date:
            queryset = queryset.filter(work_date__gte=start_date)
        if end_date:
            queryset = queryset.filter(work_date__lte=end_date)

        card_status = self.request.query_params.get('status')
        if card_status:
            queryset = queryset.filter(status=card_status)

        # Superseded cards stay reachable by id; listings hide them unless asked
        include_superseded = self.request.query_params.get('include_superseded', 'false')
        if self.action == 'list' and include_superseded.lower() != 'true':
            queryset = queryset.filter(is_superseded=False)

        return queryset.order_by('-work_date', '-clock_in_time')

    @action(detail=True, methods=['get'])
    def violations(self, request, pk=None):
        """
        Get all violations recorded against a time card.
        """
        time_card = self.get_object()
        violations = time_card.violations.all().order_by('-detected_at')

        return Response({
            'time_card_id': time_card.id,
            'violations': ComplianceViolationSerializer(violations, many=True).data
        })

    @action(detail=True, methods=['get'])
    def audit_trail(self, request, pk=None):
        time_card = self.get_object()
        entries = time_card.audit_entries.all().order_by('created_at')

        return Response({
            'time_card_id': time_card.id,
            'entries': TimeCardAuditLogSerializer(entries, many=True).data
        })

    @action(detail=True, methods=['post'])
    def correct(self, request, pk=None):
        """
        Supersede a completed time card with corrected clock times.
        """
        serializer = TimeCardCorrectionSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
        data = serializer.validated_data

        try:
            result = TimeCardLedger().correct_time_card(
                time_card_id=pk,
                clock_in_time=data['clock_in_time'],
                clock_out_time=data['clock_out_time'],
                reason=data['reason'],
                corrected_by=data.get('corrected_by', ''),
                notes=data.get('notes'),
            )
        except ComplianceError as e:
            return _error_response(e)

        return Response(_clock_out_payload(result), status=status.HTTP_201_CREATED)

    @action(detail=False, methods=['post'])
    def historical(self, request):
        """
        Backfill a completed time card from a paper record.
        """
        serializer = HistoricalEntrySerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
        data = serializer.validated_data

        try:
            result = TimeCardLedger().record_historical_entry(
                driver_id=data['driver_id'],
                vehicle_id=data['vehicle_id'],
                clock_in_time=data['clock_in_time'],
                clock_out_time=data['clock_out_time'],
                furthest_point=_coordinate(data.get('furthest_point')),
                historical_source=data['historical_source'],
                notes=data.get('notes', ''),
                entered_by=data.get('entered_by', ''),
            )
        except (ComplianceError, InvalidCoordinate) as e:
            return _error_response(e)

        return Response(_clock_out_payload(result), status=status.HTTP_201_CREATED)


class ComplianceViolationViewSet(viewsets.ReadOnlyModelViewSet):
    queryset = ComplianceViolation.objects.all().select_related('driver')
    serializer_class = ComplianceViolationSerializer

    def get_queryset(self):
        queryset = super().get_queryset()

        driver_id = self.request.query_params.get('driver_id')
        if driver_id:
            queryset = queryset.filter(driver_id=driver_id)

        violation_type = self.request.query_params.get('violation_type')
        if violation_type:
            queryset = queryset.filter(violation_type=violation_type)

        start_date = self.request.query_params.get('start_date')
        end_date = self.request.query_params.get('end_date')
        if start_date:
            queryset = queryset.filter(violation_date__gte=start_date)
        if end_date:
            queryset = queryset.filter(violation_date__lte=end_date)

        return queryset.order_by('-violation_date', '-detected_at')
