"""
Typed errors raised by the compliance services.

Compliance violations and degraded-data warnings are not exceptions; they
are returned as data. Everything here rejects the request outright.
"""
from mapping.utils import InvalidCoordinate


class ComplianceError(Exception):
    code = 'compliance_error'
    default_message = 'Compliance operation failed'

    def __init__(self, message=None, **context):
        self.context = context
        super().__init__(message or self.default_message)


# Conflict errors: user-correctable, surfaced verbatim.

class ConflictError(ComplianceError):
    code = 'conflict'


class AlreadyClockedIn(ConflictError):
    code = 'already_clocked_in'
    default_message = 'Driver is already clocked in'


class VehicleInUse(ConflictError):
    code = 'vehicle_in_use'
    default_message = 'Vehicle is already in use by another driver'


class NoOpenTimeCard(ConflictError):
    code = 'no_open_time_card'
    default_message = 'Driver has no open time card'


class IncompletePreviousTimeCard(ConflictError):
    code = 'incomplete_previous_time_card'
    default_message = 'Driver has an open time card from a previous day'


class DayAlreadyClosed(ConflictError):
    code = 'day_already_closed'
    default_message = 'Driver already has a completed time card for this day'


class TimeCardSuperseded(ConflictError):
    code = 'time_card_superseded'
    default_message = 'Time card has already been superseded by a correction'


# Validation errors: the request is rejected and no state is written.

class ComplianceValidationError(ComplianceError):
    code = 'validation_error'


class ClockOutBeforeClockIn(ComplianceValidationError):
    code = 'clock_out_before_clock_in'
    default_message = 'Clock-out time must be after clock-in time'


class SignatureRequired(ComplianceValidationError):
    code = 'signature_required'
    default_message = 'A signature is required to clock out'


class InvalidOdometerReading(ComplianceValidationError):
    code = 'invalid_odometer_reading'
    default_message = 'Ending odometer cannot be lower than starting odometer'


class TimeCardNotClosed(ComplianceValidationError):
    code = 'time_card_not_closed'
    default_message = 'Only completed time cards can be corrected'


class CorrectionReasonRequired(ComplianceValidationError):
    code = 'correction_reason_required'
    default_message = 'A reason is required to correct a time card'


class DriverInactive(ComplianceValidationError):
    code = 'driver_inactive'
    default_message = 'Driver is not active'


class VehicleUnavailable(ComplianceValidationError):
    code = 'vehicle_unavailable'
    default_message = 'Vehicle is not available for service'


# Roster lookups.

class RosterLookupError(ComplianceError):
    code = 'not_found'


class DriverNotFound(RosterLookupError):
    code = 'driver_not_found'
    default_message = 'Driver not found'


class VehicleNotFound(RosterLookupError):
    code = 'vehicle_not_found'
    default_message = 'Vehicle not found'


class TimeCardNotFound(RosterLookupError):
    code = 'time_card_not_found'
    default_message = 'Time card not found'


class StorageUnavailable(ComplianceError):
    code = 'storage_unavailable'
    default_message = 'Compliance storage is unavailable'


__all__ = [
    'ComplianceError', 'ConflictError', 'AlreadyClockedIn', 'VehicleInUse',
    'NoOpenTimeCard', 'IncompletePreviousTimeCard', 'DayAlreadyClosed', 'TimeCardSuperseded',
    'ComplianceValidationError', 'ClockOutBeforeClockIn', 'SignatureRequired',
    'InvalidOdometerReading', 'TimeCardNotClosed', 'CorrectionReasonRequired',
    'DriverInactive', 'VehicleUnavailable', 'InvalidCoordinate',
    'RosterLookupError', 'DriverNotFound', 'VehicleNotFound', 'TimeCardNotFound',
    'StorageUnavailable',
]
