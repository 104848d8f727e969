import logging
from collections.abc import Callable
from datetime import datetime

from clinic_scheduler.scheduling.availability import AvailabilityCalculator
from clinic_scheduler.scheduling.errors import DoctorNotFound, InvalidTemplate, RejectionReason
from clinic_scheduler.scheduling.ports import DoctorDirectory
from clinic_scheduler.scheduling.types import BookingRequest, Ok, Rejected, ValidationOutcome

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


class BookingValidator:
    """Checks a proposed booking against the doctor's current availability.

    Checks run in order and stop at the first failure: the doctor must
    exist, the start must be strictly in the future, and the start must be
    exactly one of the open slots for that day. Storage errors propagate.
    """

    def __init__(
        self,
        directory: DoctorDirectory,
        calculator: AvailabilityCalculator,
        clock: Clock = datetime.now,
    ):
        self.directory = directory
        self.calculator = calculator
        self.clock = clock

    def validate(self, request: BookingRequest) -> ValidationOutcome:
        if not self.directory.exists(request.doctor_id):
            return Rejected(RejectionReason.DOCTOR_NOT_FOUND, f'Doctor {request.doctor_id} does not exist.')

        if request.start_time <= self.clock():
            return Rejected(RejectionReason.PAST_TIME, 'Appointments must be scheduled in the future.')

        try:
            result = self.calculator.availability(request.doctor_id, request.start_time.date())
        except DoctorNotFound as exc:
            return Rejected(RejectionReason.DOCTOR_NOT_FOUND, str(exc))
        except InvalidTemplate as exc:
            logger.warning('Doctor %s has an invalid schedule template: %s', request.doctor_id, exc)
            return Rejected(RejectionReason.INVALID_TEMPLATE, str(exc))

        matches = [slot for slot in result.open_slots if slot.start == request.start_time]
        if len(matches) != 1:
            return Rejected(RejectionReason.SLOT_UNAVAILABLE, 'Appointment time is not available.')

        return Ok()
