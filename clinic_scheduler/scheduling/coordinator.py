"""The only writer of booking state.

Every mutation runs inside the owning doctor's lock scope, and bookings are
re-validated inside that scope, so two requests for the same slot can never
both pass validation. Slot transitions are Open -> Booked on booking and
Booked -> Open on cancellation; Booked -> Booked is what the lock prevents.

Nothing raised by a collaborator escapes this class: scheduling errors come
back as ``Rejected`` outcomes, storage and lock errors as
``Rejected(STORAGE_FAILURE)``. Storage failures are not retried here.
"""

import logging
from datetime import date, datetime

from clinic_scheduler.scheduling.availability import AvailabilityCalculator
from clinic_scheduler.scheduling.errors import RejectionReason, SchedulingError, StorageFailure
from clinic_scheduler.scheduling.ledger import BookingLedger
from clinic_scheduler.scheduling.locks import DoctorLockProvider
from clinic_scheduler.scheduling.ports import AppointmentStore, DoctorDirectory
from clinic_scheduler.scheduling.types import (
    AppointmentRecord,
    AppointmentStatus,
    AvailabilityResult,
    BookingOutcome,
    BookingRequest,
    CancelOutcome,
    Cancelled,
    Created,
    DeleteOutcome,
    Deleted,
    Rejected,
    RescheduleOutcome,
    Rescheduled,
)
from clinic_scheduler.scheduling.validator import BookingValidator, Clock

logger = logging.getLogger(__name__)

NOT_FOUND_DETAIL = 'Appointment not found.'
NOT_OWNER_DETAIL = 'Only the patient who booked this appointment can change it.'


def _storage_rejection(exc: StorageFailure) -> Rejected:
    return Rejected(RejectionReason.STORAGE_FAILURE, str(exc))


class SchedulingCoordinator:
    def __init__(
        self,
        directory: DoctorDirectory,
        store: AppointmentStore,
        locks: DoctorLockProvider,
        clock: Clock = datetime.now,
    ):
        self.directory = directory
        self.store = store
        self.locks = locks
        self.ledger = BookingLedger(store)
        self.calculator = AvailabilityCalculator(directory, self.ledger)
        self.validator = BookingValidator(directory, self.calculator, clock=clock)

    def get_availability(self, doctor_id: int, on_date: date) -> AvailabilityResult | Rejected:
        try:
            return self.calculator.availability(doctor_id, on_date)
        except StorageFailure as exc:
            logger.warning('Availability lookup for doctor %s failed: %s', doctor_id, exc)
            return _storage_rejection(exc)
        except SchedulingError as exc:
            return Rejected(exc.reason, str(exc))

    def appointments_for_day(self, doctor_id: int, on_date: date) -> list[AppointmentRecord] | Rejected:
        try:
            if not self.directory.exists(doctor_id):
                return Rejected(RejectionReason.DOCTOR_NOT_FOUND, f'Doctor {doctor_id} does not exist.')
            return self.ledger.appointments_on(doctor_id, on_date)
        except StorageFailure as exc:
            logger.warning('Appointment listing for doctor %s failed: %s', doctor_id, exc)
            return _storage_rejection(exc)

    def book(self, request: BookingRequest) -> BookingOutcome:
        try:
            with self.locks.scope(request.doctor_id):
                outcome = self.validator.validate(request)
                if isinstance(outcome, Rejected):
                    logger.info(
                        'Rejected booking for doctor %s at %s: %s',
                        request.doctor_id, request.start_time, outcome.reason.value,
                    )
                    return outcome

                appointment_id = self.store.save(
                    AppointmentRecord(
                        doctor_id=request.doctor_id,
                        patient_id=request.patient_id,
                        start_time=request.start_time,
                        status=AppointmentStatus.SCHEDULED,
                    )
                )
        except StorageFailure as exc:
            logger.exception('Booking for doctor %s at %s failed', request.doctor_id, request.start_time)
            return _storage_rejection(exc)

        logger.info(
            'Booked appointment %s for patient %s with doctor %s at %s',
            appointment_id, request.patient_id, request.doctor_id, request.start_time,
        )
        return Created(appointment_id)

    def _load_owned(self, appointment_id: int, requester_id: int) -> AppointmentRecord | Rejected:
        appointment = self.store.find_by_id(appointment_id)
        if appointment is None:
            return Rejected(RejectionReason.APPOINTMENT_NOT_FOUND, NOT_FOUND_DETAIL)
        if appointment.patient_id != requester_id:
            return Rejected(RejectionReason.UNAUTHORIZED, NOT_OWNER_DETAIL)
        return appointment

    def cancel(self, appointment_id: int, requester_id: int) -> CancelOutcome:
        try:
            appointment = self._load_owned(appointment_id, requester_id)
            if isinstance(appointment, Rejected):
                return appointment

            with self.locks.scope(appointment.doctor_id):
                # A concurrent cancel may have won while we waited.
                if self.store.find_by_id(appointment_id) is None:
                    return Rejected(RejectionReason.APPOINTMENT_NOT_FOUND, NOT_FOUND_DETAIL)
                self.store.delete_by_id(appointment_id)
        except StorageFailure as exc:
            logger.exception('Cancelling appointment %s failed', appointment_id)
            return _storage_rejection(exc)

        logger.info('Cancelled appointment %s for patient %s', appointment_id, requester_id)
        return Cancelled(appointment_id)

    def reschedule(self, appointment_id: int, requester_id: int, new_start: datetime) -> RescheduleOutcome:
        try:
            appointment = self._load_owned(appointment_id, requester_id)
            if isinstance(appointment, Rejected):
                return appointment

            with self.locks.scope(appointment.doctor_id):
                current = self._load_owned(appointment_id, requester_id)
                if isinstance(current, Rejected):
                    return current
                if current.status != AppointmentStatus.SCHEDULED:
                    return Rejected(
                        RejectionReason.SLOT_UNAVAILABLE,
                        'Only scheduled appointments can be rescheduled.',
                    )
                if current.start_time == new_start:
                    return Rescheduled(appointment_id, new_start)

                outcome = self.validator.validate(
                    BookingRequest(
                        doctor_id=current.doctor_id,
                        patient_id=current.patient_id,
                        start_time=new_start,
                    )
                )
                if isinstance(outcome, Rejected):
                    logger.info(
                        'Rejected reschedule of appointment %s to %s: %s',
                        appointment_id, new_start, outcome.reason.value,
                    )
                    return outcome

                self.store.update_start_time(appointment_id, new_start)
        except StorageFailure as exc:
            logger.exception('Rescheduling appointment %s failed', appointment_id)
            return _storage_rejection(exc)

        logger.info('Moved appointment %s to %s', appointment_id, new_start)
        return Rescheduled(appointment_id, new_start)

    def delete_doctor(self, doctor_id: int) -> DeleteOutcome:
        try:
            with self.locks.scope(doctor_id):
                if not self.directory.exists(doctor_id):
                    return Rejected(RejectionReason.DOCTOR_NOT_FOUND, f'Doctor {doctor_id} does not exist.')

                # Appointments go first so none is left pointing at a removed doctor.
                purged = self.store.delete_all_by_doctor(doctor_id)
                self.directory.remove(doctor_id)
        except StorageFailure as exc:
            logger.exception('Removing doctor %s failed', doctor_id)
            return _storage_rejection(exc)

        logger.info('Removed doctor %s and %s appointment(s)', doctor_id, purged)
        return Deleted(doctor_id)
