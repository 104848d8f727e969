"""Rejection reasons and the exceptions raised inside the scheduling core.

Exceptions never leave :class:`~clinic_scheduler.scheduling.coordinator.SchedulingCoordinator`;
it converts them into ``Rejected`` outcomes carrying a :class:`RejectionReason`.
"""

import enum


class RejectionReason(str, enum.Enum):
    DOCTOR_NOT_FOUND = "doctor_not_found"
    SLOT_UNAVAILABLE = "slot_unavailable"
    PAST_TIME = "past_time"
    INVALID_TEMPLATE = "invalid_template"
    APPOINTMENT_NOT_FOUND = "appointment_not_found"
    UNAUTHORIZED = "unauthorized"
    STORAGE_FAILURE = "storage_failure"


class SchedulingError(Exception):
    reason: RejectionReason


class DoctorNotFound(SchedulingError):
    reason = RejectionReason.DOCTOR_NOT_FOUND

    def __init__(self, doctor_id: int):
        super().__init__(f"Doctor {doctor_id} does not exist.")
        self.doctor_id = doctor_id


class InvalidTemplate(SchedulingError):
    reason = RejectionReason.INVALID_TEMPLATE


class StorageFailure(SchedulingError):
    reason = RejectionReason.STORAGE_FAILURE


class LockUnavailable(StorageFailure):
    def __init__(self, doctor_id: int, timeout: float):
        super().__init__(f"Timed out after {timeout:g}s waiting for doctor {doctor_id}.")
        self.doctor_id = doctor_id
        self.timeout = timeout
