from fastapi import HTTPException, Request, status
from sqlalchemy.exc import SQLAlchemyError

from clinic_scheduler.database import ensure_scheduling_schema
from clinic_scheduler.scheduling.coordinator import SchedulingCoordinator
from clinic_scheduler.scheduling.errors import RejectionReason
from clinic_scheduler.scheduling.types import Rejected

DATABASE_UNAVAILABLE_DETAIL = 'Database unavailable. Verify DATABASE_URL and database credentials.'

REJECTION_RESPONSES: dict[RejectionReason, tuple[int, str]] = {
    RejectionReason.DOCTOR_NOT_FOUND: (status.HTTP_404_NOT_FOUND, 'Doctor does not exist.'),
    RejectionReason.SLOT_UNAVAILABLE: (status.HTTP_409_CONFLICT, 'Appointment time is not available.'),
    RejectionReason.PAST_TIME: (status.HTTP_400_BAD_REQUEST, 'Appointments must be scheduled in the future.'),
    RejectionReason.INVALID_TEMPLATE: (
        status.HTTP_422_UNPROCESSABLE_ENTITY,
        "The doctor's schedule is misconfigured.",
    ),
    RejectionReason.APPOINTMENT_NOT_FOUND: (status.HTTP_404_NOT_FOUND, 'Appointment not found.'),
    RejectionReason.UNAUTHORIZED: (
        status.HTTP_403_FORBIDDEN,
        'Only the patient who booked this appointment can change it.',
    ),
    RejectionReason.STORAGE_FAILURE: (status.HTTP_503_SERVICE_UNAVAILABLE, DATABASE_UNAVAILABLE_DETAIL),
}


def ensure_database_ready() -> None:
    try:
        ensure_scheduling_schema()
    except SQLAlchemyError as exc:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=DATABASE_UNAVAILABLE_DETAIL,
        ) from exc


def get_coordinator(request: Request) -> SchedulingCoordinator:
    return request.app.state.coordinator


def raise_for_rejection(rejection: Rejected) -> None:
    status_code, detail = REJECTION_RESPONSES[rejection.reason]
    raise HTTPException(status_code=status_code, detail=detail)
