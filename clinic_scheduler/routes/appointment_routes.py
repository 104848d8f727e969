from datetime import date, datetime

from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel, field_validator

from clinic_scheduler.auth.dependencies import Identity, require_role
from clinic_scheduler.routes.common import ensure_database_ready, get_coordinator, raise_for_rejection
from clinic_scheduler.scheduling.coordinator import SchedulingCoordinator
from clinic_scheduler.scheduling.types import AppointmentRecord, BookingRequest, Rejected

router = APIRouter(tags=['appointments'])


def _normalize_start_time(value: datetime) -> datetime:
    if value.tzinfo is not None:
        raise ValueError('Start time must be a local clinic time without a UTC offset.')
    return value.replace(second=0, microsecond=0)


class CreateAppointmentRequest(BaseModel):
    doctor_id: int
    start_time: datetime

    @field_validator('start_time')
    @classmethod
    def validate_start_time(cls, value: datetime) -> datetime:
        return _normalize_start_time(value)


class RescheduleAppointmentRequest(BaseModel):
    start_time: datetime

    @field_validator('start_time')
    @classmethod
    def validate_start_time(cls, value: datetime) -> datetime:
        return _normalize_start_time(value)


class RescheduledAppointmentResponse(BaseModel):
    id: int
    start_time: datetime


class AppointmentResponse(BaseModel):
    id: int
    doctor_id: int
    patient_id: int
    start_time: datetime
    status: str


def to_appointment_response(appointment: AppointmentRecord) -> AppointmentResponse:
    return AppointmentResponse(
        id=appointment.id,
        doctor_id=appointment.doctor_id,
        patient_id=appointment.patient_id,
        start_time=appointment.start_time,
        status=appointment.status.value,
    )


@router.post('/appointments', response_model=AppointmentResponse, status_code=status.HTTP_201_CREATED)
def create_appointment(
    data: CreateAppointmentRequest,
    identity: Identity = Depends(require_role('patient')),
    coordinator: SchedulingCoordinator = Depends(get_coordinator),
):
    ensure_database_ready()

    outcome = coordinator.book(
        BookingRequest(doctor_id=data.doctor_id, patient_id=identity.user_id, start_time=data.start_time)
    )
    if isinstance(outcome, Rejected):
        raise_for_rejection(outcome)

    return AppointmentResponse(
        id=outcome.appointment_id,
        doctor_id=data.doctor_id,
        patient_id=identity.user_id,
        start_time=data.start_time,
        status='scheduled',
    )


@router.put('/appointments/{appointment_id}', response_model=RescheduledAppointmentResponse)
def reschedule_appointment(
    appointment_id: int,
    data: RescheduleAppointmentRequest,
    identity: Identity = Depends(require_role('patient')),
    coordinator: SchedulingCoordinator = Depends(get_coordinator),
):
    ensure_database_ready()

    outcome = coordinator.reschedule(appointment_id, identity.user_id, data.start_time)
    if isinstance(outcome, Rejected):
        raise_for_rejection(outcome)

    return RescheduledAppointmentResponse(id=outcome.appointment_id, start_time=outcome.start_time)


@router.delete('/appointments/{appointment_id}', status_code=status.HTTP_204_NO_CONTENT)
def cancel_appointment(
    appointment_id: int,
    identity: Identity = Depends(require_role('patient')),
    coordinator: SchedulingCoordinator = Depends(get_coordinator),
):
    ensure_database_ready()

    outcome = coordinator.cancel(appointment_id, identity.user_id)
    if isinstance(outcome, Rejected):
        raise_for_rejection(outcome)


@router.get('/appointments', response_model=list[AppointmentResponse])
def list_doctor_appointments(
    on_date: date = Query(..., alias='date'),
    identity: Identity = Depends(require_role('doctor')),
    coordinator: SchedulingCoordinator = Depends(get_coordinator),
):
    ensure_database_ready()

    appointments = coordinator.appointments_for_day(identity.user_id, on_date)
    if isinstance(appointments, Rejected):
        raise_for_rejection(appointments)

    return [to_appointment_response(appointment) for appointment in appointments]
