from datetime import datetime

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from clinic_scheduler.models.appointment import Appointment
from clinic_scheduler.scheduling.errors import StorageFailure
from clinic_scheduler.scheduling.types import AppointmentRecord, AppointmentStatus


def to_record(appointment: Appointment) -> AppointmentRecord:
    return AppointmentRecord(
        id=appointment.id,
        doctor_id=appointment.doctor_id,
        patient_id=appointment.patient_id,
        start_time=appointment.appointment_time,
        status=AppointmentStatus(appointment.status or AppointmentStatus.SCHEDULED.value),
    )


class SqlAppointmentStore:
    """Appointment persistence over the ``appointments`` table.

    Each call uses its own short-lived session and commits before returning,
    so a write is visible to the next reader as soon as the call completes.
    """

    def __init__(self, session_factory: sessionmaker[Session]):
        self.session_factory = session_factory

    def find_by_doctor_and_date_range(
        self, doctor_id: int, start: datetime, end: datetime
    ) -> list[AppointmentRecord]:
        try:
            with self.session_factory() as db:
                appointments = db.query(Appointment).filter(
                    Appointment.doctor_id == doctor_id,
                    Appointment.appointment_time >= start,
                    Appointment.appointment_time < end,
                ).order_by(Appointment.appointment_time.asc()).all()
                return [to_record(appointment) for appointment in appointments]
        except SQLAlchemyError as exc:
            raise StorageFailure('Appointment store unavailable.') from exc

    def find_by_id(self, appointment_id: int) -> AppointmentRecord | None:
        try:
            with self.session_factory() as db:
                appointment = db.get(Appointment, appointment_id)
                return to_record(appointment) if appointment else None
        except SQLAlchemyError as exc:
            raise StorageFailure('Appointment store unavailable.') from exc

    def save(self, appointment: AppointmentRecord) -> int:
        with self.session_factory() as db:
            try:
                row = Appointment(
                    doctor_id=appointment.doctor_id,
                    patient_id=appointment.patient_id,
                    appointment_time=appointment.start_time,
                    status=appointment.status.value,
                )
                db.add(row)
                db.commit()
                db.refresh(row)
                return row.id
            except SQLAlchemyError as exc:
                db.rollback()
                raise StorageFailure('Could not save appointment.') from exc

    def update_start_time(self, appointment_id: int, start_time: datetime) -> None:
        with self.session_factory() as db:
            try:
                db.query(Appointment).filter(Appointment.id == appointment_id).update(
                    {Appointment.appointment_time: start_time},
                    synchronize_session=False,
                )
                db.commit()
            except SQLAlchemyError as exc:
                db.rollback()
                raise StorageFailure(f'Could not move appointment {appointment_id}.') from exc

    def delete_by_id(self, appointment_id: int) -> None:
        with self.session_factory() as db:
            try:
                db.query(Appointment).filter(Appointment.id == appointment_id).delete(synchronize_session=False)
                db.commit()
            except SQLAlchemyError as exc:
                db.rollback()
                raise StorageFailure(f'Could not delete appointment {appointment_id}.') from exc

    def delete_all_by_doctor(self, doctor_id: int) -> int:
        with self.session_factory() as db:
            try:
                deleted = db.query(Appointment).filter(
                    Appointment.doctor_id == doctor_id,
                ).delete(synchronize_session=False)
                db.commit()
                return deleted
            except SQLAlchemyError as exc:
                db.rollback()
                raise StorageFailure(f'Could not purge appointments for doctor {doctor_id}.') from exc
