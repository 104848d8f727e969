from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from clinic_scheduler.models.doctor import Doctor
from clinic_scheduler.scheduling.errors import DoctorNotFound, StorageFailure
from clinic_scheduler.scheduling.slots import parse_schedule_template
from clinic_scheduler.scheduling.types import ScheduleTemplate


class SqlDoctorDirectory:
    """Doctor lookups backed by the ``doctors`` table, one session per call."""

    def __init__(self, session_factory: sessionmaker[Session]):
        self.session_factory = session_factory

    def get_schedule(self, doctor_id: int) -> ScheduleTemplate:
        try:
            with self.session_factory() as db:
                row = db.query(Doctor.available_times).filter(Doctor.id == doctor_id).first()
        except SQLAlchemyError as exc:
            raise StorageFailure('Doctor directory unavailable.') from exc

        if row is None:
            raise DoctorNotFound(doctor_id)

        return parse_schedule_template(row.available_times)

    def exists(self, doctor_id: int) -> bool:
        try:
            with self.session_factory() as db:
                return db.query(Doctor.id).filter(Doctor.id == doctor_id).first() is not None
        except SQLAlchemyError as exc:
            raise StorageFailure('Doctor directory unavailable.') from exc

    def remove(self, doctor_id: int) -> None:
        with self.session_factory() as db:
            try:
                db.query(Doctor).filter(Doctor.id == doctor_id).delete(synchronize_session=False)
                db.commit()
            except SQLAlchemyError as exc:
                db.rollback()
                raise StorageFailure(f'Could not remove doctor {doctor_id}.') from exc
