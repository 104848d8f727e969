import os
import threading
from datetime import datetime

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

os.environ.setdefault('DATABASE_URL', 'sqlite://')

from clinic_scheduler.database import Base, build_engine  # noqa: E402
from clinic_scheduler.models.appointment import Appointment  # noqa: E402
from clinic_scheduler.models.doctor import Doctor  # noqa: E402
from clinic_scheduler.repositories.appointment_store import SqlAppointmentStore  # noqa: E402
from clinic_scheduler.repositories.doctor_directory import SqlDoctorDirectory  # noqa: E402
from clinic_scheduler.scheduling.coordinator import SchedulingCoordinator  # noqa: E402
from clinic_scheduler.scheduling.errors import DoctorNotFound, StorageFailure  # noqa: E402
from clinic_scheduler.scheduling.locks import DoctorLockProvider  # noqa: E402
from clinic_scheduler.scheduling.slots import parse_schedule_template  # noqa: E402
from clinic_scheduler.scheduling.types import AppointmentRecord  # noqa: E402

FROZEN_NOW = datetime(2025, 3, 1, 8, 0)
DEFAULT_TEMPLATE = ['09:00-10:00', '10:00-11:00']


class FakeDoctorDirectory:
    def __init__(self, schedules: dict[int, list[str]] | None = None):
        self.schedules = dict(schedules or {})
        self.removed: list[int] = []

    def get_schedule(self, doctor_id: int):
        if doctor_id not in self.schedules:
            raise DoctorNotFound(doctor_id)
        return parse_schedule_template(self.schedules[doctor_id])

    def exists(self, doctor_id: int) -> bool:
        return doctor_id in self.schedules

    def remove(self, doctor_id: int) -> None:
        self.schedules.pop(doctor_id, None)
        self.removed.append(doctor_id)


class FakeAppointmentStore:
    def __init__(self):
        self.appointments: dict[int, AppointmentRecord] = {}
        self.fail_with: Exception | None = None
        self._next_id = 1
        self._lock = threading.Lock()

    def _check(self):
        if self.fail_with is not None:
            raise self.fail_with

    def find_by_doctor_and_date_range(self, doctor_id, start, end):
        self._check()
        return sorted(
            (
                appointment for appointment in self.appointments.values()
                if appointment.doctor_id == doctor_id and start <= appointment.start_time < end
            ),
            key=lambda appointment: appointment.start_time,
        )

    def find_by_id(self, appointment_id):
        self._check()
        return self.appointments.get(appointment_id)

    def save(self, appointment):
        self._check()
        with self._lock:
            appointment_id = self._next_id
            self._next_id += 1
        self.appointments[appointment_id] = AppointmentRecord(
            id=appointment_id,
            doctor_id=appointment.doctor_id,
            patient_id=appointment.patient_id,
            start_time=appointment.start_time,
            status=appointment.status,
        )
        return appointment_id

    def update_start_time(self, appointment_id, start_time):
        self._check()
        current = self.appointments[appointment_id]
        self.appointments[appointment_id] = AppointmentRecord(
            id=current.id,
            doctor_id=current.doctor_id,
            patient_id=current.patient_id,
            start_time=start_time,
            status=current.status,
        )

    def delete_by_id(self, appointment_id):
        self._check()
        self.appointments.pop(appointment_id, None)

    def delete_all_by_doctor(self, doctor_id):
        self._check()
        doomed = [key for key, value in self.appointments.items() if value.doctor_id == doctor_id]
        for key in doomed:
            del self.appointments[key]
        return len(doomed)


@pytest.fixture
def directory():
    return FakeDoctorDirectory({1: list(DEFAULT_TEMPLATE)})


@pytest.fixture
def store():
    return FakeAppointmentStore()


@pytest.fixture
def coordinator(directory, store):
    return SchedulingCoordinator(directory, store, DoctorLockProvider(timeout=2), clock=lambda: FROZEN_NOW)


@pytest.fixture
def session_factory(tmp_path):
    engine = build_engine(f'sqlite:///{tmp_path / "scheduler.db"}')
    Base.metadata.create_all(bind=engine, tables=[Doctor.__table__, Appointment.__table__])
    try:
        yield sessionmaker(autocommit=False, autoflush=False, bind=engine)
    finally:
        Base.metadata.drop_all(bind=engine, tables=[Appointment.__table__, Doctor.__table__])
        engine.dispose()


@pytest.fixture
def add_doctor(session_factory):
    def _add_doctor(name='Dr. Rivera', available_times=None, email=None):
        with session_factory() as db:
            doctor = Doctor(
                name=name,
                specialty='Cardiology',
                email=email or f'{name.lower().replace(" ", ".")}@clinic.test',
                available_times=list(DEFAULT_TEMPLATE) if available_times is None else available_times,
            )
            db.add(doctor)
            db.commit()
            db.refresh(doctor)
            return doctor.id

    return _add_doctor


@pytest.fixture
def sql_coordinator(session_factory):
    return SchedulingCoordinator(
        SqlDoctorDirectory(session_factory),
        SqlAppointmentStore(session_factory),
        DoctorLockProvider(timeout=5),
        clock=lambda: FROZEN_NOW,
    )


@pytest.fixture
def broken_session_factory():
    engine = create_engine('sqlite:////nonexistent-dir/unreachable.db')
    try:
        yield sessionmaker(bind=engine)
    finally:
        engine.dispose()


@pytest.fixture
def storage_failure():
    return StorageFailure('store offline')
