"""Collaborator interfaces the scheduling core depends on."""

from collections.abc import Sequence
from datetime import datetime
from typing import Protocol

from clinic_scheduler.scheduling.types import AppointmentRecord, ScheduleTemplate


class DoctorDirectory(Protocol):
    def get_schedule(self, doctor_id: int) -> ScheduleTemplate:
        """Return the doctor's template or raise ``DoctorNotFound``."""

    def exists(self, doctor_id: int) -> bool: ...

    def remove(self, doctor_id: int) -> None: ...


class AppointmentStore(Protocol):
    def find_by_doctor_and_date_range(
        self, doctor_id: int, start: datetime, end: datetime
    ) -> Sequence[AppointmentRecord]:
        """Appointments with ``start <= start_time < end``, ordered by start time."""

    def find_by_id(self, appointment_id: int) -> AppointmentRecord | None: ...

    def save(self, appointment: AppointmentRecord) -> int: ...

    def update_start_time(self, appointment_id: int, start_time: datetime) -> None: ...

    def delete_by_id(self, appointment_id: int) -> None: ...

    def delete_all_by_doctor(self, doctor_id: int) -> int: ...
