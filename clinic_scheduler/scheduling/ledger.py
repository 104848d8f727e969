from datetime import date, datetime, time, timedelta

from clinic_scheduler.scheduling.ports import AppointmentStore
from clinic_scheduler.scheduling.types import AppointmentRecord, AppointmentStatus


def day_bounds(on_date: date) -> tuple[datetime, datetime]:
    start = datetime.combine(on_date, time.min)
    return start, start + timedelta(days=1)


class BookingLedger:
    """Read path over persisted appointments. Every call goes to the store."""

    def __init__(self, store: AppointmentStore):
        self.store = store

    def appointments_on(self, doctor_id: int, on_date: date) -> list[AppointmentRecord]:
        start, end = day_bounds(on_date)
        return list(self.store.find_by_doctor_and_date_range(doctor_id, start, end))

    def booked_starts(self, doctor_id: int, on_date: date) -> set[time]:
        return {
            appointment.start_time.time()
            for appointment in self.appointments_on(doctor_id, on_date)
            if appointment.status == AppointmentStatus.SCHEDULED
        }
