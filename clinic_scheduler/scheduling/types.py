"""Value types shared by the availability and booking components."""

import enum
from dataclasses import dataclass, field
from datetime import date, datetime, time
from typing import TypeAlias

from clinic_scheduler.scheduling.errors import RejectionReason


class AppointmentStatus(str, enum.Enum):
    SCHEDULED = "scheduled"
    COMPLETED = "completed"


@dataclass(frozen=True, slots=True)
class SlotWindow:
    """A time-of-day interval from a doctor's schedule template."""

    start: time
    end: time

    @property
    def label(self) -> str:
        return f"{self.start:%H:%M}-{self.end:%H:%M}"


@dataclass(frozen=True, slots=True)
class ScheduleTemplate:
    """A doctor's recurring daily slots, sorted by start and non-overlapping."""

    windows: tuple[SlotWindow, ...] = ()


@dataclass(frozen=True, slots=True)
class Slot:
    """A template window instantiated on a calendar date."""

    start: datetime
    end: datetime

    @property
    def label(self) -> str:
        return f"{self.start:%H:%M}-{self.end:%H:%M}"


@dataclass(frozen=True, slots=True)
class AppointmentRecord:
    doctor_id: int
    patient_id: int
    start_time: datetime
    status: AppointmentStatus = AppointmentStatus.SCHEDULED
    id: int | None = None


@dataclass(frozen=True, slots=True)
class BookingRequest:
    doctor_id: int
    patient_id: int
    start_time: datetime


@dataclass(frozen=True, slots=True)
class AvailabilityResult:
    doctor_id: int
    date: date
    open_slots: tuple[Slot, ...] = field(default_factory=tuple)


@dataclass(frozen=True, slots=True)
class Ok:
    pass


@dataclass(frozen=True, slots=True)
class Rejected:
    reason: RejectionReason
    detail: str = ""


@dataclass(frozen=True, slots=True)
class Created:
    appointment_id: int


@dataclass(frozen=True, slots=True)
class Cancelled:
    appointment_id: int


@dataclass(frozen=True, slots=True)
class Rescheduled:
    appointment_id: int
    start_time: datetime


@dataclass(frozen=True, slots=True)
class Deleted:
    doctor_id: int


ValidationOutcome: TypeAlias = Ok | Rejected
BookingOutcome: TypeAlias = Created | Rejected
CancelOutcome: TypeAlias = Cancelled | Rejected
RescheduleOutcome: TypeAlias = Rescheduled | Rejected
DeleteOutcome: TypeAlias = Deleted | Rejected
