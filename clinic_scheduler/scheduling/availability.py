"""Open-slot computation for a doctor on a given day.

Availability is the doctor's expanded template minus the start times that
already hold a scheduled appointment. A booked appointment removes exactly
the slot that shares its start; partial overlaps are not considered.

Results are snapshots. Nothing is reserved by reading them, and the booking
path re-checks availability under the doctor's lock before committing.
"""

from datetime import date

from clinic_scheduler.scheduling.ledger import BookingLedger
from clinic_scheduler.scheduling.ports import DoctorDirectory
from clinic_scheduler.scheduling.slots import expand_template
from clinic_scheduler.scheduling.types import AvailabilityResult


class AvailabilityCalculator:
    def __init__(self, directory: DoctorDirectory, ledger: BookingLedger):
        self.directory = directory
        self.ledger = ledger

    def availability(self, doctor_id: int, on_date: date) -> AvailabilityResult:
        """Raises ``DoctorNotFound``, ``InvalidTemplate`` or ``StorageFailure``."""
        template = self.directory.get_schedule(doctor_id)
        candidate_slots = expand_template(template, on_date)
        booked_start_times = self.ledger.booked_starts(doctor_id, on_date)

        open_slots = tuple(
            slot for slot in candidate_slots
            if slot.start.time() not in booked_start_times
        )
        return AvailabilityResult(doctor_id=doctor_id, date=on_date, open_slots=open_slots)
