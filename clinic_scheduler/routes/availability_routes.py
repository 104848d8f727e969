from datetime import date, datetime

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel

from clinic_scheduler.routes.common import ensure_database_ready, get_coordinator, raise_for_rejection
from clinic_scheduler.scheduling.coordinator import SchedulingCoordinator
from clinic_scheduler.scheduling.types import Rejected, Slot

router = APIRouter(tags=['availability'])


class AvailabilitySlotResponse(BaseModel):
    slot: str
    start_time: datetime
    end_time: datetime


class AvailabilityResponse(BaseModel):
    doctor_id: int
    date: date
    open_slots: list[AvailabilitySlotResponse]


def to_slot_response(slot: Slot) -> AvailabilitySlotResponse:
    return AvailabilitySlotResponse(slot=slot.label, start_time=slot.start, end_time=slot.end)


@router.get('/doctors/{doctor_id}/availability', response_model=AvailabilityResponse)
def get_doctor_availability(
    doctor_id: int,
    on_date: date = Query(..., alias='date'),
    coordinator: SchedulingCoordinator = Depends(get_coordinator),
):
    ensure_database_ready()

    result = coordinator.get_availability(doctor_id, on_date)
    if isinstance(result, Rejected):
        raise_for_rejection(result)

    return AvailabilityResponse(
        doctor_id=result.doctor_id,
        date=result.date,
        open_slots=[to_slot_response(slot) for slot in result.open_slots],
    )
