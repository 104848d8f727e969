from fastapi import APIRouter, Depends, status

from clinic_scheduler.auth.dependencies import require_role
from clinic_scheduler.routes.common import ensure_database_ready, get_coordinator, raise_for_rejection
from clinic_scheduler.scheduling.coordinator import SchedulingCoordinator
from clinic_scheduler.scheduling.types import Rejected

router = APIRouter(tags=['doctors'])


@router.delete(
    '/doctors/{doctor_id}',
    status_code=status.HTTP_204_NO_CONTENT,
    dependencies=[Depends(require_role('admin'))],
)
def remove_doctor(
    doctor_id: int,
    coordinator: SchedulingCoordinator = Depends(get_coordinator),
):
    ensure_database_ready()

    outcome = coordinator.delete_doctor(doctor_id)
    if isinstance(outcome, Rejected):
        raise_for_rejection(outcome)
