"""
Scheduler status endpoint.

GET /scheduler/status → phase, quantum, who is running, ready queue order

The values come from the last snapshot the engine published. Because the
engine publishes at the end of each dispatch cycle, running_pid is
normally None here: by then the running task has already been paused or
reaped.
"""

from fastapi import APIRouter, Depends

from api.dependencies import get_snapshot
from api.schemas.scheduler import SchedulerStatus
from models.enums import ProcessState
from scheduler.engine import SchedulerSnapshot

router = APIRouter(prefix="/scheduler", tags=["scheduler"])


@router.get("/status", response_model=SchedulerStatus)
async def get_scheduler_status(
    snapshot: SchedulerSnapshot = Depends(get_snapshot),
) -> SchedulerStatus:
    """Get current scheduler state."""
    finished = sum(1 for p in snapshot.processes if p.state is ProcessState.FINISHED)
    return SchedulerStatus(
        phase=snapshot.phase,
        quantum_ms=snapshot.quantum_ms,
        running_pid=snapshot.running_pid,
        ready_pids=snapshot.ready_pids,
        completion_order=snapshot.completion_order,
        quanta_granted=snapshot.quanta_granted,
        elapsed_sec=round(snapshot.elapsed_sec, 3),
        total_processes=len(snapshot.processes),
        finished_count=finished,
    )
