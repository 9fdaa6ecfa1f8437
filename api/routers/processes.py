"""
Process endpoints.

GET /processes         → Every PCB, in admission order (optionally filtered by state)
GET /processes/{pid}   → A single PCB

Read-only. The API cannot pause, resume or kill anything; the scheduler
owns the processes exclusively.
"""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from api.dependencies import get_snapshot
from api.schemas.process import ProcessResponse
from models.enums import ProcessState
from scheduler.engine import SchedulerSnapshot

router = APIRouter(prefix="/processes", tags=["processes"])


@router.get("/", response_model=list[ProcessResponse])
async def list_processes(
    state: Optional[ProcessState] = Query(None, description="Filter by PCB state"),
    snapshot: SchedulerSnapshot = Depends(get_snapshot),
) -> list[ProcessResponse]:
    processes = snapshot.processes
    if state is not None:
        processes = [p for p in processes if p.state is state]
    return [ProcessResponse.model_validate(p) for p in processes]


@router.get("/{pid}", response_model=ProcessResponse)
async def get_process(
    pid: int,
    snapshot: SchedulerSnapshot = Depends(get_snapshot),
) -> ProcessResponse:
    for process in snapshot.processes:
        if process.pid == pid:
            return ProcessResponse.model_validate(process)
    raise HTTPException(status_code=404, detail=f"No process with pid {pid}")
