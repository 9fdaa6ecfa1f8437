"""
Pydantic schemas for the /scheduler endpoints.

SchedulerStatus: response showing the engine's state after its last dispatch cycle.
"""

from typing import Optional

from pydantic import BaseModel

from models.enums import SchedulerPhase


class SchedulerStatus(BaseModel):
    """Response body for GET /scheduler/status."""

    phase: SchedulerPhase
    quantum_ms: int
    running_pid: Optional[int] = None
    ready_pids: list[int]          # front of the queue first
    completion_order: list[int]
    quanta_granted: int
    elapsed_sec: float
    total_processes: int
    finished_count: int

    model_config = {"from_attributes": True}
