"""
Pydantic schemas for the /processes endpoints.

ProcessResponse mirrors a PCBSnapshot. from_attributes=True lets
FastAPI build it straight from the frozen dataclass.
"""

from typing import Optional

from pydantic import BaseModel

from models.enums import ProcessState


class ProcessResponse(BaseModel):
    """One PCB as of the last completed dispatch cycle."""

    pid: int
    command: str
    state: ProcessState
    cumulative_run_ms: int       # quantum time charged so far
    dispatch_count: int          # how many quanta it has been granted
    exit_code: Optional[int] = None
    lost: bool = False
    last_slice_ms: float = 0.0   # measured length of its latest quantum

    model_config = {"from_attributes": True}
