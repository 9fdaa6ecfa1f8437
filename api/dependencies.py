"""
FastAPI dependency injection.

Endpoints declare `board: StatusBoard = Depends(get_board)` and receive
the board stored on the app by create_app(). Tests build their own board
and pass it to create_app(), so no override is needed.
"""

from fastapi import HTTPException, Request

from api.board import StatusBoard
from scheduler.engine import SchedulerSnapshot


async def get_board(request: Request) -> StatusBoard:
    """Returns the StatusBoard stored on the app at creation time."""
    return request.app.state.board


async def get_snapshot(request: Request) -> SchedulerSnapshot:
    """Latest published snapshot, or 503 if the scheduler has not reported yet."""
    snapshot = request.app.state.board.latest()
    if snapshot is None:
        raise HTTPException(status_code=503, detail="Scheduler has not published a snapshot yet")
    return snapshot
