"""
Health check endpoint.

The first thing to hit to verify the status server is up. It answers
even before the scheduler has published anything, and reports how many
snapshots it has received so far.
"""

from fastapi import APIRouter, Depends

from api.board import StatusBoard
from api.dependencies import get_board

router = APIRouter(tags=["health"])


@router.get("/health")
async def health_check(board: StatusBoard = Depends(get_board)) -> dict:
    """Report that the server is alive and whether the scheduler is reporting."""
    snapshot = board.latest()
    return {
        "status": "healthy",
        "scheduler": snapshot.phase.value if snapshot else "starting",
        "updates": board.updates,
    }
