"""Tests for the /health endpoint."""

import pytest

from models.enums import SchedulerPhase
from scheduler.engine import SchedulerSnapshot


@pytest.mark.asyncio
async def test_health_check_before_first_snapshot(client):
    """GET /health answers even before the scheduler has published anything."""
    response = await client.get("/health")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "healthy"
    assert data["scheduler"] == "starting"
    assert data["updates"] == 0


@pytest.mark.asyncio
async def test_health_check_reports_phase(client, board):
    board.publish(SchedulerSnapshot(
        phase=SchedulerPhase.DISPATCHING,
        quantum_ms=100,
        running_pid=None,
        ready_pids=[],
        completion_order=[],
        quanta_granted=0,
        elapsed_sec=0.0,
        processes=[],
    ))

    data = (await client.get("/health")).json()
    assert data["scheduler"] == "DISPATCHING"
    assert data["updates"] == 1
