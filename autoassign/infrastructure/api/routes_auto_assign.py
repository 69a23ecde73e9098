"""Auto-assignment endpoints: evaluate one work order, sweep the queue, read logs."""

from __future__ import annotations

from dataclasses import asdict

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from autoassign.adapters.persistence.database import get_session
from autoassign.adapters.persistence.repositories import SqlAssignmentLogRepository
from autoassign.application.use_cases.auto_assign import AutoAssignWorkOrderUseCase
from autoassign.application.use_cases.process_queue import ProcessAssignmentQueueUseCase
from autoassign.infrastructure.api.dependencies import (
    get_auto_assign_uc,
    get_log_repo,
    get_process_queue_uc,
)

router = APIRouter(prefix="/auto-assign", tags=["auto-assign"])


@router.post("/queue/process")
async def process_queue(
    sweep_uc: ProcessAssignmentQueueUseCase = Depends(get_process_queue_uc),
    session: AsyncSession = Depends(get_session),
):
    """Re-evaluate every due queue item (cron / manual trigger)."""
    summary = await sweep_uc.execute()
    await session.commit()

    return {
        "status": "ok",
        "processed": summary.processed,
        "assigned": summary.assigned,
        "retrying": summary.retrying,
        "failed": summary.failed,
        "expired": summary.expired,
        "results": [
            {
                "work_order_id": r.work_order_id,
                "queue_status": r.queue_status.value,
                "success": r.success,
                "message": r.message,
                "assigned_technician_id": r.assigned_technician_id,
            }
            for r in summary.results
        ],
    }


@router.get("/logs")
async def list_logs(
    work_order_id: str | None = None,
    limit: int = Query(default=50, ge=1, le=500),
    log_repo: SqlAssignmentLogRepository = Depends(get_log_repo),
):
    """Recent assignment attempts, newest first."""
    logs = await log_repo.get_recent(work_order_id=work_order_id, limit=limit)
    return {"total": len(logs), "logs": [asdict(log) for log in logs]}


@router.post("/{work_order_id}")
async def auto_assign(
    work_order_id: str,
    auto_assign_uc: AutoAssignWorkOrderUseCase = Depends(get_auto_assign_uc),
    session: AsyncSession = Depends(get_session),
):
    """Run the engine for one work order."""
    result = await auto_assign_uc.evaluate(work_order_id)
    await session.commit()
    return result.response.to_dict()
