from dataclasses import asdict

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from trip_tracker.api.deps import get_monitor, get_processor
from trip_tracker.services.connectivity import ConnectivityMonitor
from trip_tracker.services.queue_processor import QueueProcessor
from trip_tracker.services.queue_store import QueueStoreError

router = APIRouter()


class ConnectivityReport(BaseModel):
    online: bool


@router.get("/queue")
async def list_queue(processor: QueueProcessor = Depends(get_processor)):
    return {
        "pending": len(processor.pending),
        "draining": processor.is_draining,
        "tasks": [
            {
                "task_id": t.task_id,
                "kind": t.kind,
                "record_id": t.record_id,
                "latitude": t.coordinates.latitude,
                "longitude": t.coordinates.longitude,
                "enqueued_at": t.enqueued_at,
            }
            for t in processor.pending
        ],
    }


@router.post("/queue/drain")
async def drain_queue(processor: QueueProcessor = Depends(get_processor)):
    try:
        report = await processor.drain()
    except QueueStoreError as e:
        raise HTTPException(status_code=503, detail=str(e))
    return asdict(report)


@router.post("/connectivity")
async def report_connectivity(
    body: ConnectivityReport,
    monitor: ConnectivityMonitor = Depends(get_monitor),
):
    """Report reachability observed by the host; reconnecting triggers a drain."""
    transitioned = await monitor.report(body.online)
    return {"online": monitor.current_state(), "became_online": transitioned}
