"""Async background task runner.

Includes:
- dispatch_drain(): Run a queue drain as a background asyncio task
- start_connectivity_probe(): Periodic reachability check feeding the monitor
"""
import asyncio

import structlog

from trip_tracker.services.connectivity import ConnectivityMonitor, ConnectivityProbe
from trip_tracker.services.queue_processor import DrainReport, QueueProcessor

logger = structlog.get_logger()

# Track running tasks
_running_tasks: set[asyncio.Task] = set()
_probe_task: asyncio.Task | None = None


async def run_drain_async(processor: QueueProcessor) -> DrainReport | None:
    """Drain the queue, logging any failure."""
    try:
        return await processor.drain()
    except Exception as e:
        logger.error("Queue drain failed", error=str(e))
        return None


def dispatch_drain(processor: QueueProcessor) -> asyncio.Task | None:
    """Dispatch a queue drain as a background asyncio task."""
    try:
        loop = asyncio.get_running_loop()
    except RuntimeError:
        logger.warning("No running event loop, drain not dispatched")
        return None

    task = loop.create_task(run_drain_async(processor))
    _running_tasks.add(task)
    task.add_done_callback(_running_tasks.discard)
    logger.debug("Dispatched queue drain")
    return task


async def wait_for_background_drains() -> None:
    """Wait until every dispatched drain has finished."""
    if _running_tasks:
        await asyncio.gather(*list(_running_tasks))


# ---------------------------------------------------------------------------
# Connectivity probing (replaces platform network-change events)
# ---------------------------------------------------------------------------

async def _probe_loop(
    probe: ConnectivityProbe,
    monitor: ConnectivityMonitor,
    interval_seconds: float,
):
    """Check reachability forever, reporting every result to the monitor."""
    logger.info("Connectivity probe started", url=probe.url, interval_s=interval_seconds)

    while True:
        try:
            reachable = await probe.check()
            await monitor.report(reachable)
            await asyncio.sleep(interval_seconds)
        except asyncio.CancelledError:
            logger.info("Connectivity probe cancelled")
            break
        except Exception as e:
            logger.error("Connectivity probe error", error=str(e))
            await asyncio.sleep(interval_seconds)


def start_connectivity_probe(
    probe: ConnectivityProbe,
    monitor: ConnectivityMonitor,
    interval_seconds: float = 15.0,
):
    """Start the periodic connectivity probe as a background task."""
    global _probe_task
    if _probe_task and not _probe_task.done():
        logger.warning("Connectivity probe already running")
        return

    try:
        loop = asyncio.get_running_loop()
    except RuntimeError:
        logger.warning("No running event loop, connectivity probe not started")
        return

    _probe_task = loop.create_task(_probe_loop(probe, monitor, interval_seconds))


def stop_connectivity_probe():
    """Stop the periodic connectivity probe."""
    global _probe_task
    if _probe_task and not _probe_task.done():
        _probe_task.cancel()
        logger.info("Connectivity probe stop requested")
    _probe_task = None
