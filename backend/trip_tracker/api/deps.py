from fastapi import Request

from trip_tracker.services.connectivity import ConnectivityMonitor
from trip_tracker.services.queue_processor import QueueProcessor


def get_processor(request: Request) -> QueueProcessor:
    return request.app.state.processor


def get_monitor(request: Request) -> ConnectivityMonitor:
    return request.app.state.monitor
