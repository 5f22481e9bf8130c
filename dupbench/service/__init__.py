"""
Service Layer
Worker orchestration, event streaming and health status
"""

from dupbench.service.detection import encode_event, run_detection
from dupbench.service.status import get_health, status_store

__all__ = ["run_detection", "encode_event", "get_health", "status_store"]
