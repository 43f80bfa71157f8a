"""Service for process and database health checks."""
import logging
import resource
import sys
import time
from typing import Dict, Optional

from pydantic import BaseModel

from document_store import DocumentStore
from response_helpers import current_timestamp

logger = logging.getLogger(__name__)

_PROCESS_STARTED = time.monotonic()


class DatabaseCheckResult(BaseModel):
    """Raw database connectivity check result."""
    connected: bool
    duration: float  # milliseconds
    error: Optional[str] = None


class HealthService:
    """Reports liveness, readiness and resource usage."""

    def __init__(self, store: DocumentStore):
        self.store = store

    def check_database_connection(self) -> DatabaseCheckResult:
        """
        Ping the database and time the round-trip.

        Returns:
            DatabaseCheckResult; failures are reported, never raised
        """
        started = time.perf_counter()
        try:
            self.store.ping()
            return DatabaseCheckResult(
                connected=True,
                duration=(time.perf_counter() - started) * 1000,
            )
        except Exception as e:
            logger.warning(f"Database ping failed: {e}")
            return DatabaseCheckResult(
                connected=False,
                duration=(time.perf_counter() - started) * 1000,
                error=str(e) or "Unknown database error",
            )

    def get_memory_usage(self) -> Dict[str, str]:
        max_rss = resource.getrusage(resource.RUSAGE_SELF).ru_maxrss
        # ru_maxrss is in bytes on macOS, kilobytes elsewhere
        max_rss_bytes = max_rss if sys.platform == "darwin" else max_rss * 1024
        return {"maxRss": f"{max_rss_bytes / 1024 / 1024:.2f} MB"}

    def get_uptime(self) -> float:
        return time.monotonic() - _PROCESS_STARTED

    def get_current_timestamp(self) -> str:
        return current_timestamp()
