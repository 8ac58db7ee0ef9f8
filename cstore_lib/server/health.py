"""Server health utilities.

Provides a simple `get_health` function returning server status, the
current time, the process start time and uptime in seconds.
"""
from datetime import datetime, timezone
from typing import Optional
import time

from cstore_lib.storage import StorageBackend

# record process start time at import
_START_TIME = time.time()


def get_health(storage: Optional[StorageBackend] = None) -> dict:
    """Return a dict representing server health.

    Fields:
    - status: 'OK', or 'DEGRADED' when the storage backend is not open
    - timestamp: ISO 8601 UTC timestamp of this call
    - start_time: ISO 8601 UTC timestamp when the process started
    - uptime: seconds since start (float)
    - backend: storage backend name, when one is configured
    """
    now = time.time()
    status = "OK"
    if storage is not None and not storage.is_open:
        status = "DEGRADED"
    return {
        "status": status,
        "timestamp": datetime.fromtimestamp(now, tz=timezone.utc).isoformat(),
        "start_time": datetime.fromtimestamp(_START_TIME, tz=timezone.utc).isoformat(),
        "uptime": round(now - _START_TIME, 3),
        "backend": storage.name if storage is not None else None,
    }
