"""Activity log for tracking refresh and timer actions."""

from collections import deque
from dataclasses import dataclass
from datetime import datetime
from typing import Optional
import logging

from oddsboard.config import melb_now_naive

logger = logging.getLogger(__name__)


# Activity types
class ActivityType:
    REFRESH_START = "refresh_start"
    REFRESH_COMPLETE = "refresh_complete"
    REFRESH_EMPTY = "refresh_empty"
    REFRESH_ERROR = "refresh_error"
    REFRESH_CANCELLED = "refresh_cancelled"
    WINNERS = "winners"
    TIMER = "timer"
    SYSTEM = "system"


@dataclass
class ActivityEntry:
    """Single activity log entry."""

    timestamp: datetime
    activity_type: str
    message: str
    source: Optional[str] = None
    details: Optional[str] = None
    status: str = "info"  # info, success, warning, error

    def to_dict(self) -> dict:
        return {
            "timestamp": self.timestamp.isoformat(),
            "time_str": self.timestamp.strftime("%H:%M:%S"),
            "activity_type": self.activity_type,
            "message": self.message,
            "source": self.source,
            "details": self.details,
            "status": self.status,
        }


class ActivityLog:
    """In-memory activity log with fixed size."""

    def __init__(self, max_entries: int = 100):
        self._entries: deque[ActivityEntry] = deque(maxlen=max_entries)

    def log(
        self,
        activity_type: str,
        message: str,
        source: Optional[str] = None,
        details: Optional[str] = None,
        status: str = "info",
    ) -> None:
        """Add an activity to the log."""
        entry = ActivityEntry(
            timestamp=melb_now_naive(),
            activity_type=activity_type,
            message=message,
            source=source,
            details=details,
            status=status,
        )
        self._entries.appendleft(entry)

        # Also log to standard logger
        log_level = logging.INFO
        if status == "error":
            log_level = logging.ERROR
        elif status == "warning":
            log_level = logging.WARNING
        elif activity_type == ActivityType.REFRESH_CANCELLED:
            log_level = logging.DEBUG
        logger.log(log_level, f"[Activity] {message}" + (f" ({details})" if details else ""))

    def get_entries(self, limit: int = 50) -> list[dict]:
        """Get recent entries as dicts."""
        entries = list(self._entries)[:limit]
        return [e.to_dict() for e in entries]

    def latest(self, activity_type: Optional[str] = None) -> Optional[ActivityEntry]:
        for entry in self._entries:
            if activity_type is None or entry.activity_type == activity_type:
                return entry
        return None


# Global activity log instance
activity_log = ActivityLog()


def log_system(message: str, status: str = "info") -> None:
    """Log system event."""
    activity_log.log(
        ActivityType.SYSTEM,
        message,
        status=status,
    )
