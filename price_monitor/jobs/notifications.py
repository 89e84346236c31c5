"""Operator-facing notifications for action outcomes."""
import logging
from collections import deque
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from typing import Optional

logger = logging.getLogger(__name__)

SUCCESS = "success"
WARNING = "warning"
ERROR = "error"

_LOG_LEVELS = {SUCCESS: logging.INFO, WARNING: logging.WARNING, ERROR: logging.ERROR}


@dataclass(frozen=True)
class Notification:
    """Outcome of one operator action."""

    action: str
    level: str
    message: str
    status_code: Optional[int] = None
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_dict(self) -> dict:
        data = asdict(self)
        data["created_at"] = self.created_at.isoformat()
        return data


class NotificationLog:
    """Bounded, newest-last log of notifications."""

    def __init__(self, max_items: int = 50):
        self._items: deque[Notification] = deque(maxlen=max_items)

    def post(
        self,
        action: str,
        level: str,
        message: str,
        status_code: Optional[int] = None,
    ) -> Notification:
        if status_code is not None:
            message = f"{message} (HTTP {status_code})"
        notification = Notification(action, level, message, status_code)
        self._items.append(notification)
        logger.log(_LOG_LEVELS.get(level, logging.INFO), f"[{action}] {message}")
        return notification

    def latest(self) -> Optional[Notification]:
        return self._items[-1] if self._items else None

    def items(self) -> list[Notification]:
        return list(self._items)

    def clear(self) -> None:
        self._items.clear()

    def __len__(self) -> int:
        return len(self._items)
