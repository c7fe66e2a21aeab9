"""Critical-level notifications, throttled to one per 50 cm band."""

from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Dict, List, Optional

from models.messages import critical_toast
from models.records import AlertNotification
from services.thresholds import ALERT_STEP_CM, ALERT_TTL, CRITICAL_THRESHOLD_CM

logger = logging.getLogger(__name__)


class AlertThrottler:
    """Tracks the last milestone alerted per sensor and the live notifications.

    Milestones only ratchet upward for the lifetime of the throttler. A drop
    in level never re-arms a lower milestone.
    """

    def __init__(
        self,
        threshold: int = CRITICAL_THRESHOLD_CM,
        step: int = ALERT_STEP_CM,
        ttl: timedelta = ALERT_TTL,
    ) -> None:
        self.threshold = threshold
        self.step = step
        self.ttl = ttl
        self._milestones: Dict[str, int] = {}
        self._notifications: List[AlertNotification] = []

    def milestone_for(self, level: float) -> int:
        return self.threshold + self.step * int((level - self.threshold) // self.step)

    def last_milestone(self, sensor_id: str) -> Optional[int]:
        return self._milestones.get(sensor_id)

    def observe(
        self,
        sensor_id: str,
        sensor_name: str,
        level: int,
        now: datetime,
    ) -> Optional[AlertNotification]:
        if level < self.threshold:
            return None

        last = self._milestones.get(sensor_id)
        if last is not None and level < last + self.step:
            return None

        milestone = self.milestone_for(level)
        self._milestones[sensor_id] = milestone
        notification = AlertNotification(
            id=f"{sensor_id}-{milestone}-{int(now.timestamp() * 1000)}",
            sensor_id=sensor_id,
            level_cm=level,
            milestone=milestone,
            message=critical_toast(sensor_name, level),
            created_at=now,
            ttl=self.ttl,
        )
        self._notifications.append(notification)
        logger.warning(
            "Critical water level",
            extra={"sensor_id": sensor_id, "level_cm": level, "milestone": milestone},
        )
        return notification

    def expire(self, now: datetime) -> List[AlertNotification]:
        expired = [item for item in self._notifications if item.is_expired(now)]
        if expired:
            self._notifications = [
                item for item in self._notifications if not item.is_expired(now)
            ]
        return expired

    def active(self, now: Optional[datetime] = None) -> List[AlertNotification]:
        if now is not None:
            self.expire(now)
        return list(self._notifications)

    def dismiss(self, alert_id: str) -> bool:
        remaining = [item for item in self._notifications if item.id != alert_id]
        removed = len(remaining) != len(self._notifications)
        self._notifications = remaining
        return removed
