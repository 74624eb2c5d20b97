"""
Sunset reminders.

Toggling a calendar day's reminder schedules (or cancels) a local
notification at 15:00 on that day. The notification id comes from the date
alone, so toggling the same day twice always targets the same notification.
"""

import logging
from dataclasses import dataclass
from datetime import date, datetime, time
from typing import Dict, List, Optional
from zoneinfo import ZoneInfo

from sunset_score.errors import PermissionDenied
from sunset_score.models import DailyForecast

logger = logging.getLogger(__name__)

REMINDER_TITLE = "Wonderful Sunset"
REMINDER_TIME = time(15, 0)

# Not capped at 100: an unclamped score above 100 still reads as a great sunset
GREAT_SUNSET_SCORE = 80


@dataclass(frozen=True)
class ScheduledNotification:
    id: str
    at: datetime
    title: str
    body: str


class NotificationScheduler:
    """Arranges future local alerts. Delivery is somebody else's problem."""

    def schedule(self, at: datetime, title: str, body: str, id: str) -> None:
        raise NotImplementedError

    def cancel(self, id: str) -> None:
        raise NotImplementedError


class InMemoryNotificationScheduler(NotificationScheduler):
    """Keeps pending notifications in a dict and logs every change."""

    def __init__(self):
        self.pending: Dict[str, ScheduledNotification] = {}

    def schedule(self, at: datetime, title: str, body: str, id: str) -> None:
        self.pending[id] = ScheduledNotification(id=id, at=at, title=title, body=body)
        logger.info(f"[NotificationScheduler] Scheduled {id} at {at.isoformat()}: {body}")

    def cancel(self, id: str) -> None:
        if self.pending.pop(id, None) is not None:
            logger.info(f"[NotificationScheduler] Cancelled {id}")


def reminder_id(day: date) -> str:
    return f"sunset_{day.isoformat()}"


def reminder_body(score: int) -> str:
    if score >= GREAT_SUNSET_SCORE:
        outlook = "a fire-cloud sunset is likely, get your camera ready!"
    else:
        outlook = "moderate clouds, it could still be a nice show."
    return f"Today's sunset score is {score}: {outlook}"


class ReminderService:

    def __init__(
        self,
        scheduler: NotificationScheduler,
        tz: ZoneInfo,
        permission_granted: bool = True
    ):
        self.scheduler = scheduler
        self.tz = tz
        self.permission_granted = permission_granted

    def toggle(self, forecast: DailyForecast) -> DailyForecast:
        """
        Flip the reminder for one day and return the updated forecast.

        Raises:
            PermissionDenied: turning a reminder on without notification
                permission. The forecast is left as it was.
        """
        notification_id = reminder_id(forecast.date)

        if forecast.reminder_set:
            self.scheduler.cancel(notification_id)
            return forecast.with_reminder(False)

        if not self.permission_granted:
            logger.warning(f"[ReminderService] Cannot schedule {notification_id}: no permission")
            raise PermissionDenied("notifications")

        at = datetime.combine(forecast.date, REMINDER_TIME, tzinfo=self.tz)
        self.scheduler.schedule(at, REMINDER_TITLE, reminder_body(forecast.score), notification_id)
        return forecast.with_reminder(True)

    def toggle_in(self, calendar: List[DailyForecast], day: date) -> Optional[DailyForecast]:
        """Toggle the entry for `day` inside a calendar list, in place."""
        for index, forecast in enumerate(calendar):
            if forecast.date == day:
                calendar[index] = self.toggle(forecast)
                return calendar[index]

        logger.info(f"[ReminderService] {day} is not in the calendar")
        return None
