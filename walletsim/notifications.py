import logging
from typing import Callable, List, Optional

from .models import Notification
from .scheduler import Scheduler


class Notifier:
    """
    Emits short-lived outcome events. Holds at most one notification;
    a new one hides and replaces the previous one.
    """
    def __init__(self, scheduler: Scheduler, logger: logging.Logger, timeout_ms: int = 4000):
        self.scheduler = scheduler
        self.logger = logger
        self.timeout = timeout_ms / 1000
        self.current: Optional[Notification] = None
        self._expiry = None
        self._listeners: List[Callable[[Notification], None]] = []

    def subscribe(self, listener: Callable[[Notification], None]):
        self._listeners.append(listener)

    def unsubscribe(self, listener: Callable[[Notification], None]):
        if listener in self._listeners:
            self._listeners.remove(listener)

    def emit(self, message: str) -> Notification:
        if self.current is not None:
            self.scheduler.cancel(self._expiry)
            self.current.visible = False

        note = Notification(message=message)
        self.current = note
        self._expiry = self.scheduler.call_later(self.timeout, self._expire, note)
        self.logger.info(f"🔔 {message}")
        self._publish(note)
        return note

    @property
    def visible(self) -> Optional[Notification]:
        if self.current is not None and self.current.visible:
            return self.current
        return None

    def _expire(self, note: Notification):
        if note is not self.current:
            return
        note.visible = False
        self._expiry = None
        self._publish(note)

    def _publish(self, note: Notification):
        for listener in self._listeners:
            try:
                listener(note)
            except Exception as e:
                self.logger.error(f"Notification listener failed: {e}")
